# nexjob/bookmarks/lib/__init__.py
from __future__ import annotations

from .events import BookmarkBus, BookmarkEvent
from .store import BookmarkStore, BookmarkStoreError

__all__ = ["BookmarkBus", "BookmarkEvent", "BookmarkStore", "BookmarkStoreError"]
