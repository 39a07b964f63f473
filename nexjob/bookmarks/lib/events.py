from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass

LOG = logging.getLogger(__name__)


@dataclass(frozen=True)
class BookmarkEvent:
    job_id: str
    new_state: bool  # True = bookmarked


Listener = Callable[[BookmarkEvent], None]


class BookmarkBus:
    """
    Explicit publish/subscribe channel for bookmark changes.

    Listeners run synchronously on the publishing thread, in subscription
    order. A failing listener is logged and does not stop the others.
    """

    def __init__(self) -> None:
        self._listeners: list[Listener] = []
        self._lock = threading.Lock()

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        with self._lock:
            self._listeners.append(listener)

        def _unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return _unsubscribe

    def publish(self, event: BookmarkEvent) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(event)
            except Exception:
                LOG.exception("Bookmark listener failed for %s", event)

    def __len__(self) -> int:
        with self._lock:
            return len(self._listeners)
