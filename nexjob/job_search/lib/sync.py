"""
Mirror the primary filters into the page URL and kick off a fresh search.

Only keyword and province are reflected in the URL (`?search=...&location=...`).
The history entry is always replaced, never pushed, so filter tweaks do
not pile up in the back-button stack.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from typing import Protocol
from urllib.parse import parse_qs, quote, urlencode, urlsplit

from .filters import FilterSet

LOG = logging.getLogger(__name__)

JOBS_BASE_PATH = "/lowongan-kerja/"


# -----------------------------------------------------------------------------
# History surface
# -----------------------------------------------------------------------------
class History(Protocol):
    def current(self) -> str: ...

    def replace(self, url: str) -> None: ...

    def push(self, url: str) -> None: ...


class MemoryHistory:
    """In-process history stack; `entries[-1]` is the current location."""

    def __init__(self, initial: str = JOBS_BASE_PATH) -> None:
        self.entries: list[str] = [initial]
        self._lock = threading.Lock()

    def current(self) -> str:
        with self._lock:
            return self.entries[-1]

    def replace(self, url: str) -> None:
        with self._lock:
            self.entries[-1] = url

    def push(self, url: str) -> None:
        with self._lock:
            self.entries.append(url)


# -----------------------------------------------------------------------------
# URL helpers
# -----------------------------------------------------------------------------
def build_search_url(keyword: str = "", province: str = "", base_path: str = JOBS_BASE_PATH) -> str:
    """
    >>> build_search_url("backend developer", "DKI Jakarta")
    '/lowongan-kerja/?search=backend+developer&location=DKI+Jakarta'
    >>> build_search_url()
    '/lowongan-kerja/'
    """
    params: list[tuple[str, str]] = []
    if keyword and keyword.strip():
        params.append(("search", keyword.strip()))
    if province and province.strip():
        params.append(("location", province.strip()))
    if not params:
        return base_path
    return f"{base_path}?{urlencode(params)}"


def build_category_url(category: str, base_path: str = JOBS_BASE_PATH) -> str:
    return f"{base_path}?category={quote(category.strip(), safe='')}"


def parse_search_params(query: str) -> FilterSet:
    """
    Seed a FilterSet from a URL or bare query string. Recognized keys:
    `search` (keyword), `location` (province), `category` (categories facet).
    """
    query = query or ""
    if "?" in query or "://" in query or query.startswith("/"):
        query = urlsplit(query).query
    parsed = parse_qs(query.lstrip("?"), keep_blank_values=False)

    def _one(key: str) -> str:
        values = parsed.get(key) or [""]
        return values[0].strip()

    category = _one("category")
    return FilterSet(
        keyword=_one("search"),
        province=_one("location"),
        categories=frozenset({category}) if category else frozenset(),
    )


# -----------------------------------------------------------------------------
# Synchronizer
# -----------------------------------------------------------------------------
class QuerySynchronizer:
    """
    Reacts to a FilterSet change: rewrites the URL and calls `on_change`.

    `sync(previous, current)` takes the previous value explicitly and does
    nothing when the two are equal.
    """

    def __init__(
        self,
        history: History,
        on_change: Callable[[FilterSet], object],
        base_path: str = JOBS_BASE_PATH,
    ) -> None:
        self.history = history
        self.on_change = on_change
        self.base_path = base_path

    def url_for(self, filters: FilterSet) -> str:
        return build_search_url(filters.keyword, filters.province, self.base_path)

    def sync(self, previous: FilterSet | None, current: FilterSet) -> bool:
        if previous == current:
            return False
        url = self.url_for(current)
        self.history.replace(url)
        LOG.debug("Filters synced to %s", url)
        self.on_change(current)
        return True
