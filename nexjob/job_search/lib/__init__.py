# nexjob/job_search/lib/__init__.py
from __future__ import annotations

# Re-export commonly-used types for convenience
from .fetcher import SEARCH_ERROR_MESSAGE, ResultFetcher, ResultPage
from .filters import FACETS, FilterSet, FilterStore, SortOrder
from .session import SearchSession, SessionView
from .sync import (
    History,
    MemoryHistory,
    QuerySynchronizer,
    build_category_url,
    build_search_url,
    parse_search_params,
)
from .trigger import IncrementalLoadTrigger, ScrollObservation, TriggerState

__all__ = [
    "FACETS",
    "SEARCH_ERROR_MESSAGE",
    "FilterSet",
    "FilterStore",
    "History",
    "IncrementalLoadTrigger",
    "MemoryHistory",
    "QuerySynchronizer",
    "ResultFetcher",
    "ResultPage",
    "ScrollObservation",
    "SearchSession",
    "SessionView",
    "SortOrder",
    "TriggerState",
    "build_category_url",
    "build_search_url",
    "parse_search_params",
]
