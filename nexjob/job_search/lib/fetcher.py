"""
Paginated result fetcher.

Two operations on one accumulating list:
  - search(filters):               page 1, replaces the list, errors are shown
  - load_more(filters, page):      page + 1, appends, errors are silent

Each operation is split into begin / fetch / apply (or fail) steps so the
search session can run the fetch on a worker thread and drop responses
that went stale in the meantime. `search` and `load_more` compose the
steps synchronously for callers that don't need that.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Protocol

from nexjob._shared import logging_bridge
from nexjob._shared.config import MAX_PAGE_SIZE
from nexjob.wordpress.lib.models import Job, JobsPage

from .filters import FilterSet

LOG = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 24
SEARCH_ERROR_MESSAGE = "Gagal memuat data pekerjaan. Silakan coba lagi."


class JobsClient(Protocol):
    def get_jobs(self, filters: Any, page: int, page_size: int) -> JobsPage: ...


@dataclass
class ResultPage:
    """Accumulated results for one FilterSet."""

    items: list[Job] = field(default_factory=list)
    page: int = 1
    total_count: int = 0
    has_more: bool = False


class ResultFetcher:
    def __init__(self, client: JobsClient, page_size: int = DEFAULT_PAGE_SIZE) -> None:
        if not 1 <= page_size <= MAX_PAGE_SIZE:
            raise ValueError(f"page_size must be within 1..{MAX_PAGE_SIZE}")
        self.client = client
        self.page_size = int(page_size)

        self.items: list[Job] = []
        self.page = 1
        self.total_count = 0
        self.has_more = False
        self.searching = False
        self.loading_more = False
        self.error: str | None = None
        self._completed_search = False

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------
    @property
    def is_empty_result(self) -> bool:
        """A finished search that succeeded and matched nothing."""
        return self._completed_search and not self.searching and self.error is None and not self.items

    def result(self) -> ResultPage:
        return ResultPage(
            items=list(self.items),
            page=self.page,
            total_count=self.total_count,
            has_more=self.has_more,
        )

    def can_load_more(self) -> bool:
        return self.has_more and not self.searching and not self.loading_more

    # ------------------------------------------------------------------
    # Composed operations
    # ------------------------------------------------------------------
    def search(self, filters: FilterSet) -> ResultPage:
        self.begin_search()
        try:
            jobs_page = self.fetch_page(filters, 1)
        except Exception as e:
            self.fail_search(filters, e)
        else:
            self.apply_search(jobs_page)
        return self.result()

    def load_more(self, filters: FilterSet, current_page: int | None = None) -> ResultPage:
        """Request the page after `current_page` (default: the last page loaded)."""
        next_page = self.begin_load_more(current_page)
        try:
            jobs_page = self.fetch_page(filters, next_page)
        except Exception as e:
            self.fail_load_more(filters, next_page, e)
        else:
            self.apply_load_more(jobs_page, next_page)
        return self.result()

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------
    def fetch_page(self, filters: FilterSet, page: int) -> JobsPage:
        t0 = time.perf_counter_ns()
        jobs_page = self.client.get_jobs(filters, page, self.page_size)
        LOG.debug(
            "get_jobs page=%d -> %d items (total=%d) in %dus",
            page,
            len(jobs_page.jobs),
            jobs_page.total_jobs,
            (time.perf_counter_ns() - t0) // 1000,
        )
        return jobs_page

    def begin_search(self) -> None:
        self.items = []
        self.page = 1
        self.total_count = 0
        self.has_more = False
        self.error = None
        self.searching = True
        self.loading_more = False

    def apply_search(self, jobs_page: JobsPage) -> None:
        self.items = list(jobs_page.jobs)
        self.page = 1
        self.total_count = jobs_page.total_jobs
        self.has_more = self._more_after(jobs_page)
        self.searching = False
        self._completed_search = True

    def fail_search(self, filters: FilterSet, exc: BaseException) -> None:
        logging_bridge.error({
            "component": "job_search.fetcher",
            "op": "search",
            "filters": filters.as_dict(),
            "error": repr(exc),
        })
        self.items = []
        self.has_more = False
        self.error = SEARCH_ERROR_MESSAGE
        self.searching = False
        self._completed_search = True

    def begin_load_more(self, current_page: int | None = None) -> int:
        self.loading_more = True
        return (self.page if current_page is None else int(current_page)) + 1

    def apply_load_more(self, jobs_page: JobsPage, page: int) -> None:
        self.loading_more = False
        if not jobs_page.jobs:
            self.has_more = False
            return
        self.items = [*self.items, *jobs_page.jobs]
        self.page = page
        if jobs_page.total_jobs:
            self.total_count = jobs_page.total_jobs
        self.has_more = self._more_after(jobs_page)

    def fail_load_more(self, filters: FilterSet, page: int, exc: BaseException) -> None:
        # No user-visible error: stop offering more and keep what is shown.
        logging_bridge.error({
            "component": "job_search.fetcher",
            "op": "load_more",
            "page": page,
            "filters": filters.as_dict(),
            "error": repr(exc),
        })
        self.loading_more = False
        self.has_more = False

    def abort_load_more(self) -> None:
        """Forget an in-flight load_more whose response will be discarded."""
        self.loading_more = False

    def _more_after(self, jobs_page: JobsPage) -> bool:
        return bool(jobs_page.has_more) and len(jobs_page.jobs) >= self.page_size
