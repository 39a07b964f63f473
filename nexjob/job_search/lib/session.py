"""
Search session: the job search page as an object.

Wires the filter store, the URL synchronizer, the result fetcher and the
incremental load trigger together, and runs every fetch on an executor so
the caller's thread never blocks on the network.

Concurrency rules:
  - all fetcher state is read and written under one lock;
  - each request remembers the FilterSet (and search generation) it was
    issued for; a response whose snapshot is no longer current is dropped;
  - a filter change starts a new search for the store's current value,
    which makes any in-flight load_more stale;
  - load_more re-checks the fetcher gates under the session lock before
    anything is submitted;
  - the trigger stays PENDING until its load_more returns, so at most one
    load_more is in flight per session.
"""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import Executor, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from typing import Any

from nexjob._shared import logging_bridge
from nexjob._shared.config import SiteConfig
from nexjob.wordpress.lib.models import FilterData, Job

from .fetcher import DEFAULT_PAGE_SIZE, JobsClient, ResultFetcher
from .filters import FilterSet, FilterStore
from .sync import JOBS_BASE_PATH, History, QuerySynchronizer
from .trigger import DEFAULT_ROOT_MARGIN, DEFAULT_THRESHOLD, IncrementalLoadTrigger, ScrollObservation, TriggerState

LOG = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionView:
    """Read-only snapshot for presenters."""

    filters: FilterSet
    url: str
    items: tuple[Job, ...]
    page: int
    total_count: int
    has_more: bool
    searching: bool
    loading_more: bool
    error: str | None
    is_empty_result: bool
    trigger_state: TriggerState


class SearchSession:
    def __init__(
        self,
        client: JobsClient,
        history: History,
        page_size: int = DEFAULT_PAGE_SIZE,
        executor: Executor | None = None,
        threshold: float = DEFAULT_THRESHOLD,
        root_margin: float = DEFAULT_ROOT_MARGIN,
        initial: FilterSet | None = None,
        *,
        taxonomy: FilterData | None = None,
        base_path: str = JOBS_BASE_PATH,
    ) -> None:
        self._lock = threading.RLock()
        self.history = history
        self.fetcher = ResultFetcher(client, page_size=page_size)
        self.filters = FilterStore(initial, taxonomy)
        self.synchronizer = QuerySynchronizer(history, self._start_search, base_path)
        self.trigger = IncrementalLoadTrigger(
            self._start_load_more,
            threshold,
            root_margin,
            has_more=lambda: self.fetcher.has_more,
            searching=lambda: self.fetcher.searching,
        )
        self.filters.subscribe(self.synchronizer.sync)

        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(max_workers=2, thread_name_prefix="job-search")
        self._generation = 0
        self._pending: set[Future] = set()

    @classmethod
    def from_config(
        cls,
        config: SiteConfig,
        client: JobsClient,
        history: History,
        **kwargs: Any,
    ) -> SearchSession:
        kwargs.setdefault("page_size", config.page_size)
        kwargs.setdefault("threshold", config.scroll_threshold)
        kwargs.setdefault("root_margin", config.scroll_root_margin)
        return cls(client, history, **kwargs)

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------
    def start(self) -> Future:
        """Initial search for the seeded filters."""
        return self._start_search(self.filters.current)

    def retry(self) -> Future:
        """Run the page-1 search again for the current filters."""
        return self._start_search(self.filters.current)

    def on_scroll(self, observation: ScrollObservation) -> bool:
        return self.trigger.observe(observation)

    def request_more(self) -> bool:
        """Ask for the next page without geometry (same gates as on_scroll)."""
        return self.trigger.request()

    def reset_filters(self) -> bool:
        return self.filters.clear_all()

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------
    def snapshot(self) -> SessionView:
        with self._lock:
            f = self.fetcher
            return SessionView(
                filters=self.filters.current,
                url=self.history.current(),
                items=tuple(f.items),
                page=f.page,
                total_count=f.total_count,
                has_more=f.has_more,
                searching=f.searching,
                loading_more=f.loading_more,
                error=f.error,
                is_empty_result=f.is_empty_result,
                trigger_state=self.trigger.state,
            )

    def wait(self, timeout: float | None = None) -> bool:
        """Block until every submitted fetch finished. Returns False on timeout."""
        while True:
            with self._lock:
                pending = set(self._pending)
            if not pending:
                return True
            _done, not_done = wait(pending, timeout=timeout)
            if not_done:
                return False

    def close(self) -> None:
        if self._owns_executor:
            self._executor.shutdown(wait=True)

    def __enter__(self) -> SearchSession:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Fetch orchestration
    # ------------------------------------------------------------------
    def _start_search(self, _changed: FilterSet | None = None) -> Future:
        # Always search the committed value; the generation and the snapshot
        # are taken together so the newest search is never stale.
        with self._lock:
            filters = self.filters.current
            self._generation += 1
            generation = self._generation
            self.fetcher.begin_search()
            fut = self._executor.submit(self._run_search, filters, generation)
            self._track(fut)
        return fut

    def _start_load_more(self) -> Future | bool:
        with self._lock:
            f = self.fetcher
            # The trigger checked these without our lock; a search may have begun since.
            if f.searching or f.loading_more or not f.has_more:
                LOG.debug("Load more skipped (searching=%s has_more=%s)", f.searching, f.has_more)
                return False
            filters = self.filters.current
            generation = self._generation
            page = self.fetcher.begin_load_more()
            try:
                fut = self._executor.submit(self._run_load_more, filters, generation, page)
            except Exception:
                self.fetcher.abort_load_more()
                raise
            self._track(fut)
        return fut

    def _run_search(self, filters: FilterSet, generation: int) -> bool:
        t0 = time.perf_counter_ns()
        try:
            jobs_page = self.fetcher.fetch_page(filters, 1)
        except Exception as e:
            with self._lock:
                if self._is_stale(filters, generation):
                    self._log_discard("search", filters, generation)
                    return False
                self.fetcher.fail_search(filters, e)
            return True

        with self._lock:
            if self._is_stale(filters, generation):
                self._log_discard("search", filters, generation)
                return False
            self.fetcher.apply_search(jobs_page)
            total, has_more = self.fetcher.total_count, self.fetcher.has_more

        logging_bridge.activity({
            "component": "job_search.session",
            "op": "search",
            "filters": filters.as_dict(),
            "total": total,
            "has_more": has_more,
            "elapsed_us": (time.perf_counter_ns() - t0) // 1000,
        })
        return True

    def _run_load_more(self, filters: FilterSet, generation: int, page: int) -> bool:
        try:
            try:
                jobs_page = self.fetcher.fetch_page(filters, page)
            except Exception as e:
                with self._lock:
                    if self._is_stale(filters, generation):
                        self._log_discard("load_more", filters, generation)
                        return False
                    self.fetcher.fail_load_more(filters, page, e)
                return True

            with self._lock:
                if self._is_stale(filters, generation):
                    self._log_discard("load_more", filters, generation)
                    return False
                self.fetcher.apply_load_more(jobs_page, page)
            return True
        finally:
            self.trigger.complete()

    def _is_stale(self, filters: FilterSet, generation: int) -> bool:
        return generation != self._generation or filters != self.filters.current

    def _track(self, fut: Future) -> None:
        self._pending.add(fut)
        fut.add_done_callback(self._untrack)

    def _untrack(self, fut: Future) -> None:
        with self._lock:
            self._pending.discard(fut)

    def _log_discard(self, op: str, filters: FilterSet, generation: int) -> None:
        LOG.debug("Discarding stale %s response (generation %d, current %d)", op, generation, self._generation)
        logging_bridge.activity({
            "component": "job_search.session",
            "op": "discard_stale",
            "kind": op,
            "filters": filters.as_dict(),
        })
