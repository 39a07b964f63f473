# tests/conftest.py
import math
import os
import tempfile
import threading
import time
from concurrent.futures import Executor, Future

import pytest
from freezegun import freeze_time

from nexjob._shared.config import SiteConfig
from nexjob.wordpress.lib import ContentApiError, Job, JobsPage


# ---------------------------------------------------------------------
# Live tests are opt-in: use --live or RUN_LIVE_TESTS=1
# ---------------------------------------------------------------------
def pytest_addoption(parser: pytest.Parser) -> None:
    parser.addoption(
        "--live",
        action="store_true",
        default=False,
        help="Run tests marked as 'live' (network calls or external services).",
    )


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line(
        "markers",
        "live: marks tests that perform live network calls or hit external services (skipped by default).",
    )


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    run_live = config.getoption("--live") or os.getenv("RUN_LIVE_TESTS") == "1"
    if run_live:
        return
    skip_live = pytest.mark.skip(reason="live tests disabled (use --live or RUN_LIVE_TESTS=1)")
    for item in items:
        if "live" in item.keywords:
            item.add_marker(skip_live)


# ---------------------------------------------------------------------
# Test-wide env defaults (autouse, function-scoped)
# ---------------------------------------------------------------------
@pytest.fixture(autouse=True)
def _env_defaults(monkeypatch):
    # Write logs to a throwaway dir so real logs stay clean (per test)
    tmp_logs = tempfile.mkdtemp(prefix="nexjob-pytest-logs-")
    monkeypatch.setenv("LOG_DIR", tmp_logs)
    monkeypatch.setenv("ACTIVITY_LOG_PREFIX", "activity-test")
    monkeypatch.setenv("ERROR_LOG_PREFIX", "error-test")
    monkeypatch.delenv("LOG_DISABLE", raising=False)
    # Never pick up a developer's real config
    monkeypatch.delenv("CONFIG_PATH", raising=False)
    yield


@pytest.fixture
def frozen_utc():
    with freeze_time("2025-01-01T00:00:00Z"):
        yield


# ---------------------------------------------------------------------
# Site config + fakes
# ---------------------------------------------------------------------
@pytest.fixture
def site_config(tmp_path):
    return SiteConfig(
        api_url="https://cms.example.test/wp-json/wp/v2",
        filters_api_url="https://cms.example.test/wp-json/nex/v1/filters-data",
        bookmarks_path=str(tmp_path / "bookmarks.db"),
    )


def make_job(i, **overrides):
    fields = {
        "id": str(i),
        "slug": f"job-{i}",
        "title": f"Job {i}",
        "company_name": "PT Contoh",
        "city": "Jakarta Selatan",
        "province": "DKI Jakarta",
    }
    fields.update(overrides)
    return Job(**fields)


class FakeJobsClient:
    """
    In-memory stand-in for WordPressClient.get_jobs.

    - `jobs` is a list, or a callable(filters) -> list, paged by page_size
    - `fail_calls` holds 0-based call indexes that raise ContentApiError
    - `hold(n)` returns an Event that call n waits on before answering
    """

    def __init__(self, jobs=(), fail_calls=()):
        self.jobs = jobs
        self.fail_calls = set(fail_calls)
        self.calls = []
        self.started = []
        self._holds = {}
        self._lock = threading.Lock()

    def hold(self, call_index):
        evt = threading.Event()
        self._holds[call_index] = evt
        return evt

    def get_jobs(self, filters, page, page_size):
        with self._lock:
            idx = len(self.calls)
            self.calls.append((filters, page, page_size))
            started = threading.Event()
            self.started.append(started)
        started.set()

        gate = self._holds.get(idx)
        if gate is not None:
            assert gate.wait(5), f"call {idx} was never released"
        if idx in self.fail_calls:
            raise ContentApiError(f"simulated failure on call {idx}")

        source = self.jobs(filters) if callable(self.jobs) else self.jobs
        source = list(source)
        total = len(source)
        total_pages = math.ceil(total / page_size) if total else 0
        chunk = source[(page - 1) * page_size : page * page_size]
        return JobsPage(
            jobs=chunk,
            current_page=page,
            has_more=page < total_pages,
            total_jobs=total,
            total_pages=total_pages,
        )

    def wait_started(self, call_index, timeout=5):
        """Block until call `call_index` has entered get_jobs."""
        for _ in range(int(timeout * 100)):
            with self._lock:
                if len(self.started) > call_index:
                    return True
            time.sleep(0.01)
        return False

    def close(self):
        pass


class InlineExecutor(Executor):
    """Runs submitted work immediately on the calling thread."""

    def submit(self, fn, /, *args, **kwargs):
        fut = Future()
        try:
            fut.set_result(fn(*args, **kwargs))
        except BaseException as e:
            fut.set_exception(e)
        return fut


@pytest.fixture
def jobs_factory():
    return make_job


@pytest.fixture
def fake_client_cls():
    return FakeJobsClient


@pytest.fixture
def inline_executor():
    return InlineExecutor()
