# tests/live/test_wordpress_live.py
from __future__ import annotations

import os

import pytest

from nexjob._shared.config import SiteConfig
from nexjob.job_search.lib import FilterSet, MemoryHistory, SearchSession
from nexjob.wordpress.lib import WordPressClient
from portal import config_schema

pytestmark = pytest.mark.live


@pytest.fixture
def live_client():
    # CONFIG_PATH is cleared by conftest; LIVE_CONFIG_PATH points at a real config if needed.
    settings = SiteConfig.from_mapping(config_schema.load_config(os.getenv("LIVE_CONFIG_PATH")))
    client = WordPressClient(settings)
    yield client
    client.close()


def test_live_first_page(live_client):
    page = live_client.get_jobs(FilterSet(), page=1, page_size=5)
    print(f"\n[live] total_jobs={page.total_jobs} total_pages={page.total_pages}")
    for job in page.jobs:
        print(f"  - {job.id} {job.title} | {job.company_name} | {job.location}")
    assert len(page.jobs) <= 5
    assert page.total_jobs >= len(page.jobs)


def test_live_filters_data(live_client):
    data = live_client.get_filters_data()
    print(f"\n[live] provinces={len(data.provinces)}")
    assert isinstance(data.provinces, dict)


def test_live_session_two_pages(live_client):
    with SearchSession(live_client, MemoryHistory(), page_size=5) as session:
        session.start()
        assert session.wait(30)
        if session.snapshot().has_more:
            assert session.request_more()
            assert session.wait(30)
        view = session.snapshot()
    assert view.error is None
    print(f"\n[live] loaded {len(view.items)} of {view.total_count}")
