# tests/test_query_sync.py
from nexjob.job_search.lib.filters import FilterSet
from nexjob.job_search.lib.sync import (
    MemoryHistory,
    QuerySynchronizer,
    build_category_url,
    build_search_url,
    parse_search_params,
)


# ----------------------------------------------------------------------
# URL helpers
# ----------------------------------------------------------------------
def test_build_search_url_primary_filters_only():
    assert build_search_url("backend developer", "DKI Jakarta") == (
        "/lowongan-kerja/?search=backend+developer&location=DKI+Jakarta"
    )
    assert build_search_url("", "Bali") == "/lowongan-kerja/?location=Bali"
    assert build_search_url("  ", "") == "/lowongan-kerja/"


def test_build_category_url_encodes_spaces():
    assert build_category_url("Teknologi Informasi") == "/lowongan-kerja/?category=Teknologi%20Informasi"


def test_parse_search_params_seeds_filters():
    fs = parse_search_params("/lowongan-kerja/?search=backend+developer&location=DKI%20Jakarta&category=IT")
    assert fs.keyword == "backend developer"
    assert fs.province == "DKI Jakarta"
    assert fs.categories == {"IT"}


def test_parse_search_params_empty():
    assert parse_search_params("") == FilterSet()
    assert parse_search_params("?foo=bar") == FilterSet()


# ----------------------------------------------------------------------
# Synchronizer
# ----------------------------------------------------------------------
def test_sync_replaces_history_and_triggers_search():
    history = MemoryHistory()
    searched = []
    sync = QuerySynchronizer(history, searched.append)

    current = FilterSet(keyword="backend developer", province="DKI Jakarta")
    assert sync.sync(FilterSet(), current) is True

    assert history.entries == ["/lowongan-kerja/?search=backend+developer&location=DKI+Jakarta"]
    assert searched == [current]


def test_sync_equal_filters_is_noop():
    history = MemoryHistory("/lowongan-kerja/?search=qa")
    searched = []
    sync = QuerySynchronizer(history, searched.append)

    fs = FilterSet(keyword="qa", job_types=["A", "B"])
    assert sync.sync(fs, FilterSet(keyword="qa", job_types=["B", "A"])) is False
    assert searched == []
    assert history.entries == ["/lowongan-kerja/?search=qa"]


def test_facet_change_searches_but_url_keeps_primary_filters():
    history = MemoryHistory()
    searched = []
    sync = QuerySynchronizer(history, searched.append)

    before = FilterSet(keyword="qa")
    after = FilterSet(keyword="qa", job_types={"Full Time"})
    sync.sync(before, after)

    assert history.current() == "/lowongan-kerja/?search=qa"
    assert len(history.entries) == 1
    assert searched == [after]


def test_clearing_filters_goes_back_to_bare_path():
    history = MemoryHistory("/lowongan-kerja/?search=qa")
    sync = QuerySynchronizer(history, lambda fs: None)
    sync.sync(FilterSet(keyword="qa"), FilterSet())
    assert history.entries == ["/lowongan-kerja/"]
