# tests/test_cli.py
import json
from datetime import datetime, timezone

import pytest

from nexjob.wordpress.lib import Article, Author, ContentApiError, FilterData
from portal import cli


@pytest.fixture
def config_file(tmp_path, monkeypatch):
    p = tmp_path / "config.json"
    p.write_text(
        json.dumps({
            "api_url": "https://cms.example.test/wp-json/wp/v2",
            "bookmarks_path": str(tmp_path / "bookmarks.db"),
        }),
        encoding="utf-8",
    )
    monkeypatch.setenv("CONFIG_PATH", str(p))
    return p


@pytest.fixture
def fake_client(monkeypatch, fake_client_cls, jobs_factory):
    client = fake_client_cls([jobs_factory(i, created_at=datetime(2025, 1, 1, tzinfo=timezone.utc)) for i in range(30)])
    monkeypatch.setattr(cli, "_make_client", lambda settings: client)
    return client


# ----------------------------------------------------------------------
# search
# ----------------------------------------------------------------------
def test_search_prints_table_and_url(config_file, fake_client, capsys):
    rc = cli.main([
        "search",
        "--keyword",
        "backend developer",
        "--location",
        "DKI Jakarta",
        "--facet",
        "job_types=Full Time",
        "--pages",
        "2",
    ])

    assert rc == 0
    out, _ = capsys.readouterr()
    assert "URL: /lowongan-kerja/?search=backend+developer&location=DKI+Jakarta" in out
    assert "Showing 30 of 30 jobs." in out
    assert [c[1] for c in fake_client.calls] == [1, 2]
    filters = fake_client.calls[0][0]
    assert filters.job_types == {"Full Time"}


def test_search_unknown_facet_fails_fast(config_file, fake_client, capsys):
    rc = cli.main(["search", "--facet", "salary=10jt"])
    assert rc == 1
    _, err = capsys.readouterr()
    assert "Unknown facet" in err
    assert fake_client.calls == []


def test_search_failure_returns_1(config_file, fake_client, capsys):
    fake_client.fail_calls = {0}
    rc = cli.main(["search", "--keyword", "qa"])
    assert rc == 1
    _, err = capsys.readouterr()
    assert "Gagal memuat data pekerjaan" in err


def test_search_empty_result(config_file, fake_client, capsys):
    fake_client.jobs = []
    rc = cli.main(["search"])
    assert rc == 0
    out, _ = capsys.readouterr()
    assert "No jobs match these filters" in out


# ----------------------------------------------------------------------
# detail / articles / filters
# ----------------------------------------------------------------------
def test_job_detail_with_related(config_file, fake_client, jobs_factory, capsys):
    job = jobs_factory(5, title="QA Engineer", content="<p>Test things</p>", categories=("IT",))
    fake_client.get_job_by_slug = lambda slug: job if slug == "qa" else None
    fake_client.get_related_jobs = lambda job_id, categories, limit=4: [jobs_factory(6)]

    assert cli.main(["job", "qa"]) == 0
    out, _ = capsys.readouterr()
    assert "QA Engineer" in out
    assert "Test things" in out
    assert "Related jobs:" in out

    assert cli.main(["job", "missing"]) == 1


def test_articles_and_article(config_file, fake_client, capsys):
    article = Article(
        id="3",
        slug="tips-cv",
        title="Tips CV",
        content="<p>Isi artikel</p>",
        date=datetime(2025, 1, 5, tzinfo=timezone.utc),
        author=Author(name="Rina"),
    )
    fake_client.get_articles = lambda limit=10: [article]
    fake_client.get_article_by_slug = lambda slug: article
    fake_client.get_related_articles = lambda article_id, limit=3: []

    assert cli.main(["articles", "--limit", "1"]) == 0
    out, _ = capsys.readouterr()
    assert "tips-cv" in out and "5 Januari 2025" in out

    assert cli.main(["article", "tips-cv"]) == 0
    out, _ = capsys.readouterr()
    assert "Rina | 5 Januari 2025" in out
    assert "Isi artikel" in out


def test_filters_command_and_api_error(config_file, fake_client, capsys):
    fake_client.get_filters_data = lambda: FilterData(
        provinces={"Bali": ["Denpasar"]}, vocabularies={"job_types": ["Full Time"]}
    )
    assert cli.main(["filters"]) == 0
    out, _ = capsys.readouterr()
    assert "Denpasar" in out and "Full Time" in out

    def boom():
        raise ContentApiError("get_filters_data failed: 503")

    fake_client.get_filters_data = boom
    assert cli.main(["filters"]) == 1
    _, err = capsys.readouterr()
    assert "ERROR: filters failed" in err


# ----------------------------------------------------------------------
# bookmarks / config
# ----------------------------------------------------------------------
def test_bookmark_toggle_and_list(config_file, capsys):
    assert cli.main(["bookmark", "42"]) == 0
    assert cli.main(["bookmarks"]) == 0
    out, _ = capsys.readouterr()
    assert "Bookmarked: 42" in out
    assert "1 bookmarked job(s)." in out

    assert cli.main(["bookmark", "42"]) == 0
    assert cli.main(["bookmarks"]) == 0
    out, _ = capsys.readouterr()
    assert "Removed bookmark: 42" in out
    assert "No bookmarks yet." in out


def test_validate_config(config_file, tmp_path, capsys):
    assert cli.main(["validate-config"]) == 0
    assert "OK" in capsys.readouterr().out

    bad = tmp_path / "bad.json"
    bad.write_text(json.dumps({"api_url": "nope"}), encoding="utf-8")
    assert cli.main(["--config", str(bad), "validate-config"]) == 1
    captured = capsys.readouterr()
    assert "OK" not in captured.out
    assert "absolute http" in captured.err
