# portal/cli.py
"""
Command-line entrypoints for the job portal.

Subcommands
-----------
search [--keyword K] [--location P] [--facet name=value ...] [--sort S] [--pages N]
    - Runs a job search session; --pages > 1 loads further pages the way
      scrolling to the end of the list would
    - Prints the result table, the mirrored URL and a count summary

job SLUG
    - Prints one job with its related jobs

articles [--limit N] / article SLUG
    - Lists recent career articles / prints one article with related ones

filters
    - Prints the taxonomy (provinces, cities and facet vocabularies)

bookmark JOB_ID / bookmarks
    - Toggles a bookmark / lists bookmarked job ids

validate-config
    - Loads/validates config and returns nonzero on error
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
import time
from collections.abc import Callable, Iterable
from datetime import datetime

from nexjob._shared.config import ConfigError, SiteConfig
from nexjob._shared.utils import format_long_date, format_relative_posted, html_to_text
from nexjob.bookmarks.lib import BookmarkStore, BookmarkStoreError
from nexjob.job_search import run as run_search
from nexjob.job_search.lib import FACETS
from nexjob.wordpress.lib import ContentApiError, Job, WordPressClient
from portal import config_schema as _config_schema
from portal import logging_utils as L

LOG = logging.getLogger("portal.cli")

# Errors that are the user's or the upstream's fault: one line on stderr, exit 1.
_EXPECTED_ERRORS = (ConfigError, ContentApiError, BookmarkStoreError, KeyError, ValueError)


# ----------------------------- Logging setup ---------------------------------
def _ensure_logging() -> None:
    """Initialize a reasonable logging setup if none exists yet."""
    root = logging.getLogger()
    if not root.handlers:
        level = os.getenv("LOG_LEVEL", "INFO").upper()
        logging.basicConfig(
            level=getattr(logging, level, logging.INFO),
            format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        )


# -------------------------- Utility / glue code ------------------------------
def _parse_facets(pairs: Iterable[str]) -> dict[str, list[str]]:
    """
    Parse repeated name=value strings into {facet: [values]}.
    Facet names are checked here so typos fail before any request is made.
    """
    out: dict[str, list[str]] = {}
    for raw in pairs:
        if "=" not in raw:
            raise ValueError(f"--facet item must be name=value (got {raw!r})")
        name, value = (s.strip() for s in raw.split("=", 1))
        if name not in FACETS:
            raise KeyError(f"Unknown facet {name!r}; expected one of {list(FACETS)}")
        if value:
            out.setdefault(name, []).append(value)
    return out


def _print_table(rows: Iterable[tuple[str, str]], headers: tuple[str, str] = ("ID", "DETAILS")) -> None:
    """Very simple two-column table printer."""
    rows = list(rows)
    w0 = max(len(headers[0]), *(len(r[0]) for r in rows)) if rows else len(headers[0])
    w1 = max(len(headers[1]), *(len(r[1]) for r in rows)) if rows else len(headers[1])
    sep = f"+-{'-' * w0}-+-{'-' * w1}-+"
    print(sep)
    print(f"| {headers[0].ljust(w0)} | {headers[1].ljust(w1)} |")
    print(sep)
    for c0, c1 in rows:
        print(f"| {c0.ljust(w0)} | {c1.ljust(w1)} |")
    print(sep)


def _job_row(job: Job) -> tuple[str, str]:
    parts = [job.title]
    if job.company_name:
        parts.append(job.company_name)
    if job.location:
        parts.append(job.location)
    parts.append(format_relative_posted(job.created_at))
    return (job.id, " | ".join(parts))


def _now_iso() -> str:
    return datetime.now().astimezone().isoformat()


def _load_settings(path: str | None) -> SiteConfig:
    return SiteConfig.from_mapping(_config_schema.load_config(path))


def _make_client(settings: SiteConfig) -> WordPressClient:
    return WordPressClient(settings)


def _guarded(op: str, fn: Callable[[], int]) -> int:
    """Run a subcommand body, mapping failures to exit codes."""
    try:
        return fn()
    except KeyboardInterrupt:
        return 130
    except _EXPECTED_ERRORS as e:
        LOG.debug("%s failed", op, exc_info=True)
        print(f"ERROR: {op} failed: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        LOG.exception("Unexpected error in %s: %s", op, e)
        L.write_error_log({"ts": _now_iso(), "where": f"cli.{op}", "error": repr(e)})
        print(f"ERROR: {op} failed: {e}", file=sys.stderr)
        return 1


# ------------------------------ Subcommands ----------------------------------
def cmd_validate_config(args: argparse.Namespace) -> int:
    def _body() -> int:
        cfg = _config_schema.load_config(args.config)
        _config_schema.validate(cfg)
        SiteConfig.from_mapping(cfg)
        print("OK: configuration is valid.")
        return 0

    return _guarded("validate-config", _body)


def cmd_search(args: argparse.Namespace) -> int:
    def _body() -> int:
        start_time = time.monotonic()
        settings = _load_settings(args.config)
        facets = _parse_facets(args.facet or [])
        client = _make_client(settings)
        try:
            view = run_search(
                config=settings,
                keyword=args.keyword or "",
                location=args.location or "",
                facets=facets,
                sort=args.sort,
                pages=args.pages,
                client=client,
            )
        finally:
            client.close()

        L.write_activity_log({
            "ts": _now_iso(),
            "event": "cli_search",
            "filters": view.filters.as_dict(),
            "items": len(view.items),
            "total": view.total_count,
            "duration_ms": int((time.monotonic() - start_time) * 1000),
        })

        if view.error:
            print(f"ERROR: {view.error}", file=sys.stderr)
            return 1
        print(f"URL: {view.url}")
        if view.is_empty_result:
            print("No jobs match these filters. Try removing some of them.")
            return 0
        _print_table((_job_row(j) for j in view.items), headers=("JOB", "DETAILS"))
        more = " (more available)" if view.has_more else ""
        print(f"Showing {len(view.items)} of {view.total_count} jobs{more}.")
        return 0

    return _guarded("search", _body)


def cmd_job(args: argparse.Namespace) -> int:
    def _body() -> int:
        client = _make_client(_load_settings(args.config))
        try:
            job = client.get_job_by_slug(args.slug)
            if job is None:
                print(f"Job not found: {args.slug}", file=sys.stderr)
                return 1
            related = client.get_related_jobs(job.id, job.categories, limit=4)
        finally:
            client.close()

        print(job.title)
        rows = [
            ("Company", job.company_name),
            ("Location", job.location),
            ("Type", job.job_type),
            ("Experience", job.experience),
            ("Education", job.education),
            ("Industry", job.industry),
            ("Work policy", job.work_policy),
            ("Salary", job.salary),
            ("Tags", ", ".join(job.tags)),
            ("Posted", format_relative_posted(job.created_at)),
            ("Apply", job.link),
        ]
        _print_table(((k, v) for k, v in rows if v), headers=("FIELD", "VALUE"))
        text = html_to_text(job.content)
        if text:
            print()
            print(text)
        if related:
            print()
            print("Related jobs:")
            _print_table((_job_row(j) for j in related), headers=("JOB", "DETAILS"))
        return 0

    return _guarded("job", _body)


def cmd_articles(args: argparse.Namespace) -> int:
    def _body() -> int:
        client = _make_client(_load_settings(args.config))
        try:
            articles = client.get_articles(limit=args.limit)
        finally:
            client.close()
        if not articles:
            print("No articles found.")
            return 0
        _print_table(
            ((a.slug, f"{a.title} | {format_long_date(a.date)}".rstrip(" |")) for a in articles),
            headers=("SLUG", "ARTICLE"),
        )
        return 0

    return _guarded("articles", _body)


def cmd_article(args: argparse.Namespace) -> int:
    def _body() -> int:
        client = _make_client(_load_settings(args.config))
        try:
            article = client.get_article_by_slug(args.slug)
            if article is None:
                print(f"Article not found: {args.slug}", file=sys.stderr)
                return 1
            related = client.get_related_articles(article.id, limit=3)
        finally:
            client.close()

        print(article.title)
        byline = [p for p in (article.author.name if article.author else "", format_long_date(article.date)) if p]
        if byline:
            print(" | ".join(byline))
        if article.categories:
            print(f"Categories: {', '.join(article.categories)}")
        print()
        print(html_to_text(article.content) or article.excerpt)
        if related:
            print()
            print("Related articles:")
            _print_table(((a.slug, a.title) for a in related), headers=("SLUG", "ARTICLE"))
        return 0

    return _guarded("article", _body)


def cmd_filters(args: argparse.Namespace) -> int:
    def _body() -> int:
        client = _make_client(_load_settings(args.config))
        try:
            data = client.get_filters_data()
        finally:
            client.close()
        _print_table(
            ((p, ", ".join(data.cities_for(p)) or "-") for p in data.province_options()),
            headers=("PROVINCE", "CITIES"),
        )
        _print_table(
            ((facet, ", ".join(data.values_for(facet)) or "-") for facet in FACETS if facet != "cities"),
            headers=("FACET", "VALUES"),
        )
        return 0

    return _guarded("filters", _body)


def cmd_bookmark(args: argparse.Namespace) -> int:
    def _body() -> int:
        store = BookmarkStore(_load_settings(args.config).bookmarks_path)
        state = store.toggle(args.job_id)
        print(f"{'Bookmarked' if state else 'Removed bookmark'}: {args.job_id.strip()}")
        return 0

    return _guarded("bookmark", _body)


def cmd_bookmarks(args: argparse.Namespace) -> int:
    def _body() -> int:
        store = BookmarkStore(_load_settings(args.config).bookmarks_path)
        ids = store.list_ids()
        if not ids:
            print("No bookmarks yet.")
            return 0
        for job_id in ids:
            print(job_id)
        print(f"{len(ids)} bookmarked job(s).")
        return 0

    return _guarded("bookmarks", _body)


# ------------------------------- Argparse ------------------------------------
def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="python -m portal.cli",
        description="Nexjob portal command-line tools",
    )
    p.add_argument(
        "--config",
        help="Path to config file (fallbacks to CONFIG_PATH env or built-in defaults).",
    )
    sub = p.add_subparsers(dest="cmd", required=True)

    # search
    sp = sub.add_parser("search", help="Search job listings.")
    sp.add_argument("--keyword", "-k", default="", help="Free-text keyword.")
    sp.add_argument("--location", "-l", default="", help="Province name.")
    sp.add_argument(
        "--facet",
        metavar="name=value",
        action="append",
        help=f"Facet filter, repeatable. Names: {', '.join(FACETS)}.",
    )
    sp.add_argument("--sort", default="newest", choices=("newest", "oldest", "title"))
    sp.add_argument("--pages", type=int, default=1, help="Number of pages to load (default 1).")
    sp.set_defaults(func=cmd_search)

    # job
    sp = sub.add_parser("job", help="Show one job by slug.")
    sp.add_argument("slug")
    sp.set_defaults(func=cmd_job)

    # articles
    sp = sub.add_parser("articles", help="List recent articles.")
    sp.add_argument("--limit", type=int, default=10)
    sp.set_defaults(func=cmd_articles)

    # article
    sp = sub.add_parser("article", help="Show one article by slug.")
    sp.add_argument("slug")
    sp.set_defaults(func=cmd_article)

    # filters
    sp = sub.add_parser("filters", help="Print the filter taxonomy.")
    sp.set_defaults(func=cmd_filters)

    # bookmark / bookmarks
    sp = sub.add_parser("bookmark", help="Toggle a job bookmark.")
    sp.add_argument("job_id")
    sp.set_defaults(func=cmd_bookmark)

    sp = sub.add_parser("bookmarks", help="List bookmarked job ids.")
    sp.set_defaults(func=cmd_bookmarks)

    # validate-config
    sp = sub.add_parser("validate-config", help="Verify configuration correctness.")
    sp.set_defaults(func=cmd_validate_config)

    return p


# --------------------------------- Main --------------------------------------
def main(argv: Iterable[str] | None = None) -> int:
    _ensure_logging()
    parser = _build_parser()
    args = parser.parse_args(args=list(argv) if argv is not None else None)
    return args.func(args)


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
