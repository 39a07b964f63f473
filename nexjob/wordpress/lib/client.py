"""
WordPress-backed content API client.

Jobs live in a custom post type (`SiteConfig.jobs_path`), articles are
regular posts, and the taxonomy vocabularies come from a separate
filters endpoint. Pagination follows the WP REST conventions:
`page`/`per_page` query params and `X-WP-Total`/`X-WP-TotalPages` headers.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Iterable, Mapping
from typing import Any

import requests

from nexjob._shared import logging_bridge
from nexjob._shared.config import MAX_PAGE_SIZE, SiteConfig
from nexjob._shared.http_client import HttpClient, JsonResponse

from .models import Article, FilterData, Job, JobsPage
from .transform import article_from_wp, filter_data_from_wp, job_from_wp

LOG = logging.getLogger(__name__)

# facet name -> WP query parameter for the jobs endpoint
FACET_PARAMS: dict[str, str] = {
    "cities": "lokasi_kota",
    "job_types": "tipe_pekerjaan",
    "experiences": "pengalaman",
    "educations": "pendidikan",
    "industries": "industri",
    "work_policies": "kebijakan_kerja",
    "categories": "kategori_pekerjaan",
}

# sort value -> (orderby, order)
SORT_PARAMS: dict[str, tuple[str, str]] = {
    "newest": ("date", "desc"),
    "oldest": ("date", "asc"),
    "title": ("title", "asc"),
}


class ContentApiError(Exception):
    """Raised when the content API cannot be reached or answers garbage."""


class WordPressClient:
    """
    Thin, explicit client over the WP REST API.

    Construct with a SiteConfig; tests may inject any object exposing
    `get_json(url, params=..., allow_status=...) -> JsonResponse`.
    """

    def __init__(self, config: SiteConfig, http: HttpClient | None = None) -> None:
        self.config = config
        self._http = http or HttpClient(
            timeout=config.timeout_sec,
            user_agent=config.user_agent,
            auth_token=config.auth_token or None,
        )

    # ------------------------------------------------------------------
    # Jobs
    # ------------------------------------------------------------------
    def get_jobs(self, filters: Any = None, page: int = 1, page_size: int = 24) -> JobsPage:
        """
        Fetch one page of jobs for `filters` (a FilterSet or a plain mapping of
        search/location/sort/facet values).
        """
        page = max(1, int(page))
        per_page = max(1, min(int(page_size), MAX_PAGE_SIZE))
        params = self._job_query(filters)
        params.update({"page": page, "per_page": per_page})

        resp = self._get(self.config.jobs_url, params, op="get_jobs", allow_status=(400,))
        if resp.status == 400:
            # WordPress answers 400 rest_post_invalid_page_number past the last page.
            code = resp.data.get("code") if isinstance(resp.data, Mapping) else None
            if code == "rest_post_invalid_page_number":
                return JobsPage(jobs=[], current_page=page, has_more=False, total_jobs=0, total_pages=0)
            raise ContentApiError(f"get_jobs rejected by API: {code or resp.data!r}")

        jobs = [job_from_wp(item) for item in _as_list(resp.data, op="get_jobs")]
        total_jobs = _header_int(resp.headers, "X-WP-Total", default=len(jobs))
        total_pages = _header_int(resp.headers, "X-WP-TotalPages", default=page if jobs else 0)

        return JobsPage(
            jobs=jobs,
            current_page=page,
            has_more=page < total_pages,
            total_jobs=total_jobs,
            total_pages=total_pages,
        )

    def get_job_by_slug(self, slug: str) -> Job | None:
        slug = (slug or "").strip().strip("/")
        if not slug:
            return None
        resp = self._get(self.config.jobs_url, {"slug": slug}, op="get_job_by_slug")
        items = _as_list(resp.data, op="get_job_by_slug")
        return job_from_wp(items[0]) if items else None

    def get_related_jobs(self, job_id: str, categories: Iterable[str] = (), limit: int = 4) -> list[Job]:
        """Jobs sharing a category with `job_id`, never including it."""
        params: dict[str, Any] = {"per_page": max(1, min(limit + 1, MAX_PAGE_SIZE)), "exclude": job_id}
        cats = [c for c in categories if c]
        if cats:
            params[FACET_PARAMS["categories"]] = ",".join(sorted(cats))
        resp = self._get(self.config.jobs_url, params, op="get_related_jobs")
        jobs = [job_from_wp(item) for item in _as_list(resp.data, op="get_related_jobs")]
        return [j for j in jobs if j.id != str(job_id)][:limit]

    # ------------------------------------------------------------------
    # Taxonomy
    # ------------------------------------------------------------------
    def get_filters_data(self) -> FilterData:
        url = self.config.filters_api_url
        if not url:
            raise ContentApiError("filters_api_url is not configured")
        resp = self._get(url, None, op="get_filters_data")
        if not isinstance(resp.data, Mapping):
            raise ContentApiError(f"get_filters_data: expected an object, got {type(resp.data).__name__}")
        return filter_data_from_wp(resp.data)

    # ------------------------------------------------------------------
    # Articles
    # ------------------------------------------------------------------
    def get_articles(self, limit: int = 10) -> list[Article]:
        params = {"per_page": max(1, min(limit, MAX_PAGE_SIZE)), "_embed": 1}
        resp = self._get(self.config.articles_url, params, op="get_articles")
        return [article_from_wp(item) for item in _as_list(resp.data, op="get_articles")]

    def get_article_by_slug(self, slug: str) -> Article | None:
        slug = (slug or "").strip().strip("/")
        if not slug:
            return None
        resp = self._get(self.config.articles_url, {"slug": slug, "_embed": 1}, op="get_article_by_slug")
        items = _as_list(resp.data, op="get_article_by_slug")
        return article_from_wp(items[0]) if items else None

    def get_related_articles(self, article_id: str, limit: int = 3) -> list[Article]:
        params = {"per_page": max(1, min(limit, MAX_PAGE_SIZE)), "exclude": article_id, "_embed": 1}
        resp = self._get(self.config.articles_url, params, op="get_related_articles")
        articles = [article_from_wp(item) for item in _as_list(resp.data, op="get_related_articles")]
        return [a for a in articles if a.id != str(article_id)][:limit]

    def close(self) -> None:
        close = getattr(self._http, "close", None)
        if callable(close):
            close()

    # ------------------------------------------------------------------
    # internals
    # ------------------------------------------------------------------
    def _job_query(self, filters: Any) -> dict[str, Any]:
        if filters is None:
            raw: Mapping[str, Any] = {}
        elif hasattr(filters, "to_query_params"):
            raw = filters.to_query_params()
        else:
            raw = dict(filters)

        params: dict[str, Any] = {}
        keyword = str(raw.get("search") or "").strip()
        if keyword:
            params["search"] = keyword
        location = str(raw.get("location") or "").strip()
        if location:
            params["lokasi_provinsi"] = location

        orderby, order = SORT_PARAMS.get(str(raw.get("sort") or "newest"), SORT_PARAMS["newest"])
        params["orderby"] = orderby
        params["order"] = order

        for facet, param in FACET_PARAMS.items():
            values = raw.get(facet) or ()
            if isinstance(values, str):
                values = [values]
            cleaned = sorted({str(v).strip() for v in values if str(v).strip()})
            if cleaned:
                params[param] = ",".join(cleaned)
        return params

    def _get(
        self,
        url: str,
        params: Mapping[str, Any] | None,
        *,
        op: str,
        allow_status: tuple[int, ...] = (),
    ) -> JsonResponse:
        t0 = time.perf_counter_ns()
        try:
            resp = self._http.get_json(url, params=params, allow_status=allow_status)
        except (requests.RequestException, ValueError) as e:
            logging_bridge.error({
                "component": "wordpress.client",
                "op": op,
                "url": url,
                "error": repr(e),
            })
            raise ContentApiError(f"{op} failed: {e}") from e

        LOG.debug("%s %s -> %s in %dus", op, url, resp.status, (time.perf_counter_ns() - t0) // 1000)
        return resp


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------
def _as_list(data: Any, *, op: str) -> list[Mapping[str, Any]]:
    if not isinstance(data, list):
        raise ContentApiError(f"{op}: expected a JSON array, got {type(data).__name__}")
    return [item for item in data if isinstance(item, Mapping)]


def _header_int(headers: Mapping[str, str], name: str, *, default: int) -> int:
    raw = headers.get(name)
    if raw is None:
        return default
    try:
        return int(str(raw).strip())
    except ValueError:
        LOG.warning("Ignoring non-numeric %s header: %r", name, raw)
        return default
