from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from nexjob._shared import logging_bridge
from nexjob._shared.config import SiteConfig
from nexjob.wordpress.lib import ContentApiError, WordPressClient

from .lib import FACETS, FilterSet, MemoryHistory, SearchSession, SessionView, build_search_url


def run(
    *,
    config: SiteConfig | Mapping[str, Any],
    keyword: str = "",
    location: str = "",
    facets: Mapping[str, list[str]] | None = None,
    sort: str = "newest",
    pages: int = 1,
    client: Any = None,
    timeout: float | None = None,
) -> SessionView:
    """
    Entry point for a one-shot job search (used by the CLI).

    Runs the initial search for the given filters, then asks for up to
    `pages - 1` further pages through the same gates the scroll trigger uses.
    Stops early once the list is exhausted.

    Returns the final SessionView; a failed initial search is reported in
    `view.error`, not raised.
    """
    settings = config if isinstance(config, SiteConfig) else SiteConfig.from_mapping(config)
    selected = {name: list(values) for name, values in (facets or {}).items()}
    unknown = sorted(set(selected) - set(FACETS))
    if unknown:
        raise KeyError(f"Unknown facet(s) {unknown}; expected one of {list(FACETS)}")

    initial = FilterSet(keyword=keyword, province=location, sort=sort, **selected)
    own_client = client is None
    api = client or WordPressClient(settings)

    taxonomy = None
    if settings.filters_api_url and hasattr(api, "get_filters_data"):
        try:
            taxonomy = api.get_filters_data()
        except ContentApiError as e:
            # filters only sharpen city pruning; searching works without them
            logging_bridge.error({"component": "job_search.main", "op": "filters_data", "error": repr(e)})

    logging_bridge.activity({
        "component": "job_search.main",
        "op": "start",
        "filters": initial.as_dict(),
        "pages": pages,
    })

    history = MemoryHistory(build_search_url(initial.keyword, initial.province))
    try:
        with SearchSession.from_config(settings, api, history, initial=initial, taxonomy=taxonomy) as session:
            session.start()
            session.wait(timeout)
            for _ in range(max(0, int(pages) - 1)):
                if not session.request_more():
                    break
                session.wait(timeout)
            view = session.snapshot()
    finally:
        if own_client:
            api.close()

    logging_bridge.activity({
        "component": "job_search.main",
        "op": "done",
        "items": len(view.items),
        "total": view.total_count,
        "has_more": view.has_more,
        "error": view.error,
    })
    return view
