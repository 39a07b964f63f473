"""
Adapters from WordPress REST JSON to the site's models.

WordPress installs differ in where custom fields live (top level via
register_rest_field, `meta`, or `acf`), so every lookup walks those three
containers in order and takes the first non-empty value. Rendered strings
({"rendered": "..."}) are decoded to plain text unless the caller wants HTML.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from nexjob._shared.utils import html_to_text, parse_datetime, split_tags

from .models import Article, Author, FilterData, Job

PROVINCE_KEY = "nexjob_lokasi_provinsi"

# facet name -> key in the filters-data payload
TAXONOMY_KEYS: dict[str, str] = {
    "job_types": "nexjob_tipe_pekerjaan",
    "experiences": "nexjob_pengalaman",
    "educations": "nexjob_pendidikan",
    "industries": "nexjob_industri",
    "work_policies": "nexjob_kebijakan_kerja",
    "categories": "nexjob_kategori_pekerjaan",
}


# -----------------------------------------------------------------------------
# Field access
# -----------------------------------------------------------------------------
def _containers(raw: Mapping[str, Any]) -> Iterable[Mapping[str, Any]]:
    yield raw
    for key in ("meta", "acf"):
        nested = raw.get(key)
        if isinstance(nested, Mapping):
            yield nested


def _first(raw: Mapping[str, Any], *names: str) -> Any:
    for container in _containers(raw):
        for name in names:
            value = container.get(name)
            # single-valued post meta often arrives as a one-item list
            if isinstance(value, list) and len(value) == 1 and not isinstance(value[0], (dict, list)):
                value = value[0]
            if value not in (None, "", [], {}):
                return value
    return None


def rendered(value: Any, *, as_html: bool = False) -> str:
    """Unwrap {"rendered": ...} and optionally strip the markup."""
    if isinstance(value, Mapping):
        value = value.get("rendered", "")
    if value is None:
        return ""
    text = str(value)
    return text if as_html else html_to_text(text)


def _text(raw: Mapping[str, Any], *names: str) -> str:
    value = _first(raw, *names)
    if value is None:
        return ""
    if isinstance(value, list):
        return ", ".join(_names(value))
    return rendered(value)


def _names(values: Any) -> list[str]:
    """Accept 'a, b', ['a', 'b'], [{'name': 'a'}, ...] or {'a': n, ...}."""
    if values is None:
        return []
    if isinstance(values, str):
        return [html_to_text(v) for v in split_tags(values)]
    if isinstance(values, Mapping):
        return [html_to_text(str(k)) for k in values.keys()]
    out: list[str] = []
    for item in values:
        if isinstance(item, Mapping):
            name = item.get("name") or item.get("label") or item.get("value") or ""
        else:
            name = item
        name = html_to_text(str(name)) if name is not None else ""
        if name and name not in out:
            out.append(name)
    return out


# -----------------------------------------------------------------------------
# Public converters
# -----------------------------------------------------------------------------
def job_from_wp(raw: Mapping[str, Any]) -> Job:
    yoast = raw.get("yoast_head_json") if isinstance(raw.get("yoast_head_json"), Mapping) else {}
    return Job(
        id=str(raw.get("id", "")),
        slug=str(raw.get("slug") or ""),
        title=rendered(raw.get("title")),
        company_name=_text(raw, "company_name", "nexjob_nama_perusahaan", "nama_perusahaan"),
        city=_text(raw, "lokasi_kota", "nexjob_lokasi_kota"),
        province=_text(raw, "lokasi_provinsi", "nexjob_lokasi_provinsi"),
        job_type=_text(raw, "tipe_pekerjaan", "nexjob_tipe_pekerjaan"),
        experience=_text(raw, "pengalaman", "nexjob_pengalaman"),
        education=_text(raw, "pendidikan", "nexjob_pendidikan"),
        industry=_text(raw, "industry", "industri", "nexjob_industri"),
        work_policy=_text(raw, "kebijakan_kerja", "nexjob_kebijakan_kerja"),
        salary=_text(raw, "gaji", "nexjob_gaji"),
        tags=tuple(_names(_first(raw, "tag", "tags_text", "nexjob_tag"))),
        categories=tuple(_names(_first(raw, "kategori_pekerjaan", "nexjob_kategori_pekerjaan"))),
        content=rendered(raw.get("content"), as_html=True),
        link=str(_first(raw, "link_lamaran", "apply_link", "link") or ""),
        created_at=parse_datetime(_first(raw, "created_at", "date_gmt", "date")),
        seo_title=html_to_text(str(_first(raw, "seo_title") or yoast.get("title") or "")),
        seo_description=html_to_text(str(_first(raw, "seo_description") or yoast.get("description") or "")),
    )


def article_from_wp(raw: Mapping[str, Any]) -> Article:
    author = None
    info = raw.get("author_info")
    if isinstance(info, Mapping) and info.get("display_name", info.get("name")):
        author = Author(
            name=html_to_text(str(info.get("display_name") or info.get("name"))),
            slug=str(info.get("slug") or info.get("user_nicename") or ""),
            avatar=str(info.get("avatar") or info.get("avatar_url") or ""),
        )

    embedded = raw.get("_embedded") if isinstance(raw.get("_embedded"), Mapping) else {}
    featured = str(raw.get("featured_media_url") or "")
    if not featured:
        media = embedded.get("wp:featuredmedia") or []
        if media and isinstance(media[0], Mapping):
            featured = str(media[0].get("source_url") or "")

    return Article(
        id=str(raw.get("id", "")),
        slug=str(raw.get("slug") or ""),
        title=rendered(raw.get("title")),
        excerpt=rendered(raw.get("excerpt")),
        content=rendered(raw.get("content"), as_html=True),
        date=parse_datetime(raw.get("date_gmt") or raw.get("date")),
        author=author,
        categories=tuple(_names(raw.get("categories_info") or raw.get("categories"))),
        tags=tuple(_names(raw.get("tags_info") or raw.get("tags"))),
        featured_image=featured,
    )


def filter_data_from_wp(raw: Mapping[str, Any]) -> FilterData:
    """
    Normalize the filters-data payload. Province data may be
    {"Province": ["City", ...]} or [{"name": "Province", "cities": [...]}, ...].
    """
    provinces: dict[str, list[str]] = {}
    raw_provinces = raw.get(PROVINCE_KEY) or {}
    if isinstance(raw_provinces, Mapping):
        for province, cities in raw_provinces.items():
            provinces[html_to_text(str(province))] = _names(cities)
    else:
        for item in raw_provinces:
            if isinstance(item, Mapping):
                name = html_to_text(str(item.get("name") or ""))
                if name:
                    provinces[name] = _names(item.get("cities") or item.get("children") or [])
            elif item:
                provinces[html_to_text(str(item))] = []

    vocabularies = {facet: _names(raw.get(key)) for facet, key in TAXONOMY_KEYS.items()}
    return FilterData(provinces=provinces, vocabularies=vocabularies)
