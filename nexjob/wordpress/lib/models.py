from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True)
class Job:
    """
    A single job listing as served by the content API.
    Opaque to the search core beyond `id` (pagination unit, bookmark key).
    """

    id: str
    slug: str
    title: str
    company_name: str = ""
    city: str = ""
    province: str = ""
    job_type: str = ""
    experience: str = ""
    education: str = ""
    industry: str = ""
    work_policy: str = ""
    salary: str = ""
    tags: tuple[str, ...] = ()
    categories: tuple[str, ...] = ()
    content: str = ""  # HTML as rendered by WordPress
    link: str = ""  # external apply URL
    created_at: datetime | None = None
    seo_title: str = ""
    seo_description: str = ""

    @property
    def location(self) -> str:
        return ", ".join(p for p in (self.city, self.province) if p)


@dataclass(frozen=True)
class Author:
    name: str
    slug: str = ""
    avatar: str = ""


@dataclass(frozen=True)
class Article:
    id: str
    slug: str
    title: str
    excerpt: str = ""
    content: str = ""
    date: datetime | None = None
    author: Author | None = None
    categories: tuple[str, ...] = ()
    tags: tuple[str, ...] = ()
    featured_image: str = ""


@dataclass
class JobsPage:
    """
    One page of `get_jobs`.
    - has_more is False exactly when current_page covers the last available item.
    """

    jobs: list[Job] = field(default_factory=list)
    current_page: int = 1
    has_more: bool = False
    total_jobs: int = 0
    total_pages: int = 0


@dataclass
class FilterData:
    """
    Taxonomy vocabularies used to build filter choices.

    provinces:    province -> list of its cities (drives the city facet)
    vocabularies: facet name -> allowed values for every other facet
    """

    provinces: dict[str, list[str]] = field(default_factory=dict)
    vocabularies: dict[str, list[str]] = field(default_factory=dict)

    def province_options(self) -> list[str]:
        return list(self.provinces.keys())

    def cities_for(self, province: str) -> list[str]:
        return list(self.provinces.get(province, []))

    def values_for(self, facet: str) -> list[str]:
        if facet == "cities":
            out: list[str] = []
            for cities in self.provinces.values():
                out.extend(c for c in cities if c not in out)
            return out
        return list(self.vocabularies.get(facet, []))
