"""
Filter state for the job search page.

`FilterSet` is an immutable value: keyword, province, sort order and one
set of selected values per sidebar facet. `FilterStore` owns the current
FilterSet, applies user mutations, and notifies subscribers with the
(previous, current) pair whenever the value actually changes.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field, fields, replace
from enum import Enum
from typing import Any

from nexjob.wordpress.lib.models import FilterData

LOG = logging.getLogger(__name__)

# Sidebar facets, in display order. Each maps to a multi-value taxonomy.
FACETS: tuple[str, ...] = (
    "cities",
    "job_types",
    "experiences",
    "educations",
    "industries",
    "work_policies",
    "categories",
)


class SortOrder(str, Enum):
    NEWEST = "newest"
    OLDEST = "oldest"
    TITLE = "title"

    @classmethod
    def parse(cls, value: Any) -> SortOrder:
        if isinstance(value, SortOrder):
            return value
        try:
            return cls(str(value or cls.NEWEST.value).strip().lower())
        except ValueError:
            raise ValueError(f"Unknown sort order {value!r}; expected one of {[s.value for s in cls]}") from None


def _values(values: Iterable[str] | str | None) -> frozenset[str]:
    if values is None:
        return frozenset()
    if isinstance(values, str):
        values = [values]
    return frozenset(v.strip() for v in values if v and v.strip())


@dataclass(frozen=True)
class FilterSet:
    """
    Everything that constrains the result list.

    Facet fields are frozensets, so equality is structural and independent
    of selection order. Plain lists/tuples passed to the constructor are
    normalized.
    """

    keyword: str = ""
    province: str = ""
    sort: SortOrder = SortOrder.NEWEST
    cities: frozenset[str] = field(default_factory=frozenset)
    job_types: frozenset[str] = field(default_factory=frozenset)
    experiences: frozenset[str] = field(default_factory=frozenset)
    educations: frozenset[str] = field(default_factory=frozenset)
    industries: frozenset[str] = field(default_factory=frozenset)
    work_policies: frozenset[str] = field(default_factory=frozenset)
    categories: frozenset[str] = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        object.__setattr__(self, "keyword", self.keyword or "")
        object.__setattr__(self, "province", (self.province or "").strip())
        object.__setattr__(self, "sort", SortOrder.parse(self.sort))
        for name in FACETS:
            object.__setattr__(self, name, _values(getattr(self, name)))

    # ------------- facet access -------------
    def facet(self, name: str) -> frozenset[str]:
        _check_facet(name)
        return getattr(self, name)

    def with_facet(self, name: str, values: Iterable[str]) -> FilterSet:
        _check_facet(name)
        return replace(self, **{name: _values(values)})

    def is_empty(self) -> bool:
        return self == FilterSet()

    def active_count(self) -> int:
        """Number of active constraints (keyword, province and each selected facet value)."""
        n = int(bool(self.keyword.strip())) + int(bool(self.province))
        return n + sum(len(getattr(self, name)) for name in FACETS)

    def to_query_params(self) -> dict[str, Any]:
        """Flat mapping consumed by the content API client."""
        out: dict[str, Any] = {
            "search": self.keyword.strip(),
            "location": self.province,
            "sort": self.sort.value,
        }
        for name in FACETS:
            out[name] = sorted(getattr(self, name))
        return out

    def as_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, frozenset):
                value = sorted(value)
            elif isinstance(value, SortOrder):
                value = value.value
            out[f.name] = value
        return out


def _check_facet(name: str) -> None:
    if name not in FACETS:
        raise KeyError(f"Unknown facet {name!r}; expected one of {list(FACETS)}")


Subscriber = Callable[[FilterSet, FilterSet], None]


class FilterStore:
    """
    Holds the current FilterSet and applies the page's filter mutations.

    Rules:
      - cities only exist under a province: clearing the province clears them,
        and switching province keeps only cities of the new one (when the
        taxonomy is known).
      - a mutation that leaves the FilterSet unchanged notifies nobody.
      - subscribers run synchronously, in subscription order, after the new
        value is in place and while the store lock is still held, so
        concurrent mutations are seen by every subscriber in commit order.
        A subscriber may mutate the store again (the lock is reentrant).
    """

    def __init__(self, initial: FilterSet | None = None, taxonomy: FilterData | None = None) -> None:
        self._current = initial or FilterSet()
        self._taxonomy = taxonomy
        self._subscribers: list[Subscriber] = []
        self._lock = threading.RLock()

    @property
    def current(self) -> FilterSet:
        return self._current

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register `callback(previous, current)`; returns an unsubscribe callable."""
        with self._lock:
            self._subscribers.append(callback)

        def _unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return _unsubscribe

    # ------------- mutations -------------
    def set_keyword(self, keyword: str) -> bool:
        return self._apply(lambda fs: replace(fs, keyword=keyword or ""))

    def set_province(self, province: str) -> bool:
        province = (province or "").strip()
        return self._apply(lambda fs: replace(fs, province=province, cities=self._cities_under(province, fs.cities)))

    def set_facet(self, name: str, values: Iterable[str]) -> bool:
        _check_facet(name)
        return self._apply(lambda fs: fs.with_facet(name, values))

    def toggle_facet_value(self, name: str, value: str) -> bool:
        """Add `value` to facet `name`, or remove it if already selected."""
        _check_facet(name)
        value = (value or "").strip()
        if not value:
            return False

        def _toggle(fs: FilterSet) -> FilterSet:
            selected = set(fs.facet(name))
            selected.symmetric_difference_update({value})
            return fs.with_facet(name, selected)

        return self._apply(_toggle)

    def set_sort(self, sort: SortOrder | str) -> bool:
        order = SortOrder.parse(sort)
        return self._apply(lambda fs: replace(fs, sort=order))

    def clear_all(self) -> bool:
        return self._apply(lambda fs: FilterSet())

    def remove_one(self, facet: str, value: str | None = None) -> bool:
        """
        Remove a single active filter: the keyword, the province (and with it
        every city), one value of a facet, or a whole facet when `value` is None.
        """
        if facet == "keyword":
            return self.set_keyword("")
        if facet == "province":
            return self.set_province("")
        _check_facet(facet)
        if value is None:
            return self.set_facet(facet, ())
        return self._apply(lambda fs: fs.with_facet(facet, fs.facet(facet) - {value.strip()}))

    # ------------- internals -------------
    def _cities_under(self, province: str, cities: frozenset[str]) -> frozenset[str]:
        if not province:
            return frozenset()
        if self._taxonomy is None or province not in self._taxonomy.provinces:
            return cities
        allowed = set(self._taxonomy.cities_for(province))
        return frozenset(c for c in cities if c in allowed)

    def _apply(self, mutate: Callable[[FilterSet], FilterSet]) -> bool:
        with self._lock:
            previous = self._current
            current = mutate(previous)
            if current == previous:
                return False
            self._current = current
            LOG.debug("Filters changed: %s", current.as_dict())
            for callback in list(self._subscribers):
                callback(previous, current)
        return True
