from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Any

from bs4 import BeautifulSoup
from dateutil import parser as _dtparser

_MONTHS_ID = (
    "Januari",
    "Februari",
    "Maret",
    "April",
    "Mei",
    "Juni",
    "Juli",
    "Agustus",
    "September",
    "Oktober",
    "November",
    "Desember",
)


def now_iso() -> str:
    """
    UTC ISO-8601 timestamp with 'Z' suffix.
    """
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def html_to_text(value: str | None) -> str:
    """
    Strip tags and decode entities from a WordPress-rendered fragment
    ("Kerja &amp; Karir" -> "Kerja & Karir").
    """
    if not value:
        return ""
    text = BeautifulSoup(value, "html5lib").get_text(" ", strip=True)
    return " ".join(text.split())


def split_tags(tag_string: str | None) -> list[str]:
    """'Python, Django , ' -> ['Python', 'Django']"""
    if not tag_string:
        return []
    return [t.strip() for t in tag_string.split(",") if t.strip()]


def parse_datetime(value: Any) -> datetime | None:
    """
    Parse WordPress date strings. Naive values (the `date` field without an
    offset) are treated as UTC. Unparseable input yields None.
    """
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str) and value.strip():
        try:
            dt = _dtparser.isoparse(value.strip())
        except ValueError:
            return None
    else:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def format_relative_posted(posted: datetime | None, now: datetime | None = None) -> str:
    """
    Human label for a job's publish time, rounded up to the next unit:
    hours under a day, then days, weeks (under 30 days) and months.
    """
    if posted is None:
        return "Baru dipublikasikan"
    now = now or datetime.now(timezone.utc)
    if posted.tzinfo is None:
        posted = posted.replace(tzinfo=timezone.utc)
    seconds = abs((now - posted).total_seconds())
    hours = math.ceil(seconds / 3600)
    days = math.ceil(seconds / 86400)

    if hours < 24:
        return f"Dipublikasikan {hours} jam lalu"
    if days < 7:
        return f"Dipublikasikan {days} hari lalu"
    if days < 30:
        return f"Dipublikasikan {math.ceil(days / 7)} minggu lalu"
    return f"Dipublikasikan {math.ceil(days / 30)} bulan lalu"


def format_long_date(value: datetime | None) -> str:
    """Indonesian long date, e.g. '5 Januari 2025'."""
    if value is None:
        return ""
    return f"{value.day} {_MONTHS_ID[value.month - 1]} {value.year}"
