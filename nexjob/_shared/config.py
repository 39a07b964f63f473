from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any


# WordPress REST caps per_page at 100; a larger page size would end pagination early.
MAX_PAGE_SIZE = 100


# -----------------------------
# Exceptions
# -----------------------------
class ConfigError(ValueError):
    """Raised when a mapping cannot form a valid SiteConfig."""


# -----------------------------
# Models
# -----------------------------
@dataclass(frozen=True)
class SiteConfig:
    """
    Explicit site settings handed to the content API client, the search
    session and the bookmark store at startup. Nothing reads these from
    module globals.

    Build it with `SiteConfig.from_mapping(portal.config_schema.load_config())`
    or directly in tests.
    """

    api_url: str
    filters_api_url: str = ""
    site_url: str = "https://nexjob.tech"
    jobs_path: str = "lowongan-kerja"
    articles_path: str = "posts"
    auth_token: str = field(default="", repr=False)
    page_size: int = 24
    timeout_sec: float = 15.0
    user_agent: str = "Nexjob/0.1 (+https://nexjob.tech)"
    bookmarks_path: str = "./local/state/bookmarks.db"
    scroll_threshold: float = 0.8
    scroll_root_margin: int = 200

    # ------------- convenience -------------
    @property
    def jobs_url(self) -> str:
        return f"{self.api_url.rstrip('/')}/{self.jobs_path.strip('/')}"

    @property
    def articles_url(self) -> str:
        return f"{self.api_url.rstrip('/')}/{self.articles_path.strip('/')}"

    # ------------- constructors -------------
    @classmethod
    def from_mapping(cls, cfg: Mapping[str, Any] | None) -> SiteConfig:
        """
        Build SiteConfig from a loaded config dict with validation.
        Unknown keys are ignored; missing keys take the dataclass defaults.
        """
        kw = dict(cfg or {})

        api_url = str(kw.get("api_url") or "").strip().rstrip("/")
        if not api_url:
            raise ConfigError("Missing 'api_url' (WordPress REST base, e.g. https://cms.example/wp-json/wp/v2).")

        settings = cls(
            api_url=api_url,
            filters_api_url=str(kw.get("filters_api_url") or "").strip(),
            site_url=str(kw.get("site_url") or cls.site_url).strip().rstrip("/"),
            jobs_path=str(kw.get("jobs_path") or cls.jobs_path).strip("/"),
            articles_path=str(kw.get("articles_path") or cls.articles_path).strip("/"),
            auth_token=str(kw.get("auth_token") or ""),
            page_size=int(_pick(kw, "page_size", cls.page_size)),
            timeout_sec=float(_pick(kw, "timeout_sec", cls.timeout_sec)),
            user_agent=str(kw.get("user_agent") or cls.user_agent),
            bookmarks_path=str(kw.get("bookmarks_path") or cls.bookmarks_path),
            scroll_threshold=float(_pick(kw, "scroll_threshold", cls.scroll_threshold)),
            scroll_root_margin=int(_pick(kw, "scroll_root_margin", cls.scroll_root_margin)),
        )
        _validate_settings(settings)
        return settings


# -----------------------------
# Helpers
# -----------------------------
def _pick(kw: Mapping[str, Any], key: str, default: Any) -> Any:
    value = kw.get(key)
    return default if value is None or value == "" else value


def _validate_settings(s: SiteConfig) -> None:
    if not 1 <= s.page_size <= MAX_PAGE_SIZE:
        raise ConfigError(f"'page_size' must be within 1..{MAX_PAGE_SIZE} (got {s.page_size}).")
    if s.timeout_sec <= 0:
        raise ConfigError("'timeout_sec' must be > 0.")
    if not 0.0 < s.scroll_threshold <= 1.0:
        raise ConfigError("'scroll_threshold' must be within (0, 1].")
    if s.scroll_root_margin < 0:
        raise ConfigError("'scroll_root_margin' must be >= 0.")
    if not s.bookmarks_path.strip():
        raise ConfigError("'bookmarks_path' cannot be empty.")
