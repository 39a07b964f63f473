# portal/config_schema.py
from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlsplit

import yaml

from nexjob._shared.config import MAX_PAGE_SIZE, ConfigError

logger = logging.getLogger(__name__)


@dataclass
class _LoadResult:
    """Internal convenience container (not required by callers)."""

    cfg: dict[str, Any]
    source: str


DEFAULTS: dict[str, Any] = {
    "api_url": "https://cms.nexjob.tech/wp-json/wp/v2",
    "filters_api_url": "https://cms.nexjob.tech/wp-json/nex/v1/filters-data",
    "site_url": "https://nexjob.tech",
    "jobs_path": "lowongan-kerja",
    "articles_path": "posts",
    "page_size": 24,
    "timeout_sec": 15,
    "user_agent": "Nexjob/0.1 (+https://nexjob.tech)",
    "bookmarks_path": "./local/state/bookmarks.db",
    "scroll_threshold": 0.8,
    "scroll_root_margin": 200,
}

_URL_FIELDS = ("api_url", "filters_api_url", "site_url")
_STR_FIELDS = ("jobs_path", "articles_path", "user_agent", "bookmarks_path")
_INT_FIELDS = {"page_size": False, "timeout_sec": False, "scroll_root_margin": True}  # name -> allow_zero


def load_config(path: str | None = None) -> dict[str, Any]:
    """
    Load the site configuration.

    Resolution order:
      1) Explicit `path` argument (if provided)
      2) os.environ['CONFIG_PATH'] (if set)
      3) Internal defaults only

    `auth_token_env` names an environment variable; it is resolved into
    `auth_token` here and dropped so the variable name never travels further.

    Returns:
        dict with every key from DEFAULTS plus `auth_token` (possibly "").
    """
    resolved_path = path or os.environ.get("CONFIG_PATH")
    if not resolved_path:
        logger.info("CONFIG_PATH not provided; using default config.")
        cfg: dict[str, Any] = {}
    else:
        cfg = _read_any(resolved_path).cfg

    return _apply_defaults(cfg)


def validate(cfg: dict[str, Any]) -> None:
    """
    Validate the configuration. Raise ConfigError on any problem.
    No prints, no sys.exit().
    """
    if not isinstance(cfg, dict):
        raise ConfigError("Config must be a dict.")

    for name in _URL_FIELDS:
        value = cfg.get(name)
        if not isinstance(value, str) or not value.strip():
            raise ConfigError(f"'{name}' is required and must be a non-empty string.")
        parts = urlsplit(value.strip())
        if parts.scheme not in ("http", "https") or not parts.netloc:
            raise ConfigError(f"'{name}' must be an absolute http(s) URL (got {value!r}).")

    for name in _STR_FIELDS:
        value = cfg.get(name)
        if not isinstance(value, str) or not value.strip():
            raise ConfigError(f"'{name}' must be a non-empty string.")

    for name, allow_zero in _INT_FIELDS.items():
        _to_int(cfg.get(name), field=name, allow_zero=allow_zero)

    page_size = _to_int(cfg.get("page_size"), field="page_size", allow_zero=False)
    if page_size > MAX_PAGE_SIZE:
        raise ConfigError(f"'page_size' must be <= {MAX_PAGE_SIZE} (got {page_size}).")

    token = cfg.get("auth_token")
    if token is not None and not isinstance(token, str):
        raise ConfigError("'auth_token' must be a string if provided.")

    threshold = _to_float(cfg.get("scroll_threshold"), field="scroll_threshold")
    if not 0.0 < threshold <= 1.0:
        raise ConfigError(f"'scroll_threshold' must be within (0, 1] (got {threshold}).")


def _apply_defaults(raw: dict[str, Any]) -> dict[str, Any]:
    if not isinstance(raw, dict):
        raise ConfigError("Top-level config must be a mapping/object.")

    cfg = {**DEFAULTS, **raw}

    # ──────────────────────────────────────────────────────────────
    #  Resolve auth_token_env → auth_token AND hide the secret name
    # ──────────────────────────────────────────────────────────────
    env_key = cfg.pop("auth_token_env", None)
    if isinstance(env_key, str) and env_key.strip() and not cfg.get("auth_token"):
        cfg["auth_token"] = os.getenv(env_key.strip(), "")
    cfg.setdefault("auth_token", "")
    if cfg["auth_token"] is None:
        cfg["auth_token"] = ""

    # Normalize numbers if provided as strings (best-effort; validate() is strict)
    for name, allow_zero in _INT_FIELDS.items():
        try:
            cfg[name] = _to_int(cfg[name], field=name, allow_zero=allow_zero)
        except ConfigError:
            logger.debug("Leaving %s=%r for validate() to reject", name, cfg[name])
    try:
        cfg["scroll_threshold"] = _to_float(cfg["scroll_threshold"], field="scroll_threshold")
    except ConfigError:
        logger.debug("Leaving scroll_threshold=%r for validate() to reject", cfg["scroll_threshold"])

    for name in _URL_FIELDS:
        if isinstance(cfg.get(name), str):
            cfg[name] = cfg[name].strip().rstrip("/")
    for name in ("jobs_path", "articles_path"):
        if isinstance(cfg.get(name), str):
            cfg[name] = cfg[name].strip().strip("/")
    return cfg


def _to_int(value: Any, *, field: str, allow_zero: bool) -> int:
    if isinstance(value, bool):
        raise ConfigError(f"'{field}' must be an integer.")
    try:
        iv = int(value)
    except (TypeError, ValueError) as err:
        raise ConfigError(f"'{field}' must be an integer.") from err
    if iv < 0 or (iv == 0 and not allow_zero):
        raise ConfigError(f"'{field}' must be >= {'0' if allow_zero else '1'} (got {iv}).")
    return iv


def _to_float(value: Any, *, field: str) -> float:
    if isinstance(value, bool):
        raise ConfigError(f"'{field}' must be a number.")
    try:
        return float(value)
    except (TypeError, ValueError) as err:
        raise ConfigError(f"'{field}' must be a number.") from err


def _read_any(path: str) -> _LoadResult:
    lower = path.lower()
    try:
        with open(path, encoding="utf-8") as f:
            text = f.read()
    except FileNotFoundError as e:
        raise ConfigError(f"Config file not found: {path}") from e
    except OSError as e:
        raise ConfigError(f"Failed to read config file: {path}: {e}") from e

    if lower.endswith(".json"):
        try:
            return _LoadResult(cfg=json.loads(text), source=path)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid JSON in {path}: {e}") from e

    if lower.endswith(".yml") or lower.endswith(".yaml"):
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}: {e}") from e
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigError("Top-level YAML must be a mapping/object.")
        return _LoadResult(cfg=data, source=path)

    # Try JSON as a fallback if extension is unknown
    try:
        return _LoadResult(cfg=json.loads(text), source=path)
    except json.JSONDecodeError:
        pass

    raise ConfigError(f"Unsupported config format for {path}. Use .json or .yml/.yaml.")
