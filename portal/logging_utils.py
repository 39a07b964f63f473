# portal/logging_utils.py
"""
JSONL writers behind nexjob._shared.logging_bridge.

One file per kind and day: <LOG_DIR>/<prefix>-YYYY-MM-DD.jsonl. Environment
is read on every write so tests (and long-running shells) can redirect:

  LOG_DIR                 base directory (default ./local/logs)
  ACTIVITY_LOG_PREFIX     search/fetch activity (default "activity")
  ERROR_LOG_PREFIX        failures (default "error")
  ACTIVITY_LOG_MAX_BYTES  size-based rotation; <=0 disables it
  LOG_DISABLE             "1" turns every write into a no-op
"""

from __future__ import annotations

import contextlib
import datetime as _dt
import json
import os
import socket
from collections.abc import Iterable
from typing import Any

REDACTED = "***REDACTED***"

# Case-insensitive substrings; a key containing any of them is scrubbed.
_SECRET_KEYS = ("password", "token", "apikey", "api_key", "secret", "authorization", "cookie")

_META = {"host": socket.gethostname(), "pid": os.getpid()}


def write_activity_log(record: dict[str, Any]) -> None:
    """
    Append one activity record (search issued, page applied, stale response dropped...).

    The record is copied and scrubbed before it is written; the caller's
    dict is never touched. I/O errors propagate.
    """
    _write("ACTIVITY_LOG_PREFIX", "activity", record)


def write_error_log(record: dict[str, Any]) -> None:
    """Append one error record next to the activity log."""
    _write("ERROR_LOG_PREFIX", "error", record)


# ---- Internals ---------------------------------------------------------------


def _write(prefix_var: str, default_prefix: str, record: dict[str, Any]) -> None:
    if os.getenv("LOG_DISABLE", "").strip() == "1":
        return
    day = _dt.date.today().isoformat()
    path = os.path.join(os.getenv("LOG_DIR", "./local/logs"), f"{os.getenv(prefix_var, default_prefix)}-{day}.jsonl")

    payload = dict(_scrub(record, _SECRET_KEYS))
    payload["_meta"] = {**(record.get("_meta") if isinstance(record.get("_meta"), dict) else {}), **_META}
    # serialize before touching the file; datetimes, enums and the like become str()
    line = (json.dumps(payload, ensure_ascii=False, separators=(",", ":"), default=str) + "\n").encode("utf-8")

    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    _rotate(path)
    try:
        _append(path, line)
    except OSError:
        # one retry, e.g. the directory was removed under us
        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        _append(path, line)


def _append(path: str, line: bytes) -> None:
    # O_APPEND keeps concurrent single-line writes whole on POSIX
    fd = os.open(path, os.O_CREAT | os.O_APPEND | os.O_WRONLY, 0o644)
    try:
        os.write(fd, line)
    finally:
        os.close(fd)


def _rotate(path: str) -> None:
    try:
        limit = int(os.getenv("ACTIVITY_LOG_MAX_BYTES", "0"))
    except ValueError:
        limit = 0
    if limit <= 0:
        return
    try:
        if os.path.getsize(path) < limit:
            return
    except FileNotFoundError:
        return
    stamp = _dt.datetime.now().strftime("%Y%m%d-%H%M%S")
    with contextlib.suppress(FileNotFoundError):
        os.replace(path, f"{path}.{stamp}")


def _scrub(value: Any, keys: Iterable[str]) -> Any:
    """Deep copy with secret-looking keys blanked and bearer credentials cut."""
    if isinstance(value, dict):
        return {
            k: REDACTED if isinstance(k, str) and any(s in k.lower() for s in keys) else _scrub(v, keys)
            for k, v in value.items()
        }
    if isinstance(value, (list, tuple)):
        return type(value)(_scrub(v, keys) for v in value)
    if isinstance(value, str) and value.lower().startswith("bearer "):
        return f"{value.split(' ', 1)[0]} {REDACTED}"
    return value
