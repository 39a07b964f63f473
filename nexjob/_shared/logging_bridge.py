from __future__ import annotations

import copy
import logging
from typing import Any

# Prefer the portal's JSONL writers; default to stdlib logging.
# No prints; this module should be silent on import.
_logging_backend = None
try:
    from portal import logging_utils as _portal_logging  # type: ignore

    _logging_backend = _portal_logging
except Exception:
    _logging_backend = None

# Keys that should be redacted from structured logs
_REDACT_KEYS = {
    "password",
    "token",
    "auth_token",
    "apikey",
    "api_key",
    "secret",
    "authorization",
    "auth",
    "bearer",
}


def _redact_record(record: dict[str, Any]) -> dict[str, Any]:
    """
    Shallow-copy record and redact obvious secret-like fields at top level.
    Nested values are scrubbed again by logging_utils before they hit disk.
    """
    redacted = copy.copy(record)
    for k in list(redacted.keys()):
        lk = str(k).lower()
        if lk in _REDACT_KEYS or lk.endswith("_token") or lk.endswith("_secret"):
            redacted[k] = "***REDACTED***"
    return redacted


def activity(record: dict[str, Any]) -> None:
    """
    Write an activity record to the portal's logging utility if available.
    Falls back to stdlib logging as structured info.
    """
    payload = _redact_record(record)
    if _logging_backend and hasattr(_logging_backend, "write_activity_log"):
        try:
            _logging_backend.write_activity_log(payload)  # type: ignore[attr-defined]
            return
        except Exception:
            logging.getLogger("nexjob.activity").debug("activity log write failed", exc_info=True)
    logging.getLogger("nexjob.activity").info(payload)


def error(record: dict[str, Any]) -> None:
    """
    Write an error record to the portal's logging utility if available.
    Falls back to stdlib logging as structured error.
    """
    payload = _redact_record(record)
    if _logging_backend and hasattr(_logging_backend, "write_error_log"):
        try:
            _logging_backend.write_error_log(payload)  # type: ignore[attr-defined]
            return
        except Exception:
            logging.getLogger("nexjob.error").debug("error log write failed", exc_info=True)
    logging.getLogger("nexjob.error").error(payload)
