# nexjob/_shared/http_client.py
from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

LOG = logging.getLogger(__name__)


@dataclass(frozen=True)
class JsonResponse:
    """Decoded JSON body plus the bits of the response the API client needs."""

    data: Any
    status: int
    headers: Mapping[str, str]


class HttpClient:
    """Shared HTTP client with sane defaults and simple helpers."""

    def __init__(
        self,
        timeout: float = 15.0,
        user_agent: str = "Nexjob/0.1 (+https://nexjob.tech)",
        auth_token: str | None = None,
    ):
        self.timeout = float(timeout)
        self.session = requests.Session()
        self.session.headers.update({"User-Agent": user_agent, "Accept": "application/json"})
        if auth_token:
            self.session.headers["Authorization"] = f"Bearer {auth_token}"

        retry = Retry(
            total=3,
            backoff_factor=0.5,
            status_forcelist=(429, 500, 502, 503, 504),
            allowed_methods=frozenset(["GET", "HEAD"]),
            raise_on_status=False,
        )
        adapter = HTTPAdapter(max_retries=retry, pool_connections=10, pool_maxsize=20)
        self.session.mount("http://", adapter)
        self.session.mount("https://", adapter)

    # ---- convenience ----
    def get_json(
        self,
        url: str,
        *,
        params: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
        timeout: float | None = None,
        allow_status: tuple[int, ...] = (),
        **kwargs: Any,
    ) -> JsonResponse:
        """
        GET and parse JSON with clearer errors if decoding fails.

        Statuses listed in `allow_status` are returned instead of raised, so callers
        can interpret API-level error bodies (WordPress answers 400 past the last page).
        """
        resp = self.session.get(url, params=params, headers=headers, timeout=timeout or self.timeout, **kwargs)
        if resp.status_code not in allow_status:
            resp.raise_for_status()
        return JsonResponse(data=_decode_json(resp, url), status=resp.status_code, headers=resp.headers)

    def close(self) -> None:
        try:
            self.session.close()
        except Exception:
            LOG.debug("HttpClient.close() swallow", exc_info=True)


def _decode_json(resp: requests.Response, url: str) -> Any:
    # Prefer requests' decoder; fall back to manual if Content-Type is misleading.
    try:
        return resp.json()
    except ValueError as e:
        try:
            return json.loads(resp.text)
        except ValueError:
            preview = resp.text[:200].replace("\n", " ")
            raise ValueError(f"JSON decode failed for {url!r}; body starts: {preview!r}") from e
