# SPDX-License-Identifier: Apache-2.0
"""HTTP backend utilities for catalog and image-service endpoints.

Provides single-request helpers with retries plus small JSON helpers used to
pick values out of service responses.
"""

from __future__ import annotations

import json
import time
from typing import Any

RETRY_STATUS = {429, 500, 502, 503, 504}


_REQUESTS: Any | None = None


def _import_requests():  # pragma: no cover - import guard
    """Import and cache the `requests` module lazily.

    Keeps ``import overlaysync`` cheap for hosts that inject their own catalog
    fetcher and never touch the network from Python.
    """
    global _REQUESTS
    if _REQUESTS is not None:
        return _REQUESTS
    import requests as _req

    _REQUESTS = _req
    return _REQUESTS


def _parse_retry_after(value: str) -> float:
    try:
        return float(value)
    except ValueError:
        return 0.0


def request_once(
    method: str,
    url: str,
    *,
    headers: dict[str, str] | None = None,
    params: dict[str, str] | None = None,
    timeout: int = 60,
) -> tuple[int, dict[str, str], bytes]:
    requests = _import_requests()
    resp = requests.request(
        method.upper(),
        url,
        headers=headers or {},
        params=params or {},
        timeout=timeout,
    )
    status = resp.status_code
    # Flatten headers to str->str
    headers_out: dict[str, str] = {k: v for k, v in resp.headers.items()}
    content = resp.content or b""
    return status, headers_out, content


def request_with_retries(
    method: str,
    url: str,
    *,
    headers: dict[str, str] | None = None,
    params: dict[str, str] | None = None,
    timeout: int = 60,
    max_retries: int = 3,
    retry_backoff: float = 0.5,
) -> tuple[int, dict[str, str], bytes]:
    attempt = 0
    while True:
        status, resp_headers, content = request_once(
            method, url, headers=headers, params=params, timeout=timeout
        )
        if status not in RETRY_STATUS or attempt >= max_retries:
            return status, resp_headers, content
        delay = retry_backoff * (2**attempt)
        if "Retry-After" in resp_headers:
            delay = max(delay, _parse_retry_after(resp_headers["Retry-After"]))
        time.sleep(delay)
        attempt += 1


def json_loads(data: bytes) -> object:
    """Decode a JSON body, returning ``None`` when it is not valid JSON."""
    try:
        return json.loads(data.decode("utf-8"))
    except (UnicodeDecodeError, ValueError):
        return None


def get_by_path(obj: object, path: str) -> object:
    cur = obj
    for part in (path or "").split(".") if path else []:
        if isinstance(cur, dict) and part in cur:
            cur = cur[part]
        else:
            return None
    return cur
