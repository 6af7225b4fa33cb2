# SPDX-License-Identifier: Apache-2.0
"""Logging setup and structured event payloads.

Catalog fetches log one dict per request on ``overlaysync.catalog``; overlay
commands log at debug on ``overlaysync.overlay``. URLs are passed through
:func:`redact_url` so service tokens never reach the log.
"""

from __future__ import annotations

import logging
import time
from typing import Any
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from overlaysync.utils.env import env

_CATALOG_LOG = logging.getLogger("overlaysync.catalog")
_OVERLAY_LOG = logging.getLogger("overlaysync.overlay")


_SENSITIVE_KEYS = {
    "authorization",
    "password",
    "token",
    "api_key",
    "apikey",
    "access_key",
    "secret",
    "bearer",
}

_VERBOSITY_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "quiet": logging.ERROR,
}


def configure_logging_from_env(default: str = "info") -> None:
    """Set the root log level from ``OVERLAYSYNC_VERBOSITY``.

    Only installs a basic handler when none is configured yet; host
    applications that set up logging themselves keep their handlers.
    """
    name = (env("VERBOSITY", default) or default).lower()
    level = _VERBOSITY_LEVELS.get(name, logging.INFO)
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")
    root.setLevel(level)


def redact_url(url: str) -> str:
    """Replace credential query parameters (e.g. Esri ``token``) in ``url``."""
    try:
        parts = urlsplit(url)
    except ValueError:
        return url
    if not parts.query:
        return url
    pairs = [
        (k, "[REDACTED]" if k.lower() in _SENSITIVE_KEYS else v)
        for k, v in parse_qsl(parts.query, keep_blank_values=True)
    ]
    return urlunsplit(parts._replace(query=urlencode(pairs, safe="[]{}")))


def log_catalog_fetch(
    url: str,
    variable: str,
    count: int | None,
    started_at: float,
    error: str | None = None,
) -> None:
    dur_ms = int((time.time() - started_at) * 1000)
    payload: dict[str, Any] = {
        "event": "catalog_fetch",
        "url": redact_url(url),
        "variable": variable,
        "count": count,
        "duration_ms": dur_ms,
        "error": error,
    }
    if error is None:
        _CATALOG_LOG.info("%s", payload)
    else:
        _CATALOG_LOG.warning("%s", payload)


def log_overlay_event(event: str, layer_id: str, **fields: Any) -> None:
    payload: dict[str, Any] = {"event": event, "layer_id": layer_id}
    for key, value in fields.items():
        payload[key] = redact_url(value) if key == "url" and isinstance(value, str) else value
    _OVERLAY_LOG.debug("%s", payload)
