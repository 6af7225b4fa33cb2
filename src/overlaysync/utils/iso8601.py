# SPDX-License-Identifier: Apache-2.0
"""Lightweight helpers for epoch-millisecond and ISO-8601 timestamps.

Catalog endpoints report time steps in a mix of encodings (epoch ms integers,
floats, ISO strings); these helpers normalize them to integer milliseconds.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

import numpy as np

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def ms_to_datetime(ms: int) -> datetime:
    """Return a UTC ``datetime`` for ``ms`` epoch milliseconds.

    Uses timedelta arithmetic so negative and far-future values work on every
    platform.
    """
    return _EPOCH + timedelta(milliseconds=int(ms))


def datetime_to_ms(dt: datetime) -> int:
    """Exact epoch milliseconds for ``dt`` (naive values are taken as UTC)."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return (dt - _EPOCH) // timedelta(milliseconds=1)


def to_datetime(value: Any) -> datetime | None:
    """Coerce ``value`` into a timezone-aware ``datetime`` where possible.

    Accepts ``datetime`` objects (naive assumed UTC), ISO strings with optional
    ``Z`` suffix, and ``numpy.datetime64`` values. Returns ``None`` when the
    input is empty or cannot be interpreted as a timestamp.
    """

    if value is None:
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, str):
        token = value.strip()
        if not token:
            return None
        if token.endswith("Z"):
            token = token[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(token)
        except ValueError:
            for fmt in ("%Y-%m-%d %H:%M:%S", "%Y-%m-%dT%H:%M:%S"):
                try:
                    dt = datetime.strptime(token, fmt)
                    break
                except ValueError:
                    continue
            else:
                return None
        return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)
    if isinstance(value, np.datetime64):
        ts = value.astype("datetime64[ms]").astype("int64")
        return ms_to_datetime(int(ts))
    return None


def to_epoch_ms(value: Any) -> int | None:
    """Normalize a catalog time value to integer epoch milliseconds.

    Numbers are taken as epoch milliseconds already; strings that look numeric
    are parsed as such, anything else goes through :func:`to_datetime`.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, np.integer)):
        return int(value)
    if isinstance(value, (float, np.floating)):
        if not np.isfinite(value):
            return None
        return int(round(float(value)))
    if isinstance(value, str):
        token = value.strip()
        try:
            return int(round(float(token)))
        except (ValueError, OverflowError):
            pass
    dt = to_datetime(value)
    if dt is None:
        return None
    return int(round(dt.timestamp() * 1000))
