# SPDX-License-Identifier: Apache-2.0
"""Environment variable readers with the ``OVERLAYSYNC_`` prefix.

Each helper accepts the unprefixed key (``"TILE_SIZE"``) and looks up
``OVERLAYSYNC_TILE_SIZE``. Malformed values fall back to the default rather
than raising so that a bad shell export never breaks an embedding app.
"""

from __future__ import annotations

import os

PREFIX = "OVERLAYSYNC_"


def env(key: str, default: str | None = None) -> str | None:
    value = os.environ.get(PREFIX + key)
    if value is None or value.strip() == "":
        return default
    return value.strip()


def env_int(key: str, default: int) -> int:
    value = env(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def env_float(key: str, default: float) -> float:
    value = env(key)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default
