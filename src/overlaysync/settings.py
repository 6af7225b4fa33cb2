# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

from pydantic import BaseModel, Field

from overlaysync.utils.env import env, env_float, env_int


class OverlaySettings(BaseModel):
    layer_id: str = Field(default="esri-source", min_length=1)
    default_opacity: float = Field(default=0.8, ge=0.0, le=1.0)
    tile_size: int = Field(default=256, gt=0)
    request_timeout: int = Field(default=60, gt=0, description="Seconds")
    max_retries: int = Field(default=3, ge=0)
    retry_backoff: float = Field(default=0.5, ge=0.0, description="Seconds")


def load_settings() -> OverlaySettings:
    """Build settings from ``OVERLAYSYNC_*`` environment variables."""
    defaults = OverlaySettings()
    return OverlaySettings(
        layer_id=env("LAYER_ID", defaults.layer_id) or defaults.layer_id,
        default_opacity=env_float("DEFAULT_OPACITY", defaults.default_opacity),
        tile_size=env_int("TILE_SIZE", defaults.tile_size),
        request_timeout=env_int("REQUEST_TIMEOUT", defaults.request_timeout),
        max_retries=env_int("MAX_RETRIES", defaults.max_retries),
        retry_backoff=env_float("RETRY_BACKOFF", defaults.retry_backoff),
    )
