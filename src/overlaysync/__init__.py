# SPDX-License-Identifier: Apache-2.0
"""Time-aligned image-service overlays.

``overlaysync`` keeps an Esri ImageServer overlay on a map surface in step with
a time cursor: it matches the requested time to the nearest available time
step, hides the overlay when no step is close enough, and keeps the service's
rendering rule in line with the chosen value range and colormap.
"""

from overlaysync.catalog import TimeCatalog, extract_time_steps, fetch_time_steps
from overlaysync.coverage import MAX_GAP_MINUTES, CoverageGate, is_out_of_coverage
from overlaysync.errors import (
    CatalogFetchError,
    InconsistentStateError,
    OverlaySyncError,
    log_error_sink,
)
from overlaysync.observable import Observable, Signal
from overlaysync.render import RenderOptions, RenderState, rendering_rule
from overlaysync.resolver import MatchResult, resolve
from overlaysync.service import (
    EsriImageService,
    ImageServiceConnection,
    ImageServiceOptions,
    MapSurface,
)
from overlaysync.settings import OverlaySettings, load_settings
from overlaysync.styles import DEFAULT_STYLES, StyleTable, make_style_table
from overlaysync.synchronizer import OverlaySynchronizer, SyncState

__version__ = "0.1.0"

__all__ = [
    "CatalogFetchError",
    "CoverageGate",
    "DEFAULT_STYLES",
    "EsriImageService",
    "ImageServiceConnection",
    "ImageServiceOptions",
    "InconsistentStateError",
    "MAX_GAP_MINUTES",
    "MapSurface",
    "MatchResult",
    "Observable",
    "OverlaySettings",
    "OverlaySyncError",
    "OverlaySynchronizer",
    "RenderOptions",
    "RenderState",
    "Signal",
    "StyleTable",
    "SyncState",
    "TimeCatalog",
    "extract_time_steps",
    "fetch_time_steps",
    "is_out_of_coverage",
    "load_settings",
    "log_error_sink",
    "make_style_table",
    "rendering_rule",
    "resolve",
]
