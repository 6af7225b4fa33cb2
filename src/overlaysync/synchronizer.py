# SPDX-License-Identifier: Apache-2.0
"""Keep an image-service overlay in step with a time cursor.

One :class:`OverlaySynchronizer` drives one imagery layer. It listens to the
requested time, the time catalog, the coverage gate, the render state and the
tracked opacity, and translates each change into the smallest set of map and
service commands:

* requested time / catalog load -> resolve nearest step -> coverage gate ->
  time window on the connection
* coverage gap -> opacity 0, layer removed; back in coverage -> layer added
* render option change -> rendering rule pushed to the connection
* opacity change -> ``raster-opacity`` paint property

All dispatch is synchronous; see :mod:`overlaysync.observable`.
"""

from __future__ import annotations

import functools
import logging
from enum import Enum
from typing import Any, Callable

from overlaysync.catalog import TimeCatalog, fetch_time_steps
from overlaysync.coverage import CoverageGate
from overlaysync.errors import ErrorSink, InconsistentStateError, log_error_sink
from overlaysync.obs import log_overlay_event
from overlaysync.observable import MaybeObservable, Observable, to_observable
from overlaysync.render import RenderOptions, RenderState, encode_rendering_rule
from overlaysync.resolver import MatchResult, resolve
from overlaysync.service import (
    EsriImageService,
    ImageServiceConnection,
    ImageServiceOptions,
    MapSurface,
)
from overlaysync.settings import OverlaySettings, load_settings
from overlaysync.styles import DEFAULT_STYLES, StyleTable
from overlaysync.utils.iso8601 import ms_to_datetime

LOGGER = logging.getLogger(__name__)

OPACITY_PAINT_PROPERTY = "raster-opacity"

ConnectionFactory = Callable[
    [str, MapSurface, ImageServiceOptions, int], ImageServiceConnection
]


class SyncState(str, Enum):
    UNINITIALIZED = "uninitialized"
    ATTACHED = "attached"
    OUT_OF_COVERAGE = "out_of_coverage"


def create_image_service(
    layer_id: str, map_surface: MapSurface, options: ImageServiceOptions, tile_size: int
) -> ImageServiceConnection:
    return EsriImageService(layer_id, map_surface, options, tile_size=tile_size)


class OverlaySynchronizer:
    """Reactive controller for a single time-aware imagery overlay.

    Parameters
    ----------
    url, variable:
        Image service URL and variable name (plain values or observables).
    timestamp:
        Requested time in epoch milliseconds, owned by the caller.
    opacity:
        Tracked layer opacity; ``None`` falls back to the configured default.
    """

    def __init__(
        self,
        url: MaybeObservable[str],
        variable: MaybeObservable[str],
        timestamp: MaybeObservable[int | None],
        opacity: MaybeObservable[float | None] = None,
        *,
        styles: StyleTable = DEFAULT_STYLES,
        settings: OverlaySettings | None = None,
        catalog: TimeCatalog | None = None,
        error_sink: ErrorSink | None = None,
        connection_factory: ConnectionFactory = create_image_service,
    ) -> None:
        self.settings = settings or load_settings()
        self.layer_id = self.settings.layer_id
        self.url: Observable[str] = to_observable(url)
        self.variable: Observable[str] = to_observable(variable)
        self.timestamp: Observable[int | None] = to_observable(timestamp)
        self.opacity: Observable[float | None] = to_observable(opacity)
        self.styles = styles
        self._error_sink: ErrorSink = error_sink or log_error_sink
        self._connection_factory = connection_factory

        if catalog is None:
            fetcher = functools.partial(
                fetch_time_steps,
                timeout=self.settings.request_timeout,
                max_retries=self.settings.max_retries,
                retry_backoff=self.settings.retry_backoff,
            )
            catalog = TimeCatalog(
                self.url.value,
                self.variable.value,
                fetcher=fetcher,
                error_sink=self._error_sink,
            )
        self.catalog = catalog
        self.render_state = RenderState(self.variable.value, styles)
        self.coverage = CoverageGate()

        self.state: Observable[SyncState] = Observable(SyncState.UNINITIALIZED)
        self.match: Observable[MatchResult | None] = Observable(None)
        self.applied_opacity: Observable[float | None] = Observable(None)

        self.map: MapSurface | None = None
        self.connection: ImageServiceConnection | None = None
        self._window_start: int | None = None
        self._retargeting = False

        self._unsubscribers = [
            self.url.subscribe(self._on_url_changed),
            self.timestamp.subscribe(self._on_time_changed),
            self.catalog.loaded.subscribe(self._on_catalog_loaded),
            self.coverage.on_enter_gap.subscribe(self._on_enter_gap),
            self.coverage.on_enter_coverage.subscribe(self._on_enter_coverage),
            self.render_state.directive.subscribe(self._push_directive),
            self.variable.subscribe(self.render_state.on_variable_changed),
            self.opacity.subscribe(self._on_opacity_changed),
        ]

    # ------------------------------------------------------------------
    # Observable views

    @property
    def out_of_coverage(self) -> Observable[bool]:
        return self.coverage.out_of_coverage

    @property
    def loading(self) -> Observable[bool]:
        return self.catalog.loading

    @property
    def time_steps(self) -> Observable[tuple[int, ...]]:
        return self.catalog.steps

    @property
    def render_options(self) -> Observable[RenderOptions]:
        return self.render_state.options

    # ------------------------------------------------------------------
    # Layer helpers

    def _resolved_opacity(self, value: float | None = None) -> float:
        if value is not None:
            return value
        if self.opacity.value is not None:
            return self.opacity.value
        return self.settings.default_opacity

    def _add_layer(self) -> None:
        if self.map is None or self.map.get_layer(self.layer_id):
            return
        opacity = self._resolved_opacity()
        self.map.add_layer(
            {
                "id": self.layer_id,
                "type": "raster",
                "source": self.layer_id,
                "paint": {
                    "raster-resampling": "nearest",
                    OPACITY_PAINT_PROPERTY: opacity,
                },
            }
        )
        self.applied_opacity.set(opacity)
        log_overlay_event("layer_added", self.layer_id, opacity=opacity)

    def _remove_layer(self) -> None:
        if self.map is None or not self.map.get_layer(self.layer_id):
            return
        self.map.remove_layer(self.layer_id)
        log_overlay_event("layer_removed", self.layer_id)

    # ------------------------------------------------------------------
    # Public operations

    def attach(self, map_surface: MapSurface | None) -> None:
        """Create the service connection on ``map_surface`` and show the layer."""
        if map_surface is None:
            return
        if self.map is map_surface and self.connection is not None:
            LOGGER.debug("Overlay %s already attached to this map", self.layer_id)
            return
        if self.map is not None:
            self.detach()
        self.map = map_surface
        options = ImageServiceOptions(
            url=self.url.value,
            renderingRule=encode_rendering_rule(self.render_state.directive.value),
        )
        self.connection = self._connection_factory(
            self.layer_id, map_surface, options, self.settings.tile_size
        )
        self._window_start = None
        if self.out_of_coverage.value:
            self.state.set(SyncState.OUT_OF_COVERAGE)
        else:
            self._add_layer()
            self.state.set(SyncState.ATTACHED)
        log_overlay_event("attached", self.layer_id, url=self.url.value)
        self.recompute_time_alignment()

    def detach(self) -> None:
        """Remove the layer, then drop the connection."""
        if self.map is None:
            return
        self._remove_layer()
        if self.connection is not None:
            self.connection.remove()
        self.connection = None
        self.map = None
        self._window_start = None
        self.applied_opacity.set(None)
        self.state.set(SyncState.UNINITIALIZED)
        log_overlay_event("detached", self.layer_id)

    def dispose(self) -> None:
        """Detach and stop reacting to any observable this overlay listens to."""
        self.detach()
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []

    def recompute_time_alignment(self) -> MatchResult | None:
        """Match the requested time against the catalog and apply the result."""
        requested = self.timestamp.value
        if requested is None:
            return None
        match = resolve(self.catalog.steps.value, requested)
        self.match.set(match)
        if self.coverage.update(match.gap_minutes):
            return match
        self._apply_time_window(match.matched_step)
        return match

    def _apply_time_window(self, step: int) -> None:
        if self.connection is None:
            if self.map is None:
                LOGGER.debug("Time window for %s deferred until attach", self.layer_id)
                return
            self._error_sink(
                InconsistentStateError(
                    f"image service for {self.layer_id} is not initialized"
                )
            )
            return
        if step == self._window_start:
            return
        # End is the matched step doubled, as the service has always been queried
        self.connection.set_date(ms_to_datetime(step), ms_to_datetime(step * 2))
        self._window_start = step
        log_overlay_event("time_window", self.layer_id, start=step, end=step * 2)

    def fetch_time_steps(self) -> tuple[int, ...] | None:
        """Refresh the catalog for the current source; re-aligns on success."""
        return self.catalog.refresh(self.url.value, self.variable.value)

    async def fetch_time_steps_async(self) -> tuple[int, ...] | None:
        return await self.catalog.refresh_async(self.url.value, self.variable.value)

    def update_opacity(self, value: float | None = None) -> None:
        """Apply ``value``, else the tracked opacity, else the default."""
        if self.map is None:
            return
        if not self.map.get_layer(self.layer_id):
            LOGGER.debug("Layer %s not on map; opacity not applied", self.layer_id)
            return
        resolved = self._resolved_opacity(value)
        self.map.set_paint_property(self.layer_id, OPACITY_PAINT_PROPERTY, resolved)
        self.applied_opacity.set(resolved)

    def set_opacity(self, value: float | None) -> None:
        """Change the tracked opacity; the layer follows through its watcher."""
        self.opacity.set(value)

    def change_source(self, url: str, variable: str) -> None:
        """Point the existing connection at another service and variable."""
        if self.connection is None:
            LOGGER.debug("change_source before attach ignored for %s", self.layer_id)
            return
        if variable not in self.styles:
            raise KeyError(f"no default styling for variable: {variable}")
        # URL and rule go out together so the map never sees a mixed query
        self._retargeting = True
        try:
            self.url.set(url)
            self.variable.set(variable)
        finally:
            self._retargeting = False
        self.connection.set_query_target(url, self.render_state.directive.value)
        log_overlay_event("source_changed", self.layer_id, url=url, variable=variable)

    # ------------------------------------------------------------------
    # Subscriptions

    def _on_time_changed(self, _value: Any) -> None:
        self.recompute_time_alignment()

    def _on_catalog_loaded(self, _steps: tuple[int, ...]) -> None:
        self.recompute_time_alignment()

    def _on_enter_gap(self, gap_minutes: float) -> None:
        log_overlay_event("coverage_gap", self.layer_id, gap_minutes=gap_minutes)
        self.update_opacity(0)
        self._remove_layer()
        if self.map is not None:
            self.state.set(SyncState.OUT_OF_COVERAGE)

    def _on_enter_coverage(self, _gap_minutes: float) -> None:
        self._add_layer()
        if self.map is not None:
            self.state.set(SyncState.ATTACHED)

    def _on_opacity_changed(self, value: float | None) -> None:
        self.update_opacity(value)

    def _on_url_changed(self, url: str) -> None:
        if self.connection is not None and not self._retargeting:
            self.connection.set_query_target(url)

    def _push_directive(self, rule: dict[str, Any]) -> None:
        if self.connection is not None and not self._retargeting:
            self.connection.set_rendering_directive(rule)
