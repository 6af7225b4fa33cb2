# SPDX-License-Identifier: Apache-2.0
"""Map-surface and image-service interfaces, plus the Esri connection.

The map surface is whatever renders layers (a MapLibre bridge, a notebook
widget, a test double); it only needs the small :class:`MapSurface` protocol.
:class:`EsriImageService` registers a raster source whose tiles come from the
ImageServer ``exportImage`` operation and keeps that source's tile URL in step
with the current time window, service URL and rendering rule.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Optional, Protocol, runtime_checkable
from urllib.parse import quote

from pydantic import BaseModel, ConfigDict

from overlaysync.obs import log_overlay_event
from overlaysync.render import encode_rendering_rule
from overlaysync.utils.iso8601 import datetime_to_ms

LOGGER = logging.getLogger(__name__)

BBOX_TOKEN = "{bbox-epsg-3857}"


@runtime_checkable
class MapSurface(Protocol):
    def add_layer(self, layer: dict[str, Any]) -> None:
        ...

    def remove_layer(self, layer_id: str) -> None:
        ...

    def get_layer(self, layer_id: str) -> Any:
        ...

    def set_paint_property(self, layer_id: str, name: str, value: Any) -> None:
        ...

    def add_source(self, source_id: str, source: dict[str, Any]) -> None:
        ...

    def remove_source(self, source_id: str) -> None:
        ...

    def set_source_tiles(self, source_id: str, tiles: list[str]) -> None:
        ...


@runtime_checkable
class ImageServiceConnection(Protocol):
    def set_date(self, start: datetime, end: datetime) -> None:
        ...

    def set_query_target(
        self, url: str, rule: dict[str, Any] | None = None
    ) -> None:
        ...

    def set_rendering_directive(self, rule: dict[str, Any]) -> None:
        ...

    def remove(self) -> None:
        ...


class ImageServiceOptions(BaseModel):
    """Query options for ``exportImage``; field names follow the REST API."""

    model_config = ConfigDict(validate_assignment=True)

    url: str
    format: str = "png"
    pixelType: str = "U8"
    size: str = "256,256"
    transparent: bool = True
    bboxSR: int = 3857
    imageSR: int = 3857
    bbox: str = BBOX_TOKEN
    interpolation: str = "RSP_NearestNeighbor"
    renderingRule: Optional[str] = None
    time: Optional[str] = None
    f: str = "image"

    def query_string(self) -> str:
        parts: list[str] = []
        for key, value in self.model_dump(exclude={"url"}, exclude_none=True).items():
            if isinstance(value, bool):
                text = "true" if value else "false"
            else:
                text = str(value)
            if key == "bbox" and text == BBOX_TOKEN:
                # The map substitutes this token per tile; it must stay verbatim
                parts.append(f"{key}={text}")
            else:
                parts.append(f"{key}={quote(text, safe=',')}")
        return "&".join(parts)


class EsriImageService:
    """Connection to an Esri ImageServer rendered as a raster map source."""

    def __init__(
        self,
        source_id: str,
        map_surface: MapSurface,
        options: ImageServiceOptions,
        *,
        tile_size: int = 256,
    ) -> None:
        self.source_id = source_id
        self.map = map_surface
        self.tile_size = tile_size
        self._options = options.model_copy(update={"size": f"{tile_size},{tile_size}"})
        self._tiles_url = self.tile_url()
        self._removed = False
        self.map.add_source(
            source_id,
            {
                "type": "raster",
                "tiles": [self._tiles_url],
                "tileSize": tile_size,
            },
        )
        log_overlay_event("source_added", source_id, url=self._options.url)

    @property
    def options(self) -> ImageServiceOptions:
        return self._options.model_copy()

    def tile_url(self) -> str:
        return f"{self._options.url.rstrip('/')}/exportImage?{self._options.query_string()}"

    def _refresh(self) -> None:
        if self._removed:
            LOGGER.debug("Ignoring update on removed source %s", self.source_id)
            return
        url = self.tile_url()
        if url == self._tiles_url:
            return
        self._tiles_url = url
        self.map.set_source_tiles(self.source_id, [url])
        log_overlay_event("source_tiles", self.source_id, url=url)

    def set_date(self, start: datetime, end: datetime) -> None:
        self._options.time = f"{datetime_to_ms(start)},{datetime_to_ms(end)}"
        self._refresh()

    def set_query_target(self, url: str, rule: dict[str, Any] | None = None) -> None:
        """Point the source at ``url``; ``rule`` lands in the same tile URL update."""
        self._options.url = url
        if rule is not None:
            self._options.renderingRule = encode_rendering_rule(rule)
        self._refresh()

    def set_rendering_directive(self, rule: dict[str, Any]) -> None:
        self._options.renderingRule = encode_rendering_rule(rule)
        self._refresh()

    def remove(self) -> None:
        if self._removed:
            return
        self._removed = True
        self.map.remove_source(self.source_id)
        log_overlay_event("source_removed", self.source_id)
