# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

from typing import Any

import pytest


class RecordingMap:
    """In-memory map surface that records every command it receives."""

    def __init__(self) -> None:
        self.layers: dict[str, dict[str, Any]] = {}
        self.sources: dict[str, dict[str, Any]] = {}
        self.calls: list[tuple[Any, ...]] = []

    def add_layer(self, layer: dict[str, Any]) -> None:
        if layer["id"] in self.layers:
            raise AssertionError(f"layer already exists: {layer['id']}")
        self.calls.append(("add_layer", layer["id"]))
        self.layers[layer["id"]] = {**layer, "paint": dict(layer.get("paint", {}))}

    def remove_layer(self, layer_id: str) -> None:
        if layer_id not in self.layers:
            raise AssertionError(f"no such layer: {layer_id}")
        self.calls.append(("remove_layer", layer_id))
        del self.layers[layer_id]

    def get_layer(self, layer_id: str) -> Any:
        return self.layers.get(layer_id)

    def set_paint_property(self, layer_id: str, name: str, value: Any) -> None:
        if layer_id not in self.layers:
            raise AssertionError(f"no such layer: {layer_id}")
        self.calls.append(("set_paint_property", layer_id, name, value))
        self.layers[layer_id]["paint"][name] = value

    def add_source(self, source_id: str, source: dict[str, Any]) -> None:
        self.calls.append(("add_source", source_id))
        self.sources[source_id] = dict(source)

    def remove_source(self, source_id: str) -> None:
        self.calls.append(("remove_source", source_id))
        self.sources.pop(source_id, None)

    def set_source_tiles(self, source_id: str, tiles: list[str]) -> None:
        self.calls.append(("set_source_tiles", source_id))
        self.sources[source_id]["tiles"] = list(tiles)

    def count(self, name: str) -> int:
        return sum(1 for call in self.calls if call[0] == name)


class RecordingService:
    """Image-service connection double capturing the commands issued to it."""

    def __init__(self, layer_id, map_surface, options, tile_size) -> None:
        self.layer_id = layer_id
        self.map = map_surface
        self.options = options
        self.tile_size = tile_size
        self.dates: list[tuple[Any, Any]] = []
        self.urls: list[str] = []
        self.rules: list[dict[str, Any]] = []
        self.removed = False

    def set_date(self, start, end) -> None:
        self.dates.append((start, end))

    def set_query_target(self, url: str, rule=None) -> None:
        self.urls.append(url)
        if rule is not None:
            self.rules.append(rule)

    def set_rendering_directive(self, rule: dict[str, Any]) -> None:
        self.rules.append(rule)

    def remove(self) -> None:
        self.removed = True


@pytest.fixture()
def recording_map() -> RecordingMap:
    return RecordingMap()


@pytest.fixture()
def make_map():
    return RecordingMap


@pytest.fixture()
def service_factory():
    """Connection factory that remembers every service it created."""
    created: list[RecordingService] = []

    def _factory(layer_id, map_surface, options, tile_size):
        svc = RecordingService(layer_id, map_surface, options, tile_size)
        created.append(svc)
        return svc

    _factory.created = created  # type: ignore[attr-defined]
    return _factory


@pytest.fixture(autouse=True)
def _clean_overlaysync_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in (
        "OVERLAYSYNC_LAYER_ID",
        "OVERLAYSYNC_DEFAULT_OPACITY",
        "OVERLAYSYNC_TILE_SIZE",
        "OVERLAYSYNC_REQUEST_TIMEOUT",
        "OVERLAYSYNC_MAX_RETRIES",
        "OVERLAYSYNC_RETRY_BACKOFF",
        "OVERLAYSYNC_VERBOSITY",
    ):
        monkeypatch.delenv(key, raising=False)
