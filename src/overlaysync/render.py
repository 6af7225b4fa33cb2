# SPDX-License-Identifier: Apache-2.0
"""Rendering parameters and the Esri rendering rule derived from them.

The rendering rule sent to the image service is a ``Colormap`` raster function
applied on top of a min/max ``Stretch`` of the raw variable::

    Colormap(ColorrampName=<colormap>,
             Raster=Stretch(StretchType=5, Statistics=[[min, max, 0, 0]]))

It is always rebuilt from the full current state, never patched.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, replace
from typing import Any, Optional

from pydantic import BaseModel, Field

from overlaysync.observable import Observable
from overlaysync.styles import DEFAULT_STYLES, StyleTable

LOGGER = logging.getLogger(__name__)

STRETCH_TYPE_MINMAX = 5


class RasterFunction(BaseModel):
    rasterFunction: str
    rasterFunctionArguments: dict[str, Any] = Field(default_factory=dict)
    outputPixelType: Optional[str] = None


@dataclass(frozen=True)
class RenderOptions:
    range: tuple[float, float]
    colormap: str


def rendering_rule(value_range: tuple[float, float], colormap: str) -> dict[str, Any]:
    vmin, vmax = value_range
    stretch = RasterFunction(
        rasterFunction="Stretch",
        rasterFunctionArguments={
            "StretchType": STRETCH_TYPE_MINMAX,
            "Min": 0,
            "Max": 255,
            "Statistics": [[float(vmin), float(vmax), 0, 0]],
            "DRA": False,
            "UseGamma": False,
        },
        outputPixelType="U8",
    )
    colormap_fn = RasterFunction(
        rasterFunction="Colormap",
        rasterFunctionArguments={
            "ColorrampName": colormap,
            "Raster": stretch.model_dump(exclude_none=True),
        },
    )
    return colormap_fn.model_dump(exclude_none=True)


def encode_rendering_rule(rule: dict[str, Any]) -> str:
    """Serialize ``rule`` as the compact JSON the service expects in a query."""
    return json.dumps(rule, separators=(",", ":"), sort_keys=True)


class RenderState:
    """Current range and colormap for one overlay.

    ``options`` notifies on every effective change and ``directive`` carries
    the rendering rule recomputed from it, published once per change.
    """

    def __init__(self, variable: str, styles: StyleTable = DEFAULT_STYLES) -> None:
        self._styles = styles
        self.variable = variable
        initial = self._defaults(variable)
        self.options: Observable[RenderOptions] = Observable(initial)
        self.directive: Observable[dict[str, Any]] = Observable(
            rendering_rule(initial.range, initial.colormap)
        )
        self.options.subscribe(self._publish)

    def _defaults(self, variable: str) -> RenderOptions:
        return RenderOptions(
            range=self._styles.range_for(variable),
            colormap=self._styles.colormap_for(variable),
        )

    def _publish(self, options: RenderOptions) -> None:
        self.directive.set(rendering_rule(options.range, options.colormap))

    @property
    def range(self) -> tuple[float, float]:
        return self.options.value.range

    @property
    def colormap(self) -> str:
        return self.options.value.colormap

    def set_range(self, vmin: float, vmax: float) -> None:
        if vmin > vmax:
            raise ValueError(f"range minimum {vmin} exceeds maximum {vmax}")
        LOGGER.debug("Range changed to %s", [vmin, vmax])
        self.options.set(replace(self.options.value, range=(float(vmin), float(vmax))))

    def set_colormap(self, colormap: str) -> None:
        if not colormap:
            raise ValueError("colormap must be non-empty")
        LOGGER.debug("Colormap changed to %s", colormap)
        self.options.set(replace(self.options.value, colormap=colormap))

    def on_variable_changed(self, variable: str) -> None:
        """Reset range and colormap to ``variable``'s defaults, dropping edits."""
        defaults = self._defaults(variable)
        self.variable = variable
        self.options.set(defaults)
