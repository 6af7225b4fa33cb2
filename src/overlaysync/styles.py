# SPDX-License-Identifier: Apache-2.0
"""Default stretch ranges and color ramps per image-service variable."""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping


@dataclass(frozen=True)
class StyleTable:
    """Read-only lookup of default rendering parameters keyed by variable."""

    stretches: Mapping[str, tuple[float, float]]
    colorramps: Mapping[str, str]

    def range_for(self, variable: str) -> tuple[float, float]:
        try:
            vmin, vmax = self.stretches[variable]
        except KeyError as exc:
            raise KeyError(f"no default stretch for variable: {variable}") from exc
        return float(vmin), float(vmax)

    def colormap_for(self, variable: str) -> str:
        try:
            return self.colorramps[variable]
        except KeyError as exc:
            raise KeyError(f"no default color ramp for variable: {variable}") from exc

    def __contains__(self, variable: object) -> bool:
        return variable in self.stretches and variable in self.colorramps


def make_style_table(
    stretches: Mapping[str, tuple[float, float]], colorramps: Mapping[str, str]
) -> StyleTable:
    return StyleTable(
        stretches=MappingProxyType(dict(stretches)),
        colorramps=MappingProxyType(dict(colorramps)),
    )


# Column densities in molecules/cm^2, ozone in Dobson units
DEFAULT_STYLES = make_style_table(
    stretches={
        "NO2_Troposphere": (0.0, 1.5e16),
        "HCHO": (0.0, 1.0e16),
        "O3TOT": (200.0, 400.0),
    },
    colorramps={
        "NO2_Troposphere": "Magma",
        "HCHO": "Plasma",
        "O3TOT": "Viridis",
    },
)
