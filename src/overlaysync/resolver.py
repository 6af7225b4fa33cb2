# SPDX-License-Identifier: Apache-2.0
"""Nearest available time step for a requested instant."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import numpy as np

MS_PER_MINUTE = 60 * 1000

# With no catalog, pretend the nearest step is a near miss this far back
EMPTY_CATALOG_OFFSET_MS = 15 * MS_PER_MINUTE


@dataclass(frozen=True)
class MatchResult:
    matched_step: int
    gap_minutes: float


def resolve(catalog: Sequence[int], requested: int) -> MatchResult:
    """Return the catalog step closest to ``requested`` and the gap to it.

    ``catalog`` must be sorted ascending. Ties resolve to the earlier step.
    """
    if len(catalog) == 0:
        matched = int(requested) - EMPTY_CATALOG_OFFSET_MS
    else:
        steps = np.asarray(catalog, dtype=np.int64)
        # argmin returns the first minimal index, i.e. the earliest step
        matched = int(steps[int(np.argmin(np.abs(steps - np.int64(requested))))])
    return MatchResult(
        matched_step=matched,
        gap_minutes=abs(matched - int(requested)) / MS_PER_MINUTE,
    )
