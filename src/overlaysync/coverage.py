# SPDX-License-Identifier: Apache-2.0
"""Coverage-gap policy.

A match further than :data:`MAX_GAP_MINUTES` from the requested time means the
service has no imagery worth showing for it. The gate turns the per-request
decision into edge events so the overlay is hidden or restored once per
transition rather than on every time-cursor tick.
"""

from __future__ import annotations

import logging

from overlaysync.observable import Observable, Signal

LOGGER = logging.getLogger(__name__)

MAX_GAP_MINUTES = 60


def is_out_of_coverage(gap_minutes: float) -> bool:
    return gap_minutes > MAX_GAP_MINUTES


class CoverageGate:
    def __init__(self) -> None:
        self._last_gap = 0.0
        self.out_of_coverage: Observable[bool] = Observable(False)
        self.on_enter_gap: Signal[float] = Signal()
        self.on_enter_coverage: Signal[float] = Signal()
        self.out_of_coverage.subscribe(self._on_transition)

    def update(self, gap_minutes: float) -> bool:
        """Classify ``gap_minutes``; fire transition handlers on change.

        Returns the current out-of-coverage state.
        """
        self._last_gap = gap_minutes
        out = is_out_of_coverage(gap_minutes)
        if out:
            LOGGER.warning(
                "No imagery within %d minutes of the requested time (gap %.1f min)",
                MAX_GAP_MINUTES,
                gap_minutes,
            )
        self.out_of_coverage.set(out)
        return out

    def _on_transition(self, out: bool) -> None:
        if out:
            self.on_enter_gap.emit(self._last_gap)
        else:
            self.on_enter_coverage.emit(self._last_gap)
