# SPDX-License-Identifier: Apache-2.0
import pytest

from overlaysync.resolver import EMPTY_CATALOG_OFFSET_MS, MatchResult, resolve

HOUR = 3_600_000


def test_tie_resolves_to_earlier_step():
    match = resolve([0, HOUR], 1_800_000)
    assert match == MatchResult(matched_step=0, gap_minutes=30.0)


def test_empty_catalog_uses_near_miss_sentinel():
    match = resolve([], 10_000_000)
    assert match.matched_step == 9_100_000
    assert match.gap_minutes == 15
    assert EMPTY_CATALOG_OFFSET_MS == 900_000


def test_single_step_gap_in_minutes():
    match = resolve([0], 4_000_000)
    assert match.matched_step == 0
    assert match.gap_minutes == pytest.approx(66.6667, rel=1e-4)


@pytest.mark.parametrize(
    "catalog,requested,expected",
    [
        ([100, 200, 300], 260, 300),
        ([100, 200, 300], 240, 200),
        ([100, 200, 300], 50, 100),
        ([100, 200, 300], 10_000, 300),
        ([100, 200, 300], 200, 200),
        ([100, 200, 300, 400], 250, 200),
    ],
)
def test_nearest_step_minimizes_distance(catalog, requested, expected):
    match = resolve(catalog, requested)
    assert match.matched_step == expected
    assert match.matched_step in catalog
    best = min(abs(x - requested) for x in catalog)
    assert abs(match.matched_step - requested) == best


def test_large_epoch_values_keep_precision():
    t0 = 1_721_059_200_000
    catalog = [t0, t0 + HOUR, t0 + 2 * HOUR]
    match = resolve(catalog, t0 + HOUR + 1)
    assert match.matched_step == t0 + HOUR
    assert match.gap_minutes == pytest.approx(1 / 60_000)


def test_match_result_is_immutable():
    match = resolve([0], 0)
    with pytest.raises(AttributeError):
        match.matched_step = 5  # type: ignore[misc]
