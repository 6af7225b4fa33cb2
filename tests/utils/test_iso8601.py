# SPDX-License-Identifier: Apache-2.0
from datetime import datetime, timezone

import numpy as np

from overlaysync.utils.iso8601 import (
    datetime_to_ms,
    ms_to_datetime,
    to_datetime,
    to_epoch_ms,
)


def test_ms_datetime_conversions_are_exact():
    dt = ms_to_datetime(1_721_059_200_123)
    assert dt.tzinfo is not None
    assert datetime_to_ms(dt) == 1_721_059_200_123
    # Doubled epoch values land far in the future but must still convert
    doubled = ms_to_datetime(2 * 1_721_059_200_000)
    assert datetime_to_ms(doubled) == 2 * 1_721_059_200_000
    assert datetime_to_ms(ms_to_datetime(-900_000)) == -900_000


def test_naive_datetime_is_utc():
    assert datetime_to_ms(datetime(1970, 1, 1, 0, 0, 1)) == 1000


def test_to_datetime_variants():
    assert to_datetime(None) is None
    assert to_datetime("") is None
    assert to_datetime("not a date") is None
    assert to_datetime("2024-07-15 16:00:00") == datetime(
        2024, 7, 15, 16, tzinfo=timezone.utc
    )
    assert to_datetime(np.datetime64("1970-01-01T00:00:02")) == ms_to_datetime(2000)


def test_to_epoch_ms_normalizes_catalog_values():
    assert to_epoch_ms(1_700_000_000_000) == 1_700_000_000_000
    assert to_epoch_ms(np.int64(5)) == 5
    assert to_epoch_ms(1.6) == 2
    assert to_epoch_ms("1700000000000") == 1_700_000_000_000
    assert to_epoch_ms("1970-01-01T00:00:01Z") == 1000
    assert to_epoch_ms(float("nan")) is None
    assert to_epoch_ms("inf") is None
    assert to_epoch_ms(True) is None
    assert to_epoch_ms({"a": 1}) is None
