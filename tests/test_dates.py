import pytest
from datetime import date, datetime, timedelta, timezone

import pandas as pd
import pytz

from forecast_store.dates import (
    DAY_IN_MILLIS,
    is_date_normalized,
    millis_to_datetime,
    normalize_date,
    normalized_utc_date_for_today,
    segment_to_millis,
    to_millis,
)

JAN_1_2024 = 1704067200000

def test_normalization():
    assert is_date_normalized(0)
    assert is_date_normalized(JAN_1_2024)
    assert not is_date_normalized(JAN_1_2024 + 1)
    assert normalize_date(JAN_1_2024 + 13 * 3600 * 1000) == JAN_1_2024
    assert normalize_date(JAN_1_2024 + DAY_IN_MILLIS - 1) == JAN_1_2024
    assert normalize_date(JAN_1_2024) == JAN_1_2024

def test_to_millis_accepts_common_types():
    assert to_millis(JAN_1_2024) == JAN_1_2024
    assert to_millis(datetime(2024, 1, 1, tzinfo=timezone.utc)) == JAN_1_2024
    assert to_millis(datetime(2024, 1, 1)) == JAN_1_2024
    assert to_millis(date(2024, 1, 1)) == JAN_1_2024
    assert to_millis(pd.Timestamp("2024-01-01")) == JAN_1_2024
    assert to_millis(pd.Timestamp("2024-01-01 01:00", tz="Europe/Rome")) == JAN_1_2024

    rome = pytz.timezone("Europe/Rome")
    assert to_millis(rome.localize(datetime(2024, 1, 1, 1))) == JAN_1_2024

def test_to_millis_rejects_other_types():
    with pytest.raises(TypeError):
        to_millis(True)
    with pytest.raises(TypeError):
        to_millis("2024-01-01")
    with pytest.raises(TypeError):
        to_millis(1.5)

def test_millis_to_datetime():
    assert millis_to_datetime(JAN_1_2024) == datetime(2024, 1, 1, tzinfo=timezone.utc)

def test_segment_to_millis_threshold():
    # Seconds
    assert segment_to_millis(1704067200) == JAN_1_2024
    # Milliseconds
    assert segment_to_millis(JAN_1_2024) == JAN_1_2024
    assert segment_to_millis(0) == 0

@pytest.mark.parametrize(
    "now, tz_name, expected",
    [
        (datetime(2024, 1, 1, 12, tzinfo=timezone.utc), "UTC", JAN_1_2024),
        (datetime(2024, 1, 1, 0, 0, 1, tzinfo=timezone.utc), "UTC", JAN_1_2024),
        # 23:30 UTC on Dec 31st is already Jan 1st in Rome
        (datetime(2023, 12, 31, 23, 30, tzinfo=timezone.utc), "Europe/Rome", JAN_1_2024),
        (datetime(2023, 12, 31, 23, 30, tzinfo=timezone.utc), "UTC", JAN_1_2024 - DAY_IN_MILLIS),
        # Naive datetimes are read as UTC
        (datetime(2024, 1, 1, 8), "UTC", JAN_1_2024),
    ],
)
def test_normalized_utc_date_for_today(now, tz_name, expected):
    today = normalized_utc_date_for_today(tz_name, now=now)
    assert today == expected
    assert is_date_normalized(today)

def test_normalized_utc_date_for_today_without_now():
    today = normalized_utc_date_for_today("UTC")
    expected = to_millis(datetime.now(timezone.utc).date())
    # Allow for crossing midnight between the two calls
    assert today in (expected, expected - DAY_IN_MILLIS)

def test_unknown_timezone():
    with pytest.raises(ValueError, match="Unknown timezone"):
        normalized_utc_date_for_today("Mars/Olympus_Mons")

def test_timezone_objects_are_accepted():
    now = datetime(2024, 1, 1, 12, tzinfo=timezone.utc)
    assert normalized_utc_date_for_today(pytz.timezone("Asia/Tokyo"), now=now) == JAN_1_2024
    assert normalized_utc_date_for_today(timezone(timedelta(hours=-14)), now=now) == JAN_1_2024 - DAY_IN_MILLIS
