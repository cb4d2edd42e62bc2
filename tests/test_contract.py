import pytest
from datetime import date, datetime, timezone

from forecast_store import contract
from forecast_store.dates import DAY_IN_MILLIS, SECONDS_MILLIS_THRESHOLD, normalize_date

JAN_1_2024 = 1704067200000

def test_weather_locator():
    assert contract.build_weather_locator() == "content://forecast_store/weather"
    assert contract.build_weather_locator("other") == "content://other/weather"

@pytest.mark.parametrize(
    "locator, expected",
    [
        ("content://forecast_store/weather", ("forecast_store", ("weather",))),
        ("forecast_store/weather", ("forecast_store", ("weather",))),
        ("//forecast_store/weather/", ("forecast_store", ("weather",))),
        ("content://forecast_store//weather/123", ("forecast_store", ("weather", "123"))),
        ("content://forecast_store/weather?x=1#frag", ("forecast_store", ("weather",))),
        ("content://forecast_store", ("forecast_store", ())),
    ],
)
def test_parse_locator(locator, expected):
    assert contract.parse_locator(locator) == expected

def test_parse_locator_rejects_non_strings():
    with pytest.raises(TypeError):
        contract.parse_locator(None)

def test_locator_for_date_is_normalized():
    locator = contract.build_locator_for_date(JAN_1_2024 + 5 * 3600 * 1000)
    assert locator == f"content://forecast_store/weather/{JAN_1_2024 // 1000}"
    assert contract.date_from_locator(locator) == JAN_1_2024

def test_locator_for_date_accepts_dates():
    expected = f"content://forecast_store/weather/{JAN_1_2024 // 1000}"
    assert contract.build_locator_for_date(date(2024, 1, 1)) == expected
    assert contract.build_locator_for_date(datetime(2024, 1, 1, 18, tzinfo=timezone.utc)) == expected

@pytest.mark.parametrize(
    "millis",
    [
        0,
        10 * DAY_IN_MILLIS,
        1000 * DAY_IN_MILLIS,
        JAN_1_2024,
        # Last day written as seconds and first days written as milliseconds
        normalize_date(SECONDS_MILLIS_THRESHOLD * 1000 - 1),
        normalize_date(SECONDS_MILLIS_THRESHOLD * 1000) + DAY_IN_MILLIS,
        normalize_date(SECONDS_MILLIS_THRESHOLD * 1000 * 7),
    ],
)
def test_locator_for_date_round_trip(millis):
    assert contract.date_from_locator(contract.build_locator_for_date(millis)) == millis

def test_date_from_locator_reads_milliseconds():
    assert contract.date_from_locator(f"content://forecast_store/weather/{JAN_1_2024}") == JAN_1_2024

def test_date_from_locator_reads_seconds():
    assert contract.date_from_locator("content://forecast_store/weather/1704067200") == JAN_1_2024

@pytest.mark.parametrize(
    "locator",
    [
        "content://forecast_store/weather",
        "content://forecast_store/weather/today",
        "content://forecast_store/weather/-5",
    ],
)
def test_date_from_locator_without_date(locator):
    with pytest.raises(ValueError):
        contract.date_from_locator(locator)

def test_sql_select_for_today_onwards():
    now = datetime(2024, 1, 1, 15, tzinfo=timezone.utc)
    assert contract.sql_select_for_today_onwards("UTC", now=now) == f"date >= {JAN_1_2024}"

def test_all_columns():
    assert contract.ALL_COLUMNS == (
        "date", "weather_id", "min_temp", "max_temp", "humidity", "pressure", "wind_speed", "degrees",
    )
    assert contract.COLUMN_ID not in contract.ALL_COLUMNS
