import pytest

from forecast_store.errors import UnrecognizedLocator
from forecast_store.router import LocatorCode, LocatorRouter, build_router

JAN_1_2024 = 1704067200000

@pytest.fixture
def router():
    return build_router()

def test_all_records(router):
    match = router.match("content://forecast_store/weather")
    assert match.code == LocatorCode.ALL_RECORDS
    assert match.date is None

def test_trailing_slash_and_missing_scheme(router):
    assert router.match("content://forecast_store/weather/").code == LocatorCode.ALL_RECORDS
    assert router.match("forecast_store/weather").code == LocatorCode.ALL_RECORDS

def test_records_for_date(router):
    match = router.match(f"content://forecast_store/weather/{JAN_1_2024}")
    assert match.code == LocatorCode.RECORDS_FOR_DATE
    assert match.date == JAN_1_2024

def test_records_for_date_in_seconds(router):
    match = router.match("content://forecast_store/weather/1704067200")
    assert match.date == JAN_1_2024

@pytest.mark.parametrize(
    "locator",
    [
        "content://forecast_store/location",
        "content://forecast_store/weather/today",
        "content://forecast_store/weather/1/2",
        "content://other_authority/weather",
        "content://forecast_store",
        "",
        None,
    ],
)
def test_unrecognized(router, locator):
    with pytest.raises(UnrecognizedLocator) as exc_info:
        router.match(locator)
    assert exc_info.value.locator == locator

def test_custom_authority():
    router = build_router("my_authority")
    assert router.match("content://my_authority/weather").code == LocatorCode.ALL_RECORDS
    with pytest.raises(UnrecognizedLocator):
        router.match("content://forecast_store/weather")

def test_duplicate_route():
    router = LocatorRouter()
    router.add_route("a", "weather", LocatorCode.ALL_RECORDS)
    with pytest.raises(ValueError, match="already registered"):
        router.add_route("a", "/weather/", LocatorCode.RECORDS_FOR_DATE)
