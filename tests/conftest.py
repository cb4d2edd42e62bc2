import pytest
from datetime import datetime

import pytz

from forecast_store import contract
from forecast_store.dates import DAY_IN_MILLIS, to_millis
from forecast_store.database.db import WeatherStore
from forecast_store.notifications import ChangeNotifier
from forecast_store.provider import WeatherProvider

tz = pytz.timezone("utc")

# 2024-01-01 00:00 UTC
BASE_DATE = to_millis(datetime(2024, 1, 1, tzinfo=tz))

def make_record(day_offset: int = 0, **overrides) -> dict:
    """Shortcut for a valid record ``day_offset`` days after BASE_DATE."""
    record = {
        contract.COLUMN_DATE: BASE_DATE + day_offset * DAY_IN_MILLIS,
        contract.COLUMN_WEATHER_ID: 800 + day_offset,
        contract.COLUMN_MIN_TEMP: 5.0 + day_offset,
        contract.COLUMN_MAX_TEMP: 15.0 + day_offset,
        contract.COLUMN_HUMIDITY: 60.0,
        contract.COLUMN_PRESSURE: 1013.25,
        contract.COLUMN_WIND_SPEED: 3.5,
        contract.COLUMN_DEGREES: 180.0,
    }
    record.update(overrides)
    return record

@pytest.fixture
def store(tmp_path):
    store = WeatherStore(f"sqlite:///{tmp_path / 'weather.db'}")
    yield store
    store.close()

@pytest.fixture
def notifier():
    notifier = ChangeNotifier(max_workers=2)
    yield notifier
    notifier.close()

@pytest.fixture
def provider(store, notifier):
    return WeatherProvider(store, notifier)

@pytest.fixture
def week():
    return [make_record(i) for i in range(7)]
