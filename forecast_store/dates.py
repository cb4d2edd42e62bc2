import pandas as pd
import pytz

import datetime
import logging
import numbers
from datetime import timezone, tzinfo

logger = logging.getLogger(__name__)

DAY_IN_MILLIS = 24 * 60 * 60 * 1000
EPOCH = datetime.datetime(1970, 1, 1, tzinfo=timezone.utc)

# Locator date segments below this value are epoch seconds, above it epoch millis.
# 10**11 seconds is in the year 5138, 10**11 millis is in March 1973.
SECONDS_MILLIS_THRESHOLD = 10**11


def is_date_normalized(millis: int) -> bool:
    """Return True if ``millis`` is the start of a UTC day."""
    return millis % DAY_IN_MILLIS == 0


def normalize_date(millis: int) -> int:
    """Truncate ``millis`` to the start of its UTC day."""
    return (millis // DAY_IN_MILLIS) * DAY_IN_MILLIS


def to_millis(value) -> int:
    """
    Convert a timestamp-like value to milliseconds since the epoch.

    Parameters
    ----------
    value : int, datetime.datetime, datetime.date or pandas.Timestamp
        Integers are returned unchanged. Naive datetimes are read as UTC,
        plain dates as their UTC midnight.
    """
    if isinstance(value, bool):
        raise TypeError("Boolean is not a valid timestamp")
    if isinstance(value, numbers.Integral):
        return int(value)
    if isinstance(value, pd.Timestamp):
        ts = value if value.tzinfo is not None else value.tz_localize("UTC")
        return int(ts.value // 1_000_000)
    if isinstance(value, datetime.datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return (value - EPOCH) // datetime.timedelta(milliseconds=1)
    if isinstance(value, datetime.date):
        midnight = datetime.datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
        return (midnight - EPOCH) // datetime.timedelta(milliseconds=1)
    raise TypeError(f"Cannot convert {type(value).__name__} to epoch milliseconds")


def millis_to_datetime(millis: int) -> datetime.datetime:
    return datetime.datetime.fromtimestamp(millis / 1000, tz=timezone.utc)


def segment_to_millis(value: int) -> int:
    """Read a numeric locator segment as seconds or milliseconds since the epoch."""
    if abs(value) < SECONDS_MILLIS_THRESHOLD:
        return value * 1000
    return value


def millis_to_segment(millis: int) -> int:
    """
    Inverse of ``segment_to_millis`` for whole seconds.

    Writes epoch seconds while they stay below the threshold and milliseconds
    after that, so that reading the segment back gives ``millis`` again.
    """
    if millis % 1000 == 0 and abs(millis // 1000) < SECONDS_MILLIS_THRESHOLD:
        return millis // 1000
    return millis


def _resolve_timezone(tz: str | tzinfo | None) -> tzinfo:
    if tz is None:
        return pytz.utc
    if isinstance(tz, str):
        try:
            return pytz.timezone(tz)
        except pytz.exceptions.UnknownTimeZoneError:
            raise ValueError(f"Unknown timezone: {tz}")
    return tz


def normalized_utc_date_for_today(tz: str | tzinfo | None = "UTC", now: datetime.datetime | None = None) -> int:
    """
    Return today's normalized date in milliseconds.

    Today is the calendar date in ``tz``. The result is the UTC midnight of that
    calendar date, which is the same representation stored for records.
    """
    tz = _resolve_timezone(tz)
    if now is None:
        now = datetime.datetime.now(timezone.utc)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    local_date = now.astimezone(tz).date()
    return to_millis(local_date)
