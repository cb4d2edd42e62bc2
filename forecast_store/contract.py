"""
Definitions shared by the store, the router and the callers: table and column
names, the locator grammar and the "today onwards" predicate.

Locators look like ``content://<authority>/weather`` (all records) or
``content://<authority>/weather/<date>`` (the record for one date). The scheme
is optional.
"""

import logging
from datetime import datetime, tzinfo
from urllib.parse import urlsplit

from .dates import millis_to_segment, normalize_date, normalized_utc_date_for_today, segment_to_millis, to_millis

logger = logging.getLogger(__name__)

CONTENT_SCHEME = "content"
CONTENT_AUTHORITY = "forecast_store"
PATH_WEATHER = "weather"

TABLE_NAME = "weather"

# Synthetic row id. Only valid as an ordering key, never returned to callers.
COLUMN_ID = "_id"

COLUMN_DATE = "date"
COLUMN_WEATHER_ID = "weather_id"
COLUMN_MIN_TEMP = "min_temp"
COLUMN_MAX_TEMP = "max_temp"
COLUMN_HUMIDITY = "humidity"
COLUMN_PRESSURE = "pressure"
COLUMN_WIND_SPEED = "wind_speed"
COLUMN_DEGREES = "degrees"

ALL_COLUMNS: tuple[str, ...] = (
    COLUMN_DATE,
    COLUMN_WEATHER_ID,
    COLUMN_MIN_TEMP,
    COLUMN_MAX_TEMP,
    COLUMN_HUMIDITY,
    COLUMN_PRESSURE,
    COLUMN_WIND_SPEED,
    COLUMN_DEGREES,
)


def parse_locator(locator: str) -> tuple[str, tuple[str, ...]]:
    """
    Split a locator into its authority and path segments.

    Empty segments, query strings and fragments are ignored.
    """
    if not isinstance(locator, str):
        raise TypeError(f"Locator must be a string. Got {type(locator).__name__}")

    if "://" in locator:
        parts = urlsplit(locator)
        authority = parts.netloc
        path = parts.path
    else:
        path = locator.split("?", 1)[0].split("#", 1)[0]
        authority, _, path = path.lstrip("/").partition("/")

    segments = tuple(s for s in path.split("/") if s)
    return authority, segments


def build_locator(authority: str, *segments: str) -> str:
    path = "/".join(str(s) for s in segments)
    return f"{CONTENT_SCHEME}://{authority}/{path}" if path else f"{CONTENT_SCHEME}://{authority}"


def build_weather_locator(authority: str = CONTENT_AUTHORITY) -> str:
    """Locator addressing every weather record."""
    return build_locator(authority, PATH_WEATHER)


def build_locator_for_date(date, authority: str = CONTENT_AUTHORITY) -> str:
    """
    Locator addressing the record for a single date.

    ``date`` may be epoch milliseconds or anything ``to_millis`` accepts. It is
    normalized and written as epoch seconds, which ``date_from_locator`` reads
    back to the stored key.
    """
    millis = normalize_date(to_millis(date))
    return build_locator(authority, PATH_WEATHER, str(millis_to_segment(millis)))


def date_from_locator(locator: str) -> int:
    """
    Extract the date in epoch milliseconds from the last segment of a locator.

    Raises
    ------
    ValueError
        If the locator has no numeric last segment.
    """
    _, segments = parse_locator(locator)
    if not segments or not (segments[-1].isascii() and segments[-1].isdigit()):
        raise ValueError(f"Locator {locator} does not end with a date segment")
    return segment_to_millis(int(segments[-1]))


def sql_select_for_today_onwards(tz: str | tzinfo | None = "UTC", now: datetime | None = None) -> str:
    """Predicate selecting every record from today onwards."""
    today = normalized_utc_date_for_today(tz, now=now)
    return f"{COLUMN_DATE} >= {today}"
