import logging
from collections.abc import Mapping, Sequence
from datetime import datetime, tzinfo

from . import contract
from .notifications import ChangeCallback, Subscription
from .provider import WeatherProvider
from .result_set import ResultSet

logger = logging.getLogger(__name__)

# Columns shown in the forecast list
FORECAST_COLUMNS: tuple[str, ...] = (
    contract.COLUMN_DATE,
    contract.COLUMN_MAX_TEMP,
    contract.COLUMN_MIN_TEMP,
    contract.COLUMN_WEATHER_ID,
)

# Columns shown for a single day
DETAIL_COLUMNS: tuple[str, ...] = (
    contract.COLUMN_DATE,
    contract.COLUMN_MAX_TEMP,
    contract.COLUMN_MIN_TEMP,
    contract.COLUMN_HUMIDITY,
    contract.COLUMN_PRESSURE,
    contract.COLUMN_WIND_SPEED,
    contract.COLUMN_DEGREES,
    contract.COLUMN_WEATHER_ID,
)

class QueryHandle:
    """A query result together with the subscription that marks it stale."""

    def __init__(self, provider: WeatherProvider, params: dict, result_set: ResultSet, subscription: Subscription):
        self._provider = provider
        self._params = params
        self.result_set = result_set
        self.subscription = subscription

    @property
    def stale(self) -> bool:
        """True once a write touched the locator after the last (re)load."""
        return self.subscription.changed

    def refresh(self) -> ResultSet:
        """Re-run the query and mark the handle as fresh."""
        self.subscription.clear()
        self.result_set = self._provider.query(**self._params)
        return self.result_set

    def close(self):
        self.subscription.unsubscribe()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


class QueryManager:
    """Read side used by the forecast list and detail views."""

    def __init__(self, provider: WeatherProvider, timezone: str | tzinfo = "UTC"):
        self.provider = provider
        self.timezone = timezone

    def load(
            self,
            locator: str,
            columns: Sequence[str] | None = None,
            predicate: str | None = None,
            predicate_args: Sequence | Mapping | None = None,
            order_by: str | None = None,
            on_change: ChangeCallback | None = None,
        ) -> QueryHandle:
        """
        Query ``locator`` and subscribe to its changes.

        Args:
            locator: Locator to query
            columns: Projection, all record columns if None
            predicate: SQL predicate with ``?`` placeholders
            predicate_args: Values for the placeholders
            order_by: Ordering such as ``"date ASC"``
            on_change: Optional callback invoked with the changed locator

        Returns:
            QueryHandle holding the result set and its subscription
        """
        params = dict(
            locator=locator,
            columns=columns,
            predicate=predicate,
            predicate_args=predicate_args,
            order_by=order_by,
        )
        # Subscribe first so a write landing between query and subscription still marks the handle stale
        subscription = self.provider.notifier.register_observer(locator, on_change)
        try:
            result_set = self.provider.query(**params)
        except Exception:
            subscription.unsubscribe()
            raise

        logger.debug(f"Loaded {len(result_set)} row(s) from {locator}")
        return QueryHandle(self.provider, params, result_set, subscription)

    def forecast(self, on_change: ChangeCallback | None = None, now: datetime | None = None) -> QueryHandle:
        """Forecast from today onwards, oldest first."""
        return self.load(
            self.provider.weather_locator,
            columns=FORECAST_COLUMNS,
            predicate=contract.sql_select_for_today_onwards(self.timezone, now=now),
            order_by=f"{contract.COLUMN_DATE} ASC",
            on_change=on_change,
        )

    def detail(self, date, on_change: ChangeCallback | None = None) -> QueryHandle:
        """Every detail column for a single day."""
        return self.load(
            self.provider.locator_for_date(date),
            columns=DETAIL_COLUMNS,
            on_change=on_change,
        )
