import pandas as pd

import logging
from collections.abc import Iterable, Mapping
from datetime import datetime, tzinfo
from typing import NamedTuple

from . import contract
from .dates import normalized_utc_date_for_today
from .errors import InvalidRecord, StorageFailure
from .provider import WeatherProvider
from .validation import WeatherRecord, records_from_dataframe

logger = logging.getLogger(__name__)

class SyncResult(NamedTuple):
    inserted_count: int
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class SyncTask:
    """
    Entry point for the network sync.

    The caller fetches and parses a forecast and hands the batch to
    ``sync_batch``. Nothing here knows when or how the batch was fetched.
    """

    def __init__(self, provider: WeatherProvider, prune_stale: bool = False, timezone: str | tzinfo = "UTC"):
        self.provider = provider
        self.prune_stale = prune_stale
        self.timezone = timezone

    def sync_batch(self, records: Iterable[WeatherRecord | Mapping] | pd.DataFrame, now: datetime | None = None) -> SyncResult:
        """
        Persist a parsed forecast batch.

        Returns a SyncResult with the number of inserted rows. If the batch is
        rejected or the database fails, the error is returned instead and
        nothing was written.
        """
        try:
            if isinstance(records, pd.DataFrame):
                if records.empty:
                    logger.warning("Empty DataFrame provided to sync_batch")
                    return SyncResult(0)
                batch = records_from_dataframe(records)
            else:
                batch = list(records)

            if not batch:
                logger.warning("Empty batch provided to sync_batch")
                return SyncResult(0)

            inserted = self.provider.bulk_insert(self.provider.weather_locator, batch)
        except (InvalidRecord, StorageFailure) as e:
            logger.error(f"Forecast batch rejected: {e}")
            return SyncResult(0, e)

        if self.prune_stale:
            try:
                self.prune(now=now)
            except StorageFailure as e:
                logger.error(f"Pruning stale records failed: {e}")
                return SyncResult(inserted, e)

        logger.info(f"Synced {inserted} forecast record(s)")
        return SyncResult(inserted)

    def prune(self, now: datetime | None = None) -> int:
        """Delete records dated before today."""
        today = normalized_utc_date_for_today(self.timezone, now=now)
        deleted = self.provider.delete(
            self.provider.weather_locator,
            f"{contract.COLUMN_DATE} < ?",
            [today],
        )
        logger.debug(f"Pruned {deleted} record(s) dated before {today}")
        return deleted
