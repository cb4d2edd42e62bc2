"""
Routed access to the weather table.

The provider resolves every request locator through the router, runs the
operation against the store and announces successful writes through the
change notifier. It keeps no state between calls.
"""

import logging
from collections.abc import Iterable, Mapping, Sequence

from . import contract
from .dates import is_date_normalized
from .database.db import WeatherStore
from .errors import InvalidRecord, UnsupportedOperation
from .notifications import ChangeNotifier
from .result_set import ResultSet
from .router import LocatorCode, LocatorRouter, build_router
from .validation import WeatherRecord, coerce_record

logger = logging.getLogger(__name__)

class WeatherProvider:

    def __init__(
        self,
        store: WeatherStore,
        notifier: ChangeNotifier,
        router: LocatorRouter | None = None,
        authority: str = contract.CONTENT_AUTHORITY,
        ):

        self.store = store
        self.notifier = notifier
        self.authority = authority
        self.router = router if router is not None else build_router(authority)

    @property
    def weather_locator(self) -> str:
        return contract.build_weather_locator(self.authority)

    def locator_for_date(self, date) -> str:
        return contract.build_locator_for_date(date, self.authority)

    def query(
            self,
            locator: str,
            columns: Sequence[str] | None = None,
            predicate: str | None = None,
            predicate_args: Sequence | Mapping | None = None,
            order_by: str | None = None,
        ) -> ResultSet:
        """
        Query the records addressed by ``locator``.

        For a date locator the embedded date is the only filter and any
        predicate passed in is ignored. The returned result set is attached to
        ``locator`` so callers can subscribe to changes with
        ``ResultSet.register_observer``.

        Raises
        ------
        UnrecognizedLocator
            If the router cannot resolve ``locator``.
        """
        match = self.router.match(locator)

        if match.code == LocatorCode.RECORDS_FOR_DATE:
            if predicate is not None:
                logger.debug(f"Ignoring predicate '{predicate}' for date locator {locator}")
            predicate = f"{contract.COLUMN_DATE} = ?"
            predicate_args = [match.date]

        result = self.store.query(
            columns=columns,
            predicate=predicate,
            predicate_args=predicate_args,
            order_by=order_by,
        )
        return ResultSet(result, result.columns, locator=locator, notifier=self.notifier)

    def bulk_insert(self, locator: str, records: Iterable[WeatherRecord | Mapping]) -> int:
        """
        Insert a batch of records in a single transaction.

        Each record is validated right before it is written. The first record
        that is invalid or whose date is not normalized rolls back the whole
        batch. A record for a date that already exists replaces it and still
        counts as inserted.

        Returns
        -------
        int
            Number of rows written.

        Raises
        ------
        InvalidRecord
            If any record is invalid. Nothing is persisted.
        UnsupportedOperation
            If ``locator`` does not address all records.
        """
        match = self.router.match(locator)
        if match.code != LocatorCode.ALL_RECORDS:
            raise UnsupportedOperation(f"Bulk insert is only supported for {self.weather_locator}. Got {locator}")

        rows_inserted = 0
        with self.store.transaction() as conn:
            for i, record in enumerate(records):
                record = coerce_record(record, index=i)
                if not is_date_normalized(record.date):
                    raise InvalidRecord(f"Date {record.date} must be normalized to insert", index=i)

                row_id = self.store.insert(record, connection=conn)
                if row_id is not None:
                    rows_inserted += 1

        if rows_inserted > 0:
            self.notifier.notify_change(locator)

        logger.info(f"Inserted {rows_inserted} weather record(s)")
        return rows_inserted

    def delete(self, locator: str, predicate: str | None = None, predicate_args: Sequence | Mapping | None = None) -> int:
        """
        Delete records matching ``predicate``, or every record if it is None.

        Returns the number of deleted rows.
        """
        match = self.router.match(locator)
        if match.code != LocatorCode.ALL_RECORDS:
            raise UnsupportedOperation(f"Delete is only supported for {self.weather_locator}. Got {locator}")

        deleted_rows = self.store.delete(predicate, predicate_args)

        if deleted_rows != 0:
            self.notifier.notify_change(locator)

        logger.info(f"Deleted {deleted_rows} weather record(s)")
        return deleted_rows

    def insert(self, locator: str, record: WeatherRecord | Mapping):
        raise UnsupportedOperation("Single record inserts are not supported. Use bulk_insert instead")

    def update(self, locator: str, values: Mapping, predicate: str | None = None, predicate_args: Sequence | None = None):
        raise UnsupportedOperation("Updating records is not supported. Records are replaced by bulk_insert")

    def get_type(self, locator: str):
        raise UnsupportedOperation("Content types are not supported")

    def shutdown(self):
        self.store.close()
