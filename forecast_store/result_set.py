import pandas as pd

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING

from . import contract
from .validation import WeatherRecord

if TYPE_CHECKING:
    from .notifications import ChangeCallback, ChangeNotifier, Subscription

logger = logging.getLogger(__name__)

class ResultSet(Sequence):
    """
    Immutable, ordered snapshot of the rows returned by a query.

    Rows are SQLAlchemy ``Row`` objects: they behave like tuples in column
    order and can be read by name (``row.date`` or ``row._mapping["date"]``).
    """

    def __init__(self, rows, columns, locator: str | None = None, notifier: "ChangeNotifier | None" = None):
        self._rows = tuple(rows)
        self._columns = tuple(columns)
        self._locator = locator
        self._notifier = notifier

    @property
    def columns(self) -> tuple[str, ...]:
        return self._columns

    @property
    def locator(self) -> str | None:
        """Locator the rows were queried from. Changes to it make this snapshot stale."""
        return self._locator

    def __getitem__(self, index):
        if isinstance(index, slice):
            return ResultSet(self._rows[index], self._columns, self._locator, self._notifier)
        return self._rows[index]

    def __len__(self) -> int:
        return len(self._rows)

    def __repr__(self):
        return f"ResultSet(count={len(self)}, columns={self._columns}, locator={self._locator!r})"

    def records(self) -> list[WeatherRecord]:
        """Convert the rows to WeatherRecords. Requires every record column in the projection."""
        missing = [c for c in contract.ALL_COLUMNS if c not in self._columns]
        if missing:
            raise ValueError(f"Cannot build records without columns: {missing}")
        return [WeatherRecord.from_row(row) for row in self._rows]

    def to_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame.from_records([tuple(row) for row in self._rows], columns=list(self._columns))

    def register_observer(self, callback: "ChangeCallback | None" = None) -> "Subscription":
        """Subscribe to changes of the locator this result set was queried from."""
        if self._notifier is None or self._locator is None:
            raise ValueError("Result set is not attached to a locator")
        return self._notifier.register_observer(self._locator, callback)
