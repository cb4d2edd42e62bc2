from pydantic import BaseModel, ConfigDict, FiniteFloat, ValidationError, field_validator
import pandas as pd
import pandera.pandas as pa
from pandera.errors import SchemaError
from pandas.api.types import is_datetime64_any_dtype

import datetime
import logging
from typing import Any, Mapping

from . import contract
from .dates import to_millis
from .errors import InvalidRecord

logger = logging.getLogger(__name__)

class WeatherRecord(BaseModel):
    """
    One day of forecast data.

    All fields are mandatory. ``date`` is epoch milliseconds; whether it is
    normalized is checked by the provider when the record is written.
    """
    model_config = ConfigDict(frozen=True, extra="forbid")

    date: int
    weather_id: int
    min_temp: FiniteFloat
    max_temp: FiniteFloat
    humidity: FiniteFloat
    pressure: FiniteFloat
    wind_speed: FiniteFloat
    degrees: FiniteFloat

    @field_validator("date", mode="before")
    @classmethod
    def convert_datetime(cls, v):
        """Accept datetimes and dates and store them as epoch milliseconds."""
        if isinstance(v, (datetime.datetime, datetime.date)):
            return to_millis(v)
        return v

    @classmethod
    def from_row(cls, row) -> "WeatherRecord":
        """Build a record from a result row or a mapping of column name to value."""
        mapping = getattr(row, "_mapping", row)
        return cls.model_validate({column: mapping[column] for column in contract.ALL_COLUMNS})

    def to_row(self) -> dict[str, Any]:
        return self.model_dump()


def coerce_record(record: WeatherRecord | Mapping[str, Any], index: int | None = None) -> WeatherRecord:
    """Return ``record`` as a WeatherRecord, raising InvalidRecord if it cannot be built."""
    if isinstance(record, WeatherRecord):
        return record
    try:
        return WeatherRecord.model_validate(dict(record))
    except (ValidationError, TypeError, ValueError) as e:
        raise InvalidRecord(str(e), index=index) from e


WEATHER_BATCH_SCHEMA = pa.DataFrameSchema(
    {
        contract.COLUMN_DATE: pa.Column(int, nullable=False),
        contract.COLUMN_WEATHER_ID: pa.Column(int, nullable=False, coerce=True),
        contract.COLUMN_MIN_TEMP: pa.Column(float, nullable=False, coerce=True),
        contract.COLUMN_MAX_TEMP: pa.Column(float, nullable=False, coerce=True),
        contract.COLUMN_HUMIDITY: pa.Column(float, nullable=False, coerce=True),
        contract.COLUMN_PRESSURE: pa.Column(float, nullable=False, coerce=True),
        contract.COLUMN_WIND_SPEED: pa.Column(float, nullable=False, coerce=True),
        contract.COLUMN_DEGREES: pa.Column(float, nullable=False, coerce=True),
    },
    strict=True,
)


def records_from_dataframe(data: pd.DataFrame) -> list[WeatherRecord]:
    """
    Validate a forecast batch given as a DataFrame and convert it to records.

    A ``date`` column of datetime dtype is converted to epoch milliseconds
    before validation.

    Raises
    ------
    InvalidRecord
        If the frame does not match WEATHER_BATCH_SCHEMA.
    """
    df = data.copy()

    if contract.COLUMN_DATE in df.columns and is_datetime64_any_dtype(df[contract.COLUMN_DATE]):
        if df[contract.COLUMN_DATE].isna().any():
            raise InvalidRecord("Batch contains records without a date")
        df[contract.COLUMN_DATE] = df[contract.COLUMN_DATE].map(to_millis).astype("int64")

    try:
        validated = WEATHER_BATCH_SCHEMA.validate(df)
    except SchemaError as e:
        raise InvalidRecord(f"Batch does not match the weather schema: {e}") from e

    return [coerce_record(row, index=i) for i, row in enumerate(validated.to_dict(orient="records"))]
