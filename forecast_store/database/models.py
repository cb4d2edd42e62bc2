from sqlalchemy import (
    BigInteger, Column, Float, Integer, UniqueConstraint
)
from sqlalchemy.orm import declarative_base

from .. import contract

# Bump when the table layout changes. The store drops and recreates the table on upgrade.
SCHEMA_VERSION = 1

Base = declarative_base()

class Weather(Base):
    __tablename__ = contract.TABLE_NAME

    id = Column(contract.COLUMN_ID, Integer, primary_key=True, autoincrement=True)
    date = Column(contract.COLUMN_DATE, BigInteger().with_variant(Integer, "sqlite"), nullable=False)
    weather_id = Column(contract.COLUMN_WEATHER_ID, Integer, nullable=False)
    min_temp = Column(contract.COLUMN_MIN_TEMP, Float, nullable=False)
    max_temp = Column(contract.COLUMN_MAX_TEMP, Float, nullable=False)
    humidity = Column(contract.COLUMN_HUMIDITY, Float, nullable=False)
    pressure = Column(contract.COLUMN_PRESSURE, Float, nullable=False)
    wind_speed = Column(contract.COLUMN_WIND_SPEED, Float, nullable=False)
    degrees = Column(contract.COLUMN_DEGREES, Float, nullable=False)

    # One row per date. Inserting a second row for a date replaces the first.
    __table_args__ = (
        UniqueConstraint(contract.COLUMN_DATE, name="uq_weather_date", sqlite_on_conflict="REPLACE"),
    )

weather_table = Weather.__table__
