from sqlalchemy import create_engine, delete, func, insert, inspect, select, text
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import StaticPool
from contextlib import contextmanager, nullcontext
from pathlib import Path

import enum
import logging
import re
import threading
from collections.abc import Mapping, Sequence

from . import models
from .. import contract
from ..errors import StorageFailure
from ..result_set import ResultSet
from ..validation import WeatherRecord, coerce_record

logger = logging.getLogger(__name__)

_ORDER_TERM = re.compile(r"^\s*(\w+)(?:\s+(ASC|DESC))?\s*$", re.IGNORECASE)

class TransactionState(enum.Enum):
    IDLE = "idle"
    OPEN = "open"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled back"


def bind_predicate(predicate: str | None, predicate_args: Sequence | Mapping | None = None):
    """
    Turn a SQL predicate fragment into a bound text clause.

    ``?`` placeholders are bound in order from a sequence of arguments. A
    mapping binds ``:name`` style parameters instead.
    """
    if predicate is None:
        if predicate_args:
            raise ValueError("Predicate arguments given without a predicate")
        return None

    if isinstance(predicate_args, Mapping):
        clause = text(predicate)
        expected = set(clause.compile().params)
        if expected != set(predicate_args):
            raise ValueError(f"Predicate parameters {sorted(expected)} do not match the given names {sorted(predicate_args)}")
        return clause.bindparams(**predicate_args) if expected else clause

    args = list(predicate_args or [])
    parts = predicate.split("?")
    if len(parts) - 1 != len(args):
        raise ValueError(f"Predicate has {len(parts) - 1} placeholder(s) but {len(args)} argument(s) were given")

    sql = parts[0]
    params = {}
    for i, (arg, part) in enumerate(zip(args, parts[1:])):
        name = f"arg_{i}"
        sql += f":{name}{part}"
        params[name] = arg

    clause = text(sql)
    return clause.bindparams(**params) if params else clause


class WeatherStore:
    """
    Owns the weather table and the only engine that talks to it.

    Writes are serialized through ``transaction()``. File databases let reads
    run next to each other; an in-memory database has a single connection, so
    reads take the write lock too.
    """

    def __init__(self, engine: str = 'sqlite:///weather.db', schema_version: int = models.SCHEMA_VERSION):
        url = make_url(engine)
        if url.get_backend_name() != 'sqlite':
            raise ValueError(f"Only SQLite databases are supported. Got {url.get_backend_name()}")

        self.url = url
        self.in_memory = url.database in (None, '', ':memory:')
        self.schema_version = schema_version

        self._write_lock = threading.RLock()
        self._read_lock = self._write_lock if self.in_memory else nullcontext()

        engine_kwargs = {"connect_args": {"check_same_thread": False, "timeout": 30}}
        if self.in_memory:
            engine_kwargs["poolclass"] = StaticPool
        else:
            Path(url.database).parent.mkdir(parents=True, exist_ok=True)

        try:
            self.engine = create_engine(url, **engine_kwargs)
            self._ensure_schema(schema_version)
        except SQLAlchemyError as e:
            raise StorageFailure(f"Cannot open database at {url}: {e}") from e

        logger.debug(f"Initialized WeatherStore at {url} (schema version {schema_version})")

    def _ensure_schema(self, target_version: int):
        """Create the table, or drop and recreate it when the stored schema is older."""
        with self._write_lock, self.engine.begin() as conn:
            current_version = conn.exec_driver_sql("PRAGMA user_version").scalar() or 0
            exists = inspect(conn).has_table(contract.TABLE_NAME)

            if current_version > target_version:
                raise StorageFailure(
                    f"Database schema version {current_version} is newer than supported version {target_version}"
                )

            if exists and current_version == target_version:
                return

            if exists:
                logger.warning(f"Upgrading weather schema from version {current_version} to {target_version}. Existing records are dropped.")
                models.weather_table.drop(conn)

            models.Base.metadata.create_all(conn)
            conn.exec_driver_sql(f"PRAGMA user_version = {int(target_version)}")
            logger.info(f"Created table '{contract.TABLE_NAME}' with schema version {target_version}")

    def _select_columns(self, columns: Sequence[str] | None):
        if columns is None:
            columns = contract.ALL_COLUMNS

        unknown = [c for c in columns if c not in contract.ALL_COLUMNS]
        if unknown:
            raise ValueError(f"Unknown column(s) {unknown}. Choose from {list(contract.ALL_COLUMNS)}")
        if not columns:
            raise ValueError("At least one column has to be selected")

        return [models.weather_table.c[c] for c in columns]

    def _order_terms(self, order_by: str):
        terms = []
        for term in order_by.split(","):
            match = _ORDER_TERM.match(term)
            if match is None:
                raise ValueError(f"Invalid ordering term '{term.strip()}'")

            name, direction = match.group(1), (match.group(2) or "ASC").upper()
            if name not in contract.ALL_COLUMNS and name != contract.COLUMN_ID:
                raise ValueError(f"Cannot order by unknown column '{name}'")

            column = models.weather_table.c[name]
            terms.append(column.desc() if direction == "DESC" else column.asc())
        return terms

    @contextmanager
    def transaction(self):
        """
        Hold the write lock and one open transaction.

        Commits when the block exits normally and rolls back on any exception.
        Database errors are re-raised as StorageFailure.
        """
        with self._write_lock:
            logger.debug(f"Transaction {TransactionState.IDLE.value} -> {TransactionState.OPEN.value}")
            try:
                with self.engine.begin() as conn:
                    yield conn
            except SQLAlchemyError as e:
                logger.debug(f"Transaction {TransactionState.OPEN.value} -> {TransactionState.ROLLED_BACK.value}")
                raise StorageFailure(f"Transaction failed: {e}") from e
            except Exception:
                logger.debug(f"Transaction {TransactionState.OPEN.value} -> {TransactionState.ROLLED_BACK.value}")
                raise
            logger.debug(f"Transaction {TransactionState.OPEN.value} -> {TransactionState.COMMITTED.value}")

    def query(
            self,
            columns: Sequence[str] | None = None,
            predicate: str | None = None,
            predicate_args: Sequence | Mapping | None = None,
            order_by: str | None = None,
        ) -> ResultSet:

        selected = self._select_columns(columns)
        stmt = select(*selected)

        clause = bind_predicate(predicate, predicate_args)
        if clause is not None:
            stmt = stmt.where(clause)

        if order_by:
            stmt = stmt.order_by(*self._order_terms(order_by))

        try:
            with self._read_lock, self.engine.connect() as conn:
                rows = conn.execute(stmt).all()
        except SQLAlchemyError as e:
            raise StorageFailure(f"Query failed: {e}") from e

        return ResultSet(rows, [c.name for c in selected])

    def insert(self, record: WeatherRecord | Mapping, connection=None) -> int:
        """
        Insert one record and return its row id.

        A record whose date already exists replaces the existing row. Pass
        ``connection`` to insert inside a transaction opened with ``transaction()``.
        """
        record = coerce_record(record)
        stmt = insert(models.weather_table).values(**record.to_row())

        if connection is None:
            with self.transaction() as conn:
                return self.insert(record, connection=conn)

        try:
            result = connection.execute(stmt)
        except SQLAlchemyError as e:
            raise StorageFailure(f"Insert of record for date {record.date} failed: {e}") from e
        return result.inserted_primary_key[0]

    def delete(self, predicate: str | None = None, predicate_args: Sequence | Mapping | None = None) -> int:
        """Delete matching rows and return how many were removed. No predicate deletes every row."""
        clause = bind_predicate(predicate, predicate_args)
        if clause is None:
            # "1" matches every row and still reports the number of deleted rows
            clause = text("1")
        with self.transaction() as conn:
            result = conn.execute(delete(models.weather_table).where(clause))
            deleted = result.rowcount

        logger.debug(f"Deleted {deleted} row(s) matching '{predicate}'")
        return deleted

    def count(self) -> int:
        try:
            with self._read_lock, self.engine.connect() as conn:
                return conn.execute(select(func.count()).select_from(models.weather_table)).scalar_one()
        except SQLAlchemyError as e:
            raise StorageFailure(f"Count failed: {e}") from e

    def close(self):
        """
        Dispose of the engine connection pool.
        """
        try:
            if self.engine:
                self.engine.dispose()
                logger.debug("Database engine disposed.")
        except Exception as e:
            logger.warning(f"Error disposing database engine: {e}")
