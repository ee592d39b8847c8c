"""
Row access boundary between the export/import engine and the store.

The engine only needs three things from a table: read every row, delete every
row, and insert a batch of rows. ``GatewayFactory.transaction()`` lets a store
group an import into a single unit of work; stores that cannot do that keep
the default no-op scope and are applied table by table.
"""
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Sequence
from sqlalchemy import Engine, column, delete, insert, select, table
from sqlmodel import Session
from feedstate.logging import logger

Row = Dict[str, Any]


class RowGateway(ABC):
    @abstractmethod
    def query(self, columns: Sequence[str]) -> Iterator[Row]:
        """Yield every row of the table as a mapping of the requested columns."""

    @abstractmethod
    def delete(self) -> int:
        """Delete every row of the table. Returns the number removed."""

    @abstractmethod
    def bulk_insert(self, rows: Sequence[Row]) -> int:
        """Insert the rows. Returns the number inserted."""


class GatewayFactory(ABC):
    @abstractmethod
    def get(self, table_name: str) -> RowGateway:
        """Return the gateway for a table."""

    @contextmanager
    def transaction(self):
        """Scope a group of gateway calls. No-op unless the store supports it."""
        yield


class SqlRowGateway(RowGateway):
    def __init__(self, factory: "SqlGatewayFactory", table_name: str):
        self.factory = factory
        self.table_name = table_name

    def _table(self, names: Sequence[str]):
        return table(self.table_name, *(column(name) for name in names))

    def query(self, columns: Sequence[str]) -> Iterator[Row]:
        stmt = select(*(column(name) for name in columns)).select_from(table(self.table_name))
        with self.factory.connection() as conn:
            result = conn.execute(stmt)
            try:
                for row in result.mappings():
                    yield dict(row)
            finally:
                result.close()

    def delete(self) -> int:
        with self.factory.connection() as conn:
            count = conn.execute(delete(table(self.table_name))).rowcount
        logger.debug(f"Deleted {count} rows from {self.table_name}")
        return count

    def bulk_insert(self, rows: Sequence[Row]) -> int:
        if not rows:
            return 0
        names: List[str] = []
        for row in rows:
            for key in row:
                if key not in names:
                    names.append(key)
        with self.factory.connection() as conn:
            conn.execute(insert(self._table(names)), list(rows))
        logger.debug(f"Inserted {len(rows)} rows into {self.table_name}")
        return len(rows)


class SqlGatewayFactory(GatewayFactory):
    """Gateways over SQLAlchemy tables.

    Outside ``transaction()`` each gateway call commits on its own. Inside it,
    every call shares one session that commits when the block exits cleanly and
    rolls back otherwise.
    """

    def __init__(self, engine: Engine):
        self.engine = engine
        self._session: Optional[Session] = None

    def get(self, table_name: str) -> RowGateway:
        return SqlRowGateway(self, table_name)

    @contextmanager
    def connection(self):
        if self._session is not None:
            yield self._session.connection()
            return
        with self.engine.begin() as conn:
            yield conn

    @contextmanager
    def transaction(self):
        if self._session is not None:
            # Nested scopes join the outer unit of work
            yield
            return
        with Session(self.engine) as session:
            self._session = session
            try:
                yield
                session.commit()
            except BaseException:
                logger.warning("Rolling back store changes")
                session.rollback()
                raise
            finally:
                self._session = None
