import pytest
from sqlmodel import create_engine
from feedstate.catalog import TABLES, create_tables
from feedstate.gateway import GatewayFactory, RowGateway, SqlGatewayFactory
from feedstate.schema import TableSchema, TypeTag


class MemoryTable(RowGateway):
    """List-backed table. Hands columns back in reverse order and counts open cursors."""

    def __init__(self):
        self.rows = []
        self.next_id = 1
        self.open_cursors = 0

    def query(self, columns):
        self.open_cursors += 1
        try:
            for row in list(self.rows):
                yield {c: row.get(c) for c in reversed(list(columns))}
        finally:
            self.open_cursors -= 1

    def delete(self):
        count = len(self.rows)
        self.rows = []
        return count

    def bulk_insert(self, rows):
        for row in rows:
            stored = dict(row)
            stored["_id"] = self.next_id
            self.next_id += 1
            self.rows.append(stored)
        return len(rows)


class MemoryGatewayFactory(GatewayFactory):
    """Store without transactions: every call applies immediately."""

    def __init__(self):
        self.tables = {}

    def get(self, table_name):
        return self.tables.setdefault(table_name, MemoryTable())

    def seed(self, table_name, *rows):
        self.get(table_name).bulk_insert(list(rows))


# Small schema used throughout the engine tests
FEEDS = TableSchema.of(
    "feeds",
    ("_id", TypeTag.PRIMARY_KEY),
    ("url", TypeTag.TEXT),
    ("priority", TypeTag.INTEGER),
)


@pytest.fixture
def memory_factory():
    return MemoryGatewayFactory()


@pytest.fixture(name="engine")
def engine_fixture():
    engine = create_engine("sqlite:///:memory:")
    create_tables(engine, TABLES)
    yield engine
    engine.dispose()


@pytest.fixture
def sql_factory(engine):
    return SqlGatewayFactory(engine)


@pytest.fixture
def feeds_schema():
    return FEEDS
