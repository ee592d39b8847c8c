from typing import Sequence
from sqlalchemy import Engine
from feedstate.schema import TableSchema, TypeTag
from feedstate.logging import logger

TABLE_FEEDS = "feeds"
TABLE_ENTRIES = "entries"

FEEDS = TableSchema.of(
    TABLE_FEEDS,
    ("_id", TypeTag.PRIMARY_KEY),
    ("url", TypeTag.TEXT_UNIQUE),
    ("name", TypeTag.TEXT),
    ("lastupdate", TypeTag.DATETIME),
    ("icon", TypeTag.BLOB),
    ("error", TypeTag.TEXT),
    ("priority", TypeTag.INTEGER),
    ("fetchmode", TypeTag.INTEGER),
    ("reallastupdate", TypeTag.DATETIME),
    ("alertringtone", TypeTag.TEXT),
    ("other_alertringtone", TypeTag.INTEGER),
    ("skipalert", TypeTag.INTEGER),
    ("wifionly", TypeTag.BOOLEAN),
    ("homepage", TypeTag.TEXT),
    ("imgpattern", TypeTag.TEXT),
)

ENTRIES = TableSchema.of(
    TABLE_ENTRIES,
    ("_id", TypeTag.PRIMARY_KEY),
    ("feedid", TypeTag.SMALL_INT),
    ("title", TypeTag.TEXT),
    ("abstract", TypeTag.TEXT),
    ("date", TypeTag.DATETIME),
    ("readdate", TypeTag.DATETIME),
    ("link", TypeTag.TEXT),
    ("favorite", TypeTag.BOOLEAN),
    ("enclosure", TypeTag.TEXT),
    ("guid", TypeTag.TEXT),
    ("author", TypeTag.TEXT),
    ("linkimgurl", TypeTag.TEXT),
)

TABLES = (FEEDS, ENTRIES)


def get_table(name: str) -> TableSchema:
    for table in TABLES:
        if table.table_name == name:
            return table
    raise KeyError(name)


def create_tables(engine: Engine, tables: Sequence[TableSchema] = TABLES):
    """Create any missing tables using each column's declared SQL type."""
    ddl = []
    for table in tables:
        columns = ", ".join(f'"{c.name}" {c.type.sql_type}' for c in table.columns)
        ddl.append(f'CREATE TABLE IF NOT EXISTS "{table.table_name}" ({columns})')

    with engine.begin() as conn:
        for statement in ddl:
            conn.exec_driver_sql(statement)
    logger.info(f"Ensured tables: {', '.join(t.table_name for t in tables)}")
