"""
Restore the store from a backup document.

Import runs in two phases. ``verify`` checks the whole document against every
table before anything is changed. Only then does ``read`` replace the contents
of each table, inside ``GatewayFactory.transaction()``.
"""
import json
from typing import Any, Dict, List, Mapping, Sequence, TextIO, Union
from feedstate.codec import OMIT, decode
from feedstate.errors import (
    MalformedDocument,
    MalformedTable,
    MalformedValue,
    MissingColumns,
    MissingTable,
    UnknownColumn,
)
from feedstate.gateway import GatewayFactory, Row
from feedstate.schema import TableSchema
from feedstate.logging import logger


def parse(source: Union[str, bytes, TextIO]) -> Dict[str, Any]:
    """Parse a backup document from text or a readable stream."""
    try:
        if hasattr(source, "read"):
            source = source.read()
        document = json.loads(source)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise MalformedDocument(f"Backup is not valid JSON: {e}") from e
    if not isinstance(document, dict):
        raise MalformedDocument(f"Backup must be a JSON object, got {type(document).__name__}")
    return document


def _table_rows(document: Mapping[str, Any], schema: TableSchema) -> List[Any]:
    name = schema.table_name
    if document.get(name) is None:
        raise MissingTable(name)
    table = document[name]
    if not isinstance(table, dict):
        raise MalformedTable(name, f"Json table {name} is not an object")
    rows = table.get("rows")
    if rows is None or not isinstance(rows, list):
        raise MalformedTable(name, f"Json table {name} is not a table object")
    return rows


def verify_row(schema: TableSchema, row: Any):
    name = schema.table_name
    if not isinstance(row, dict):
        raise MalformedTable(name, f"Json table {name} has a row that is not an object")
    expected = {c.name for c in schema.data_columns()}
    for key in row:
        if key not in expected:
            raise UnknownColumn(name, key)
        expected.discard(key)
    if expected:
        raise MissingColumns(name, expected)


def verify(document: Mapping[str, Any], schemas: Sequence[TableSchema], first_row_only: bool = False):
    """Check that ``document`` carries every table with correctly shaped rows.

    With ``first_row_only`` only the first row of each table is checked, and a
    bad later row surfaces as a decode error while the import is applied.
    """
    for schema in schemas:
        rows = _table_rows(document, schema)
        checked = rows[:1] if first_row_only else rows
        for row in checked:
            verify_row(schema, row)


def decode_row(schema: TableSchema, obj: Mapping[str, Any]) -> Row:
    values = {}
    for col in schema.columns:
        try:
            value = decode(col.type, obj, col.name)
        except MalformedValue as e:
            raise MalformedValue(col.name, e.detail, table=schema.table_name) from e
        if value is OMIT:
            continue
        values[col.name] = value
    return values


def decode_rows(schema: TableSchema, rows: Sequence[Any]) -> List[Row]:
    decoded = []
    for i, obj in enumerate(rows):
        # Rows past the first are unchecked when validation samples only the first row
        if not isinstance(obj, dict):
            raise MalformedValue(f"rows[{i}]", "row is not an object", table=schema.table_name)
        decoded.append(decode_row(schema, obj))
    return decoded


def read(
    document: Mapping[str, Any],
    schemas: Sequence[TableSchema],
    factory: GatewayFactory,
    first_row_only: bool = False,
) -> Dict[str, int]:
    """Replace the contents of every table with the rows in ``document``.

    Returns the number of rows inserted per table.
    """
    verify(document, schemas, first_row_only=first_row_only)

    counts = {}
    with factory.transaction():
        for schema in schemas:
            name = schema.table_name
            gateway = factory.get(name)
            removed = gateway.delete()
            values = decode_rows(schema, document[name]["rows"])
            counts[name] = gateway.bulk_insert(values)
            logger.info(f"Replaced {removed} rows in {name} with {counts[name]}")
    return counts


def read_json(
    source: Union[str, bytes, TextIO],
    schemas: Sequence[TableSchema],
    factory: GatewayFactory,
    first_row_only: bool = False,
) -> Dict[str, int]:
    return read(parse(source), schemas, factory, first_row_only=first_row_only)
