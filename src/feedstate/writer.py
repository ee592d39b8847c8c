import json
from contextlib import closing
from typing import Any, Dict, List, Sequence, TextIO
from feedstate.codec import OMIT, encode
from feedstate.errors import MalformedValue
from feedstate.gateway import GatewayFactory, Row
from feedstate.schema import TableSchema
from feedstate.logging import logger


def encode_row(schema: TableSchema, row: Row) -> Dict[str, Any]:
    """Render one stored row as a JSON object in declared column order."""
    obj = {}
    for col in schema.columns:
        try:
            value = encode(col.type, row.get(col.name), col.name)
        except MalformedValue as e:
            raise MalformedValue(col.name, e.detail, table=schema.table_name) from e
        if value is OMIT:
            continue
        obj[col.name] = value
    return obj


def iter_rows(schema: TableSchema, factory: GatewayFactory):
    """Yield the encoded rows of one table. The store cursor is closed on every exit."""
    gateway = factory.get(schema.table_name)
    rows = gateway.query(schema.column_names())
    try:
        for row in rows:
            yield encode_row(schema, row)
    finally:
        close = getattr(rows, "close", None)
        if close is not None:
            close()


def write(schemas: Sequence[TableSchema], factory: GatewayFactory, out: TextIO) -> Dict[str, int]:
    """Stream the backup document for ``schemas`` to ``out``.

    Rows are encoded one at a time so a large table is never held in memory.
    Returns the number of rows written per table.
    """
    counts = {}
    out.write("{")
    for t, schema in enumerate(schemas):
        if t > 0:
            out.write(",")
        out.write(json.dumps(schema.table_name))
        out.write(':{"rows":[')
        count = 0
        with closing(iter_rows(schema, factory)) as rows:
            for obj in rows:
                if count > 0:
                    out.write(",")
                out.write(json.dumps(obj, ensure_ascii=False, separators=(",", ":")))
                count += 1
        out.write("]}")
        counts[schema.table_name] = count
        logger.info(f"Exported {count} rows from {schema.table_name}")
    out.write("}")
    out.flush()
    return counts


def write_document(schemas: Sequence[TableSchema], factory: GatewayFactory) -> Dict[str, Dict[str, List[Dict[str, Any]]]]:
    """Build the backup document in memory."""
    document = {}
    for schema in schemas:
        with closing(iter_rows(schema, factory)) as rows:
            document[schema.table_name] = {"rows": list(rows)}
    return document
