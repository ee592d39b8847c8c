import io
import json
import pytest
from feedstate.errors import MalformedValue
from feedstate.schema import TableSchema, TypeTag
from feedstate.writer import encode_row, write, write_document

def test_write_single_row(memory_factory, feeds_schema):
    memory_factory.seed("feeds", {"url": "http://x", "priority": 5})
    out = io.StringIO()

    counts = write([feeds_schema], memory_factory, out)

    assert counts == {"feeds": 1}
    assert out.getvalue() == '{"feeds":{"rows":[{"url":"http://x","priority":5}]}}'

def test_columns_follow_schema_order(memory_factory, feeds_schema):
    # The memory table hands columns back reversed
    memory_factory.seed("feeds", {"url": "a", "priority": 1}, {"url": "b", "priority": None})
    doc = write_document([feeds_schema], memory_factory)
    rows = doc["feeds"]["rows"]
    assert [list(r) for r in rows] == [["url", "priority"], ["url", "priority"]]
    assert rows[1] == {"url": "b", "priority": None}

def test_empty_tables(memory_factory, feeds_schema):
    other = TableSchema.of("entries", ("_id", TypeTag.PRIMARY_KEY), ("title", TypeTag.TEXT))
    out = io.StringIO()
    write([feeds_schema, other], memory_factory, out)
    assert json.loads(out.getvalue()) == {"feeds": {"rows": []}, "entries": {"rows": []}}

def test_table_name_is_escaped(memory_factory):
    schema = TableSchema.of('odd"name', ("v", TypeTag.TEXT))
    memory_factory.seed('odd"name', {"v": "x"})
    out = io.StringIO()
    write([schema], memory_factory, out)
    assert json.loads(out.getvalue()) == {'odd"name': {"rows": [{"v": "x"}]}}

def test_encode_row_skips_primary_key(feeds_schema):
    assert encode_row(feeds_schema, {"_id": 9, "url": "u", "priority": 2}) == {"url": "u", "priority": 2}

def test_boolean_and_blob_encoding(memory_factory):
    schema = TableSchema.of(
        "t", ("_id", TypeTag.PRIMARY_KEY), ("flag", TypeTag.BOOLEAN), ("icon", TypeTag.BLOB)
    )
    memory_factory.seed("t", {"flag": True, "icon": b"\x00\xff"}, {"flag": 0, "icon": None})
    out = io.StringIO()
    write([schema], memory_factory, out)
    assert out.getvalue() == '{"t":{"rows":[{"flag":1,"icon":"AP8="},{"flag":0,"icon":null}]}}'

def test_codec_failure_aborts_and_closes_cursor(memory_factory, feeds_schema):
    memory_factory.seed("feeds", {"url": "a", "priority": "high"})
    with pytest.raises(MalformedValue) as exc:
        write([feeds_schema], memory_factory, io.StringIO())
    assert exc.value.table == "feeds"
    assert exc.value.column == "priority"
    assert memory_factory.get("feeds").open_cursors == 0
