import json
import os
import stat
import pytest
from feedstate.errors import MalformedDocument, MalformedValue
from feedstate.state import read_json_file, write_json_file

def test_file_round_trip(memory_factory, feeds_schema, tmp_path):
    memory_factory.seed("feeds", {"url": "http://x", "priority": 5})
    path = tmp_path / "nested" / "backup.json"

    assert write_json_file(path, memory_factory, [feeds_schema]) == {"feeds": 1}
    assert json.loads(path.read_text(encoding="utf-8")) == {"feeds": {"rows": [{"url": "http://x", "priority": 5}]}}

    memory_factory.get("feeds").delete()
    assert read_json_file(path, memory_factory, [feeds_schema]) == {"feeds": 1}
    assert memory_factory.get("feeds").rows[0]["url"] == "http://x"

def test_failed_export_keeps_previous_backup(memory_factory, feeds_schema, tmp_path):
    path = tmp_path / "backup.json"
    path.write_text("previous", encoding="utf-8")
    memory_factory.seed("feeds", {"url": "http://x", "priority": "bad"})

    with pytest.raises(MalformedValue):
        write_json_file(path, memory_factory, [feeds_schema])
    assert path.read_text(encoding="utf-8") == "previous"
    assert [p.name for p in tmp_path.iterdir()] == ["backup.json"]

def test_invalid_utf8_backup_is_malformed(memory_factory, feeds_schema, tmp_path):
    path = tmp_path / "backup.json"
    path.write_bytes(b'{"feeds":{"rows":[{"url":"\xff\xfe","priority":1}]}}')
    memory_factory.seed("feeds", {"url": "keep", "priority": 1})

    with pytest.raises(MalformedDocument):
        read_json_file(path, memory_factory, [feeds_schema])
    assert memory_factory.get("feeds").rows[0]["url"] == "keep"

@pytest.mark.skipif(os.name != "posix", reason="POSIX file modes")
def test_new_backup_uses_default_mode(memory_factory, feeds_schema, tmp_path):
    path = tmp_path / "backup.json"
    umask = os.umask(0o022)
    try:
        write_json_file(path, memory_factory, [feeds_schema])
    finally:
        os.umask(umask)
    assert stat.S_IMODE(path.stat().st_mode) == 0o644

@pytest.mark.skipif(os.name != "posix", reason="POSIX file modes")
def test_existing_backup_keeps_its_mode(memory_factory, feeds_schema, tmp_path):
    path = tmp_path / "backup.json"
    path.write_text("previous", encoding="utf-8")
    path.chmod(0o640)
    write_json_file(path, memory_factory, [feeds_schema])
    assert stat.S_IMODE(path.stat().st_mode) == 0o640
