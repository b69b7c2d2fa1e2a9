import json

import pytest

from conftest import BASE_TIME, make_check, make_definition
from uptime.errors import ReadError, WriteError
from uptime.models import CheckState
from uptime.registry import FileCheckRegistry


def test_list_checks_returns_stored_documents(tmp_path):
    registry = FileCheckRegistry(tmp_path)
    registry.save_check(make_definition(id="b"))
    registry.save_check(make_definition(id="a"))

    assert [doc["id"] for doc in registry.list_checks()] == ["a", "b"]


def test_list_checks_skips_unreadable_documents(tmp_path, caplog):
    registry = FileCheckRegistry(tmp_path)
    registry.save_check(make_definition(id="good"))
    (tmp_path / "broken.json").write_text("{not json", encoding="utf-8")
    (tmp_path / "list.json").write_text("[1, 2]", encoding="utf-8")

    documents = registry.list_checks()

    assert [doc["id"] for doc in documents] == ["good"]
    assert "monitor.registry.unreadable" in caplog.text
    assert "monitor.registry.not_a_mapping" in caplog.text


def test_list_checks_missing_directory_raises_read_error(tmp_path):
    with pytest.raises(ReadError):
        FileCheckRegistry(tmp_path / "missing").list_checks()


def test_write_check_only_updates_evaluated_fields(tmp_path):
    registry = FileCheckRegistry(tmp_path)
    registry.save_check(make_definition(extra="kept"))
    check = make_check()

    # The definition changes on disk between the read and the write-back.
    stored = registry.load_check("check-1")
    stored["contact"] = "5559876543"
    registry.save_check(stored)

    registry.write_check(check.evaluated(CheckState.DOWN, BASE_TIME))

    document = registry.load_check("check-1")
    assert document["state"] == "down"
    assert document["last_checked"] == BASE_TIME.isoformat()
    assert document["contact"] == "5559876543"
    assert document["extra"] == "kept"
    assert [path.name for path in tmp_path.iterdir()] == ["check-1.json"]


def test_write_check_for_deleted_check_fails(tmp_path):
    registry = FileCheckRegistry(tmp_path)

    with pytest.raises(WriteError):
        registry.write_check(make_check())


def test_write_check_rejects_corrupt_record(tmp_path):
    registry = FileCheckRegistry(tmp_path)
    (tmp_path / "check-1.json").write_text("[]", encoding="utf-8")

    with pytest.raises(WriteError):
        registry.write_check(make_check())


def test_save_check_accepts_check_instances(tmp_path):
    registry = FileCheckRegistry(tmp_path / "nested")
    path = registry.save_check(make_check(state="up"))

    document = json.loads(path.read_text(encoding="utf-8"))
    assert document["state"] == "up"
    assert document["method"] == "GET"


def test_save_check_requires_id(tmp_path):
    with pytest.raises(ValueError):
        FileCheckRegistry(tmp_path).save_check({"host": "example.com"})


def test_ids_differing_only_in_separators_keep_separate_records(tmp_path):
    registry = FileCheckRegistry(tmp_path)
    registry.save_check(make_definition(id="a/b", contact="5550000001"))
    registry.save_check(make_definition(id="a_b", contact="5550000002"))

    registry.write_check(make_check(id="a/b").evaluated(CheckState.DOWN, BASE_TIME))

    documents = {doc["id"]: doc for doc in registry.list_checks()}
    assert set(documents) == {"a/b", "a_b"}
    assert documents["a/b"]["state"] == "down"
    assert documents["a_b"]["state"] is None
    assert documents["a_b"]["contact"] == "5550000002"
    assert all(path.parent == tmp_path for path in tmp_path.iterdir())
