"""
Tests for StatusStore naming and write primitives.

Checklist:
- Path is <directory>/<item>.<task>.status
- create_if_absent creates once, never replaces
- overwrite replaces the whole file and never creates
- No private files are left behind
- iter_records reports unparseable markers
"""

import pytest

from blackboard.exceptions import StatusRecordError
from blackboard.fsutils import link_exclusive, write_private_file
from blackboard.schema import StatusRecord
from blackboard.status_store import create_status_store


def _record(message="started", item="report", task="preprocessing"):
    return StatusRecord.create(host="node07", pid=4312, item=item, task=task, message=message)


@pytest.fixture
def store(blackboard_dir):
    return create_status_store(blackboard_dir)


def test_path_for(store, blackboard_dir):
    assert store.path_for("report", "preprocessing") == blackboard_dir / "report.preprocessing.status"


@pytest.mark.parametrize(
    "item, task",
    [("", "t"), ("a", ""), ("a/b", "t"), ("..", "t"), ("a", "x/y"), ("a|b", "t")],
)
def test_path_for_rejects_bad_identifiers(store, item, task):
    with pytest.raises(ValueError):
        store.path_for(item, task)


def test_create_if_absent_creates_once(store, leftovers):
    assert store.exists("report", "preprocessing") is False

    assert store.create_if_absent(_record("first")) is True
    assert store.create_if_absent(_record("second")) is False
    assert store.exists("report", "preprocessing") is True

    assert store.read("report", "preprocessing").message == "first"
    assert leftovers() == []


def test_create_if_absent_respects_empty_marker(store, blackboard_dir):
    (blackboard_dir / "report.preprocessing.status").touch()

    assert store.create_if_absent(_record()) is False
    assert (blackboard_dir / "report.preprocessing.status").read_text() == ""


def test_overwrite_replaces_whole_content(store, blackboard_dir, leftovers):
    store.create_if_absent(_record("a much longer starting message"))

    assert store.overwrite(_record("done")) is True

    content = (blackboard_dir / "report.preprocessing.status").read_text()
    assert content.count("\n") == 1
    assert content.endswith("|report|preprocessing|done\n")
    assert "starting" not in content
    assert leftovers() == []


def test_overwrite_never_creates(store, blackboard_dir):
    assert store.overwrite(_record("done")) is False
    assert not (blackboard_dir / "report.preprocessing.status").exists()


def test_read_missing_and_malformed(store, blackboard_dir):
    assert store.read("report", "preprocessing") is None

    (blackboard_dir / "report.preprocessing.status").write_text("not a record\n")
    with pytest.raises(StatusRecordError):
        store.read("report", "preprocessing")


def test_iter_records(store, blackboard_dir):
    store.create_if_absent(_record(item="a"))
    store.create_if_absent(_record(item="b", task="postprocessing"))
    (blackboard_dir / "c.preprocessing.status").touch()
    (blackboard_dir / "lockfile").write_text("{}")
    (blackboard_dir / ".hidden.status").write_text("x")

    found = {path.name: record for path, record in store.iter_records()}

    assert set(found) == {"a.preprocessing.status", "b.postprocessing.status", "c.preprocessing.status"}
    assert found["a.preprocessing.status"].item == "a"
    assert found["b.postprocessing.status"].task == "postprocessing"
    assert found["c.preprocessing.status"] is None


def test_link_exclusive(blackboard_dir):
    first = write_private_file(blackboard_dir, "target", "one")
    second = write_private_file(blackboard_dir, "target", "two")
    target = blackboard_dir / "target"

    assert link_exclusive(first, target) is True
    assert link_exclusive(second, target) is False
    assert target.read_text() == "one"


def test_read_binary_marker(store, blackboard_dir):
    (blackboard_dir / "report.preprocessing.status").write_bytes(b"\xff\xfe\x00garbage")

    with pytest.raises(StatusRecordError):
        store.read("report", "preprocessing")
