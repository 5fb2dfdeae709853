"""Unit tests for tasks/store.py -- TaskStore document operations.

Covers:
- insert_one() assigns sequential IDs and drops client-supplied _id
- find_by_id() / find_all() return stored documents unchanged
- delete_by_id() reports deleted_count for hit and miss
- update_status() reports matched/modified counts and is idempotent
- update_status() never overwrites an edit made between its read and write
- parse_task_id() accepts positive decimal integers only
"""

import json

import pytest
from sqlalchemy import event, text

from core.errors import StorageFault
from core.models import DeleteResult, InsertResult, UpdateResult
from tasks.models import STATUS_COMPLETE
from tasks.store import TaskStore, parse_task_id


@pytest.fixture
def store():
    s = TaskStore("sqlite:///:memory:")
    yield s
    s.close()


def test_insert_assigns_ids(store):
    first = store.insert_one({"title": "a"})
    second = store.insert_one({"title": "b"})
    assert isinstance(first, InsertResult)
    assert first.acknowledged is True
    assert second.inserted_id > first.inserted_id
    assert store.count() == 2


def test_insert_drops_client_id(store):
    result = store.insert_one({"_id": 77, "title": "mine"})
    task = store.find_by_id(result.inserted_id)
    assert task.document == {"title": "mine"}
    assert task.to_document() == {"_id": result.inserted_id, "title": "mine"}


def test_find_by_id_missing(store):
    assert store.find_by_id(12345) is None


def test_find_all_insertion_order(store):
    ids = [store.insert_one({"title": t}).inserted_id for t in ("x", "y", "z")]
    tasks = store.find_all()
    assert [t.id for t in tasks] == ids
    assert [t.document["title"] for t in tasks] == ["x", "y", "z"]
    assert all(t.created_at for t in tasks)


def test_nested_document_survives(store):
    doc = {"title": "nested", "meta": {"owner": "ada", "points": [1, 2, 3]}, "done": False}
    task_id = store.insert_one(doc).inserted_id
    assert store.find_by_id(task_id).document == doc


def test_delete(store):
    task_id = store.insert_one({"title": "gone"}).inserted_id
    assert store.delete_by_id(task_id) == DeleteResult(deleted_count=1)
    assert store.delete_by_id(task_id) == DeleteResult(deleted_count=0)
    assert store.find_by_id(task_id) is None


def test_update_status_idempotent(store):
    task_id = store.insert_one({"title": "t", "status": "open"}).inserted_id

    assert store.update_status(task_id, STATUS_COMPLETE) == UpdateResult(matched_count=1, modified_count=1)
    after_first = store.find_by_id(task_id).document

    assert store.update_status(task_id, STATUS_COMPLETE) == UpdateResult(matched_count=1, modified_count=0)
    assert store.find_by_id(task_id).document == after_first == {"title": "t", "status": "complete"}


def test_update_status_missing(store):
    assert store.update_status(999, STATUS_COMPLETE) == UpdateResult(matched_count=0, modified_count=0)


@pytest.fixture
def file_stores(tmp_path):
    """Two stores over one SQLite file, standing in for two server workers."""
    url = f"sqlite:///{tmp_path / 'tasks.db'}"
    mine, theirs = TaskStore(url), TaskStore(url)
    yield mine, theirs
    mine.close()
    theirs.close()


def _edit_between_read_and_write(store, other, edits):
    """After each document read on store, rewrite the row through other.

    edits is a list of documents; one is written per read until it runs out.
    """
    pending = list(edits)

    def after_execute(conn, cursor, statement, parameters, context, executemany):
        if pending and statement.startswith("SELECT tasks.document"):
            task_id = parameters[0]
            with other.engine.begin() as other_conn:
                other_conn.execute(
                    text("UPDATE tasks SET document = :doc WHERE id = :id"),
                    {"doc": json.dumps(pending.pop(0)), "id": task_id},
                )

    event.listen(store.engine, "after_cursor_execute", after_execute)


def test_update_status_keeps_concurrent_edit(file_stores):
    store, other = file_stores
    task_id = store.insert_one({"title": "race", "status": "open"}).inserted_id
    _edit_between_read_and_write(store, other, [{"title": "race", "status": "open", "note": "edited"}])

    assert store.update_status(task_id, STATUS_COMPLETE) == UpdateResult(matched_count=1, modified_count=1)
    assert store.find_by_id(task_id).document == {"title": "race", "status": "complete", "note": "edited"}


def test_update_status_sees_concurrent_completion(file_stores):
    store, other = file_stores
    task_id = store.insert_one({"title": "race", "status": "open"}).inserted_id
    _edit_between_read_and_write(store, other, [{"title": "race", "status": STATUS_COMPLETE}])

    assert store.update_status(task_id, STATUS_COMPLETE) == UpdateResult(matched_count=1, modified_count=0)


def test_update_status_gives_up_on_constant_churn(file_stores):
    store, other = file_stores
    task_id = store.insert_one({"title": "churn", "status": "open"}).inserted_id
    _edit_between_read_and_write(store, other, [{"title": "churn", "status": "open", "rev": n} for n in range(10)])

    with pytest.raises(StorageFault):
        store.update_status(task_id, STATUS_COMPLETE)
    assert store.find_by_id(task_id).document["status"] == "open"


def test_ping(store):
    assert store.ping() is True


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("1", 1),
        ("42", 42),
        (" 7 ", 7),
        ("0", None),
        ("-1", None),
        ("abc", None),
        ("1.5", None),
        ("", None),
        ("٣", None),  # non-ASCII digit
        (str(2**63), None),
    ],
)
def test_parse_task_id(raw, expected):
    assert parse_task_id(raw) == expected
