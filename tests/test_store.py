"""Tests for the storage backends."""

import json
from pathlib import Path

import pytest

from todolist.database import SqlTaskStore
from todolist.errors import NotFound, StorageUnavailable
from todolist.models import TaskUpdate
from todolist.store import JsonFileStore, TaskStore


# ---- contract, run against every store ----


def test_create_and_get(store: TaskStore) -> None:
    task = store.create("write tests")
    assert task.text == "write tests"
    assert task.completed is False
    assert task.created_at is not None
    assert store.get(task.id) == task


def test_get_missing_returns_none(store: TaskStore) -> None:
    assert store.get(12345) is None


def test_list_all_is_creation_ordered(store: TaskStore) -> None:
    created = [store.create(f"task {i}") for i in range(5)]
    assert [t.id for t in store.list_all()] == [t.id for t in created]


def test_ids_are_unique(store: TaskStore) -> None:
    ids = [store.create("same text").id for _ in range(10)]
    assert len(set(ids)) == 10


def test_update_applies_only_supplied_fields(store: TaskStore) -> None:
    task = store.create("draft")

    done = store.update(task.id, TaskUpdate(completed=True))
    assert (done.text, done.completed) == ("draft", True)

    renamed = store.update(task.id, TaskUpdate(text="final"))
    assert (renamed.text, renamed.completed) == ("final", True)

    assert store.get(task.id) == renamed


def test_update_missing_raises_not_found(store: TaskStore) -> None:
    store.create("bystander")
    before = store.list_all()

    with pytest.raises(NotFound):
        store.update(999, TaskUpdate(text="nope"))
    with pytest.raises(NotFound):
        store.update(999, TaskUpdate())
    assert store.list_all() == before


def test_delete_is_idempotent(store: TaskStore) -> None:
    task = store.create("short-lived")
    keep = store.create("keeper")

    assert store.delete(task.id) is True
    assert store.delete(task.id) is False
    assert store.list_all() == [keep]


def test_clear(store: TaskStore) -> None:
    store.create("a")
    store.create("b")
    store.clear()
    assert store.list_all() == []


# ---- file store ----


def test_missing_file_starts_empty_and_is_created(data_file: Path) -> None:
    assert not data_file.exists()

    store = JsonFileStore(data_file)
    assert store.list_all() == []
    assert data_file.exists()
    assert json.loads(data_file.read_text()) == []


def test_file_layout(file_store: JsonFileStore, data_file: Path) -> None:
    task = file_store.create("persist me")

    records = json.loads(data_file.read_text())
    assert len(records) == 1
    assert records[0]["id"] == task.id
    assert records[0]["text"] == "persist me"
    assert records[0]["completed"] is False
    assert "created_at" in records[0]


def test_file_survives_restart(data_file: Path) -> None:
    first = JsonFileStore(data_file)
    task = first.create("still here")
    first.update(task.id, TaskUpdate(completed=True))

    second = JsonFileStore(data_file)
    [loaded] = second.list_all()
    assert loaded.text == "still here"
    assert loaded.completed is True


def test_ids_increase_past_existing_records(data_file: Path) -> None:
    future_id = 10**15
    data_file.write_text(json.dumps([{"id": future_id, "text": "legacy", "completed": False}]))

    task = JsonFileStore(data_file).create("next")
    assert task.id == future_id + 1


def test_legacy_records_without_timestamp(data_file: Path) -> None:
    data_file.write_text(json.dumps([{"id": 1, "text": "old", "completed": True}]))

    [task] = JsonFileStore(data_file).list_all()
    assert task.id == 1
    assert task.completed is True
    assert task.created_at is None


def test_corrupt_file_lists_empty_but_is_not_overwritten(data_file: Path) -> None:
    data_file.write_text("{definitely not json")
    store = JsonFileStore(data_file)

    assert store.list_all() == []
    with pytest.raises(StorageUnavailable):
        store.create("would clobber")
    with pytest.raises(StorageUnavailable):
        store.delete(1)
    assert data_file.read_text() == "{definitely not json"


def test_writes_leave_no_temp_files(file_store: JsonFileStore, tmp_path: Path) -> None:
    task = file_store.create("one")
    file_store.update(task.id, TaskUpdate(text="two"))
    file_store.delete(task.id)

    assert [p.name for p in tmp_path.iterdir()] == ["todos.json"]


def test_unwritable_location_raises_storage_unavailable(tmp_path: Path) -> None:
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("")
    store = JsonFileStore(blocker / "todos.json")

    with pytest.raises(StorageUnavailable):
        store.create("nowhere to go")


# ---- database store ----


def test_bulk_create_keeps_order(sql_store: SqlTaskStore) -> None:
    existing = sql_store.create("already there")

    inserted = sql_store.bulk_create(
        [{"text": "first", "completed": True}, {"text": "second", "completed": False}]
    )
    assert [(t.text, t.completed) for t in inserted] == [("first", True), ("second", False)]
    assert all(t.id > existing.id for t in inserted)
    assert [t.text for t in sql_store.list_all()] == ["already there", "first", "second"]


def test_bulk_create_empty(sql_store: SqlTaskStore) -> None:
    assert sql_store.bulk_create([]) == []


def test_create_schema_is_repeatable(sql_store: SqlTaskStore) -> None:
    sql_store.create("survives")
    sql_store.create_schema()
    assert [t.text for t in sql_store.list_all()] == ["survives"]


def test_unreachable_database_raises_storage_unavailable(tmp_path: Path) -> None:
    store = SqlTaskStore(f"sqlite:///{tmp_path / 'missing' / 'dir' / 'todos.db'}")

    with pytest.raises(StorageUnavailable):
        store.list_all()
    with pytest.raises(StorageUnavailable):
        store.create("nope")
    store.close()


def test_sql_store_requires_url_or_engine() -> None:
    with pytest.raises(ValueError):
        SqlTaskStore()


def test_out_of_range_id_is_a_miss(store: TaskStore) -> None:
    huge = 10**20
    store.create("bystander")

    assert store.get(huge) is None
    with pytest.raises(NotFound):
        store.update(huge, TaskUpdate(completed=True))
    assert store.delete(huge) is False
    assert [t.text for t in store.list_all()] == ["bystander"]


def test_malformed_record_does_not_hide_the_rest(data_file: Path) -> None:
    data_file.write_text(
        json.dumps(
            [
                {"id": 1, "text": "good", "completed": False},
                {"id": 2, "text": "bad", "completed": None},
            ]
        )
    )
    store = JsonFileStore(data_file)

    assert [t.id for t in store.list_all()] == [1]

    created = store.create("new one")
    assert [t.id for t in store.list_all()] == [1, created.id]
    assert store.get(2) is None
    with pytest.raises(NotFound):
        store.update(2, TaskUpdate(completed=True))

    assert store.delete(2) is True
    assert [r["id"] for r in json.loads(data_file.read_text())] == [1, created.id]
