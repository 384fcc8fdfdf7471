"""Pytest fixtures for the todo list tests."""

from collections.abc import Iterator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from todolist.config import Settings
from todolist.database import SqlTaskStore
from todolist.main import create_app
from todolist.store import JsonFileStore, TaskStore


@pytest.fixture
def data_file(tmp_path: Path) -> Path:
    return tmp_path / "todos.json"


@pytest.fixture
def file_store(data_file: Path) -> JsonFileStore:
    return JsonFileStore(data_file)


@pytest.fixture
def database_url(tmp_path: Path) -> str:
    return f"sqlite:///{tmp_path / 'todos.sqlite3'}"


@pytest.fixture
def sql_store(database_url: str) -> Iterator[SqlTaskStore]:
    store = SqlTaskStore(database_url)
    store.create_schema()
    yield store
    store.close()


@pytest.fixture(params=["file", "database"])
def store(request: pytest.FixtureRequest) -> TaskStore:
    """Each store variant in turn."""
    if request.param == "file":
        return request.getfixturevalue("file_store")
    return request.getfixturevalue("sql_store")


@pytest.fixture
def client(store: TaskStore) -> TestClient:
    """Create a test client for the API."""
    return TestClient(create_app(Settings(storage=store.kind), store=store))
