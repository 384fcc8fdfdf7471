"""Task storage.

``TaskStore`` is the contract the API works against. ``JsonFileStore`` keeps
the whole collection in a single JSON file; the database-backed variant lives
in :mod:`todolist.database`.
"""

import json
import logging
import os
import tempfile
import time
from abc import ABC, abstractmethod
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from todolist.errors import NotFound, StorageUnavailable
from todolist.models import Task, TaskUpdate

logger = logging.getLogger(__name__)


class TaskStore(ABC):
    """CRUD over the task collection."""

    kind: str = "abstract"

    @abstractmethod
    def list_all(self) -> list[Task]:
        """Return all tasks in creation order (oldest first)."""

    @abstractmethod
    def get(self, task_id: int) -> Task | None:
        """Get a task by its ID, or None if not found."""

    @abstractmethod
    def create(self, text: str) -> Task:
        """Create a new, not yet completed task and return it."""

    @abstractmethod
    def update(self, task_id: int, data: TaskUpdate) -> Task:
        """Apply the supplied fields. Raises NotFound for an unknown id."""

    @abstractmethod
    def delete(self, task_id: int) -> bool:
        """Delete a task. Returns True if deleted, False if it did not exist."""

    @abstractmethod
    def clear(self) -> None:
        """Remove every task."""

    def prepare(self) -> None:
        """Get the medium ready for use. Called once at startup."""

    def close(self) -> None:
        """Release resources held by the store."""


class _CorruptFile(Exception):
    pass


class JsonFileStore(TaskStore):
    """Task storage backed by one JSON file.

    The file holds a list of task records. Every mutation reads the whole
    collection, changes it, and replaces the file. There is no locking, so
    two processes writing at once can lose an update.
    """

    kind = "file"

    def __init__(self, path: str | Path = "todos.json") -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    # ---- low-level helpers ----

    def _read(self) -> list[dict[str, Any]]:
        try:
            raw = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.info("No data file at %s; starting empty", self._path)
            self._write([])
            return []
        except OSError as exc:
            logger.error("Failed to read %s: %s", self._path, exc)
            raise StorageUnavailable("Failed to load todos") from exc

        try:
            records = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise _CorruptFile(str(exc)) from exc
        if not isinstance(records, list):
            raise _CorruptFile("top-level value is not a list")
        return records

    def _read_for_update(self) -> list[dict[str, Any]]:
        # A damaged file is left alone rather than overwritten with a
        # near-empty collection.
        try:
            return self._read()
        except _CorruptFile as exc:
            logger.error("Refusing to modify unreadable %s: %s", self._path, exc)
            raise StorageUnavailable("Todo file is corrupt") from exc

    def _write(self, records: list[dict[str, Any]]) -> None:
        payload = json.dumps(records, indent=2)
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self._path.name}.", suffix=".tmp", dir=self._path.parent
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    fh.write(payload)
                os.replace(tmp_name, self._path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            logger.error("Failed to write %s: %s", self._path, exc)
            raise StorageUnavailable("Failed to save todos") from exc

    @staticmethod
    def _to_task(record: dict[str, Any]) -> Task:
        return Task.model_validate(record)

    @staticmethod
    def _to_record(task: Task) -> dict[str, Any]:
        return task.model_dump(mode="json")

    @staticmethod
    def _id_of(record: Any) -> int | None:
        if isinstance(record, dict) and isinstance(record.get("id"), int):
            return record["id"]
        return None

    @classmethod
    def _next_id(cls, records: list[dict[str, Any]]) -> int:
        now_ms = time.time_ns() // 1_000_000
        last = max((i for i in map(cls._id_of, records) if i is not None), default=0)
        return max(now_ms, last + 1)

    @classmethod
    def _index_of(cls, records: list[dict[str, Any]], task_id: int) -> int | None:
        for i, record in enumerate(records):
            if cls._id_of(record) == task_id:
                return i
        return None

    # ---- public API ----

    def list_all(self) -> list[Task]:
        try:
            records = self._read()
        except _CorruptFile as exc:
            logger.error("Error reading todos from %s: %s", self._path, exc)
            return []
        tasks = []
        for record in records:
            try:
                tasks.append(self._to_task(record))
            except PydanticValidationError as exc:
                logger.error("Skipping malformed todo record in %s: %s", self._path, exc)
        return tasks

    def get(self, task_id: int) -> Task | None:
        for task in self.list_all():
            if task.id == task_id:
                return task
        return None

    def create(self, text: str) -> Task:
        records = self._read_for_update()
        task = Task(
            id=self._next_id(records),
            text=text,
            completed=False,
            created_at=datetime.now(UTC),
        )
        records.append(self._to_record(task))
        self._write(records)
        logger.debug("Task created id=%s", task.id)
        return task

    def update(self, task_id: int, data: TaskUpdate) -> Task:
        records = self._read_for_update()
        index = self._index_of(records, task_id)
        if index is None:
            raise NotFound("Todo not found")

        try:
            task = self._to_task(records[index])
        except PydanticValidationError as exc:
            # Not listed by list_all, so not updatable either.
            logger.error("Cannot update malformed todo id=%s: %s", task_id, exc)
            raise NotFound("Todo not found") from exc
        changes = data.changes()
        if not changes:
            return task

        updated = task.model_copy(update=changes)
        records[index] = self._to_record(updated)
        self._write(records)
        logger.debug("Task updated id=%s fields=%s", task_id, sorted(changes))
        return updated

    def delete(self, task_id: int) -> bool:
        records = self._read_for_update()
        remaining = [r for r in records if self._id_of(r) != task_id]
        removed = len(remaining) != len(records)
        if removed:
            self._write(remaining)
        logger.debug("Task delete id=%s removed=%s", task_id, removed)
        return removed

    def clear(self) -> None:
        self._write([])
