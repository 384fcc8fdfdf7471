"""Relational task storage on SQLAlchemy.

One row per task in the ``todos`` table. Works against SQLite locally and a
hosted database (e.g. PostgreSQL) in production; ids and ordering come from
the table.
"""

import logging
from collections.abc import Iterable
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Engine,
    Integer,
    MetaData,
    Table,
    Text,
    create_engine,
    delete,
    insert,
    select,
    update,
)
from sqlalchemy.exc import SQLAlchemyError

from todolist.errors import NotFound, StorageUnavailable
from todolist.models import Task, TaskUpdate
from todolist.store import TaskStore

logger = logging.getLogger(__name__)

metadata = MetaData()

todos = Table(
    "todos",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("text", Text, nullable=False),
    Column("completed", Boolean, nullable=False, default=False),
    Column("created_at", DateTime(timezone=True), nullable=False),
)


# Range of the ``id`` column (32-bit INTEGER on PostgreSQL); ids outside it
# can never be stored, so lookups for them are misses.
_ID_MIN = -(2**31)
_ID_MAX = 2**31 - 1


def _now() -> datetime:
    return datetime.now(UTC)


def _storable_id(task_id: int) -> bool:
    return _ID_MIN <= task_id <= _ID_MAX


class SqlTaskStore(TaskStore):
    """Task storage backed by a database table.

    Each call runs in its own short transaction; the engine pools
    connections.
    """

    kind = "database"

    def __init__(self, url: str | None = None, *, engine: Engine | None = None) -> None:
        if engine is None:
            if not url:
                raise ValueError("either url or engine is required")
            engine = create_engine(url)
        self._engine = engine

    @property
    def engine(self) -> Engine:
        return self._engine

    def create_schema(self) -> None:
        """Create the ``todos`` table if it does not exist."""
        try:
            metadata.create_all(self._engine)
        except SQLAlchemyError as exc:
            logger.error("Failed to create schema: %s", exc)
            raise StorageUnavailable("Database is unavailable") from exc
        logger.info(
            "SqlTaskStore ready url=%s",
            self._engine.url.render_as_string(hide_password=True),
        )

    def prepare(self) -> None:
        self.create_schema()

    def close(self) -> None:
        self._engine.dispose()

    @staticmethod
    def _row_to_task(row: Any) -> Task:
        return Task.model_validate(dict(row._mapping))

    # ---- public API ----

    def list_all(self) -> list[Task]:
        stmt = select(todos).order_by(todos.c.created_at, todos.c.id)
        try:
            with self._engine.connect() as conn:
                rows = conn.execute(stmt).all()
        except SQLAlchemyError as exc:
            logger.error("Failed to list todos: %s", exc)
            raise StorageUnavailable("Failed to load todos") from exc
        return [self._row_to_task(r) for r in rows]

    def get(self, task_id: int) -> Task | None:
        if not _storable_id(task_id):
            return None
        try:
            with self._engine.connect() as conn:
                row = conn.execute(select(todos).where(todos.c.id == task_id)).first()
        except SQLAlchemyError as exc:
            logger.error("Failed to load todo id=%s: %s", task_id, exc)
            raise StorageUnavailable("Failed to load todo") from exc
        return None if row is None else self._row_to_task(row)

    def create(self, text: str) -> Task:
        stmt = (
            insert(todos)
            .values(text=text, completed=False, created_at=_now())
            .returning(*todos.c)
        )
        try:
            with self._engine.begin() as conn:
                row = conn.execute(stmt).one()
        except SQLAlchemyError as exc:
            logger.error("Failed to create todo: %s", exc)
            raise StorageUnavailable("Failed to create todo") from exc
        task = self._row_to_task(row)
        logger.debug("Task created id=%s", task.id)
        return task

    def bulk_create(self, records: Iterable[dict[str, Any]]) -> list[Task]:
        """Insert many ``{text, completed}`` records in one transaction."""
        now = _now()
        rows = [
            {"text": r["text"], "completed": bool(r.get("completed", False)), "created_at": now}
            for r in records
        ]
        if not rows:
            return []
        stmt = insert(todos).returning(*todos.c, sort_by_parameter_order=True)
        try:
            with self._engine.begin() as conn:
                result = conn.execute(stmt, rows).all()
        except SQLAlchemyError as exc:
            logger.error("Failed to insert %d todos: %s", len(rows), exc)
            raise StorageUnavailable("Failed to insert todos") from exc
        return [self._row_to_task(r) for r in result]

    def update(self, task_id: int, data: TaskUpdate) -> Task:
        if not _storable_id(task_id):
            raise NotFound("Todo not found")
        changes = data.changes()
        try:
            with self._engine.begin() as conn:
                if changes:
                    result = conn.execute(
                        update(todos).where(todos.c.id == task_id).values(**changes)
                    )
                    if result.rowcount == 0:
                        raise NotFound("Todo not found")
                row = conn.execute(select(todos).where(todos.c.id == task_id)).first()
        except SQLAlchemyError as exc:
            logger.error("Failed to update todo id=%s: %s", task_id, exc)
            raise StorageUnavailable("Failed to update todo") from exc
        if row is None:
            raise NotFound("Todo not found")
        logger.debug("Task updated id=%s fields=%s", task_id, sorted(changes))
        return self._row_to_task(row)

    def delete(self, task_id: int) -> bool:
        if not _storable_id(task_id):
            return False
        try:
            with self._engine.begin() as conn:
                result = conn.execute(delete(todos).where(todos.c.id == task_id))
        except SQLAlchemyError as exc:
            logger.error("Failed to delete todo id=%s: %s", task_id, exc)
            raise StorageUnavailable("Failed to delete todo") from exc
        removed = result.rowcount > 0
        logger.debug("Task delete id=%s removed=%s", task_id, removed)
        return removed

    def clear(self) -> None:
        try:
            with self._engine.begin() as conn:
                conn.execute(delete(todos))
        except SQLAlchemyError as exc:
            raise StorageUnavailable("Failed to clear todos") from exc
