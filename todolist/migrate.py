"""One-shot copy of todos from the JSON file into the database table.

Original ids are dropped; the table assigns new ones. Only ``text`` and
``completed`` are carried over. Existing rows in the table are left alone.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from todolist.database import SqlTaskStore
from todolist.models import Task

logger = logging.getLogger(__name__)


class MigrationError(Exception):
    """The source could not be read or the insert failed."""


@dataclass(frozen=True)
class MigrationResult:
    inserted: list[Task]
    skipped: int

    @property
    def total(self) -> int:
        return len(self.inserted)

    @property
    def completed(self) -> int:
        return sum(1 for t in self.inserted if t.completed)

    @property
    def active(self) -> int:
        return self.total - self.completed


def read_source(path: Path) -> list[dict[str, Any]] | None:
    """Load records from the file store. None means there is no file."""
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None
    except OSError as exc:
        raise MigrationError(f"Error reading {path}: {exc}") from exc

    try:
        records = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise MigrationError(f"Error reading {path}: {exc}") from exc
    if not isinstance(records, list):
        raise MigrationError(f"Error reading {path}: expected a list of todos")
    return records


def prepare_rows(records: list[dict[str, Any]]) -> tuple[list[dict[str, Any]], int]:
    """Reduce records to ``{text, completed}`` rows, skipping unusable ones."""
    rows: list[dict[str, Any]] = []
    skipped = 0
    for record in records:
        text = record.get("text") if isinstance(record, dict) else None
        if not isinstance(text, str) or not text.strip():
            logger.warning("Skipping todo without text: %r", record)
            skipped += 1
            continue
        rows.append({"text": text.strip(), "completed": bool(record.get("completed", False))})
    return rows, skipped


def migrate(records: list[dict[str, Any]], store: SqlTaskStore) -> MigrationResult:
    """Insert the records into the table in a single transaction."""
    rows, skipped = prepare_rows(records)
    store.create_schema()
    inserted = store.bulk_create(rows)
    logger.info("Migrated %d todos (%d skipped)", len(inserted), skipped)
    return MigrationResult(inserted=inserted, skipped=skipped)
