"""Centralized settings loaded from ``TODO_*`` environment variables.

One frozen ``Settings`` object for the whole app; nothing is read at import
time beyond what ``get_settings()`` asks for.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from todolist.store import TaskStore

ENV_PREFIX = "TODO"

STORAGE_KINDS = ("file", "database")


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str) -> str:
    v = os.getenv(name)
    return default if v is None or v.strip() == "" else v.strip()


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_list(name: str, default: list[str]) -> list[str]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return list(default)
    return [p.strip() for p in raw.replace(",", " ").split() if p.strip()]


@dataclass(frozen=True, slots=True)
class Settings:
    storage: str = "file"
    data_file: Path = Path("todos.json")
    database_url: str = "sqlite:///todos.sqlite3"

    host: str = "127.0.0.1"
    port: int = 3000
    cors_origins: list[str] = field(default_factory=lambda: ["http://localhost:3000"])

    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if self.storage not in STORAGE_KINDS:
            raise ValueError(
                f"Unknown storage {self.storage!r}; expected one of {', '.join(STORAGE_KINDS)}"
            )

    @staticmethod
    def from_env() -> Settings:
        return Settings(
            storage=_env(_k("STORAGE"), "file").lower(),
            data_file=Path(_env(_k("DATA_FILE"), "todos.json")).expanduser(),
            database_url=_env(_k("DATABASE_URL"), "sqlite:///todos.sqlite3"),
            host=_env(_k("HOST"), "127.0.0.1"),
            port=_env_int(_k("PORT"), 3000),
            cors_origins=_env_list(_k("CORS_ORIGINS"), ["http://localhost:3000"]),
            log_level=_env(_k("LOG_LEVEL"), "INFO").upper(),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_env()


def build_store(settings: Settings) -> TaskStore:
    """Instantiate the store the settings ask for."""
    if settings.storage == "database":
        from todolist.database import SqlTaskStore

        return SqlTaskStore(settings.database_url)

    from todolist.store import JsonFileStore

    return JsonFileStore(settings.data_file)
