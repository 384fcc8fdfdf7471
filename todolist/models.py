"""Pydantic models for the todo list API.

``Task`` is both the stored record and the wire representation; the
``*Response`` models are the uniform envelopes every endpoint returns.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class TaskCreate(BaseModel):
    """Request body for creating a new task."""

    text: str = Field(default="", description="The task text (required, trimmed)")

    @field_validator("text", mode="before")
    @classmethod
    def strip_text(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value


class TaskUpdate(BaseModel):
    """Request body for a partial update.

    A field that is missing or ``null`` is treated as not supplied.
    """

    text: str | None = Field(default=None, description="New text for the task")
    completed: bool | None = Field(default=None, description="New completion status")

    @field_validator("text", mode="before")
    @classmethod
    def strip_text(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value

    def changes(self) -> dict[str, Any]:
        """Return only the fields the caller supplied."""
        return self.model_dump(exclude_none=True)


class Task(BaseModel):
    """A task item in the list."""

    model_config = ConfigDict(from_attributes=True)

    id: int = Field(..., description="Unique identifier for the task")
    text: str = Field(..., description="The task text")
    completed: bool = Field(default=False, description="Whether the task has been completed")
    created_at: datetime | None = Field(default=None, description="When the task was created")


class TaskListResponse(BaseModel):
    """Envelope for the full todo list."""

    success: bool = True
    todos: list[Task]


class TaskResponse(BaseModel):
    """Envelope for a single todo."""

    success: bool = True
    todo: Task


class AckResponse(BaseModel):
    """Envelope for operations that return no data."""

    success: bool = True


class ErrorResponse(BaseModel):
    """Envelope for every failed request."""

    success: bool = False
    error: str


class HealthResponse(BaseModel):
    """Response from the health check endpoint."""

    status: str = "healthy"
    version: str = "1.0.0"
    storage: str = "file"
