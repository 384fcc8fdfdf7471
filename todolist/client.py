"""HTTP client for the todo list API."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from todolist.models import Task

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """The API answered with a failure envelope or could not be reached."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class TodoClient:
    """
    Thin wrapper over the REST endpoints.

    Pass either a ``base_url`` or a ready ``httpx.Client`` (for example
    FastAPI's ``TestClient``). Every call returns parsed ``Task`` objects or
    raises ``ApiError``.
    """

    def __init__(
        self,
        base_url: str = "http://127.0.0.1:3000",
        *,
        http_client: httpx.Client | None = None,
        timeout: float = 10.0,
    ) -> None:
        self._owns_client = http_client is None
        self._http = http_client or httpx.Client(base_url=base_url, timeout=timeout)

    def close(self) -> None:
        if self._owns_client:
            self._http.close()

    def __enter__(self) -> TodoClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _request(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        try:
            response = self._http.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            raise ApiError(f"Request failed: {exc}") from exc

        try:
            data = response.json()
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            data = {}

        if response.is_error or not data.get("success", False):
            message = data.get("error") or f"Request failed with status {response.status_code}"
            raise ApiError(message, status_code=response.status_code)
        return data

    def list_todos(self) -> list[Task]:
        data = self._request("GET", "/api/todos")
        return [Task.model_validate(t) for t in data.get("todos", [])]

    def get_todo(self, todo_id: int) -> Task:
        data = self._request("GET", f"/api/todos/{todo_id}")
        return Task.model_validate(data["todo"])

    def create_todo(self, text: str) -> Task:
        data = self._request("POST", "/api/todos", json={"text": text})
        return Task.model_validate(data["todo"])

    def update_todo(
        self,
        todo_id: int,
        *,
        text: str | None = None,
        completed: bool | None = None,
    ) -> Task:
        body: dict[str, Any] = {}
        if text is not None:
            body["text"] = text
        if completed is not None:
            body["completed"] = completed
        data = self._request("PUT", f"/api/todos/{todo_id}", json=body)
        return Task.model_validate(data["todo"])

    def delete_todo(self, todo_id: int) -> None:
        self._request("DELETE", f"/api/todos/{todo_id}")
