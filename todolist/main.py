"""FastAPI application entry point."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Annotated

from fastapi import Depends, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from todolist import __version__
from todolist.config import Settings, build_store, get_settings
from todolist.errors import NotFound, TodoError, ValidationError
from todolist.models import (
    AckResponse,
    ErrorResponse,
    HealthResponse,
    TaskCreate,
    TaskListResponse,
    TaskResponse,
    TaskUpdate,
)
from todolist.store import TaskStore

logger = logging.getLogger(__name__)

STATIC_DIR = Path(__file__).parent / "static"

_ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


def get_store(request: Request) -> TaskStore:
    return request.app.state.store


StoreDep = Annotated[TaskStore, Depends(get_store)]


def _envelope(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=message).model_dump(),
    )


def _describe_validation(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p not in ("body", "path", "query"))
        parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return "; ".join(parts) or "Invalid request"


def _install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(TodoError)
    async def todo_error_handler(request: Request, exc: TodoError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return _envelope(exc.status_code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return _envelope(status.HTTP_400_BAD_REQUEST, _describe_validation(exc))

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return _envelope(exc.status_code, str(exc.detail))

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return _envelope(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")


def _install_routes(app: FastAPI) -> None:
    @app.get("/api/health", response_model=HealthResponse, tags=["System"])
    def health_check(store: StoreDep) -> HealthResponse:
        """Health check endpoint."""
        return HealthResponse(version=__version__, storage=store.kind)

    @app.get(
        "/api/todos",
        response_model=TaskListResponse,
        responses=_ERROR_RESPONSES,
        tags=["Todos"],
    )
    def list_todos(store: StoreDep) -> TaskListResponse:
        """List all todos, oldest first."""
        return TaskListResponse(todos=store.list_all())

    @app.post(
        "/api/todos",
        response_model=TaskResponse,
        status_code=status.HTTP_201_CREATED,
        responses=_ERROR_RESPONSES,
        tags=["Todos"],
    )
    def create_todo(data: TaskCreate, store: StoreDep) -> TaskResponse:
        """Create a new todo."""
        if not data.text:
            raise ValidationError("Text is required")
        return TaskResponse(todo=store.create(data.text))

    @app.get(
        "/api/todos/{todo_id}",
        response_model=TaskResponse,
        responses=_ERROR_RESPONSES,
        tags=["Todos"],
    )
    def get_todo(todo_id: int, store: StoreDep) -> TaskResponse:
        """Get a specific todo by ID."""
        task = store.get(todo_id)
        if task is None:
            raise NotFound("Todo not found")
        return TaskResponse(todo=task)

    @app.put(
        "/api/todos/{todo_id}",
        response_model=TaskResponse,
        responses=_ERROR_RESPONSES,
        tags=["Todos"],
    )
    def update_todo(todo_id: int, data: TaskUpdate, store: StoreDep) -> TaskResponse:
        """Update the supplied fields of an existing todo."""
        if data.text is not None and not data.text:
            raise ValidationError("Text cannot be empty")
        return TaskResponse(todo=store.update(todo_id, data))

    @app.delete(
        "/api/todos/{todo_id}",
        response_model=AckResponse,
        responses=_ERROR_RESPONSES,
        tags=["Todos"],
    )
    def delete_todo(todo_id: int, store: StoreDep) -> AckResponse:
        """Delete a todo. Deleting an unknown id also succeeds."""
        store.delete(todo_id)
        return AckResponse()


def create_app(settings: Settings | None = None, store: TaskStore | None = None) -> FastAPI:
    """Build the application around a store.

    Without an explicit store, the one named by ``settings`` is used.
    """
    settings = settings or get_settings()
    if store is None:
        store = build_store(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        app.state.store.prepare()
        try:
            yield
        finally:
            app.state.store.close()

    app = FastAPI(
        title="Todo List API",
        description="A minimal task list with file or database storage.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.store = store
    app.state.settings = settings

    # Configure CORS for frontend access
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    _install_error_handlers(app)
    _install_routes(app)

    if STATIC_DIR.is_dir():
        app.mount("/", StaticFiles(directory=STATIC_DIR, html=True), name="static")

    logger.debug("App created storage=%s", store.kind)
    return app


app = create_app()
