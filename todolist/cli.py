"""Command-line entry point.

Usage:
    todolist serve                  # Start the API and browser client
    todolist shell                  # Terminal client against a running server
    todolist migrate                # Copy todos.json into the database
"""

from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape

from todolist.config import Settings, get_settings
from todolist.errors import StorageUnavailable
from todolist.logging_setup import setup_logging

console = Console()


@click.group()
@click.option("--log-level", default=None, help="Override TODO_LOG_LEVEL")
@click.pass_context
def main(ctx: click.Context, log_level: str | None) -> None:
    """Minimal task list manager."""
    settings = get_settings()
    setup_logging(log_level or settings.log_level)
    ctx.obj = settings


@main.command()
@click.option("--host", default=None, help="Host to bind to (default: TODO_HOST)")
@click.option("--port", default=None, type=int, help="Port to listen on (default: TODO_PORT)")
@click.pass_obj
def serve(settings: Settings, host: str | None, port: int | None) -> None:
    """Start the HTTP server."""
    import uvicorn

    from todolist.main import create_app

    host = host or settings.host
    port = port or settings.port
    app = create_app(settings)

    console.print(f"[bold green]Todo app running at http://{host}:{port}[/bold green]")
    console.print(f"   Storage: {settings.storage}")
    console.print("[dim]Press Ctrl+C to stop[/dim]")

    uvicorn.run(app, host=host, port=port, log_level=settings.log_level.lower())


@main.command()
@click.option("--url", default=None, help="API base URL (default: from TODO_HOST/TODO_PORT)")
@click.pass_obj
def shell(settings: Settings, url: str | None) -> None:
    """Interactive terminal client."""
    from todolist.client import TodoClient
    from todolist.tui import TodoBoard

    base_url = url or f"http://{settings.host}:{settings.port}"
    with TodoClient(base_url) as client:
        TodoBoard(client, console).run()


@main.command()
@click.option(
    "--source",
    type=click.Path(path_type=Path, dir_okay=False),
    default=None,
    help="JSON file to read (default: TODO_DATA_FILE)",
)
@click.option(
    "--database-url",
    envvar="TODO_DATABASE_URL",
    default=None,
    help="Target database URL (or set TODO_DATABASE_URL)",
)
@click.pass_obj
def migrate(settings: Settings, source: Path | None, database_url: str | None) -> None:
    """Copy every todo from the JSON file into the database table.

    Original ids are dropped and the database assigns new ones. Existing
    rows are not touched, so running this twice inserts duplicates.
    """
    from sqlalchemy.exc import SQLAlchemyError

    from todolist.database import SqlTaskStore
    from todolist.migrate import MigrationError, migrate as run_migration, read_source

    source = source or settings.data_file
    if not database_url:
        console.print("[red]ERROR: Missing database URL[/red]")
        console.print("   Set TODO_DATABASE_URL or pass --database-url")
        raise SystemExit(1)

    console.print(f"Starting migration from {source} to the database...\n")

    try:
        records = read_source(source)
    except MigrationError as exc:
        console.print(f"[red]{escape(str(exc))}[/red]")
        raise SystemExit(1) from None

    if records is None:
        console.print(f"No {source} file found. Nothing to migrate.")
        return
    if not records:
        console.print(f"{source} is empty. Nothing to migrate.")
        return
    console.print(f"Found {len(records)} todos in {source}")

    try:
        store = SqlTaskStore(database_url)
    except (SQLAlchemyError, ImportError) as exc:
        # Unparseable URL or a dialect whose driver is not installed.
        console.print(f"[red]Cannot use database URL: {escape(str(exc))}[/red]")
        raise SystemExit(1) from None

    try:
        result = run_migration(records, store)
    except StorageUnavailable as exc:
        console.print(f"[red]Error inserting todos: {escape(exc.message)}[/red]")
        raise SystemExit(1) from None
    finally:
        store.close()

    console.print(f"Successfully migrated {result.total} todos!\n")
    if result.skipped:
        console.print(f"[yellow]Skipped {result.skipped} todos without text[/yellow]")
    console.print("Migration Summary:")
    console.print(f"   Total todos: {result.total}")
    console.print(f"   Active: {result.active}")
    console.print(f"   Completed: {result.completed}\n")
    console.print(f"Tip: you may want to back up or rename {source}:")
    console.print(f"   mv {source} {source}.backup", markup=False)


if __name__ == "__main__":
    main()
