"""Terminal client for the todo list.

The board keeps one list of todos and replaces it with a fresh copy from the
API after every change; it never patches the list locally. Tasks are
addressed by their 1-based position on screen.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from rich.console import Console, Group, RenderableType
from rich.markup import escape
from rich.table import Table
from rich.text import Text

from todolist.client import ApiError, TodoClient
from todolist.models import Task

logger = logging.getLogger(__name__)

HELP = """\
Commands:
  add <text>          add a todo
  edit <n> <text>     replace the text of todo n
  toggle <n>          mark todo n done / not done
  rm <n>              delete todo n
  help                show this help
  quit                leave
"""


@dataclass(frozen=True)
class Stats:
    total: int
    active: int
    completed: int


class TodoBoard:
    def __init__(self, client: TodoClient, console: Console | None = None) -> None:
        self.client = client
        self.console = console or Console()
        self.todos: list[Task] = []

    # ---- state ----

    def reload(self) -> None:
        try:
            self.todos = self.client.list_todos()
        except ApiError as exc:
            logger.error("Failed to load todos: %s", exc.message)

    def stats(self) -> Stats:
        completed = sum(1 for t in self.todos if t.completed)
        return Stats(total=len(self.todos), active=len(self.todos) - completed, completed=completed)

    def _task_at(self, position: int) -> Task | None:
        if 1 <= position <= len(self.todos):
            return self.todos[position - 1]
        logger.warning("No todo at position %s", position)
        return None

    # ---- intents ----

    def add(self, text: str) -> None:
        text = text.strip()
        if not text:
            return
        try:
            self.client.create_todo(text)
        except ApiError as exc:
            logger.error("Failed to add todo: %s", exc.message)
            return
        self.reload()

    def edit(self, position: int, text: str) -> None:
        text = text.strip()
        task = self._task_at(position)
        if task is None or not text:
            return
        try:
            self.client.update_todo(task.id, text=text)
        except ApiError as exc:
            logger.error("Failed to edit todo: %s", exc.message)
            return
        self.reload()

    def toggle(self, position: int) -> None:
        task = self._task_at(position)
        if task is None:
            return
        try:
            self.client.update_todo(task.id, completed=not task.completed)
        except ApiError as exc:
            logger.error("Failed to toggle todo: %s", exc.message)
            return
        self.reload()

    def delete(self, position: int) -> None:
        task = self._task_at(position)
        if task is None:
            return
        try:
            self.client.delete_todo(task.id)
        except ApiError as exc:
            logger.error("Failed to delete todo: %s", exc.message)
            return
        self.reload()

    # ---- rendering ----

    def render(self) -> RenderableType:
        s = self.stats()
        footer = Text(
            f"Total: {s.total}  Active: {s.active}  Completed: {s.completed}", style="dim"
        )

        if not self.todos:
            return Group(Text("No todos yet. Add one above!", style="italic"), footer)

        table = Table(title="Todos", show_header=False, box=None, pad_edge=False)
        table.add_column("#", justify="right", style="cyan")
        table.add_column("done", width=3)
        table.add_column("text")
        for i, task in enumerate(self.todos, start=1):
            # Task text is user input; escape it so it is never parsed as markup.
            text = escape(task.text)
            if task.completed:
                table.add_row(str(i), "\\[x]", f"[strike dim]{text}[/strike dim]")
            else:
                table.add_row(str(i), "\\[ ]", text)
        return Group(table, footer)

    # ---- command loop ----

    def handle(self, line: str) -> bool:
        """Run one command line. Returns False when the user asked to quit."""
        cmd, _, rest = line.strip().partition(" ")
        cmd = cmd.lower()
        if not cmd:
            return True
        if cmd in ("quit", "exit", "q"):
            return False
        if cmd == "help":
            self.console.print(HELP, markup=False)
        elif cmd == "add":
            self.add(rest)
        elif cmd in ("edit", "toggle", "rm"):
            pos_str, _, text = rest.strip().partition(" ")
            if not pos_str.isdigit():
                usage = f"usage: {cmd} <n>{' <text>' if cmd == 'edit' else ''}"
                self.console.print(usage, markup=False)
                return True
            position = int(pos_str)
            if cmd == "edit":
                self.edit(position, text)
            elif cmd == "toggle":
                self.toggle(position)
            else:
                self.delete(position)
        else:
            self.console.print(f"Unknown command: {cmd} (try 'help')", markup=False)
        return True

    def run(self) -> None:
        self.reload()
        while True:
            self.console.print()
            self.console.print(self.render())
            try:
                line = self.console.input("\n: ")
            except (KeyboardInterrupt, EOFError):
                self.console.print("\nGoodbye.")
                return
            if not self.handle(line):
                self.console.print("Goodbye.")
                return
