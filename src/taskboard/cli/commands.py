# src/taskboard/cli/commands.py

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable
from datetime import date
from typing import cast

from ..board.errors import BoardError, ValidationError
from ..board.models import SortMode, TaskStatus
from ..core.state import AppState
from .render import SHORT_ID, render_board, render_notifications

CommandEmitter = Callable[[str], None]
CommandResult = str | Awaitable[str]
CommandHandler2 = Callable[[AppState, list[str]], CommandResult]
CommandHandler3 = Callable[[AppState, list[str], CommandEmitter | None], CommandResult]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by connectors (/help, /add, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    async def handle(
        self,
        state: AppState,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.

        Board errors (invalid transition, validation, store failures) are
        turned into a reply; anything else propagates to the connector.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            nparams = len(inspect.signature(handler).parameters)
        except (TypeError, ValueError):
            nparams = 3

        try:
            if nparams >= 3:
                result = cast(CommandHandler3, handler)(state, args, emit)
            else:
                result = cast(CommandHandler2, handler)(state, args)
            if inspect.isawaitable(result):
                result = await result
        except BoardError as e:
            logger.info("/%s rejected: %s", name, e)
            return f"Error: {e}"
        return cast(str, result)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


def _parse_add_args(args: list[str]) -> tuple[str, date | None, int | None, list[str]]:
    words: list[str] = []
    deadline: date | None = None
    duration: int | None = None
    tags: list[str] = []

    for arg in args:
        key, sep, value = arg.partition("=")
        key = key.lower()
        if sep and key in ("due", "deadline"):
            try:
                deadline = date.fromisoformat(value)
            except ValueError:
                raise ValidationError(f"Bad deadline {value!r}, expected YYYY-MM-DD.") from None
        elif sep and key in ("mins", "duration"):
            try:
                duration = int(value)
            except ValueError:
                raise ValidationError(f"Bad duration {value!r}, expected minutes.") from None
        elif sep and key == "tags":
            tags.extend(t for t in value.split(",") if t.strip())
        else:
            words.append(arg)

    return " ".join(words), deadline, duration, tags


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_status(state: AppState, args: list[str]) -> str:
    board = state.board
    if not board.ready:
        return "Status:\n  Board: loading (identity pending)"
    counts = ", ".join(f"{s.value}={len(ts)}" for s, ts in board.columns().items())
    return (
        "Status:\n"
        f"  Owner: {board.owner_id}\n"
        f"  Tasks: {counts}\n"
        f"  Running timers: {len(board.running_timers())}\n"
        f"  Unread notifications: {board.unread_count}"
    )


def cmd_board(state: AppState, args: list[str]) -> str:
    return render_board(state.board)


async def cmd_add(state: AppState, args: list[str]) -> str:
    """
    /add <text> [due=YYYY-MM-DD] [mins=N] [tags=a,b]
    """
    text, deadline, duration, tags = _parse_add_args(args)
    task_id = await state.board.add_task(text, deadline=deadline, duration=duration, tags=tags)
    return f"Task added: {task_id[:SHORT_ID]}"


async def cmd_tag(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /tag <name>"
    await state.board.add_tag(" ".join(args))
    return f"Tag added: {' '.join(args).strip().lower()}"


def cmd_tags(state: AppState, args: list[str]) -> str:
    tags = state.board.tags
    if not tags:
        return "No tags yet. Use /tag <name>."
    return "Tags: " + ", ".join(t.name for t in tags)


async def cmd_move(state: AppState, args: list[str]) -> str:
    """
    /move <task> <todo|urgent|doing|done>
    """
    if len(args) != 2:
        return "Usage: /move <task> <urgent|doing|done>"
    task = state.board.find_task(args[0])
    patch = await state.board.transition(task.id, args[1].lower())
    extra = " (timer started)" if "start_time" in patch else ""
    return f"Task {task.id[:SHORT_ID]} -> {patch['status']}{extra}"


async def cmd_rm(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    if len(args) != 1:
        return "Usage: /rm <task>"
    task = state.board.find_task(args[0])

    async def confirm(t) -> bool:
        if state.ask is None:
            return False
        answer = await state.ask(f"Delete task {t.text!r}? [y/N] ")
        return answer.strip().lower() in ("y", "yes")

    if not await state.board.delete_task(task.id, confirm):
        return "Delete cancelled."
    return f"Task {task.id[:SHORT_ID]} deleted."


def cmd_sort(state: AppState, args: list[str]) -> str:
    """
    /sort <todo|urgent|doing|done> <newest|a-z|date>
    """
    if len(args) != 2:
        modes = " | ".join(m.value for m in SortMode)
        return f"Usage: /sort <column> <{modes}>"
    config = state.board.set_sort(args[0].lower(), args[1].lower())
    return f"Column {TaskStatus(args[0].lower()).value} sorted by {config.sort.value}."


def cmd_notes(state: AppState, args: list[str]) -> str:
    board = state.board
    body = render_notifications(board.notification_log())
    return f"Notifications ({board.unread_count} unread):\n{body}"


def cmd_read(state: AppState, args: list[str]) -> str:
    """
    /read all   -> mark everything read
    /read <id>  -> mark one notification read
    """
    if not args:
        return "Usage: /read <id> | /read all"
    if args[0].lower() == "all":
        n = state.board.notifications.mark_all_read()
        return f"Marked {n} notification(s) as read."
    try:
        item = state.board.mark_as_read(args[0])
    except KeyError:
        return f"Unknown notification: {args[0]}"
    return f"Read: {item.id}"


def cmd_unread(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /unread <id>"
    try:
        item = state.board.mark_as_unread(args[0])
    except KeyError:
        return f"Unknown notification: {args[0]}"
    return f"Unread: {item.id}"


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("status", cmd_status, help_text="Show owner, task counts and unread notifications.")
registry.register("board", cmd_board, help_text="Show the board.", aliases=["b", "ls"])
registry.register(
    "add", cmd_add, help_text="Add a task: /add <text> [due=YYYY-MM-DD] [mins=N] [tags=a,b]."
)
registry.register("tag", cmd_tag, help_text="Add a tag: /tag <name>.")
registry.register("tags", cmd_tags, help_text="List tags.")
registry.register("move", cmd_move, help_text="Move a task: /move <task> <urgent|doing|done>.", aliases=["mv"])
registry.register("rm", cmd_rm, help_text="Delete a task (asks for confirmation): /rm <task>.")
registry.register("sort", cmd_sort, help_text="Sort a column: /sort <column> <newest|a-z|date>.")
registry.register("notes", cmd_notes, help_text="Show notifications.", aliases=["n"])
registry.register("read", cmd_read, help_text="Mark read: /read <id> | /read all.")
registry.register("unread", cmd_unread, help_text="Mark unread: /unread <id>.")
