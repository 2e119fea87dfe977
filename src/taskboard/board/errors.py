# src/taskboard/board/errors.py

from __future__ import annotations

"""
Board error hierarchy.

Everything the core rejects locally (before any store call) or surfaces from a
failed store write derives from BoardError, so connectors can report it to the
user with a single except clause.
"""


class BoardError(Exception):
    """Base class for all user-facing board errors."""


class InvalidTransition(BoardError):
    def __init__(self, current: str, target: str) -> None:
        super().__init__(f"Cannot move a task from {current} to {target}.")
        self.current = current
        self.target = target


class ValidationError(BoardError):
    pass


class DuplicateTag(BoardError):
    def __init__(self, name: str) -> None:
        super().__init__(f"Tag {name!r} already exists.")
        self.name = name


class PersistenceError(BoardError):
    """A store write failed. Nothing was applied locally."""


class BoardNotReady(BoardError):
    def __init__(self) -> None:
        super().__init__("Board is still loading (identity pending).")


class TaskNotFound(BoardError):
    def __init__(self, task_id: str) -> None:
        super().__init__(f"Task {task_id} not found.")
        self.task_id = task_id
