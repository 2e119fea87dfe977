# src/taskboard/board/models.py

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import StrEnum
from typing import Any


class TaskStatus(StrEnum):
    """
    Task lifecycle status.

    Notes:
    - "todo" is the initial state of every new task.
    - "done" is terminal: the only way out is deletion.
    """

    TODO = "todo"
    URGENT = "urgent"
    DOING = "doing"
    DONE = "done"

    @classmethod
    def from_db(cls, raw: str | None) -> TaskStatus:
        if not raw:
            return cls.TODO
        try:
            return cls(raw)
        except ValueError:
            return cls.TODO


class SortMode(StrEnum):
    NEWEST = "newest"
    A_Z = "a-z"
    DATE = "date"


# Partial field update sent to the store: only what changed.
TaskPatch = dict[str, Any]


@dataclass(slots=True, frozen=True)
class Task:
    id: str
    text: str
    status: TaskStatus
    owner_id: str
    created_at: datetime | None = None
    deadline: date | None = None
    duration: int | None = None  # minutes
    start_time: datetime | None = None
    tags: frozenset[str] = field(default_factory=frozenset)

    @property
    def has_timer(self) -> bool:
        """True if the task is counting down (doing + duration + start_time)."""
        return (
            self.status == TaskStatus.DOING
            and self.duration is not None
            and self.duration > 0
            and self.start_time is not None
        )


@dataclass(slots=True, frozen=True)
class Tag:
    id: str
    name: str
    owner_id: str


@dataclass(slots=True)
class Notification:
    id: str
    message: str
    timestamp: datetime
    read: bool = False


@dataclass(slots=True)
class FilterConfig:
    sort: SortMode = SortMode.NEWEST


def normalize_tag_name(name: str) -> str:
    return (name or "").strip().lower()


def normalize_tags(names) -> frozenset[str]:
    """Lower-case tag names, drop empties and collapse duplicates."""
    return frozenset(n for n in (normalize_tag_name(x) for x in (names or ())) if n)


def normalize_duration(raw: Any) -> int | None:
    """Store values -> positive minutes or None (0, negatives and junk mean 'no timer')."""
    if raw is None or isinstance(raw, bool):
        return None
    try:
        minutes = int(raw)
    except (TypeError, ValueError):
        return None
    return minutes if minutes > 0 else None
