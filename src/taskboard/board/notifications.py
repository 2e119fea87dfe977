# src/taskboard/board/notifications.py

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from datetime import date, datetime
from enum import StrEnum

from .models import Notification, Task, TaskStatus

logger = logging.getLogger(__name__)

NotificationListener = Callable[[Notification], None]


class NotificationKind(StrEnum):
    OVERDUE = "overdue"
    TIMER_END = "timer-end"


def notification_id(kind: NotificationKind, task_id: str) -> str:
    """Content-addressed id: the same (kind, task) always maps to the same entry."""
    return f"{kind.value}-{task_id}"


def is_overdue(task: Task, today: date) -> bool:
    return task.deadline is not None and task.deadline < today and task.status != TaskStatus.DONE


class NotificationCenter:
    """
    Session-scoped, append-only notification log.

    Entries are keyed by a deterministic id, so re-running the overdue scan or
    re-delivering a timer expiry never adds a second entry. The log is never
    pruned, and an id never re-arms: a task that is overdue twice is notified once.
    """

    def __init__(self) -> None:
        self._log: dict[str, Notification] = {}
        self._listeners: list[NotificationListener] = []

    # ---- producers ----

    def scan_overdue(self, tasks: Iterable[Task], *, today: date, now: datetime) -> list[Notification]:
        added: list[Notification] = []
        for task in tasks:
            if not is_overdue(task, today):
                continue
            item = self._append(
                notification_id(NotificationKind.OVERDUE, task.id),
                f"Task {task.text} is past its deadline.",
                now,
            )
            if item is not None:
                added.append(item)
        return added

    def notify_timer_expired(self, task: Task, *, now: datetime) -> Notification | None:
        return self._append(
            notification_id(NotificationKind.TIMER_END, task.id),
            f"Time's up for: {task.text}!",
            now,
        )

    def _append(self, nid: str, message: str, now: datetime) -> Notification | None:
        if nid in self._log:
            return None

        item = Notification(id=nid, message=message, timestamp=now)
        self._log[nid] = item
        logger.info("Notification added id=%s", nid)

        for listener in list(self._listeners):
            try:
                listener(item)
            except Exception:
                logger.exception("Notification listener failed id=%s", nid)
        return item

    # ---- read state ----

    def mark_as_read(self, nid: str) -> Notification:
        item = self._log[nid]
        item.read = True
        return item

    def mark_as_unread(self, nid: str) -> Notification:
        item = self._log[nid]
        item.read = False
        return item

    def toggle_read(self, nid: str) -> Notification:
        item = self._log[nid]
        item.read = not item.read
        return item

    def mark_all_read(self) -> int:
        changed = 0
        for item in self._log.values():
            if not item.read:
                item.read = True
                changed += 1
        return changed

    @property
    def unread_count(self) -> int:
        return sum(1 for item in self._log.values() if not item.read)

    # ---- queries ----

    def notifications(self) -> list[Notification]:
        """All entries in append order."""
        return list(self._log.values())

    def get(self, nid: str) -> Notification | None:
        return self._log.get(nid)

    def __contains__(self, nid: object) -> bool:
        return nid in self._log

    def __len__(self) -> int:
        return len(self._log)

    # ---- listeners ----

    def add_listener(self, listener: NotificationListener) -> Callable[[], None]:
        """Call `listener` once per newly appended entry. Returns a remover."""
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove
