# src/taskboard/board/controller.py

from __future__ import annotations

"""
Board controller.

Composition of the board core:
- mirrors the owner's tasks/tags from the store change feed,
- re-runs the overdue scan on every task snapshot,
- keeps one timer per task in "doing" with a duration,
- routes user actions through validation / the lifecycle and forwards the
  resulting writes to the store.

Writes are never applied locally: the next snapshot from the store is the
only thing the board shows.
"""

import inspect
import logging
from collections.abc import Awaitable, Callable, Iterable
from datetime import date
from typing import Any

from ..core.clock import SystemClock
from ..core.ports import Clock, DocumentStore, IdentityProvider, Subscription
from .errors import (
    BoardNotReady,
    DuplicateTag,
    PersistenceError,
    TaskNotFound,
    ValidationError,
)
from .lifecycle import transition as lifecycle_transition
from .models import (
    FilterConfig,
    Notification,
    SortMode,
    Tag,
    Task,
    TaskPatch,
    TaskStatus,
    normalize_tag_name,
    normalize_tags,
)
from .notifications import NotificationCenter
from .sorting import COLUMNS, build_columns
from .timer import Countdown, TickCallback, TimerEngine

logger = logging.getLogger(__name__)

ConfirmCallback = Callable[[Task], bool | Awaitable[bool]]


class BoardController:
    def __init__(
        self,
        store: DocumentStore,
        identity: IdentityProvider,
        *,
        clock: Clock | None = None,
        notifications: NotificationCenter | None = None,
        timer_tick_seconds: float = 1.0,
        on_tick: TickCallback | None = None,
    ) -> None:
        self._store = store
        self._identity = identity
        self._clock: Clock = clock or SystemClock()
        self.notifications = notifications or NotificationCenter()

        self._tasks: dict[str, Task] = {}
        self._tags: list[Tag] = []
        self._filters: dict[TaskStatus, FilterConfig] = {s: FilterConfig() for s in COLUMNS}
        self._subs: list[Subscription] = []
        self._owner_id: str | None = None

        self._timers = TimerEngine(
            self.get_task,
            self._on_timer_expired,
            clock=self._clock,
            tick_seconds=timer_tick_seconds,
            on_tick=on_tick,
        )

    # ---- lifecycle ----

    @property
    def ready(self) -> bool:
        return self._owner_id is not None

    @property
    def owner_id(self) -> str | None:
        return self._owner_id

    async def start(self) -> None:
        """Wait for identity, then subscribe to the owner's live collections."""
        if self._subs:
            return

        owner_id = await self._identity.wait_owner_id()
        self._owner_id = owner_id
        logger.info("Board starting owner_id=%s", owner_id)

        self._subs.append(self._store.subscribe_tasks(owner_id, self._on_tasks_snapshot))
        self._subs.append(self._store.subscribe_tags(owner_id, self._on_tags_snapshot))

    async def stop(self) -> None:
        for sub in self._subs:
            try:
                sub.unsubscribe()
            except Exception:
                logger.exception("Unsubscribe failed.")
        self._subs.clear()
        self._timers.cancel_all()
        logger.info("Board stopped owner_id=%s", self._owner_id)

    # ---- change feed ----

    def _on_tasks_snapshot(self, tasks: list[Task]) -> None:
        self._tasks = {t.id: t for t in tasks}
        logger.debug("Task snapshot received: %d tasks", len(self._tasks))

        self.notifications.scan_overdue(
            self._tasks.values(),
            today=self._clock.today(),
            now=self._clock.now(),
        )
        self._timers.sync(self._tasks.values())

    def _on_tags_snapshot(self, tags: list[Tag]) -> None:
        self._tags = list(tags)
        logger.debug("Tag snapshot received: %d tags", len(self._tags))

    def _on_timer_expired(self, task: Task) -> None:
        self.notifications.notify_timer_expired(task, now=self._clock.now())

    # ---- views ----

    def get_task(self, task_id: str) -> Task | None:
        return self._tasks.get(task_id)

    def tasks(self) -> list[Task]:
        return list(self._tasks.values())

    def find_task(self, ref: str) -> Task:
        """Resolve a full id or a unique id prefix."""
        ref = (ref or "").strip()
        if ref in self._tasks:
            return self._tasks[ref]

        matches = [t for tid, t in self._tasks.items() if ref and tid.startswith(ref)]
        if len(matches) == 1:
            return matches[0]
        if len(matches) > 1:
            raise ValidationError(f"Task reference {ref!r} is ambiguous.")
        raise TaskNotFound(ref)

    @property
    def tags(self) -> list[Tag]:
        return list(self._tags)

    def tag_labels(self, task: Task) -> list[tuple[str, bool]]:
        """(name, resolves-to-a-current-tag) for each tag name on the task."""
        known = {t.name for t in self._tags}
        return [(name, name in known) for name in sorted(task.tags)]

    @property
    def filters(self) -> dict[TaskStatus, FilterConfig]:
        return {s: FilterConfig(sort=c.sort) for s, c in self._filters.items()}

    def columns(self) -> dict[TaskStatus, list[Task]]:
        if not self.ready:
            return {s: [] for s in COLUMNS}
        return build_columns(self._tasks.values(), self._filters)

    def countdown(self, task_id: str) -> Countdown | None:
        return self._timers.countdown(task_id)

    def running_timers(self) -> set[str]:
        return self._timers.running_ids()

    @property
    def unread_count(self) -> int:
        return self.notifications.unread_count

    def notification_log(self) -> list[Notification]:
        return self.notifications.notifications()

    # ---- user actions ----

    def _require_owner(self) -> str:
        if self._owner_id is None:
            raise BoardNotReady()
        return self._owner_id

    def _require_task(self, task_id: str) -> Task:
        task = self._tasks.get(task_id)
        if task is None:
            raise TaskNotFound(task_id)
        return task

    async def add_task(
        self,
        text: str,
        *,
        deadline: date | None = None,
        duration: int | None = None,
        tags: Iterable[str] = (),
    ) -> str:
        owner_id = self._require_owner()

        text = (text or "").strip()
        if not text:
            raise ValidationError("Task text must not be empty.")

        if duration is not None:
            if isinstance(duration, bool) or not isinstance(duration, int) or duration <= 0:
                raise ValidationError("Duration must be a positive number of minutes.")

        fields: dict[str, Any] = {
            "owner_id": owner_id,
            "text": text,
            "status": TaskStatus.TODO,
            "deadline": deadline,
            "duration": duration,
            "tags": sorted(normalize_tags(tags)),
            "created_at": self._clock.now(),
        }

        try:
            task_id = await self._store.create_task(fields)
        except Exception as e:
            logger.exception("create_task failed owner=%s", owner_id)
            raise PersistenceError(f"Could not save task: {e}") from e

        logger.info("Task created id=%s", task_id)
        return task_id

    async def add_tag(self, name: str) -> str:
        owner_id = self._require_owner()

        name = normalize_tag_name(name)
        if not name:
            raise ValidationError("Tag name must not be empty.")
        if any(t.name.lower() == name for t in self._tags):
            raise DuplicateTag(name)

        try:
            tag_id = await self._store.create_tag({"owner_id": owner_id, "name": name})
        except Exception as e:
            logger.exception("create_tag failed owner=%s name=%s", owner_id, name)
            raise PersistenceError(f"Could not save tag: {e}") from e

        logger.info("Tag created id=%s name=%s", tag_id, name)
        return tag_id

    async def transition(self, task_id: str, target: TaskStatus | str) -> TaskPatch:
        self._require_owner()
        task = self._require_task(task_id)

        patch = lifecycle_transition(task, target, now=self._clock.now())

        try:
            await self._store.update_task(task.id, patch)
        except Exception as e:
            logger.exception("update_task failed task_id=%s", task.id)
            raise PersistenceError(f"Could not update task: {e}") from e

        logger.info("Task %s -> %s", task.id, patch["status"])
        return patch

    async def delete_task(self, task_id: str, confirm: ConfirmCallback) -> bool:
        """Delete after explicit confirmation. Declining is a no-op (returns False)."""
        self._require_owner()
        task = self._require_task(task_id)

        answer = confirm(task)
        if inspect.isawaitable(answer):
            answer = await answer
        if not answer:
            logger.debug("Delete declined task_id=%s", task.id)
            return False

        try:
            await self._store.delete_task(task.id)
        except Exception as e:
            logger.exception("delete_task failed task_id=%s", task.id)
            raise PersistenceError(f"Could not delete task: {e}") from e

        logger.info("Task deleted id=%s", task.id)
        return True

    def set_sort(self, status: TaskStatus | str, mode: SortMode | str) -> FilterConfig:
        self._require_owner()
        try:
            column = TaskStatus(status)
            sort = SortMode(mode)
        except ValueError:
            raise ValidationError(f"Unknown column or sort: {status} {mode}") from None

        self._filters[column] = FilterConfig(sort=sort)
        return FilterConfig(sort=sort)

    def mark_as_read(self, notification_id: str) -> Notification:
        return self.notifications.mark_as_read(notification_id)

    def mark_as_unread(self, notification_id: str) -> Notification:
        return self.notifications.mark_as_unread(notification_id)

    def toggle_read(self, notification_id: str) -> Notification:
        return self.notifications.toggle_read(notification_id)
