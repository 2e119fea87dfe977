# src/taskboard/board/timer.py

from __future__ import annotations

"""
Per-task countdown timers.

A small tick loop per task currently in "doing" with a duration:
- looks the task up fresh on every tick (edits to duration/start_time are honored),
- publishes the countdown,
- fires on_expired exactly once per doing period, then stops.

To stop a timer, cancel it through the engine (sync/cancel/cancel_all).
"""

import asyncio
import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import datetime, timedelta

from ..core.ports import Clock
from .models import Task

logger = logging.getLogger(__name__)

TaskLookup = Callable[[str], Task | None]
ExpiredCallback = Callable[[Task], None]
TickCallback = Callable[[str, "Countdown"], None]


@dataclass(slots=True, frozen=True)
class Countdown:
    remaining_ms: int
    progress_percent: float
    expired: bool = False


def compute_countdown(task: Task, now: datetime) -> Countdown | None:
    """Countdown view of a task, or None if the task has no running timer."""
    if not task.has_timer or task.duration is None or task.start_time is None:
        return None

    total = timedelta(minutes=task.duration)
    remaining = (task.start_time + total) - now

    if remaining <= timedelta(0):
        return Countdown(remaining_ms=0, progress_percent=100.0, expired=True)

    progress = 100.0 * (1.0 - remaining / total)
    return Countdown(
        remaining_ms=int(remaining / timedelta(milliseconds=1)),
        progress_percent=max(0.0, min(100.0, progress)),
    )


class TaskTimer:
    """Countdown state for one task id. Expiry is level-triggered from `now`."""

    def __init__(
        self,
        task_id: str,
        lookup: TaskLookup,
        on_expired: ExpiredCallback,
        *,
        fired_for: datetime | None = None,
    ) -> None:
        self.task_id = task_id
        self._lookup = lookup
        self._on_expired = on_expired
        # start_time of the doing period we already fired for.
        self._fired_for = fired_for

    @property
    def fired_for(self) -> datetime | None:
        return self._fired_for

    def tick(self, now: datetime) -> Countdown | None:
        task = self._lookup(self.task_id)
        if task is None:
            return None

        countdown = compute_countdown(task, now)
        if countdown is None:
            return None

        if countdown.expired and self._fired_for != task.start_time:
            self._fired_for = task.start_time
            logger.info("Timer expired task_id=%s", self.task_id)
            self._on_expired(task)

        return countdown


class TimerEngine:
    """
    Registry of per-task tick loops, keyed by task id.

    Only one loop exists per task id. Loops end on their own when the task
    expires or leaves "doing"; sync() cancels the rest precisely.
    """

    def __init__(
        self,
        lookup: TaskLookup,
        on_expired: ExpiredCallback,
        *,
        clock: Clock,
        tick_seconds: float = 1.0,
        on_tick: TickCallback | None = None,
    ) -> None:
        self._lookup = lookup
        self._on_expired = on_expired
        self._clock = clock
        self._tick_seconds = max(0.001, float(tick_seconds))
        self._on_tick = on_tick

        self._running: dict[str, asyncio.Task[None]] = {}
        self._latest: dict[str, Countdown] = {}
        # (task_id, start_time) pairs whose countdown already reached zero.
        self._expired: set[tuple[str, datetime]] = set()

    # ---- views ----

    def running_ids(self) -> set[str]:
        return set(self._running)

    def countdown(self, task_id: str) -> Countdown | None:
        return self._latest.get(task_id)

    def is_running(self, task_id: str) -> bool:
        return task_id in self._running

    # ---- control ----

    def sync(self, tasks: Iterable[Task]) -> None:
        """Start timers for eligible tasks and cancel timers whose task left doing."""
        tasks = list(tasks)
        eligible = {t.id: t for t in tasks if t.has_timer}

        # Deleted tasks can never expire again.
        present = {t.id for t in tasks}
        self._expired = {key for key in self._expired if key[0] in present}

        for task_id in list(self._running):
            if task_id not in eligible:
                self.cancel(task_id)

        for task_id in [k for k in self._latest if k not in eligible]:
            self._latest.pop(task_id, None)

        for task_id, task in eligible.items():
            if task_id in self._running:
                continue
            if (task_id, task.start_time) in self._expired:
                # Already fired for this doing period. Keep counting if an edit
                # (e.g. a longer duration) moved the end back into the future.
                countdown = compute_countdown(task, self._clock.now())
                if countdown is not None and countdown.expired:
                    self._latest[task_id] = countdown
                    continue
            self.start(task)

    def start(self, task: Task) -> None:
        if task.id in self._running or not task.has_timer:
            return

        fired_for = task.start_time if (task.id, task.start_time) in self._expired else None
        timer = TaskTimer(task.id, self._lookup, self._handle_expired, fired_for=fired_for)

        runner = asyncio.get_running_loop().create_task(
            self._run(timer), name=f"timer-{task.id}"
        )
        self._running[task.id] = runner
        logger.debug("Timer started task_id=%s duration=%s", task.id, task.duration)

    def cancel(self, task_id: str) -> None:
        runner = self._running.pop(task_id, None)
        self._latest.pop(task_id, None)
        if runner is not None:
            runner.cancel()
            logger.debug("Timer cancelled task_id=%s", task_id)

    def cancel_all(self) -> None:
        for task_id in list(self._running):
            self.cancel(task_id)

    # ---- internals ----

    def _handle_expired(self, task: Task) -> None:
        if task.start_time is not None:
            self._expired.add((task.id, task.start_time))
        self._on_expired(task)

    def _publish(self, task_id: str, countdown: Countdown) -> None:
        self._latest[task_id] = countdown
        if self._on_tick is None:
            return
        try:
            self._on_tick(task_id, countdown)
        except Exception:
            logger.exception("Timer tick listener failed task_id=%s", task_id)

    async def _run(self, timer: TaskTimer) -> None:
        me = asyncio.current_task()
        try:
            while True:
                countdown = timer.tick(self._clock.now())
                if countdown is None:
                    self._latest.pop(timer.task_id, None)
                    break

                self._publish(timer.task_id, countdown)
                if countdown.expired:
                    break

                await asyncio.sleep(self._tick_seconds)
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("Timer loop crashed task_id=%s", timer.task_id)
        finally:
            if self._running.get(timer.task_id) is me:
                del self._running[timer.task_id]
