# src/taskboard/board/lifecycle.py

"""
Task lifecycle state machine.

    todo ──> urgent ──> doing ──> done
      └───────────────────^

The transition function never mutates a task. It returns the patch the store
should apply; the store's next snapshot is what the board actually shows.
"""

from __future__ import annotations

import logging
from datetime import datetime

from .errors import InvalidTransition
from .models import Task, TaskPatch, TaskStatus

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS: dict[TaskStatus, frozenset[TaskStatus]] = {
    TaskStatus.TODO: frozenset({TaskStatus.URGENT, TaskStatus.DOING}),
    TaskStatus.URGENT: frozenset({TaskStatus.DOING}),
    TaskStatus.DOING: frozenset({TaskStatus.DONE}),
    TaskStatus.DONE: frozenset(),
}


def allowed_targets(current: TaskStatus) -> frozenset[TaskStatus]:
    return ALLOWED_TRANSITIONS.get(current, frozenset())


def can_transition(current: TaskStatus, target: TaskStatus) -> bool:
    return target in allowed_targets(current)


def transition(task: Task, target: TaskStatus | str, *, now: datetime) -> TaskPatch:
    """
    Compute the patch for moving `task` to `target`.

    - into doing with a duration -> {status, start_time=now}
    - into doing without one     -> {status}
    - any other legal edge       -> {status}

    Raises InvalidTransition for edges outside ALLOWED_TRANSITIONS.
    """
    try:
        target_status = TaskStatus(target)
    except ValueError:
        raise InvalidTransition(task.status.value, str(target)) from None

    if not can_transition(task.status, target_status):
        raise InvalidTransition(task.status.value, target_status.value)

    patch: TaskPatch = {"status": target_status}
    if target_status == TaskStatus.DOING and task.duration is not None:
        patch["start_time"] = now

    logger.debug("Task %s: %s -> %s patch=%s", task.id, task.status, target_status, sorted(patch))
    return patch
