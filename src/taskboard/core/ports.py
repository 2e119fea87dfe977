# src/taskboard/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the board core.

The core depends on Protocols instead of concrete implementations.
This keeps the document store, identity and notification transports swappable
and makes testing easier.
"""

from collections.abc import Callable
from datetime import date, datetime
from typing import Any, Awaitable, Protocol

from ..board.models import Tag, Task, TaskPatch

TaskFields = dict[str, Any]
TaskSnapshotCallback = Callable[[list[Task]], None]
TagSnapshotCallback = Callable[[list[Tag]], None]


class Subscription(Protocol):
    def unsubscribe(self) -> None: ...


class DocumentStore(Protocol):
    """
    Live document store (tasks + tags), scoped by owner.

    subscribe_* delivers the current snapshot right away and then again after
    every change; unsubscribe stops delivery. Writes are fire-and-forget from
    the core's point of view: the next snapshot is the source of truth.
    """

    def subscribe_tasks(self, owner_id: str, callback: TaskSnapshotCallback) -> Subscription: ...
    def subscribe_tags(self, owner_id: str, callback: TagSnapshotCallback) -> Subscription: ...

    def create_task(self, fields: TaskFields) -> Awaitable[str]: ...
    def create_tag(self, fields: dict[str, Any]) -> Awaitable[str]: ...
    def update_task(self, task_id: str, patch: TaskPatch) -> Awaitable[None]: ...
    def delete_task(self, task_id: str) -> Awaitable[None]: ...


class IdentityProvider(Protocol):
    """owner_id is None while sign-in is pending."""

    @property
    def owner_id(self) -> str | None: ...

    def wait_owner_id(self) -> Awaitable[str]: ...


class Clock(Protocol):
    def now(self) -> datetime: ...
    def today(self) -> date: ...


class OutboundMessenger(Protocol):
    """
    Connector-side port: how notifications are delivered outward.

    The connector decides how to interpret:
    - room_id (can be None)
    - to_user_id (can be None)
    E.g. the Matrix messenger falls back to its configured room.
    """

    def send_text(
            self,
            *,
            text: str,
            room_id: str | None = None,
            to_user_id: str | None = None,
    ) -> Awaitable[None]: ...
