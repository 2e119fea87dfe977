# src/taskboard/connectors/forwarder.py

from __future__ import annotations

"""
Notification forwarder.

Relays every new Notification Center entry through an OutboundMessenger
(console, Matrix, ...). The center calls listeners synchronously; sending is
async, so entries are queued and drained by run().

To stop the forwarder, cancel the run() coroutine/task.
"""

import asyncio
import logging

from ..board.models import Notification
from ..board.notifications import NotificationCenter
from ..core.ports import OutboundMessenger

logger = logging.getLogger(__name__)


def render_notification(item: Notification) -> str:
    return f"[{item.timestamp.astimezone().strftime('%H:%M')}] {item.message}"


class NotificationForwarder:
    def __init__(
        self,
        center: NotificationCenter,
        messenger: OutboundMessenger,
        *,
        room_id: str | None = None,
    ) -> None:
        self._messenger = messenger
        self._room_id = room_id
        self._queue: asyncio.Queue[Notification] = asyncio.Queue()
        self._remove = center.add_listener(self._queue.put_nowait)

    def close(self) -> None:
        self._remove()

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    async def run(self) -> None:
        while True:
            item = await self._queue.get()
            try:
                await self._messenger.send_text(text=render_notification(item), room_id=self._room_id)
                logger.debug("Notification forwarded id=%s", item.id)
            except Exception:
                logger.exception("Notification send failed id=%s", item.id)
            finally:
                self._queue.task_done()
