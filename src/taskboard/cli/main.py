# src/taskboard/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState, signs in, then runs on one event loop:
- the board (store change feed + per-task timers),
- notification forwarding (console, optionally Matrix),
- the console REPL (optional).
"""

from __future__ import annotations

import asyncio
import contextlib
import locale
import logging
from typing import TYPE_CHECKING

from ..config import get_settings
from ..connectors.console_connector import ConsoleMessenger, ask_console, run_console_loop
from ..connectors.forwarder import NotificationForwarder
from ..core.state import AppState
from ..logging_setup import setup_logging
from .bootstrap import create_initial_state

logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from ..connectors.matrix_client import MatrixMessenger


async def _start_matrix_forwarder(state: AppState) -> tuple[NotificationForwarder, MatrixMessenger] | None:
    settings = state.settings
    from ..connectors.matrix_client import MatrixMessenger, create_matrix_client

    room_id = str(getattr(settings, "matrix_room_id", "") or "").strip()
    if not room_id:
        logger.error("Matrix is enabled but TASKBOARD_MATRIX_ROOM_ID is not set.")
        return None

    client = await create_matrix_client(settings)
    if client is None:
        logger.error("Matrix client creation failed; notifications stay local.")
        return None

    messenger = MatrixMessenger(client, default_room_id=room_id)
    return NotificationForwarder(state.board.notifications, messenger), messenger


async def run_app(state: AppState) -> None:
    settings = state.settings
    background: list[asyncio.Task[None]] = []
    forwarders: list[NotificationForwarder] = []
    matrix_messenger: MatrixMessenger | None = None

    console = NotificationForwarder(state.board.notifications, ConsoleMessenger())
    forwarders.append(console)
    background.append(asyncio.create_task(console.run(), name="notify-console"))

    if getattr(settings, "matrix_enabled", False):
        started = await _start_matrix_forwarder(state)
        if started is not None:
            matrix_forwarder, matrix_messenger = started
            forwarders.append(matrix_forwarder)
            background.append(asyncio.create_task(matrix_forwarder.run(), name="notify-matrix"))

    try:
        await state.identity.sign_in()
        await state.board.start()

        if getattr(settings, "console_enabled", True):
            await run_console_loop(state)
        else:
            logger.info("Console disabled. Running background notifications only. Press Ctrl+C to stop.")
            await asyncio.Event().wait()
    finally:
        await state.board.stop()

        for fw in forwarders:
            fw.close()
        for task in background:
            task.cancel()
        for task in background:
            with contextlib.suppress(asyncio.CancelledError):
                await task

        if matrix_messenger is not None:
            try:
                await matrix_messenger.close()
            except Exception:
                logger.debug("Matrix client close failed.", exc_info=True)

        close = getattr(state.store, "close", None)
        if callable(close):
            close()


def main() -> None:
    settings = get_settings()

    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)

    setup_logging(log_dir=settings.data_dir, console_level=console_level)

    try:
        locale.setlocale(locale.LC_COLLATE, "")
    except locale.Error as e:
        logger.warning("Could not apply the user collation locale, a-z sort uses defaults: %r", e)

    logger.info("Starting %s...", settings.app_name)

    state = create_initial_state(settings=settings, ask=ask_console)

    try:
        asyncio.run(run_app(state))
    except KeyboardInterrupt:
        logger.info("KeyboardInterrupt received, shutting down...")
    finally:
        logger.info("Bye.")


if __name__ == "__main__":
    main()
