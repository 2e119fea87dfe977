# src/taskboard/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires the document store, identity and board controller into AppState.
"""

from __future__ import annotations

import logging

from ..board.controller import BoardController
from ..config import get_settings
from ..core.state import AppState
from ..storage.document_store import SqliteDocumentStore
from ..storage.identity import LocalIdentity

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.db_path.parent.mkdir(parents=True, exist_ok=True)
    settings.identity_path.parent.mkdir(parents=True, exist_ok=True)


def create_initial_state(*, settings=None, ask=None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    store = SqliteDocumentStore(settings.db_path)
    identity = LocalIdentity(
        settings.identity_path,
        explicit_owner_id=getattr(settings, "owner_id", None),
    )
    board = BoardController(
        store,
        identity,
        timer_tick_seconds=float(getattr(settings, "timer_tick_seconds", 1.0)),
    )

    return AppState(settings=settings, store=store, identity=identity, board=board, ask=ask)
