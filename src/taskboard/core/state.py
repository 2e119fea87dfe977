# src/taskboard/core/state.py

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from ..board.controller import BoardController
from ..storage.identity import LocalIdentity
from .ports import DocumentStore

AskFn = Callable[[str], Awaitable[str]]


@dataclass
class AppState:
    # Store Settings on the state for easy access in other modules later.
    settings: object

    store: DocumentStore
    identity: LocalIdentity
    board: BoardController

    # How connectors ask the user a follow-up question (e.g. delete confirmation).
    ask: AskFn | None = None
