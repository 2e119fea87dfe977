# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from taskboard.board.controller import BoardController
from taskboard.core.state import AppState

from .fakes import FakeClock, FakeDocumentStore, FakeIdentity


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and bootstrap.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="taskboard-test",
        log_level="DEBUG",
        owner_id=None,
        timer_tick_seconds=0.01,
        console_enabled=False,
        matrix_enabled=False,
        data_dir=tmp_path,
        db_path=tmp_path / "board.sqlite3",
        identity_path=tmp_path / "identity.json",
        matrix_store_path=tmp_path / "matrix_store",
    )


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def store() -> FakeDocumentStore:
    return FakeDocumentStore()


@pytest.fixture()
def identity() -> FakeIdentity:
    return FakeIdentity("u1")


@pytest.fixture()
def board(store: FakeDocumentStore, identity: FakeIdentity, clock: FakeClock) -> BoardController:
    """Board wired with fakes; tests call `await board.start()` themselves."""
    return BoardController(store, identity, clock=clock, timer_tick_seconds=0.01)


@pytest.fixture()
def answers() -> list[str]:
    """Scripted replies for follow-up questions (delete confirmation)."""
    return []


@pytest.fixture()
def state(
    settings: SimpleNamespace,
    store: FakeDocumentStore,
    board: BoardController,
    answers: list[str],
) -> AppState:
    async def ask(prompt: str) -> str:
        return answers.pop(0) if answers else ""

    return AppState(settings=settings, store=store, identity=None, board=board, ask=ask)  # type: ignore[arg-type]
