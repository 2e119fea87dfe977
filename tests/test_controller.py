# tests/test_controller.py

from __future__ import annotations

import asyncio
from datetime import date

import pytest

from taskboard.board.controller import BoardController
from taskboard.board.errors import (
    BoardNotReady,
    DuplicateTag,
    InvalidTransition,
    PersistenceError,
    TaskNotFound,
    ValidationError,
)
from taskboard.board.models import SortMode, TaskStatus

from .fakes import FakeClock, FakeDocumentStore, FakeIdentity, make_task, wait_until


@pytest.mark.asyncio
async def test_draft_memo_scenario(board: BoardController, store: FakeDocumentStore, clock: FakeClock) -> None:
    await board.start()

    task_id = await board.add_task("Draft memo", duration=30)
    patch = await board.transition(task_id, TaskStatus.DOING)
    assert patch == {"status": TaskStatus.DOING, "start_time": clock.now()}
    assert board.running_timers() == {task_id}

    clock.advance(minutes=30)
    assert await wait_until(lambda: f"timer-end-{task_id}" in board.notifications)
    await asyncio.sleep(0.05)

    log = board.notification_log()
    assert [n.id for n in log] == [f"timer-end-{task_id}"]
    assert log[0].message == "Time's up for: Draft memo!"

    await board.transition(task_id, TaskStatus.DONE)
    assert board.get_task(task_id).status == TaskStatus.DONE  # type: ignore[union-attr]
    assert board.running_timers() == set()

    writes_before = len(store.calls)
    with pytest.raises(InvalidTransition):
        await board.transition(task_id, TaskStatus.TODO)
    assert len(store.calls) == writes_before

    await board.stop()


@pytest.mark.asyncio
async def test_pending_identity_blocks_everything(store: FakeDocumentStore, clock: FakeClock) -> None:
    identity = FakeIdentity()
    board = BoardController(store, identity, clock=clock)

    assert not board.ready
    assert all(col == [] for col in board.columns().values())
    with pytest.raises(BoardNotReady):
        await board.add_task("x")
    with pytest.raises(BoardNotReady):
        await board.add_tag("work")
    with pytest.raises(BoardNotReady):
        board.set_sort(TaskStatus.TODO, SortMode.A_Z)
    assert board.filters[TaskStatus.TODO].sort == SortMode.NEWEST

    starter = asyncio.create_task(board.start())
    await asyncio.sleep(0.01)
    assert not starter.done()
    assert store.calls == []

    identity.resolve("u1")
    await starter
    assert board.ready
    assert board.owner_id == "u1"
    await board.stop()


@pytest.mark.asyncio
async def test_add_task_validation(board: BoardController, store: FakeDocumentStore) -> None:
    await board.start()

    for bad in ("", "   "):
        with pytest.raises(ValidationError):
            await board.add_task(bad)
    for bad_duration in (0, -5):
        with pytest.raises(ValidationError):
            await board.add_task("ok", duration=bad_duration)

    assert store.calls == []


@pytest.mark.asyncio
async def test_add_task_sends_normalized_fields(board: BoardController, store: FakeDocumentStore, clock: FakeClock) -> None:
    await board.start()

    await board.add_task("  Write report ", deadline=date(2026, 11, 1), tags=["Work", "work", " home "])

    name, fields = store.calls[-1]
    assert name == "create_task"
    assert fields["text"] == "Write report"
    assert fields["status"] == TaskStatus.TODO
    assert fields["tags"] == ["home", "work"]
    assert fields["created_at"] == clock.now()
    assert fields["owner_id"] == "u1"
    assert fields["duration"] is None


@pytest.mark.asyncio
async def test_add_tag_rejects_empty_and_duplicates(board: BoardController, store: FakeDocumentStore) -> None:
    await board.start()

    await board.add_tag("Work")
    assert [t.name for t in board.tags] == ["work"]

    with pytest.raises(DuplicateTag):
        await board.add_tag("WORK ")
    with pytest.raises(ValidationError):
        await board.add_tag("  ")

    assert store.write_calls() == ["create_tag"]


@pytest.mark.asyncio
async def test_store_failure_is_persistence_error_and_board_unchanged(
    board: BoardController, store: FakeDocumentStore
) -> None:
    await board.start()
    task_id = await board.add_task("Keep me")
    before = board.tasks()

    store.fail_writes = RuntimeError("offline")
    with pytest.raises(PersistenceError):
        await board.transition(task_id, TaskStatus.URGENT)
    with pytest.raises(PersistenceError):
        await board.add_task("Another")
    with pytest.raises(PersistenceError):
        await board.delete_task(task_id, lambda t: True)

    assert board.tasks() == before


@pytest.mark.asyncio
async def test_delete_requires_confirmation(board: BoardController, store: FakeDocumentStore) -> None:
    await board.start()
    task_id = await board.add_task("Maybe delete")

    assert await board.delete_task(task_id, lambda t: False) is False
    assert "delete_task" not in store.write_calls()
    assert board.get_task(task_id) is not None

    async def confirm(task) -> bool:
        return task.text == "Maybe delete"

    assert await board.delete_task(task_id, confirm) is True
    assert board.get_task(task_id) is None


@pytest.mark.asyncio
async def test_unknown_task_actions(board: BoardController) -> None:
    await board.start()
    with pytest.raises(TaskNotFound):
        await board.transition("nope", TaskStatus.DOING)
    with pytest.raises(TaskNotFound):
        board.find_task("nope")


@pytest.mark.asyncio
async def test_overdue_scan_runs_on_every_snapshot(
    board: BoardController, store: FakeDocumentStore, clock: FakeClock
) -> None:
    store.put(make_task("late", text="Pay rent", deadline=date(2026, 10, 1)))
    await board.start()

    assert [n.id for n in board.notification_log()] == ["overdue-late"]

    for _ in range(5):
        store.publish()
    await board.add_task("unrelated")

    assert [n.id for n in board.notification_log()] == ["overdue-late"]
    assert board.unread_count == 1

    board.mark_as_read("overdue-late")
    assert board.unread_count == 0
    board.toggle_read("overdue-late")
    assert board.unread_count == 1


@pytest.mark.asyncio
async def test_timer_cancelled_on_delete(board: BoardController, store: FakeDocumentStore, clock: FakeClock) -> None:
    await board.start()
    task_id = await board.add_task("Focus", duration=1)
    await board.transition(task_id, TaskStatus.DOING)
    assert board.running_timers() == {task_id}

    await board.delete_task(task_id, lambda t: True)
    assert board.running_timers() == set()

    clock.advance(minutes=5)
    await asyncio.sleep(0.05)
    assert len(board.notifications) == 0


@pytest.mark.asyncio
async def test_doing_without_duration_has_no_timer(board: BoardController) -> None:
    await board.start()
    task_id = await board.add_task("Open ended")
    patch = await board.transition(task_id, "doing")

    assert patch == {"status": TaskStatus.DOING}
    assert board.running_timers() == set()
    assert board.countdown(task_id) is None


@pytest.mark.asyncio
async def test_columns_and_sort_selection(board: BoardController, store: FakeDocumentStore, clock: FakeClock) -> None:
    await board.start()
    b = await board.add_task("beta")
    clock.advance(seconds=1)
    a = await board.add_task("alpha")
    clock.advance(seconds=1)
    u = await board.add_task("urgent one")
    await board.transition(u, TaskStatus.URGENT)

    cols = board.columns()
    assert [t.id for t in cols[TaskStatus.TODO]] == [a, b]
    assert [t.id for t in cols[TaskStatus.URGENT]] == [u]

    board.set_sort(TaskStatus.TODO, SortMode.A_Z)
    board.set_sort("done", "date")
    assert board.filters[TaskStatus.TODO].sort == SortMode.A_Z
    assert board.filters[TaskStatus.DOING].sort == SortMode.NEWEST
    assert board.filters[TaskStatus.DONE].sort == SortMode.DATE

    with pytest.raises(ValidationError):
        board.set_sort("todo", "random")


@pytest.mark.asyncio
async def test_tag_labels_are_weak_references(board: BoardController, store: FakeDocumentStore) -> None:
    await board.start()
    await board.add_tag("work")
    task_id = await board.add_task("Tagged", tags=["work", "gone"])

    task = board.get_task(task_id)
    assert task is not None
    assert board.tag_labels(task) == [("gone", False), ("work", True)]


@pytest.mark.asyncio
async def test_find_task_by_prefix(board: BoardController, store: FakeDocumentStore) -> None:
    store.put(make_task("abc123"))
    store.put(make_task("abd456"))
    await board.start()

    assert board.find_task("abc").id == "abc123"
    with pytest.raises(ValidationError):
        board.find_task("ab")


@pytest.mark.asyncio
async def test_stop_unsubscribes_and_cancels_timers(
    board: BoardController, store: FakeDocumentStore, clock: FakeClock
) -> None:
    await board.start()
    task_id = await board.add_task("Focus", duration=10)
    await board.transition(task_id, TaskStatus.DOING)

    await board.stop()

    assert board.running_timers() == set()
    store.put(make_task("late", deadline=date(2020, 1, 1)))
    assert "overdue-late" not in board.notifications
