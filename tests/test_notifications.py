# tests/test_notifications.py

from __future__ import annotations

from datetime import date

import pytest

from taskboard.board.models import TaskStatus
from taskboard.board.notifications import NotificationCenter, NotificationKind, notification_id

from .fakes import FakeClock, make_task

TODAY = date(2026, 10, 19)


def test_notification_id_is_content_addressed() -> None:
    assert notification_id(NotificationKind.OVERDUE, "abc") == "overdue-abc"
    assert notification_id(NotificationKind.TIMER_END, "abc") == "timer-end-abc"


def test_overdue_scan_is_idempotent() -> None:
    center = NotificationCenter()
    clock = FakeClock()
    tasks = [make_task("t1", text="Pay rent", deadline=date(2026, 10, 1))]

    first = center.scan_overdue(tasks, today=TODAY, now=clock.now())
    second = center.scan_overdue(tasks, today=TODAY, now=clock.advance(seconds=30))

    assert [n.id for n in first] == ["overdue-t1"]
    assert second == []
    assert len(center) == 1
    item = center.get("overdue-t1")
    assert item is not None
    assert item.message == "Task Pay rent is past its deadline."
    assert item.read is False
    assert item.timestamp == first[0].timestamp


def test_overdue_scan_skips_done_today_and_undated() -> None:
    center = NotificationCenter()
    tasks = [
        make_task("done", status=TaskStatus.DONE, deadline=date(2026, 1, 1)),
        make_task("today", deadline=TODAY),
        make_task("future", deadline=date(2027, 1, 1)),
        make_task("undated"),
        make_task("late", status=TaskStatus.DOING, deadline=date(2026, 10, 18)),
    ]

    added = center.scan_overdue(tasks, today=TODAY, now=FakeClock().now())

    assert [n.id for n in added] == ["overdue-late"]


def test_overdue_never_rearms() -> None:
    center = NotificationCenter()
    clock = FakeClock()
    late = make_task("t1", deadline=date(2026, 10, 1))

    center.scan_overdue([late], today=TODAY, now=clock.now())
    # Deadline fixed, then overdue again later: still only the original entry.
    center.scan_overdue([make_task("t1", deadline=date(2026, 12, 1))], today=TODAY, now=clock.now())
    center.scan_overdue([late], today=TODAY, now=clock.now())

    assert [n.id for n in center.notifications()] == ["overdue-t1"]


def test_timer_expiry_is_deduplicated() -> None:
    center = NotificationCenter()
    clock = FakeClock()
    task = make_task("t9", text="Draft memo")

    first = center.notify_timer_expired(task, now=clock.now())
    second = center.notify_timer_expired(task, now=clock.advance(seconds=1))

    assert first is not None
    assert first.message == "Time's up for: Draft memo!"
    assert second is None
    assert [n.id for n in center.notifications()] == ["timer-end-t9"]


def test_read_state_and_unread_count() -> None:
    center = NotificationCenter()
    clock = FakeClock()
    center.notify_timer_expired(make_task("a"), now=clock.now())
    center.notify_timer_expired(make_task("b"), now=clock.now())
    assert center.unread_count == 2

    center.mark_as_read("timer-end-a")
    assert center.unread_count == 1
    assert center.get("timer-end-a").read is True  # type: ignore[union-attr]
    assert center.get("timer-end-b").read is False  # type: ignore[union-attr]

    center.toggle_read("timer-end-a")
    assert center.unread_count == 2

    assert center.mark_all_read() == 2
    assert center.unread_count == 0

    center.mark_as_unread("timer-end-b")
    assert center.unread_count == 1


def test_mark_unknown_notification_raises() -> None:
    with pytest.raises(KeyError):
        NotificationCenter().mark_as_read("overdue-nope")


def test_listener_called_once_per_new_entry() -> None:
    center = NotificationCenter()
    seen: list[str] = []
    remove = center.add_listener(lambda n: seen.append(n.id))
    task = make_task("t1")

    center.notify_timer_expired(task, now=FakeClock().now())
    center.notify_timer_expired(task, now=FakeClock().now())
    remove()
    center.notify_timer_expired(make_task("t2"), now=FakeClock().now())

    assert seen == ["timer-end-t1"]
    assert len(center) == 2


def test_failing_listener_does_not_block_append() -> None:
    center = NotificationCenter()

    def boom(_n) -> None:
        raise RuntimeError("listener bug")

    center.add_listener(boom)
    assert center.notify_timer_expired(make_task("t1"), now=FakeClock().now()) is not None
    assert "timer-end-t1" in center
