# tests/test_sorting.py

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

from taskboard.board.models import FilterConfig, SortMode, TaskStatus
from taskboard.board.sorting import COLUMNS, apply_filter, build_columns, partition

from .fakes import make_task

T0 = datetime(2026, 1, 1, tzinfo=timezone.utc)


def _ids(tasks) -> list[str]:
    return [t.id for t in tasks]


def test_date_sort_puts_undated_last_and_keeps_their_order() -> None:
    tasks = [
        make_task("1"),
        make_task("2"),
        make_task("3", deadline=date(2024, 1, 1)),
    ]
    assert _ids(apply_filter(tasks, FilterConfig(sort=SortMode.DATE))) == ["3", "1", "2"]


def test_date_sort_ascending_by_deadline() -> None:
    tasks = [
        make_task("late", deadline=date(2026, 5, 1)),
        make_task("none"),
        make_task("early", deadline=date(2026, 1, 1)),
    ]
    assert _ids(apply_filter(tasks, FilterConfig(sort=SortMode.DATE))) == ["early", "late", "none"]


def test_newest_sort_treats_missing_timestamp_as_oldest() -> None:
    tasks = [
        make_task("missing"),
        make_task("old", created_at=T0),
        make_task("new", created_at=T0 + timedelta(hours=1)),
    ]
    assert _ids(apply_filter(tasks, FilterConfig())) == ["new", "old", "missing"]


def test_newest_sort_is_stable_for_equal_timestamps() -> None:
    tasks = [make_task("a", created_at=T0), make_task("b", created_at=T0)]
    assert _ids(apply_filter(tasks, FilterConfig(sort=SortMode.NEWEST))) == ["a", "b"]


def test_a_z_sort_is_case_insensitive() -> None:
    tasks = [
        make_task("1", text="banana"),
        make_task("2", text="Apple"),
        make_task("3", text="cherry"),
    ]
    assert _ids(apply_filter(tasks, FilterConfig(sort=SortMode.A_Z))) == ["2", "1", "3"]


def test_apply_filter_does_not_mutate_input() -> None:
    tasks = [make_task("1", text="b"), make_task("2", text="a")]
    before = list(tasks)

    out = apply_filter(tasks, FilterConfig(sort=SortMode.A_Z))

    assert tasks == before
    assert out is not tasks


def test_partition_covers_every_task_exactly_once() -> None:
    tasks = [
        make_task("1", status=TaskStatus.TODO),
        make_task("2", status=TaskStatus.URGENT, deadline=date(2026, 1, 1)),
        make_task("3", status=TaskStatus.DOING, duration=10, start_time=T0),
        make_task("4", status=TaskStatus.DONE),
        make_task("5", status=TaskStatus.DOING),
        make_task("6", status=TaskStatus.TODO, tags=("x",)),
    ]

    columns = partition(tasks)

    assert set(columns) == set(COLUMNS)
    flat = [t.id for col in columns.values() for t in col]
    assert sorted(flat) == sorted(t.id for t in tasks)
    assert len(flat) == len(set(flat))
    for status, col in columns.items():
        assert all(t.status == status for t in col)


def test_build_columns_sorts_each_column_independently() -> None:
    tasks = [
        make_task("t-b", text="b", created_at=T0 + timedelta(hours=1)),
        make_task("t-a", text="a", created_at=T0),
        make_task("d-b", text="b", status=TaskStatus.DONE, created_at=T0 + timedelta(hours=1)),
        make_task("d-a", text="a", status=TaskStatus.DONE, created_at=T0),
    ]
    configs = {TaskStatus.TODO: FilterConfig(sort=SortMode.A_Z)}

    columns = build_columns(tasks, configs)

    assert _ids(columns[TaskStatus.TODO]) == ["t-a", "t-b"]
    # Missing config falls back to newest.
    assert _ids(columns[TaskStatus.DONE]) == ["d-b", "d-a"]
    assert columns[TaskStatus.URGENT] == []


def test_a_z_sort_places_accented_titles_with_their_base_letter() -> None:
    tasks = [
        make_task("z", text="Zebra"),
        make_task("e", text="Éclair"),
        make_task("b", text="banana"),
        make_task("a", text="Ápple"),
    ]
    assert _ids(apply_filter(tasks, FilterConfig(sort=SortMode.A_Z))) == ["a", "b", "e", "z"]
