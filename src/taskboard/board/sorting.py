# src/taskboard/board/sorting.py

from __future__ import annotations

import locale
import unicodedata
from collections.abc import Iterable, Mapping
from datetime import date

from .models import FilterConfig, SortMode, Task, TaskStatus

COLUMNS: tuple[TaskStatus, ...] = (
    TaskStatus.TODO,
    TaskStatus.URGENT,
    TaskStatus.DOING,
    TaskStatus.DONE,
)


def _created_ts(task: Task) -> float:
    # Unresolved timestamps sort as the oldest possible.
    if task.created_at is None:
        return 0.0
    try:
        return task.created_at.timestamp()
    except (OverflowError, OSError, ValueError):
        return 0.0


def _base_letters(text: str) -> str:
    """Case- and accent-folded form: "Éclair" -> "eclair"."""
    decomposed = unicodedata.normalize("NFKD", text.casefold())
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def _text_key(task: Task) -> tuple[str, str, str]:
    # Base letters first; LC_COLLATE (set in cli.main) orders the rest.
    text = task.text or ""
    return _base_letters(text), locale.strxfrm(text.casefold()), locale.strxfrm(text)


def _deadline_key(task: Task) -> tuple[bool, date]:
    return task.deadline is None, task.deadline or date.min


def apply_filter(tasks: Iterable[Task], config: FilterConfig) -> list[Task]:
    """
    Return a new, sorted list; the input is left untouched.

    All modes use Python's stable sort, so equal keys keep input order
    (in particular: undated tasks under "date").
    """
    items = list(tasks)
    mode = SortMode(config.sort)

    if mode == SortMode.A_Z:
        return sorted(items, key=_text_key)
    if mode == SortMode.DATE:
        return sorted(items, key=_deadline_key)
    return sorted(items, key=_created_ts, reverse=True)


def partition(tasks: Iterable[Task]) -> dict[TaskStatus, list[Task]]:
    columns: dict[TaskStatus, list[Task]] = {status: [] for status in COLUMNS}
    for task in tasks:
        columns[task.status].append(task)
    return columns


def build_columns(
    tasks: Iterable[Task],
    configs: Mapping[TaskStatus, FilterConfig],
) -> dict[TaskStatus, list[Task]]:
    """Partition by status first, then sort each column with its own config."""
    return {
        status: apply_filter(column, configs.get(status) or FilterConfig())
        for status, column in partition(tasks).items()
    }
