# src/taskboard/cli/render.py

from __future__ import annotations

"""Plain-text rendering of the board for the console connector."""

from ..board.controller import BoardController
from ..board.models import Notification, Task, TaskStatus
from ..board.timer import Countdown

HEADER_TITLES: dict[TaskStatus, str] = {
    TaskStatus.TODO: "TO DO",
    TaskStatus.URGENT: "URGENT",
    TaskStatus.DOING: "DOING",
    TaskStatus.DONE: "DONE",
}
SHORT_ID = 8


def format_remaining(ms: int) -> str:
    total_s = max(0, ms) // 1000
    hours, rest = divmod(total_s, 3600)
    minutes, seconds = divmod(rest, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{seconds:02d}"
    return f"{minutes:02d}:{seconds:02d}"


def format_countdown(countdown: Countdown) -> str:
    if countdown.expired:
        return "time's up"
    return f"{format_remaining(countdown.remaining_ms)} left ({countdown.progress_percent:.0f}%)"


def render_task(board: BoardController, task: Task) -> str:
    parts = [f"{task.id[:SHORT_ID]}  {task.text}"]
    if task.deadline is not None:
        parts.append(f"due {task.deadline.isoformat()}")
    if task.duration is not None:
        parts.append(f"{task.duration} mins")

    labels = board.tag_labels(task)
    if labels:
        # Unknown (deleted) tags still show, just without the # marker.
        parts.append(" ".join(f"#{name}" if known else name for name, known in labels))

    countdown = board.countdown(task.id)
    if countdown is not None:
        parts.append(format_countdown(countdown))
    return " | ".join(parts)


def render_board(board: BoardController) -> str:
    if not board.ready:
        return "Loading..."

    filters = board.filters
    lines: list[str] = []
    for status, tasks in board.columns().items():
        lines.append(f"{HEADER_TITLES[status]} ({len(tasks)}) [sort: {filters[status].sort}]")
        if not tasks:
            lines.append("  (empty)")
        for task in tasks:
            lines.append(f"  {render_task(board, task)}")
        lines.append("")
    return "\n".join(lines).rstrip()


def render_notifications(items: list[Notification]) -> str:
    if not items:
        return "No notifications."
    lines = []
    for item in reversed(items):
        mark = " " if item.read else "*"
        ts = item.timestamp.astimezone().strftime("%Y-%m-%d %H:%M")
        lines.append(f"{mark} {item.id}  [{ts}] {item.message}")
    return "\n".join(lines)
