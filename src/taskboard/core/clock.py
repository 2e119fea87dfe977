# src/taskboard/core/clock.py

from __future__ import annotations

from datetime import date, datetime, timezone


class SystemClock:
    """Wall clock: aware UTC instants, local calendar dates."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    def today(self) -> date:
        return datetime.now().astimezone().date()
