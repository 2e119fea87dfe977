# src/taskboard/storage/document_store.py

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
import sqlite3
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any

from ..board.models import (
    Tag,
    Task,
    TaskPatch,
    TaskStatus,
    normalize_duration,
    normalize_tag_name,
    normalize_tags,
)
from ..core.ports import TagSnapshotCallback, TaskFields, TaskSnapshotCallback

logger = logging.getLogger(__name__)

PATCHABLE_FIELDS = frozenset({"status", "start_time", "deadline", "duration", "text", "tags"})


def _encode_dt(value: datetime | None) -> str | None:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


def _decode_dt(raw: str | None) -> datetime | None:
    if not raw:
        return None
    try:
        value = datetime.fromisoformat(raw)
    except ValueError:
        return None
    return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)


def _encode_date(value: date | str | None) -> str | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        value = value.date()
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


def _decode_date(raw: str | None) -> date | None:
    if not raw:
        return None
    try:
        return date.fromisoformat(raw)
    except ValueError:
        return None


@dataclass(slots=True)
class _Subscription:
    """Handle returned by subscribe_*; unsubscribe() stops delivery."""

    _remove: Callable[[], None]
    active: bool = True

    def unsubscribe(self) -> None:
        if self.active:
            self.active = False
            self._remove()


class SqliteDocumentStore:
    """
    SQLite-backed document store with an in-process change feed.

    The schema is intentionally simple and migration-safe:
    - create tables if missing
    - use PRAGMA table_info to detect missing columns
    - add columns with ALTER TABLE only when needed

    Thread-safety:
    - each method opens its own SQLite connection
    - writes run in a worker thread, snapshots are published on the caller's loop
    """

    def __init__(self, db_path: str | Path = "board.sqlite3") -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._task_subs: dict[str, list[TaskSnapshotCallback]] = {}
        self._tag_subs: dict[str, list[TagSnapshotCallback]] = {}
        self._ensure_schema()
        try:
            total = self.count_tasks()
        except sqlite3.Error:
            total = -1
        logger.info("DocumentStore ready db=%s total=%s", self._db_path, total)

    def close(self) -> None:
        """Compatibility hook for shutdown (no persistent connections to close)."""
        self._task_subs.clear()
        self._tag_subs.clear()

    # ---- low-level helpers ----

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        conn.row_factory = sqlite3.Row
        self._configure_conn(conn)
        return conn

    @staticmethod
    def _configure_conn(conn: sqlite3.Connection) -> None:
        with contextlib.suppress(sqlite3.Error):
            conn.execute("PRAGMA journal_mode=WAL")

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            cur = conn.cursor()

            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS tasks (
                    id TEXT PRIMARY KEY,
                    owner_id TEXT NOT NULL,
                    text TEXT NOT NULL,
                    status TEXT NOT NULL DEFAULT 'todo',
                    created_at TEXT,
                    deadline TEXT,
                    duration INTEGER,
                    start_time TEXT,
                    tags TEXT NOT NULL DEFAULT '[]'
                )
                """
            )
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS tags (
                    id TEXT PRIMARY KEY,
                    owner_id TEXT NOT NULL,
                    name TEXT NOT NULL,
                    UNIQUE(owner_id, name)
                )
                """
            )

            # Migrations (safe): add missing columns.
            cur.execute("PRAGMA table_info(tasks)")
            cols = {row["name"] for row in cur.fetchall()}

            def add_col(name: str, decl: str) -> None:
                if name in cols:
                    return
                cur.execute(f"ALTER TABLE tasks ADD COLUMN {name} {decl}")
                logger.info("DocumentStore migration: added column %s", name)

            add_col("created_at", "TEXT")
            add_col("deadline", "TEXT")
            add_col("duration", "INTEGER")
            add_col("start_time", "TEXT")
            add_col("tags", "TEXT NOT NULL DEFAULT '[]'")

            cur.execute("CREATE INDEX IF NOT EXISTS idx_tasks_owner ON tasks(owner_id, status)")
            cur.execute("CREATE INDEX IF NOT EXISTS idx_tags_owner ON tags(owner_id)")

            conn.commit()
        finally:
            conn.close()

    @staticmethod
    def _tags_to_str(tags: Any) -> str:
        return json.dumps(sorted(normalize_tags(tags)), ensure_ascii=False)

    @staticmethod
    def _str_to_tags(s: str | None) -> frozenset[str]:
        if not s:
            return frozenset()
        try:
            val = json.loads(s)
        except json.JSONDecodeError:
            return frozenset()
        return normalize_tags(val) if isinstance(val, list) else frozenset()

    def _row_to_task(self, row: sqlite3.Row) -> Task:
        return Task(
            id=str(row["id"]),
            text=str(row["text"] or ""),
            status=TaskStatus.from_db(row["status"]),
            owner_id=str(row["owner_id"]),
            created_at=_decode_dt(row["created_at"]),
            deadline=_decode_date(row["deadline"]),
            duration=normalize_duration(row["duration"]),
            start_time=_decode_dt(row["start_time"]),
            tags=self._str_to_tags(row["tags"]),
        )

    @staticmethod
    def _row_to_tag(row: sqlite3.Row) -> Tag:
        return Tag(id=str(row["id"]), name=str(row["name"]), owner_id=str(row["owner_id"]))

    # ---- queries ----

    def count_tasks(self) -> int:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute("SELECT COUNT(*) FROM tasks")
            (n,) = cur.fetchone()
            return int(n)
        finally:
            conn.close()

    def list_tasks(self, owner_id: str) -> list[Task]:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute(
                "SELECT * FROM tasks WHERE owner_id = ? ORDER BY created_at DESC",
                (owner_id,),
            )
            return [self._row_to_task(r) for r in cur.fetchall()]
        finally:
            conn.close()

    def list_tags(self, owner_id: str) -> list[Tag]:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute("SELECT * FROM tags WHERE owner_id = ? ORDER BY name ASC", (owner_id,))
            return [self._row_to_tag(r) for r in cur.fetchall()]
        finally:
            conn.close()

    def _owner_of_task(self, task_id: str) -> str | None:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute("SELECT owner_id FROM tasks WHERE id = ?", (task_id,))
            row = cur.fetchone()
            return str(row["owner_id"]) if row else None
        finally:
            conn.close()

    # ---- change feed ----

    def subscribe_tasks(self, owner_id: str, callback: TaskSnapshotCallback) -> _Subscription:
        subs = self._task_subs.setdefault(owner_id, [])
        subs.append(callback)
        callback(self.list_tasks(owner_id))

        def remove() -> None:
            if callback in subs:
                subs.remove(callback)

        return _Subscription(remove)

    def subscribe_tags(self, owner_id: str, callback: TagSnapshotCallback) -> _Subscription:
        subs = self._tag_subs.setdefault(owner_id, [])
        subs.append(callback)
        callback(self.list_tags(owner_id))

        def remove() -> None:
            if callback in subs:
                subs.remove(callback)

        return _Subscription(remove)

    def _publish_tasks(self, owner_id: str) -> None:
        subs = list(self._task_subs.get(owner_id, ()))
        if not subs:
            return
        snapshot = self.list_tasks(owner_id)
        for cb in subs:
            try:
                cb(list(snapshot))
            except Exception:
                logger.exception("Task snapshot subscriber failed owner=%s", owner_id)

    def _publish_tags(self, owner_id: str) -> None:
        subs = list(self._tag_subs.get(owner_id, ()))
        if not subs:
            return
        snapshot = self.list_tags(owner_id)
        for cb in subs:
            try:
                cb(list(snapshot))
            except Exception:
                logger.exception("Tag snapshot subscriber failed owner=%s", owner_id)

    # ---- writes ----

    def _insert_task(self, fields: TaskFields) -> tuple[str, str]:
        owner_id = str(fields.get("owner_id") or "").strip()
        text = str(fields.get("text") or "").strip()
        if not owner_id:
            raise ValueError("owner_id is required")
        if not text:
            raise ValueError("text is required")

        task_id = uuid.uuid4().hex
        status = TaskStatus(fields.get("status") or TaskStatus.TODO)

        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO tasks(id, owner_id, text, status, created_at, deadline, duration, start_time, tags)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    task_id,
                    owner_id,
                    text,
                    status.value,
                    _encode_dt(fields.get("created_at") or datetime.now(timezone.utc)),
                    _encode_date(fields.get("deadline")),
                    normalize_duration(fields.get("duration")),
                    _encode_dt(fields.get("start_time")),
                    self._tags_to_str(fields.get("tags")),
                ),
            )
            conn.commit()
        finally:
            conn.close()

        logger.debug("Task created id=%s owner=%s status=%s", task_id, owner_id, status.value)
        return task_id, owner_id

    def _insert_tag(self, fields: dict[str, Any]) -> tuple[str, str]:
        owner_id = str(fields.get("owner_id") or "").strip()
        name = normalize_tag_name(str(fields.get("name") or ""))
        if not owner_id:
            raise ValueError("owner_id is required")
        if not name:
            raise ValueError("name is required")

        tag_id = uuid.uuid4().hex
        conn = self._get_conn()
        try:
            conn.execute(
                "INSERT INTO tags(id, owner_id, name) VALUES (?, ?, ?)",
                (tag_id, owner_id, name),
            )
            conn.commit()
        finally:
            conn.close()

        logger.debug("Tag created id=%s owner=%s name=%s", tag_id, owner_id, name)
        return tag_id, owner_id

    def _apply_patch(self, task_id: str, patch: TaskPatch) -> str:
        unknown = set(patch) - PATCHABLE_FIELDS
        if unknown:
            raise ValueError(f"Unsupported patch fields: {sorted(unknown)}")

        owner_id = self._owner_of_task(task_id)
        if owner_id is None:
            raise LookupError(f"task {task_id} does not exist")

        fields: list[str] = []
        params: list[Any] = []

        if "status" in patch:
            fields.append("status = ?")
            params.append(TaskStatus(patch["status"]).value)

        if "start_time" in patch:
            fields.append("start_time = ?")
            params.append(_encode_dt(patch["start_time"]))

        if "deadline" in patch:
            fields.append("deadline = ?")
            params.append(_encode_date(patch["deadline"]))

        if "duration" in patch:
            fields.append("duration = ?")
            params.append(normalize_duration(patch["duration"]))

        if "text" in patch:
            fields.append("text = ?")
            params.append(str(patch["text"]).strip())

        if "tags" in patch:
            fields.append("tags = ?")
            params.append(self._tags_to_str(patch["tags"]))

        if not fields:
            return owner_id

        params.append(task_id)
        sql = f"UPDATE tasks SET {', '.join(fields)} WHERE id = ?"

        conn = self._get_conn()
        try:
            conn.execute(sql, params)
            conn.commit()
        finally:
            conn.close()
        return owner_id

    def _remove_task(self, task_id: str) -> str:
        owner_id = self._owner_of_task(task_id)
        if owner_id is None:
            raise LookupError(f"task {task_id} does not exist")

        conn = self._get_conn()
        try:
            conn.execute("DELETE FROM tasks WHERE id = ?", (task_id,))
            conn.commit()
        finally:
            conn.close()
        return owner_id

    async def create_task(self, fields: TaskFields) -> str:
        task_id, owner_id = await asyncio.to_thread(self._insert_task, dict(fields))
        self._publish_tasks(owner_id)
        return task_id

    async def create_tag(self, fields: dict[str, Any]) -> str:
        tag_id, owner_id = await asyncio.to_thread(self._insert_tag, dict(fields))
        self._publish_tags(owner_id)
        return tag_id

    async def update_task(self, task_id: str, patch: TaskPatch) -> None:
        owner_id = await asyncio.to_thread(self._apply_patch, task_id, dict(patch))
        self._publish_tasks(owner_id)

    async def delete_task(self, task_id: str) -> None:
        owner_id = await asyncio.to_thread(self._remove_task, task_id)
        self._publish_tasks(owner_id)
