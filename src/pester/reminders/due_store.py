# src/pester/reminders/due_store.py

from __future__ import annotations

import contextlib
import logging
import sqlite3
from collections.abc import Callable
from pathlib import Path

logger = logging.getLogger(__name__)

KEY_PREFIX = "task_due_"


def due_key(task_id: int) -> str:
    return f"{KEY_PREFIX}{int(task_id)}"


def parse_due_key(key: str) -> int | None:
    """Return the task id encoded in a due key, or None for foreign/malformed keys."""
    if not key.startswith(KEY_PREFIX):
        return None
    try:
        return int(key[len(KEY_PREFIX):])
    except ValueError:
        return None


class DueTimeStore:
    """
    Durable taskId -> dueAt map (epoch milliseconds).

    Entries live in their own table (`reminder_schedule`) as
    `task_due_<id> -> INTEGER`, separate from user settings, so the whole key
    space can be enumerated or cleared by prefix.

    There is no locking here: the reminder job lease guarantees a single
    writer. Each method opens its own SQLite connection.
    """

    def __init__(self, db_path: str | Path = "reminders.sqlite3") -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()
        logger.info("DueTimeStore ready db=%s entries=%s", self._db_path, len(self.all_keys()))

    def close(self) -> None:
        return

    # ---- low-level helpers ----

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        conn.row_factory = sqlite3.Row
        with contextlib.suppress(Exception):
            conn.execute("PRAGMA journal_mode=WAL")
        return conn

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS reminder_schedule (
                    key TEXT PRIMARY KEY,
                    value INTEGER NOT NULL
                )
                """
            )
            conn.commit()
        finally:
            conn.close()

    def _prefixed_keys(self, conn: sqlite3.Connection) -> list[str]:
        # LIKE treats "_" as a wildcard, so filter the prefix in Python too.
        cur = conn.execute(
            "SELECT key FROM reminder_schedule WHERE key LIKE ?",
            (f"{KEY_PREFIX}%",),
        )
        return [str(r["key"]) for r in cur.fetchall() if str(r["key"]).startswith(KEY_PREFIX)]

    def _delete_keys(self, conn: sqlite3.Connection, keys: list[str]) -> int:
        if not keys:
            return 0
        conn.executemany("DELETE FROM reminder_schedule WHERE key = ?", [(k,) for k in keys])
        conn.commit()
        return len(keys)

    # ---- public API ----

    def get(self, task_id: int) -> int | None:
        """Due time for task_id, or None when the task was never scheduled."""
        conn = self._get_conn()
        try:
            cur = conn.execute(
                "SELECT value FROM reminder_schedule WHERE key = ?",
                (due_key(task_id),),
            )
            row = cur.fetchone()
        finally:
            conn.close()

        if row is None:
            return None
        value = int(row["value"])
        # Non-positive values are the legacy "unset" sentinel.
        return value if value > 0 else None

    def set(self, task_id: int, due_at_ms: int) -> None:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO reminder_schedule(key, value) VALUES (?, ?)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value
                """,
                (due_key(task_id), int(due_at_ms)),
            )
            conn.commit()
        finally:
            conn.close()

    def remove(self, task_id: int) -> None:
        conn = self._get_conn()
        try:
            conn.execute("DELETE FROM reminder_schedule WHERE key = ?", (due_key(task_id),))
            conn.commit()
        finally:
            conn.close()

    def remove_where(self, predicate: Callable[[int], bool]) -> int:
        """
        Bulk prune: delete every entry whose task id satisfies predicate.

        Keys under the prefix that do not parse as a task id can never match a
        task and are always removed. Returns the number of deleted entries.
        """
        conn = self._get_conn()
        try:
            doomed: list[str] = []
            for key in self._prefixed_keys(conn):
                task_id = parse_due_key(key)
                if task_id is None or predicate(task_id):
                    doomed.append(key)
            return self._delete_keys(conn, doomed)
        finally:
            conn.close()

    def all_keys(self) -> set[int]:
        conn = self._get_conn()
        try:
            keys = self._prefixed_keys(conn)
        finally:
            conn.close()
        out: set[int] = set()
        for key in keys:
            task_id = parse_due_key(key)
            if task_id is not None:
                out.add(task_id)
        return out

    def clear(self) -> int:
        """Remove every due entry. Returns the number of deleted entries."""
        conn = self._get_conn()
        try:
            return self._delete_keys(conn, self._prefixed_keys(conn))
        finally:
            conn.close()

    def snapshot(self) -> dict[int, int]:
        conn = self._get_conn()
        try:
            cur = conn.execute(
                "SELECT key, value FROM reminder_schedule WHERE key LIKE ?",
                (f"{KEY_PREFIX}%",),
            )
            rows = cur.fetchall()
        finally:
            conn.close()
        out: dict[int, int] = {}
        for r in rows:
            task_id = parse_due_key(str(r["key"]))
            if task_id is not None:
                out[task_id] = int(r["value"])
        return out
