# src/pester/tasks/task_store.py

from __future__ import annotations

import contextlib
import logging
import sqlite3
import time
from pathlib import Path

from .task_models import Task, clamp_intensity

logger = logging.getLogger(__name__)


class TaskStore:
    """
    SQLite task store.

    The schema is intentionally simple and migration-safe:
    - create table if missing
    - use PRAGMA table_info to detect missing columns
    - add columns with ALTER TABLE only when needed

    Thread-safety:
    - each method opens its own SQLite connection
    """

    def __init__(self, db_path: str | Path = "tasks.sqlite3") -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()
        try:
            total = self.count_tasks()
        except Exception:
            total = -1
        logger.info("TaskStore ready db=%s total=%s", self._db_path, total)

    def close(self) -> None:
        """Compatibility hook for shutdown (no persistent connections to close)."""
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
            cur = conn.cursor()
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS tasks (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    text TEXT NOT NULL,
                    intensity INTEGER NOT NULL DEFAULT 50,
                    is_done INTEGER NOT NULL DEFAULT 0,
                    created_at REAL NOT NULL
                )
                """
            )

            cur.execute("PRAGMA table_info(tasks)")
            cols = {row["name"] for row in cur.fetchall()}

            def add_col(name: str, decl: str) -> None:
                if name in cols:
                    return
                cur.execute(f"ALTER TABLE tasks ADD COLUMN {name} {decl}")
                logger.info("TaskStore migration: added column %s", name)

            add_col("intensity", "INTEGER NOT NULL DEFAULT 50")
            add_col("is_done", "INTEGER NOT NULL DEFAULT 0")
            add_col("created_at", "REAL NOT NULL DEFAULT 0")

            cur.execute("CREATE INDEX IF NOT EXISTS idx_tasks_done ON tasks(is_done)")
            conn.commit()
        finally:
            conn.close()

    @staticmethod
    def _row_to_task(row: sqlite3.Row) -> Task:
        return Task(
            id=int(row["id"]),
            text=str(row["text"] or ""),
            intensity=clamp_intensity(row["intensity"] or 0),
            is_done=bool(row["is_done"]),
            created_at=float(row["created_at"] or 0.0),
        )

    def _list_where_done(self, done: bool) -> list[Task]:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute(
                "SELECT * FROM tasks WHERE is_done = ? ORDER BY id DESC",
                (1 if done else 0,),
            )
            return [self._row_to_task(r) for r in cur.fetchall()]
        finally:
            conn.close()

    def _set_done(self, task_id: int, done: bool) -> bool:
        """True only if the task existed and actually changed state."""
        conn = self._get_conn()
        try:
            cur = conn.execute(
                "UPDATE tasks SET is_done = ? WHERE id = ? AND is_done = ?",
                (1 if done else 0, int(task_id), 0 if done else 1),
            )
            conn.commit()
            return cur.rowcount == 1
        finally:
            conn.close()

    # ---- public API ----

    def count_tasks(self) -> int:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute("SELECT COUNT(*) FROM tasks")
            (n,) = cur.fetchone()
            return int(n)
        finally:
            conn.close()

    def add_task(self, *, text: str, intensity: int) -> int:
        if not text or not text.strip():
            raise ValueError("text is required")

        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute(
                "INSERT INTO tasks(text, intensity, is_done, created_at) VALUES (?, ?, 0, ?)",
                (text.strip(), clamp_intensity(intensity), time.time()),
            )
            conn.commit()
            rowid = cur.lastrowid
            if rowid is None:
                raise RuntimeError("SQLite did not return lastrowid for tasks insert")
            task_id = int(rowid)
            logger.debug("Task added id=%s intensity=%s", task_id, clamp_intensity(intensity))
            return task_id
        finally:
            conn.close()

    def get_task(self, task_id: int) -> Task | None:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute("SELECT * FROM tasks WHERE id = ?", (int(task_id),))
            row = cur.fetchone()
            return self._row_to_task(row) if row else None
        finally:
            conn.close()

    def list_active_tasks(self) -> list[Task]:
        """Snapshot of tasks not yet marked done (newest first)."""
        return self._list_where_done(False)

    def list_done_tasks(self) -> list[Task]:
        return self._list_where_done(True)

    def mark_done(self, task_id: int) -> bool:
        return self._set_done(task_id, True)

    def mark_todo(self, task_id: int) -> bool:
        return self._set_done(task_id, False)

    def delete_task(self, task_id: int) -> bool:
        conn = self._get_conn()
        try:
            cur = conn.execute("DELETE FROM tasks WHERE id = ?", (int(task_id),))
            conn.commit()
            return cur.rowcount == 1
        finally:
            conn.close()
