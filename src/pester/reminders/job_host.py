# src/pester/reminders/job_host.py

from __future__ import annotations

"""
Durable named-job table.

A job is a row keyed by its logical name holding the instant it should next
run. Nothing has to stay alive between runs: any process (the console app, a
cron-driven `pester-tick`) can pick the job up once it is due.

Invariants:
- at most one row per name, so at most one pending invocation;
- a run holds a lease (token + expiry) obtained by an atomic compare-and-set,
  so two runs of the same job never overlap. A lease whose owner died expires
  and the job becomes claimable again.
"""

import contextlib
import logging
import sqlite3
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from ..core.clock import now_ms
from ..core.ports import ArmPolicy

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class JobInfo:
    name: str
    run_at_ms: int
    lease_token: str | None
    lease_until_ms: int | None
    rerun_requested: bool
    rerun_delay_ms: int
    attempts: int

    def is_running(self, at_ms: int) -> bool:
        return self.lease_token is not None and (self.lease_until_ms or 0) > at_ms


class SqliteJobHost:
    """
    SQLite-backed JobHost.

    ensure_armed(KEEP) never moves an existing pending run; a burst of
    triggers therefore cannot keep pushing the next run into the future.
    ensure_armed(REPLACE) always leaves exactly one pending run at now+delay.

    A KEEP request that arrives while the job is running is remembered
    (rerun_requested): if that run then finishes without re-arming, the job
    is put back as pending instead of being dropped.
    """

    def __init__(
        self,
        db_path: str | Path = "reminders.sqlite3",
        *,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._clock = clock
        self._ensure_schema()
        logger.info("SqliteJobHost ready db=%s", self._db_path)

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
                CREATE TABLE IF NOT EXISTS jobs (
                    name TEXT PRIMARY KEY,
                    run_at INTEGER NOT NULL,
                    lease_token TEXT,
                    lease_until INTEGER,
                    rerun_requested INTEGER NOT NULL DEFAULT 0,
                    rerun_delay_ms INTEGER NOT NULL DEFAULT 0,
                    attempts INTEGER NOT NULL DEFAULT 0,
                    updated_at INTEGER NOT NULL
                )
                """
            )
            conn.commit()
        finally:
            conn.close()

    @staticmethod
    def _row_to_info(row: sqlite3.Row) -> JobInfo:
        return JobInfo(
            name=str(row["name"]),
            run_at_ms=int(row["run_at"]),
            lease_token=row["lease_token"],
            lease_until_ms=int(row["lease_until"]) if row["lease_until"] is not None else None,
            rerun_requested=bool(row["rerun_requested"]),
            rerun_delay_ms=int(row["rerun_delay_ms"] or 0),
            attempts=int(row["attempts"] or 0),
        )

    # ---- JobHost port ----

    def ensure_armed(self, name: str, delay_ms: int, policy: ArmPolicy) -> None:
        now = self._clock()
        delay = max(0, int(delay_ms))
        run_at = now + delay

        conn = self._get_conn()
        try:
            if policy == ArmPolicy.REPLACE:
                conn.execute(
                    """
                    INSERT INTO jobs(name, run_at, updated_at) VALUES (?, ?, ?)
                    ON CONFLICT(name) DO UPDATE SET
                        run_at = excluded.run_at,
                        lease_token = NULL,
                        lease_until = NULL,
                        rerun_requested = 0,
                        rerun_delay_ms = 0,
                        attempts = 0,
                        updated_at = excluded.updated_at
                    """,
                    (name, run_at, now),
                )
            else:
                conn.execute(
                    """
                    INSERT INTO jobs(name, run_at, updated_at) VALUES (?, ?, ?)
                    ON CONFLICT(name) DO UPDATE SET
                        rerun_requested = CASE
                            WHEN lease_token IS NOT NULL AND lease_until > ? THEN 1
                            ELSE rerun_requested
                        END,
                        rerun_delay_ms = CASE
                            WHEN lease_token IS NOT NULL AND lease_until > ? THEN ?
                            ELSE rerun_delay_ms
                        END
                    """,
                    (name, run_at, now, now, now, delay),
                )
            conn.commit()
        finally:
            conn.close()
        logger.debug("ensure_armed name=%s delay_ms=%s policy=%s", name, delay, policy.value)

    # ---- driver API ----

    def pending(self, name: str) -> JobInfo | None:
        conn = self._get_conn()
        try:
            cur = conn.execute("SELECT * FROM jobs WHERE name = ?", (name,))
            row = cur.fetchone()
            return self._row_to_info(row) if row else None
        finally:
            conn.close()

    def claim(self, name: str, *, lease_ms: int, force: bool = False) -> str | None:
        """
        Atomically take the lease on a due job.

        Succeeds only if the job is due (or force is set) and not leased (or
        its lease expired). Returns the lease token, or None if there is
        nothing to run.
        """
        now = self._clock()
        token = uuid.uuid4().hex

        conn = self._get_conn()
        try:
            cur = conn.execute(
                """
                UPDATE jobs
                SET lease_token = ?,
                    lease_until = ?,
                    rerun_requested = 0,
                    attempts = attempts + 1,
                    updated_at = ?
                WHERE name = ?
                  AND (? OR run_at <= ?)
                  AND (lease_token IS NULL OR lease_until <= ?)
                """,
                (token, now + max(1, int(lease_ms)), now, name, 1 if force else 0, now, now),
            )
            conn.commit()
            claimed = cur.rowcount == 1
        finally:
            conn.close()

        if not claimed:
            return None
        logger.debug("Job claimed name=%s token=%s", name, token)
        return token

    def finish(self, name: str, token: str) -> None:
        """
        Close a successful run.

        If the run re-armed itself (REPLACE) the lease is already gone and this
        is a no-op. Otherwise the job is dropped, unless a trigger asked for a
        rerun while the job was running.
        """
        now = self._clock()
        conn = self._get_conn()
        try:
            cur = conn.execute(
                """
                UPDATE jobs
                SET run_at = ? + rerun_delay_ms,
                    lease_token = NULL,
                    lease_until = NULL,
                    rerun_requested = 0,
                    rerun_delay_ms = 0,
                    attempts = 0,
                    updated_at = ?
                WHERE name = ? AND lease_token = ? AND rerun_requested = 1
                """,
                (now, now, name, token),
            )
            if cur.rowcount == 1:
                logger.info("Job %s rerun requested while running; kept pending", name)
            else:
                conn.execute("DELETE FROM jobs WHERE name = ? AND lease_token = ?", (name, token))
            conn.commit()
        finally:
            conn.close()

    def fail(self, name: str, token: str, *, retry_delay_ms: int) -> None:
        """Release the lease and retry after a backoff."""
        now = self._clock()
        conn = self._get_conn()
        try:
            conn.execute(
                """
                UPDATE jobs
                SET run_at = ?,
                    lease_token = NULL,
                    lease_until = NULL,
                    rerun_requested = 0,
                    rerun_delay_ms = 0,
                    updated_at = ?
                WHERE name = ? AND lease_token = ?
                """,
                (now + max(0, int(retry_delay_ms)), now, name, token),
            )
            conn.commit()
        finally:
            conn.close()

    def cancel(self, name: str) -> None:
        conn = self._get_conn()
        try:
            conn.execute("DELETE FROM jobs WHERE name = ?", (name,))
            conn.commit()
        finally:
            conn.close()
