# src/pester/quotes/settings_store.py

from __future__ import annotations

import contextlib
import logging
import sqlite3
from enum import StrEnum
from pathlib import Path

logger = logging.getLogger(__name__)

KEY_THEME_MODE = "theme_mode"
KEY_SHOW_QUOTES = "show_bible_quotes"
KEY_QUOTE_TEXT = "quote_text"
KEY_QUOTE_REFERENCE = "quote_reference"
KEY_QUOTE_EPOCH_DAY = "quote_epoch_day"


class ThemeMode(StrEnum):
    SYSTEM = "system"
    LIGHT = "light"
    DARK = "dark"

    @classmethod
    def from_storage(cls, raw: str | None) -> ThemeMode:
        if not raw:
            return cls.SYSTEM
        try:
            return cls(raw)
        except ValueError:
            return cls.SYSTEM


class SettingsStore:
    """
    Small SQLite key-value store for user preferences and the cached quote.

    Values are stored as TEXT; typed accessors do the conversion and fall back
    to defaults on anything unparseable.
    """

    def __init__(self, db_path: str | Path = "settings.sqlite3") -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()
        logger.info("SettingsStore ready db=%s", self._db_path)

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
                CREATE TABLE IF NOT EXISTS settings (
                    key TEXT PRIMARY KEY,
                    value TEXT
                )
                """
            )
            conn.commit()
        finally:
            conn.close()

    def get_raw(self, key: str) -> str | None:
        conn = self._get_conn()
        try:
            cur = conn.execute("SELECT value FROM settings WHERE key = ?", (key,))
            row = cur.fetchone()
            return None if row is None else row["value"]
        finally:
            conn.close()

    def set_many(self, values: dict[str, str | None]) -> None:
        """Write several keys in one transaction."""
        conn = self._get_conn()
        try:
            conn.executemany(
                """
                INSERT INTO settings(key, value) VALUES (?, ?)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value
                """,
                list(values.items()),
            )
            conn.commit()
        finally:
            conn.close()

    # ---- typed accessors ----

    def get_theme_mode(self) -> ThemeMode:
        return ThemeMode.from_storage(self.get_raw(KEY_THEME_MODE))

    def set_theme_mode(self, mode: ThemeMode) -> None:
        self.set_many({KEY_THEME_MODE: mode.value})

    def get_show_quotes(self) -> bool:
        return (self.get_raw(KEY_SHOW_QUOTES) or "").strip() == "1"

    def set_show_quotes(self, enabled: bool) -> None:
        self.set_many({KEY_SHOW_QUOTES: "1" if enabled else "0"})

    def get_quote_fields(self) -> tuple[str, str, int | None]:
        """(text, reference, epoch_day) of the cached quote; blanks if none."""
        text = (self.get_raw(KEY_QUOTE_TEXT) or "").strip()
        reference = (self.get_raw(KEY_QUOTE_REFERENCE) or "").strip()
        raw_day = self.get_raw(KEY_QUOTE_EPOCH_DAY)
        try:
            day = int(raw_day) if raw_day is not None else None
        except ValueError:
            day = None
        return text, reference, day

    def save_quote(self, *, text: str, reference: str, epoch_day: int) -> None:
        self.set_many(
            {
                KEY_QUOTE_TEXT: text,
                KEY_QUOTE_REFERENCE: reference,
                KEY_QUOTE_EPOCH_DAY: str(int(epoch_day)),
            }
        )
