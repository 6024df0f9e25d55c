# src/pester/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app.
- Nothing required at import time; every field has a local default.
- Paths default under a gitignored data directory.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

ENV_PREFIX = "PESTER"


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _load_dotenv_if_available() -> None:
    """Load .env locally if python-dotenv is installed. Safe no-op otherwise."""
    try:
        from dotenv import load_dotenv  # type: ignore
    except Exception:
        return
    load_dotenv(override=False)


_load_dotenv_if_available()


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str

    # ---- Front end ----
    console_enabled: bool
    notifications_enabled: bool

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    tasks_db_path: Path
    reminders_db_path: Path
    settings_db_path: Path

    # ---- Reminder job ----
    loop_interval_minutes: int
    ensure_delay_minutes: int
    job_poll_seconds: float
    job_lease_seconds: float
    retry_delay_seconds: float

    # ---- Quotes ----
    quote_api_base_url: str
    quote_timeout_seconds: float

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "pester") or "pester"
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        console_enabled = _env_bool(_k("CONSOLE_ENABLED"), True)
        notifications_enabled = _env_bool(_k("NOTIFICATIONS_ENABLED"), True)

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/pester"))
        tasks_db_path = _env_path(_k("TASKS_DB_PATH"), data_dir / "tasks.sqlite3")
        reminders_db_path = _env_path(_k("REMINDERS_DB_PATH"), data_dir / "reminders.sqlite3")
        settings_db_path = _env_path(_k("SETTINGS_DB_PATH"), data_dir / "settings.sqlite3")

        # Loop interval does not depend on task intensity.
        loop_interval_minutes = max(1, _env_int(_k("LOOP_INTERVAL_MINUTES"), 5))
        ensure_delay_minutes = max(0, _env_int(_k("ENSURE_DELAY_MINUTES"), 1))
        job_poll_seconds = max(0.5, _env_float(_k("JOB_POLL_SECONDS"), 15.0))
        job_lease_seconds = max(30.0, _env_float(_k("JOB_LEASE_SECONDS"), 600.0))
        retry_delay_seconds = max(1.0, _env_float(_k("RETRY_DELAY_SECONDS"), 60.0))

        quote_api_base_url = _env(_k("QUOTE_API_BASE_URL"), "https://bible-api.com").rstrip("/")
        quote_timeout_seconds = max(0.5, _env_float(_k("QUOTE_TIMEOUT_SECONDS"), 6.0))

        return Settings(
            app_name=app_name,
            log_level=log_level,
            console_enabled=console_enabled,
            notifications_enabled=notifications_enabled,
            data_dir=data_dir,
            tasks_db_path=tasks_db_path,
            reminders_db_path=reminders_db_path,
            settings_db_path=settings_db_path,
            loop_interval_minutes=loop_interval_minutes,
            ensure_delay_minutes=ensure_delay_minutes,
            job_poll_seconds=job_poll_seconds,
            job_lease_seconds=job_lease_seconds,
            retry_delay_seconds=retry_delay_seconds,
            quote_api_base_url=quote_api_base_url,
            quote_timeout_seconds=quote_timeout_seconds,
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS
