# tests/test_bootstrap.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from pester.cli.bootstrap import create_initial_state
from pester.config import Settings
from pester.reminders.reminder_worker import JOB_NAME


def test_settings_from_env_defaults_and_overrides(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    for var in ("PESTER_DATA_DIR", "PESTER_LOOP_INTERVAL_MINUTES", "PESTER_TASKS_DB_PATH"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("PESTER_NOTIFICATIONS_ENABLED", "no")
    monkeypatch.setenv("PESTER_JOB_POLL_SECONDS", "garbage")

    s = Settings.from_env()
    assert s.loop_interval_minutes == 5
    assert s.ensure_delay_minutes == 1
    assert s.job_poll_seconds == 15.0
    assert s.notifications_enabled is False
    assert s.tasks_db_path == Path(".local/pester") / "tasks.sqlite3"

    monkeypatch.setenv("PESTER_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("PESTER_LOOP_INTERVAL_MINUTES", "0")
    monkeypatch.setenv("PESTER_QUOTE_API_BASE_URL", "https://quotes.test/")

    s = Settings.from_env()
    assert s.loop_interval_minutes == 1
    assert s.reminders_db_path == tmp_path / "reminders.sqlite3"
    assert s.quote_api_base_url == "https://quotes.test"


def test_create_initial_state_wires_worker(tmp_path: Path, settings: SimpleNamespace) -> None:
    settings.data_dir = tmp_path / "nested" / "data"
    settings.tasks_db_path = settings.data_dir / "tasks.sqlite3"
    settings.reminders_db_path = settings.data_dir / "reminders.sqlite3"
    settings.settings_db_path = settings.data_dir / "settings.sqlite3"
    settings.notifications_enabled = False

    state = create_initial_state(settings=settings)

    assert settings.data_dir.is_dir()
    assert state.sink.permission_granted is False
    assert state.worker.task_repo is state.task_store
    assert state.worker.job_host is state.job_host

    state.worker.ensure_scheduled()
    assert state.job_host.pending(JOB_NAME) is not None
