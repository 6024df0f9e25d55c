# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import httpx
import pytest

from pester.core.state import AppState
from pester.notifications.console_sink import ConsoleNotificationSink
from pester.quotes.quote_client import QuoteClient
from pester.quotes.quote_service import QuoteService
from pester.quotes.settings_store import SettingsStore
from pester.reminders.due_store import DueTimeStore
from pester.reminders.job_host import SqliteJobHost
from pester.reminders.reminder_worker import ReminderWorker
from pester.tasks.task_store import TaskStore

from .fakes import ManualClock


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and the CLI commands.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        data_dir=tmp_path,
        tasks_db_path=tmp_path / "tasks.sqlite3",
        reminders_db_path=tmp_path / "reminders.sqlite3",
        settings_db_path=tmp_path / "settings.sqlite3",
        loop_interval_minutes=5,
        ensure_delay_minutes=1,
        job_poll_seconds=0.01,
        job_lease_seconds=600.0,
        retry_delay_seconds=60.0,
        quote_api_base_url="https://quotes.test",
        quote_timeout_seconds=1.0,
        notifications_enabled=True,
    )


@pytest.fixture()
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture()
def quote_requests() -> list[httpx.Request]:
    return []


@pytest.fixture()
def quote_transport(quote_requests: list[httpx.Request]) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        quote_requests.append(request)
        return httpx.Response(200, json={"text": "Be strong\n and courageous.", "reference": "Joshua 1:9"})

    return httpx.MockTransport(handler)


@pytest.fixture()
def printed() -> list[str]:
    return []


@pytest.fixture()
def state(settings: SimpleNamespace, quote_transport, printed: list[str]) -> AppState:
    """
    AppState wired with real SQLite stores and a mocked quote endpoint.

    Stores are real because their persistence is part of what we test; only
    the network and the terminal are faked.
    """
    task_store = TaskStore(settings.tasks_db_path)
    due_store = DueTimeStore(settings.reminders_db_path)
    job_host = SqliteJobHost(settings.reminders_db_path)
    settings_store = SettingsStore(settings.settings_db_path)
    quotes = QuoteService(
        settings_store,
        QuoteClient(base_url=settings.quote_api_base_url, transport=quote_transport),
    )
    sink = ConsoleNotificationSink(write=printed.append)
    worker = ReminderWorker(
        task_repo=task_store,
        due_store=due_store,
        sink=sink,
        job_host=job_host,
        quotes=quotes,
    )
    return AppState(
        settings=settings,
        task_store=task_store,
        due_store=due_store,
        job_host=job_host,
        settings_store=settings_store,
        quotes=quotes,
        sink=sink,
        worker=worker,
    )
