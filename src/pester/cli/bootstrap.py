# src/pester/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires concrete stores, the quote provider, the notification sink and the
  reminder worker into AppState.
"""

from __future__ import annotations

import logging

from ..config import get_settings
from ..core.state import AppState
from ..notifications.console_sink import ConsoleNotificationSink
from ..quotes.quote_client import QuoteClient
from ..quotes.quote_service import QuoteService
from ..quotes.settings_store import SettingsStore
from ..reminders.due_store import DueTimeStore
from ..reminders.job_host import SqliteJobHost
from ..reminders.reminder_worker import ReminderWorker
from ..tasks.task_store import TaskStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.tasks_db_path.parent.mkdir(parents=True, exist_ok=True)
    settings.reminders_db_path.parent.mkdir(parents=True, exist_ok=True)
    settings.settings_db_path.parent.mkdir(parents=True, exist_ok=True)


def create_initial_state(*, settings=None, sink: ConsoleNotificationSink | None = None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    task_store = TaskStore(settings.tasks_db_path)
    due_store = DueTimeStore(settings.reminders_db_path)
    job_host = SqliteJobHost(settings.reminders_db_path)
    settings_store = SettingsStore(settings.settings_db_path)

    quotes = QuoteService(
        settings_store,
        QuoteClient(
            base_url=settings.quote_api_base_url,
            timeout_seconds=settings.quote_timeout_seconds,
        ),
    )
    if sink is None:
        sink = ConsoleNotificationSink(permission_granted=settings.notifications_enabled)

    worker = ReminderWorker(
        task_repo=task_store,
        due_store=due_store,
        sink=sink,
        job_host=job_host,
        quotes=quotes,
        loop_interval_minutes=settings.loop_interval_minutes,
        ensure_delay_minutes=settings.ensure_delay_minutes,
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
