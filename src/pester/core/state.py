# src/pester/core/state.py

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any

from ..notifications.console_sink import ConsoleNotificationSink
from ..quotes.quote_service import QuoteService
from ..quotes.settings_store import SettingsStore
from ..reminders.due_store import DueTimeStore
from ..reminders.job_host import SqliteJobHost
from ..reminders.reminder_worker import ReminderWorker
from ..tasks.task_store import TaskStore


@dataclass
class AppState:
    # Settings object (pester.config.Settings or a test stand-in).
    settings: Any

    task_store: TaskStore
    due_store: DueTimeStore
    job_host: SqliteJobHost
    settings_store: SettingsStore
    quotes: QuoteService
    sink: ConsoleNotificationSink
    worker: ReminderWorker

    # Serializes console commands with the background job pass.
    lock: threading.Lock = field(default_factory=threading.Lock)
