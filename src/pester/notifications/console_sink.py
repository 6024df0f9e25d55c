# src/pester/notifications/console_sink.py

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from datetime import datetime
from typing import Any

logger = logging.getLogger(__name__)


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


class ConsoleNotificationSink:
    """
    NotificationSink that prints reminders to the terminal.

    Reminders are keyed by task id: the set of currently shown ids is tracked
    so repeats replace instead of stacking, and cancel calls are idempotent.

    permission_granted=False mirrors a user who refused notifications: showing
    becomes a silent no-op, cancelling still works.
    """

    def __init__(
        self,
        *,
        permission_granted: bool = True,
        write: Callable[[str], None] = print,
    ) -> None:
        self.permission_granted = permission_granted
        self._write = write
        self._shown: dict[int, str] = {}
        self._lock = threading.Lock()

    @property
    def shown(self) -> dict[int, str]:
        with self._lock:
            return dict(self._shown)

    def show_reminder(self, task_id: int, text: str, quote: Any | None = None) -> None:
        if not self.permission_granted:
            logger.debug("Notification permission not granted; skip task_id=%s", task_id)
            return

        line = f"[{_ts_local()}] [REMINDER #{task_id}] {text}"
        if quote is not None:
            line += f'\n    "{quote.text}" ({quote.reference})'

        with self._lock:
            replaced = task_id in self._shown
            self._shown[task_id] = text

        self._write(line)
        logger.debug("Reminder shown task_id=%s replaced=%s", task_id, replaced)

    def cancel_reminder(self, task_id: int) -> None:
        with self._lock:
            self._shown.pop(task_id, None)

    def cancel_all(self) -> None:
        with self._lock:
            self._shown.clear()
