# src/pester/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the reminder core.

The reminder worker depends on Protocols instead of concrete implementations.
This keeps storage, notification display and job scheduling swappable and
makes testing easier.
"""

from collections.abc import Callable
from enum import Enum
from typing import Any, Protocol


class ArmPolicy(str, Enum):
    """How ensure_armed treats an already pending invocation of the same job."""

    KEEP = "keep"  # no-op if already pending
    REPLACE = "replace"  # cancel and reinsert


class TaskRepo(Protocol):
    def list_active_tasks(self) -> list[Any]: ...


class DueTimeRepo(Protocol):
    """Durable taskId -> due timestamp (epoch ms) map."""

    def get(self, task_id: int) -> int | None: ...
    def set(self, task_id: int, due_at_ms: int) -> None: ...
    def remove(self, task_id: int) -> None: ...
    def remove_where(self, predicate: Callable[[int], bool]) -> int: ...
    def all_keys(self) -> set[int]: ...
    def clear(self) -> int: ...


class NotificationSink(Protocol):
    """
    Display side of reminders.

    Reminders are keyed by task id: showing a reminder for the same task twice
    replaces the first one instead of stacking. Implementations must not raise
    when the user has not granted notification permission.
    """

    def show_reminder(self, task_id: int, text: str, quote: Any | None = None) -> None: ...
    def cancel_reminder(self, task_id: int) -> None: ...
    def cancel_all(self) -> None: ...


class QuoteProvider(Protocol):
    def quotes_enabled(self) -> bool: ...
    def get_cached_quote(self) -> Any | None: ...
    def refresh_quote_if_stale(self, force: bool = False) -> None: ...


class JobHost(Protocol):
    """One named logical job; at most one pending or running invocation."""

    def ensure_armed(self, name: str, delay_ms: int, policy: ArmPolicy) -> None: ...
