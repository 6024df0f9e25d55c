# src/pester/tasks/task_api.py

from __future__ import annotations

"""
App-level task actions.

Each action updates the task list and then pokes the reminder job the way the
UI expects:
- new task / back to todo  -> job ensured (never postponed if already pending)
- done / deleted           -> due time dropped and any shown reminder cancelled
"""

import logging

from ..core.state import AppState
from ..quotes.quote_client import Quote
from .task_models import Task

logger = logging.getLogger(__name__)


def add_task(state: AppState, text: str, intensity: int) -> int | None:
    """Create a task; blank text is ignored. Returns the new task id."""
    normalized = (text or "").strip()
    if not normalized:
        return None

    task_id = state.task_store.add_task(text=normalized, intensity=intensity)
    state.worker.ensure_scheduled()
    logger.info("Task %s created (intensity=%s)", task_id, intensity)
    return task_id


def mark_done(state: AppState, task_id: int) -> bool:
    """False if the task is missing or already done; nothing is touched then."""
    changed = state.task_store.mark_done(task_id)
    if changed:
        state.worker.clear_reminder_data_for_task(task_id)
        state.sink.cancel_reminder(task_id)
    return changed


def mark_todo(state: AppState, task_id: int) -> bool:
    """False if the task is missing or still active; its due time is kept then."""
    changed = state.task_store.mark_todo(task_id)
    if changed:
        # Restored tasks start over with a fresh first-schedule delay.
        state.worker.clear_reminder_data_for_task(task_id)
        state.worker.ensure_scheduled()
    return changed


def delete_task(state: AppState, task_id: int) -> bool:
    changed = state.task_store.delete_task(task_id)
    state.worker.clear_reminder_data_for_task(task_id)
    state.sink.cancel_reminder(task_id)
    return changed


def list_tasks(state: AppState, *, done: bool = False) -> list[Task]:
    if done:
        return state.task_store.list_done_tasks()
    return state.task_store.list_active_tasks()


def on_app_foreground(state: AppState) -> None:
    state.worker.ensure_scheduled()
    state.quotes.refresh_quote_if_stale()


def set_quotes_enabled(state: AppState, enabled: bool) -> None:
    state.quotes.set_quotes_enabled(enabled)
    if enabled:
        state.quotes.refresh_quote_if_stale(force=True)


def refresh_quote(state: AppState) -> Quote | None:
    state.quotes.refresh_quote_if_stale(force=True)
    return state.quotes.get_cached_quote()
