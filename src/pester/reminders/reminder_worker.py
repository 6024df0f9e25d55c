# src/pester/reminders/reminder_worker.py

from __future__ import annotations

"""
Recurring reminder job.

One pass (run_once):
- no active tasks -> clear every due time, cancel all reminders, stand down
  (the job is not re-armed);
- prune due times of tasks that are no longer active;
- refresh the cached quote if quotes are enabled (best-effort);
- per active task: seed a first due time (never fires in the same pass),
  or fire a reminder and pick the next due time once the current one passed;
- re-arm the job after a fixed interval, replacing any pending invocation.

Triggers outside the job (app start, new task, task back to todo) call
ensure_scheduled(), which never disturbs an invocation that is already pending.
"""

import logging
import random
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from ..core.clock import now_ms as _wall_clock_ms
from ..core.ports import ArmPolicy, DueTimeRepo, JobHost, NotificationSink, QuoteProvider, TaskRepo
from .delay_policy import MS_PER_MINUTE, random_delay_ms

logger = logging.getLogger(__name__)

JOB_NAME = "random_notification_loop"

LOOP_DELAY_MINUTES = 5
ENSURE_DELAY_MINUTES = 1


@dataclass(slots=True)
class RunOutcome:
    """What a single pass did (for logs and tests)."""

    stood_down: bool = False
    pruned: int = 0
    seeded: list[int] = field(default_factory=list)
    fired: list[int] = field(default_factory=list)
    rearmed: bool = False
    quote: Any | None = None


class ReminderWorker:
    def __init__(
        self,
        *,
        task_repo: TaskRepo,
        due_store: DueTimeRepo,
        sink: NotificationSink,
        job_host: JobHost,
        quotes: QuoteProvider | None = None,
        loop_interval_minutes: int = LOOP_DELAY_MINUTES,
        ensure_delay_minutes: int = ENSURE_DELAY_MINUTES,
        rng: random.Random | None = None,
        clock: Callable[[], int] = _wall_clock_ms,
        job_name: str = JOB_NAME,
    ) -> None:
        self.task_repo = task_repo
        self.due_store = due_store
        self.sink = sink
        self.job_host = job_host
        self.quotes = quotes
        self.loop_interval_minutes = max(1, int(loop_interval_minutes))
        self.ensure_delay_minutes = max(0, int(ensure_delay_minutes))
        self.job_name = job_name
        self._rng = rng or random.Random()
        self._clock = clock

    # ---- triggers ----

    def ensure_scheduled(self) -> None:
        """Make sure a run is pending; never postpones one that already is."""
        self.job_host.ensure_armed(
            self.job_name,
            self.ensure_delay_minutes * MS_PER_MINUTE,
            ArmPolicy.KEEP,
        )

    def clear_reminder_data_for_task(self, task_id: int) -> None:
        """Forget a task's due time; the next pass re-seeds it if it is active."""
        self.due_store.remove(task_id)

    # ---- the pass ----

    def run_once(self, now_ms: int | None = None) -> RunOutcome:
        """
        Execute one pass. Storage errors propagate (the run is aborted and not
        re-armed through the success path).
        """
        outcome = RunOutcome()

        active_tasks = list(self.task_repo.list_active_tasks())
        if not active_tasks:
            cleared = self.due_store.clear()
            self.sink.cancel_all()
            outcome.stood_down = True
            logger.info("No active tasks; cleared %s due entries and stood down", cleared)
            return outcome

        now = self._clock() if now_ms is None else int(now_ms)

        active_ids = {int(t.id) for t in active_tasks}
        outcome.pruned = self.due_store.remove_where(lambda task_id: task_id not in active_ids)
        if outcome.pruned:
            logger.debug("Pruned %s stale due entries", outcome.pruned)

        quote = self._load_quote()
        outcome.quote = quote

        for task in active_tasks:
            task_id = int(task.id)
            due_at = self.due_store.get(task_id)

            if due_at is None:
                delay = random_delay_ms(task.intensity, first_schedule=True, rng=self._rng)
                self.due_store.set(task_id, now + delay)
                outcome.seeded.append(task_id)
                logger.debug("Task %s first due in %s min", task_id, delay // MS_PER_MINUTE)
                continue

            if now >= due_at:
                self._show(task, quote)
                delay = random_delay_ms(task.intensity, rng=self._rng)
                self.due_store.set(task_id, now + delay)
                outcome.fired.append(task_id)
                logger.debug("Task %s fired; next in %s min", task_id, delay // MS_PER_MINUTE)

        self._enqueue_next()
        outcome.rearmed = True

        logger.info(
            "Reminder pass done active=%s seeded=%s fired=%s pruned=%s",
            len(active_tasks),
            len(outcome.seeded),
            len(outcome.fired),
            outcome.pruned,
        )
        return outcome

    # ---- helpers ----

    def _load_quote(self) -> Any | None:
        if self.quotes is None:
            return None
        try:
            if not self.quotes.quotes_enabled():
                return None
            self.quotes.refresh_quote_if_stale()
            return self.quotes.get_cached_quote()
        except Exception:
            logger.warning("Quote lookup failed; continuing without a quote", exc_info=True)
            return None

    def _show(self, task: Any, quote: Any | None) -> None:
        # Display problems must not change bookkeeping: the due time advances anyway.
        try:
            self.sink.show_reminder(int(task.id), str(task.text), quote)
        except Exception:
            logger.exception("show_reminder failed task_id=%s", getattr(task, "id", None))

    def _enqueue_next(self) -> None:
        self.job_host.ensure_armed(
            self.job_name,
            self.loop_interval_minutes * MS_PER_MINUTE,
            ArmPolicy.REPLACE,
        )
