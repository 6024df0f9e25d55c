# tests/test_reminder_worker.py

from __future__ import annotations

import sqlite3
from pathlib import Path

import pytest

from pester.core.ports import ArmPolicy
from pester.notifications.console_sink import ConsoleNotificationSink
from pester.quotes.quote_client import Quote
from pester.reminders.due_store import DueTimeStore
from pester.reminders.reminder_worker import JOB_NAME, ReminderWorker

from .fakes import (
    MINUTE,
    T0,
    FakeJobHost,
    FakeQuotes,
    FakeSink,
    FakeTaskRepo,
    FixedRng,
    ManualClock,
    make_task,
)


class Harness:
    """Worker wired to a real DueTimeStore and in-memory fakes for everything else."""

    def __init__(self, tmp_path: Path, tasks=None, *, pick: str = "min") -> None:
        self.repo = FakeTaskRepo(tasks)
        self.due = DueTimeStore(tmp_path / "reminders.sqlite3")
        self.sink = FakeSink()
        self.host = FakeJobHost()
        self.quotes = FakeQuotes()
        self.clock = ManualClock()
        self.worker = ReminderWorker(
            task_repo=self.repo,
            due_store=self.due,
            sink=self.sink,
            job_host=self.host,
            quotes=self.quotes,
            rng=FixedRng(pick),
            clock=self.clock,
        )


def test_first_run_seeds_every_active_task_without_firing(tmp_path: Path) -> None:
    h = Harness(tmp_path, [make_task(1, intensity=100), make_task(2, intensity=0)])

    outcome = h.worker.run_once()

    assert sorted(outcome.seeded) == [1, 2]
    assert outcome.fired == []
    assert h.sink.shown == []
    # intensity 100 -> always 5 min; intensity 0 with the low draw -> 0.2 * 1440
    assert h.due.snapshot() == {1: T0 + 5 * MINUTE, 2: T0 + 288 * MINUTE}


def test_store_converges_to_active_set(tmp_path: Path) -> None:
    h = Harness(tmp_path, [make_task(1), make_task(2), make_task(3)])
    h.due.set(2, T0 + 10 * MINUTE)
    h.due.set(8, T0 - MINUTE)
    h.due.set(9, T0 + MINUTE)

    outcome = h.worker.run_once()

    assert h.due.all_keys() == {1, 2, 3}
    assert outcome.pruned == 2
    assert h.due.get(2) == T0 + 10 * MINUTE


def test_stale_entry_is_removed_without_reminder(tmp_path: Path) -> None:
    h = Harness(tmp_path, [make_task(1)])
    h.due.set(1, T0 + MINUTE)
    h.due.set(99, T0 - 60 * MINUTE)

    h.worker.run_once()

    assert h.due.get(99) is None
    assert h.sink.shown == []


def test_due_task_fires_once_and_uses_recurring_range(tmp_path: Path) -> None:
    h = Harness(tmp_path, [make_task(1, intensity=0, text="file taxes")])
    h.due.set(1, T0 - 1)

    outcome = h.worker.run_once()

    assert outcome.fired == [1]
    assert [(s.task_id, s.text) for s in h.sink.shown] == [(1, "file taxes")]
    # Recurring low draw is 0.7 * 1440 = 1008 min (first-schedule would be 288).
    assert h.due.get(1) == T0 + 1008 * MINUTE


def test_due_exactly_now_fires(tmp_path: Path) -> None:
    h = Harness(tmp_path, [make_task(1, intensity=100)])
    h.due.set(1, T0)

    h.worker.run_once()

    assert len(h.sink.shown) == 1
    assert h.due.get(1) == T0 + 5 * MINUTE


def test_not_yet_due_is_untouched(tmp_path: Path) -> None:
    h = Harness(tmp_path, [make_task(1)])
    h.due.set(1, T0 + 1)

    outcome = h.worker.run_once()

    assert outcome.fired == [] and outcome.seeded == []
    assert h.sink.shown == []
    assert h.due.get(1) == T0 + 1


def test_seeded_task_fires_on_a_later_pass(tmp_path: Path) -> None:
    h = Harness(tmp_path, [make_task(1, intensity=100)])

    h.worker.run_once()
    assert h.sink.shown == []

    h.clock.advance(5 * MINUTE)
    h.worker.run_once()
    assert [s.task_id for s in h.sink.shown] == [1]


def test_run_rearms_exactly_once_with_replace(tmp_path: Path) -> None:
    h = Harness(tmp_path, [make_task(1, intensity=0), make_task(2, intensity=100)])

    outcome = h.worker.run_once()

    assert outcome.rearmed is True
    assert h.host.calls == [(JOB_NAME, 5 * MINUTE, ArmPolicy.REPLACE)]


def test_ensure_scheduled_keeps_existing(tmp_path: Path) -> None:
    h = Harness(tmp_path)
    h.worker.ensure_scheduled()
    assert h.host.calls == [(JOB_NAME, 1 * MINUTE, ArmPolicy.KEEP)]


def test_stand_down_clears_store_and_cancels_once(tmp_path: Path) -> None:
    h = Harness(tmp_path, [])
    h.due.set(1, T0 + MINUTE)
    h.due.set(2, T0 - MINUTE)

    outcome = h.worker.run_once()

    assert outcome.stood_down is True
    assert h.due.all_keys() == set()
    assert h.sink.cancel_all_calls == 1
    assert h.sink.shown == []
    assert h.host.calls == []


def test_done_tasks_count_as_inactive(tmp_path: Path) -> None:
    done = make_task(1)
    done.is_done = True
    h = Harness(tmp_path, [done])
    h.due.set(1, T0 - MINUTE)

    outcome = h.worker.run_once()

    assert outcome.stood_down is True
    assert h.sink.shown == []


def test_pruning_is_idempotent(tmp_path: Path) -> None:
    h = Harness(tmp_path, [make_task(1), make_task(2)])
    h.due.set(3, T0)

    first = h.worker.run_once()
    snapshot = h.due.snapshot()
    second = h.worker.run_once()

    assert first.pruned == 1
    assert second.pruned == 0
    assert h.due.snapshot() == snapshot


def test_partially_applied_previous_run_is_tolerated(tmp_path: Path) -> None:
    # A killed run wrote task 1's due time but never got to task 2.
    h = Harness(tmp_path, [make_task(1, intensity=100), make_task(2, intensity=100)])
    h.due.set(1, T0 - MINUTE)

    outcome = h.worker.run_once()

    assert outcome.fired == [1]
    assert outcome.seeded == [2]
    assert h.due.all_keys() == {1, 2}


def test_clear_reminder_data_reseeds_with_first_delay(tmp_path: Path) -> None:
    h = Harness(tmp_path, [make_task(1, intensity=0)])
    h.due.set(1, T0 - MINUTE)

    h.worker.clear_reminder_data_for_task(1)
    outcome = h.worker.run_once()

    assert outcome.seeded == [1]
    assert h.sink.shown == []
    assert h.due.get(1) == T0 + 288 * MINUTE


def test_quote_attached_when_enabled(tmp_path: Path) -> None:
    h = Harness(tmp_path, [make_task(1)])
    h.quotes.enabled = True
    h.quotes.quote = Quote(text="Be strong", reference="Joshua 1:9")
    h.due.set(1, T0 - 1)

    h.worker.run_once()

    assert h.quotes.refreshes == 1
    assert h.sink.shown[0].quote == Quote(text="Be strong", reference="Joshua 1:9")


def test_quotes_disabled_skips_refresh(tmp_path: Path) -> None:
    h = Harness(tmp_path, [make_task(1)])
    h.quotes.quote = Quote(text="cached", reference="x")
    h.due.set(1, T0 - 1)

    h.worker.run_once()

    assert h.quotes.refreshes == 0
    assert h.sink.shown[0].quote is None


def test_quote_failure_does_not_abort_run(tmp_path: Path) -> None:
    h = Harness(tmp_path, [make_task(1), make_task(2)])
    h.quotes.enabled = True
    h.quotes.broken = True
    h.due.set(1, T0 - 1)

    outcome = h.worker.run_once()

    assert outcome.fired == [1]
    assert outcome.seeded == [2]
    assert h.sink.shown[0].quote is None
    assert outcome.rearmed is True


def test_display_failure_still_advances_due_time(tmp_path: Path) -> None:
    h = Harness(tmp_path, [make_task(1, intensity=100)])
    h.sink.broken = True
    h.due.set(1, T0 - 1)

    outcome = h.worker.run_once()

    assert outcome.fired == [1]
    assert h.due.get(1) == T0 + 5 * MINUTE


def test_permission_denied_is_silent_and_bookkeeping_advances(tmp_path: Path) -> None:
    printed: list[str] = []
    h = Harness(tmp_path, [make_task(1, intensity=100)])
    h.worker.sink = ConsoleNotificationSink(permission_granted=False, write=printed.append)
    h.due.set(1, T0 - 1)

    h.worker.run_once()

    assert printed == []
    assert h.due.get(1) == T0 + 5 * MINUTE


def test_storage_failure_aborts_without_rearm(tmp_path: Path) -> None:
    h = Harness(tmp_path, [make_task(1)])
    h.repo.broken = True

    with pytest.raises(sqlite3.OperationalError):
        h.worker.run_once()

    assert h.host.calls == []
