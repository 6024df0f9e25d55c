# tests/test_due_store.py

from __future__ import annotations

import sqlite3
from pathlib import Path

from pester.reminders.due_store import DueTimeStore, due_key, parse_due_key


def _raw_insert(db: Path, key: str, value: int) -> None:
    conn = sqlite3.connect(str(db))
    try:
        conn.execute("INSERT INTO reminder_schedule(key, value) VALUES (?, ?)", (key, value))
        conn.commit()
    finally:
        conn.close()


def test_key_format() -> None:
    assert due_key(42) == "task_due_42"
    assert parse_due_key("task_due_42") == 42
    assert parse_due_key("task_due_abc") is None
    assert parse_due_key("theme_mode") is None


def test_get_set_remove(tmp_path: Path) -> None:
    store = DueTimeStore(tmp_path / "reminders.sqlite3")

    assert store.get(1) is None
    store.set(1, 1000)
    store.set(1, 2000)
    assert store.get(1) == 2000
    assert store.all_keys() == {1}

    store.remove(1)
    store.remove(1)
    assert store.get(1) is None
    assert store.all_keys() == set()


def test_entries_survive_restart(tmp_path: Path) -> None:
    db = tmp_path / "reminders.sqlite3"
    DueTimeStore(db).set(7, 123456)

    reopened = DueTimeStore(db)
    assert reopened.get(7) == 123456


def test_non_positive_value_reads_as_unset(tmp_path: Path) -> None:
    db = tmp_path / "reminders.sqlite3"
    store = DueTimeStore(db)
    _raw_insert(db, "task_due_3", -1)
    assert store.get(3) is None


def test_remove_where_prunes_by_task_id(tmp_path: Path) -> None:
    store = DueTimeStore(tmp_path / "reminders.sqlite3")
    for task_id in (1, 2, 3, 4):
        store.set(task_id, 100 * task_id)

    active = {2, 4}
    removed = store.remove_where(lambda task_id: task_id not in active)
    assert removed == 2
    assert store.snapshot() == {2: 200, 4: 400}

    # Second prune with the same active set changes nothing.
    assert store.remove_where(lambda task_id: task_id not in active) == 0
    assert store.snapshot() == {2: 200, 4: 400}


def test_malformed_keys_are_pruned_and_foreign_keys_untouched(tmp_path: Path) -> None:
    db = tmp_path / "reminders.sqlite3"
    store = DueTimeStore(db)
    store.set(5, 500)
    _raw_insert(db, "task_due_oops", 1)
    # Matches the LIKE pattern ("_" is a wildcard) but not the prefix.
    _raw_insert(db, "taskXdueY9", 1)

    assert store.all_keys() == {5}
    assert store.remove_where(lambda _task_id: False) == 1

    assert store.clear() == 1
    assert store.all_keys() == set()

    conn = sqlite3.connect(str(db))
    try:
        rows = conn.execute("SELECT key FROM reminder_schedule").fetchall()
    finally:
        conn.close()
    assert rows == [("taskXdueY9",)]
