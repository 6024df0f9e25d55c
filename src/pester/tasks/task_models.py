# src/pester/tasks/task_models.py

from __future__ import annotations

from dataclasses import dataclass

MIN_INTENSITY = 0
MAX_INTENSITY = 100


def clamp_intensity(raw: int | float) -> int:
    return int(max(MIN_INTENSITY, min(MAX_INTENSITY, int(raw))))


@dataclass(slots=True)
class Task:
    """
    A to-do item the user wants to be nagged about.

    intensity is the "how often to nag" dial: 0 = about once a day,
    100 = every few minutes.
    """

    id: int
    text: str
    intensity: int
    is_done: bool
    created_at: float

    @property
    def active(self) -> bool:
        return not self.is_done
