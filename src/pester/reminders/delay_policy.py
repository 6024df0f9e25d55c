# src/pester/reminders/delay_policy.py

"""
Randomized reminder delay.

Intensity is a dial from "about once a day" (0) to "every five minutes" (100).
The base delay is a linear interpolation between MAX_INTERVAL_MINUTES and
MIN_INTERVAL_MINUTES; a uniform jitter factor is then applied so reminders do
not arrive on a fixed beat:

- first schedule:  factor in [0.2, 1.0] (new tasks nag sooner)
- recurring:       factor in [0.7, 1.0] (stay close to the intended cadence)

The jittered value is clamped to at least MIN_INTERVAL_MINUTES and rounded to
a whole minute.
"""

from __future__ import annotations

import math
import random

from ..tasks.task_models import MAX_INTENSITY, clamp_intensity

MIN_INTERVAL_MINUTES = 5.0
MAX_INTERVAL_MINUTES = 1_440.0

FIRST_SCHEDULE_JITTER = (0.2, 1.0)
RECURRING_JITTER = (0.7, 1.0)

MS_PER_MINUTE = 60_000


def base_delay_minutes(intensity: int) -> float:
    """Unjittered delay; 1440 at intensity 0 down to 5 at intensity 100."""
    normalized = clamp_intensity(intensity) / float(MAX_INTENSITY)
    return MAX_INTERVAL_MINUTES - (MAX_INTERVAL_MINUTES - MIN_INTERVAL_MINUTES) * normalized


def jitter_range(first_schedule: bool) -> tuple[float, float]:
    return FIRST_SCHEDULE_JITTER if first_schedule else RECURRING_JITTER


def random_delay_minutes(
    intensity: int,
    *,
    first_schedule: bool = False,
    rng: random.Random | None = None,
) -> int:
    uniform = rng.uniform if rng is not None else random.uniform
    min_factor, max_factor = jitter_range(first_schedule)

    randomized = base_delay_minutes(intensity) * uniform(min_factor, max_factor)
    clamped = max(randomized, MIN_INTERVAL_MINUTES)

    # Round half up; the value is always positive here.
    return int(math.floor(clamped + 0.5))


def random_delay_ms(
    intensity: int,
    *,
    first_schedule: bool = False,
    rng: random.Random | None = None,
) -> int:
    minutes = random_delay_minutes(intensity, first_schedule=first_schedule, rng=rng)
    return minutes * MS_PER_MINUTE
