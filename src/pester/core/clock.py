# src/pester/core/clock.py

from __future__ import annotations

import time
from datetime import date

_EPOCH = date(1970, 1, 1)


def now_ms() -> int:
    """Wall-clock time as epoch milliseconds."""
    return int(time.time() * 1000)


def epoch_day(day: date | None = None) -> int:
    """Days since 1970-01-01 for the given (default: today's local) date."""
    return ((day or date.today()) - _EPOCH).days
