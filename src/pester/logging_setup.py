# src/pester/logging_setup.py

from __future__ import annotations

import logging
import sys
from pathlib import Path

LOG_FILE_NAME = "pester.log"

# Console thresholds by logger-name prefix; first match wins.
# The job driver runs on a background thread and would interleave with the
# REPL prompt, so only its problems reach the terminal.
CONSOLE_THRESHOLDS: tuple[tuple[str, int], ...] = (
    ("pester.reminders.job_runner", logging.WARNING),
    ("pester.", logging.NOTSET),
    ("py.warnings", logging.ERROR),
)
THIRD_PARTY_CONSOLE_THRESHOLD = logging.ERROR

# Libraries whose INFO output is per-request chatter (one quote fetch per day).
CHATTY_LIBRARIES = ("httpx", "httpcore")


class _ConsoleNoiseFilter(logging.Filter):
    """Per-prefix console threshold; unknown loggers only show errors."""

    def filter(self, record: logging.LogRecord) -> bool:
        for prefix, threshold in CONSOLE_THRESHOLDS:
            if record.name == prefix.rstrip(".") or record.name.startswith(prefix):
                return record.levelno >= threshold
        return record.levelno >= THIRD_PARTY_CONSOLE_THRESHOLD


def setup_logging(
    *,
    log_dir: str | Path = ".local/pester",
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
) -> Path:
    """
    Console (stderr, filtered) + file (<log_dir>/pester.log, unfiltered).

    Replaces handlers already on the root logger, so calling it twice does not
    duplicate output. Returns the log file path.
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / LOG_FILE_NAME

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s [%(threadName)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(fmt)
    console.addFilter(_ConsoleNoiseFilter())
    root.addHandler(console)

    file_handler = logging.FileHandler(str(log_file), encoding="utf-8")
    file_handler.setLevel(file_level)
    file_handler.setFormatter(fmt)
    root.addHandler(file_handler)

    logging.captureWarnings(True)

    for name in CHATTY_LIBRARIES:
        logging.getLogger(name).setLevel(logging.WARNING)

    return log_file
