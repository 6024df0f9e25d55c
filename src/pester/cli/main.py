# src/pester/cli/main.py

"""
CLI entrypoints.

main(): initializes logging, builds AppState, fires the "app foreground"
trigger, then runs the reminder job loop in a background thread and the
console REPL in the main thread.

tick(): one-shot job driver for external schedulers (cron, systemd timers).
Runs the reminder pass only if it is due; exits immediately otherwise.
"""

from __future__ import annotations

import contextlib
import logging
import signal
import threading

from ..cli.bootstrap import create_initial_state
from ..config import get_settings
from ..logging_setup import setup_logging
from ..reminders.job_runner import JobsBackgroundRunner, run_due_job, start_jobs_in_background
from ..tasks import task_api
from .console import run_console_loop

logger = logging.getLogger(__name__)


def _setup_logging_from_settings(settings) -> None:
    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)
    setup_logging(log_dir=getattr(settings, "data_dir", ".local/pester"), console_level=console_level)


def _shutdown(state) -> None:
    """Best-effort shutdown (no exceptions should escape)."""
    for name in ("task_store", "due_store", "job_host", "settings_store"):
        try:
            store = getattr(state, name, None)
            if store is not None and hasattr(store, "close"):
                store.close()
        except Exception:
            logger.debug("%s close failed.", name, exc_info=True)


def main() -> None:
    settings = get_settings()
    _setup_logging_from_settings(settings)

    logger.info("Starting %s...", getattr(settings, "app_name", "pester"))

    state = create_initial_state(settings=settings)

    try:
        task_api.on_app_foreground(state)
    except Exception:
        logger.exception("Foreground trigger failed.")

    jobs_runner: JobsBackgroundRunner | None = start_jobs_in_background(state)

    # Use an Event so main can wait without a busy while-loop.
    stop_main = threading.Event()
    handler = make_signal_handler(stop_main, interrupt_console=settings.console_enabled)

    try:
        signal.signal(signal.SIGINT, handler)
        signal.signal(signal.SIGTERM, handler)
    except (ValueError, OSError, AttributeError):
        # Not the main thread, or SIGTERM is unavailable on this platform.
        logger.debug("Signal handlers not installed.", exc_info=True)

    try:
        if settings.console_enabled:
            with contextlib.suppress(KeyboardInterrupt):
                run_console_loop(state)
            stop_main.set()
        else:
            logger.info("Console disabled. Running reminder job only. Press Ctrl+C to stop.")
            stop_main.wait()

    finally:
        if jobs_runner is not None:
            jobs_runner.stop()
            jobs_runner.join(timeout=10.0)

        _shutdown(state)
        logger.info("Bye.")


def make_signal_handler(stop_main: threading.Event, *, interrupt_console: bool):
    """
    SIGINT/SIGTERM handler: sets stop_main.

    With the console running, the main thread is blocked in input(); the
    handler then raises KeyboardInterrupt so the REPL unwinds.
    """

    def _handle_signal(signum, _frame) -> None:
        logger.info("Signal %s received, shutting down...", signum)
        stop_main.set()
        if interrupt_console:
            raise KeyboardInterrupt

    return _handle_signal


def run_tick(state) -> bool:
    """
    One external-scheduler tick. Returns True if a reminder pass ran.

    The job is only created when there is something to remind about, so a
    stood-down job stays down across ticks.
    """
    worker = state.worker
    settings = state.settings

    if state.task_store.list_active_tasks():
        worker.ensure_scheduled()
    return run_due_job(
        state.job_host,
        worker.job_name,
        worker.run_once,
        lease_seconds=settings.job_lease_seconds,
        retry_delay_seconds=settings.retry_delay_seconds,
    )


def tick() -> None:
    settings = get_settings()
    _setup_logging_from_settings(settings)

    state = create_initial_state(settings=settings)
    try:
        ran = run_tick(state)
        logger.info("Tick done (ran=%s).", ran)
    finally:
        _shutdown(state)


if __name__ == "__main__":
    main()
