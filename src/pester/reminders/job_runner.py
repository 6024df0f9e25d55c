# src/pester/reminders/job_runner.py

from __future__ import annotations

"""
Job driver.

Turns the durable job table into actual runs:
- run_due_job: a single tick (claim if due -> run -> finish / retry later);
- run_job_loop: polling loop for long-lived processes;
- start_jobs_in_background: the loop on its own thread + event loop, so the
  blocking console REPL can run in the main thread.

The driver owns the host retry policy: a run that raises is logged and
retried after retry_delay_seconds. The work itself never retries internally.
"""

import asyncio
import contextlib
import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from ..core.clock import now_ms
from .job_host import SqliteJobHost

logger = logging.getLogger(__name__)


def run_due_job(
    host: SqliteJobHost,
    name: str,
    work: Callable[[], Any],
    *,
    lease_seconds: float = 600.0,
    retry_delay_seconds: float = 60.0,
    lock: Any | None = None,
    force: bool = False,
) -> bool:
    """
    Run the job once if it is due (or force is set) and not already running
    elsewhere.

    Returns True if a run happened (successful or not).
    """
    token = host.claim(name, lease_ms=int(lease_seconds * 1000), force=force)
    if token is None:
        return False

    try:
        if lock is not None:
            with lock:
                work()
        else:
            work()
    except Exception:
        logger.exception("Job %s failed; retrying in %.0fs", name, retry_delay_seconds)
        try:
            host.fail(name, token, retry_delay_ms=int(retry_delay_seconds * 1000))
        except Exception:
            # The lease will expire on its own.
            logger.exception("Job %s: could not record failure", name)
        return True

    host.finish(name, token)
    return True


def _seconds_until_due(host: SqliteJobHost, name: str, poll_seconds: float) -> float:
    try:
        info = host.pending(name)
    except Exception:
        logger.exception("Job %s: pending() failed", name)
        return poll_seconds
    if info is None:
        return poll_seconds

    at = now_ms()
    if info.is_running(at):
        return poll_seconds
    wait = max(0.0, (info.run_at_ms - at) / 1000.0)
    return min(poll_seconds, wait)


async def run_job_loop(
    host: SqliteJobHost,
    name: str,
    work: Callable[[], Any],
    *,
    poll_seconds: float = 15.0,
    lease_seconds: float = 600.0,
    retry_delay_seconds: float = 60.0,
    lock: Any | None = None,
    stop_event: asyncio.Event | None = None,
) -> None:
    """
    Poll the job table and run the job whenever it is due.

    Runs until stop_event is set or the coroutine is cancelled.
    """
    poll_s = max(0.01, float(poll_seconds))

    while stop_event is None or not stop_event.is_set():
        try:
            await asyncio.to_thread(
                run_due_job,
                host,
                name,
                work,
                lease_seconds=lease_seconds,
                retry_delay_seconds=retry_delay_seconds,
                lock=lock,
            )
        except Exception:
            # claim()/finish() storage errors: keep polling.
            logger.exception("Job %s tick failed", name)

        sleep_s = _seconds_until_due(host, name, poll_s)
        if stop_event is None:
            await asyncio.sleep(sleep_s)
            continue
        with contextlib.suppress(asyncio.TimeoutError):
            await asyncio.wait_for(stop_event.wait(), timeout=sleep_s)

    logger.info("Job loop %s stopped", name)


@dataclass(slots=True)
class JobsBackgroundRunner:
    thread: threading.Thread
    loop: asyncio.AbstractEventLoop
    stop_event: asyncio.Event

    def stop(self) -> None:
        try:
            self.loop.call_soon_threadsafe(self.stop_event.set)
        except Exception:
            logger.debug("Failed to signal job loop stop.", exc_info=True)

    def join(self, timeout: float | None = None) -> None:
        self.thread.join(timeout=timeout)


def start_jobs_in_background(state: Any) -> JobsBackgroundRunner | None:
    """
    Start the reminder job loop in a background thread.

    The console REPL blocks on input(); the job loop wants its own event loop.
    """
    settings = state.settings
    ready = threading.Event()
    holder: dict[str, object] = {}

    def runner() -> None:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        stop_event = asyncio.Event()

        holder["loop"] = loop
        holder["stop_event"] = stop_event
        ready.set()

        try:
            loop.run_until_complete(
                run_job_loop(
                    state.job_host,
                    state.worker.job_name,
                    state.worker.run_once,
                    poll_seconds=settings.job_poll_seconds,
                    lease_seconds=settings.job_lease_seconds,
                    retry_delay_seconds=settings.retry_delay_seconds,
                    lock=state.lock,
                    stop_event=stop_event,
                )
            )
        finally:
            with contextlib.suppress(Exception):
                loop.stop()
            with contextlib.suppress(Exception):
                loop.close()

    t = threading.Thread(target=runner, name="pester-jobs", daemon=True)
    t.start()

    ready.wait(timeout=5.0)
    loop = holder.get("loop")
    stop_event = holder.get("stop_event")

    if not isinstance(loop, asyncio.AbstractEventLoop) or not isinstance(stop_event, asyncio.Event):
        logger.error("Job thread did not initialize properly.")
        return None

    logger.info("Reminder job thread started.")
    return JobsBackgroundRunner(thread=t, loop=loop, stop_event=stop_event)
