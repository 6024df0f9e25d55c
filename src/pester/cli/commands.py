# src/pester/cli/commands.py

from __future__ import annotations

import contextlib
import logging
from collections.abc import Callable
from datetime import datetime

from ..core.clock import now_ms
from ..core.state import AppState
from ..quotes.settings_store import ThemeMode
from ..reminders.job_runner import run_due_job
from ..reminders.reminder_worker import RunOutcome
from ..tasks import task_api
from ..tasks.task_models import MAX_INTENSITY, MIN_INTENSITY

CommandEmitter = Callable[[str], None]
CommandHandler = Callable[[AppState, list[str], CommandEmitter | None], str]

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by the console (/help, /add, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def handle(
        self,
        state: AppState,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        return handler(state, args, emit)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


def _parse_task_id(args: list[str]) -> int | None:
    if not args:
        return None
    try:
        return int(args[0].lstrip("#"))
    except ValueError:
        return None


def _fmt_due(due_at_ms: int | None) -> str:
    if due_at_ms is None:
        return "not scheduled yet"
    when = datetime.fromtimestamp(due_at_ms / 1000).astimezone().strftime("%Y-%m-%d %H:%M")
    mins = max(0, (due_at_ms - now_ms()) // 60_000)
    return f"next {when} (~{mins} min)"


def cmd_help(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    return registry.build_help()


def cmd_status(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    job = state.job_host.pending(state.worker.job_name)
    if job is None:
        job_line = "stood down (no pending run)"
    else:
        job_line = "next run " + datetime.fromtimestamp(job.run_at_ms / 1000).astimezone().strftime(
            "%Y-%m-%d %H:%M:%S"
        )
        if job.is_running(now_ms()):
            job_line += " (running)"

    active = len(state.task_store.list_active_tasks())
    quotes = "ON" if state.quotes.quotes_enabled() else "OFF"
    notify = "granted" if state.sink.permission_granted else "denied"
    return (
        "Status:\n"
        f"  Active tasks: {active}\n"
        f"  Reminder job: {job_line}\n"
        f"  Quotes: {quotes}\n"
        f"  Notifications: {notify}\n"
        f"  Theme: {state.settings_store.get_theme_mode().value}"
    )


def cmd_add(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    /add <intensity 0-100> <text...>
    /add <text...>              (intensity defaults to 50)
    """
    if not args:
        return "Usage: /add <intensity 0-100> <text>"

    intensity = 50
    words = args
    with contextlib.suppress(ValueError):
        intensity = int(args[0])
        words = args[1:]

    if not MIN_INTENSITY <= intensity <= MAX_INTENSITY:
        return f"Intensity must be between {MIN_INTENSITY} and {MAX_INTENSITY}."

    task_id = task_api.add_task(state, " ".join(words), intensity)
    if task_id is None:
        return "Task text is empty."
    return f"Added task #{task_id} (intensity {intensity})."


def cmd_list(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    /list        -> active tasks with their next reminder
    /list done   -> completed tasks
    """
    show_done = bool(args) and args[0].lower() == "done"
    tasks = task_api.list_tasks(state, done=show_done)
    if not tasks:
        return "No completed tasks." if show_done else "Nothing to do. Add one with /add."

    lines = ["Done:" if show_done else "To do:"]
    for t in tasks:
        if show_done:
            lines.append(f"  #{t.id} {t.text}")
        else:
            due = _fmt_due(state.due_store.get(t.id))
            lines.append(f"  #{t.id} [{t.intensity:>3}] {t.text} - {due}")
    return "\n".join(lines)


def cmd_done(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    task_id = _parse_task_id(args)
    if task_id is None:
        return "Usage: /done <id>"
    if not task_api.mark_done(state, task_id):
        if state.task_store.get_task(task_id) is None:
            return f"No task #{task_id}."
        return f"Task #{task_id} is already done."
    return f"Task #{task_id} done."


def cmd_todo(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    task_id = _parse_task_id(args)
    if task_id is None:
        return "Usage: /todo <id>"
    if not task_api.mark_todo(state, task_id):
        if state.task_store.get_task(task_id) is None:
            return f"No task #{task_id}."
        return f"Task #{task_id} is not done."
    return f"Task #{task_id} is back on the list."


def cmd_delete(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    task_id = _parse_task_id(args)
    if task_id is None:
        return "Usage: /delete <id>"
    if not task_api.delete_task(state, task_id):
        return f"No task #{task_id}."
    return f"Task #{task_id} deleted."


def cmd_quotes(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    /quotes       -> show status
    /quotes on    -> attach a daily quote to reminders
    /quotes off   -> plain reminders
    """
    if not args:
        enabled = state.quotes.quotes_enabled()
        return f"Quotes are {'ON' if enabled else 'OFF'}. Use /quotes on or /quotes off."

    arg = args[0].lower()
    if arg in ("on", "1", "true", "yes"):
        if emit:
            with contextlib.suppress(Exception):
                emit("[QUOTES] Fetching today's quote...")
        task_api.set_quotes_enabled(state, True)
        return "Quotes enabled."
    if arg in ("off", "0", "false", "no"):
        task_api.set_quotes_enabled(state, False)
        return "Quotes disabled."
    return "Usage: /quotes on or /quotes off."


def cmd_quote(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    /quote          -> show the cached quote
    /quote refresh  -> fetch a new one now
    """
    if args and args[0].lower() == "refresh":
        quote = task_api.refresh_quote(state)
    else:
        quote = state.quotes.get_cached_quote()

    if quote is None:
        if not state.quotes.quotes_enabled():
            return "Quotes are OFF. Use /quotes on."
        return "No quote cached yet."
    return f'"{quote.text}" ({quote.reference})'


def cmd_theme(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    if not args:
        return f"Theme: {state.settings_store.get_theme_mode().value}"
    raw = args[0].lower()
    if raw not in {m.value for m in ThemeMode}:
        return "Usage: /theme system | light | dark"
    state.settings_store.set_theme_mode(ThemeMode(raw))
    return f"Theme set to {raw}."


def cmd_run(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """Run one reminder pass right now (the job re-arms itself as usual)."""
    worker = state.worker
    outcomes: list[RunOutcome] = []

    # Goes through the job lease so it never overlaps a background/tick run.
    worker.ensure_scheduled()
    ran = run_due_job(
        state.job_host,
        worker.job_name,
        lambda: outcomes.append(worker.run_once()),
        lease_seconds=state.settings.job_lease_seconds,
        retry_delay_seconds=state.settings.retry_delay_seconds,
        force=True,
    )
    if not ran:
        return "A reminder pass is already running."
    if not outcomes:
        return "Reminder pass failed; see the log. It will be retried."

    outcome = outcomes[0]
    if outcome.stood_down:
        return "No active tasks; reminders stood down."
    return (
        f"Reminder pass: fired {len(outcome.fired)}, "
        f"scheduled {len(outcome.seeded)} new, pruned {outcome.pruned}."
    )


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("status", cmd_status, help_text="Show reminder job, quotes and notification state.")
registry.register("add", cmd_add, help_text="Add a task: /add <intensity 0-100> <text>.", aliases=["a"])
registry.register("list", cmd_list, help_text="List tasks: /list | /list done.", aliases=["ls"])
registry.register("done", cmd_done, help_text="Mark a task done: /done <id>.")
registry.register("todo", cmd_todo, help_text="Move a done task back: /todo <id>.")
registry.register("delete", cmd_delete, help_text="Delete a task: /delete <id>.", aliases=["rm"])
registry.register("quotes", cmd_quotes, help_text="Daily quotes in reminders: /quotes on | /quotes off.")
registry.register("quote", cmd_quote, help_text="Show the cached quote: /quote | /quote refresh.")
registry.register("theme", cmd_theme, help_text="Theme: /theme system | light | dark.")
registry.register("run", cmd_run, help_text="Run one reminder pass now.")
