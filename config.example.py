# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
This file exists to make the repo self-documenting even without opening .env.example.
"""

ENV_VARS = {
    # App / logging
    "PESTER_APP_NAME": "App display name (default: pester).",
    "PESTER_LOG_LEVEL": "Console logging level (default: INFO). The log file always gets DEBUG.",
    # Front end
    "PESTER_CONSOLE_ENABLED": "Run the console REPL (true/false, default: true).",
    "PESTER_NOTIFICATIONS_ENABLED": (
        "Whether reminders may be displayed (default: true). When false, reminders are "
        "silently skipped but scheduling continues."
    ),
    # Paths (gitignored)
    "PESTER_DATA_DIR": "Local data directory (default: .local/pester).",
    "PESTER_TASKS_DB_PATH": "Task list SQLite path (default: <data_dir>/tasks.sqlite3).",
    "PESTER_REMINDERS_DB_PATH": (
        "Due times + reminder job table SQLite path (default: <data_dir>/reminders.sqlite3)."
    ),
    "PESTER_SETTINGS_DB_PATH": "Preferences + cached quote (default: <data_dir>/settings.sqlite3).",
    # Reminder job
    "PESTER_LOOP_INTERVAL_MINUTES": "Delay between reminder passes (default: 5).",
    "PESTER_ENSURE_DELAY_MINUTES": "Delay of the first pass after a trigger (default: 1).",
    "PESTER_JOB_POLL_SECONDS": "How often the in-process driver checks the job table (default: 15).",
    "PESTER_JOB_LEASE_SECONDS": "Lease length; a crashed run is retried after it (default: 600).",
    "PESTER_RETRY_DELAY_SECONDS": "Backoff after a failed pass (default: 60).",
    # Quotes
    "PESTER_QUOTE_API_BASE_URL": "Quote endpoint base URL (default: https://bible-api.com).",
    "PESTER_QUOTE_TIMEOUT_SECONDS": "HTTP timeout for the quote fetch (default: 6).",
}
