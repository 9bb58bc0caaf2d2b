# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
Do NOT commit real secrets: keep the Matrix password in .env (local, gitignored).

This file exists to make the repo self-documenting even without opening .env.
"""

ENV_VARS = {
    # App / logging
    "PTS_APP_NAME": "App display name (default: personal-time).",
    "PTS_LOG_LEVEL": "Console logging level (default: INFO).",
    # Paths (gitignored)
    "PTS_DATA_DIR": "Local data directory (default: .local/pts).",
    "PTS_TASKS_PATH": "Task snapshot JSON path (default: <data_dir>/tasks.json).",
    # Reminders
    "PTS_DEFAULT_REMINDER_MINUTES": "Lead time when a task has no reminder minutes (default: 15).",
    "PTS_OVERDUE_PREVIEW_LIMIT": "Titles listed in the overdue summary (default: 3).",
    "PTS_STARTUP_OVERDUE_DELAY": "Seconds to wait before the startup overdue check (default: 2).",
    "PTS_NOTIFY_INIT_TIMEOUT": "Upper bound in seconds for transport setup (default: 5).",
    # Fallback transport
    "PTS_CONSOLE_NOTIFICATIONS": "Allow console notifications (true/false, default: true).",
    # Matrix (primary transport)
    "PTS_MATRIX_ENABLED": "Deliver notifications to a Matrix room (true/false).",
    "PTS_MATRIX_HOMESERVER": "Matrix homeserver URL.",
    "PTS_MATRIX_USER_ID": "Matrix user ID (bot).",
    "PTS_MATRIX_PASSWORD": "Password for first login (session stored locally).",
    "PTS_MATRIX_STORE_PATH": "Matrix session directory (default: <data_dir>/matrix_store).",
    "PTS_MATRIX_NOTIFY_ROOM": "Room ID that receives reminders and overdue summaries.",
}
