# src/personal_time/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

- One Settings object for the whole app.
- No secrets required at import time.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "PTS"


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    tasks_path: Path

    # ---- Reminders ----
    default_reminder_minutes: int
    overdue_preview_limit: int
    startup_overdue_delay_seconds: float
    notify_init_timeout_seconds: float

    # ---- Fallback transport ----
    console_notifications: bool

    # ---- Matrix (primary transport) ----
    matrix_enabled: bool
    matrix_homeserver: str
    matrix_user_id: str
    matrix_password: str
    matrix_store_path: Path
    matrix_notify_room: str

    @staticmethod
    def from_env() -> "Settings":
        data_dir = _env_path(_k("DATA_DIR"), Path(".local/pts"))

        return Settings(
            app_name=_env(_k("APP_NAME"), "personal-time") or "personal-time",
            log_level=_env(_k("LOG_LEVEL"), "INFO"),
            data_dir=data_dir,
            tasks_path=_env_path(_k("TASKS_PATH"), data_dir / "tasks.json"),
            default_reminder_minutes=max(0, _env_int(_k("DEFAULT_REMINDER_MINUTES"), 15)),
            overdue_preview_limit=max(1, _env_int(_k("OVERDUE_PREVIEW_LIMIT"), 3)),
            startup_overdue_delay_seconds=max(0.0, _env_float(_k("STARTUP_OVERDUE_DELAY"), 2.0)),
            notify_init_timeout_seconds=max(0.1, _env_float(_k("NOTIFY_INIT_TIMEOUT"), 5.0)),
            console_notifications=_env_bool(_k("CONSOLE_NOTIFICATIONS"), True),
            matrix_enabled=_env_bool(_k("MATRIX_ENABLED"), False),
            matrix_homeserver=_env(_k("MATRIX_HOMESERVER")).strip(),
            matrix_user_id=_env(_k("MATRIX_USER_ID")).strip(),
            matrix_password=_env(_k("MATRIX_PASSWORD")).strip(),
            matrix_store_path=_env_path(_k("MATRIX_STORE_PATH"), data_dir / "matrix_store"),
            matrix_notify_room=_env(_k("MATRIX_NOTIFY_ROOM")).strip(),
        )


_SETTINGS: Settings | None = None


def get_settings() -> Settings:
    global _SETTINGS
    if _SETTINGS is None:
        load_dotenv(override=False)
        _SETTINGS = Settings.from_env()
    return _SETTINGS
