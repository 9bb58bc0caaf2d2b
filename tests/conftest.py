# tests/conftest.py

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from types import SimpleNamespace

import pytest

from personal_time.notifications.channel import NotificationChannel
from personal_time.tasks.overdue_monitor import OverdueMonitor
from personal_time.tasks.reminder_scheduler import ReminderScheduler
from personal_time.tasks.task_store import TaskStore

from .fakes import FakeClock, FakeFallbackTransport, FakePrimaryTransport

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock(NOW)


@pytest.fixture()
def primary() -> FakePrimaryTransport:
    return FakePrimaryTransport()


@pytest.fixture()
def fallback() -> FakeFallbackTransport:
    return FakeFallbackTransport()


@pytest.fixture()
def channel(primary: FakePrimaryTransport, fallback: FakeFallbackTransport) -> NotificationChannel:
    return NotificationChannel(primary, fallback, init_timeout_seconds=0.5)


@pytest.fixture()
def scheduler(channel: NotificationChannel, clock: FakeClock) -> ReminderScheduler:
    """
    Scheduler bound to the fake clock.

    No loop is passed: the running loop is picked up at schedule() time,
    so tests that arm timers must be async.
    """
    return ReminderScheduler(channel, clock=clock)


@pytest.fixture()
def monitor(channel: NotificationChannel, clock: FakeClock) -> OverdueMonitor:
    return OverdueMonitor(channel, clock=clock)


@pytest.fixture()
def store(scheduler: ReminderScheduler, clock: FakeClock) -> TaskStore:
    return TaskStore(scheduler, clock=clock)


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with the composition root.

    We intentionally use a SimpleNamespace rather than the real env-backed
    Settings to keep tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="personal-time-test",
        data_dir=tmp_path,
        tasks_path=tmp_path / "tasks.json",
        default_reminder_minutes=15,
        overdue_preview_limit=3,
        startup_overdue_delay_seconds=0.0,
        notify_init_timeout_seconds=0.5,
        console_notifications=True,
        matrix_enabled=False,
    )
