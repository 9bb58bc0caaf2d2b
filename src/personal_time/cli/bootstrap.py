# src/personal_time/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires transports, channel, scheduler, monitor and store into AppState,
- starts and stops the notification subsystem.
"""

from __future__ import annotations

import asyncio
import logging

from ..config import get_settings
from ..core.ports import Clock
from ..core.state import AppState
from ..notifications.channel import NotificationChannel
from ..notifications.transports import ConsoleTransport, MatrixTransport
from ..tasks.overdue_monitor import OverdueMonitor
from ..tasks.reminder_scheduler import ReminderScheduler
from ..tasks.task_persistence import TaskSnapshotFile
from ..tasks.task_store import TaskStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.tasks_path.parent.mkdir(parents=True, exist_ok=True)


def create_initial_state(
    *,
    settings=None,
    clock: Clock | None = None,
    channel: NotificationChannel | None = None,
) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings (and the channel) injectable makes the app easier to test.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    if channel is None:
        channel = NotificationChannel(
            MatrixTransport(settings) if settings.matrix_enabled else None,
            ConsoleTransport(enabled=settings.console_notifications),
            init_timeout_seconds=settings.notify_init_timeout_seconds,
        )

    scheduler = ReminderScheduler(
        channel,
        clock=clock,
        default_lead_minutes=settings.default_reminder_minutes,
    )
    monitor = OverdueMonitor(channel, clock=clock, preview_limit=settings.overdue_preview_limit)
    store = TaskStore(
        scheduler,
        clock=clock,
        snapshot=TaskSnapshotFile(settings.tasks_path),
        default_reminder_minutes=settings.default_reminder_minutes,
    )

    return AppState(
        settings=settings,
        channel=channel,
        scheduler=scheduler,
        monitor=monitor,
        store=store,
    )


def _spawn(state: AppState, coro) -> asyncio.Task:
    task = asyncio.get_running_loop().create_task(coro)
    state.background.add(task)
    task.add_done_callback(state.background.discard)
    return task


async def check_overdue(state: AppState, *, delay: float = 0.0) -> None:
    if delay > 0:
        await asyncio.sleep(delay)
    try:
        await state.monitor.check_overdue(state.store.list_tasks())
    except Exception:
        logger.exception("Overdue check failed")


async def start_notifications(state: AppState) -> None:
    """
    Initialize notifications once per process, rebuild every reminder from the
    current task list, then run an overdue check after a short delay.
    """
    if state.store.notifications_ready:
        return

    await state.channel.initialize()
    pending = state.store.mark_notifications_ready()
    logger.info("Notifications ready (%d reminders pending)", pending)

    delay = float(getattr(state.settings, "startup_overdue_delay_seconds", 2.0))
    _spawn(state, check_overdue(state, delay=delay))


async def shutdown(state: AppState) -> None:
    """Best-effort teardown: cancel every timer, close transports."""
    state.scheduler.clear_all()

    for task in list(state.background):
        task.cancel()
    if state.background:
        await asyncio.gather(*list(state.background), return_exceptions=True)

    await state.scheduler.drain()

    try:
        await state.channel.aclose()
    except Exception:
        logger.debug("Channel close failed.", exc_info=True)
