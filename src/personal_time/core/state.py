# src/personal_time/core/state.py

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ..notifications.channel import NotificationChannel
from ..tasks.overdue_monitor import OverdueMonitor
from ..tasks.reminder_scheduler import ReminderScheduler
from ..tasks.task_store import TaskStore


@dataclass
class AppState:
    """
    Process-scoped components, built once by the composition root.

    The channel is shared by reference between the scheduler and the overdue
    monitor; nothing reaches it through module globals.
    """

    settings: Any
    channel: NotificationChannel
    scheduler: ReminderScheduler
    monitor: OverdueMonitor
    store: TaskStore

    background: set[Any] = field(default_factory=set)
