# src/personal_time/tasks/reminder_scheduler.py

"""
Reminder scheduler.

Keeps at most one pending wake-up per task id. Each wake-up is a one-shot
asyncio timer armed for (due_date - reminder_minutes); when it fires the
reminder is rendered against the current time and delivered through the
notification channel.

All methods are meant to be called from the event loop thread. Scheduling
never raises: tasks with missing or invalid reminder data simply get no
wake-up, and reminders whose fire time has already passed are dropped
instead of being fired late.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, timedelta

from ..core.ports import Clock, SystemClock
from ..notifications.channel import NotificationChannel
from ..notifications.models import DeliveryOutcome, NotificationRequest
from .task_models import Task, TaskPriority, as_instant

logger = logging.getLogger(__name__)

DEFAULT_LEAD_MINUTES = 15

PRIORITY_ICONS: dict[str, str] = {
    TaskPriority.P0: "🔴",
    TaskPriority.P1: "🟠",
    TaskPriority.P2: "🟡",
    TaskPriority.P3: "🟢",
}
GENERIC_ICON = "📋"


@dataclass(slots=True)
class ReminderSchedule:
    task_id: str
    fire_at: datetime
    handle: asyncio.TimerHandle


def minutes_until(due: datetime, now: datetime) -> int:
    """Whole minutes from now until due, truncated toward zero."""
    return int((as_instant(due) - as_instant(now)).total_seconds() / 60)


def render_due_phrase(minutes: int) -> str:
    if minutes <= 0:
        return "now!"
    if minutes < 60:
        return f"in {minutes} minute{'' if minutes == 1 else 's'}"
    hours = minutes // 60
    return f"in {hours} hour{'' if hours == 1 else 's'}"


def priority_icon(priority: str | None) -> str:
    return PRIORITY_ICONS.get(str(priority or ""), GENERIC_ICON)


def build_reminder_request(task: Task, now: datetime) -> NotificationRequest:
    if task.due_date is None:
        phrase = "now!"
    else:
        phrase = render_due_phrase(minutes_until(task.due_date, now))

    return NotificationRequest(
        title=f"Task Reminder: {task.title}",
        body=f"This task is due {phrase}. Priority: {task.priority}",
        tag=f"task-reminder-{task.id}",
        icon=priority_icon(task.priority),
    )


def _lead_minutes(raw: object, default: int) -> int | None:
    if raw is None:
        return default
    if isinstance(raw, bool) or not isinstance(raw, int):
        return None
    if raw < 0:
        return None
    return raw


class ReminderScheduler:
    def __init__(
        self,
        channel: NotificationChannel,
        *,
        clock: Clock | None = None,
        loop: asyncio.AbstractEventLoop | None = None,
        default_lead_minutes: int = DEFAULT_LEAD_MINUTES,
    ) -> None:
        self._channel = channel
        self._clock = clock or SystemClock()
        self._loop = loop
        self._default_lead = max(0, int(default_lead_minutes))
        self._schedules: dict[str, ReminderSchedule] = {}
        self._deliveries: set[asyncio.Task[DeliveryOutcome]] = set()

    # ---- inspection ----

    def __len__(self) -> int:
        return len(self._schedules)

    def __contains__(self, task_id: object) -> bool:
        return task_id in self._schedules

    def pending(self, task_id: str) -> ReminderSchedule | None:
        return self._schedules.get(task_id)

    def pending_ids(self) -> list[str]:
        return list(self._schedules)

    # ---- scheduling ----

    def _get_loop(self) -> asyncio.AbstractEventLoop | None:
        if self._loop is not None:
            return self._loop
        try:
            return asyncio.get_running_loop()
        except RuntimeError:
            return None

    def fire_time(self, task: Task) -> datetime | None:
        """Fire instant for the task, or None when it should not get a reminder."""
        if not task.reminder or task.due_date is None:
            return None
        lead = _lead_minutes(task.reminder_minutes, self._default_lead)
        if lead is None:
            logger.debug("Task %s has invalid reminder_minutes=%r", task.id, task.reminder_minutes)
            return None
        try:
            return as_instant(task.due_date) - timedelta(minutes=lead)
        except (TypeError, ValueError, OverflowError, AttributeError):
            logger.debug("Task %s has invalid due_date=%r", task.id, task.due_date)
            return None

    def schedule(self, task: Task) -> ReminderSchedule | None:
        """Replace any pending reminder for task.id with one for its current fields."""
        self.cancel(task.id)

        fire_at = self.fire_time(task)
        if fire_at is None:
            return None

        now = self._clock.now()
        if fire_at <= as_instant(now):
            logger.debug("Reminder for task %s already elapsed (fire_at=%s); dropped", task.id, fire_at)
            return None

        loop = self._get_loop()
        if loop is None:
            logger.warning("No running event loop; reminder for task %s not scheduled", task.id)
            return None

        delay = (fire_at - as_instant(now)).total_seconds()
        handle = loop.call_later(delay, self._fire, task)
        entry = ReminderSchedule(task_id=task.id, fire_at=fire_at, handle=handle)
        self._schedules[task.id] = entry

        logger.info(
            "Scheduled reminder for task %r at %s",
            task.title,
            fire_at.astimezone().strftime("%Y-%m-%d %H:%M"),
        )
        return entry

    def cancel(self, task_id: str) -> bool:
        entry = self._schedules.pop(task_id, None)
        if entry is None:
            return False
        entry.handle.cancel()
        logger.debug("Cancelled reminder for task %s", task_id)
        return True

    def schedule_all(self, tasks: Iterable[Task]) -> int:
        self.clear_all()
        for task in tasks:
            if task.is_open:
                self.schedule(task)
        logger.info("Reminders reconciled: %d pending", len(self._schedules))
        return len(self._schedules)

    def clear_all(self) -> int:
        n = len(self._schedules)
        for entry in self._schedules.values():
            entry.handle.cancel()
        self._schedules.clear()
        if n:
            logger.debug("Cleared %d pending reminders", n)
        return n

    # ---- firing ----

    def _fire(self, task: Task) -> None:
        self._schedules.pop(task.id, None)

        loop = self._get_loop()
        if loop is None:
            logger.error("Reminder for task %s fired without an event loop", task.id)
            return

        delivery = loop.create_task(self.send_task_reminder(task))
        self._deliveries.add(delivery)
        delivery.add_done_callback(self._deliveries.discard)

    async def send_task_reminder(self, task: Task) -> DeliveryOutcome:
        request = build_reminder_request(task, self._clock.now())
        try:
            return await self._channel.send(request)
        except Exception:
            logger.exception("Reminder delivery crashed task_id=%s", task.id)
            return DeliveryOutcome.failed()

    async def drain(self) -> None:
        """Wait for reminder deliveries that are already in flight."""
        if self._deliveries:
            await asyncio.gather(*list(self._deliveries), return_exceptions=True)
