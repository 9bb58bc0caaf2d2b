# src/personal_time/tasks/task_store.py

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import date, datetime, timedelta
from typing import Any

from ..core.ports import Clock, SystemClock
from .reminder_scheduler import ReminderScheduler
from .task_models import (
    Task,
    TaskPriority,
    TaskStatus,
    as_instant,
    parse_due_date,
    parse_lead_minutes,
)
from .task_persistence import TaskSnapshotFile

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = frozenset(
    {
        "title",
        "description",
        "priority",
        "status",
        "due_date",
        "reminder",
        "reminder_minutes",
        "tags",
    }
)

NON_NULL_FIELDS = frozenset({"status", "priority"})

STATUS_PROGRESSION: dict[TaskStatus, TaskStatus] = {
    TaskStatus.PENDING: TaskStatus.IN_PROGRESS,
    TaskStatus.IN_PROGRESS: TaskStatus.COMPLETED,
    TaskStatus.COMPLETED: TaskStatus.PENDING,
    TaskStatus.CANCELLED: TaskStatus.PENDING,
}


class TaskStore:
    """
    In-memory task list that keeps reminders in sync with task data.

    Every mutation that can affect a reminder notifies the ReminderScheduler:
    - add: schedule when the reminder flag is set
    - update: cancel on completion/cancellation, reschedule when the
      reminder fields (reminder, reminder_minutes, due_date) change
    - delete / clear_all: cancel before removal
    - load_tasks: full reconciliation, deferred until notifications are ready

    Reminder bookkeeping is best-effort and never fails a store operation.
    Ids are decimal strings and are never reused within a process.
    """

    def __init__(
        self,
        scheduler: ReminderScheduler,
        *,
        clock: Clock | None = None,
        snapshot: TaskSnapshotFile | None = None,
        default_reminder_minutes: int = 15,
    ) -> None:
        self._scheduler = scheduler
        self._clock = clock or SystemClock()
        self._snapshot = snapshot
        self._default_reminder_minutes = default_reminder_minutes
        self._tasks: dict[str, Task] = {}
        self._next_id = 1
        self._notifications_ready = False

    # ---- low-level helpers ----

    def now(self) -> datetime:
        return as_instant(self._clock.now())

    def _allocate_id(self) -> str:
        task_id = str(self._next_id)
        self._next_id += 1
        return task_id

    def _save(self) -> None:
        if self._snapshot is None:
            return
        try:
            self._snapshot.save(self._tasks.values())
        except Exception:
            logger.exception("Failed to save tasks to %s", self._snapshot.path)

    def _schedule(self, task: Task) -> None:
        try:
            self._scheduler.schedule(task)
        except Exception:
            logger.exception("Reminder scheduling failed task_id=%s", task.id)

    def _cancel(self, task_id: str) -> None:
        try:
            self._scheduler.cancel(task_id)
        except Exception:
            logger.exception("Reminder cancel failed task_id=%s", task_id)

    @staticmethod
    def _coerce(name: str, value: Any) -> Any:
        if name == "priority":
            return TaskPriority.from_raw(value)
        if name == "status":
            return TaskStatus.from_raw(value)
        if name == "due_date":
            due = parse_due_date(value)
            if due is None and value is not None:
                logger.warning("Ignoring invalid due_date=%r", value)
            return due
        if name == "reminder_minutes":
            minutes = parse_lead_minutes(value)
            if minutes is None and value is not None:
                logger.warning("Ignoring invalid reminder_minutes=%r", value)
            return minutes
        if name == "tags":
            return set(value or ())
        if name == "reminder":
            return bool(value)
        if name in ("title", "description"):
            return str(value or "")
        return value

    # ---- read access ----

    @property
    def notifications_ready(self) -> bool:
        return self._notifications_ready

    def __len__(self) -> int:
        return len(self._tasks)

    def get_task(self, task_id: str) -> Task | None:
        return self._tasks.get(str(task_id))

    def list_tasks(self) -> list[Task]:
        return list(self._tasks.values())

    def tasks_for_date(self, day: date) -> list[Task]:
        """Tasks due on the given local calendar day."""
        return [
            t
            for t in self._tasks.values()
            if t.due_date is not None and as_instant(t.due_date).astimezone().date() == day
        ]

    # ---- mutations ----

    def add_task(
        self,
        *,
        title: str | None = None,
        description: str = "",
        priority: TaskPriority | str | None = None,
        status: TaskStatus | str | None = None,
        due_date: datetime | None = None,
        reminder: bool = False,
        reminder_minutes: int | None = None,
        tags: Iterable[str] | None = None,
    ) -> Task:
        now = self.now()
        task_status = TaskStatus.from_raw(status)
        due = now + timedelta(days=1) if due_date is None else self._coerce("due_date", due_date)
        minutes = self._coerce("reminder_minutes", reminder_minutes)

        task = Task(
            id=self._allocate_id(),
            title=(title or "").strip() or "Untitled Task",
            description=description or "",
            priority=TaskPriority.from_raw(priority),
            status=task_status,
            due_date=due,
            created_date=now,
            completed_date=now if task_status == TaskStatus.COMPLETED else None,
            reminder=bool(reminder),
            reminder_minutes=self._default_reminder_minutes if minutes is None else minutes,
            tags=set(tags or ()),
        )

        self._tasks[task.id] = task
        self._save()
        logger.debug("Task added id=%s title=%r due=%s", task.id, task.title, task.due_date)

        if task.reminder and task.is_open:
            self._schedule(task)

        return task

    def update_task(self, task_id: str, **updates: Any) -> Task | None:
        unknown = set(updates) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"cannot update field(s): {', '.join(sorted(unknown))}")

        # None leaves status and priority unchanged; they have no "empty" value.
        updates = {k: v for k, v in updates.items() if not (v is None and k in NON_NULL_FIELDS)}

        task = self._tasks.get(str(task_id))
        if task is None:
            return None

        old_status = task.status
        old_fields = task.reminder_fields()
        values = {name: self._coerce(name, value) for name, value in updates.items()}

        new_status = values.get("status")
        if new_status is not None:
            if new_status == TaskStatus.COMPLETED:
                if old_status != TaskStatus.COMPLETED:
                    task.completed_date = self.now()
                    # A completed task never keeps a pending reminder.
                    self._cancel(task.id)
            else:
                task.completed_date = None
                if new_status == TaskStatus.CANCELLED:
                    self._cancel(task.id)

        for name, value in values.items():
            setattr(task, name, value)

        self._save()

        if task.is_open:
            reopened = old_status.is_closed
            if reopened or task.reminder_fields() != old_fields:
                self._cancel(task.id)
                if task.reminder:
                    self._schedule(task)

        logger.debug("Task updated id=%s fields=%s", task.id, sorted(values))
        return task

    def toggle_task_status(self, task_id: str) -> Task | None:
        task = self._tasks.get(str(task_id))
        if task is None:
            return None
        return self.update_task(task.id, status=STATUS_PROGRESSION[task.status])

    def delete_task(self, task_id: str) -> Task | None:
        task_id = str(task_id)
        if task_id not in self._tasks:
            return None

        self._cancel(task_id)
        task = self._tasks.pop(task_id)
        self._save()
        logger.debug("Task deleted id=%s", task_id)
        return task

    def clear_all(self) -> None:
        try:
            self._scheduler.clear_all()
        except Exception:
            logger.exception("Clearing reminders failed")
        self._tasks = {}
        self._save()
        logger.info("All tasks cleared")

    # ---- bulk reload ----

    def load_tasks(self, tasks: Iterable[Task]) -> None:
        """Replace the collection (e.g. after restoring a snapshot) and reconcile reminders."""
        self._tasks = {t.id: t for t in tasks}

        numeric_ids = [int(t_id) for t_id in self._tasks if t_id.isdigit()]
        if numeric_ids:
            self._next_id = max(self._next_id, max(numeric_ids) + 1)

        if self._notifications_ready:
            try:
                self._scheduler.schedule_all(self._tasks.values())
            except Exception:
                logger.exception("Reminder reconciliation failed after reload")
        else:
            # Timers armed before the reload hold replaced Task objects.
            try:
                self._scheduler.clear_all()
            except Exception:
                logger.exception("Clearing reminders failed after reload")
            logger.debug("Reminder reconciliation deferred until notifications are initialized")

    def load_snapshot(self) -> int:
        if self._snapshot is None:
            return 0
        tasks = self._snapshot.load()
        if tasks:
            self.load_tasks(tasks)
        return len(tasks)

    def mark_notifications_ready(self) -> int:
        """Called once the notification channel is initialized: rebuild every reminder."""
        self._notifications_ready = True
        try:
            return self._scheduler.schedule_all(self._tasks.values())
        except Exception:
            logger.exception("Reminder reconciliation failed")
            return 0
