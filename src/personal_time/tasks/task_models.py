# src/personal_time/tasks/task_models.py

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any


class TaskPriority(StrEnum):
    """Task priority. P0 is the most severe."""

    P0 = "P0"
    P1 = "P1"
    P2 = "P2"
    P3 = "P3"

    @classmethod
    def from_raw(cls, raw: Any) -> TaskPriority:
        if not raw:
            return cls.P3
        try:
            return cls(str(raw).strip().upper())
        except ValueError:
            return cls.P3

    @property
    def severity(self) -> int:
        return int(self.value[1:])


class TaskStatus(StrEnum):
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @classmethod
    def from_raw(cls, raw: Any) -> TaskStatus:
        if not raw:
            return cls.PENDING
        try:
            return cls(str(raw).strip().lower().replace("_", "-"))
        except ValueError:
            return cls.PENDING

    @property
    def is_closed(self) -> bool:
        return self in (TaskStatus.COMPLETED, TaskStatus.CANCELLED)


def as_instant(dt: datetime) -> datetime:
    """Treat naive datetimes as local wall-clock time and make them timezone-aware."""
    if dt.tzinfo is None:
        return dt.astimezone()
    return dt


def parse_due_date(raw: Any) -> datetime | None:
    """
    Accept a datetime or an ISO-8601 string; anything else yields None.

    Bad input degrades to "no due date" instead of failing the caller.
    """
    if isinstance(raw, datetime):
        return as_instant(raw)
    if isinstance(raw, str) and raw.strip():
        try:
            return as_instant(datetime.fromisoformat(raw.strip()))
        except ValueError:
            return None
    return None


def parse_lead_minutes(raw: Any) -> int | None:
    """Non-negative whole minutes (int or digit string); anything else yields None."""
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw if raw >= 0 else None
    if isinstance(raw, str) and raw.strip().isdigit():
        return int(raw.strip())
    return None


@dataclass(slots=True)
class Task:
    id: str
    title: str
    description: str
    priority: TaskPriority
    status: TaskStatus
    due_date: datetime | None
    created_date: datetime

    completed_date: datetime | None = None
    reminder: bool = False
    reminder_minutes: int | None = None
    tags: set[str] = field(default_factory=set)

    @property
    def is_open(self) -> bool:
        return not self.status.is_closed

    def reminder_fields(self) -> tuple[bool, int | None, datetime | None]:
        # Fields whose change requires the pending reminder to be rebuilt.
        return self.reminder, self.reminder_minutes, self.due_date
