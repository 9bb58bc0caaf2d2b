# src/personal_time/tasks/task_persistence.py

from __future__ import annotations

import contextlib
import json
import logging
import os
from collections.abc import Iterable
from datetime import datetime
from pathlib import Path
from typing import Any

from .task_models import (
    Task,
    TaskPriority,
    TaskStatus,
    as_instant,
    parse_due_date,
    parse_lead_minutes,
)

logger = logging.getLogger(__name__)


def _dt_to_str(dt: datetime | None) -> str | None:
    return as_instant(dt).isoformat() if dt is not None else None


def _str_to_dt(raw: Any) -> datetime | None:
    if not raw:
        return None
    return as_instant(datetime.fromisoformat(str(raw)))


def task_to_dict(task: Task) -> dict[str, Any]:
    return {
        "id": task.id,
        "title": task.title,
        "description": task.description,
        "priority": task.priority.value,
        "status": task.status.value,
        "dueDate": _dt_to_str(task.due_date),
        "createdDate": _dt_to_str(task.created_date),
        "completedDate": _dt_to_str(task.completed_date),
        "reminder": bool(task.reminder),
        "reminderMinutes": task.reminder_minutes,
        "tags": sorted(task.tags),
    }


def task_from_dict(data: dict[str, Any]) -> Task:
    """Parse one stored task. Raises ValueError/KeyError/TypeError on malformed data."""
    task_id = str(data["id"]).strip()
    if not task_id:
        raise ValueError("task id is empty")

    created = _str_to_dt(data.get("createdDate"))
    if created is None:
        raise ValueError("createdDate is required")

    status = TaskStatus.from_raw(data.get("status"))
    completed = _str_to_dt(data.get("completedDate"))
    if status == TaskStatus.COMPLETED and completed is None:
        completed = created
    elif status != TaskStatus.COMPLETED:
        completed = None

    # Bad reminder data must not cost the user the whole task.
    raw_minutes = data.get("reminderMinutes")
    minutes = parse_lead_minutes(raw_minutes)
    if minutes is None and raw_minutes is not None:
        logger.warning("Task %s: invalid reminderMinutes=%r ignored", task_id, raw_minutes)

    raw_due = data.get("dueDate")
    due = parse_due_date(raw_due)
    if due is None and raw_due:
        logger.warning("Task %s: invalid dueDate=%r ignored", task_id, raw_due)

    tags = data.get("tags") or []

    return Task(
        id=task_id,
        title=str(data.get("title") or ""),
        description=str(data.get("description") or ""),
        priority=TaskPriority.from_raw(data.get("priority")),
        status=status,
        due_date=due,
        created_date=created,
        completed_date=completed,
        reminder=bool(data.get("reminder", False)),
        reminder_minutes=minutes,
        tags={str(t) for t in tags},
    )


class TaskSnapshotFile:
    """
    JSON snapshot of the whole task list.

    Loading is best-effort: a missing or unreadable file yields an empty list,
    malformed entries are skipped.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> list[Task]:
        if not self._path.exists():
            return []
        try:
            data = json.loads(self._path.read_text("utf-8"))
        except Exception:
            logger.exception("Failed to load tasks from %s", self._path)
            return []

        if not isinstance(data, list):
            logger.warning("Task snapshot %s is not a JSON list; ignored", self._path)
            return []

        out: list[Task] = []
        for item in data:
            if not isinstance(item, dict):
                continue
            try:
                out.append(task_from_dict(item))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("Skipping malformed task in %s: %r", self._path, e)
        logger.info("Loaded %d tasks from %s", len(out), self._path)
        return out

    def save(self, tasks: Iterable[Task]) -> None:
        payload = [task_to_dict(t) for t in tasks]
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_suffix(".tmp")
        tmp.write_text(json.dumps(payload, ensure_ascii=False, indent=2), "utf-8")
        os.replace(tmp, self._path)
        with contextlib.suppress(Exception):
            os.chmod(self._path, 0o600)
        logger.debug("Saved %d tasks to %s", len(payload), self._path)
