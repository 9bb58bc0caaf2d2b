# tests/test_task_persistence.py

from __future__ import annotations

import json
from datetime import timedelta
from pathlib import Path

from personal_time.tasks.task_models import Task, TaskPriority, TaskStatus
from personal_time.tasks.task_persistence import TaskSnapshotFile, task_from_dict, task_to_dict

from .conftest import NOW


def test_snapshot_keeps_reminder_fields(tmp_path: Path) -> None:
    snapshot = TaskSnapshotFile(tmp_path / "nested" / "tasks.json")
    task = Task(
        id="7",
        title="Dentist",
        description="Bring the form",
        priority=TaskPriority.P1,
        status=TaskStatus.IN_PROGRESS,
        due_date=NOW + timedelta(hours=4),
        created_date=NOW,
        reminder=True,
        reminder_minutes=45,
        tags={"health", "personal"},
    )

    snapshot.save([task])
    (loaded,) = snapshot.load()

    assert loaded == task
    raw = json.loads(snapshot.path.read_text("utf-8"))
    assert raw[0]["tags"] == ["health", "personal"]
    assert raw[0]["reminderMinutes"] == 45


def test_missing_or_broken_snapshot_loads_empty(tmp_path: Path) -> None:
    assert TaskSnapshotFile(tmp_path / "absent.json").load() == []

    broken = tmp_path / "broken.json"
    broken.write_text("{not json", "utf-8")
    assert TaskSnapshotFile(broken).load() == []

    not_a_list = tmp_path / "dict.json"
    not_a_list.write_text('{"tasks": []}', "utf-8")
    assert TaskSnapshotFile(not_a_list).load() == []


def test_malformed_entries_are_skipped(tmp_path: Path) -> None:
    good = task_to_dict(
        Task(
            id="1",
            title="Ok",
            description="",
            priority=TaskPriority.P3,
            status=TaskStatus.PENDING,
            due_date=None,
            created_date=NOW,
        )
    )
    path = tmp_path / "tasks.json"
    path.write_text(
        json.dumps([good, {"title": "no id"}, {"id": "3", "createdDate": "yesterday"}, "junk"]),
        "utf-8",
    )

    loaded = TaskSnapshotFile(path).load()

    assert [t.id for t in loaded] == ["1"]
    assert loaded[0].due_date is None


def test_completed_date_follows_status() -> None:
    base = {"id": "1", "title": "x", "createdDate": NOW.isoformat()}

    completed = task_from_dict({**base, "status": "completed"})
    assert completed.completed_date == NOW

    pending = task_from_dict({**base, "status": "pending", "completedDate": NOW.isoformat()})
    assert pending.completed_date is None

    legacy = task_from_dict({**base, "status": "in_progress", "priority": "p0"})
    assert legacy.status == TaskStatus.IN_PROGRESS
    assert legacy.priority == TaskPriority.P0


def test_bad_reminder_data_keeps_the_task() -> None:
    base = {"id": "1", "title": "x", "createdDate": NOW.isoformat(), "reminder": True}

    bad_lead = task_from_dict({**base, "reminderMinutes": "soon", "dueDate": NOW.isoformat()})
    assert bad_lead.reminder_minutes is None
    assert bad_lead.due_date == NOW

    bad_due = task_from_dict({**base, "reminderMinutes": 30, "dueDate": "next week"})
    assert bad_due.reminder_minutes == 30
    assert bad_due.due_date is None
