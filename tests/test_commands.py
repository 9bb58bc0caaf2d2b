# tests/test_commands.py

from __future__ import annotations

import io
from datetime import timedelta

import pytest

from personal_time.cli.bootstrap import create_initial_state, shutdown, start_notifications
from personal_time.cli.commands import CommandRegistry, registry
from personal_time.core.state import AppState
from personal_time.notifications.channel import NotificationChannel
from personal_time.notifications.transports import ConsoleTransport
from personal_time.tasks.task_models import TaskStatus

from .fakes import FakePrimaryTransport


@pytest.fixture()
def app(settings, clock, primary, fallback) -> AppState:
    channel = NotificationChannel(primary, fallback, init_timeout_seconds=0.5)
    return create_initial_state(settings=settings, clock=clock, channel=channel)


@pytest.mark.asyncio
async def test_command_registry_routes_sync_and_async(app: AppState) -> None:
    reg = CommandRegistry()
    called = {"sync": 0, "async": 0}

    def sync_handler(state, args):
        called["sync"] += 1
        return f"sync {' '.join(args)}"

    async def async_handler(state, args):
        called["async"] += 1
        return "async"

    reg.register("a", sync_handler, "a")
    reg.register("b", async_handler, "b", aliases=["bee"])

    assert await reg.handle(app, "/a x y") == "sync x y"
    assert await reg.handle(app, "/BEE") == "async"
    assert called == {"sync": 1, "async": 1}


@pytest.mark.asyncio
async def test_command_registry_unknown_and_non_command(app: AppState) -> None:
    reg = CommandRegistry()
    assert await reg.handle(app, "hello") is None
    assert "Unknown command" in (await reg.handle(app, "/nope") or "")
    assert "Empty command" in (await reg.handle(app, "/") or "")


@pytest.mark.asyncio
async def test_add_remind_done_flow(app: AppState) -> None:
    reply = await registry.handle(app, "/add 120 P1 Write report")
    assert reply is not None and reply.startswith("Added #1 [pending] P1 Write report")

    await registry.handle(app, "/remind 1 15")
    task = app.store.get_task("1")
    assert task is not None and task.reminder and task.reminder_minutes == 15
    assert "1" in app.scheduler
    assert "#1 Write report" in (await registry.handle(app, "/pending") or "")

    await registry.handle(app, "/done #1")
    assert task.status == TaskStatus.COMPLETED
    assert "1" not in app.scheduler
    assert await registry.handle(app, "/pending") == "No pending reminders."


@pytest.mark.asyncio
async def test_remind_reports_elapsed_window(app: AppState) -> None:
    await registry.handle(app, "/add 5 Quick call")

    reply = await registry.handle(app, "/remind 1 30")

    assert reply is not None and "already passed" in reply
    assert len(app.scheduler) == 0


@pytest.mark.asyncio
async def test_delete_and_clear_commands(app: AppState) -> None:
    await registry.handle(app, "/add 60 One")
    await registry.handle(app, "/add 60 Two")

    assert await registry.handle(app, "/rm 1") == "Deleted #1 One"
    assert await registry.handle(app, "/delete 1") == "Task not found."

    assert "Confirm" in (await registry.handle(app, "/clear") or "")
    assert await registry.handle(app, "/clear yes") == "All tasks deleted."
    assert await registry.handle(app, "/list") == "No tasks."


@pytest.mark.asyncio
async def test_overdue_and_test_commands(app: AppState, clock, primary: FakePrimaryTransport) -> None:
    assert await registry.handle(app, "/overdue") == "Nothing is overdue."

    app.store.add_task(title="Late", due_date=clock.now() - timedelta(hours=1))
    assert await registry.handle(app, "/overdue") == "1 overdue task(s); notification sent."
    assert primary.sent[-1] == ("1 Overdue Task", "Late")

    assert await registry.handle(app, "/test") == "Test notification sent via primary."


@pytest.mark.asyncio
async def test_start_notifications_reconciles_and_checks_overdue(settings, clock) -> None:
    out = io.StringIO()
    console = ConsoleTransport(stream=out)
    channel = NotificationChannel(None, console, init_timeout_seconds=0.5)
    state = create_initial_state(settings=settings, clock=clock, channel=channel)

    upcoming = state.store.add_task(
        title="Upcoming", due_date=clock.now() + timedelta(hours=2), reminder=True
    )
    state.store.add_task(title="Forgotten", due_date=clock.now() - timedelta(days=1))
    state.scheduler.clear_all()

    await start_notifications(state)
    assert channel.initialized
    assert state.scheduler.pending_ids() == [upcoming.id]

    # overdue check runs in the background (delay 0 in test settings)
    for task in list(state.background):
        await task
    assert console.latest["overdue-tasks"].title == "1 Overdue Task"
    assert "Forgotten" in out.getvalue()

    await shutdown(state)
    assert len(state.scheduler) == 0
