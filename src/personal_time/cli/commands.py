# src/personal_time/cli/commands.py

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime, timedelta

from ..core.state import AppState
from ..tasks.task_models import Task, TaskPriority, TaskStatus, as_instant

CommandHandler = Callable[[AppState, list[str]], str | Awaitable[str]]

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by the console (/help, /add, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    async def handle(self, state: AppState, line: str) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        Handlers may be plain functions or coroutines.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        result = handler(state, args)
        if inspect.isawaitable(result):
            result = await result
        return result

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


def _fmt_dt(dt: datetime | None) -> str:
    if dt is None:
        return "-"
    return as_instant(dt).astimezone().strftime("%Y-%m-%d %H:%M")


def _fmt_task(state: AppState, task: Task) -> str:
    line = f"#{task.id} [{task.status}] {task.priority} {task.title} (due {_fmt_dt(task.due_date)})"
    if task.reminder:
        line += f" reminder {task.reminder_minutes}m"
        entry = state.scheduler.pending(task.id)
        if entry is not None:
            line += f" @ {_fmt_dt(entry.fire_at)}"
    if task.tags:
        line += f" tags: {', '.join(sorted(task.tags))}"
    return line


def _find(state: AppState, args: list[str]) -> Task | None:
    if not args:
        return None
    return state.store.get_task(args[0].lstrip("#"))


def _parse_minutes(raw: str) -> int | None:
    try:
        value = int(raw)
    except ValueError:
        return None
    return value if value >= 0 else None


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_add(state: AppState, args: list[str]) -> str:
    """
    /add <minutes> [P0-P3] <title...>  -> task due in <minutes> from now
    """
    if len(args) < 2:
        return "Usage: /add <minutes> [P0-P3] <title>"

    minutes = _parse_minutes(args[0])
    if minutes is None:
        return "Minutes must be a non-negative integer."

    rest = args[1:]
    priority = None
    if rest and rest[0].upper() in TaskPriority.__members__:
        priority = rest[0].upper()
        rest = rest[1:]
    if not rest:
        return "Usage: /add <minutes> [P0-P3] <title>"

    now = state.store.now()
    task = state.store.add_task(
        title=" ".join(rest),
        priority=priority,
        due_date=now + timedelta(minutes=minutes),
    )
    return f"Added {_fmt_task(state, task)}"


def cmd_list(state: AppState, args: list[str]) -> str:
    tasks = state.store.list_tasks()
    if not tasks:
        return "No tasks."
    return "\n".join(_fmt_task(state, t) for t in tasks)


def cmd_show(state: AppState, args: list[str]) -> str:
    task = _find(state, args)
    if task is None:
        return "Usage: /show <id> (task not found)"
    lines = [_fmt_task(state, task)]
    if task.description:
        lines.append(f"  {task.description}")
    lines.append(f"  created {_fmt_dt(task.created_date)}, completed {_fmt_dt(task.completed_date)}")
    return "\n".join(lines)


def _set_status(state: AppState, args: list[str], status: TaskStatus) -> str:
    task = _find(state, args)
    if task is None:
        return "Task not found."
    state.store.update_task(task.id, status=status)
    return _fmt_task(state, task)


def cmd_done(state: AppState, args: list[str]) -> str:
    return _set_status(state, args, TaskStatus.COMPLETED)


def cmd_start(state: AppState, args: list[str]) -> str:
    return _set_status(state, args, TaskStatus.IN_PROGRESS)


def cmd_cancel(state: AppState, args: list[str]) -> str:
    return _set_status(state, args, TaskStatus.CANCELLED)


def cmd_reopen(state: AppState, args: list[str]) -> str:
    return _set_status(state, args, TaskStatus.PENDING)


def cmd_toggle(state: AppState, args: list[str]) -> str:
    task = _find(state, args)
    if task is None:
        return "Task not found."
    state.store.toggle_task_status(task.id)
    return _fmt_task(state, task)


def cmd_due(state: AppState, args: list[str]) -> str:
    """/due <id> <minutes> -> move the due time to <minutes> from now"""
    task = _find(state, args)
    if task is None or len(args) < 2:
        return "Usage: /due <id> <minutes>"
    minutes = _parse_minutes(args[1])
    if minutes is None:
        return "Minutes must be a non-negative integer."
    now = state.store.now()
    state.store.update_task(task.id, due_date=now + timedelta(minutes=minutes))
    return _fmt_task(state, task)


def cmd_remind(state: AppState, args: list[str]) -> str:
    """
    /remind <id> <minutes>  -> remind <minutes> before the due time
    /remind <id> off        -> disable the reminder
    """
    task = _find(state, args)
    if task is None or len(args) < 2:
        return "Usage: /remind <id> <minutes|off>"

    arg = args[1].lower()
    if arg in ("off", "no", "false"):
        state.store.update_task(task.id, reminder=False)
        return _fmt_task(state, task)

    minutes = _parse_minutes(arg)
    if minutes is None:
        return "Usage: /remind <id> <minutes|off>"
    state.store.update_task(task.id, reminder=True, reminder_minutes=minutes)

    if task.is_open and task.id not in state.scheduler:
        return f"{_fmt_task(state, task)}\n(reminder time already passed; nothing scheduled)"
    return _fmt_task(state, task)


def cmd_priority(state: AppState, args: list[str]) -> str:
    task = _find(state, args)
    if task is None or len(args) < 2 or args[1].upper() not in TaskPriority.__members__:
        return "Usage: /priority <id> <P0|P1|P2|P3>"
    state.store.update_task(task.id, priority=args[1])
    return _fmt_task(state, task)


def cmd_delete(state: AppState, args: list[str]) -> str:
    task = _find(state, args)
    if task is None:
        return "Task not found."
    state.store.delete_task(task.id)
    return f"Deleted #{task.id} {task.title}"


def cmd_clear(state: AppState, args: list[str]) -> str:
    if not args or args[0].lower() != "yes":
        return "This deletes every task. Confirm with: /clear yes"
    state.store.clear_all()
    return "All tasks deleted."


def cmd_pending(state: AppState, args: list[str]) -> str:
    ids = state.scheduler.pending_ids()
    if not ids:
        return "No pending reminders."
    lines = ["Pending reminders:"]
    for task_id in ids:
        entry = state.scheduler.pending(task_id)
        task = state.store.get_task(task_id)
        title = task.title if task is not None else "?"
        lines.append(f"  #{task_id} {title} @ {_fmt_dt(entry.fire_at if entry else None)}")
    return "\n".join(lines)


async def cmd_overdue(state: AppState, args: list[str]) -> str:
    overdue = state.monitor.find_overdue(state.store.list_tasks())
    if not overdue:
        return "Nothing is overdue."
    outcome = await state.monitor.check_overdue(state.store.list_tasks())
    status = "sent" if outcome is not None and outcome.ok else "not delivered"
    return f"{len(overdue)} overdue task(s); notification {status}."


async def cmd_test(state: AppState, args: list[str]) -> str:
    outcome = await state.channel.send_test_notification()
    if outcome.ok:
        return f"Test notification sent via {outcome.transport}."
    return "Test notification could not be delivered (see log)."


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("add", cmd_add, help_text="Add a task: /add <minutes> [P0-P3] <title>.")
registry.register("list", cmd_list, help_text="List all tasks.", aliases=["ls"])
registry.register("show", cmd_show, help_text="Show one task: /show <id>.")
registry.register("done", cmd_done, help_text="Mark a task completed: /done <id>.")
registry.register("start", cmd_start, help_text="Mark a task in progress: /start <id>.")
registry.register("cancel", cmd_cancel, help_text="Cancel a task: /cancel <id>.")
registry.register("reopen", cmd_reopen, help_text="Set a task back to pending: /reopen <id>.")
registry.register("toggle", cmd_toggle, help_text="Advance a task's status: /toggle <id>.")
registry.register("due", cmd_due, help_text="Move the due time: /due <id> <minutes from now>.")
registry.register("remind", cmd_remind, help_text="Reminder lead time: /remind <id> <minutes|off>.")
registry.register("priority", cmd_priority, help_text="Set priority: /priority <id> <P0-P3>.")
registry.register("delete", cmd_delete, help_text="Delete a task: /delete <id>.", aliases=["rm"])
registry.register("clear", cmd_clear, help_text="Delete every task: /clear yes.")
registry.register("pending", cmd_pending, help_text="Show pending reminders.")
registry.register("overdue", cmd_overdue, help_text="Send the overdue summary notification.")
registry.register("test", cmd_test, help_text="Send a test notification.")
