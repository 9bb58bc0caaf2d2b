# src/personal_time/tasks/overdue_monitor.py

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from ..core.ports import Clock, SystemClock
from ..notifications.channel import NotificationChannel
from ..notifications.models import DeliveryOutcome, NotificationRequest
from .task_models import Task, as_instant

logger = logging.getLogger(__name__)

OVERDUE_TAG = "overdue-tasks"


def build_overdue_request(overdue: Sequence[Task], preview_limit: int = 3) -> NotificationRequest:
    """
    One summary notification for all overdue tasks.

    "3 Overdue Tasks" / "Pay rent, Call mom, Book flights"
    "5 Overdue Tasks" / "Pay rent, Call mom, Book flights and 2 more"
    """
    count = len(overdue)
    limit = max(1, int(preview_limit))
    names = ", ".join(t.title for t in overdue[:limit])
    body = names if count <= limit else f"{names} and {count - limit} more"

    return NotificationRequest(
        title=f"{count} Overdue Task{'' if count == 1 else 's'}",
        body=body,
        tag=OVERDUE_TAG,
    )


class OverdueMonitor:
    """Stateless scan that reports overdue tasks; never touches tasks or reminders."""

    def __init__(
        self,
        channel: NotificationChannel,
        *,
        clock: Clock | None = None,
        preview_limit: int = 3,
    ) -> None:
        self._channel = channel
        self._clock = clock or SystemClock()
        self._preview_limit = preview_limit

    def find_overdue(self, tasks: Iterable[Task]) -> list[Task]:
        now = as_instant(self._clock.now())
        return [
            t
            for t in tasks
            if t.is_open and t.due_date is not None and as_instant(t.due_date) < now
        ]

    async def check_overdue(self, tasks: Iterable[Task]) -> DeliveryOutcome | None:
        overdue = self.find_overdue(tasks)
        if not overdue:
            logger.debug("Overdue check: nothing overdue")
            return None

        logger.info("Overdue check: %d task(s) overdue", len(overdue))
        return await self._channel.send(build_overdue_request(overdue, self._preview_limit))
