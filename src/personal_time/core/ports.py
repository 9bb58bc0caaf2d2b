# src/personal_time/core/ports.py

"""
Ports (interfaces) used by the core.

The reminder core depends on Protocols instead of concrete implementations.
This keeps notification transports and the time source swappable and makes
testing easier.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from ..notifications.models import NotificationRequest, PermissionState


class Clock(Protocol):
    """Wall-clock time source. Queried on every computation, never cached."""

    def now(self) -> datetime: ...


class SystemClock:
    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class PrimaryTransport(Protocol):
    """
    Host-side notification facility (tried first).

    Receives only (title, body). Raises a NotificationError (or anything else)
    on failure; the channel decides what to do about it.
    """

    name: str

    async def setup(self) -> None: ...

    async def show(self, title: str, body: str) -> None: ...


class FallbackTransport(Protocol):
    """
    In-process notification surface, used only when the primary fails
    and only while its permission is granted.
    """

    name: str

    @property
    def permission(self) -> PermissionState: ...

    async def request_permission(self) -> PermissionState: ...

    async def show(self, request: NotificationRequest) -> None: ...
