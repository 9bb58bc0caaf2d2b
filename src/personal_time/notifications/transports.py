# src/personal_time/notifications/transports.py

from __future__ import annotations

import asyncio
import logging
import sys
from collections import deque
from collections.abc import Awaitable, Callable
from datetime import datetime
from typing import Any, TextIO

from nio import AsyncClient, RoomSendError

from ..connectors.matrix_client import create_matrix_client
from .errors import NotificationPermissionDenied, TransportError, TransportUnavailable
from .models import NotificationRequest, PermissionState

logger = logging.getLogger(__name__)

ClientFactory = Callable[[Any], Awaitable[AsyncClient | None]]

CONSOLE_HISTORY_LIMIT = 200
CONSOLE_TAG_LIMIT = 200


class MatrixTransport:
    """
    Primary transport: posts notifications into a Matrix room.

    The client is created lazily on first use (session restore or password
    bootstrap, see connectors.matrix_client). Only (title, body) are sent.
    """

    name = "matrix"

    def __init__(self, settings, *, client_factory: ClientFactory = create_matrix_client) -> None:
        self._settings = settings
        self._client_factory = client_factory
        self._client: AsyncClient | None = None
        self._lock = asyncio.Lock()

    @property
    def enabled(self) -> bool:
        return bool(getattr(self._settings, "matrix_enabled", False))

    @property
    def room_id(self) -> str:
        return (getattr(self._settings, "matrix_notify_room", "") or "").strip()

    async def _get_client(self) -> AsyncClient:
        if not self.enabled:
            raise TransportUnavailable("Matrix notifications are disabled")
        if not self.room_id:
            raise TransportUnavailable("PTS_MATRIX_NOTIFY_ROOM is not set")

        async with self._lock:
            if self._client is None:
                self._client = await self._client_factory(self._settings)
            if self._client is None:
                raise TransportUnavailable("Matrix client could not be created")
            return self._client

    async def setup(self) -> None:
        if not self.enabled:
            return
        try:
            await self._get_client()
        except TransportUnavailable as e:
            # show() will raise again and trigger the fallback.
            logger.warning("Matrix transport not ready: %s", e)

    async def show(self, title: str, body: str) -> None:
        client = await self._get_client()
        resp = await client.room_send(
            room_id=self.room_id,
            message_type="m.room.message",
            content={"msgtype": "m.notice", "body": f"{title}\n{body}"},
            ignore_unverified_devices=True,
        )
        if isinstance(resp, RoomSendError):
            raise TransportError(f"Matrix room_send failed: {resp.message}")

    async def aclose(self) -> None:
        client, self._client = self._client, None
        if client is not None:
            await client.close()


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


class ConsoleTransport:
    """
    Fallback transport: prints notifications into the running console.

    A notification with a tag replaces the previous one with the same tag
    (see `latest`); `history` keeps the most recent notifications shown.
    Both are bounded; the oldest entries are evicted first.
    """

    name = "console"

    def __init__(
        self,
        *,
        enabled: bool | None = None,
        stream: TextIO | None = None,
        history_limit: int = CONSOLE_HISTORY_LIMIT,
        tag_limit: int = CONSOLE_TAG_LIMIT,
    ) -> None:
        # None means "not decided yet": request_permission() grants it.
        if enabled is None:
            self._permission = PermissionState.DEFAULT
        else:
            self._permission = PermissionState.GRANTED if enabled else PermissionState.DENIED
        self._stream = stream
        self.latest: dict[str, NotificationRequest] = {}
        self.history: deque[NotificationRequest] = deque(maxlen=max(1, history_limit))
        self._tag_limit = max(1, tag_limit)

    @property
    def permission(self) -> PermissionState:
        return self._permission

    async def request_permission(self) -> PermissionState:
        if self._permission == PermissionState.DEFAULT:
            self._permission = PermissionState.GRANTED
        return self._permission

    async def show(self, request: NotificationRequest) -> None:
        if self._permission != PermissionState.GRANTED:
            raise NotificationPermissionDenied("console notifications are not permitted")

        replaced = request.tag is not None and request.tag in self.latest
        if request.tag is not None:
            # Re-insert so the dict stays ordered by last use.
            self.latest.pop(request.tag, None)
            self.latest[request.tag] = request
            while len(self.latest) > self._tag_limit:
                self.latest.pop(next(iter(self.latest)))
        self.history.append(request)

        icon = f"{request.icon} " if request.icon else ""
        suffix = " (updated)" if replaced else ""
        stream = self._stream or sys.stdout
        print(f"[{_ts_local()}] {icon}{request.title}{suffix}: {request.body}", file=stream, flush=True)
