# src/personal_time/notifications/channel.py

"""
Notification channel.

Delivers a notification through the primary transport, falling back to the
in-process transport when the primary fails and the fallback is permitted.
Delivery is best-effort: failures are logged and reported as an outcome,
never raised to the caller.
"""

from __future__ import annotations

import asyncio
import logging

from ..core.ports import FallbackTransport, PrimaryTransport
from .models import DeliveryOutcome, NotificationRequest, PermissionState

logger = logging.getLogger(__name__)

TEST_TITLE = "Test Notification"
TEST_BODY = "Personal Time Service notifications are working!"


class NotificationChannel:
    def __init__(
        self,
        primary: PrimaryTransport | None,
        fallback: FallbackTransport | None = None,
        *,
        init_timeout_seconds: float = 5.0,
    ) -> None:
        self._primary = primary
        self._fallback = fallback
        self._init_timeout = max(0.1, float(init_timeout_seconds))
        self._initialized = False
        self._init_lock = asyncio.Lock()

    @property
    def initialized(self) -> bool:
        return self._initialized

    async def initialize(self) -> None:
        """
        Request notification permission once and prepare the primary transport.

        Safe to call repeatedly. Each step is bounded by init_timeout_seconds;
        on failure the channel stays uninitialized and the next call retries.
        """
        if self._initialized:
            return

        async with self._init_lock:
            if self._initialized:
                return

            try:
                if self._fallback is not None and self._fallback.permission == PermissionState.DEFAULT:
                    state = await asyncio.wait_for(
                        self._fallback.request_permission(), timeout=self._init_timeout
                    )
                    logger.info("Fallback notification permission: %s", state.value)

                if self._primary is not None:
                    await asyncio.wait_for(self._primary.setup(), timeout=self._init_timeout)
            except Exception:
                logger.exception("Failed to initialize notifications")
                return

            self._initialized = True
            logger.debug("Notification channel initialized")

    async def deliver(
        self,
        title: str,
        body: str,
        *,
        tag: str | None = None,
        icon: str | None = None,
    ) -> DeliveryOutcome:
        return await self.send(NotificationRequest(title=title, body=body, tag=tag, icon=icon))

    async def send(self, request: NotificationRequest) -> DeliveryOutcome:
        await self.initialize()

        if self._primary is not None:
            try:
                # The primary transport only understands (title, body).
                await self._primary.show(request.title, request.body)
                logger.info("Notification sent: %s", request.title)
                return DeliveryOutcome.primary()
            except Exception as e:
                logger.warning(
                    "Primary notification transport %s failed: %r",
                    getattr(self._primary, "name", "primary"),
                    e,
                )

        fallback = self._fallback
        if fallback is None or fallback.permission != PermissionState.GRANTED:
            logger.error("Notification dropped (no permitted fallback): %s", request.title)
            return DeliveryOutcome.failed()

        try:
            await fallback.show(request)
        except Exception:
            logger.exception("Fallback notification transport %s failed", fallback.name)
            return DeliveryOutcome.failed()

        logger.info("Notification sent via fallback: %s", request.title)
        return DeliveryOutcome.fallback()

    async def send_test_notification(self) -> DeliveryOutcome:
        return await self.deliver(TEST_TITLE, TEST_BODY, tag="test")

    async def aclose(self) -> None:
        for transport in (self._primary, self._fallback):
            closer = getattr(transport, "aclose", None)
            if closer is None:
                continue
            try:
                await closer()
            except Exception:
                logger.debug("Transport close failed.", exc_info=True)
