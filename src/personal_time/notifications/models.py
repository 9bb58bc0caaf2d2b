# src/personal_time/notifications/models.py

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class PermissionState(StrEnum):
    DEFAULT = "default"
    GRANTED = "granted"
    DENIED = "denied"


@dataclass(slots=True, frozen=True)
class NotificationRequest:
    """
    A single notification to present.

    tag groups notifications so a newer one replaces an older one with the
    same tag instead of stacking. icon is a short glyph selector.
    """

    title: str
    body: str
    tag: str | None = None
    icon: str | None = None


@dataclass(slots=True, frozen=True)
class DeliveryOutcome:
    ok: bool
    transport: str | None = None

    @classmethod
    def primary(cls) -> DeliveryOutcome:
        return cls(ok=True, transport="primary")

    @classmethod
    def fallback(cls) -> DeliveryOutcome:
        return cls(ok=True, transport="fallback")

    @classmethod
    def failed(cls) -> DeliveryOutcome:
        return cls(ok=False, transport=None)
