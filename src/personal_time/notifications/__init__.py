"""
Notification subsystem.

Components:
- models.py: NotificationRequest, DeliveryOutcome, PermissionState
- errors.py: transport error hierarchy
- channel.py: primary-then-fallback delivery (NotificationChannel)
- transports.py: Matrix (primary) and console (fallback) transports
"""

from .channel import NotificationChannel
from .models import DeliveryOutcome, NotificationRequest, PermissionState

__all__ = [
    "DeliveryOutcome",
    "NotificationChannel",
    "NotificationRequest",
    "PermissionState",
]
