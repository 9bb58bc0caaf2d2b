class NotificationError(Exception):
    """Base class for notification transport failures."""


class TransportUnavailable(NotificationError):
    """Raised when a transport is not configured or cannot be reached."""


class NotificationPermissionDenied(NotificationError):
    """Raised when the user has not granted permission to show notifications."""


class TransportError(NotificationError):
    """Raised when the platform rejects a notification."""
