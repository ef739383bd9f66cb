"""Domain exceptions raised while scheduling and dispatching notifications."""

from __future__ import annotations


class DispatchError(Exception):
    """Base exception for all dispatcher errors."""

    def __init__(self, message: str, error_code: str | None = None) -> None:
        self.message = message
        self.error_code = error_code
        super().__init__(message)


class DispatchConfigurationError(DispatchError):
    """Required configuration is missing or invalid; the run cannot start."""

    def __init__(self, message: str) -> None:
        super().__init__(message, "CONFIGURATION_ERROR")


class NotificationSelectionError(DispatchError):
    """The queue of due notifications could not be read."""

    def __init__(self, message: str) -> None:
        super().__init__(message, "SELECTION_FAILED")


# Per-row delivery failures
class NotificationDeliveryError(DispatchError):
    """A single queued notification could not be delivered."""

    def __init__(self, message: str, error_code: str = "DELIVERY_FAILED") -> None:
        super().__init__(message, error_code)


class EmailDeliveryError(NotificationDeliveryError):
    """The email provider rejected the request or could not be reached."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message, "EMAIL_DELIVERY_FAILED")


class RecipientNotResolved(NotificationDeliveryError):
    """No recipient address could be recovered from the queued row."""

    def __init__(self, notification_id: int | None) -> None:
        super().__init__(
            f"Could not resolve a recipient address for notification {notification_id}",
            "RECIPIENT_NOT_RESOLVED",
        )


# Scheduling errors
class SchedulingError(DispatchError):
    """A notification could not be queued."""


class InvalidRecipient(SchedulingError):
    """The recipient given for a single-user notification is not usable."""

    def __init__(self, message: str) -> None:
        super().__init__(message, "INVALID_RECIPIENT")


class UserNotFound(SchedulingError):
    """The directory has no user for the given identifier."""

    def __init__(self, identifier: str) -> None:
        super().__init__(f"User not found with email: {identifier}", "USER_NOT_FOUND")


__all__ = [
    "DispatchError",
    "DispatchConfigurationError",
    "NotificationSelectionError",
    "NotificationDeliveryError",
    "EmailDeliveryError",
    "RecipientNotResolved",
    "SchedulingError",
    "InvalidRecipient",
    "UserNotFound",
]
