"""Errors raised by the notification subsystem."""

from __future__ import annotations


class NotificationError(Exception):
    """Base class for notification errors."""


class UnknownUserError(NotificationError, ValueError):
    """Raised when a notification targets a user that does not exist."""

    def __init__(self, user_id: int) -> None:
        super().__init__(f"User not found with ID: {user_id}")
        self.user_id = user_id


class NotificationNotFoundError(NotificationError, LookupError):
    """Raised when a notification id does not resolve to a stored record."""

    def __init__(self, notification_id: int) -> None:
        super().__init__(f"Notification not found with ID: {notification_id}")
        self.notification_id = notification_id


class NotificationAccessDeniedError(NotificationError, PermissionError):
    """Raised when a user addresses a notification that belongs to someone else."""

    def __init__(self, notification_id: int, user_id: int) -> None:
        super().__init__(
            f"Access denied: notification {notification_id} does not belong to user {user_id}"
        )
        self.notification_id = notification_id
        self.user_id = user_id


class DeliveryFailure(NotificationError):
    """A live push to a connected user could not be completed.

    Never propagated past the connection registry; it only shapes the log
    record of the failed write.
    """

    def __init__(self, user_id: int, reason: BaseException) -> None:
        super().__init__(f"Could not deliver live message to user {user_id}: {reason!r}")
        self.user_id = user_id
        self.reason = reason


class MaintenanceRunFailure(NotificationError):
    """A retention sweep or purge failed for one user (or for the whole run)."""

    def __init__(self, operation: str, reason: BaseException, *, user_id: int | None = None) -> None:
        target = f" for user {user_id}" if user_id is not None else ""
        super().__init__(f"{operation} failed{target}: {reason}")
        self.operation = operation
        self.reason = reason
        self.user_id = user_id


__all__ = [
    "NotificationError",
    "UnknownUserError",
    "NotificationNotFoundError",
    "NotificationAccessDeniedError",
    "DeliveryFailure",
    "MaintenanceRunFailure",
]
