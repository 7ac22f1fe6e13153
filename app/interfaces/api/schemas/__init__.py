from .notification import (
    CleanupResponse,
    CreateNotificationRequest,
    MessageResponse,
    NotificationActionResponse,
    NotificationCounts,
    NotificationRead,
    NotificationSettingsRead,
)

__all__ = [
    "CleanupResponse",
    "CreateNotificationRequest",
    "MessageResponse",
    "NotificationActionResponse",
    "NotificationCounts",
    "NotificationRead",
    "NotificationSettingsRead",
]
