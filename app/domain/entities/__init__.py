"""Domain entities exposed by the application."""

from .activity import Activity, Team
from .notification import (
    NOTIFICATION_TYPE_ERROR,
    NOTIFICATION_TYPE_INFO,
    NOTIFICATION_TYPE_SUCCESS,
    NOTIFICATION_TYPE_WARNING,
    Notification,
)
from .user import ROLE_ADMIN, ROLE_MEMBER, User

__all__ = [
    "Activity",
    "Team",
    "Notification",
    "NOTIFICATION_TYPE_INFO",
    "NOTIFICATION_TYPE_SUCCESS",
    "NOTIFICATION_TYPE_WARNING",
    "NOTIFICATION_TYPE_ERROR",
    "User",
    "ROLE_ADMIN",
    "ROLE_MEMBER",
]
