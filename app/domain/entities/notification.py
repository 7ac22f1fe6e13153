"""Domain entity representing a user notification."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

NOTIFICATION_TYPE_INFO = "info"
NOTIFICATION_TYPE_SUCCESS = "success"
NOTIFICATION_TYPE_WARNING = "warning"
NOTIFICATION_TYPE_ERROR = "error"


@dataclass
class Notification:
    """Persisted message addressed to exactly one user.

    ``type`` is a free-form tag; the ``NOTIFICATION_TYPE_*`` constants only
    name the generic levels used by the UI. ``related_team_id`` and
    ``related_activity_id`` are weak references kept for filtering and for
    cascade purges.
    """

    id: int | None
    user_id: int
    title: str
    message: str
    type: str
    is_read: bool = False
    related_team_id: int | None = None
    related_activity_id: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


__all__ = [
    "Notification",
    "NOTIFICATION_TYPE_INFO",
    "NOTIFICATION_TYPE_SUCCESS",
    "NOTIFICATION_TYPE_WARNING",
    "NOTIFICATION_TYPE_ERROR",
]
