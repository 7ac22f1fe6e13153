"""Pydantic models describing notification payloads."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from app.domain.entities import NOTIFICATION_TYPE_INFO


class NotificationRead(BaseModel):
    """Representation of a notification delivered to the client."""

    id: int
    user_id: int
    title: str
    message: str | None = None
    type: str
    is_read: bool
    related_team_id: int | None = None
    related_activity_id: int | None = None
    created_at: datetime
    updated_at: datetime | None = None


class NotificationCounts(BaseModel):
    total: int
    unread: int


class NotificationActionResponse(BaseModel):
    message: str
    notification: NotificationRead


class MessageResponse(BaseModel):
    message: str


class CreateNotificationRequest(BaseModel):
    """Payload used by administrators to notify a specific user."""

    user_id: int = Field(..., gt=0, description="Addressee of the notification")
    title: str = Field(..., min_length=1, max_length=255)
    message: str = Field(default="")
    type: str = Field(default=NOTIFICATION_TYPE_INFO, min_length=1, max_length=255)
    related_team_id: int | None = None
    related_activity_id: int | None = None


class CleanupResponse(BaseModel):
    message: str
    deleted_count: int
    user_id: int | None = None
    users: int | None = None
    failures: int | None = None


class NotificationSettingsRead(BaseModel):
    max_per_user: int
    retention_days: int
    cleanup_enabled: bool
    connected_users: int


__all__ = [
    "NotificationRead",
    "NotificationCounts",
    "NotificationActionResponse",
    "MessageResponse",
    "CreateNotificationRequest",
    "CleanupResponse",
    "NotificationSettingsRead",
]
