"""Use cases for a user reading and managing their own notifications."""

from __future__ import annotations

from sqlalchemy.orm import Session

from app.domain.entities import Notification
from app.domain.exceptions import NotificationAccessDeniedError
from app.infrastructure.repositories import NotificationRepository


def _ensure_owner(notification: Notification, user_id: int) -> None:
    if notification.user_id != user_id:
        raise NotificationAccessDeniedError(notification.id or 0, user_id)


def get_notification_for_user(
    session: Session, notification_id: int, *, user_id: int
) -> Notification:
    """Return the notification or raise when missing or owned by someone else."""

    notification = NotificationRepository(session).get(notification_id)
    _ensure_owner(notification, user_id)
    return notification


def mark_notification_read(
    session: Session, notification_id: int, *, user_id: int
) -> Notification:
    """Mark one of the user's notifications as read. Safe to repeat."""

    repository = NotificationRepository(session)
    _ensure_owner(repository.get(notification_id), user_id)
    return repository.mark_as_read(notification_id)


def mark_all_notifications_read(session: Session, *, user_id: int) -> int:
    return NotificationRepository(session).mark_all_as_read_for_user(user_id)


def delete_notification_for_user(
    session: Session, notification_id: int, *, user_id: int
) -> bool:
    """Delete the notification; ``False`` when it no longer exists."""

    repository = NotificationRepository(session)
    notification = repository.find(notification_id)
    if notification is None:
        return False
    _ensure_owner(notification, user_id)
    return repository.delete(notification_id)


__all__ = [
    "get_notification_for_user",
    "mark_notification_read",
    "mark_all_notifications_read",
    "delete_notification_for_user",
]
