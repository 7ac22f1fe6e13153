"""Single entry point used by the application to originate notifications."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from sqlalchemy.orm import Session

from app.config import get_settings
from app.domain.entities import Notification
from app.domain.exceptions import UnknownUserError
from app.infrastructure.notifications import NotificationPublisher
from app.infrastructure.repositories import NotificationRepository, UserRepository

from .retention import RetentionEnforcer

logger = logging.getLogger(__name__)


class NotificationDispatcher:
    """Persist a notification, trim the user's backlog, then push it live.

    Persisting is the only step allowed to fail :meth:`create`. The live push
    is best effort: when the user is offline or the write fails the stored
    record is still returned.
    """

    def __init__(
        self,
        session: Session,
        *,
        publisher: NotificationPublisher | None,
        max_per_user: int | None = None,
    ) -> None:
        if max_per_user is None:
            max_per_user = get_settings().notification_max_per_user
        self._users = UserRepository(session)
        self._notifications = NotificationRepository(session)
        self._retention = RetentionEnforcer(self._notifications, max_per_user=max_per_user)
        self._publisher = publisher

    @property
    def retention(self) -> RetentionEnforcer:
        return self._retention

    def create(
        self,
        user_id: int,
        title: str,
        message: str,
        notification_type: str,
        related_team_id: int | None = None,
        related_activity_id: int | None = None,
    ) -> Notification:
        """Store a notification for ``user_id`` and try to deliver it live."""

        if not self._users.exists(user_id):
            raise UnknownUserError(user_id)

        self._retention.enforce_before_create(user_id)

        try:
            saved = self._notifications.create(
                Notification(
                    id=None,
                    user_id=user_id,
                    title=title,
                    message=message,
                    type=notification_type,
                    is_read=False,
                    related_team_id=related_team_id,
                    related_activity_id=related_activity_id,
                )
            )
        except Exception:
            # Leave the shared session usable for the caller's next write.
            self._notifications.rollback()
            raise
        logger.info("Created notification '%s' for user %s", title, user_id)

        self._deliver(saved)
        return saved

    def create_bulk(
        self,
        user_ids: Iterable[int],
        title: str,
        message: str,
        notification_type: str,
        related_team_id: int | None = None,
        related_activity_id: int | None = None,
    ) -> list[Notification]:
        """Call :meth:`create` for each user; a failing user does not stop the rest."""

        created: list[Notification] = []
        for user_id in user_ids:
            try:
                created.append(
                    self.create(
                        user_id,
                        title,
                        message,
                        notification_type,
                        related_team_id,
                        related_activity_id,
                    )
                )
            except Exception:
                logger.exception("Failed to create notification for user %s", user_id)
        return created

    def _deliver(self, notification: Notification) -> None:
        if self._publisher is None:
            return
        try:
            self._publisher.publish(notification)
        except Exception:
            logger.exception(
                "Failed to send real-time notification to user %s", notification.user_id
            )


__all__ = ["NotificationDispatcher"]
