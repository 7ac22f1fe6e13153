"""Persistence helpers for notification entities."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

from sqlalchemy.orm import Query, Session

from app.domain.entities import Notification
from app.domain.exceptions import NotificationNotFoundError, UnknownUserError
from app.infrastructure.models import NotificationModel, UserModel
from app.utils import (
    ensure_app_naive_datetime,
    ensure_app_timezone,
    now_in_app_naive_datetime,
)


class NotificationRepository:
    """Store and query :class:`Notification` records.

    Every list is returned newest first, ordered by ``created_at`` and then by
    ``id`` so records sharing a timestamp keep a stable order. "Oldest" always
    means the reverse of that ordering.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    # -- queries ---------------------------------------------------------

    def list_for_user(self, user_id: int, *, limit: int | None = None) -> Sequence[Notification]:
        return self._list(self._for_user(user_id), limit=limit)

    def list_unread_for_user(
        self, user_id: int, *, limit: int | None = None
    ) -> Sequence[Notification]:
        query = self._for_user(user_id).filter(NotificationModel.is_read.is_(False))
        return self._list(query, limit=limit)

    def list_for_user_by_type(self, user_id: int, notification_type: str) -> Sequence[Notification]:
        query = self._for_user(user_id).filter(NotificationModel.type == notification_type)
        return self._list(query)

    def list_for_user_by_team(self, user_id: int, team_id: int) -> Sequence[Notification]:
        query = self._for_user(user_id).filter(NotificationModel.related_team_id == team_id)
        return self._list(query)

    def list_for_user_by_activity(
        self, user_id: int, activity_id: int
    ) -> Sequence[Notification]:
        query = self._for_user(user_id).filter(
            NotificationModel.related_activity_id == activity_id
        )
        return self._list(query)

    def count_for_user(self, user_id: int) -> int:
        return self._for_user(user_id).count()

    def count_unread_for_user(self, user_id: int) -> int:
        return self._for_user(user_id).filter(NotificationModel.is_read.is_(False)).count()

    def find(self, notification_id: int) -> Notification | None:
        model = self.session.get(NotificationModel, notification_id)
        return self._to_entity(model) if model else None

    def get(self, notification_id: int) -> Notification:
        notification = self.find(notification_id)
        if notification is None:
            raise NotificationNotFoundError(notification_id)
        return notification

    def list_user_ids_with_notifications(self) -> set[int]:
        rows = self.session.query(NotificationModel.user_id).distinct().all()
        return {user_id for (user_id,) in rows}

    # -- writes ----------------------------------------------------------

    def create(self, notification: Notification) -> Notification:
        if self.session.get(UserModel, notification.user_id) is None:
            raise UnknownUserError(notification.user_id)

        now = now_in_app_naive_datetime()
        model = NotificationModel(
            user_id=notification.user_id,
            title=notification.title,
            message=notification.message,
            type=notification.type,
            is_read=bool(notification.is_read),
            related_team_id=notification.related_team_id,
            related_activity_id=notification.related_activity_id,
            created_at=ensure_app_naive_datetime(notification.created_at) or now,
            updated_at=ensure_app_naive_datetime(notification.updated_at) or now,
        )
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def mark_as_read(self, notification_id: int) -> Notification:
        model = self.session.get(NotificationModel, notification_id)
        if model is None:
            raise NotificationNotFoundError(notification_id)
        if not model.is_read:
            model.is_read = True
            model.updated_at = now_in_app_naive_datetime()
            self.session.add(model)
            self.session.commit()
            self.session.refresh(model)
        return self._to_entity(model)

    def mark_all_as_read_for_user(self, user_id: int) -> int:
        updated = (
            self._for_user(user_id)
            .filter(NotificationModel.is_read.is_(False))
            .update(
                {
                    NotificationModel.is_read: True,
                    NotificationModel.updated_at: now_in_app_naive_datetime(),
                },
                synchronize_session=False,
            )
        )
        self.session.commit()
        return updated

    def delete(self, notification_id: int) -> bool:
        model = self.session.get(NotificationModel, notification_id)
        if model is None:
            return False
        self.session.delete(model)
        self.session.commit()
        return True

    def delete_oldest_for_user(self, user_id: int, count: int) -> list[int]:
        if count <= 0:
            return []

        rows = (
            self.session.query(NotificationModel.id)
            .filter(NotificationModel.user_id == user_id)
            .order_by(NotificationModel.created_at.asc(), NotificationModel.id.asc())
            .limit(count)
            .all()
        )
        ids = [notification_id for (notification_id,) in rows]
        if not ids:
            return []

        self.session.query(NotificationModel).filter(NotificationModel.id.in_(ids)).delete(
            synchronize_session=False
        )
        self.session.commit()
        return ids

    def delete_by_related_team(self, team_id: int) -> int:
        return self._bulk_delete(
            self.session.query(NotificationModel).filter(
                NotificationModel.related_team_id == team_id
            )
        )

    def delete_by_related_activity(self, activity_id: int) -> int:
        return self._bulk_delete(
            self.session.query(NotificationModel).filter(
                NotificationModel.related_activity_id == activity_id
            )
        )

    def delete_older_than(self, cutoff: datetime) -> int:
        naive_cutoff = ensure_app_naive_datetime(cutoff)
        return self._bulk_delete(
            self.session.query(NotificationModel).filter(
                NotificationModel.created_at < naive_cutoff
            )
        )

    def rollback(self) -> None:
        """Discard a failed unit of work so the session can be reused."""

        self.session.rollback()

    # -- helpers ---------------------------------------------------------

    def _for_user(self, user_id: int) -> Query:
        return self.session.query(NotificationModel).filter(
            NotificationModel.user_id == user_id
        )

    def _list(self, query: Query, *, limit: int | None = None) -> list[Notification]:
        query = query.order_by(
            NotificationModel.created_at.desc(), NotificationModel.id.desc()
        )
        if limit is not None:
            query = query.limit(limit)
        return [self._to_entity(model) for model in query.all()]

    def _bulk_delete(self, query: Query) -> int:
        deleted = query.delete(synchronize_session=False)
        self.session.commit()
        return deleted

    @staticmethod
    def _to_entity(model: NotificationModel) -> Notification:
        return Notification(
            id=model.id,
            user_id=model.user_id,
            title=model.title,
            message=model.message,
            type=model.type,
            is_read=bool(model.is_read),
            related_team_id=model.related_team_id,
            related_activity_id=model.related_activity_id,
            created_at=ensure_app_timezone(model.created_at),
            updated_at=ensure_app_timezone(model.updated_at),
        )


__all__ = ["NotificationRepository"]
