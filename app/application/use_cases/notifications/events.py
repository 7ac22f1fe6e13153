"""Notifications for task-board events, plus the cascade purge hooks."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from sqlalchemy.orm import Session

from app.domain.entities import Activity, Notification, Team, User
from app.infrastructure.repositories import NotificationRepository

from .dispatcher import NotificationDispatcher

logger = logging.getLogger(__name__)

ACTIVITY_ASSIGNED = "ACTIVITY_ASSIGNED"
ACTIVITY_UPDATED = "ACTIVITY_UPDATED"
ACTIVITY_STATUS_CHANGED = "ACTIVITY_STATUS_CHANGED"
ACTIVITY_REMARK_ADDED = "ACTIVITY_REMARK_ADDED"
ACTIVITY_REMARK_UPDATED = "ACTIVITY_REMARK_UPDATED"
TEAM_MEMBER_ADDED = "TEAM_MEMBER_ADDED"
TEAM_MEMBER_REMOVED = "TEAM_MEMBER_REMOVED"
TEST_NOTIFICATION = "TEST"

_REMARK_EXCERPT_LENGTH = 100


def _recipients_excluding(user_ids: Iterable[int], actor_id: int | None) -> list[int]:
    """Return ``user_ids`` without the actor and without duplicates."""

    unique: list[int] = []
    for user_id in user_ids:
        if user_id is None or user_id == actor_id or user_id in unique:
            continue
        unique.append(user_id)
    return unique


def _remark_excerpt(text: str) -> str:
    if len(text) > _REMARK_EXCERPT_LENGTH:
        return text[:_REMARK_EXCERPT_LENGTH] + "..."
    return text


def notify_activity_created(
    dispatcher: NotificationDispatcher, *, activity: Activity, creator: User
) -> list[Notification]:
    """Tell every assignee, except the creator, about the new activity."""

    recipients = _recipients_excluding(activity.assigned_member_ids(), creator.id)
    if not recipients:
        logger.debug("Activity %s has no assignees to notify", activity.id)
        return []
    return dispatcher.create_bulk(
        recipients,
        "New Activity Assigned",
        f"You have been assigned to activity: {activity.name}",
        ACTIVITY_ASSIGNED,
        related_activity_id=activity.id,
    )


def notify_activity_updated(
    dispatcher: NotificationDispatcher,
    *,
    activity: Activity,
    updater: User,
    update_details: str = "",
) -> list[Notification]:
    recipients = _recipients_excluding(activity.assigned_member_ids(), updater.id)
    message = f"Activity '{activity.name}' has been updated."
    if update_details:
        message = f"{message} {update_details}"
    return dispatcher.create_bulk(
        recipients,
        "Activity Updated",
        message,
        ACTIVITY_UPDATED,
        related_activity_id=activity.id,
    )


def notify_activity_status_changed(
    dispatcher: NotificationDispatcher, *, activity: Activity, updater: User
) -> list[Notification]:
    recipients = _recipients_excluding(activity.assigned_member_ids(), updater.id)
    return dispatcher.create_bulk(
        recipients,
        "Activity Status Changed",
        f"Activity '{activity.name}' status changed to: {activity.status}",
        ACTIVITY_STATUS_CHANGED,
        related_activity_id=activity.id,
    )


def notify_user_added_to_team(
    dispatcher: NotificationDispatcher, *, team: Team, added_user: User, added_by: User
) -> Notification | None:
    """Tell ``added_user`` they joined ``team``; nothing when they added themselves."""

    if added_user.id == added_by.id:
        return None
    return dispatcher.create(
        added_user.id,
        "Added to Team",
        f"You have been added to team: {team.name}",
        TEAM_MEMBER_ADDED,
        related_team_id=team.id,
    )


def notify_user_removed_from_team(
    dispatcher: NotificationDispatcher, *, team: Team, removed_user: User, removed_by: User
) -> Notification | None:
    if removed_user.id == removed_by.id:
        return None
    return dispatcher.create(
        removed_user.id,
        "Removed from Team",
        f"You have been removed from team: {team.name}",
        TEAM_MEMBER_REMOVED,
        related_team_id=team.id,
    )


def notify_remark_added(
    dispatcher: NotificationDispatcher, *, activity: Activity, author: User, remark_text: str
) -> list[Notification]:
    """Notify assignees and the activity creator about a new remark."""

    return _notify_remark(
        dispatcher,
        activity=activity,
        author=author,
        title="New Remark Added",
        member_message=(
            f"{author.name} added a remark to activity '{activity.name}': "
            f"{_remark_excerpt(remark_text)}"
        ),
        creator_message=(
            f"{author.name} added a remark to your activity '{activity.name}': "
            f"{_remark_excerpt(remark_text)}"
        ),
        notification_type=ACTIVITY_REMARK_ADDED,
    )


def notify_remark_updated(
    dispatcher: NotificationDispatcher, *, activity: Activity, author: User, remark_text: str
) -> list[Notification]:
    return _notify_remark(
        dispatcher,
        activity=activity,
        author=author,
        title="Remark Updated",
        member_message=(
            f"{author.name} updated a remark on activity '{activity.name}': "
            f"{_remark_excerpt(remark_text)}"
        ),
        creator_message=(
            f"{author.name} updated a remark on your activity '{activity.name}': "
            f"{_remark_excerpt(remark_text)}"
        ),
        notification_type=ACTIVITY_REMARK_UPDATED,
    )


def _notify_remark(
    dispatcher: NotificationDispatcher,
    *,
    activity: Activity,
    author: User,
    title: str,
    member_message: str,
    creator_message: str,
    notification_type: str,
) -> list[Notification]:
    assignees = activity.assigned_member_ids()
    created = dispatcher.create_bulk(
        _recipients_excluding(assignees, author.id),
        title,
        member_message,
        notification_type,
        related_activity_id=activity.id,
    )

    # The creator gets the personalised wording unless an assignee copy already reached them.
    creator_id = activity.created_by
    if creator_id is not None and creator_id != author.id and creator_id not in assignees:
        created.extend(
            dispatcher.create_bulk(
                [creator_id],
                title,
                creator_message,
                notification_type,
                related_activity_id=activity.id,
            )
        )
    return created


def purge_team_notifications(session: Session, team_id: int) -> int:
    """Delete notifications referencing ``team_id``; call before deleting the team."""

    deleted = NotificationRepository(session).delete_by_related_team(team_id)
    logger.info("Deleted %s notifications related to team %s", deleted, team_id)
    return deleted


def purge_activity_notifications(session: Session, activity_id: int) -> int:
    """Delete notifications referencing ``activity_id``; call before deleting the activity."""

    deleted = NotificationRepository(session).delete_by_related_activity(activity_id)
    logger.info("Deleted %s notifications related to activity %s", deleted, activity_id)
    return deleted


__all__ = [
    "ACTIVITY_ASSIGNED",
    "ACTIVITY_UPDATED",
    "ACTIVITY_STATUS_CHANGED",
    "ACTIVITY_REMARK_ADDED",
    "ACTIVITY_REMARK_UPDATED",
    "TEAM_MEMBER_ADDED",
    "TEAM_MEMBER_REMOVED",
    "TEST_NOTIFICATION",
    "notify_activity_created",
    "notify_activity_updated",
    "notify_activity_status_changed",
    "notify_user_added_to_team",
    "notify_user_removed_from_team",
    "notify_remark_added",
    "notify_remark_updated",
    "purge_team_notifications",
    "purge_activity_notifications",
]
