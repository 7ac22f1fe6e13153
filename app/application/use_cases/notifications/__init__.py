"""Public helpers for creating, delivering and maintaining notifications."""

from .dispatcher import NotificationDispatcher
from .events import (
    notify_activity_created,
    notify_activity_status_changed,
    notify_activity_updated,
    notify_remark_added,
    notify_remark_updated,
    notify_user_added_to_team,
    notify_user_removed_from_team,
    purge_activity_notifications,
    purge_team_notifications,
)
from .maintenance import (
    MaintenanceScheduler,
    purge_old_notifications,
    sweep_all_user_notifications,
    sweep_user_notifications,
)
from .retention import RetentionEnforcer, SweepSummary
from .user_notifications import (
    delete_notification_for_user,
    get_notification_for_user,
    mark_all_notifications_read,
    mark_notification_read,
)

__all__ = [
    "NotificationDispatcher",
    "RetentionEnforcer",
    "SweepSummary",
    "MaintenanceScheduler",
    "sweep_user_notifications",
    "sweep_all_user_notifications",
    "purge_old_notifications",
    "notify_activity_created",
    "notify_activity_updated",
    "notify_activity_status_changed",
    "notify_user_added_to_team",
    "notify_user_removed_from_team",
    "notify_remark_added",
    "notify_remark_updated",
    "purge_team_notifications",
    "purge_activity_notifications",
    "get_notification_for_user",
    "mark_notification_read",
    "mark_all_notifications_read",
    "delete_notification_for_user",
]
