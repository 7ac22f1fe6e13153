"""Retention sweeps and age purges, on demand or on a background schedule."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import timedelta, tzinfo

from apscheduler.schedulers.background import BackgroundScheduler
from sqlalchemy.orm import Session

from app.config import Settings
from app.domain.exceptions import MaintenanceRunFailure
from app.infrastructure.repositories import NotificationRepository
from app.utils import get_app_timezone, now_in_app_timezone

from .retention import DEFAULT_MAX_PER_USER, RetentionEnforcer, SweepSummary

logger = logging.getLogger(__name__)

DEFAULT_RETENTION_DAYS = 30

SWEEP_JOB_ID = "notifications.retention_sweep"
PURGE_JOB_ID = "notifications.age_purge"


def sweep_user_notifications(
    session: Session, user_id: int, *, max_per_user: int = DEFAULT_MAX_PER_USER
) -> int:
    """Trim a single user's notifications to the cap."""

    enforcer = RetentionEnforcer(NotificationRepository(session), max_per_user=max_per_user)
    return enforcer.sweep(user_id)


def sweep_all_user_notifications(
    session: Session, *, max_per_user: int = DEFAULT_MAX_PER_USER
) -> SweepSummary:
    enforcer = RetentionEnforcer(NotificationRepository(session), max_per_user=max_per_user)
    return enforcer.sweep_all_users()


def purge_old_notifications(session: Session, days_old: int) -> int:
    """Delete notifications created strictly before ``now - days_old`` days."""

    if days_old < 0:
        raise ValueError("days_old must not be negative")
    cutoff = now_in_app_timezone() - timedelta(days=days_old)
    return NotificationRepository(session).delete_older_than(cutoff)


class MaintenanceScheduler:
    """Own the two background jobs that keep the notification table bounded.

    * an interval job sweeping every user back under the cap;
    * a daily cron job purging notifications older than ``retention_days``.

    Every run opens its own session and never lets an error escape, so a
    failed run only costs that run.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        *,
        max_per_user: int = DEFAULT_MAX_PER_USER,
        retention_days: int = DEFAULT_RETENTION_DAYS,
        sweep_interval_minutes: int = 60,
        purge_hour: int = 2,
        enabled: bool = True,
        timezone: tzinfo | None = None,
    ) -> None:
        self._session_factory = session_factory
        self.max_per_user = max_per_user
        self.retention_days = retention_days
        self.sweep_interval_minutes = sweep_interval_minutes
        self.purge_hour = purge_hour
        self.enabled = enabled
        self._timezone = timezone
        self._scheduler: BackgroundScheduler | None = None

    @classmethod
    def from_settings(
        cls, session_factory: Callable[[], Session], settings: Settings
    ) -> "MaintenanceScheduler":
        return cls(
            session_factory,
            max_per_user=settings.notification_max_per_user,
            retention_days=settings.notification_retention_days,
            sweep_interval_minutes=settings.notification_sweep_interval_minutes,
            purge_hour=settings.notification_purge_hour,
            enabled=settings.notification_cleanup_enabled,
        )

    @property
    def running(self) -> bool:
        return self._scheduler is not None and self._scheduler.running

    @property
    def job_ids(self) -> list[str]:
        if self._scheduler is None:
            return []
        return sorted(job.id for job in self._scheduler.get_jobs())

    def start(self) -> bool:
        """Start the background jobs; returns ``False`` when disabled or already running."""

        if not self.enabled:
            logger.info("Notification maintenance disabled via settings")
            return False
        if self._scheduler is not None:
            logger.info("Notification maintenance already running, skipping initialization")
            return False

        scheduler = BackgroundScheduler(timezone=self._timezone or get_app_timezone())
        scheduler.add_job(
            self.run_retention_sweep,
            trigger="interval",
            minutes=self.sweep_interval_minutes,
            id=SWEEP_JOB_ID,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        scheduler.add_job(
            self.run_age_purge,
            trigger="cron",
            hour=self.purge_hour,
            minute=0,
            id=PURGE_JOB_ID,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        scheduler.start()
        self._scheduler = scheduler

        logger.info(
            "Notification maintenance started: retention sweep every %s minutes, "
            "age purge daily at %02d:00",
            self.sweep_interval_minutes,
            self.purge_hour,
        )
        return True

    def shutdown(self) -> None:
        if self._scheduler is None:
            return
        self._scheduler.shutdown(wait=False)
        self._scheduler = None
        logger.info("Notification maintenance stopped")

    def run_retention_sweep(self) -> SweepSummary:
        """Sweep every user once. Errors are logged, never raised."""

        logger.info("Starting scheduled notification cleanup")
        session: Session | None = None
        try:
            session = self._session_factory()
            summary = sweep_all_user_notifications(session, max_per_user=self.max_per_user)
        except Exception as exc:
            failure = MaintenanceRunFailure("scheduled retention sweep", exc)
            logger.exception("%s", failure)
            return SweepSummary(failures=[failure])
        finally:
            if session is not None:
                session.close()

        logger.info(
            "Scheduled notification cleanup completed: %s users, %s deleted, %s failures",
            summary.users,
            summary.deleted,
            len(summary.failures),
        )
        return summary

    def run_age_purge(self) -> int:
        """Purge notifications older than ``retention_days``; 0 when the run fails."""

        logger.info("Starting scheduled old notification cleanup")
        session: Session | None = None
        try:
            session = self._session_factory()
            deleted = purge_old_notifications(session, self.retention_days)
        except Exception as exc:
            logger.exception("%s", MaintenanceRunFailure("scheduled age purge", exc))
            return 0
        finally:
            if session is not None:
                session.close()

        logger.info(
            "Scheduled old notification cleanup completed. Deleted %s notifications "
            "older than %s days",
            deleted,
            self.retention_days,
        )
        return deleted


__all__ = [
    "MaintenanceScheduler",
    "SWEEP_JOB_ID",
    "PURGE_JOB_ID",
    "DEFAULT_RETENTION_DAYS",
    "sweep_user_notifications",
    "sweep_all_user_notifications",
    "purge_old_notifications",
]
