"""Keep the number of stored notifications per user under a soft cap."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from app.domain.exceptions import MaintenanceRunFailure
from app.infrastructure.repositories import NotificationRepository

logger = logging.getLogger(__name__)

DEFAULT_MAX_PER_USER = 50


@dataclass
class SweepSummary:
    """Outcome of a sweep across every user holding notifications."""

    users: int = 0
    deleted: int = 0
    failures: list[MaintenanceRunFailure] = field(default_factory=list)


class RetentionEnforcer:
    """Delete the oldest notifications of a user beyond ``max_per_user``.

    Counting, deleting and the caller's subsequent insert are separate
    statements. Two concurrent creates for the same user can therefore both
    skip the delete and overshoot the cap by one or two rows; the periodic
    :meth:`sweep_all_users` brings the count back under the cap.
    """

    def __init__(
        self,
        repository: NotificationRepository,
        *,
        max_per_user: int = DEFAULT_MAX_PER_USER,
    ) -> None:
        if max_per_user < 1:
            raise ValueError("max_per_user must be a positive integer")
        self._repository = repository
        self.max_per_user = max_per_user

    def enforce_before_create(self, user_id: int) -> int:
        """Make room for exactly one more notification. Never raises."""

        try:
            current = self._repository.count_for_user(user_id)
            if current < self.max_per_user:
                return 0
            excess = current - self.max_per_user + 1
            deleted = self._repository.delete_oldest_for_user(user_id, excess)
        except Exception:
            logger.exception("Error enforcing notification limit for user %s", user_id)
            self._repository.rollback()
            return 0

        logger.info(
            "User %s had %s notifications; deleted %s oldest",
            user_id,
            current,
            len(deleted),
        )
        return len(deleted)

    def sweep(self, user_id: int) -> int:
        """Trim ``user_id`` down to the cap and return how many rows were removed."""

        current = self._repository.count_for_user(user_id)
        if current <= self.max_per_user:
            return 0
        deleted = self._repository.delete_oldest_for_user(
            user_id, current - self.max_per_user
        )
        logger.debug("Swept %s notifications for user %s", len(deleted), user_id)
        return len(deleted)

    def sweep_all_users(self) -> SweepSummary:
        """Sweep every user with notifications; one failure never stops the rest."""

        summary = SweepSummary()
        try:
            user_ids = self._repository.list_user_ids_with_notifications()
        except Exception as exc:
            self._repository.rollback()
            failure = MaintenanceRunFailure("retention sweep", exc)
            logger.exception("%s", failure)
            summary.failures.append(failure)
            return summary

        logger.info("Cleaning up notifications for %s users", len(user_ids))
        for user_id in sorted(user_ids):
            summary.users += 1
            try:
                summary.deleted += self.sweep(user_id)
            except Exception as exc:
                self._repository.rollback()
                failure = MaintenanceRunFailure("retention sweep", exc, user_id=user_id)
                logger.exception("%s", failure)
                summary.failures.append(failure)

        logger.info("Total notifications deleted during cleanup: %s", summary.deleted)
        return summary


__all__ = ["RetentionEnforcer", "SweepSummary", "DEFAULT_MAX_PER_USER"]
