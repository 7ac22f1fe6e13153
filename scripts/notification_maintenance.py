"""Run the notification retention sweep or the age purge once from the command line."""

from __future__ import annotations

import argparse
import logging

from sqlalchemy.exc import SQLAlchemyError

from app.application.use_cases.notifications import (
    purge_old_notifications,
    sweep_all_user_notifications,
    sweep_user_notifications,
)
from app.config import get_settings
from app.infrastructure.database import SessionLocal, initialize_database


def parse_args() -> argparse.Namespace:
    """Parse command line arguments for the maintenance run."""

    settings = get_settings()
    parser = argparse.ArgumentParser(
        description="Trim or purge stored notifications outside the scheduled jobs.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    sweep = subparsers.add_parser(
        "sweep", help="Delete the oldest notifications beyond the per-user cap."
    )
    sweep.add_argument(
        "--user-id",
        type=int,
        default=None,
        help="Only sweep this user (default: every user with notifications)",
    )
    sweep.add_argument(
        "--max-per-user",
        type=int,
        default=settings.notification_max_per_user,
        help=f"Cap to enforce (default: {settings.notification_max_per_user})",
    )

    purge = subparsers.add_parser(
        "purge", help="Delete notifications older than a number of days."
    )
    purge.add_argument(
        "--days",
        type=int,
        default=settings.notification_retention_days,
        help=f"Age threshold in days (default: {settings.notification_retention_days})",
    )
    return parser.parse_args()


def main() -> None:
    """Execute the requested maintenance command."""

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    args = parse_args()

    initialize_database()

    session = SessionLocal()
    try:
        if args.command == "sweep" and args.user_id is not None:
            deleted = sweep_user_notifications(
                session, args.user_id, max_per_user=args.max_per_user
            )
            print(f"Deleted {deleted} notifications for user {args.user_id}.")
        elif args.command == "sweep":
            summary = sweep_all_user_notifications(session, max_per_user=args.max_per_user)
            print(
                f"Swept {summary.users} users, deleted {summary.deleted} notifications, "
                f"{len(summary.failures)} failures."
            )
        else:
            deleted = purge_old_notifications(session, args.days)
            print(f"Deleted {deleted} notifications older than {args.days} days.")
    except (SQLAlchemyError, ValueError) as exc:
        raise SystemExit(f"Maintenance run failed: {exc}") from exc
    finally:
        session.close()


if __name__ == "__main__":
    main()
