"""Push persisted notifications to the addressee's live connection."""

from __future__ import annotations

import asyncio
import concurrent.futures
import logging
from datetime import datetime
from typing import Any

from anyio import from_thread

from app.domain.entities import Notification

from .manager import ConnectionRegistry

logger = logging.getLogger(__name__)


class NotificationPublisher:
    """Serialize notifications and hand them to the :class:`ConnectionRegistry`.

    Called from three kinds of context:

    * an AnyIO worker thread (sync FastAPI endpoints): the write runs on the
      event loop and this thread waits for it, bounded by the registry's
      write deadline;
    * a coroutine on the event loop: the write is scheduled as a task;
    * any other thread (scheduler, foreign pools): the write is submitted to
      the loop the connections were registered on; when no such loop is
      running (scripts) live delivery is skipped.
    """

    def __init__(self, registry: ConnectionRegistry) -> None:
        self._registry = registry
        self._pending: set[asyncio.Task[bool]] = set()

    @property
    def registry(self) -> ConnectionRegistry:
        return self._registry

    def publish(self, notification: Notification) -> None:
        """Deliver ``notification`` to its user if they are connected."""

        user_id = notification.user_id
        if not self._registry.is_connected(user_id):
            logger.debug("User %s has no live connection; notification stored only", user_id)
            return

        message = {"type": "notification", "data": serialize_notification(notification)}
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._send_from_thread(user_id, message)
        else:
            task = loop.create_task(self._registry.send(user_id, message))
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)

    def _send_from_thread(self, user_id: int, message: dict[str, Any]) -> None:
        try:
            delivered = from_thread.run(self._registry.send, user_id, message)
        except RuntimeError:
            delivered = self._send_via_registry_loop(user_id, message)
        if delivered:
            logger.debug("Live notification delivered to user %s", user_id)

    def _send_via_registry_loop(self, user_id: int, message: dict[str, Any]) -> bool:
        """Deliver from a thread AnyIO does not know about (scheduler, foreign pools)."""

        loop = self._registry.loop
        if loop is None:
            logger.debug(
                "No event loop reachable from this thread; live delivery to user %s skipped",
                user_id,
            )
            return False

        future = asyncio.run_coroutine_threadsafe(self._registry.send(user_id, message), loop)
        try:
            # The registry applies its own write deadline; this only guards a stalled loop.
            return future.result(timeout=self._registry.send_timeout + 1)
        except concurrent.futures.TimeoutError:
            future.cancel()
            logger.warning("Live delivery to user %s timed out waiting for the event loop", user_id)
            return False


def serialize_notification(notification: Notification) -> dict[str, Any]:
    """Return the websocket payload representation for ``notification``."""

    return {
        "id": notification.id,
        "userId": notification.user_id,
        "title": notification.title,
        "message": notification.message,
        "type": notification.type,
        "isRead": notification.is_read,
        "relatedTeamId": notification.related_team_id,
        "relatedActivityId": notification.related_activity_id,
        "createdAt": _iso_or_none(notification.created_at),
        "updatedAt": _iso_or_none(notification.updated_at),
    }


def _iso_or_none(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


__all__ = ["NotificationPublisher", "serialize_notification"]
