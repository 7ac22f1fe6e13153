"""Registry of the live websocket connection held by each user."""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import Any, Protocol

import anyio

from app.domain.exceptions import DeliveryFailure

logger = logging.getLogger(__name__)

DEFAULT_SEND_TIMEOUT_SECONDS = 5.0


class LiveConnection(Protocol):
    """The part of a Starlette ``WebSocket`` the registry relies on."""

    async def send_json(self, data: Any, mode: str = "text") -> None: ...


class ConnectionRegistry:
    """Map each user id to at most one open connection.

    A new connection for a user replaces the previous entry. Lifecycle
    handlers run on the event loop while dispatchers look entries up from
    worker threads, so every access to the map goes through one lock.
    """

    def __init__(self, *, send_timeout: float = DEFAULT_SEND_TIMEOUT_SECONDS) -> None:
        self._connections: dict[int, LiveConnection] = {}
        self._lock = threading.Lock()
        self._send_timeout = send_timeout
        self._loop: asyncio.AbstractEventLoop | None = None

    @property
    def send_timeout(self) -> float:
        return self._send_timeout

    @property
    def loop(self) -> asyncio.AbstractEventLoop | None:
        """Event loop the connections were registered on, if still running."""

        loop = self._loop
        if loop is None or loop.is_closed() or not loop.is_running():
            return None
        return loop

    def register(self, user_id: int, connection: LiveConnection) -> None:
        """Record ``connection`` as the live channel of ``user_id``."""

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None

        with self._lock:
            if loop is not None:
                self._loop = loop
            previous = self._connections.get(user_id)
            self._connections[user_id] = connection
        if previous is not None and previous is not connection:
            logger.info("Live connection for user %s replaced by a newer one", user_id)
        logger.info("User %s connected to live notifications", user_id)

    def unregister(self, user_id: int, connection: LiveConnection) -> bool:
        """Remove the entry for ``user_id`` only if it still points at ``connection``."""

        with self._lock:
            if self._connections.get(user_id) is not connection:
                return False
            del self._connections[user_id]
        logger.info("User %s disconnected from live notifications", user_id)
        return True

    def get(self, user_id: int) -> LiveConnection | None:
        with self._lock:
            return self._connections.get(user_id)

    def is_connected(self, user_id: int) -> bool:
        return self.get(user_id) is not None

    def connected_count(self) -> int:
        with self._lock:
            return len(self._connections)

    async def send(self, user_id: int, message: dict[str, Any]) -> bool:
        """Write ``message`` to the user's connection; ``True`` when delivered.

        A failed or timed-out write drops the connection from the registry.
        Nothing is raised to the caller.
        """

        connection = self.get(user_id)
        if connection is None:
            return False

        try:
            with anyio.fail_after(self._send_timeout):
                await connection.send_json(message)
        except Exception as exc:
            logger.warning("%s", DeliveryFailure(user_id, exc))
            self.unregister(user_id, connection)
            return False
        return True


__all__ = ["ConnectionRegistry", "LiveConnection", "DEFAULT_SEND_TIMEOUT_SECONDS"]
