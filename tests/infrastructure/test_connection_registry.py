"""Tests for the live connection registry and the notification publisher."""

from __future__ import annotations

import asyncio
import threading
from datetime import datetime, timezone

import anyio

from app.domain.entities import Notification
from app.infrastructure.notifications import (
    ConnectionRegistry,
    NotificationPublisher,
    serialize_notification,
)


class RecordingConnection:
    def __init__(self) -> None:
        self.sent: list[dict] = []

    async def send_json(self, data, mode: str = "text") -> None:
        self.sent.append(data)


class BrokenConnection:
    async def send_json(self, data, mode: str = "text") -> None:
        raise ConnectionResetError("peer went away")


class StalledConnection:
    async def send_json(self, data, mode: str = "text") -> None:
        await anyio.sleep(10)


def _notification(user_id: int = 1) -> Notification:
    stamp = datetime(2024, 5, 1, 9, 30, tzinfo=timezone.utc)
    return Notification(
        id=7,
        user_id=user_id,
        title="Activity Assigned",
        message="You have been assigned",
        type="ACTIVITY_ASSIGNED",
        related_team_id=2,
        related_activity_id=3,
        created_at=stamp,
        updated_at=stamp,
    )


def test_register_replaces_previous_connection():
    registry = ConnectionRegistry()
    first, second = RecordingConnection(), RecordingConnection()

    registry.register(1, first)
    registry.register(1, second)

    assert registry.get(1) is second
    assert registry.connected_count() == 1


def test_stale_unregister_keeps_the_newer_connection():
    registry = ConnectionRegistry()
    first, second = RecordingConnection(), RecordingConnection()
    registry.register(1, first)
    registry.register(1, second)

    assert registry.unregister(1, first) is False
    assert registry.is_connected(1)
    assert registry.unregister(1, second) is True
    assert not registry.is_connected(1)


def test_send_without_connection_returns_false():
    registry = ConnectionRegistry()

    assert anyio.run(registry.send, 5, {"type": "notification"}) is False


def test_send_writes_to_the_connection():
    registry = ConnectionRegistry()
    connection = RecordingConnection()
    registry.register(1, connection)

    assert anyio.run(registry.send, 1, {"type": "notification"}) is True
    assert connection.sent == [{"type": "notification"}]


def test_failed_write_drops_the_connection():
    registry = ConnectionRegistry()
    registry.register(1, BrokenConnection())

    assert anyio.run(registry.send, 1, {"type": "notification"}) is False
    assert not registry.is_connected(1)


def test_slow_write_times_out_and_drops_the_connection():
    registry = ConnectionRegistry(send_timeout=0.05)
    registry.register(1, StalledConnection())

    assert anyio.run(registry.send, 1, {"type": "notification"}) is False
    assert not registry.is_connected(1)


def test_serialize_notification_uses_camel_case_keys():
    payload = serialize_notification(_notification())

    assert payload == {
        "id": 7,
        "userId": 1,
        "title": "Activity Assigned",
        "message": "You have been assigned",
        "type": "ACTIVITY_ASSIGNED",
        "isRead": False,
        "relatedTeamId": 2,
        "relatedActivityId": 3,
        "createdAt": "2024-05-01T09:30:00+00:00",
        "updatedAt": "2024-05-01T09:30:00+00:00",
    }


def test_publish_from_the_event_loop_schedules_delivery():
    registry = ConnectionRegistry()
    connection = RecordingConnection()
    registry.register(1, connection)
    publisher = NotificationPublisher(registry)

    async def scenario() -> None:
        publisher.publish(_notification())
        for _ in range(5):
            await asyncio.sleep(0)

    asyncio.run(scenario())

    assert connection.sent == [
        {"type": "notification", "data": serialize_notification(_notification())}
    ]


def test_publish_from_a_worker_thread_waits_for_delivery():
    registry = ConnectionRegistry()
    connection = RecordingConnection()
    registry.register(1, connection)
    publisher = NotificationPublisher(registry)

    async def scenario() -> None:
        await anyio.to_thread.run_sync(publisher.publish, _notification())

    anyio.run(scenario)

    assert len(connection.sent) == 1
    assert connection.sent[0]["data"]["title"] == "Activity Assigned"


def test_publish_without_a_reachable_loop_is_skipped():
    registry = ConnectionRegistry()
    connection = RecordingConnection()
    registry.register(1, connection)

    NotificationPublisher(registry).publish(_notification())

    assert connection.sent == []
    assert registry.is_connected(1)


def test_publish_to_disconnected_user_is_a_no_op():
    registry = ConnectionRegistry()

    NotificationPublisher(registry).publish(_notification(user_id=9))

    assert registry.connected_count() == 0


def test_concurrent_replacements_keep_the_newest_connections():
    registry = ConnectionRegistry()
    workers = 16
    barrier = threading.Barrier(workers)
    outcomes: dict[int, tuple[bool, RecordingConnection]] = {}

    def replace_then_drop_stale(user_id: int) -> None:
        stale, newest = RecordingConnection(), RecordingConnection()
        barrier.wait()
        registry.register(user_id, stale)
        registry.register(user_id, newest)
        outcomes[user_id] = (registry.unregister(user_id, stale), newest)

    threads = [
        threading.Thread(target=replace_then_drop_stale, args=(user_id,))
        for user_id in range(workers)
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(outcomes) == workers
    assert registry.connected_count() == workers
    for user_id, (stale_removed, newest) in outcomes.items():
        assert stale_removed is False
        assert registry.is_connected(user_id)
        assert registry.get(user_id) is newest


def test_concurrent_connections_for_one_user_leave_no_dangling_entry():
    registry = ConnectionRegistry()
    workers = 16
    barrier = threading.Barrier(workers)
    removed: list[bool] = []
    removed_lock = threading.Lock()

    def connect_then_disconnect() -> None:
        connection = RecordingConnection()
        barrier.wait()
        registry.register(99, connection)
        result = registry.unregister(99, connection)
        with removed_lock:
            removed.append(result)

    threads = [threading.Thread(target=connect_then_disconnect) for _ in range(workers)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(removed) == workers
    assert any(removed)
    assert not registry.is_connected(99)
    assert registry.connected_count() == 0


def test_register_records_the_running_loop_only_while_it_runs():
    registry = ConnectionRegistry()
    registry.register(1, RecordingConnection())
    assert registry.loop is None

    async def scenario() -> bool:
        registry.register(2, RecordingConnection())
        return registry.loop is asyncio.get_running_loop()

    assert asyncio.run(scenario()) is True
    assert registry.loop is None
