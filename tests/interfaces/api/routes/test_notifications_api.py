"""Integration tests for the notification API and its websocket channel."""

from __future__ import annotations

from datetime import timedelta

import pytest

pytest.importorskip("fastapi")
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from app.domain.entities import ROLE_ADMIN, ROLE_MEMBER, Notification, User
from app.infrastructure.repositories import NotificationRepository, UserRepository
from app.infrastructure.security import create_user_token
from app.utils import now_in_app_timezone


@pytest.fixture()
def client():
    """Return a test client bound to a clean application instance."""

    from app.infrastructure import database, models  # noqa: F401

    database.Base.metadata.drop_all(bind=database.engine, checkfirst=True)
    database.Base.metadata.create_all(bind=database.engine)

    from main import create_app

    app = create_app()
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def db_session():
    from app.infrastructure.database import SessionLocal

    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


def _create_user(session, email: str, *, role: str = ROLE_MEMBER, is_active: bool = True) -> User:
    return UserRepository(session).create(
        User(id=None, name=email.split("@")[0].title(), email=email, role=role, is_active=is_active)
    )


def _headers(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_user_token(user.id, role=user.role)}"}


def _store(session, user: User, title: str, **extra) -> Notification:
    return NotificationRepository(session).create(
        Notification(id=None, user_id=user.id, title=title, message="body", type="info", **extra)
    )


def test_requests_without_token_are_rejected(client: TestClient) -> None:
    assert client.get("/notifications/").status_code == 401
    response = client.get("/notifications/", headers={"Authorization": "Bearer not-a-token"})
    assert response.status_code == 401


def test_inactive_user_is_rejected(client: TestClient, db_session) -> None:
    user = _create_user(db_session, "sleepy@example.com", is_active=False)

    response = client.get("/notifications/", headers=_headers(user))

    assert response.status_code == 400
    assert response.json()["detail"] == "Inactive user"


def test_list_filter_and_count_notifications(client: TestClient, db_session) -> None:
    owner = _create_user(db_session, "owner@example.com")
    other = _create_user(db_session, "other@example.com")
    base = now_in_app_timezone()
    _store(db_session, owner, "first", created_at=base - timedelta(minutes=2), related_team_id=1)
    read = _store(db_session, owner, "second", created_at=base - timedelta(minutes=1))
    _store(db_session, owner, "third", created_at=base, related_activity_id=9)
    _store(db_session, other, "foreign")
    NotificationRepository(db_session).mark_as_read(read.id)

    headers = _headers(owner)
    listed = client.get("/notifications/", headers=headers)
    assert listed.status_code == 200
    assert [item["title"] for item in listed.json()] == ["third", "second", "first"]
    assert listed.json()[0]["user_id"] == owner.id

    unread = client.get("/notifications/unread", headers=headers).json()
    assert [item["title"] for item in unread] == ["third", "first"]

    assert client.get("/notifications/count", headers=headers).json() == {"total": 3, "unread": 2}
    assert [n["title"] for n in client.get("/notifications/team/1", headers=headers).json()] == [
        "first"
    ]
    assert [
        n["title"] for n in client.get("/notifications/activity/9", headers=headers).json()
    ] == ["third"]
    assert len(client.get("/notifications/type/info", headers=headers).json()) == 3


def test_single_notification_access_rules(client: TestClient, db_session) -> None:
    owner = _create_user(db_session, "owner@example.com")
    intruder = _create_user(db_session, "intruder@example.com")
    notification = _store(db_session, owner, "private")

    response = client.get(f"/notifications/{notification.id}", headers=_headers(owner))
    assert response.status_code == 200
    assert response.json()["title"] == "private"

    assert client.get(f"/notifications/{notification.id}", headers=_headers(intruder)).status_code == 403
    assert client.put(
        f"/notifications/{notification.id}/read", headers=_headers(intruder)
    ).status_code == 403
    assert client.delete(f"/notifications/{notification.id}", headers=_headers(intruder)).status_code == 403
    assert client.get("/notifications/999", headers=_headers(owner)).status_code == 404
    assert client.put("/notifications/999/read", headers=_headers(owner)).status_code == 404


def test_mark_read_mark_all_and_delete(client: TestClient, db_session) -> None:
    owner = _create_user(db_session, "owner@example.com")
    first = _store(db_session, owner, "first")
    _store(db_session, owner, "second")
    headers = _headers(owner)

    for _ in range(2):
        response = client.put(f"/notifications/{first.id}/read", headers=headers)
        assert response.status_code == 200
        assert response.json()["notification"]["is_read"] is True

    response = client.put("/notifications/read-all", headers=headers)
    assert response.status_code == 200
    assert client.get("/notifications/count", headers=headers).json() == {"total": 2, "unread": 0}

    response = client.delete(f"/notifications/{first.id}", headers=headers)
    assert response.status_code == 200
    assert response.json() == {"message": "Notification deleted successfully"}
    assert client.delete(f"/notifications/{first.id}", headers=headers).status_code == 404


def test_admin_endpoints_require_admin_role(client: TestClient, db_session) -> None:
    member = _create_user(db_session, "member@example.com")
    headers = _headers(member)

    assert client.get("/notifications/admin/settings", headers=headers).status_code == 403
    assert client.delete("/notifications/admin/cleanup/30", headers=headers).status_code == 403
    response = client.post(
        "/notifications/admin/create",
        json={"user_id": member.id, "title": "Hi"},
        headers=headers,
    )
    assert response.status_code == 403


def test_admin_create_and_cleanup(client: TestClient, db_session) -> None:
    admin = _create_user(db_session, "admin@example.com", role=ROLE_ADMIN)
    member = _create_user(db_session, "member@example.com")
    headers = _headers(admin)

    response = client.post(
        "/notifications/admin/create",
        json={"user_id": member.id, "title": "Maintenance", "message": "Tonight", "type": "warning"},
        headers=headers,
    )
    assert response.status_code == 200
    assert response.json()["notification"]["user_id"] == member.id
    assert response.json()["notification"]["type"] == "warning"

    missing = client.post(
        "/notifications/admin/create", json={"user_id": 999, "title": "Hi"}, headers=headers
    )
    assert missing.status_code == 404

    _store(db_session, member, "ancient", created_at=now_in_app_timezone() - timedelta(days=40))
    purge = client.delete("/notifications/admin/cleanup/30", headers=headers)
    assert purge.status_code == 200
    assert purge.json()["deleted_count"] == 1
    assert client.delete("/notifications/admin/cleanup/-1", headers=headers).status_code == 400

    user_sweep = client.delete(f"/notifications/admin/cleanup/user/{member.id}", headers=headers)
    assert user_sweep.status_code == 200
    assert user_sweep.json()["user_id"] == member.id
    assert user_sweep.json()["deleted_count"] == 0

    all_users = client.delete("/notifications/admin/cleanup/all-users", headers=headers)
    assert all_users.status_code == 200
    assert all_users.json()["users"] == 1
    assert all_users.json()["failures"] == 0

    settings = client.get("/notifications/admin/settings", headers=headers).json()
    assert settings["max_per_user"] == 50
    assert settings["cleanup_enabled"] is False
    assert settings["connected_users"] == 0


def test_websocket_requires_a_token(client: TestClient) -> None:
    with pytest.raises(WebSocketDisconnect) as excinfo:
        with client.websocket_connect("/notifications/ws") as websocket:
            websocket.receive_json()

    assert excinfo.value.code == 1003
    assert excinfo.value.reason == "Token required"


def test_websocket_rejects_an_invalid_token(client: TestClient) -> None:
    with pytest.raises(WebSocketDisconnect) as excinfo:
        with client.websocket_connect("/notifications/ws?token=garbage") as websocket:
            websocket.receive_json()

    assert excinfo.value.code == 1003
    assert excinfo.value.reason == "Invalid token"


def test_websocket_handshake_ping_and_live_push(client: TestClient, db_session) -> None:
    user = _create_user(db_session, "live@example.com")
    token = create_user_token(user.id)

    with client.websocket_connect(f"/notifications/ws?token={token}") as websocket:
        assert websocket.receive_json() == {
            "type": "connection",
            "message": "Connected successfully",
            "userId": user.id,
        }

        websocket.send_text("not json")
        websocket.send_json({"type": "ping"})
        assert websocket.receive_json() == {"type": "pong"}

        response = client.post("/notifications/test", headers=_headers(user))
        assert response.status_code == 200

        envelope = websocket.receive_json()
        assert envelope["type"] == "notification"
        assert envelope["data"]["id"] == response.json()["notification"]["id"]
        assert envelope["data"]["userId"] == user.id
        assert envelope["data"]["type"] == "TEST"
        assert envelope["data"]["isRead"] is False

    assert client.app.state.connection_registry.is_connected(user.id) is False


def test_admin_create_accepts_long_type_tags(client: TestClient, db_session) -> None:
    admin = _create_user(db_session, "admin@example.com", role=ROLE_ADMIN)
    member = _create_user(db_session, "member@example.com")
    long_type = "WORKFLOW_" + "X" * 180

    response = client.post(
        "/notifications/admin/create",
        json={"user_id": member.id, "title": "Custom", "type": long_type},
        headers=_headers(admin),
    )

    assert response.status_code == 200
    assert response.json()["notification"]["type"] == long_type
    listed = client.get(f"/notifications/type/{long_type}", headers=_headers(member)).json()
    assert [item["title"] for item in listed] == ["Custom"]
