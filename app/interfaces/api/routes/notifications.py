"""Endpoints and websocket handler for user notifications."""

from __future__ import annotations

import logging

from anyio import to_thread
from fastapi import APIRouter, Depends, HTTPException, WebSocket, WebSocketDisconnect, status
from sqlalchemy.orm import Session

from app.application.use_cases.notifications import (
    NotificationDispatcher,
    delete_notification_for_user,
    get_notification_for_user,
    mark_all_notifications_read,
    mark_notification_read,
    purge_old_notifications,
    sweep_all_user_notifications,
    sweep_user_notifications,
)
from app.application.use_cases.notifications.events import TEST_NOTIFICATION
from app.config import Settings, get_settings
from app.domain.entities import Notification, User
from app.domain.exceptions import (
    NotificationAccessDeniedError,
    NotificationNotFoundError,
    UnknownUserError,
)
from app.infrastructure.database import SessionLocal, get_db
from app.infrastructure.notifications import ConnectionRegistry
from app.infrastructure.repositories import NotificationRepository
from app.interfaces.api.dependencies import (
    get_connection_registry,
    get_current_active_user,
    get_notification_dispatcher,
    require_admin,
    resolve_current_user,
)
from app.interfaces.api.schemas import (
    CleanupResponse,
    CreateNotificationRequest,
    MessageResponse,
    NotificationActionResponse,
    NotificationCounts,
    NotificationRead,
    NotificationSettingsRead,
)

router = APIRouter(prefix="/notifications", tags=["notifications"])

logger = logging.getLogger(__name__)

# Sent when a websocket client cannot be authenticated.
WS_CLOSE_NOT_ACCEPTABLE = status.WS_1003_UNSUPPORTED_DATA


def _notification_to_schema(notification: Notification) -> NotificationRead:
    return NotificationRead(
        id=notification.id or 0,
        user_id=notification.user_id,
        title=notification.title,
        message=notification.message,
        type=notification.type,
        is_read=notification.is_read,
        related_team_id=notification.related_team_id,
        related_activity_id=notification.related_activity_id,
        created_at=notification.created_at,
        updated_at=notification.updated_at,
    )


def _to_schemas(notifications) -> list[NotificationRead]:
    return [_notification_to_schema(notification) for notification in notifications]


@router.get("/", response_model=list[NotificationRead])
def list_notifications(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> list[NotificationRead]:
    """Return every stored notification of the caller, newest first."""

    return _to_schemas(NotificationRepository(db).list_for_user(current_user.id))


@router.get("/unread", response_model=list[NotificationRead])
def list_unread_notifications(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> list[NotificationRead]:
    return _to_schemas(NotificationRepository(db).list_unread_for_user(current_user.id))


@router.get("/count", response_model=NotificationCounts)
def count_notifications(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> NotificationCounts:
    repository = NotificationRepository(db)
    return NotificationCounts(
        total=repository.count_for_user(current_user.id),
        unread=repository.count_unread_for_user(current_user.id),
    )


@router.get("/type/{notification_type}", response_model=list[NotificationRead])
def list_notifications_by_type(
    notification_type: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> list[NotificationRead]:
    return _to_schemas(
        NotificationRepository(db).list_for_user_by_type(current_user.id, notification_type)
    )


@router.get("/team/{team_id}", response_model=list[NotificationRead])
def list_notifications_by_team(
    team_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> list[NotificationRead]:
    return _to_schemas(NotificationRepository(db).list_for_user_by_team(current_user.id, team_id))


@router.get("/activity/{activity_id}", response_model=list[NotificationRead])
def list_notifications_by_activity(
    activity_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> list[NotificationRead]:
    return _to_schemas(
        NotificationRepository(db).list_for_user_by_activity(current_user.id, activity_id)
    )


@router.put("/read-all", response_model=MessageResponse)
def mark_all_as_read(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> MessageResponse:
    updated = mark_all_notifications_read(db, user_id=current_user.id)
    logger.debug("Marked %s notifications as read for user %s", updated, current_user.id)
    return MessageResponse(message="All notifications marked as read")


@router.post("/test", response_model=NotificationActionResponse)
def create_test_notification(
    current_user: User = Depends(get_current_active_user),
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher),
) -> NotificationActionResponse:
    """Create a notification for the caller to check the live channel end to end."""

    notification = dispatcher.create(
        current_user.id,
        "Test Notification",
        "This is a test notification to verify the real-time notification system "
        "is working correctly.",
        TEST_NOTIFICATION,
    )
    return NotificationActionResponse(
        message="Test notification created and sent via WebSocket",
        notification=_notification_to_schema(notification),
    )


@router.post("/admin/create", response_model=NotificationActionResponse)
def create_notification(
    payload: CreateNotificationRequest,
    _: User = Depends(require_admin),
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher),
) -> NotificationActionResponse:
    try:
        notification = dispatcher.create(
            payload.user_id,
            payload.title,
            payload.message,
            payload.type,
            payload.related_team_id,
            payload.related_activity_id,
        )
    except UnknownUserError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return NotificationActionResponse(
        message="Notification created successfully",
        notification=_notification_to_schema(notification),
    )


@router.get("/admin/settings", response_model=NotificationSettingsRead)
def read_notification_settings(
    _: User = Depends(require_admin),
    settings: Settings = Depends(get_settings),
    registry: ConnectionRegistry = Depends(get_connection_registry),
) -> NotificationSettingsRead:
    return NotificationSettingsRead(
        max_per_user=settings.notification_max_per_user,
        retention_days=settings.notification_retention_days,
        cleanup_enabled=settings.notification_cleanup_enabled,
        connected_users=registry.connected_count(),
    )


@router.delete("/admin/cleanup/user/{user_id}", response_model=CleanupResponse)
def cleanup_user_notifications(
    user_id: int,
    _: User = Depends(require_admin),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> CleanupResponse:
    deleted = sweep_user_notifications(
        db, user_id, max_per_user=settings.notification_max_per_user
    )
    return CleanupResponse(
        message="User notification cleanup completed",
        user_id=user_id,
        deleted_count=deleted,
    )


@router.delete("/admin/cleanup/all-users", response_model=CleanupResponse)
def cleanup_all_users_notifications(
    _: User = Depends(require_admin),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> CleanupResponse:
    summary = sweep_all_user_notifications(
        db, max_per_user=settings.notification_max_per_user
    )
    return CleanupResponse(
        message=(
            "Notification cleanup completed for all users. Each user now has maximum "
            f"{settings.notification_max_per_user} notifications."
        ),
        deleted_count=summary.deleted,
        users=summary.users,
        failures=len(summary.failures),
    )


@router.delete("/admin/cleanup/{days_old}", response_model=CleanupResponse)
def cleanup_old_notifications(
    days_old: int,
    _: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> CleanupResponse:
    try:
        deleted = purge_old_notifications(db, days_old)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return CleanupResponse(message="Cleanup completed", deleted_count=deleted)


@router.get("/{notification_id}", response_model=NotificationRead)
def read_notification(
    notification_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> NotificationRead:
    try:
        notification = get_notification_for_user(db, notification_id, user_id=current_user.id)
    except NotificationNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found") from exc
    except NotificationAccessDeniedError as exc:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied") from exc
    return _notification_to_schema(notification)


@router.put("/{notification_id}/read", response_model=NotificationActionResponse)
def mark_as_read(
    notification_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> NotificationActionResponse:
    try:
        notification = mark_notification_read(db, notification_id, user_id=current_user.id)
    except NotificationNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found") from exc
    except NotificationAccessDeniedError as exc:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied") from exc
    return NotificationActionResponse(
        message="Notification marked as read",
        notification=_notification_to_schema(notification),
    )


@router.delete("/{notification_id}", response_model=MessageResponse)
def delete_notification(
    notification_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> MessageResponse:
    try:
        deleted = delete_notification_for_user(db, notification_id, user_id=current_user.id)
    except NotificationAccessDeniedError as exc:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied") from exc
    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found")
    return MessageResponse(message="Notification deleted successfully")


def _authenticate_websocket_user(token: str) -> User:
    session = SessionLocal()
    try:
        user = resolve_current_user(token, session)
    finally:
        session.close()
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Inactive user")
    return user


@router.websocket("/ws")
async def notifications_websocket(websocket: WebSocket) -> None:
    """Live channel pushing new notifications to the authenticated user."""

    registry: ConnectionRegistry = websocket.app.state.connection_registry

    # Accept first so a rejected client still receives the close reason.
    await websocket.accept()

    token = websocket.query_params.get("token")
    if not token:
        logger.warning("No token provided in WebSocket connection")
        await websocket.close(code=WS_CLOSE_NOT_ACCEPTABLE, reason="Token required")
        return

    try:
        user = await to_thread.run_sync(_authenticate_websocket_user, token)
    except HTTPException as exc:
        logger.warning("Invalid token in WebSocket connection: %s", exc.detail)
        await websocket.close(code=WS_CLOSE_NOT_ACCEPTABLE, reason="Invalid token")
        return

    registry.register(user.id, websocket)
    try:
        await websocket.send_json(
            {"type": "connection", "message": "Connected successfully", "userId": user.id}
        )
        while True:
            try:
                message = await websocket.receive_json()
            except WebSocketDisconnect:
                raise
            except (ValueError, KeyError):
                logger.debug("Ignoring malformed websocket message from user %s", user.id)
                continue

            if isinstance(message, dict) and message.get("type") == "ping":
                await websocket.send_json({"type": "pong"})
    except WebSocketDisconnect:
        pass
    except Exception:
        logger.exception("WebSocket transport error for user %s", user.id)
        raise
    finally:
        registry.unregister(user.id, websocket)
