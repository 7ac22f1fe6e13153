"""FastAPI dependency utilities."""

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from app.application.use_cases.notifications import NotificationDispatcher
from app.config import Settings, get_settings
from app.domain.entities import User
from app.infrastructure.database import get_db
from app.infrastructure.notifications import ConnectionRegistry, NotificationPublisher
from app.infrastructure.repositories import UserRepository
from app.infrastructure.security import extract_user_id

# Tokens are issued by the identity service; this API only validates them.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="auth/token")


def _credentials_error(detail: str = "Invalid credentials") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def resolve_current_user(token: str, db: Session) -> User:
    """Resolve the authenticated user for the provided token."""

    try:
        user_id = extract_user_id(token)
    except ValueError as exc:
        raise _credentials_error() from exc

    user = UserRepository(db).get(user_id)
    if user is None:
        raise _credentials_error("User not found")
    return user


def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> User:
    """Return the authenticated user from the provided token."""

    return resolve_current_user(token, db)


def get_current_active_user(current_user: User = Depends(get_current_user)) -> User:
    """Ensure the authenticated user is active."""

    if not current_user.is_active:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Inactive user",
        )
    return current_user


def require_admin(current_user: User = Depends(get_current_active_user)) -> User:
    """Ensure the authenticated user has administrator privileges."""

    if not current_user.is_admin():
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access denied",
        )
    return current_user


def get_connection_registry(request: Request) -> ConnectionRegistry:
    """Return the registry created for this application instance."""

    return request.app.state.connection_registry


def get_notification_publisher(request: Request) -> NotificationPublisher:
    return request.app.state.notification_publisher


def get_notification_dispatcher(
    db: Session = Depends(get_db),
    publisher: NotificationPublisher = Depends(get_notification_publisher),
    settings: Settings = Depends(get_settings),
) -> NotificationDispatcher:
    """Return a dispatcher bound to the request's database session."""

    return NotificationDispatcher(
        db,
        publisher=publisher,
        max_per_user=settings.notification_max_per_user,
    )
