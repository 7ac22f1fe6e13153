"""Security helpers for bearer token handling."""

from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from app.config import get_settings

ALGORITHM = "HS256"

settings = get_settings()


def create_access_token(data: dict, expires_delta: timedelta | None = None) -> str:
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )
    return jwt.encode({**data, "exp": expire}, settings.secret_key, algorithm=ALGORITHM)


def decode_access_token(token: str) -> dict:
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[ALGORITHM])
    except JWTError as exc:
        raise ValueError("Could not validate credentials") from exc


def extract_user_id(token: str) -> int:
    """Return the user id carried in the ``sub`` claim of ``token``."""

    payload = decode_access_token(token)
    subject = payload.get("sub")
    try:
        return int(subject)
    except (TypeError, ValueError) as exc:
        raise ValueError("Token does not identify a user") from exc


def create_user_token(user_id: int, *, role: str | None = None) -> str:
    """Issue a token for ``user_id``; used by scripts and tests."""

    claims: dict[str, object] = {"sub": str(user_id)}
    if role:
        claims["role"] = role
    return create_access_token(claims)
