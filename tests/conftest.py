"""Shared fixtures: environment, in-memory database and user factory."""

from __future__ import annotations

import os
import sys
import tempfile
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

_TEST_DB_DIR = Path(tempfile.mkdtemp(prefix="notifications-tests-"))
os.environ.setdefault("DATABASE_URL", f"sqlite:///{_TEST_DB_DIR / 'api.db'}")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("NOTIFICATION_CLEANUP_ENABLED", "false")
os.environ.setdefault("APP_TIMEZONE", "UTC")

from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from app.domain.entities import ROLE_MEMBER, User  # noqa: E402
from app.infrastructure import models  # noqa: E402,F401
from app.infrastructure.database import Base  # noqa: E402
from app.infrastructure.repositories import UserRepository  # noqa: E402


@pytest.fixture()
def engine():
    """In-memory SQLite engine shared across threads for one test."""

    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture()
def session(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def make_user(session):
    """Create users with unique e-mails in the in-memory database."""

    counter = {"value": 0}

    def _make_user(name: str = "Member", *, role: str = ROLE_MEMBER, is_active: bool = True) -> User:
        counter["value"] += 1
        return UserRepository(session).create(
            User(
                id=None,
                name=f"{name} {counter['value']}",
                email=f"user{counter['value']}@example.com",
                role=role,
                is_active=is_active,
            )
        )

    return _make_user
