"""Domain entity representing a user."""

from dataclasses import dataclass
from datetime import datetime

ROLE_ADMIN = "admin"
ROLE_MEMBER = "member"


@dataclass
class User:
    """Account that can receive notifications."""

    id: int | None
    name: str
    email: str
    role: str = ROLE_MEMBER
    is_active: bool = True
    created_at: datetime | None = None

    def has_role(self, alias: str) -> bool:
        """Return ``True`` when the user's role matches ``alias``."""

        return self.role.lower() == alias.lower()

    def is_admin(self) -> bool:
        """Return ``True`` when the user is an administrator."""

        return self.has_role(ROLE_ADMIN)


__all__ = ["User", "ROLE_ADMIN", "ROLE_MEMBER"]
