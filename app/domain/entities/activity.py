"""Domain entities describing the task-board objects that trigger notifications."""

from __future__ import annotations

from dataclasses import dataclass, field

from .user import User


@dataclass
class Team:
    """Team whose membership changes are announced to its members."""

    id: int
    name: str


@dataclass
class Activity:
    """Activity (task) with the members assigned to it."""

    id: int
    name: str
    created_by: int
    status: str | None = None
    team_id: int | None = None
    assigned_members: list[User] = field(default_factory=list)

    def assigned_member_ids(self) -> list[int]:
        """Return the ids of the assigned members preserving their order."""

        return [member.id for member in self.assigned_members if member.id is not None]


__all__ = ["Activity", "Team"]
