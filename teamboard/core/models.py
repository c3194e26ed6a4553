"""
FILE: teamboard/core/models.py
PURPOSE: Domain models for teams, memberships, boards, columns, and tasks
EXPORTS:
  - Team (dataclass)
  - TeamMembership (dataclass)
  - Board (dataclass)
  - Column (dataclass)
  - Task (dataclass)
DEPENDENCIES:
  - dataclasses (stdlib)
  - json (stdlib)
  - typing (stdlib)
NOTES:
  - All models have from_row() for SQLite row conversion
  - All models have to_json() for serialization
  - Optional fields use None as default
  - Timestamps stored as ISO-8601 strings
  - IDs are opaque strings (uuid4 hex)
"""

from dataclasses import dataclass, asdict
from typing import Optional
import json

from .constants import DEFAULT_TASK_TYPE, ROLE_USER, STATUS_ACTIVE, ROLE_ADMIN


@dataclass
class Team:
    """A team of users sharing one board."""

    id: str
    name: str
    description: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_row(cls, row) -> "Team":
        """Convert SQLite row to Team object."""
        return cls(
            id=row["id"],
            name=row["name"],
            description=row["description"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    def to_json(self) -> str:
        """Serialize team to JSON string."""
        return json.dumps(asdict(self), indent=2)


@dataclass
class TeamMembership:
    """A user's role and status within a team."""

    user_id: str
    team_id: str
    role: str = ROLE_USER
    status: str = STATUS_ACTIVE
    created_at: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    @property
    def is_active(self) -> bool:
        return self.status == STATUS_ACTIVE

    @classmethod
    def from_row(cls, row) -> "TeamMembership":
        """Convert SQLite row to TeamMembership object."""
        return cls(
            user_id=row["user_id"],
            team_id=row["team_id"],
            role=row["role"],
            status=row["status"],
            created_at=row["created_at"],
        )

    def to_json(self) -> str:
        """Serialize membership to JSON string."""
        return json.dumps(asdict(self), indent=2)


@dataclass
class Board:
    """A team's Kanban board."""

    id: str
    team_id: str
    name: str
    description: Optional[str] = None
    created_by: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_row(cls, row) -> "Board":
        """Convert SQLite row to Board object."""
        return cls(
            id=row["id"],
            team_id=row["team_id"],
            name=row["name"],
            description=row["description"],
            created_by=row["created_by"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    def to_json(self) -> str:
        """Serialize board to JSON string."""
        return json.dumps(asdict(self), indent=2)


@dataclass
class Column:
    """A board column (e.g., To Do, In Progress, Done)."""

    id: str
    name: str
    board_id: Optional[str] = None
    position: int = 0

    @classmethod
    def from_row(cls, row) -> "Column":
        """Convert SQLite row to Column object."""
        return cls(
            id=row["id"],
            name=row["name"],
            board_id=row["board_id"],
            position=row["position"],
        )

    def to_json(self) -> str:
        """Serialize column to JSON string."""
        return json.dumps(asdict(self), indent=2)


@dataclass
class Task:
    """A unit of work placed at a position within a column."""

    id: str
    title: str
    column_id: str
    position: int = 0
    board_id: Optional[str] = None
    type: str = DEFAULT_TASK_TYPE
    description: Optional[str] = None
    assigned_to: Optional[str] = None
    due_date: Optional[str] = None
    created_by: Optional[str] = None
    estimation: Optional[float] = None
    version: int = 0
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @property
    def placement(self) -> tuple:
        """(column_id, position) pair that a move may change."""
        return (self.column_id, self.position)

    @classmethod
    def from_row(cls, row) -> "Task":
        """Convert SQLite row to Task object."""
        return cls(
            id=row["id"],
            title=row["title"],
            column_id=row["column_id"],
            position=row["position"],
            board_id=row["board_id"],
            type=row["type"],
            description=row["description"],
            assigned_to=row["assigned_to"],
            due_date=row["due_date"],
            created_by=row["created_by"],
            estimation=row["estimation"],
            version=row["version"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    def to_dict(self) -> dict:
        return asdict(self)

    def to_json(self) -> str:
        """Serialize task to JSON string."""
        return json.dumps(asdict(self), indent=2)
