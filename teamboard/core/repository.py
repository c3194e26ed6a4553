"""
FILE: teamboard/core/repository.py
PURPOSE: Task Store - SQLite persistence for teams, boards, columns, and tasks
EXPORTS:
  - get_connection() -> Connection
  - init_database(conn) -> None
  - create_team / get_team / get_team_by_name / update_team / list_teams_for_user
  - add_membership / get_membership / list_memberships
  - update_membership_status / delete_membership
  - create_board / get_board / get_board_by_team
  - create_column / get_column / list_columns / update_column / delete_column
  - create_task / get_task / list_tasks / update_task / delete_task
  - next_position_in_column(column_id) -> int
  - update_task_placement(task_id, column_id, position, expected_version) -> Task
DEPENDENCIES:
  - sqlite3 (stdlib)
  - pathlib, datetime, uuid (stdlib)
  - teamboard.config (database location)
  - teamboard.core.models
  - teamboard.core.exceptions
NOTES:
  - Database stored at <TEAMBOARD_HOME>/teamboard.db (default ~/.teamboard)
  - Every call opens and closes its own connection, so calls are safe
    to issue from worker threads
  - Auto-creates directory and initializes schema on first connection
  - Returns domain objects (Task, etc.), never raw dicts
  - Writes are single-row; nothing here spans rows in a transaction
  - tasks.column_id has no foreign key: deleting a column leaves its tasks
    orphaned on the board, and readers must tolerate that
  - tasks.version increments on every placement write
"""

import sqlite3
import uuid
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterator, List, Optional

from ..config import get_config
from .constants import ROLE_USER, STATUS_ACTIVE, DEFAULT_TASK_TYPE
from .models import Team, TeamMembership, Board, Column, Task
from .exceptions import (
    TaskNotFoundError,
    ColumnNotFoundError,
    BoardNotFoundError,
    TeamNotFoundError,
    StaleWriteError,
)


# Overridable database location (tests point this at a temp file).
# None means "use the configured path".
DB_PATH: Optional[Path] = None

# Seconds a connection waits on a locked database
BUSY_TIMEOUT = 10.0

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS teams (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL UNIQUE COLLATE NOCASE,
    description TEXT,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS team_members (
    user_id TEXT NOT NULL,
    team_id TEXT NOT NULL REFERENCES teams(id) ON DELETE CASCADE,
    role TEXT NOT NULL CHECK(role IN ('Admin', 'User')) DEFAULT 'User',
    status TEXT NOT NULL CHECK(status IN ('ACTIVE', 'INVITED')) DEFAULT 'ACTIVE',
    created_at TEXT NOT NULL,
    PRIMARY KEY (user_id, team_id)
);

CREATE TABLE IF NOT EXISTS boards (
    id TEXT PRIMARY KEY,
    team_id TEXT NOT NULL UNIQUE REFERENCES teams(id) ON DELETE CASCADE,
    name TEXT NOT NULL,
    description TEXT,
    created_by TEXT,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS columns (
    id TEXT PRIMARY KEY,
    board_id TEXT NOT NULL REFERENCES boards(id) ON DELETE CASCADE,
    name TEXT NOT NULL,
    position INTEGER NOT NULL DEFAULT 0
);

CREATE TABLE IF NOT EXISTS tasks (
    id TEXT PRIMARY KEY,
    board_id TEXT NOT NULL REFERENCES boards(id) ON DELETE CASCADE,
    column_id TEXT NOT NULL,
    title TEXT NOT NULL,
    description TEXT,
    position INTEGER NOT NULL DEFAULT 0,
    type TEXT NOT NULL CHECK(type IN ('Bug', 'Feature', 'Story')) DEFAULT 'Feature',
    assigned_to TEXT,
    due_date TEXT,
    created_by TEXT,
    estimation REAL,
    version INTEGER NOT NULL DEFAULT 0,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_columns_board ON columns(board_id, position);
CREATE INDEX IF NOT EXISTS idx_tasks_board ON tasks(board_id, column_id, position);
"""


def _db_path() -> Path:
    if DB_PATH is not None:
        return Path(DB_PATH)
    return Path(get_config().db_path)


def _now() -> str:
    return datetime.now().isoformat()


def _new_id() -> str:
    return uuid.uuid4().hex


def get_connection() -> sqlite3.Connection:
    """
    Get SQLite connection to the Teamboard database.

    Creates the database directory if it doesn't exist.
    Enables row_factory for dict-like row access.
    Enables foreign key constraints and WAL journaling.
    Initializes database schema on first connection.
    """
    db_path = _db_path()
    db_path.parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(db_path, timeout=BUSY_TIMEOUT)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    conn.execute("PRAGMA journal_mode = WAL")

    init_database(conn)

    return conn


@contextmanager
def _connection() -> Iterator[sqlite3.Connection]:
    conn = get_connection()
    try:
        yield conn
    finally:
        conn.close()


def init_database(conn: sqlite3.Connection) -> None:
    """
    Initialize database schema if tables don't exist.

    Safe to call multiple times (uses CREATE TABLE IF NOT EXISTS).
    """
    cursor = conn.execute(
        "SELECT name FROM sqlite_master WHERE type='table' AND name='tasks'"
    )
    if cursor.fetchone() is None:
        conn.executescript(SCHEMA_SQL)
        conn.commit()


# --- Team Operations ---


def create_team(name: str, description: Optional[str] = None) -> Team:
    """
    Create a new team.

    Raises:
        sqlite3.IntegrityError: If a team with that name already exists
    """
    team_id = _new_id()
    now = _now()

    with _connection() as conn:
        conn.execute(
            """
            INSERT INTO teams (id, name, description, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?)
            """,
            (team_id, name, description, now, now),
        )
        conn.commit()

    team = get_team(team_id)
    if not team:
        raise TeamNotFoundError(team_id)
    return team


def get_team(team_id: str) -> Optional[Team]:
    """Fetch single team by ID, or None."""
    with _connection() as conn:
        row = conn.execute("SELECT * FROM teams WHERE id = ?", (team_id,)).fetchone()
    return Team.from_row(row) if row else None


def get_team_by_name(name: str) -> Optional[Team]:
    """Fetch single team by name (case-insensitive), or None."""
    with _connection() as conn:
        row = conn.execute(
            "SELECT * FROM teams WHERE name = ? COLLATE NOCASE", (name,)
        ).fetchone()
    return Team.from_row(row) if row else None


def update_team(team_id: str, name: str, description: Optional[str]) -> Team:
    """
    Set a team's name and description.

    Raises:
        TeamNotFoundError: If team doesn't exist
        sqlite3.IntegrityError: If another team already has that name
    """
    with _connection() as conn:
        cursor = conn.execute(
            "UPDATE teams SET name = ?, description = ?, updated_at = ? WHERE id = ?",
            (name, description, _now(), team_id),
        )
        conn.commit()
        if cursor.rowcount == 0:
            raise TeamNotFoundError(team_id)

    team = get_team(team_id)
    if not team:
        raise TeamNotFoundError(team_id)
    return team


def list_teams_for_user(user_id: str) -> List[Team]:
    """List teams the user belongs to (any status), ordered by name."""
    with _connection() as conn:
        rows = conn.execute(
            """
            SELECT teams.* FROM teams
            JOIN team_members ON team_members.team_id = teams.id
            WHERE team_members.user_id = ?
            ORDER BY teams.name COLLATE NOCASE
            """,
            (user_id,),
        ).fetchall()
    return [Team.from_row(row) for row in rows]


# --- Membership Operations ---


def add_membership(
    user_id: str,
    team_id: str,
    role: str = ROLE_USER,
    status: str = STATUS_ACTIVE,
) -> TeamMembership:
    """
    Add a user to a team.

    Raises:
        sqlite3.IntegrityError: If the user is already a member or team doesn't exist
    """
    with _connection() as conn:
        conn.execute(
            """
            INSERT INTO team_members (user_id, team_id, role, status, created_at)
            VALUES (?, ?, ?, ?, ?)
            """,
            (user_id, team_id, role, status, _now()),
        )
        conn.commit()

    membership = get_membership(user_id, team_id)
    if not membership:
        raise TeamNotFoundError(team_id)
    return membership


def get_membership(user_id: str, team_id: str) -> Optional[TeamMembership]:
    """Fetch a user's membership in a team, or None."""
    with _connection() as conn:
        row = conn.execute(
            "SELECT * FROM team_members WHERE user_id = ? AND team_id = ?",
            (user_id, team_id),
        ).fetchone()
    return TeamMembership.from_row(row) if row else None


def list_memberships(team_id: str) -> List[TeamMembership]:
    """List all memberships of a team, admins first."""
    with _connection() as conn:
        rows = conn.execute(
            """
            SELECT * FROM team_members WHERE team_id = ?
            ORDER BY role = 'Admin' DESC, user_id
            """,
            (team_id,),
        ).fetchall()
    return [TeamMembership.from_row(row) for row in rows]


def update_membership_status(user_id: str, team_id: str, status: str) -> TeamMembership:
    """Set a membership's status. Raises TeamNotFoundError if no such membership."""
    with _connection() as conn:
        cursor = conn.execute(
            "UPDATE team_members SET status = ? WHERE user_id = ? AND team_id = ?",
            (status, user_id, team_id),
        )
        conn.commit()
        if cursor.rowcount == 0:
            raise TeamNotFoundError(team_id)

    membership = get_membership(user_id, team_id)
    if not membership:
        raise TeamNotFoundError(team_id)
    return membership


def delete_membership(user_id: str, team_id: str) -> None:
    """Remove a user from a team."""
    with _connection() as conn:
        conn.execute(
            "DELETE FROM team_members WHERE user_id = ? AND team_id = ?",
            (user_id, team_id),
        )
        conn.commit()


# --- Board Operations ---


def create_board(
    team_id: str,
    name: str,
    description: Optional[str] = None,
    created_by: Optional[str] = None,
) -> Board:
    """
    Create the board for a team.

    Raises:
        sqlite3.IntegrityError: If the team already has a board
    """
    board_id = _new_id()
    now = _now()

    with _connection() as conn:
        conn.execute(
            """
            INSERT INTO boards (id, team_id, name, description, created_by, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (board_id, team_id, name, description, created_by, now, now),
        )
        conn.commit()

    board = get_board(board_id)
    if not board:
        raise BoardNotFoundError(board_id)
    return board


def get_board(board_id: str) -> Optional[Board]:
    """Fetch single board by ID, or None."""
    with _connection() as conn:
        row = conn.execute("SELECT * FROM boards WHERE id = ?", (board_id,)).fetchone()
    return Board.from_row(row) if row else None


def get_board_by_team(team_id: str) -> Optional[Board]:
    """Fetch the board belonging to a team, or None."""
    with _connection() as conn:
        row = conn.execute(
            "SELECT * FROM boards WHERE team_id = ?", (team_id,)
        ).fetchone()
    return Board.from_row(row) if row else None


# --- Column Operations ---


def create_column(board_id: str, name: str, position: int = 0) -> Column:
    """Create a new column on a board."""
    column_id = _new_id()

    with _connection() as conn:
        conn.execute(
            "INSERT INTO columns (id, board_id, name, position) VALUES (?, ?, ?, ?)",
            (column_id, board_id, name, position),
        )
        conn.commit()

    column = get_column(column_id)
    if not column:
        raise ColumnNotFoundError(column_id)
    return column


def get_column(column_id: str) -> Optional[Column]:
    """Fetch single column by ID, or None."""
    with _connection() as conn:
        row = conn.execute(
            "SELECT * FROM columns WHERE id = ?", (column_id,)
        ).fetchone()
    return Column.from_row(row) if row else None


def list_columns(board_id: str) -> List[Column]:
    """List a board's columns, ordered by position."""
    with _connection() as conn:
        rows = conn.execute(
            "SELECT * FROM columns WHERE board_id = ? ORDER BY position, rowid",
            (board_id,),
        ).fetchall()
    return [Column.from_row(row) for row in rows]


def update_column(column_id: str, name: str, position: int) -> Column:
    """
    Rename and/or reposition a column.

    Raises:
        ColumnNotFoundError: If column doesn't exist
    """
    with _connection() as conn:
        cursor = conn.execute(
            "UPDATE columns SET name = ?, position = ? WHERE id = ?",
            (name, position, column_id),
        )
        conn.commit()
        if cursor.rowcount == 0:
            raise ColumnNotFoundError(column_id)

    column = get_column(column_id)
    if not column:
        raise ColumnNotFoundError(column_id)
    return column


def delete_column(column_id: str) -> int:
    """
    Delete a column.

    Returns:
        Number of tasks still referencing the deleted column (now orphaned)

    Raises:
        ColumnNotFoundError: If column doesn't exist
    """
    with _connection() as conn:
        cursor = conn.execute("DELETE FROM columns WHERE id = ?", (column_id,))
        if cursor.rowcount == 0:
            conn.rollback()
            raise ColumnNotFoundError(column_id)
        conn.commit()
        orphaned = conn.execute(
            "SELECT COUNT(*) FROM tasks WHERE column_id = ?", (column_id,)
        ).fetchone()[0]
    return orphaned


# --- Task Operations ---


def create_task(
    board_id: str,
    column_id: str,
    title: str,
    position: int = 0,
    task_type: str = DEFAULT_TASK_TYPE,
    description: Optional[str] = None,
    assigned_to: Optional[str] = None,
    due_date: Optional[str] = None,
    created_by: Optional[str] = None,
    estimation: Optional[float] = None,
) -> Task:
    """
    Create a new task.

    Note:
        Sets created_at and updated_at automatically; version starts at 0.
    """
    task_id = _new_id()
    now = _now()

    with _connection() as conn:
        conn.execute(
            """
            INSERT INTO tasks (
                id, board_id, column_id, title, description, position, type,
                assigned_to, due_date, created_by, estimation, version,
                created_at, updated_at
            )
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, 0, ?, ?)
            """,
            (
                task_id, board_id, column_id, title, description, position,
                task_type, assigned_to, due_date, created_by, estimation,
                now, now,
            ),
        )
        conn.commit()

    task = get_task(task_id)
    if not task:
        raise TaskNotFoundError(task_id)
    return task


def get_task(task_id: str) -> Optional[Task]:
    """Fetch single task by ID, or None."""
    with _connection() as conn:
        row = conn.execute("SELECT * FROM tasks WHERE id = ?", (task_id,)).fetchone()
    return Task.from_row(row) if row else None


def list_tasks(board_id: str) -> List[Task]:
    """
    List all tasks of a board, including tasks whose column was deleted.

    Ordered by position, then creation order (stable tie-break for
    duplicate positions left behind by interleaved writes).
    """
    with _connection() as conn:
        rows = conn.execute(
            """
            SELECT * FROM tasks WHERE board_id = ?
            ORDER BY position, created_at, rowid
            """,
            (board_id,),
        ).fetchall()
    return [Task.from_row(row) for row in rows]


def next_position_in_column(column_id: str) -> int:
    """
    Position just past the last task of a column (0 when empty).

    Deleted tasks leave gaps, so this is MAX(position) + 1, not a count.
    """
    with _connection() as conn:
        return conn.execute(
            "SELECT COALESCE(MAX(position) + 1, 0) FROM tasks WHERE column_id = ?",
            (column_id,),
        ).fetchone()[0]


def update_task(task: Task) -> Task:
    """
    Update a task's details (not its placement).

    Updates title, description, type, assigned_to, due_date and estimation.
    Placement changes go through update_task_placement().

    Raises:
        TaskNotFoundError: If task doesn't exist
    """
    with _connection() as conn:
        cursor = conn.execute(
            """
            UPDATE tasks
            SET title = ?,
                description = ?,
                type = ?,
                assigned_to = ?,
                due_date = ?,
                estimation = ?,
                updated_at = ?
            WHERE id = ?
            """,
            (
                task.title,
                task.description,
                task.type,
                task.assigned_to,
                task.due_date,
                task.estimation,
                _now(),
                task.id,
            ),
        )
        conn.commit()
        if cursor.rowcount == 0:
            raise TaskNotFoundError(task.id)

    updated = get_task(task.id)
    if not updated:
        raise TaskNotFoundError(task.id)
    return updated


def update_task_placement(
    task_id: str,
    column_id: str,
    position: int,
    expected_version: Optional[int] = None,
) -> Task:
    """
    Write one task's column and position.

    Args:
        task_id: Task to update
        column_id: New column
        position: New rank within the column
        expected_version: Version the caller read. When given, the write only
            applies if the stored row still has that version.

    Returns:
        The stored task after the write (version incremented)

    Raises:
        TaskNotFoundError: If task doesn't exist
        StaleWriteError: If the row's version no longer matches expected_version
    """
    now = _now()
    with _connection() as conn:
        if expected_version is None:
            cursor = conn.execute(
                """
                UPDATE tasks
                SET column_id = ?, position = ?, version = version + 1, updated_at = ?
                WHERE id = ?
                """,
                (column_id, position, now, task_id),
            )
        else:
            cursor = conn.execute(
                """
                UPDATE tasks
                SET column_id = ?, position = ?, version = version + 1, updated_at = ?
                WHERE id = ? AND version = ?
                """,
                (column_id, position, now, task_id, expected_version),
            )
        conn.commit()

        row = conn.execute("SELECT * FROM tasks WHERE id = ?", (task_id,)).fetchone()

    if row is None:
        raise TaskNotFoundError(task_id)
    if cursor.rowcount == 0:
        raise StaleWriteError(task_id, expected_version, row["version"])

    return Task.from_row(row)


def delete_task(task_id: str) -> None:
    """
    Delete task by ID.

    Raises:
        TaskNotFoundError: If task doesn't exist
    """
    with _connection() as conn:
        cursor = conn.execute("DELETE FROM tasks WHERE id = ?", (task_id,))
        conn.commit()
        if cursor.rowcount == 0:
            raise TaskNotFoundError(task_id)
