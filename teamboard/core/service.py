"""
FILE: teamboard/core/service.py
PURPOSE: Business logic layer for teams, boards, columns, and tasks
EXPORTS:
  - create_team(user_id, name, description) -> (Team, TeamMembership)
  - find_team_by_name_or_raise(name) -> Team
  - get_team(team_id) -> Team
  - list_teams(user_id) -> List[Team]
  - update_team(membership, name, description) -> Team
  - require_active_membership(user_id, team_id) -> TeamMembership
  - resolve_membership(user_id, team_ref) -> TeamMembership
  - require_admin(membership) -> None
  - add_member / join_team / remove_member / list_members
  - create_board(membership, name, description) -> Board
  - get_team_board(membership) -> Board
  - list_columns(board_id) -> List[Column]
  - save_columns(membership, board_id, entries) -> List[Column]
  - add_column / rename_column / remove_column / reorder_column
  - create_task / update_task / delete_task
  - open_board(membership) -> BoardState
  - move_task(membership, task_ref, target_ref) -> NoOp | Move
  - resolve_task_ref(tasks, ref) -> Task
  - resolve_drop_target(state, ref) -> str
DEPENDENCIES:
  - teamboard.core.repository (all CRUD functions)
  - teamboard.core.board_state (BoardState cache)
  - teamboard.core.reconciler (move_item for column reordering)
  - teamboard.core.exceptions
  - datetime, logging, sqlite3 (stdlib)
NOTES:
  - All functions validate input and raise descriptive errors
  - No direct database access (use repository layer)
  - Callers pass an explicit TeamMembership; admin-only operations check it here
  - Tasks and columns can be referenced by a unique ID prefix; columns also by name
"""

import logging
import sqlite3
from datetime import datetime
from typing import Iterable, List, Optional, Sequence, Tuple, Union

from . import repository
from .board_state import BoardState
from .models import Team, TeamMembership, Board, Column, Task
from .reconciler import Move, NoOp, move_item
from .constants import (
    TASK_TYPES,
    DEFAULT_TASK_TYPE,
    ROLE_ADMIN,
    ROLE_USER,
    ROLES,
    STATUS_ACTIVE,
    STATUS_INVITED,
    DEFAULT_COLUMNS,
    BOARD_NAME_MIN_LENGTH,
    BOARD_DESCRIPTION_MIN_LENGTH,
    FIRST_POSITION,
)
from .exceptions import (
    TaskNotFoundError,
    ColumnNotFoundError,
    BoardNotFoundError,
    TeamNotFoundError,
    InvalidInputError,
    PermissionDeniedError,
)

logger = logging.getLogger(__name__)


# --- Teams and Membership ---


def create_team(
    user_id: str, name: str, description: Optional[str] = None
) -> Tuple[Team, TeamMembership]:
    """
    Create a team with the creating user as its active admin.

    Raises:
        InvalidInputError: If name is empty or already taken
    """
    name = name.strip()
    if not name:
        raise InvalidInputError("Team name cannot be empty")

    description = description.strip() if description else None

    try:
        team = repository.create_team(name, description or None)
    except sqlite3.IntegrityError:
        raise InvalidInputError(f"Team '{name}' already exists")

    membership = repository.add_membership(
        user_id, team.id, role=ROLE_ADMIN, status=STATUS_ACTIVE
    )
    logger.info("User %s created team %s (%s)", user_id, team.name, team.id)
    return team, membership


def find_team_by_name_or_raise(name: str) -> Team:
    """
    Find team by name (case-insensitive) or ID.

    Raises:
        InvalidInputError: If no team matches
    """
    name = name.strip()
    team = repository.get_team_by_name(name) or repository.get_team(name)
    if not team:
        raise InvalidInputError(f"Team '{name}' not found")
    return team


def get_team(team_id: str) -> Team:
    """Fetch team by ID or raise TeamNotFoundError."""
    team = repository.get_team(team_id)
    if not team:
        raise TeamNotFoundError(team_id)
    return team


def list_teams(user_id: str) -> List[Team]:
    """List teams the user is a member of (active or invited)."""
    return repository.list_teams_for_user(user_id)


def update_team(
    membership: TeamMembership,
    name: Optional[str] = None,
    description: Optional[str] = None,
) -> Team:
    """
    Edit the acting member's team (admin only).

    Args:
        name: New name, or None to keep it
        description: New description, None to keep it, "" to clear it

    Raises:
        InvalidInputError: If the new name is empty or taken by another team
    """
    require_admin(membership)
    team = get_team(membership.team_id)

    if name is not None:
        name = name.strip()
        if not name:
            raise InvalidInputError("Team name cannot be empty")
    else:
        name = team.name

    if description is not None:
        description = description.strip() or None
    else:
        description = team.description

    try:
        updated = repository.update_team(team.id, name, description)
    except sqlite3.IntegrityError:
        raise InvalidInputError(f"Team '{name}' already exists")

    logger.info("User %s updated team %s (%s)", membership.user_id, updated.name, updated.id)
    return updated


def require_active_membership(user_id: str, team_id: str) -> TeamMembership:
    """
    Return the user's active membership in a team.

    Raises:
        PermissionDeniedError: If the user isn't an active member
    """
    membership = repository.get_membership(user_id, team_id)
    if membership is None or not membership.is_active:
        raise PermissionDeniedError(f"User {user_id} is not an active member of this team")
    return membership


def resolve_membership(user_id: str, team_ref: Optional[str] = None) -> TeamMembership:
    """
    Pick the team a command acts on and return the user's active membership.

    Without team_ref the user's only active team is used.

    Raises:
        InvalidInputError: If no team is given and the user has zero or several
        PermissionDeniedError: If the user isn't an active member
    """
    if team_ref:
        team = find_team_by_name_or_raise(team_ref)
        return require_active_membership(user_id, team.id)

    active = [
        m for m in (repository.get_membership(user_id, t.id) for t in list_teams(user_id))
        if m is not None and m.is_active
    ]
    if not active:
        raise InvalidInputError(f"User {user_id} has no teams; create one with 'team create'")
    if len(active) > 1:
        raise InvalidInputError(f"User {user_id} is in {len(active)} teams; choose one with --team")
    return active[0]


def require_admin(membership: TeamMembership) -> None:
    """Raise PermissionDeniedError unless the membership is an active admin."""
    if not (membership.is_active and membership.is_admin):
        raise PermissionDeniedError("Only team admins can do that")


def add_member(membership: TeamMembership, user_id: str, role: str = ROLE_USER) -> TeamMembership:
    """
    Invite a user to the acting member's team (admin only).

    The new membership is INVITED until the user joins.
    """
    require_admin(membership)

    user_id = user_id.strip()
    if not user_id:
        raise InvalidInputError("User cannot be empty")
    if role not in ROLES:
        raise InvalidInputError(f"Invalid role '{role}'. Must be one of: {', '.join(ROLES)}")

    try:
        invited = repository.add_membership(
            user_id, membership.team_id, role=role, status=STATUS_INVITED
        )
    except sqlite3.IntegrityError:
        raise InvalidInputError(f"User {user_id} is already a member")

    logger.info("User %s invited %s to team %s", membership.user_id, user_id, membership.team_id)
    return invited


def join_team(user_id: str, team_id: str) -> TeamMembership:
    """
    Accept an invitation to a team.

    Raises:
        PermissionDeniedError: If the user wasn't invited
    """
    membership = repository.get_membership(user_id, team_id)
    if membership is None:
        raise PermissionDeniedError(f"User {user_id} has no invitation to this team")
    if membership.is_active:
        return membership
    return repository.update_membership_status(user_id, team_id, STATUS_ACTIVE)


def remove_member(membership: TeamMembership, user_id: str) -> None:
    """Remove a non-admin member from the team (admin only)."""
    require_admin(membership)

    target = repository.get_membership(user_id, membership.team_id)
    if target is None:
        raise InvalidInputError(f"User {user_id} is not a member")
    if target.is_admin:
        raise PermissionDeniedError("Admins cannot be removed from a team")

    repository.delete_membership(user_id, membership.team_id)


def list_members(membership: TeamMembership) -> List[TeamMembership]:
    """List memberships of the acting member's team."""
    return repository.list_memberships(membership.team_id)


# --- Boards ---


def create_board(membership: TeamMembership, name: str, description: str) -> Board:
    """
    Create the team's board and seed the default columns (admin only).

    Raises:
        InvalidInputError: If name/description are too short or the team has a board
        PermissionDeniedError: If the membership isn't an admin
    """
    require_admin(membership)

    name = name.strip()
    description = (description or "").strip()
    if len(name) < BOARD_NAME_MIN_LENGTH:
        raise InvalidInputError(
            f"Board name must be at least {BOARD_NAME_MIN_LENGTH} characters"
        )
    if len(description) < BOARD_DESCRIPTION_MIN_LENGTH:
        raise InvalidInputError(
            f"Description must be at least {BOARD_DESCRIPTION_MIN_LENGTH} characters"
        )

    try:
        board = repository.create_board(
            membership.team_id, name, description, created_by=membership.user_id
        )
    except sqlite3.IntegrityError:
        raise InvalidInputError("This team already has a board")

    for position, column_name in enumerate(DEFAULT_COLUMNS, start=FIRST_POSITION):
        repository.create_column(board.id, column_name, position)

    logger.info("Created board %s for team %s", board.id, membership.team_id)
    return board


def get_team_board(membership: TeamMembership) -> Board:
    """
    Fetch the board of the membership's team.

    Raises:
        BoardNotFoundError: If the team has no board yet
    """
    board = repository.get_board_by_team(membership.team_id)
    if not board:
        raise BoardNotFoundError(f"for team {membership.team_id}")
    return board


def _get_board_for(membership: TeamMembership, board_id: str) -> Board:
    board = repository.get_board(board_id)
    if not board:
        raise BoardNotFoundError(board_id)
    if board.team_id != membership.team_id:
        raise PermissionDeniedError("Board belongs to another team")
    return board


# --- Columns ---


def list_columns(board_id: str) -> List[Column]:
    """List a board's columns in display order."""
    return repository.list_columns(board_id)


def save_columns(
    membership: TeamMembership,
    board_id: str,
    entries: Sequence[Tuple[Optional[str], str]],
) -> List[Column]:
    """
    Replace a board's column layout (admin only).

    Args:
        membership: Acting member
        board_id: Board to edit
        entries: Desired columns in display order as (column_id, name);
            column_id None means a new column

    Returns:
        The board's columns after saving

    Notes:
        - Entries with blank names are dropped
        - Positions are reassigned 0..n-1 in entry order
        - Existing columns missing from entries are deleted; their tasks stay
          on the board with a stale column_id
    """
    require_admin(membership)
    _get_board_for(membership, board_id)

    existing = {c.id: c for c in repository.list_columns(board_id)}
    cleaned = [(cid, name.strip()) for cid, name in entries if name and name.strip()]

    for cid, _ in cleaned:
        if cid is not None and cid not in existing:
            raise ColumnNotFoundError(cid)

    kept_ids = {cid for cid, _ in cleaned if cid is not None}

    for position, (cid, name) in enumerate(cleaned, start=FIRST_POSITION):
        if cid is None:
            repository.create_column(board_id, name, position)
        else:
            column = existing[cid]
            if column.name != name or column.position != position:
                repository.update_column(cid, name, position)

    for cid in existing:
        if cid not in kept_ids:
            orphaned = repository.delete_column(cid)
            if orphaned:
                logger.warning(
                    "Deleted column %s still held %d task(s); they are now orphaned",
                    existing[cid].name, orphaned,
                )

    return repository.list_columns(board_id)


def _layout(board_id: str) -> List[Tuple[Optional[str], str]]:
    return [(c.id, c.name) for c in repository.list_columns(board_id)]


def add_column(membership: TeamMembership, board_id: str, name: str) -> Column:
    """Append a column to the board (admin only)."""
    if not name or not name.strip():
        raise InvalidInputError("Column name cannot be empty")
    columns = save_columns(membership, board_id, _layout(board_id) + [(None, name)])
    return columns[-1]


def rename_column(membership: TeamMembership, board_id: str, column_id: str, name: str) -> Column:
    """Rename a column (admin only)."""
    if not name or not name.strip():
        raise InvalidInputError("Column name cannot be empty")
    layout = _layout(board_id)
    if column_id not in {cid for cid, _ in layout}:
        raise ColumnNotFoundError(column_id)
    entries = [(cid, name if cid == column_id else old) for cid, old in layout]
    columns = save_columns(membership, board_id, entries)
    return next(c for c in columns if c.id == column_id)


def remove_column(membership: TeamMembership, board_id: str, column_id: str) -> List[Column]:
    """Delete a column and renumber the rest (admin only)."""
    layout = _layout(board_id)
    if column_id not in {cid for cid, _ in layout}:
        raise ColumnNotFoundError(column_id)
    return save_columns(membership, board_id, [e for e in layout if e[0] != column_id])


def reorder_column(
    membership: TeamMembership, board_id: str, active_id: str, over_id: str
) -> List[Column]:
    """
    Move a column to the slot of another column (admin only).

    Dropping a column on itself or on an unknown column changes nothing.
    """
    layout = _layout(board_id)
    ids = [cid for cid, _ in layout]
    if active_id == over_id or active_id not in ids or over_id not in ids:
        return repository.list_columns(board_id)

    reordered = move_item(layout, ids.index(active_id), ids.index(over_id))
    return save_columns(membership, board_id, reordered)


# --- Tasks ---


def _validate_task_type(task_type: str) -> str:
    for valid in TASK_TYPES:
        if task_type.strip().lower() == valid.lower():
            return valid
    raise InvalidInputError(
        f"Invalid type '{task_type}'. Must be one of: {', '.join(TASK_TYPES)}"
    )


def _validate_due_date(due_date: str) -> Optional[str]:
    due_date = due_date.strip()
    if not due_date:
        return None
    try:
        return datetime.strptime(due_date, "%Y-%m-%d").date().isoformat()
    except ValueError:
        raise InvalidInputError(f"Invalid due date '{due_date}'. Use YYYY-MM-DD")


def _validate_estimation(estimation: Union[str, float, None]) -> Optional[float]:
    if estimation is None or estimation == "":
        return None
    try:
        value = float(estimation)
    except (TypeError, ValueError):
        raise InvalidInputError(f"Invalid estimation '{estimation}'")
    if value < 0:
        raise InvalidInputError("Estimation cannot be negative")
    return value


def create_task(
    membership: TeamMembership,
    board_id: str,
    title: str,
    column_id: Optional[str] = None,
    task_type: str = DEFAULT_TASK_TYPE,
    description: Optional[str] = None,
    assigned_to: Optional[str] = None,
    due_date: Optional[str] = None,
    estimation: Union[str, float, None] = None,
) -> Task:
    """
    Create a task at the end of a column.

    Args:
        membership: Acting member (must be active)
        board_id: Board to add to
        title: Task title (required)
        column_id: Target column (defaults to the board's first column)
        task_type: Bug, Feature or Story (case-insensitive)
        description, assigned_to: Optional text
        due_date: Optional YYYY-MM-DD
        estimation: Optional non-negative number

    Raises:
        InvalidInputError: On empty title, bad type/date/estimation, or a board
            without columns
        ColumnNotFoundError: If column_id isn't on the board
    """
    if not membership.is_active:
        raise PermissionDeniedError("Join the team before adding tasks")
    _get_board_for(membership, board_id)

    title = title.strip()
    if not title:
        raise InvalidInputError("Task title cannot be empty")

    columns = repository.list_columns(board_id)
    if not columns:
        raise InvalidInputError("Board has no columns; add one first")
    if column_id is None:
        column_id = columns[0].id
    elif column_id not in {c.id for c in columns}:
        raise ColumnNotFoundError(column_id)

    position = repository.next_position_in_column(column_id)

    task = repository.create_task(
        board_id=board_id,
        column_id=column_id,
        title=title,
        position=position,
        task_type=_validate_task_type(task_type),
        description=description.strip() if description else None,
        assigned_to=assigned_to.strip() if assigned_to else None,
        due_date=_validate_due_date(due_date) if due_date else None,
        created_by=membership.user_id,
        estimation=_validate_estimation(estimation),
    )
    logger.info("Created task %s in column %s at position %d", task.id, column_id, position)
    return task


def _get_task_for(membership: TeamMembership, task_id: str) -> Task:
    task = repository.get_task(task_id)
    if not task:
        raise TaskNotFoundError(task_id)
    _get_board_for(membership, task.board_id)
    return task


def update_task(
    membership: TeamMembership,
    task_id: str,
    title: Optional[str] = None,
    description: Optional[str] = None,
    task_type: Optional[str] = None,
    assigned_to: Optional[str] = None,
    due_date: Optional[str] = None,
    estimation: Union[str, float, None] = None,
) -> Task:
    """
    Update a task's details.

    Arguments left as None are unchanged; an empty string clears
    description, assigned_to, due_date and estimation.

    Raises:
        TaskNotFoundError: If task doesn't exist
        InvalidInputError: On empty title or bad type/date/estimation
    """
    task = _get_task_for(membership, task_id)

    if title is not None:
        title = title.strip()
        if not title:
            raise InvalidInputError("Task title cannot be empty")
        task.title = title
    if description is not None:
        task.description = description.strip() or None
    if task_type is not None:
        task.type = _validate_task_type(task_type)
    if assigned_to is not None:
        task.assigned_to = assigned_to.strip() or None
    if due_date is not None:
        task.due_date = _validate_due_date(due_date)
    if estimation is not None:
        task.estimation = _validate_estimation(estimation)

    return repository.update_task(task)


def delete_task(membership: TeamMembership, task_id: str) -> None:
    """
    Delete a task permanently.

    The gap it leaves in its column is closed by the next move in that column.
    """
    _get_task_for(membership, task_id)
    repository.delete_task(task_id)


# --- Board state and moves ---


def open_board(membership: TeamMembership, config=None) -> BoardState:
    """
    Load the membership's team board into a new BoardState cache.

    Raises:
        PermissionDeniedError: If the membership isn't active
        BoardNotFoundError: If the team has no board
        FetchError: If loading fails
    """
    if not membership.is_active:
        raise PermissionDeniedError("Join the team before opening its board")
    board = get_team_board(membership)
    state = BoardState(board.id, config=config)
    state.load()
    return state


def _match_prefix(ids: Iterable[str], ref: str) -> List[str]:
    ref = ref.strip().lower()
    return [i for i in ids if i == ref] or [i for i in ids if i.startswith(ref)]


def resolve_task_ref(tasks: Sequence[Task], ref: str) -> Task:
    """
    Find a task by ID or unique ID prefix.

    Raises:
        TaskNotFoundError: If nothing matches
        InvalidInputError: If the prefix is ambiguous
    """
    if not ref or not ref.strip():
        raise InvalidInputError("Task ID cannot be empty")
    matches = _match_prefix([t.id for t in tasks], ref)
    if not matches:
        raise TaskNotFoundError(ref)
    if len(matches) > 1:
        raise InvalidInputError(f"Task ID '{ref}' is ambiguous ({len(matches)} matches)")
    return next(t for t in tasks if t.id == matches[0])


def resolve_column_ref(columns: Sequence[Column], ref: str) -> Column:
    """
    Find a column by name (case-insensitive), ID, or unique ID prefix.

    Raises:
        ColumnNotFoundError: If nothing matches
        InvalidInputError: If the reference is ambiguous
    """
    by_name = [c for c in columns if c.name.lower() == ref.strip().lower()]
    if len(by_name) == 1:
        return by_name[0]
    if len(by_name) > 1:
        raise InvalidInputError(f"Column name '{ref}' is ambiguous; use its ID")
    matches = _match_prefix([c.id for c in columns], ref)
    if not matches:
        raise ColumnNotFoundError(ref)
    if len(matches) > 1:
        raise InvalidInputError(f"Column '{ref}' is ambiguous")
    return next(c for c in columns if c.id == matches[0])


def resolve_drop_target(state: BoardState, ref: str) -> Optional[str]:
    """
    Turn a user-typed drop target into a task or column ID.

    An exact column name wins, then task IDs, then column IDs. Returns None
    when nothing matches, which the reconciler treats as a cancelled drop.
    """
    name = ref.strip().lower()
    named = [c for c in state.columns if c.name.lower() == name]
    if len(named) == 1:
        return named[0].id
    try:
        return resolve_task_ref(state.tasks, ref).id
    except TaskNotFoundError:
        pass
    try:
        return resolve_column_ref(state.columns, ref).id
    except ColumnNotFoundError:
        return None


def move_task(
    membership: TeamMembership, task_ref: str, target_ref: str, config=None
) -> Union[NoOp, Move]:
    """
    One-shot move: load the board, apply the drag event, persist, discard the cache.

    Raises:
        TaskNotFoundError / InvalidInputError: If task_ref doesn't resolve
        PlacementWriteError: If saving failed
    """
    with open_board(membership, config=config) as state:
        task = resolve_task_ref(state.tasks, task_ref)
        over_id = resolve_drop_target(state, target_ref)
        return state.move(task.id, over_id)
