"""
FILE: teamboard/core/exceptions.py
PURPOSE: Custom exception classes for error handling
EXPORTS:
  - TeamboardError (base exception)
  - TaskNotFoundError, ColumnNotFoundError, BoardNotFoundError, TeamNotFoundError
  - InvalidInputError
  - PermissionDeniedError
  - FetchError
  - PlacementWriteError, StaleWriteError
  - MoveInFlightError
DEPENDENCIES:
  - None (stdlib only)
NOTES:
  - All exceptions inherit from TeamboardError for easy catching
  - Service layer and board state raise these, UI layers catch and display
  - A drag event that changes nothing is a NoOp result, not an exception
"""

from typing import Iterable, Optional


class TeamboardError(Exception):
    """Base exception for all Teamboard errors."""
    pass


class TaskNotFoundError(TeamboardError):
    """Task with given ID doesn't exist."""

    def __init__(self, task_id: str):
        self.task_id = task_id
        super().__init__(f"Task {task_id} not found")


class ColumnNotFoundError(TeamboardError):
    """Column with given ID doesn't exist."""

    def __init__(self, column_id: str):
        self.column_id = column_id
        super().__init__(f"Column {column_id} not found")


class BoardNotFoundError(TeamboardError):
    """Board with given ID (or for given team) doesn't exist."""

    def __init__(self, board_id: str):
        self.board_id = board_id
        super().__init__(f"Board {board_id} not found")


class TeamNotFoundError(TeamboardError):
    """Team with given ID or name doesn't exist."""

    def __init__(self, team_id: str):
        self.team_id = team_id
        super().__init__(f"Team {team_id} not found")


class InvalidInputError(TeamboardError):
    """Input validation failed."""

    def __init__(self, message: str):
        super().__init__(message)


class PermissionDeniedError(TeamboardError):
    """The acting membership may not perform the operation."""

    def __init__(self, message: str):
        super().__init__(message)


class FetchError(TeamboardError):
    """Listing columns or tasks for a board failed."""

    def __init__(self, board_id: str, reason: str):
        self.board_id = board_id
        self.reason = reason
        super().__init__(f"Failed to load board {board_id}: {reason}")


class PlacementWriteError(TeamboardError):
    """One or more task placement writes failed after an optimistic reorder."""

    def __init__(self, failed_task_ids: Iterable[str], reason: Optional[str] = None):
        self.failed_task_ids = list(failed_task_ids)
        self.reason = reason
        message = f"Failed to save placement of task(s) {', '.join(self.failed_task_ids)}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class StaleWriteError(PlacementWriteError):
    """Task row changed since it was read (version mismatch)."""

    def __init__(self, task_id: str, expected_version: int, actual_version: int):
        self.task_id = task_id
        self.expected_version = expected_version
        self.actual_version = actual_version
        super().__init__(
            [task_id],
            f"expected version {expected_version}, found {actual_version}",
        )


class MoveInFlightError(TeamboardError):
    """A previous move on the same board is still being reconciled or saved."""

    def __init__(self, board_id: str, state: str):
        self.board_id = board_id
        self.state = state
        super().__init__(f"Board {board_id} is busy ({state}); try again once it is idle")
