"""
FILE: teamboard/cli/commands/__init__.py
PURPOSE: CLI command modules
"""

# Export all command handlers for easy importing
from .teams import (
    team_create,
    team_ls,
    team_edit,
    team_invite,
    team_join,
    team_members,
    team_remove,
)
from .boards import (
    board_create,
    board_show,
    column_ls,
    column_add,
    column_rename,
    column_rm,
    column_mv,
)
from .tasks import (
    task_add,
    task_show,
    task_edit,
    task_rm,
    mv,
)
from .system import (
    version,
    repl,
)

__all__ = [
    "team_create",
    "team_ls",
    "team_edit",
    "team_invite",
    "team_join",
    "team_members",
    "team_remove",
    "board_create",
    "board_show",
    "column_ls",
    "column_add",
    "column_rename",
    "column_rm",
    "column_mv",
    "task_add",
    "task_show",
    "task_edit",
    "task_rm",
    "mv",
    "version",
    "repl",
]
