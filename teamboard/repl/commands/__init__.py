"""
FILE: teamboard/repl/commands/__init__.py
PURPOSE: REPL command handler modules
"""

from .board import (
    handle_use_command,
    handle_board_command,
    handle_refresh_command,
    handle_add_command,
    handle_mv_command,
    handle_show_command,
)
from .system import (
    handle_help_command,
    handle_clear_command,
)

__all__ = [
    "handle_use_command",
    "handle_board_command",
    "handle_refresh_command",
    "handle_add_command",
    "handle_mv_command",
    "handle_show_command",
    "handle_help_command",
    "handle_clear_command",
]
