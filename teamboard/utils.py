"""
FILE: teamboard/utils.py
PURPOSE: Shared helpers for CLI and REPL
EXPORTS:
  - configure_logging(level, console) -> None
  - group_by_column(state) -> Dict[str, List[Task]]
DEPENDENCIES:
  - logging (stdlib)
  - rich.logging (RichHandler)
  - teamboard.core.board_state
NOTES:
  - Log records go to stderr through rich so they don't mix with command output
"""

import logging
from typing import Dict, List, Optional

from rich.console import Console
from rich.logging import RichHandler

from .core.board_state import BoardState
from .core.models import Task


def configure_logging(level: str = "WARNING", console: Optional[Console] = None) -> None:
    """Install a RichHandler on the root logger (idempotent)."""
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.WARNING))

    for handler in root.handlers:
        if isinstance(handler, RichHandler):
            return

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    root.addHandler(handler)


def group_by_column(state: BoardState) -> Dict[str, List[Task]]:
    """Ordered tasks keyed by column ID, for every known column."""
    return {column.id: state.tasks_in(column.id) for column in state.columns}
