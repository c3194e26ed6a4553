"""
FILE: teamboard/cli/main.py
PURPOSE: Typer-based CLI for one-shot board commands
EXPORTS:
  - app (Typer application)
  - team_app, board_app, column_app, task_app (sub-command groups)
  - main() (entry point)
  - current_membership(team) -> TeamMembership
DEPENDENCIES:
  - typer (CLI framework)
  - rich (formatted output)
  - teamboard.core.service (business logic)
  - teamboard.config (acting user, default team, log level)
  - teamboard.repl (interactive mode)
NOTES:
  - Listing commands support --json and --raw flags
  - Error messages go to stderr
  - Exit codes: 0=success, 1=error
  - Each command opens its own board cache and discards it on exit
"""

import sys
from typing import Optional

# Fix Windows console encoding for Unicode characters
if sys.platform == "win32":
    import io
    sys.stdout = io.TextIOWrapper(sys.stdout.buffer, encoding='utf-8')
    sys.stderr = io.TextIOWrapper(sys.stderr.buffer, encoding='utf-8')

import typer
from rich.console import Console

from .. import __version__
from ..config import get_config
from ..core import service
from ..core.models import TeamMembership
from ..utils import configure_logging

# Typer app setup
app = typer.Typer(
    name="teamboard",
    help="Team Kanban boards in the terminal",
    add_completion=False,
)

team_app = typer.Typer(name="team", help="Team and membership commands")
board_app = typer.Typer(name="board", help="Board commands")
column_app = typer.Typer(name="column", help="Column management commands (admins)")
task_app = typer.Typer(name="task", help="Task commands")
app.add_typer(team_app, name="team")
app.add_typer(board_app, name="board")
app.add_typer(column_app, name="column")
app.add_typer(task_app, name="task")

# Rich console for formatted output
console = Console()
error_console = Console(stderr=True)


def current_membership(team: Optional[str] = None) -> TeamMembership:
    """Membership of the configured user in the given (or default) team."""
    config = get_config()
    return service.resolve_membership(config.user, team or config.team or None)


@app.callback(invoke_without_command=True)
def default_command(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
):
    """
    Default callback - configures logging and launches the REPL when no
    command is specified.
    """
    config = get_config()
    configure_logging("DEBUG" if verbose else config.log_level, error_console)

    if ctx.invoked_subcommand is None:
        from ..repl import main as repl_main
        try:
            repl_main()
        except Exception as e:
            error_console.print(f"[red]Error starting REPL:[/red] {e}")
            raise typer.Exit(1)


# Import command modules to register commands with app
from .commands import (  # noqa: E402
    version,
    repl,
    team_create,
    team_ls,
    team_edit,
    team_invite,
    team_join,
    team_members,
    team_remove,
    board_create,
    board_show,
    column_ls,
    column_add,
    column_rename,
    column_rm,
    column_mv,
    task_add,
    task_show,
    task_edit,
    task_rm,
    mv,
)


def main():
    """Main entry point for CLI."""
    app()
