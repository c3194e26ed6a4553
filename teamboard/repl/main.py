"""
FILE: teamboard/repl/main.py
PURPOSE: Interactive REPL holding a live board cache for one team
EXPORTS:
  - REPLContext (dataclass) / repl_context (session instance)
  - execute_command(result) -> bool
  - run_repl() - Main REPL loop
  - main() - Entry point for REPL mode
DEPENDENCIES:
  - prompt_toolkit (REPL interface, history, completion)
  - rich (formatted output)
  - teamboard.core.service (business logic)
  - teamboard.core.board_state (BoardState cache)
  - teamboard.repl.parser, teamboard.repl.completer
NOTES:
  - The session's BoardState is the view's cache: board/mv/show read it,
    moves update it optimistically, refresh reloads it from the store
  - Falls back to plain input() when stdin/stdout isn't a TTY
  - Ctrl+D or "exit"/"quit" to exit; the board cache is closed on exit
"""

import logging
import sys
from dataclasses import dataclass
from typing import Optional

from prompt_toolkit import PromptSession
from prompt_toolkit.history import InMemoryHistory
from prompt_toolkit.formatted_text import HTML
from rich.console import Console

from ..config import Config, get_config
from ..core import service
from ..core.board_state import BoardState, SessionState
from ..core.models import Team, TeamMembership
from ..core.exceptions import TeamboardError, BoardNotFoundError
from ..utils import configure_logging
from .parser import parse_command, ParseResult
from .completer import create_completer

logger = logging.getLogger(__name__)

# Rich console for formatted output
console = Console()


# --- REPL Context (Persistent State) ---


@dataclass
class REPLContext:
    """
    Persistent context for the REPL session.

    Attributes:
        config: Loaded configuration (acting user, write policy)
        team: Team in use (or None)
        membership: The user's membership in that team
        board: Cached board state for the team's board (None until it exists)
    """
    config: Optional[Config] = None
    team: Optional[Team] = None
    membership: Optional[TeamMembership] = None
    board: Optional[BoardState] = None

    @property
    def user(self) -> str:
        if self.config is None:
            self.config = get_config()
        return self.config.user

    def get_prompt(self) -> str:
        """Prompt like "teamboard> " or "teamboard:[Platform]> "."""
        if self.team:
            return f"teamboard:[{self.team.name}]> "
        return "teamboard> "

    def use_team(self, team: Team, membership: TeamMembership) -> None:
        """Switch team, discarding the previous board cache."""
        self.close_board()
        self.team = team
        self.membership = membership
        try:
            self.board = service.open_board(membership, config=self.config)
        except BoardNotFoundError:
            self.board = None

    def close_board(self) -> None:
        if self.board is not None:
            self.board.close()
            self.board = None

    def reset(self) -> None:
        self.close_board()
        self.team = None
        self.membership = None


# Global REPL context (persists during session, resets on restart)
repl_context = REPLContext()


def format_prompt() -> HTML:
    if repl_context.team:
        return HTML(f"<b>teamboard:[<cyan>{repl_context.team.name}</cyan>]&gt; </b>")
    return HTML("<b>teamboard&gt; </b>")


def get_bottom_toolbar() -> HTML:
    """Toolbar with task count and save status of the cached board."""
    state = repl_context.board
    if state is None:
        return HTML("<style bg='#444444' fg='#ffffff'> No board - 'use &lt;team&gt;' to pick one </style>")

    status = "saving..." if state.state is SessionState.PERSISTING else "saved"
    text = f"{len(state.columns)} columns | {len(state.tasks)} tasks | {status}"
    return HTML(f"<style bg='#444444' fg='#ffffff'> {text} </style>")


# Import command handlers from command modules
from .commands import (  # noqa: E402
    handle_use_command,
    handle_board_command,
    handle_refresh_command,
    handle_add_command,
    handle_mv_command,
    handle_show_command,
    handle_help_command,
    handle_clear_command,
)


def execute_command(result: ParseResult) -> bool:
    """
    Execute a parsed command.

    Returns:
        True to continue REPL loop, False to exit
    """
    command = result.command.lower()

    if command in ("exit", "quit"):
        console.print("[dim]Goodbye![/dim]")
        return False

    if not command:
        return True

    handlers = {
        "use": handle_use_command,
        "board": handle_board_command,
        "ls": handle_board_command,
        "refresh": handle_refresh_command,
        "add": handle_add_command,
        "mv": handle_mv_command,
        "show": handle_show_command,
        "help": handle_help_command,
        "clear": handle_clear_command,
    }

    handler = handlers.get(command)
    if handler:
        try:
            handler(result)
        except TeamboardError as e:
            console.print(f"[red]Error:[/red] {e}")
        console.print()
    else:
        console.print(f"[red]Unknown command:[/red] {command}")
        console.print("[dim]Type 'help' for available commands[/dim]")
        console.print()

    return True


def _auto_select_team() -> None:
    """Open the user's default (or only) team, if there is one."""
    config = repl_context.config
    try:
        membership = service.resolve_membership(config.user, config.team or None)
    except TeamboardError as e:
        logger.debug("No default team: %s", e)
        return
    repl_context.use_team(service.get_team(membership.team_id), membership)


def run_repl() -> None:
    """
    Main REPL loop.

    Exits on Ctrl+D (EOFError) or "exit"/"quit". Ctrl+C cancels the
    current line only.
    """
    repl_context.config = get_config()
    configure_logging(repl_context.config.log_level)

    has_tty = sys.stdin.isatty() and sys.stdout.isatty()
    session = None
    use_simple_input = not has_tty

    if has_tty:
        try:
            session = PromptSession(
                history=InMemoryHistory(),
                completer=create_completer(repl_context),
                complete_while_typing=True,
                bottom_toolbar=get_bottom_toolbar,
            )
        except Exception as e:
            console.print(f"[yellow]Warning:[/yellow] Running in simple input mode: {e}")
            use_simple_input = True

    console.print("[bold cyan]Teamboard REPL[/bold cyan] - Type 'help' for commands, 'exit' to quit")
    if use_simple_input:
        console.print("[dim](Running in simple mode - no autocomplete)[/dim]")

    try:
        _auto_select_team()
    except TeamboardError as e:
        console.print(f"[yellow]Could not open board:[/yellow] {e}")
    if repl_context.team:
        console.print(f"[dim]Using team[/dim] [cyan]{repl_context.team.name}[/cyan]")
    console.print()

    try:
        while True:
            try:
                if use_simple_input or session is None:
                    user_input = input(repl_context.get_prompt())
                else:
                    user_input = session.prompt(format_prompt())

                if not execute_command(parse_command(user_input)):
                    break

            except KeyboardInterrupt:
                console.print("[dim]^C (Press Ctrl+D or type 'exit' to quit)[/dim]")
                continue
            except EOFError:
                console.print()
                console.print("[dim]Goodbye![/dim]")
                break
    finally:
        repl_context.reset()


def main() -> None:
    """
    Entry point for REPL mode.

    Called when user runs: teamboard repl (or just teamboard)
    """
    try:
        run_repl()
    except Exception as e:
        console.print(f"[red]Fatal error:[/red] {e}")
        sys.exit(1)
