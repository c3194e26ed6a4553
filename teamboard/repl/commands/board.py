"""
FILE: teamboard/repl/commands/board.py
PURPOSE: Board command handlers for REPL (use, board, refresh, add, mv, show)
"""

import logging
from concurrent.futures import Future
from typing import Optional

from ..main import console, repl_context
from ..parser import ParseResult
from ...core import service
from ...core.board_state import BoardState
from ...core.constants import DEFAULT_TASK_TYPE
from ...core.reconciler import NoOp
from ...core.exceptions import (
    FetchError,
    MoveInFlightError,
    PlacementWriteError,
)
from ...formatting import BoardFormatter, TaskFormatter, short_id
from ...utils import group_by_column

logger = logging.getLogger(__name__)


def _require_board() -> Optional[BoardState]:
    if repl_context.board is None:
        if repl_context.team is None:
            console.print("[red]Error:[/red] No team selected")
            console.print("[dim]Usage: use <team>[/dim]")
        else:
            console.print(f"[red]Error:[/red] Team {repl_context.team.name} has no board yet")
        return None
    return repl_context.board


def _idle(state: BoardState) -> bool:
    # No reload while a move is still saving
    try:
        state.ensure_idle()
    except MoveInFlightError as e:
        console.print(f"[yellow]{e}[/yellow]")
        return False
    return True


def _render(state: BoardState) -> None:
    board_name = repl_context.team.name if repl_context.team else "Board"
    console.print(BoardFormatter.create_table(board_name, state.columns, group_by_column(state)))
    orphaned = state.orphaned_tasks()
    if orphaned:
        console.print(f"[yellow]{len(orphaned)} task(s) belong to deleted columns[/yellow]")


def handle_use_command(result: ParseResult) -> None:
    """
    Handle 'use' command - switch team and load its board.

    Usage:
        use Platform
        use            (show current team)
    """
    if not result.args:
        if repl_context.team:
            console.print(f"Current team: [cyan]{repl_context.team.name}[/cyan]")
        else:
            console.print("[dim]No team selected[/dim]")
        return

    name = " ".join(result.args)
    team = service.find_team_by_name_or_raise(name)
    membership = service.require_active_membership(repl_context.user, team.id)
    try:
        repl_context.use_team(team, membership)
    except FetchError as e:
        console.print(f"[red]Could not load board:[/red] {e}")
        return

    console.print(f"✓ Using team [cyan]{team.name}[/cyan]")
    if repl_context.board is None:
        console.print("[dim]This team has no board yet ('teamboard board create')[/dim]")


def handle_board_command(result: ParseResult) -> None:
    """
    Handle 'board' command - render the cached board (no reload).

    Usage:
        board
        board --raw
    """
    state = _require_board()
    if state is None:
        return

    if result.flag("raw"):
        for line in BoardFormatter.to_raw_lines(state.columns, group_by_column(state)):
            console.print(line, highlight=False, markup=False)
        return
    _render(state)


def handle_refresh_command(result: ParseResult) -> None:
    """Handle 'refresh' command - reload the board from storage."""
    state = _require_board()
    if state is None:
        return
    if not _idle(state):
        return
    try:
        state.load()
    except FetchError as e:
        console.print(f"[red]Could not load board:[/red] {e}")
        return
    console.print(f"✓ Reloaded {len(state.tasks)} task(s)")


def handle_add_command(result: ParseResult) -> None:
    """
    Handle 'add' command - create a task and reload the cache.

    Usage:
        add "Fix login redirect" --type Bug --column "In Progress"
    """
    state = _require_board()
    if state is None or not _idle(state):
        return
    if not result.args:
        console.print("[red]Error:[/red] Task title required")
        console.print("[dim]Usage: add <title> [--column NAME] [--type Bug|Feature|Story][/dim]")
        return

    column_id = None
    column_ref = result.flag("column")
    if isinstance(column_ref, str):
        column_id = service.resolve_column_ref(state.columns, column_ref).id

    task_type = result.flag("type")
    task = service.create_task(
        repl_context.membership,
        state.board_id,
        " ".join(result.args),
        column_id=column_id,
        task_type=task_type if isinstance(task_type, str) else DEFAULT_TASK_TYPE,
    )
    state.load()
    console.print(f"[green]✓ Created task [bold]{short_id(task.id)}[/bold]:[/green] {task.title}")


def _report_background(future: Future) -> None:
    error = future.exception()
    if isinstance(error, PlacementWriteError):
        logger.error("Background move not saved: %s", error)
    elif error is not None:
        logger.error("Background move failed: %s", error)


def handle_mv_command(result: ParseResult) -> None:
    """
    Handle 'mv' command - drag a task onto a task slot or a column.

    Usage:
        mv <task> <task|column>
        mv <task> <task|column> --bg     (save in background)
    """
    state = _require_board()
    if state is None:
        return
    if len(result.args) < 2:
        console.print("[red]Error:[/red] Task and drop target required")
        console.print("[dim]Usage: mv <task> <task|column> [--bg][/dim]")
        return

    task = service.resolve_task_ref(state.tasks, result.args[0])
    over_id = service.resolve_drop_target(state, " ".join(result.args[1:]))
    background = bool(result.flag("bg"))

    try:
        outcome = state.move(task.id, over_id, wait=not background)
    except MoveInFlightError as e:
        console.print(f"[yellow]{e}[/yellow]")
        return
    except PlacementWriteError as e:
        console.print(f"[red]Move not saved:[/red] {e}")
        console.print("[dim]Board reloaded from storage.[/dim]")
        return

    if isinstance(outcome, NoOp):
        console.print(f"[dim]Nothing to move ({outcome.reason})[/dim]")
        return

    if isinstance(outcome, Future):
        outcome.add_done_callback(_report_background)
        console.print(f"[green]✓ Moved[/green] {task.title} [dim](saving in background)[/dim]")
        return

    console.print(f"[green]✓ Moved[/green] {task.title} [dim]({len(outcome.changed)} saved)[/dim]")


def handle_show_command(result: ParseResult) -> None:
    """
    Handle 'show' command - full details of a cached task.

    Usage:
        show <task>
    """
    state = _require_board()
    if state is None:
        return
    if not result.args:
        console.print("[red]Error:[/red] Task ID required")
        return

    task = service.resolve_task_ref(state.tasks, result.args[0])
    names = {c.id: c.name for c in state.columns}
    console.print(TaskFormatter.create_panel(task, names.get(task.column_id, "(deleted column)")))
