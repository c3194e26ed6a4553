"""
FILE: teamboard/cli/commands/boards.py
PURPOSE: Board and column commands (board create/show, column ls/add/rename/rm/mv)
"""

import json
from typing import Optional

import typer

from ..main import board_app, column_app, console, error_console, current_membership
from ...core import service
from ...core.exceptions import (
    TeamboardError,
    InvalidInputError,
    PermissionDeniedError,
    BoardNotFoundError,
    ColumnNotFoundError,
    FetchError,
)
from ...formatting import BoardFormatter, short_id
from ...utils import group_by_column


@board_app.command("create")
def board_create(
    name: str = typer.Argument(..., help="Board name (3+ characters)"),
    description: str = typer.Argument(..., help="Board description (5+ characters)"),
    team: Optional[str] = typer.Option(None, "--team", "-t", help="Team name"),
):
    """
    Create the team's board with To Do / In Progress / Done columns.

    Example:
        teamboard board create "Sprint board" "Work for the current sprint"
    """
    try:
        board = service.create_board(current_membership(team), name, description)
        console.print(f"[green]✓ Created board[/green] [bold]{board.name}[/bold]")
    except (InvalidInputError, PermissionDeniedError) as e:
        error_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    except TeamboardError as e:
        error_console.print(f"[red]Unexpected error:[/red] {e}")
        raise typer.Exit(1)


@board_app.command("show")
def board_show(
    team: Optional[str] = typer.Option(None, "--team", "-t", help="Team name"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    raw: bool = typer.Option(False, "--raw", help="Plain text output (no colors)"),
):
    """Show the board with its columns and tasks."""
    try:
        membership = current_membership(team)
        board = service.get_team_board(membership)
        with service.open_board(membership) as state:
            grouped = group_by_column(state)
            orphaned = state.orphaned_tasks()
            columns = state.columns
    except FetchError as e:
        error_console.print(f"[red]Could not load board:[/red] {e}")
        raise typer.Exit(1)
    except (InvalidInputError, PermissionDeniedError, BoardNotFoundError) as e:
        error_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    if json_output:
        console.print(BoardFormatter.to_json(columns, grouped, orphaned))
    elif raw:
        for line in BoardFormatter.to_raw_lines(columns, grouped):
            console.print(line, highlight=False, markup=False)
    else:
        console.print(BoardFormatter.create_table(board.name, columns, grouped))
        if orphaned:
            console.print(f"[yellow]{len(orphaned)} task(s) belong to deleted columns[/yellow]")


def _board_columns(team: Optional[str]):
    membership = current_membership(team)
    board = service.get_team_board(membership)
    return membership, board, service.list_columns(board.id)


@column_app.command("ls")
def column_ls(
    team: Optional[str] = typer.Option(None, "--team", "-t", help="Team name"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """List the board's columns in order."""
    try:
        _, _, columns = _board_columns(team)
    except (InvalidInputError, PermissionDeniedError, BoardNotFoundError) as e:
        error_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    if json_output:
        console.print(json.dumps(
            [{"id": c.id, "name": c.name, "position": c.position} for c in columns],
            indent=2,
        ))
        return
    for column in columns:
        console.print(f"  [cyan]{column.position}[/cyan] {column.name} [dim]{short_id(column.id)}[/dim]")


@column_app.command("add")
def column_add(
    name: str = typer.Argument(..., help="Column name"),
    team: Optional[str] = typer.Option(None, "--team", "-t", help="Team name"),
):
    """Append a column to the board."""
    try:
        membership, board, _ = _board_columns(team)
        column = service.add_column(membership, board.id, name)
        console.print(f"[green]✓ Added column[/green] {column.name} at position {column.position}")
    except (InvalidInputError, PermissionDeniedError, BoardNotFoundError) as e:
        error_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)


@column_app.command("rename")
def column_rename(
    column: str = typer.Argument(..., help="Column name or ID"),
    name: str = typer.Argument(..., help="New name"),
    team: Optional[str] = typer.Option(None, "--team", "-t", help="Team name"),
):
    """Rename a column."""
    try:
        membership, board, columns = _board_columns(team)
        target = service.resolve_column_ref(columns, column)
        renamed = service.rename_column(membership, board.id, target.id, name)
        console.print(f"[green]✓ Renamed[/green] {target.name} → {renamed.name}")
    except (InvalidInputError, PermissionDeniedError, BoardNotFoundError, ColumnNotFoundError) as e:
        error_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)


@column_app.command("rm")
def column_rm(
    column: str = typer.Argument(..., help="Column name or ID"),
    team: Optional[str] = typer.Option(None, "--team", "-t", help="Team name"),
):
    """Delete a column. Its tasks stay on the board without a column."""
    try:
        membership, board, columns = _board_columns(team)
        target = service.resolve_column_ref(columns, column)
        service.remove_column(membership, board.id, target.id)
        console.print(f"[green]✓ Deleted column[/green] {target.name}")
    except (InvalidInputError, PermissionDeniedError, BoardNotFoundError, ColumnNotFoundError) as e:
        error_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)


@column_app.command("mv")
def column_mv(
    column: str = typer.Argument(..., help="Column to move (name or ID)"),
    over: str = typer.Argument(..., help="Column whose slot it takes (name or ID)"),
    team: Optional[str] = typer.Option(None, "--team", "-t", help="Team name"),
):
    """
    Move a column to another column's slot.

    Example:
        teamboard column mv Done "To Do"
    """
    try:
        membership, board, columns = _board_columns(team)
        active = service.resolve_column_ref(columns, column)
        target = service.resolve_column_ref(columns, over)
        reordered = service.reorder_column(membership, board.id, active.id, target.id)
        console.print("[green]✓ Columns:[/green] " + " | ".join(c.name for c in reordered))
    except (InvalidInputError, PermissionDeniedError, BoardNotFoundError, ColumnNotFoundError) as e:
        error_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
