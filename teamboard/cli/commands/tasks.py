"""
FILE: teamboard/cli/commands/tasks.py
PURPOSE: Task commands (task add/show/edit/rm, mv)
"""

import json
from typing import Optional

import typer

from ..main import app, task_app, console, error_console, current_membership
from ...core import service
from ...core.constants import DEFAULT_TASK_TYPE
from ...core.reconciler import NoOp
from ...core.exceptions import (
    TeamboardError,
    TaskNotFoundError,
    ColumnNotFoundError,
    BoardNotFoundError,
    InvalidInputError,
    PermissionDeniedError,
    PlacementWriteError,
    FetchError,
)
from ...formatting import TaskFormatter, short_id

USER_ERRORS = (
    InvalidInputError,
    PermissionDeniedError,
    TaskNotFoundError,
    ColumnNotFoundError,
    BoardNotFoundError,
)


@task_app.command("add")
def task_add(
    title: str = typer.Argument(..., help="Task title"),
    column: Optional[str] = typer.Option(None, "--column", "-c", help="Column name or ID (default: first column)"),
    task_type: str = typer.Option(DEFAULT_TASK_TYPE, "--type", help="Bug, Feature or Story"),
    description: Optional[str] = typer.Option(None, "--desc", "-d", help="Description"),
    assigned_to: Optional[str] = typer.Option(None, "--assign", "-a", help="Assignee"),
    due_date: Optional[str] = typer.Option(None, "--due", help="Due date (YYYY-MM-DD)"),
    estimation: Optional[float] = typer.Option(None, "--estimate", "-e", help="Estimation"),
    team: Optional[str] = typer.Option(None, "--team", "-t", help="Team name"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """
    Create a task at the bottom of a column.

    Example:
        teamboard task add "Fix login redirect" --type Bug --column "In Progress"
    """
    try:
        membership = current_membership(team)
        board = service.get_team_board(membership)
        column_id = None
        if column:
            column_id = service.resolve_column_ref(service.list_columns(board.id), column).id

        task = service.create_task(
            membership,
            board.id,
            title,
            column_id=column_id,
            task_type=task_type,
            description=description,
            assigned_to=assigned_to,
            due_date=due_date,
            estimation=estimation,
        )

        if json_output:
            console.print(task.to_json())
        else:
            console.print(f"[green]✓ Created task [bold]{short_id(task.id)}[/bold]:[/green] {task.title}")

    except USER_ERRORS as e:
        error_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    except TeamboardError as e:
        error_console.print(f"[red]Unexpected error:[/red] {e}")
        raise typer.Exit(1)


@task_app.command("show")
def task_show(
    task_ref: str = typer.Argument(..., help="Task ID or prefix"),
    team: Optional[str] = typer.Option(None, "--team", "-t", help="Team name"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """View full task details."""
    try:
        with service.open_board(current_membership(team)) as state:
            task = service.resolve_task_ref(state.tasks, task_ref)
            names = {c.id: c.name for c in state.columns}
    except FetchError as e:
        error_console.print(f"[red]Could not load board:[/red] {e}")
        raise typer.Exit(1)
    except USER_ERRORS as e:
        error_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    if json_output:
        console.print(json.dumps(TaskFormatter.to_json_dict(task), indent=2))
    else:
        console.print(TaskFormatter.create_panel(task, names.get(task.column_id, "(deleted column)")))


@task_app.command("edit")
def task_edit(
    task_ref: str = typer.Argument(..., help="Task ID or prefix"),
    title: Optional[str] = typer.Option(None, "--title", help="New title"),
    task_type: Optional[str] = typer.Option(None, "--type", help="Bug, Feature or Story"),
    description: Optional[str] = typer.Option(None, "--desc", "-d", help="Description ('' clears)"),
    assigned_to: Optional[str] = typer.Option(None, "--assign", "-a", help="Assignee ('' clears)"),
    due_date: Optional[str] = typer.Option(None, "--due", help="Due date YYYY-MM-DD ('' clears)"),
    estimation: Optional[str] = typer.Option(None, "--estimate", "-e", help="Estimation ('' clears)"),
    team: Optional[str] = typer.Option(None, "--team", "-t", help="Team name"),
):
    """Update a task's details."""
    try:
        membership = current_membership(team)
        with service.open_board(membership) as state:
            task = service.resolve_task_ref(state.tasks, task_ref)
        updated = service.update_task(
            membership,
            task.id,
            title=title,
            description=description,
            task_type=task_type,
            assigned_to=assigned_to,
            due_date=due_date,
            estimation=estimation,
        )
        console.print(f"[green]✓ Updated task [bold]{short_id(updated.id)}[/bold]:[/green] {updated.title}")
    except USER_ERRORS as e:
        error_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    except TeamboardError as e:
        error_console.print(f"[red]Unexpected error:[/red] {e}")
        raise typer.Exit(1)


@task_app.command("rm")
def task_rm(
    task_ref: str = typer.Argument(..., help="Task ID or prefix"),
    team: Optional[str] = typer.Option(None, "--team", "-t", help="Team name"),
):
    """Delete a task."""
    try:
        membership = current_membership(team)
        with service.open_board(membership) as state:
            task = service.resolve_task_ref(state.tasks, task_ref)
        service.delete_task(membership, task.id)
        console.print(f"[green]✓ Deleted task[/green] {task.title}")
    except USER_ERRORS as e:
        error_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    except TeamboardError as e:
        error_console.print(f"[red]Unexpected error:[/red] {e}")
        raise typer.Exit(1)


@app.command()
def mv(
    task_ref: str = typer.Argument(..., help="Task to move (ID or prefix)"),
    target: str = typer.Argument(..., help="Task whose slot it takes, or a column (name or ID)"),
    team: Optional[str] = typer.Option(None, "--team", "-t", help="Team name"),
):
    """
    Drag a task onto another task's slot or onto a column.

    Dropping on a task takes that task's position; dropping on a column
    appends to it (when moving between columns).

    Example:
        teamboard mv 3fa1 9c2e
        teamboard mv 3fa1 Done
    """
    try:
        result = service.move_task(current_membership(team), task_ref, target)
    except PlacementWriteError as e:
        error_console.print(f"[red]Move not saved:[/red] {e}")
        error_console.print("[dim]The board was reloaded from storage.[/dim]")
        raise typer.Exit(1)
    except FetchError as e:
        error_console.print(f"[red]Could not load board:[/red] {e}")
        raise typer.Exit(1)
    except USER_ERRORS as e:
        error_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    except TeamboardError as e:
        error_console.print(f"[red]Unexpected error:[/red] {e}")
        raise typer.Exit(1)

    if isinstance(result, NoOp):
        console.print(f"[dim]Nothing to move ({result.reason})[/dim]")
        return

    console.print(f"[green]✓ Moved[/green] ({len(result.changed)} task(s) repositioned)")
