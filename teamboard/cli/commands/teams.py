"""
FILE: teamboard/cli/commands/teams.py
PURPOSE: Team commands (create, ls, edit, invite, join, members, remove)
"""

import json
from typing import Optional

import typer
from rich.table import Table

from ..main import team_app, console, error_console, current_membership
from ...config import get_config
from ...core import service
from ...core.constants import ROLE_USER
from ...core.exceptions import (
    TeamboardError,
    InvalidInputError,
    PermissionDeniedError,
)
from ...formatting import members_table


@team_app.command("create")
def team_create(
    name: str = typer.Argument(..., help="Team name"),
    description: Optional[str] = typer.Option(None, "--description", "-d", help="Team description"),
):
    """
    Create a team; you become its admin.

    Example:
        teamboard team create "Platform"
    """
    try:
        team, _ = service.create_team(get_config().user, name, description)
        console.print(f"[green]✓ Created team[/green] [bold]{team.name}[/bold]")
    except InvalidInputError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    except TeamboardError as e:
        error_console.print(f"[red]Unexpected error:[/red] {e}")
        raise typer.Exit(1)


@team_app.command("ls")
def team_ls(
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    raw: bool = typer.Option(False, "--raw", help="Plain text output (no colors)"),
):
    """List your teams."""
    user = get_config().user
    teams = service.list_teams(user)

    if json_output:
        console.print(json.dumps([{"id": t.id, "name": t.name} for t in teams], indent=2))
        return
    if raw:
        for team in teams:
            console.print(f"{team.id}: {team.name}")
        return
    if not teams:
        console.print("[dim]No teams found[/dim]")
        return

    table = Table(title="Teams", header_style="bold cyan")
    table.add_column("Name", style="white")
    table.add_column("Description", style="dim")
    for team in teams:
        table.add_row(team.name, team.description or "")
    console.print(table)


@team_app.command("invite")
def team_invite(
    user_id: str = typer.Argument(..., help="User to invite"),
    role: str = typer.Option(ROLE_USER, "--role", "-r", help="Admin or User"),
    team: Optional[str] = typer.Option(None, "--team", "-t", help="Team name"),
):
    """Invite a user to the team (admins only)."""
    try:
        membership = current_membership(team)
        invited = service.add_member(membership, user_id, role)
        console.print(f"[green]✓ Invited[/green] {invited.user_id} as {invited.role}")
    except (InvalidInputError, PermissionDeniedError) as e:
        error_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    except TeamboardError as e:
        error_console.print(f"[red]Unexpected error:[/red] {e}")
        raise typer.Exit(1)


@team_app.command("join")
def team_join(team: str = typer.Argument(..., help="Team name")):
    """Accept an invitation to a team."""
    try:
        found = service.find_team_by_name_or_raise(team)
        service.join_team(get_config().user, found.id)
        console.print(f"[green]✓ Joined[/green] [bold]{found.name}[/bold]")
    except (InvalidInputError, PermissionDeniedError) as e:
        error_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)


@team_app.command("members")
def team_members(
    team: Optional[str] = typer.Option(None, "--team", "-t", help="Team name"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """List team members."""
    try:
        members = service.list_members(current_membership(team))
    except (InvalidInputError, PermissionDeniedError) as e:
        error_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    if json_output:
        console.print(json.dumps(
            [{"user_id": m.user_id, "role": m.role, "status": m.status} for m in members],
            indent=2,
        ))
    else:
        console.print(members_table(members))


@team_app.command("remove")
def team_remove(
    user_id: str = typer.Argument(..., help="User to remove"),
    team: Optional[str] = typer.Option(None, "--team", "-t", help="Team name"),
):
    """Remove a member from the team (admins only)."""
    try:
        service.remove_member(current_membership(team), user_id)
        console.print(f"[green]✓ Removed[/green] {user_id}")
    except (InvalidInputError, PermissionDeniedError) as e:
        error_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)


@team_app.command("edit")
def team_edit(
    name: Optional[str] = typer.Option(None, "--name", "-n", help="New team name"),
    description: Optional[str] = typer.Option(None, "--description", "-d", help="New description (\"\" clears it)"),
    team: Optional[str] = typer.Option(None, "--team", "-t", help="Team name"),
):
    """
    Edit the team's name or description (admins only).

    Example:
        teamboard team edit --name "Platform Core" -d "Infra and tooling"
    """
    if name is None and description is None:
        error_console.print("[red]Error:[/red] Nothing to change; pass --name or --description")
        raise typer.Exit(1)

    try:
        updated = service.update_team(current_membership(team), name, description)
        console.print(f"[green]✓ Updated team[/green] [bold]{updated.name}[/bold]")
    except (InvalidInputError, PermissionDeniedError) as e:
        error_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
