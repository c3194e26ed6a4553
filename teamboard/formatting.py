"""
FILE: teamboard/formatting.py
PURPOSE: Shared formatting utilities for CLI and REPL output
EXPORTS:
  - short_id(id) -> str
  - BoardFormatter: Board rendering (Kanban table, JSON, raw lines)
  - TaskFormatter: Task rendering (detail panel, JSON)
DEPENDENCIES:
  - rich (tables and panels)
  - json (serialization)
  - teamboard.core.models
NOTES:
  - Centralized formatting logic for consistency
  - Used by both CLI and REPL
  - IDs are shown shortened; any unique prefix is accepted as input
"""

import json
from typing import Dict, Any, List

from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .core.models import Column, Task, TeamMembership

SHORT_ID_LENGTH = 8

TYPE_STYLES = {
    "Bug": "red",
    "Feature": "green",
    "Story": "blue",
}


def short_id(value: str) -> str:
    return value[:SHORT_ID_LENGTH]


def _card(task: Task) -> Text:
    style = TYPE_STYLES.get(task.type, "white")
    card = Text()
    card.append(short_id(task.id), style="cyan")
    card.append(" ")
    card.append(task.title, style="bold")
    card.append(f"\n{task.type}", style=style)
    if task.assigned_to:
        card.append(f" @{task.assigned_to}", style="yellow")
    if task.due_date:
        card.append(f" due {task.due_date}", style="dim")
    return card


class BoardFormatter:
    """Kanban board display formatting."""

    @staticmethod
    def create_table(
        title: str,
        columns: List[Column],
        tasks_by_column: Dict[str, List[Task]],
    ) -> Table:
        """
        Create a Rich table with one table column per board column.

        Args:
            title: Table title (board name)
            columns: Board columns in display order
            tasks_by_column: Ordered tasks keyed by column ID

        Returns:
            Rich Table object ready for display
        """
        table = Table(title=title, show_header=True, header_style="bold cyan", show_lines=True)
        for column in columns:
            count = len(tasks_by_column.get(column.id, []))
            table.add_column(f"{column.name} ({count})", vertical="top", ratio=1)

        if not columns:
            return table

        depth = max((len(tasks_by_column.get(c.id, [])) for c in columns), default=0)
        for row in range(depth):
            cells = []
            for column in columns:
                column_tasks = tasks_by_column.get(column.id, [])
                cells.append(_card(column_tasks[row]) if row < len(column_tasks) else Text(""))
            table.add_row(*cells)

        return table

    @staticmethod
    def to_json(columns: List[Column], tasks_by_column: Dict[str, List[Task]], orphaned: List[Task]) -> str:
        """Serialize the board as columns with their ordered tasks."""
        data = {
            "columns": [
                {
                    "id": c.id,
                    "name": c.name,
                    "position": c.position,
                    "tasks": [t.to_dict() for t in tasks_by_column.get(c.id, [])],
                }
                for c in columns
            ],
            "orphaned": [t.to_dict() for t in orphaned],
        }
        return json.dumps(data, indent=2)

    @staticmethod
    def to_raw_lines(columns: List[Column], tasks_by_column: Dict[str, List[Task]]) -> List[str]:
        """One line per column header, then one indented line per task."""
        lines = []
        for column in columns:
            lines.append(f"{column.name}:")
            for task in tasks_by_column.get(column.id, []):
                lines.append(f"  {task.position} {short_id(task.id)} {task.title}")
        return lines


class TaskFormatter:
    """Single task display formatting."""

    @staticmethod
    def create_panel(task: Task, column_name: str) -> Panel:
        """Detail panel for one task."""
        lines = [
            f"[bold]{escape(task.title)}[/bold]",
            "",
            f"[dim]ID:[/dim]         {task.id}",
            f"[dim]Type:[/dim]       [{TYPE_STYLES.get(task.type, 'white')}]{task.type}[/]",
            f"[dim]Column:[/dim]     {escape(column_name)} (position {task.position})",
            f"[dim]Assignee:[/dim]   {task.assigned_to or '-'}",
            f"[dim]Due:[/dim]        {task.due_date or '-'}",
            f"[dim]Estimate:[/dim]   {task.estimation if task.estimation is not None else '-'}",
            f"[dim]Created by:[/dim] {task.created_by or '-'}",
        ]
        if task.description:
            lines += ["", escape(task.description)]
        return Panel("\n".join(lines), title=f"Task {short_id(task.id)}", expand=False)

    @staticmethod
    def to_json_dict(task: Task) -> Dict[str, Any]:
        return task.to_dict()


def members_table(memberships: List[TeamMembership]) -> Table:
    """Table of team members with role and status."""
    table = Table(title="Members", header_style="bold cyan")
    table.add_column("User", style="white")
    table.add_column("Role", style="magenta")
    table.add_column("Status", style="yellow")
    for m in memberships:
        table.add_row(m.user_id, m.role, m.status)
    return table
