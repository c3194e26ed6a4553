"""
FILE: teamboard/repl/commands/system.py
PURPOSE: System command handlers for REPL
"""

from rich.panel import Panel

from ..main import console
from ..parser import ParseResult


def handle_help_command(result: ParseResult) -> None:
    """
    Handle 'help' command - show available commands.

    Args:
        result: Parsed command (unused)
    """
    help_text = """
[bold cyan]Available Commands:[/bold cyan]

  [cyan]use <team>[/cyan]                   Switch team and load its board
  [cyan]board[/cyan] or [cyan]ls [--raw][/cyan]          Show the cached board
  [cyan]refresh[/cyan]                      Reload the board from storage
  [cyan]add <title> [--column <name>] [--type <type>][/cyan]
                               Create a task (appended to the column)
  [cyan]mv <task> <task|column> [--bg][/cyan]
                               Drag a task onto another task's slot or a column
  [cyan]show <task>[/cyan]                  View full task details
  [cyan]help[/cyan]                         Show this help
  [cyan]clear[/cyan]                        Clear the screen
  [cyan]exit[/cyan] or [cyan]quit[/cyan]                Exit REPL

[bold cyan]Moving Tasks:[/bold cyan]

  [dim]Dropping on a task takes that task's slot; dropping on a column
  appends to the end of it. Tasks and columns can be referenced by an
  id prefix; columns also by name. --bg saves in the background while
  the board updates immediately.[/dim]

[bold cyan]Examples:[/bold cyan]

  [dim]use Platform
  add "Fix login redirect" --type Bug
  add "Write release notes" --column Done
  mv 3fa1 9c2e                # take task 9c2e's slot
  mv 3fa1 "In Progress"       # append to In Progress
  mv 3fa1 Done --bg
  show 3fa1[/dim]
"""
    console.print(Panel(help_text, title="Teamboard REPL Help", border_style="cyan"))


def handle_clear_command(result: ParseResult) -> None:
    """Clear the screen."""
    console.clear()
    console.print("[dim]Screen cleared[/dim]")
