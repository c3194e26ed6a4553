"""
FILE: teamboard/cli/commands/system.py
PURPOSE: System commands (version, repl)
"""

import typer

# Import shared objects from main module
# These will be available after main.py imports this module
from ..main import app, console, error_console, __version__


@app.command()
def version():
    """Show Teamboard version."""
    console.print(f"Teamboard v{__version__}")


@app.command()
def repl():
    """Launch the interactive REPL."""
    from ...repl import main as repl_main
    try:
        repl_main()
    except Exception as e:
        error_console.print(f"[red]Error starting REPL:[/red] {e}")
        raise typer.Exit(1)
