"""
FILE: teamboard/repl/__init__.py
PURPOSE: REPL package for interactive board sessions
EXPORTS:
  - main() (from repl.main)
NOTES:
  - One session holds one team's board in memory between commands
"""

from .main import main

__all__ = ["main"]
