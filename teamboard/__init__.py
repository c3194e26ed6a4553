"""Teamboard - team Kanban boards in the terminal."""

__version__ = "0.1.0"
