"""
FILE: teamboard/repl/completer.py
PURPOSE: Autocomplete logic for REPL commands and arguments
EXPORTS:
  - TeamboardCompleter (Completer for command/arg completion)
  - create_completer(context) -> TeamboardCompleter
DEPENDENCIES:
  - prompt_toolkit.completion (Completer, Completion)
  - teamboard.core.service (team names for "use")
NOTES:
  - Task ids and column names come from the session's cached board,
    so completion never touches the database mid-typing
  - Suggests short task ids for mv/show, then column names for mv's target
  - Suggests column names after --column and task types after --type
  - Names with spaces are completed quoted
  - Case-insensitive matching
"""

import logging
import sqlite3
from typing import Iterable, List, Tuple

from prompt_toolkit.completion import Completer, Completion
from prompt_toolkit.document import Document

from ..core.constants import TASK_TYPES
from ..core.exceptions import TeamboardError

logger = logging.getLogger(__name__)


def _quoted(name: str) -> str:
    return f'"{name}"' if " " in name else name


class TeamboardCompleter(Completer):
    """
    Custom completer for the Teamboard REPL.

    Provides context-aware autocomplete:
    - Command names at start of input
    - Task ids / column names / team names as arguments
    - Flags and flag values after command names
    """

    COMMANDS = [
        "use", "board", "ls", "refresh", "add", "mv", "show",
        "help", "clear", "exit", "quit",
    ]

    COMMAND_FLAGS = {
        "board": ["--raw"],
        "ls": ["--raw"],
        "add": ["--column", "--type"],
        "mv": ["--bg"],
    }

    def __init__(self, context):
        self.context = context

    def get_completions(
        self, document: Document, complete_event
    ) -> Iterable[Completion]:
        """
        Generate completions based on current input.

        Logic:
            1. At start of input -> commands
            2. After --column / --type -> column names / task types
            3. use -> team names
            4. mv/show first arg -> task ids; mv second arg -> columns
            5. Otherwise, a trailing "--" -> flags
        """
        text_before_cursor = document.text_before_cursor
        words = text_before_cursor.split()
        at_space = text_before_cursor.endswith(" ")

        if not words or (not at_space and len(words) == 1):
            word = words[0] if words else ""
            yield from self._complete_commands(word)
            return

        command = words[0].lower()
        current = "" if at_space else words[-1]
        previous = words[-1] if at_space else (words[-2] if len(words) >= 2 else "")

        if previous == "--column":
            yield from self._complete_column_names(current)
            return
        if previous == "--type":
            yield from self._complete_values(TASK_TYPES, current, "Task type")
            return

        if current.startswith("--"):
            yield from self._complete_flags(command, current)
            return

        # Index of the argument being typed (1 = first argument)
        arg_index = len(words) if at_space else len(words) - 1

        if command == "use" and arg_index == 1:
            yield from self._complete_team_names(current)
            return

        if command in ("mv", "show") and arg_index == 1:
            yield from self._complete_task_ids(current)
            return

        if command == "mv" and arg_index == 2:
            yield from self._complete_column_names(current)
            yield from self._complete_task_ids(current)
            return

    def _complete_commands(self, word: str) -> Iterable[Completion]:
        word_lower = word.lower()
        for command in self.COMMANDS:
            if command.startswith(word_lower):
                yield Completion(
                    command,
                    start_position=-len(word),
                    display=command,
                    display_meta=self._get_command_description(command),
                )

    def _complete_flags(self, command: str, word: str) -> Iterable[Completion]:
        word_lower = word.lower()
        for flag in self.COMMAND_FLAGS.get(command, []):
            if flag.startswith(word_lower):
                yield Completion(flag, start_position=-len(word), display=flag)

    @staticmethod
    def _complete_values(values: Iterable[str], word: str, meta: str) -> Iterable[Completion]:
        word_lower = word.lower()
        for value in values:
            if value.lower().startswith(word_lower):
                yield Completion(value, start_position=-len(word), display=value, display_meta=meta)

    def _cached_columns(self) -> List[Tuple[str, str]]:
        state = self.context.board
        if state is None:
            return []
        return [(c.id, c.name) for c in state.columns]

    def _complete_column_names(self, word: str) -> Iterable[Completion]:
        """Complete column names (quoted when they contain spaces)."""
        word_stripped = word.strip('"').strip("'")
        word_lower = word_stripped.lower()
        for column_id, name in self._cached_columns():
            if name.lower().startswith(word_lower):
                yield Completion(
                    _quoted(name),
                    start_position=-len(word),
                    display=_quoted(name),
                    display_meta=f"Column {column_id[:8]}",
                )

    def _complete_task_ids(self, word: str) -> Iterable[Completion]:
        """
        Complete short task ids with the title and column as labels.
        """
        state = self.context.board
        if state is None:
            return
        names = dict(self._cached_columns())
        word_lower = word.lower()
        for task in state.tasks[:200]:  # cap for responsiveness
            short = task.id[:8]
            if short.startswith(word_lower):
                title = (task.title or "").strip()
                display_title = title if len(title) <= 40 else title[:37] + "..."
                column = names.get(task.column_id, "deleted column")
                yield Completion(
                    short,
                    start_position=-len(word),
                    display=short,
                    display_meta=f"{display_title} [{column}]",
                )

    def _complete_team_names(self, word: str) -> Iterable[Completion]:
        from ..core import service

        word_stripped = word.strip('"').strip("'")
        word_lower = word_stripped.lower()
        try:
            teams = service.list_teams(self.context.user)
        except (TeamboardError, sqlite3.Error) as e:
            logger.debug("Team completion unavailable: %s", e)
            return

        for team in teams:
            if team.name.lower().startswith(word_lower):
                yield Completion(
                    _quoted(team.name),
                    start_position=-len(word),
                    display=_quoted(team.name),
                    display_meta="Team",
                )

    @staticmethod
    def _get_command_description(command: str) -> str:
        """Get description for a command (shown in autocomplete menu)."""
        descriptions = {
            "use": "Switch team",
            "board": "Show the board",
            "ls": "Show the board",
            "refresh": "Reload the board",
            "add": "Create a new task",
            "mv": "Move task onto a task or column",
            "show": "View full task details",
            "help": "Show available commands",
            "clear": "Clear the screen",
            "exit": "Exit REPL",
            "quit": "Exit REPL",
        }
        return descriptions.get(command, "")


def create_completer(context) -> TeamboardCompleter:
    """
    Create a completer bound to a REPL session context.

    Usage:
        completer = create_completer(repl_context)
        session = PromptSession(completer=completer)
    """
    return TeamboardCompleter(context)
