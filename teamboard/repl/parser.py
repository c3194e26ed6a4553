"""
FILE: teamboard/repl/parser.py
PURPOSE: Parse user input into commands and arguments for REPL
EXPORTS:
  - ParseResult (dataclass for parsed commands)
  - parse_command(input_str) -> ParseResult
DEPENDENCIES:
  - shlex (shell-like parsing with quotes)
  - dataclasses, typing (stdlib)
NOTES:
  - Quoted strings are one argument: mv 3fa1 "In Progress"
  - Flags start with --; a flag followed by a non-flag token takes it as value
  - Command names are case-insensitive
"""

import shlex
from dataclasses import dataclass, field
from typing import Dict, List, Union


@dataclass
class ParseResult:
    """
    Result of parsing a REPL command.

    Attributes:
        command: The command name (e.g., "add", "mv", "board")
        args: Positional arguments
        flags: Flag arguments, e.g. {"column": "Done", "bg": True}
        raw_input: Original input string
    """
    command: str
    args: List[str] = field(default_factory=list)
    flags: Dict[str, Union[str, bool]] = field(default_factory=dict)
    raw_input: str = ""

    def flag(self, name: str, default=None):
        return self.flags.get(name, default)


def parse_command(input_str: str) -> ParseResult:
    """
    Parse REPL input into command, args, and flags.

    Examples:
        >>> parse_command('mv 3fa1 "In Progress"')
        ParseResult(command='mv', args=['3fa1', 'In Progress'], flags={}, ...)

        >>> parse_command('add "Fix login" --type Bug')
        ParseResult(command='add', args=['Fix login'], flags={'type': 'Bug'}, ...)

        >>> parse_command("mv 3fa1 9c2e --bg")
        ParseResult(command='mv', args=['3fa1', '9c2e'], flags={'bg': True}, ...)

    Empty input returns command="" with no args/flags. An unclosed quote
    falls back to whitespace splitting.
    """
    input_str = input_str.strip()
    if not input_str:
        return ParseResult(command="", raw_input=input_str)

    try:
        tokens = shlex.split(input_str)
    except ValueError:
        tokens = input_str.split()

    if not tokens:
        return ParseResult(command="", raw_input=input_str)

    command = tokens[0].lower()
    args: List[str] = []
    flags: Dict[str, Union[str, bool]] = {}

    i = 1
    while i < len(tokens):
        token = tokens[i]
        if token.startswith("--") and len(token) > 2:
            name = token[2:].lower()
            if i + 1 < len(tokens) and not tokens[i + 1].startswith("--"):
                flags[name] = tokens[i + 1]
                i += 2
            else:
                flags[name] = True
                i += 1
        else:
            args.append(token)
            i += 1

    return ParseResult(command=command, args=args, flags=flags, raw_input=input_str)
