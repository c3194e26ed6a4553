"""
Test suite for the REPL: parser, completer, and interactive sessions.

Interactive sessions are driven through stdin (no TTY), which runs the
REPL in simple input mode.
"""

import pytest
from prompt_toolkit.document import Document

from conftest import run_cli
from teamboard.core import repository, service
from teamboard.core.board_state import BoardState, SessionState
from teamboard.repl.commands import handle_add_command, handle_refresh_command
from teamboard.repl.completer import create_completer
from teamboard.repl.main import REPLContext, repl_context
from teamboard.repl.parser import parse_command


# --- Parser ---

def test_parse_simple_command():
    result = parse_command("board")
    assert result.command == "board"
    assert result.args == []
    assert result.flags == {}


def test_parse_quoted_arguments():
    result = parse_command('mv 3fa1 "In Progress"')
    assert result.command == "mv"
    assert result.args == ["3fa1", "In Progress"]


def test_parse_flags_with_and_without_values():
    result = parse_command('add "Fix login" --type Bug --column Done')
    assert result.args == ["Fix login"]
    assert result.flag("type") == "Bug"
    assert result.flag("column") == "Done"

    result = parse_command("mv 3fa1 9c2e --bg")
    assert result.args == ["3fa1", "9c2e"]
    assert result.flag("bg") is True
    assert result.flag("raw", False) is False


def test_parse_is_case_insensitive_for_commands():
    assert parse_command("MV a b").command == "mv"


def test_parse_empty_and_unclosed_quote():
    assert parse_command("   ").command == ""
    result = parse_command('add "unclosed title')
    assert result.command == "add"
    assert result.args == ['"unclosed', "title"]


# --- Completer ---

@pytest.fixture
def context(admin, board, columns):
    task = service.create_task(admin, board.id, "Fix login redirect")
    ctx = REPLContext()
    ctx.team = service.get_team(admin.team_id)
    ctx.membership = admin
    ctx.board = BoardState(board.id)
    ctx.board.load()
    yield ctx, task
    ctx.reset()


def _complete(completer, text):
    return [c.text for c in completer.get_completions(Document(text, cursor_position=len(text)), None)]


def test_command_completion():
    completer = create_completer(REPLContext())

    assert "mv" in _complete(completer, "m")
    assert "refresh" in _complete(completer, "re")
    assert set(_complete(completer, "")) >= {"use", "board", "add", "mv", "show", "exit"}


def test_completion_without_board_is_empty():
    completer = create_completer(REPLContext())
    assert _complete(completer, "mv ") == []


def test_task_id_completion(context):
    ctx, task = context
    completer = create_completer(ctx)

    assert _complete(completer, "mv ") == [task.id[:8]]
    assert _complete(completer, f"show {task.id[:3]}") == [task.id[:8]]


def test_mv_target_completes_columns_quoted(context):
    ctx, task = context
    completer = create_completer(ctx)

    suggestions = _complete(completer, f"mv {task.id[:8]} ")
    assert '"In Progress"' in suggestions
    assert "Done" in suggestions


def test_flag_and_flag_value_completion(context):
    ctx, _ = context
    completer = create_completer(ctx)

    assert _complete(completer, "add title --") == ["--column", "--type"]
    assert _complete(completer, "add title --type ") == ["Bug", "Feature", "Story"]
    assert _complete(completer, "add title --column D") == ["Done"]


def test_use_completes_team_names(context):
    ctx, _ = context
    completer = create_completer(ctx)

    assert _complete(completer, "use Pl") == ["Platform"]


# --- Command handlers ---

@pytest.fixture
def active_session(admin, board, columns):
    """The REPL's global context pointed at Platform's board."""
    repl_context.team = service.get_team(admin.team_id)
    repl_context.membership = admin
    repl_context.board = BoardState(board.id)
    repl_context.board.load()
    yield repl_context
    repl_context.reset()


def test_refresh_and_add_wait_for_background_save(active_session, board, capsys):
    state = active_session.board
    state.state = SessionState.PERSISTING

    handle_refresh_command(parse_command("refresh"))
    handle_add_command(parse_command('add "Later"'))

    assert capsys.readouterr().out.count("busy") == 2
    assert repository.list_tasks(board.id) == []

    state.state = SessionState.IDLE
    handle_add_command(parse_command('add "Later"'))

    assert "Created task" in capsys.readouterr().out
    assert [t.title for t in state.tasks] == ["Later"]


# --- Interactive sessions ---

def send_repl_commands(home, *commands, user="alice"):
    """Feed commands to a REPL subprocess and return its output."""
    return run_cli(home, input="\n".join(commands + ("exit",)) + "\n", user=user)


@pytest.fixture
def seeded_home(tmp_path):
    """A home directory with team Platform, its board, and one task."""
    for args in (
        ("team", "create", "Platform"),
        ("board", "create", "Sprint board", "Work for the sprint"),
        ("task", "add", "Write docs"),
    ):
        result = run_cli(tmp_path, *args)
        assert result.returncode == 0, result.stderr
    return tmp_path


def test_default_launches_repl(tmp_path):
    result = run_cli(tmp_path, input="exit\n")

    assert "Teamboard REPL" in result.stdout
    assert "Goodbye!" in result.stdout
    assert result.returncode == 0


def test_repl_exits_on_eof(tmp_path):
    result = run_cli(tmp_path, "repl", input="")
    assert "Goodbye!" in result.stdout
    assert result.returncode == 0


def test_repl_auto_selects_only_team(seeded_home):
    result = send_repl_commands(seeded_home, "board --raw")

    assert "Using team" in result.stdout
    assert "To Do:" in result.stdout
    assert "Write docs" in result.stdout


def test_repl_add_and_move_use_the_cache(seeded_home):
    result = send_repl_commands(
        seeded_home,
        'add "Ship release" --column Done',
        "board --raw",
    )
    assert "Created task" in result.stdout

    lines = result.stdout.splitlines()
    done_index = next(i for i, line in enumerate(lines) if line.strip().endswith("Done:"))
    assert "Ship release" in lines[done_index + 1]


def test_repl_move_to_column(seeded_home):
    show = run_cli(seeded_home, "board", "show", "--raw")
    task_line = next(line for line in show.stdout.splitlines() if "Write docs" in line)
    short = task_line.split()[1]

    result = send_repl_commands(seeded_home, f'mv {short} "In Progress"', "mv {0} {0}".format(short))

    assert "Moved" in result.stdout
    assert "Nothing to move" in result.stdout

    after = run_cli(seeded_home, "board", "show", "--raw")
    lines = after.stdout.splitlines()
    doing_index = lines.index("In Progress:")
    assert "Write docs" in lines[doing_index + 1]


def test_repl_unknown_command_and_errors_keep_running(seeded_home):
    result = send_repl_commands(seeded_home, "frobnicate", "show zzzz", "help")

    assert "Unknown command" in result.stdout
    assert "Error:" in result.stdout
    assert "Teamboard REPL Help" in result.stdout
    assert "Goodbye!" in result.stdout


def test_repl_without_team(tmp_path):
    result = send_repl_commands(tmp_path, "board")

    assert "No team selected" in result.stdout
    assert result.returncode == 0

