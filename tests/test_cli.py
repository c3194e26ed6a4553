"""
Test suite for the Typer CLI.

Each test runs `python -m teamboard` in a subprocess against a temporary
TEAMBOARD_HOME, as alice unless stated otherwise.
"""

import pytest

from conftest import run_cli


def _raw_board(home, user="alice"):
    """Parse `board show --raw` into {column: [(position, short_id, title)]}."""
    result = run_cli(home, "board", "show", "--raw", user=user)
    assert result.returncode == 0, result.stderr
    board, current = {}, None
    for line in result.stdout.splitlines():
        if line.endswith(":") and not line.startswith(" "):
            current = line[:-1]
            board[current] = []
        elif line.strip() and current is not None:
            position, short, title = line.split(maxsplit=2)
            board[current].append((int(position), short, title))
    return board


def _short_id(board, title):
    for tasks in board.values():
        for _, short, task_title in tasks:
            if task_title == title:
                return short
    raise AssertionError(f"{title} not on board")


@pytest.fixture
def home(tmp_path):
    for args in (
        ("team", "create", "Platform", "--description", "Infra"),
        ("board", "create", "Sprint board", "Work for the sprint"),
        ("task", "add", "T1"),
        ("task", "add", "T2"),
        ("task", "add", "T3", "--column", "Done"),
    ):
        result = run_cli(tmp_path, *args)
        assert result.returncode == 0, result.stderr
    return tmp_path


def test_version(tmp_path):
    result = run_cli(tmp_path, "version")

    assert "Teamboard v" in result.stdout
    assert result.returncode == 0


def test_board_show_raw(home):
    board = _raw_board(home)

    assert list(board) == ["To Do", "In Progress", "Done"]
    assert [(p, t) for p, _, t in board["To Do"]] == [(0, "T1"), (1, "T2")]
    assert [(p, t) for p, _, t in board["Done"]] == [(0, "T3")]


def test_board_show_json(home):
    result = run_cli(home, "board", "show", "--json")

    assert result.returncode == 0
    assert '"name": "In Progress"' in result.stdout
    assert '"orphaned": []' in result.stdout


def test_mv_onto_task(home):
    board = _raw_board(home)

    result = run_cli(home, "mv", _short_id(board, "T1"), _short_id(board, "T3"))

    assert result.returncode == 0, result.stderr
    assert "Moved" in result.stdout
    assert "3 task(s) repositioned" in result.stdout

    after = _raw_board(home)
    assert [(p, t) for p, _, t in after["To Do"]] == [(0, "T2")]
    assert [(p, t) for p, _, t in after["Done"]] == [(0, "T1"), (1, "T3")]


def test_mv_onto_column_name(home):
    board = _raw_board(home)

    result = run_cli(home, "mv", _short_id(board, "T2"), "In Progress")

    assert result.returncode == 0
    after = _raw_board(home)
    assert [t for _, _, t in after["In Progress"]] == ["T2"]


def test_mv_same_slot_is_noop(home):
    board = _raw_board(home)
    short = _short_id(board, "T1")

    result = run_cli(home, "mv", short, short)

    assert result.returncode == 0
    assert "Nothing to move" in result.stdout


def test_mv_unknown_task(home):
    result = run_cli(home, "mv", "zzzz", "Done")

    assert result.returncode == 1
    assert "Error" in result.stderr


def test_task_add_validation_error(home):
    result = run_cli(home, "task", "add", "Bad", "--type", "Epic")

    assert result.returncode == 1
    assert "Invalid type" in result.stderr


def test_task_add_json(home):
    result = run_cli(home, "task", "add", "JSON task", "--type", "bug", "--json")

    assert result.returncode == 0
    assert '"title": "JSON task"' in result.stdout
    assert '"type": "Bug"' in result.stdout


def test_task_edit_and_rm(home):
    short = _short_id(_raw_board(home), "T2")

    edited = run_cli(home, "task", "edit", short, "--title", "T2 renamed", "--estimate", "3")
    assert edited.returncode == 0, edited.stderr

    shown = run_cli(home, "task", "show", short, "--json")
    assert '"title": "T2 renamed"' in shown.stdout
    assert '"estimation": 3.0' in shown.stdout

    removed = run_cli(home, "task", "rm", short)
    assert removed.returncode == 0
    assert "T2 renamed" not in run_cli(home, "board", "show", "--raw").stdout


def test_column_management(home):
    assert run_cli(home, "column", "add", "Review").returncode == 0
    assert run_cli(home, "column", "rename", "Review", "QA").returncode == 0
    moved = run_cli(home, "column", "mv", "QA", "To Do")
    assert "QA | To Do | In Progress | Done" in moved.stdout

    listing = run_cli(home, "column", "ls", "--json")
    assert '"name": "QA"' in listing.stdout


def test_column_rm_leaves_orphans(home):
    result = run_cli(home, "column", "rm", "Done")
    assert result.returncode == 0

    shown = run_cli(home, "board", "show")
    assert "belong to deleted columns" in shown.stdout

    as_json = run_cli(home, "board", "show", "--json")
    assert '"title": "T3"' in as_json.stdout


def test_membership_flow(home):
    invite = run_cli(home, "team", "invite", "bob")
    assert invite.returncode == 0

    # Invited but not joined yet
    blocked = run_cli(home, "board", "show", "--team", "Platform", user="bob")
    assert blocked.returncode == 1

    joined = run_cli(home, "team", "join", "Platform", user="bob")
    assert joined.returncode == 0
    assert "T1" in run_cli(home, "board", "show", "--raw", user="bob").stdout

    # Members cannot manage columns
    denied = run_cli(home, "column", "add", "Review", user="bob")
    assert denied.returncode == 1
    assert "admins" in denied.stderr

    members = run_cli(home, "team", "members", "--json")
    assert '"user_id": "bob"' in members.stdout

    assert run_cli(home, "team", "remove", "bob").returncode == 0


def test_team_ls_json(home):
    result = run_cli(home, "team", "ls", "--json")

    assert result.returncode == 0
    assert '"name": "Platform"' in result.stdout


def test_team_edit(home):
    result = run_cli(home, "team", "edit", "--name", "Platform Core", "-d", "Infra and tooling")
    assert result.returncode == 0, result.stderr
    assert "Platform Core" in result.stdout

    listing = run_cli(home, "team", "ls", "--json")
    assert '"name": "Platform Core"' in listing.stdout

    nothing = run_cli(home, "team", "edit")
    assert nothing.returncode == 1
    assert "Nothing to change" in nothing.stderr


def test_team_edit_requires_admin(home):
    assert run_cli(home, "team", "invite", "bob").returncode == 0
    assert run_cli(home, "team", "join", "Platform", user="bob").returncode == 0

    denied = run_cli(home, "team", "edit", "--name", "Hijacked", user="bob")

    assert denied.returncode == 1
    assert "admins" in denied.stderr


def test_no_team_error(tmp_path):
    result = run_cli(tmp_path, "board", "show")

    assert result.returncode == 1
    assert "no teams" in result.stderr


def test_board_create_twice(home):
    result = run_cli(home, "board", "create", "Another", "Second board")

    assert result.returncode == 1
    assert "already has a board" in result.stderr
