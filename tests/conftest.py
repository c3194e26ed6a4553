"""Shared pytest configuration and fixtures for tests."""

import io
import os
import subprocess
import sys
from pathlib import Path

import pytest

# Fix Windows console encoding
if sys.platform == "win32":
    sys.stdout = io.TextIOWrapper(sys.stdout.buffer, encoding='utf-8')
    sys.stderr = io.TextIOWrapper(sys.stderr.buffer, encoding='utf-8')

# Add project root to path for imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from teamboard.config import Config, reset_config  # noqa: E402
from teamboard.core import repository, service  # noqa: E402


# --- Test Fixtures ---

@pytest.fixture(autouse=True)
def temp_db(monkeypatch, tmp_path):
    """Use a temporary home directory and database for all tests."""
    monkeypatch.setenv("TEAMBOARD_HOME", str(tmp_path))
    monkeypatch.setenv("TEAMBOARD_USER", "alice")
    monkeypatch.delenv("TEAMBOARD_TEAM", raising=False)
    monkeypatch.delenv("TEAMBOARD_LOG_LEVEL", raising=False)

    db_path = tmp_path / "test_teamboard.db"
    monkeypatch.setattr(repository, "DB_PATH", db_path)
    reset_config()
    yield db_path
    reset_config()


@pytest.fixture
def fast_config(tmp_path):
    """Config with no retry delay."""
    return Config(db_path=str(tmp_path / "test_teamboard.db"), user="alice", retry_backoff=0.0)


@pytest.fixture
def admin():
    """alice's admin membership in team Platform."""
    _, membership = service.create_team("alice", "Platform", "Platform team")
    return membership


@pytest.fixture
def board(admin):
    """Platform's board with the default To Do / In Progress / Done columns."""
    return service.create_board(admin, "Sprint board", "Work for the current sprint")


@pytest.fixture
def columns(board):
    """Default columns keyed by name."""
    return {c.name: c for c in service.list_columns(board.id)}


# --- Subprocess helpers ---

def cli_env(home: Path, user: str = "alice") -> dict:
    env = dict(os.environ)
    env["TEAMBOARD_HOME"] = str(home)
    env["TEAMBOARD_USER"] = user
    env.pop("TEAMBOARD_TEAM", None)
    env["PYTHONIOENCODING"] = "utf-8"
    return env


def run_cli(home: Path, *args, user: str = "alice", **kwargs):
    """Run `python -m teamboard ...` against a temporary home directory."""
    kwargs.setdefault('capture_output', True)
    kwargs.setdefault('text', True)
    kwargs.setdefault('encoding', 'utf-8')
    kwargs.setdefault('errors', 'replace')
    kwargs.setdefault('cwd', str(project_root))
    kwargs.setdefault('env', cli_env(home, user))
    return subprocess.run([sys.executable, "-m", "teamboard", *args], **kwargs)
