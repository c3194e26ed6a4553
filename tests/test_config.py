"""Tests for YAML/environment configuration loading."""

from pathlib import Path

from teamboard.config import Config, get_config, get_home, reset_config


def test_defaults_without_file(tmp_path):
    config = get_config()

    assert get_home() == tmp_path
    assert Path(config.db_path) == tmp_path / "teamboard.db"
    assert config.user == "alice"
    assert config.write_workers == 8
    assert config.log_level == "WARNING"


def test_yaml_file_overrides_defaults(tmp_path, monkeypatch):
    monkeypatch.delenv("TEAMBOARD_USER")
    (tmp_path / "config.yaml").write_text(
        "user: bob\n"
        "team: Platform\n"
        "write_workers: 2\n"
        "write_retries: 5\n"
        "log_level: debug\n"
        "unknown_key: ignored\n"
    )

    config = Config.load()

    assert config.user == "bob"
    assert config.team == "Platform"
    assert config.write_workers == 2
    assert config.write_retries == 5
    assert config.log_level == "DEBUG"


def test_environment_overrides_file(tmp_path, monkeypatch):
    (tmp_path / "config.yaml").write_text("user: bob\nlog_level: INFO\n")
    monkeypatch.setenv("TEAMBOARD_TEAM", "Mobile")
    monkeypatch.setenv("TEAMBOARD_LOG_LEVEL", "error")

    config = Config.load()

    assert config.user == "alice"
    assert config.team == "Mobile"
    assert config.log_level == "ERROR"


def test_invalid_yaml_falls_back_to_defaults(tmp_path):
    (tmp_path / "config.yaml").write_text("user: [unclosed\n")

    config = Config.load()

    assert config.write_workers == 8
    assert config.user == "alice"


def test_explicit_path_and_bounds(tmp_path):
    path = tmp_path / "other.yaml"
    path.write_text("db_path: ~/boards.db\nwrite_workers: 0\nwrite_retries: -3\n")

    config = Config.load(str(path))

    assert config.db_path == str(Path("~/boards.db").expanduser())
    assert config.write_workers == 1
    assert config.write_retries == 0


def test_config_is_loaded_once_until_reset(monkeypatch):
    first = get_config()
    monkeypatch.setenv("TEAMBOARD_USER", "bob")

    assert get_config() is first
    assert get_config().user == "alice"

    reset_config()
    assert get_config().user == "bob"
