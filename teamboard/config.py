"""
FILE: teamboard/config.py
PURPOSE: Runtime configuration loaded from YAML and environment
EXPORTS:
  - Config (dataclass)
  - get_home() -> Path
  - get_config() -> Config
  - reset_config() -> None
DEPENDENCIES:
  - yaml (PyYAML, config file parsing)
  - dataclasses, os, pathlib, getpass (stdlib)
NOTES:
  - Home directory is ~/.teamboard unless TEAMBOARD_HOME is set
  - Config file is <home>/config.yaml; missing file means defaults
  - TEAMBOARD_USER, TEAMBOARD_TEAM and TEAMBOARD_LOG_LEVEL override the file
  - Unknown keys in the file are ignored
  - get_config() loads once per process; reset_config() forces a reload
"""

import getpass
import logging
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Optional

import yaml

logger = logging.getLogger(__name__)

HOME_ENV = "TEAMBOARD_HOME"
USER_ENV = "TEAMBOARD_USER"
TEAM_ENV = "TEAMBOARD_TEAM"
LOG_LEVEL_ENV = "TEAMBOARD_LOG_LEVEL"

CONFIG_FILENAME = "config.yaml"
DB_FILENAME = "teamboard.db"


def get_home() -> Path:
    """Directory holding the database and config file."""
    home = os.environ.get(HOME_ENV)
    if home:
        return Path(home).expanduser()
    return Path.home() / ".teamboard"


def _default_user() -> str:
    try:
        return getpass.getuser()
    except (KeyError, OSError):
        return "local"


@dataclass
class Config:
    """Runtime configuration for Teamboard."""

    # Storage
    db_path: str = ""

    # Acting user for CLI/REPL commands
    user: str = ""

    # Team used when a command doesn't name one
    team: str = ""

    # Placement writes issued by one commit
    write_workers: int = 8
    write_retries: int = 2
    retry_backoff: float = 0.05  # seconds, doubled per attempt

    log_level: str = "WARNING"

    def resolve(self, home: Path) -> None:
        """Fill defaults that depend on the home directory and environment."""
        if not self.db_path:
            self.db_path = str(home / DB_FILENAME)
        self.db_path = str(Path(self.db_path).expanduser())

        self.user = os.environ.get(USER_ENV) or self.user or _default_user()
        self.team = os.environ.get(TEAM_ENV) or self.team
        self.log_level = (os.environ.get(LOG_LEVEL_ENV) or self.log_level).upper()

        if self.write_workers < 1:
            self.write_workers = 1
        if self.write_retries < 0:
            self.write_retries = 0

    @classmethod
    def load(cls, path: Optional[str] = None) -> "Config":
        """Load config from YAML file, falling back to defaults."""
        home = get_home()
        cfg_path = Path(path) if path else home / CONFIG_FILENAME

        if cfg_path.exists():
            try:
                with open(cfg_path, "r") as f:
                    data = yaml.safe_load(f) or {}
                known = {f.name for f in fields(cls)}
                cfg = cls(**{k: v for k, v in data.items() if k in known})
            except (yaml.YAMLError, TypeError, AttributeError) as e:
                logger.warning("Ignoring invalid config file %s: %s", cfg_path, e)
                cfg = cls()
        else:
            cfg = cls()

        cfg.resolve(home)
        return cfg


_config: Optional[Config] = None


def get_config() -> Config:
    """Configuration for the current environment, loaded on first use."""
    global _config
    if _config is None:
        _config = Config.load()
    return _config


def reset_config() -> None:
    """Drop the cached configuration (tests, or after changing the environment)."""
    global _config
    _config = None
