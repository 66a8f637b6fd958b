"""Configuration handling for the text BBS daemon."""

import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Mapping

import yaml


@dataclass(frozen=True)
class FieldLimits:
    """Maximum lengths of user-entered fields, in characters.

    Attributes:
        conference_name: Conference name.
        board_name: Board name.
        menu_label: Menu item label.
        display_no: Menu item display number.
        display_type: Menu item display type.
        link_url: Link menu item URL.
        title: Welcome, menu design and page titles.
        post_title: Post title.
    """

    conference_name: int = 40
    board_name: int = 40
    menu_label: int = 40
    display_no: int = 20
    display_type: int = 20
    link_url: int = 200
    title: int = 60
    post_title: int = 60


@dataclass
class Config:
    """Configuration settings for the BBS daemon.

    Attributes:
        db_path: SQLite database file (``:memory:`` for a throwaway store).
        socket_path: Unix domain socket the daemon listens on.
        http_host: Interface for the optional HTTP wrapper.
        http_port: Port for the HTTP wrapper; None disables it.
        title: Title shown on every screen.
        session_timeout_minutes: Session inactivity timeout.
        max_input_length: Maximum characters of one input line.
        max_user_length: Maximum characters of a user name.
        limits: Per-field length caps enforced by sessions.
    """

    db_path: str = "var/bbsd.sqlite3"
    socket_path: str = "var/bbsd.sock"
    http_host: str = "127.0.0.1"
    http_port: int | None = None
    title: str = "text-bbs"
    session_timeout_minutes: int = 30
    max_input_length: int = 2000
    max_user_length: int = 20
    limits: FieldLimits = field(default_factory=FieldLimits)

    def get_db_path(self) -> Path:
        """Get database path as expanded absolute Path object."""
        return Path(self.db_path).expanduser().absolute()

    def get_socket_path(self) -> Path:
        """Get socket path as expanded absolute Path object."""
        return Path(self.socket_path).expanduser().absolute()


def _load_limits(section: dict) -> FieldLimits:
    known = {f.name for f in fields(FieldLimits)}
    unknown = set(section) - known
    if unknown:
        raise ValueError(f"Unknown limits: {', '.join(sorted(unknown))}")
    return FieldLimits(**{name: int(value) for name, value in section.items()})


def load_config(path: str | Path) -> Config:
    """
    Load configuration from a YAML file.

    Args:
        path: Path to the YAML configuration file.

    Returns:
        Config object with loaded values.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        ValueError: If the limits section names an unknown field.
    """
    config_path = Path(path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(config_path) as f:
        data = yaml.safe_load(f) or {}

    # Extract sections
    bbs = data.get("bbs", {})
    daemon = data.get("daemon", {})
    session = data.get("session", {})
    limits = data.get("limits", {})

    return Config(
        db_path=bbs.get("db_path", Config.db_path),
        title=bbs.get("title", Config.title),
        socket_path=daemon.get("socket_path", Config.socket_path),
        http_host=daemon.get("http_host", Config.http_host),
        http_port=daemon.get("http_port", Config.http_port),
        session_timeout_minutes=session.get("timeout_minutes", Config.session_timeout_minutes),
        max_input_length=session.get("max_input_length", Config.max_input_length),
        max_user_length=session.get("max_user_length", Config.max_user_length),
        limits=_load_limits(limits),
    )


def apply_env(config: Config, environ: Mapping[str, str] | None = None) -> Config:
    """
    Override config values from ``BBS_*`` environment variables.

    Args:
        config: Config to update in place.
        environ: Environment mapping; defaults to ``os.environ``.

    Returns:
        The same config object.

    Raises:
        ValueError: If ``BBS_PORT`` is not an integer.
    """
    env = os.environ if environ is None else environ

    if env.get("BBS_SOCKET_PATH"):
        config.socket_path = env["BBS_SOCKET_PATH"]
    if env.get("BBS_DB_PATH"):
        config.db_path = env["BBS_DB_PATH"]
    if env.get("BBS_PORT"):
        config.http_port = int(env["BBS_PORT"])

    return config
