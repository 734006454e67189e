"""Location of the SQLite policy database."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Final

from .env import optional_env_var

DEFAULT_DB_FILENAME: Final[str] = "iamsync.db"


@dataclass(frozen=True, slots=True)
class DatabaseConfig:
    uri: str


def default_data_dir() -> Path:
    base = optional_env_var("XDG_DATA_HOME")
    base_path = Path(base) if base else Path.home() / ".local" / "share"
    return base_path / "iamsync"


def get_database_config(*, data_dir: Path | None = None) -> DatabaseConfig:
    """``DATABASE_URI`` wins; otherwise a file in ``data_dir`` (created on demand)."""

    env_uri = optional_env_var("DATABASE_URI")
    if env_uri:
        return DatabaseConfig(uri=env_uri)
    if data_dir is None:
        env_dir = optional_env_var("IAMSYNC_DATA_DIR")
        data_dir = Path(env_dir) if env_dir else default_data_dir()
    resolved = data_dir.expanduser().resolve()
    resolved.mkdir(parents=True, exist_ok=True)
    return DatabaseConfig(uri=f"sqlite+pysqlite:///{resolved / DEFAULT_DB_FILENAME}")
