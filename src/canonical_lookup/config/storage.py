"""Where the metadata database lives."""

from __future__ import annotations

from pathlib import Path
from typing import Final

from .env import optional_env_var

DATA_DIR_ENV: Final[str] = "CANONICAL_LOOKUP_DATA_DIR"
DATABASE_URI_ENV: Final[str] = "DATABASE_URI"
DATABASE_FILENAME: Final[str] = "metadata.db"


def get_data_dir(*, create: bool = True) -> Path:
    """Return the data directory, ``$CANONICAL_LOOKUP_DATA_DIR`` or the user data dir."""

    configured = optional_env_var(DATA_DIR_ENV)
    if configured:
        data_dir = Path(configured)
    else:
        xdg = optional_env_var("XDG_DATA_HOME")
        data_dir = (Path(xdg) if xdg else Path.home() / ".local" / "share") / "canonical-lookup"
    data_dir = data_dir.expanduser().resolve()
    if create:
        data_dir.mkdir(parents=True, exist_ok=True)
    return data_dir


def get_database_uri() -> str:
    """``$DATABASE_URI`` when set, otherwise a SQLite file in the data directory."""

    return optional_env_var(DATABASE_URI_ENV) or (
        f"sqlite+pysqlite:///{get_data_dir() / DATABASE_FILENAME}"
    )
