"""Workspace configuration for hashkeep.

The workspace holds the catalog database and the default folder that removed
duplicates are moved to. Its location comes from, in order:

1. an explicit argument (the CLI ``--workspace`` option),
2. the ``HASHKEEP_WS_DIR`` environment variable,
3. ``%LOCALAPPDATA%\\hashkeep`` on Windows or ``~/.local/share/hashkeep``
   elsewhere.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from hashkeep.errors import ConfigError

WORKSPACE_ENV_VAR = "HASHKEEP_WS_DIR"
APP_DIR_NAME = "hashkeep"
DB_FILE_NAME = "hashkeep.db"

# SQLite writes these next to the database file
DB_SIDECAR_SUFFIXES = ("", "-wal", "-shm", "-journal")


@dataclass
class Settings:
    """Resolved workspace locations."""
    workspace_dir: Path
    db_path: Path
    deleted_dir: Path

    def catalog_files(self) -> List[str]:
        """Return the database file and its sidecars, as strings."""
        return [f"{self.db_path}{suffix}" for suffix in DB_SIDECAR_SUFFIXES]


def default_workspace_dir() -> Path:
    """Return the platform default workspace directory."""
    if os.name == "nt":
        local_app_data = os.environ.get("LOCALAPPDATA")
        if local_app_data:
            return Path(local_app_data) / APP_DIR_NAME
        profile = os.environ.get("USERPROFILE")
        home = Path(profile) if profile else Path.home()
        return home / "AppData" / "Local" / APP_DIR_NAME
    return Path.home() / ".local" / "share" / APP_DIR_NAME


def load_settings(workspace_dir: Optional[Path] = None) -> Settings:
    """Resolve the workspace and create its directories.

    Args:
        workspace_dir: Explicit workspace; overrides the environment.

    Returns:
        Settings with absolute paths.

    Raises:
        ConfigError: If the workspace directories cannot be created.
    """
    if workspace_dir is None:
        env_value = os.environ.get(WORKSPACE_ENV_VAR)
        workspace_dir = Path(env_value) if env_value else default_workspace_dir()

    workspace_dir = Path(workspace_dir).expanduser().absolute()
    db_dir = workspace_dir / "db"

    try:
        db_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise ConfigError(f"Cannot create workspace directory {workspace_dir}: {e}") from e

    return Settings(
        workspace_dir=workspace_dir,
        db_path=db_dir / DB_FILE_NAME,
        deleted_dir=workspace_dir / "deleted",
    )
