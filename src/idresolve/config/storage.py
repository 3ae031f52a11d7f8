"""Location of the store: an explicit ``DATABASE_URI`` or a SQLite file in the data dir."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Final

DATA_DIR_VARIABLE: Final[str] = "IDRESOLVE_DATA_DIR"
DATABASE_URI_VARIABLE: Final[str] = "DATABASE_URI"
DATABASE_FILENAME: Final[str] = "idresolve.db"


@dataclass(frozen=True, slots=True)
class StorageConfig:
    """Directory that holds the default SQLite graph; created on first use."""

    data_dir: Path

    def database_path(self) -> Path:
        self.data_dir.mkdir(parents=True, exist_ok=True)
        return self.data_dir / DATABASE_FILENAME

    def sqlite_uri(self) -> str:
        return f"sqlite+pysqlite:///{self.database_path()}"


@dataclass(frozen=True, slots=True)
class DatabaseConfig:
    uri: str


def _platform_data_dir() -> Path:
    if os.name == "nt":
        root = os.getenv("LOCALAPPDATA") or str(Path.home() / "AppData" / "Local")
    else:
        root = os.getenv("XDG_DATA_HOME") or str(Path.home() / ".local" / "share")
    return Path(root) / "idresolve"


def get_storage_config() -> StorageConfig:
    configured = os.getenv(DATA_DIR_VARIABLE)
    data_dir = Path(configured) if configured else _platform_data_dir()
    return StorageConfig(data_dir=data_dir.expanduser().resolve())


def get_database_config(*, storage: StorageConfig | None = None) -> DatabaseConfig:
    """``DATABASE_URI`` wins; otherwise the SQLite file under the data dir."""

    uri = os.getenv(DATABASE_URI_VARIABLE, "").strip()
    if uri:
        return DatabaseConfig(uri=uri)
    return DatabaseConfig(uri=(storage or get_storage_config()).sqlite_uri())
