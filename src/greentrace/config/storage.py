"""Where the record cache lives on disk."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Final

from .env import optional_env

APP_DIR_NAME: Final[str] = "greentrace"
CACHE_DB_FILENAME: Final[str] = "record_cache.db"


def default_data_dir() -> Path:
    """Per-user data directory: ``%LOCALAPPDATA%`` on Windows, XDG elsewhere."""

    if os.name == "nt":
        root = optional_env("LOCALAPPDATA") or str(Path.home() / "AppData" / "Local")
    else:
        root = optional_env("XDG_DATA_HOME") or str(Path.home() / ".local" / "share")
    return Path(root).expanduser() / APP_DIR_NAME


@dataclass(frozen=True, slots=True)
class StorageConfig:
    data_dir: Path
    cache_filename: str = CACHE_DB_FILENAME

    @property
    def cache_path(self) -> Path:
        return self.data_dir.expanduser().resolve() / self.cache_filename

    def cache_uri(self, *, create_dir: bool = True) -> str:
        path = self.cache_path
        if create_dir:
            path.parent.mkdir(parents=True, exist_ok=True)
        return f"sqlite+pysqlite:///{path}"


@dataclass(frozen=True, slots=True)
class CacheDatabaseConfig:
    uri: str


def get_storage_config() -> StorageConfig:
    configured = optional_env("GREENTRACE_DATA_DIR")
    return StorageConfig(data_dir=Path(configured) if configured else default_data_dir())


def get_cache_database_config(*, storage: StorageConfig | None = None) -> CacheDatabaseConfig:
    """``CACHE_DATABASE_URI`` wins; otherwise a sqlite file under the data directory."""

    uri = optional_env("CACHE_DATABASE_URI")
    if uri is None:
        uri = (storage or get_storage_config()).cache_uri()
    return CacheDatabaseConfig(uri=uri)
