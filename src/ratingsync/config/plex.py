"""Plex Media Server data directory configuration."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Final

from .env import require_env_vars
from .errors import ConfigurationError

DATABASE_RELATIVE_PATH: Final[Path] = Path(
    "Plug-in Support", "Databases", "com.plexapp.plugins.library.db"
)
MOVIE_METADATA_RELATIVE_PATH: Final[Path] = Path("Metadata", "Movies")
SERIES_METADATA_RELATIVE_PATH: Final[Path] = Path("Metadata", "TV Shows")


@dataclass(frozen=True, slots=True)
class PlexConfig:
    data_dir: Path

    @property
    def database_path(self) -> Path:
        return self.data_dir / DATABASE_RELATIVE_PATH

    @property
    def movie_metadata_root(self) -> Path:
        return self.data_dir / MOVIE_METADATA_RELATIVE_PATH

    @property
    def series_metadata_root(self) -> Path:
        return self.data_dir / SERIES_METADATA_RELATIVE_PATH


def get_plex_config() -> PlexConfig:
    values = require_env_vars(("PLEX_DATA_DIR",))
    data_dir = Path(values["PLEX_DATA_DIR"]).expanduser()
    if not data_dir.is_dir():
        raise ConfigurationError(f"Plex data directory does not exist: {data_dir.resolve()}")
    return PlexConfig(data_dir=data_dir)
