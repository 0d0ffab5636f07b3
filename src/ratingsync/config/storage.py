"""Where caches, job state and missing-file reports are kept."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Final

APP_DIR_NAME: Final[str] = "ratingsync"
JOB_STATE_FILENAME: Final[str] = "state-imdb.json"
CACHE_FILENAMES: Final[dict[str, str]] = {
    "tmdb": "cache-tmdb2imdb.json",
    "tmdb-series": "cache-tmdbseries2imdb.json",
    "tvdb": "cache-tvdb2imdb.json",
}


@dataclass(frozen=True, slots=True)
class StorageConfig:
    data_dir: Path

    def directory(self) -> Path:
        """Resolved data directory, created on first use."""

        path = self.data_dir.expanduser().resolve()
        path.mkdir(parents=True, exist_ok=True)
        return path

    def job_state_path(self) -> Path:
        return self.directory() / JOB_STATE_FILENAME

    def cache_path(self, cache_name: str) -> Path:
        try:
            filename = CACHE_FILENAMES[cache_name]
        except KeyError:
            raise ValueError(f"Unknown resolution cache: {cache_name}") from None
        return self.directory() / filename

    @property
    def report_dir(self) -> Path:
        return self.directory()


def _default_data_dir() -> Path:
    xdg_home = os.getenv("XDG_DATA_HOME")
    base = Path(xdg_home) if xdg_home else Path.home() / ".local" / "share"
    return base / APP_DIR_NAME


def get_storage_config() -> StorageConfig:
    """Use ``RATINGSYNC_DATA_DIR`` when set, else ``$XDG_DATA_HOME/ratingsync``."""

    env_dir = os.getenv("RATINGSYNC_DATA_DIR")
    return StorageConfig(data_dir=Path(env_dir) if env_dir else _default_data_dir())
