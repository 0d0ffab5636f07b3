"""Application configuration helpers."""

from __future__ import annotations

from .env import optional_env_var, require_env_vars, split_env_list
from .errors import ConfigurationError, MissingConfigurationError
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig, RetryPolicy
from .imdb import ImdbDatasetConfig, get_imdb_dataset_config
from .logging import configure_logging, resolve_log_level
from .plex import PlexConfig, get_plex_config
from .storage import StorageConfig, get_storage_config
from .sync import Capability, SyncConfig, get_sync_config
from .tmdb import TmdbConfig, get_tmdb_config
from .tvdb import TvdbConfig, get_tvdb_config

__all__ = [
    "CacheConfig",
    "Capability",
    "ConfigurationError",
    "ImdbDatasetConfig",
    "MissingConfigurationError",
    "PlexConfig",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "StorageConfig",
    "SyncConfig",
    "TmdbConfig",
    "TvdbConfig",
    "configure_logging",
    "get_imdb_dataset_config",
    "get_plex_config",
    "get_storage_config",
    "get_sync_config",
    "get_tmdb_config",
    "get_tvdb_config",
    "optional_env_var",
    "require_env_vars",
    "resolve_log_level",
    "split_env_list",
]
