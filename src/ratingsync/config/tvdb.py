"""TVDB configuration values."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .env import optional_env_var
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig

TVDB_BASE_URL = "https://api4.thetvdb.com/v4/"
TVDB_TIMEOUT_SECONDS = 15.0
_LEGACY_AUTH_PARTS = 3

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class TvdbConfig:
    api_key: str
    resilience: ResilienceConfig


def default_tvdb_resilience() -> ResilienceConfig:
    return ResilienceConfig(
        name="tvdb",
        base_url=TVDB_BASE_URL,
        timeout_seconds=TVDB_TIMEOUT_SECONDS,
        ratelimit=RateLimit(max_calls=10, per_seconds=1.0),
        cache=CacheConfig(),
    )


def _legacy_api_key() -> str | None:
    legacy = optional_env_var("TVDB_AUTH_STRING")
    if legacy is None:
        return None
    log.warning(
        "Don't use legacy environment variable TVDB_AUTH_STRING. "
        "Use TVDB_API_KEY instead by only providing the TVDB API key."
    )
    parts = legacy.split(";")
    if len(parts) != _LEGACY_AUTH_PARTS or not parts[2].strip():
        log.error(
            "Invalid TVDB API authorization string given. Must contain 3 items separated by "
            "a ';'. Will ignore TV series with the TVDB agent."
        )
        return None
    return parts[2].strip()


def get_tvdb_config(*, resilience: ResilienceConfig | None = None) -> TvdbConfig | None:
    """Return the TVDB configuration, or ``None`` when no API key is set."""

    api_key = _legacy_api_key() or optional_env_var("TVDB_API_KEY")
    if api_key is None:
        return None
    return TvdbConfig(api_key=api_key, resilience=resilience or default_tvdb_resilience())
