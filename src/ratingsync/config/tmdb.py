"""TMDB configuration values."""

from __future__ import annotations

from dataclasses import dataclass

from .env import optional_env_var
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig

TMDB_BASE_URL = "https://api.themoviedb.org/3/"
TMDB_TIMEOUT_SECONDS = 10.0


@dataclass(frozen=True, slots=True)
class TmdbConfig:
    api_key: str
    resilience: ResilienceConfig


def default_tmdb_resilience() -> ResilienceConfig:
    return ResilienceConfig(
        name="tmdb",
        base_url=TMDB_BASE_URL,
        timeout_seconds=TMDB_TIMEOUT_SECONDS,
        ratelimit=RateLimit(max_calls=40, per_seconds=1.0),
        cache=CacheConfig(),
    )


def get_tmdb_config(*, resilience: ResilienceConfig | None = None) -> TmdbConfig | None:
    """Return the TMDB configuration, or ``None`` when no API key is set."""

    api_key = optional_env_var("TMDB_API_KEY")
    if api_key is None:
        return None
    return TmdbConfig(api_key=api_key, resilience=resilience or default_tmdb_resilience())
