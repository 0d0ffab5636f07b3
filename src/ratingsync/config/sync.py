"""Synchronization defaults and operator switches for the rating pipeline."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from datetime import timedelta
from enum import StrEnum

from .env import optional_env_var, split_env_list
from .errors import ConfigurationError

DEFAULT_RUN_EVERY_N_HOURS = 12
DEFAULT_FILE_PARTITIONS = 16
DEFAULT_DB_LOCK_RETRY_SECONDS = 20.0
DEFAULT_DB_LOCK_MAX_ATTEMPTS = 500
DEFAULT_BLACKLIST_EXPIRY = timedelta(days=14)
DEFAULT_FILE_PHASE_TIMEOUT_SECONDS = 3600.0

log = logging.getLogger(__name__)


class Capability(StrEnum):
    TMDB = "TMDB"
    TVDB = "TVDB"
    NO_MOVIE = "NO_MOVIE"
    NO_TV = "NO_TV"

    @classmethod
    def user_flags(cls) -> frozenset[Capability]:
        return frozenset({cls.NO_MOVIE, cls.NO_TV})


def _default_worker_count() -> int:
    return min(32, (os.cpu_count() or 1) + 4)


@dataclass(frozen=True, slots=True)
class SyncConfig:
    ignored_libraries: frozenset[int] = frozenset()
    capabilities: frozenset[Capability] = frozenset()
    run_every_hours: int = DEFAULT_RUN_EVERY_N_HOURS
    file_partitions: int = DEFAULT_FILE_PARTITIONS
    file_phase_timeout_seconds: float = DEFAULT_FILE_PHASE_TIMEOUT_SECONDS
    worker_count: int = field(default_factory=_default_worker_count)
    db_lock_retry_seconds: float = DEFAULT_DB_LOCK_RETRY_SECONDS
    db_lock_max_attempts: int = DEFAULT_DB_LOCK_MAX_ATTEMPTS
    blacklist_expiry: timedelta = DEFAULT_BLACKLIST_EXPIRY

    def has(self, capability: Capability) -> bool:
        return capability in self.capabilities

    def is_ignored(self, library_id: int) -> bool:
        return library_id in self.ignored_libraries


def parse_ignored_libraries(values: list[str]) -> frozenset[int]:
    ignored: set[int] = set()
    for value in values:
        try:
            ignored.add(int(value))
        except ValueError:
            log.warning("Ignoring invalid library id in IGNORE_LIBS: %r", value)
            continue
        log.info("Ignoring library with ID: %s", value)
    return frozenset(ignored)


def parse_user_capabilities(values: list[str]) -> frozenset[Capability]:
    parsed: set[Capability] = set()
    for value in values:
        try:
            capability = Capability(value.upper())
        except ValueError as exc:
            raise ConfigurationError(f"Invalid CAPABILITIES value: {value}") from exc
        if capability not in Capability.user_flags():
            raise ConfigurationError(f"CAPABILITIES value is not a user flag: {value}")
        parsed.add(capability)
    return frozenset(parsed)


def parse_run_interval(value: str | None) -> int:
    if value is None:
        return DEFAULT_RUN_EVERY_N_HOURS
    try:
        hours = int(value)
    except ValueError as exc:
        raise ConfigurationError(
            "Invalid parameter for RUN_EVERY_N_HOURS (must be number and > 0)"
        ) from exc
    if hours <= 0:
        raise ConfigurationError("Invalid parameter for RUN_EVERY_N_HOURS (must be number and > 0)")
    return hours


def get_sync_config(*, api_capabilities: frozenset[Capability] = frozenset()) -> SyncConfig:
    """Build the sync configuration from the environment.

    ``api_capabilities`` carries the capabilities derived from configured credentials
    (TMDB/TVDB), which are not user-selectable.
    """

    user_flags = parse_user_capabilities(split_env_list("CAPABILITIES"))
    return SyncConfig(
        ignored_libraries=parse_ignored_libraries(split_env_list("IGNORE_LIBS")),
        capabilities=user_flags | api_capabilities,
        run_every_hours=parse_run_interval(optional_env_var("RUN_EVERY_N_HOURS")),
    )
