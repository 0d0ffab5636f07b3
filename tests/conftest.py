from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING

import pytest

from ratingsync.config import SyncConfig
from tests.helpers.fakes import FixedClock

if TYPE_CHECKING:
    from collections.abc import Iterator


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "PLEX_DATA_DIR",
        "TMDB_API_KEY",
        "TVDB_API_KEY",
        "TVDB_AUTH_STRING",
        "IGNORE_LIBS",
        "CAPABILITIES",
        "LOG_LEVEL",
        "RATINGSYNC_DATA_DIR",
        "RUN_EVERY_N_HOURS",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def sync_config() -> SyncConfig:
    return SyncConfig(
        file_partitions=4,
        worker_count=4,
        db_lock_retry_seconds=0.0,
        db_lock_max_attempts=3,
        file_phase_timeout_seconds=10.0,
    )


@pytest.fixture
def executor() -> Iterator[ThreadPoolExecutor]:
    pool = ThreadPoolExecutor(max_workers=4)
    try:
        yield pool
    finally:
        pool.shutdown(wait=True, cancel_futures=True)


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()
