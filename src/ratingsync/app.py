"""Application wiring, single cycles and the recurring service loop."""

from __future__ import annotations

import sys
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from ratingsync.adapters.imdb import download_rating_dataset
from ratingsync.adapters.json_store import JsonCacheStore, JobStateStore
from ratingsync.adapters.plex import MissingFileLogWriter, PlexCatalog, PlexInfoXmlWriter
from ratingsync.adapters.tmdb import TmdbClient
from ratingsync.adapters.tvdb import TvdbClient
from ratingsync.config import (
    Capability,
    get_imdb_dataset_config,
    get_plex_config,
    get_storage_config,
    get_sync_config,
    get_tmdb_config,
    get_tvdb_config,
)
from ratingsync.config.storage import CACHE_FILENAMES
from ratingsync.domain.batch import BatchCycle, CycleOutcome, CycleReport
from ratingsync.domain.errors import LookupUnavailableError
from ratingsync.domain.resolution import build_resolver
from ratingsync.domain.sync_pipeline import JobRunner, RatingPipeline

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import timedelta

    from ratingsync.config import (
        ImdbDatasetConfig,
        PlexConfig,
        StorageConfig,
        SyncConfig,
        TmdbConfig,
        TvdbConfig,
    )
    from ratingsync.domain.ports import (
        CatalogGateway,
        IdLookup,
        RatingDataset,
        ResolutionCache,
    )

log = getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Settings:
    plex: PlexConfig
    storage: StorageConfig
    sync: SyncConfig
    imdb: ImdbDatasetConfig
    tmdb: TmdbConfig | None = None
    tvdb: TvdbConfig | None = None


def load_settings() -> Settings:
    """Read every configuration section from the environment."""

    tmdb = get_tmdb_config()
    tvdb = get_tvdb_config()
    api_capabilities = frozenset(
        capability
        for capability, config in ((Capability.TMDB, tmdb), (Capability.TVDB, tvdb))
        if config is not None
    )
    return Settings(
        plex=get_plex_config(),
        storage=get_storage_config(),
        sync=get_sync_config(api_capabilities=api_capabilities),
        imdb=get_imdb_dataset_config(),
        tmdb=tmdb,
        tvdb=tvdb,
    )


@dataclass(slots=True)
class Application:
    """Assembled service: runs cycles one at a time and releases resources on close."""

    cycle: BatchCycle
    caches: tuple[ResolutionCache, ...]
    executor: ThreadPoolExecutor
    lookups: tuple[TmdbClient | TvdbClient, ...] = ()
    _lock: threading.Lock = field(default_factory=threading.Lock)
    _closed: bool = False

    def run_cycle(self) -> CycleReport:
        with self._lock:
            log.info("Starting rating synchronization cycle")
            report = self.cycle.run()
        if report.outcome is CycleOutcome.COMPLETED:
            log.info("Cycle completed: %s", report.message)
        elif report.outcome is CycleOutcome.ABORTED:
            log.warning(
                "Cycle aborted, %s job(s) will resume next run: %s",
                len(report.pending),
                report.message,
            )
        else:
            log.error("Cycle failed: %s", report.message)
        return report

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        for cache in self.caches:
            try:
                cache.flush()
            except OSError:
                log.exception("Could not flush %s cache", cache.name)
        for lookup in self.lookups:
            lookup.close()
        self.executor.shutdown(wait=False, cancel_futures=True)


def _verified[L: (TmdbClient, TvdbClient)](client: L | None, service: str) -> L | None:
    if client is None:
        return None
    try:
        accepted = client.verify()
    except LookupUnavailableError as exc:
        log.warning("Could not verify %s credentials, keeping them enabled: %s", service, exc)
        return client
    if not accepted:
        log.warning("%s credentials were rejected. Items using %s are skipped.", service, service)
        client.close()
        return None
    return client


def build_application(
    settings: Settings,
    *,
    catalog: CatalogGateway | None = None,
    dataset_loader: Callable[[], RatingDataset] | None = None,
    verify_credentials: bool = True,
) -> Application:
    """Wire the adapters described by ``settings`` into a runnable application."""

    storage = settings.storage
    expiry = settings.sync.blacklist_expiry
    caches: dict[str, ResolutionCache] = {
        name: JsonCacheStore(name, storage.cache_path(name), blacklist_ttl=expiry)
        for name in CACHE_FILENAMES
    }

    tmdb: TmdbClient | None = TmdbClient(config=settings.tmdb) if settings.tmdb else None
    tvdb: TvdbClient | None = TvdbClient(config=settings.tvdb) if settings.tvdb else None
    if verify_credentials:
        tmdb = _verified(tmdb, "TMDB")
        tvdb = _verified(tvdb, "TVDB")
    tmdb_lookup: IdLookup | None = tmdb
    tvdb_lookup: IdLookup | None = tvdb
    resolver = build_resolver(tmdb=tmdb_lookup, tvdb=tvdb_lookup, caches=caches)

    effective_catalog = catalog or PlexCatalog(settings.plex.database_path)
    item_files = PlexInfoXmlWriter(
        settings.plex.movie_metadata_root, settings.plex.series_metadata_root
    )
    reporter = MissingFileLogWriter(storage.report_dir)
    executor = ThreadPoolExecutor(
        max_workers=settings.sync.worker_count, thread_name_prefix="ratingsync-files"
    )
    load_dataset = dataset_loader or (lambda: download_rating_dataset(settings.imdb))

    def pipeline_factory() -> RatingPipeline:
        return RatingPipeline(
            catalog=effective_catalog,
            resolver=resolver,
            dataset=load_dataset(),
            item_files=item_files,
            reporter=reporter,
            executor=executor,
            config=settings.sync,
        )

    state = JobStateStore(storage.job_state_path())
    cycle = BatchCycle(
        catalog=effective_catalog,
        pipeline_factory=pipeline_factory,
        runner=JobRunner(on_transition=state.save),
        state=state,
        caches=tuple(caches.values()),
        config=settings.sync,
    )
    return Application(
        cycle=cycle,
        caches=tuple(caches.values()),
        executor=executor,
        lookups=tuple(client for client in (tmdb, tvdb) if client is not None),
    )


def run_service(
    app: Application,
    *,
    interval: timedelta,
    stop_event: threading.Event | None = None,
    clock: Callable[[], float] = time.monotonic,
) -> None:
    """Run a cycle now and then once per ``interval`` until stopped.

    Cycles run on one dedicated thread so they never overlap; a cycle that outlasts
    the interval delays the next one instead of stacking. A FATAL cycle stops the
    service with exit status 1.
    """

    stop = stop_event or threading.Event()
    fatal = threading.Event()
    period = interval.total_seconds()

    def loop() -> None:
        while not stop.is_set():
            started = clock()
            try:
                report = app.run_cycle()
            except Exception:
                log.exception("Unexpected error while running a cycle")
                fatal.set()
                return
            if report.outcome is CycleOutcome.FATAL:
                fatal.set()
                return
            remaining = max(0.0, period - (clock() - started))
            log.info("Next cycle in %.0f second(s)", remaining)
            stop.wait(remaining)

    worker = threading.Thread(target=loop, name="ratingsync-scheduler", daemon=True)
    worker.start()
    while worker.is_alive():
        worker.join(timeout=1.0)

    if fatal.is_set():
        log.error("Stopping service after a fatal cycle")
        sys.exit(1)
