"""One synchronization cycle over every eligible library."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING

from ratingsync.config.sync import Capability
from ratingsync.domain.errors import DatasetAcquireError
from ratingsync.domain.model import Job, LibraryKind
from ratingsync.domain.sync_pipeline import ResultCode

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from ratingsync.config.sync import SyncConfig
    from ratingsync.domain.model import Library
    from ratingsync.domain.ports import CatalogGateway, JobStateRepository, ResolutionCache
    from ratingsync.domain.sync_pipeline import JobResult, JobRunner, Pipeline

log = getLogger(__name__)


class CycleOutcome(StrEnum):
    COMPLETED = "completed"
    ABORTED = "aborted"
    FATAL = "fatal"


@dataclass(slots=True)
class CycleReport:
    outcome: CycleOutcome
    completed: list[Job] = field(default_factory=list[Job])
    pending: list[Job] = field(default_factory=list[Job])
    failure: JobResult | None = None
    error: BaseException | None = None

    @property
    def message(self) -> str:
        if self.failure is not None:
            return self.failure.message
        if self.error is not None:
            return f"{type(self.error).__name__}: {self.error}"
        return f"{len(self.completed)} job(s) completed"


def eligible_kinds(config: SyncConfig) -> tuple[LibraryKind, ...]:
    kinds: list[LibraryKind] = []
    if not config.has(Capability.NO_MOVIE):
        kinds.append(LibraryKind.MOVIE)
    if not config.has(Capability.NO_TV):
        kinds.append(LibraryKind.SERIES)
    return tuple(kinds)


@dataclass(slots=True)
class BatchCycle:
    """Build the job queue for this cycle and run it until it drains or stops.

    ``pipeline_factory`` acquires this cycle's rating dataset and returns a pipeline
    bound to it, raising ``DatasetAcquireError`` when the dataset is unavailable.
    """

    catalog: CatalogGateway
    pipeline_factory: Callable[[], Pipeline]
    runner: JobRunner
    state: JobStateRepository
    caches: Sequence[ResolutionCache]
    config: SyncConfig

    def run(self) -> CycleReport:
        for cache in self.caches:
            purged = cache.purge_expired()
            if purged:
                log.info("Purged %s expired blacklist entries from %s cache", purged, cache.name)

        try:
            libraries = self.list_libraries()
        except Exception as exc:
            log.exception("Could not list libraries from the catalog")
            return CycleReport(CycleOutcome.FATAL, error=exc)

        self.discard_stale_jobs(libraries)
        if not libraries:
            log.info("No eligible libraries found. Nothing to do.")
            return CycleReport(CycleOutcome.COMPLETED)

        try:
            pipeline = self.pipeline_factory()
        except DatasetAcquireError as exc:
            log.warning("Could not acquire the rating dataset, aborting cycle: %s", exc)
            return CycleReport(CycleOutcome.ABORTED, error=exc)

        queue = deque(self.prepare_jobs(libraries))
        completed: list[Job] = []
        while queue:
            job = queue.popleft()
            log.info("Running job for %s", job.describe())
            result = self.runner.run(job, pipeline)
            if result.code is ResultCode.PASS:
                self.state.remove(job)
                completed.append(job)
                log.info("Finished job for %s", job.describe())
                continue

            self.state.save(job)
            pending = [job, *queue]
            if result.code is ResultCode.ABORT:
                log.warning("Job aborted: %s (%s)", result.message, result.exception)
                return CycleReport(CycleOutcome.ABORTED, completed, pending, failure=result)
            log.error("Job failed: %s", result.message, exc_info=result.exception)
            return CycleReport(CycleOutcome.FATAL, completed, pending, failure=result)

        for cache in self.caches:
            cache.flush()
        return CycleReport(CycleOutcome.COMPLETED, completed)

    def list_libraries(self) -> list[Library]:
        kinds = eligible_kinds(self.config)
        if not kinds:
            return []
        with self.catalog.session() as session:
            libraries = session.list_libraries(kinds)

        eligible: list[Library] = []
        for library in libraries:
            if self.config.is_ignored(library.id):
                log.info("Ignoring library %s (%s)", library.name, library.id)
                continue
            eligible.append(library)
        return eligible

    def discard_stale_jobs(self, libraries: Sequence[Library]) -> None:
        """Forget persisted jobs whose library was deleted, ignored or filtered out."""

        eligible = {library.id for library in libraries}
        for job in self.state.jobs():
            if job.library_id not in eligible:
                log.info("Discarding unfinished job for %s, library is no longer eligible",
                         job.describe())
                self.state.remove(job)

    def prepare_jobs(self, libraries: Sequence[Library]) -> list[Job]:
        """Resume persisted jobs for these libraries, creating fresh ones for the rest."""

        jobs: list[Job] = []
        for library in libraries:
            job = self.state.get(library.id)
            if job is not None and not job.is_completed:
                log.info("Resuming %s at stage %s", job.describe(), job.stage.name)
            else:
                job = Job.for_library(library)
                self.state.save(job)
                log.debug("Created %s", job.describe())
            jobs.append(job)
        return jobs
