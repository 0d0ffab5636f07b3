"""Stage handlers that carry a job from CREATED to COMPLETED."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING, Protocol

from ratingsync.domain.model import JobStage, Library

from .file_updates import run_file_updates
from .locking import write_with_lock_retry

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping
    from concurrent.futures import Executor

    from ratingsync.config.sync import SyncConfig
    from ratingsync.domain.model import CatalogItem, Job, Rating
    from ratingsync.domain.ports import (
        CatalogGateway,
        ItemFileWriter,
        MissingFileReporter,
        RatingDataset,
    )
    from ratingsync.domain.resolution import SchemeResolver

log = getLogger(__name__)

type StageHandler = Callable[[Job], None]


class Pipeline(Protocol):
    """Maps a job's current stage to the handler that advances it by one stage."""

    def handler_for(self, stage: JobStage) -> StageHandler: ...


@dataclass(slots=True)
class RatingPipeline:
    """IMDb rating pipeline: resolve, accumulate, transform, commit to DB, commit to files.

    Every handler advances ``job.stage`` by exactly one step and only ever shrinks
    ``job.items``, so a job persisted between stages can re-enter at its recorded
    stage with the working set it had there.
    """

    catalog: CatalogGateway
    resolver: SchemeResolver
    dataset: RatingDataset
    item_files: ItemFileWriter
    reporter: MissingFileReporter
    executor: Executor
    config: SyncConfig

    def handler_for(self, stage: JobStage) -> StageHandler:
        handlers: Mapping[JobStage, StageHandler] = {
            JobStage.CREATED: self.resolve,
            JobStage.RESOLVED: self.accumulate,
            JobStage.ACCUMULATED: self.transform,
            JobStage.TRANSFORMED: self.commit_to_database,
            JobStage.DB_UPDATED: self.commit_to_files,
        }
        try:
            return handlers[stage]
        except KeyError:
            raise ValueError(f"No handler for terminal stage {stage.name}") from None

    def resolve(self, job: Job) -> None:
        library = Library(id=job.library_id, name=job.library_name, kind=job.kind)
        with self.catalog.session() as session:
            job.items = session.list_items(library)

        log.info("Resolving IMDb identifiers for %s item(s). Only warnings will show up...",
                 len(job.items))
        log.info("Items that show up here will not be processed by further stages.")
        unresolved = [item for item in job.items if not self.resolver.resolve(item, job.kind)]
        skipped = job.drop(unresolved)
        log.info("Filtered %s invalid item(s).", skipped)
        job.advance(JobStage.RESOLVED)

    def accumulate(self, job: Job) -> None:
        # The full dataset is available up front, nothing to aggregate per item.
        job.advance(JobStage.ACCUMULATED)

    def transform(self, job: Job) -> None:
        absent: list[CatalogItem] = []
        unchanged: list[CatalogItem] = []
        changes: list[tuple[CatalogItem, Rating]] = []
        for item in job.items:
            rating = self.dataset.lookup(item.imdb_id) if item.imdb_id else None
            if rating is None:
                absent.append(item)
            elif item.needs_update(rating):
                changes.append((item, rating))
            else:
                unchanged.append(item)

        if absent:
            log.info("%s item(s) have no rating in the dataset.", len(absent))
        if unchanged:
            log.info("%s item(s) need no update.", len(unchanged))
        job.drop([*absent, *unchanged])

        log.info("Transforming %s item(s)", len(changes))
        for item, rating in changes:
            item.apply(rating)
        job.advance(JobStage.TRANSFORMED)

    def commit_to_database(self, job: Job) -> None:
        if not job.items:
            log.info("Nothing to update. Skipping...")
            job.advance(JobStage.DB_UPDATED)
            return

        log.info("Updating %s item(s) via batch request...", len(job.items))
        with self.catalog.session() as session:
            items = list(job.items)
            attempts = write_with_lock_retry(
                lambda: session.batch_write(items),
                max_attempts=self.config.db_lock_max_attempts,
                interval_seconds=self.config.db_lock_retry_seconds,
            )
        log.info("Batch request finished after %s attempt(s). Database is up to date!", attempts)
        job.advance(JobStage.DB_UPDATED)

    def commit_to_files(self, job: Job) -> None:
        log.info("Updating XML fallback files for %s item(s).", len(job.items))
        outcome = run_file_updates(
            job.items,
            writer=self.item_files,
            kind=job.kind,
            executor=self.executor,
            slices=self.config.file_partitions,
            timeout=self.config.file_phase_timeout_seconds,
        )
        job.drop(outcome.processed)

        if len(outcome.report):
            path = self.reporter.write(job, outcome.report.snapshot())
            log.warning(
                "%s XML file(s) have failed to be updated due to them not being present "
                "on the file system.",
                len(outcome.report),
            )
            log.warning("This is not an issue as Plex reads the ratings from the database.")
            log.warning("The files have been dumped to %s", path)

        if outcome.error is not None:
            raise outcome.error

        log.info("Completed updating of XML fallback files.")
        job.advance(JobStage.COMPLETED)
