"""JSON persistence of unfinished jobs keyed by library id."""

from __future__ import annotations

import threading
from logging import getLogger
from typing import TYPE_CHECKING

from pydantic import ValidationError

from ratingsync.domain.model import CatalogItem, Job, JobStage

from .files import write_text_atomically
from .schema import ItemRecord, JobRecord, JobStateFile

if TYPE_CHECKING:
    from pathlib import Path

log = getLogger(__name__)


def job_to_record(job: Job) -> JobRecord:
    return JobRecord(
        library_id=job.library_id,
        library_name=job.library_name,
        kind=job.kind,
        run_token=job.run_token,
        stage=job.stage.name,
        items=[
            ItemRecord(
                id=item.id,
                guid=item.guid,
                title=item.title,
                metadata_hash=item.metadata_hash,
                rating=item.rating,
                votes=item.votes,
                imdb_id=item.imdb_id,
            )
            for item in job.items
        ],
    )


def job_from_record(record: JobRecord) -> Job:
    return Job(
        library_id=record.library_id,
        library_name=record.library_name,
        kind=record.kind,
        run_token=record.run_token,
        stage=JobStage[record.stage],
        items=[CatalogItem(**item.model_dump()) for item in record.items],
    )


class JobStateStore:
    """Snapshot of non-terminal jobs, rewritten atomically on every change.

    A missing or empty file means there are no jobs to resume.
    """

    def __init__(self, path: Path) -> None:
        self.path = path
        self._lock = threading.Lock()
        self._jobs = self.load()

    def load(self) -> dict[int, Job]:
        if not self.path.is_file():
            return {}
        try:
            raw = self.path.read_text(encoding="utf-8")
            if not raw.strip():
                return {}
            document = JobStateFile.model_validate_json(raw)
            jobs = [job_from_record(record) for record in document.jobs]
        except (OSError, ValidationError, KeyError) as exc:
            log.warning("Discarding unreadable job state at %s: %s", self.path, exc)
            return {}
        loaded = {job.library_id: job for job in jobs if not job.is_completed}
        if loaded:
            log.info("Loaded %s unfinished job(s) from %s", len(loaded), self.path)
        return loaded

    def get(self, library_id: int) -> Job | None:
        with self._lock:
            return self._jobs.get(library_id)

    def save(self, job: Job) -> None:
        with self._lock:
            if job.is_completed:
                self._jobs.pop(job.library_id, None)
            else:
                self._jobs[job.library_id] = job
            self._write()

    def remove(self, job: Job) -> None:
        with self._lock:
            if self._jobs.pop(job.library_id, None) is not None:
                self._write()

    def jobs(self) -> list[Job]:
        with self._lock:
            return list(self._jobs.values())

    def _write(self) -> None:
        document = JobStateFile(jobs=[job_to_record(job) for job in self._jobs.values()])
        write_text_atomically(self.path, document.model_dump_json(indent=2))
