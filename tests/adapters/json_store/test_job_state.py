from __future__ import annotations

from typing import TYPE_CHECKING

from ratingsync.adapters.json_store import JobStateStore
from ratingsync.domain.model import Job, JobStage, Library, LibraryKind
from tests.helpers.catalog import make_item

if TYPE_CHECKING:
    from pathlib import Path


def _job(library_id: int = 1, kind: LibraryKind = LibraryKind.MOVIE) -> Job:
    return Job.for_library(Library(id=library_id, name=f"Library {library_id}", kind=kind))


def test_missing_or_empty_file_means_no_jobs(tmp_path: Path) -> None:
    path = tmp_path / "state-imdb.json"
    assert JobStateStore(path).jobs() == []

    path.write_text("")
    assert JobStateStore(path).jobs() == []


def test_saved_job_is_restored_with_stage_and_items(tmp_path: Path) -> None:
    path = tmp_path / "state-imdb.json"
    job = _job(kind=LibraryKind.SERIES)
    item = make_item(10, "com.plexapp.agents.thetvdb://81189", rating=8.2, votes=4000)
    item.imdb_id = "tt0903747"
    job.items = [item]
    job.advance(JobStage.TRANSFORMED)

    JobStateStore(path).save(job)
    restored = JobStateStore(path).get(1)

    assert restored is not None
    assert restored.run_token == job.run_token
    assert restored.stage is JobStage.TRANSFORMED
    assert restored.kind is LibraryKind.SERIES
    [restored_item] = restored.items
    assert restored_item.imdb_id == "tt0903747"
    assert (restored_item.rating, restored_item.votes) == (8.2, 4000)
    assert restored_item.metadata_hash == item.metadata_hash


def test_save_upserts_by_library_id(tmp_path: Path) -> None:
    store = JobStateStore(tmp_path / "state.json")
    first = _job()
    replacement = _job()

    store.save(first)
    store.save(replacement)

    assert [job.run_token for job in store.jobs()] == [replacement.run_token]


def test_remove_rewrites_the_snapshot(tmp_path: Path) -> None:
    path = tmp_path / "state.json"
    store = JobStateStore(path)
    keep, done = _job(1), _job(2)
    store.save(keep)
    store.save(done)

    store.remove(done)

    assert [job.library_id for job in JobStateStore(path).jobs()] == [1]


def test_completed_jobs_are_not_persisted(tmp_path: Path) -> None:
    path = tmp_path / "state.json"
    store = JobStateStore(path)
    job = _job()
    store.save(job)

    job.advance(JobStage.COMPLETED)
    store.save(job)

    assert JobStateStore(path).jobs() == []


def test_corrupt_state_is_discarded(tmp_path: Path) -> None:
    path = tmp_path / "state.json"
    path.write_text('{"version": 1, "jobs": [{"library_id": "x"}]}')

    assert JobStateStore(path).jobs() == []
