from __future__ import annotations

import pytest

from ratingsync.domain.model import Job, JobStage, Library, LibraryKind, StageRegressionError
from tests.helpers.catalog import make_item


def _job() -> Job:
    return Job.for_library(Library(id=3, name="Movies", kind=LibraryKind.MOVIE))


def test_new_job_starts_at_created_with_unique_token() -> None:
    first = _job()
    second = _job()

    assert first.stage is JobStage.CREATED
    assert first.items == []
    assert first.run_token != second.run_token


def test_advance_moves_forward_only() -> None:
    job = _job()
    job.advance(JobStage.RESOLVED)
    job.advance(JobStage.ACCUMULATED)

    with pytest.raises(StageRegressionError):
        job.advance(JobStage.RESOLVED)
    assert job.stage is JobStage.ACCUMULATED


def test_completed_is_terminal() -> None:
    job = _job()
    job.advance(JobStage.COMPLETED)

    assert job.is_completed
    with pytest.raises(ValueError, match="terminal"):
        JobStage.COMPLETED.next_stage()


def test_next_stage_follows_declared_order() -> None:
    stages = [JobStage.CREATED]
    while not stages[-1].is_terminal:
        stages.append(stages[-1].next_stage())

    assert stages == list(JobStage)


def test_drop_removes_items_by_id_and_reports_count() -> None:
    job = _job()
    job.items = [make_item(1, "g1"), make_item(2, "g2"), make_item(3, "g3")]

    removed = job.drop([make_item(2, "other"), make_item(9, "unknown")])

    assert removed == 1
    assert [item.id for item in job.items] == [1, 3]


def test_describe_includes_kind_name_and_token() -> None:
    job = _job()

    description = job.describe()

    assert "movie" in description
    assert "Movies" in description
    assert job.run_token in description
