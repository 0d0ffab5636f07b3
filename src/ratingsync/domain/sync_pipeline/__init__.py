"""Resumable rating synchronization pipeline.

A ``Job`` moves through ``CREATED → RESOLVED → ACCUMULATED → TRANSFORMED →
DB_UPDATED → COMPLETED``. ``RatingPipeline`` holds one handler per transition and
``JobRunner`` executes them in order, classifying failures as pass/abort/fatal.
"""

from __future__ import annotations

from .file_updates import (
    FileUpdateOutcome,
    FileUpdateWorker,
    MissingFileReport,
    partition,
    run_file_updates,
)
from .locking import write_with_lock_retry
from .pipeline import Pipeline, RatingPipeline, StageHandler
from .runner import JobResult, JobRunner, ResultCode

__all__ = [
    "FileUpdateOutcome",
    "FileUpdateWorker",
    "JobResult",
    "JobRunner",
    "MissingFileReport",
    "Pipeline",
    "RatingPipeline",
    "ResultCode",
    "StageHandler",
    "partition",
    "run_file_updates",
    "write_with_lock_retry",
]
