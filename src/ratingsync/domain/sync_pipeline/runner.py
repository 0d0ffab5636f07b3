"""Drive a job through the pipeline and classify the outcome."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING

from ratingsync.domain.errors import AbortCycleError

if TYPE_CHECKING:
    from collections.abc import Callable

    from ratingsync.domain.model import Job

    from .pipeline import Pipeline

log = getLogger(__name__)


class ResultCode(StrEnum):
    PASS = "pass"
    ABORT = "abort"
    FATAL = "fatal"


@dataclass(frozen=True, slots=True)
class JobResult:
    code: ResultCode
    message: str
    exception: BaseException | None = None

    @classmethod
    def passed(cls) -> JobResult:
        return cls(ResultCode.PASS, "Job completed")


def _ignore_transition(job: Job) -> None:
    _ = job


@dataclass(slots=True)
class JobRunner:
    """Run stage handlers in order until the job completes or a handler fails.

    ``on_transition`` is invoked after every successful stage so the job can be
    persisted at its new stage.
    """

    on_transition: Callable[[Job], None] = _ignore_transition

    def run(self, job: Job, pipeline: Pipeline) -> JobResult:
        while not job.is_completed:
            stage = job.stage
            try:
                pipeline.handler_for(stage)(job)
            except AbortCycleError as exc:
                return JobResult(
                    ResultCode.ABORT,
                    f"{type(exc).__name__} at stage {stage.name} for {job.describe()}",
                    exc,
                )
            except Exception as exc:  # noqa: BLE001
                return JobResult(
                    ResultCode.FATAL,
                    f"Unexpected {type(exc).__name__} at stage {stage.name} for {job.describe()}",
                    exc,
                )

            if job.stage <= stage:
                return JobResult(
                    ResultCode.FATAL,
                    f"Handler for {stage.name} did not advance {job.describe()}",
                )
            log.debug("Job %s moved from %s to %s", job.run_token, stage.name, job.stage.name)
            self.on_transition(job)

        return JobResult.passed()
