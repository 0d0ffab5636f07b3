"""Ports for persisting unfinished jobs between runs."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from ratingsync.domain.model import Job


@runtime_checkable
class JobStateRepository(Protocol):
    """Durable snapshot of non-terminal jobs keyed by library id."""

    def get(self, library_id: int) -> Job | None: ...

    def save(self, job: Job) -> None: ...

    def remove(self, job: Job) -> None: ...

    def jobs(self) -> list[Job]: ...
