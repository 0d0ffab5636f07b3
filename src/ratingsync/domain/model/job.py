"""Per-library unit of synchronization work."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING
from uuid import uuid4

from .enums import JobStage, LibraryKind

if TYPE_CHECKING:
    from collections.abc import Iterable

    from .catalog import CatalogItem, Library


class StageRegressionError(ValueError):
    """Raised when a job's stage marker would move backwards."""


def _new_run_token() -> str:
    return uuid4().hex


@dataclass(eq=False, kw_only=True)
class Job:
    """Synchronization job for one library.

    The stage marker only moves forward. ``items`` is the working set still pending at
    the current stage; it shrinks as items are filtered out or committed.
    """

    library_id: int
    library_name: str
    kind: LibraryKind
    run_token: str = field(default_factory=_new_run_token)
    stage: JobStage = JobStage.CREATED
    items: list[CatalogItem] = field(default_factory=list["CatalogItem"])

    @classmethod
    def for_library(cls, library: Library) -> Job:
        return cls(library_id=library.id, library_name=library.name, kind=library.kind)

    @property
    def is_completed(self) -> bool:
        return self.stage.is_terminal

    def advance(self, stage: JobStage) -> None:
        if stage < self.stage:
            raise StageRegressionError(
                f"Job {self.run_token} cannot move from {self.stage.name} back to {stage.name}"
            )
        self.stage = stage

    def drop(self, items: Iterable[CatalogItem]) -> int:
        """Remove ``items`` from the working set and return how many were removed."""

        doomed = {item.id for item in items}
        if not doomed:
            return 0
        before = len(self.items)
        self.items = [item for item in self.items if item.id not in doomed]
        return before - len(self.items)

    def describe(self) -> str:
        return f"[{self.kind}] {self.library_name} with UUID {self.run_token}"
