"""Port for per-item auxiliary files."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

    from ratingsync.domain.model import CatalogItem, Job, LibraryKind


@runtime_checkable
class ItemFileWriter(Protocol):
    def path_for(self, item: CatalogItem, kind: LibraryKind) -> Path | None: ...

    def update(self, item: CatalogItem, kind: LibraryKind) -> None:
        """Rewrite the item's file with its current rating fields.

        Raises ``FileNotFoundError`` when the backing file is absent.
        """
        ...


@runtime_checkable
class MissingFileReporter(Protocol):
    """Sink for the per-job "file not found" artifact kept out of the main log."""

    def write(self, job: Job, entries: Sequence[str]) -> Path: ...
