"""Ports for reading and writing the media catalog."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Collection, Sequence
    from contextlib import AbstractContextManager

    from ratingsync.domain.model import CatalogItem, Library, LibraryKind


@runtime_checkable
class CatalogSession(Protocol):
    """Operations available while a scoped catalog connection is open."""

    def list_libraries(self, kinds: Collection[LibraryKind]) -> list[Library]: ...

    def list_items(self, library: Library) -> list[CatalogItem]: ...

    def batch_write(self, items: Sequence[CatalogItem]) -> None:
        """Persist rating fields for ``items`` in one transaction.

        Raises ``CatalogBusyError`` when the database is locked by another process;
        any other failure propagates unchanged.
        """
        ...


@runtime_checkable
class CatalogGateway(Protocol):
    """Factory for scoped catalog sessions (opened, used, released per stage)."""

    def session(self) -> AbstractContextManager[CatalogSession]: ...
