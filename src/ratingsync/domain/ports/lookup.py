"""Ports for resolving source identifiers through remote services."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from ratingsync.domain.model import LibraryKind


@runtime_checkable
class IdLookup(Protocol):
    """Remote lookup from a scheme-specific id to an IMDb id.

    Returns ``None`` when the service definitively has no mapping and raises
    ``LookupUnavailableError`` on transient failures.
    """

    def lookup(self, source_id: str, kind: LibraryKind) -> str | None: ...
