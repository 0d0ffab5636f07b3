"""Port for the persisted resolution cache."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from datetime import datetime, timedelta


@dataclass(frozen=True, slots=True)
class CacheEntry:
    """Cached verdict for one source reference; ``value is None`` means blacklisted."""

    value: str | None
    stored_at: datetime

    @property
    def is_blacklisted(self) -> bool:
        return self.value is None

    def expires_at(self, blacklist_ttl: timedelta) -> datetime | None:
        if not self.is_blacklisted:
            return None
        return self.stored_at + blacklist_ttl


@runtime_checkable
class ResolutionCache(Protocol):
    name: str

    def lookup(self, source_id: str) -> CacheEntry | None:
        """Return the live entry for ``source_id``; expired entries count as misses."""
        ...

    def store(self, source_id: str, imdb_id: str) -> None: ...

    def blacklist(self, source_id: str) -> None: ...

    def purge_expired(self) -> int: ...

    def flush(self) -> None: ...

    def __len__(self) -> int: ...
