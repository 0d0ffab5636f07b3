"""Resolution caches: source id → IMDb id, with expiring blacklist entries."""

from __future__ import annotations

import threading
from datetime import UTC, datetime, timedelta
from logging import getLogger
from typing import TYPE_CHECKING

from pydantic import ValidationError

from ratingsync.domain.ports import CacheEntry

from .files import write_text_atomically
from .schema import CacheFile, CacheRecord

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

log = getLogger(__name__)

DEFAULT_BLACKLIST_TTL = timedelta(days=14)


def utcnow() -> datetime:
    return datetime.now(UTC)


class InMemoryCacheStore:
    """Cache held in memory only.

    Blacklist entries expire ``blacklist_ttl`` after storing and are evicted when read.
    """

    def __init__(
        self,
        name: str,
        *,
        blacklist_ttl: timedelta = DEFAULT_BLACKLIST_TTL,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.name = name
        self.blacklist_ttl = blacklist_ttl
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: dict[str, CacheEntry] = {}
        self._dirty = False

    def lookup(self, source_id: str) -> CacheEntry | None:
        with self._lock:
            entry = self._entries.get(source_id)
            if entry is not None and self._is_expired(entry):
                del self._entries[source_id]
                self._dirty = True
                return None
        return entry

    def store(self, source_id: str, imdb_id: str) -> None:
        self._put(source_id, imdb_id)

    def blacklist(self, source_id: str) -> None:
        self._put(source_id, None)

    def purge_expired(self) -> int:
        with self._lock:
            expired = [key for key, entry in self._entries.items() if self._is_expired(entry)]
            for key in expired:
                del self._entries[key]
            if expired:
                self._dirty = True
        return len(expired)

    def flush(self) -> None:
        with self._lock:
            self._dirty = False

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _put(self, source_id: str, value: str | None) -> None:
        with self._lock:
            self._entries[source_id] = CacheEntry(value=value, stored_at=self._clock())
            self._dirty = True

    def _is_expired(self, entry: CacheEntry) -> bool:
        expires_at = entry.expires_at(self.blacklist_ttl)
        return expires_at is not None and self._clock() >= expires_at


class JsonCacheStore(InMemoryCacheStore):
    """Cache persisted as a JSON object keyed by source id.

    The file is read once on construction and rewritten atomically by ``flush()``
    when something changed. An unreadable file is treated as empty.
    """

    def __init__(
        self,
        name: str,
        path: Path,
        *,
        blacklist_ttl: timedelta = DEFAULT_BLACKLIST_TTL,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        super().__init__(name, blacklist_ttl=blacklist_ttl, clock=clock)
        self.path = path
        self._entries = self._load()

    def flush(self) -> None:
        with self._lock:
            if not self._dirty:
                return
            document = CacheFile(
                {
                    key: CacheRecord(value=entry.value, stored_at=entry.stored_at.timestamp())
                    for key, entry in self._entries.items()
                }
            )
            write_text_atomically(self.path, document.model_dump_json(indent=2))
            self._dirty = False
        log.debug("Flushed %s cache with %s entries to %s", self.name, len(self), self.path)

    def _load(self) -> dict[str, CacheEntry]:
        if not self.path.is_file():
            return {}
        try:
            raw = self.path.read_text(encoding="utf-8")
            document = CacheFile.model_validate_json(raw) if raw.strip() else CacheFile({})
        except (OSError, ValidationError) as exc:
            log.warning("Ignoring unreadable %s cache at %s: %s", self.name, self.path, exc)
            return {}
        entries = {
            key: CacheEntry(
                value=record.value,
                stored_at=datetime.fromtimestamp(record.stored_at, tz=UTC),
            )
            for key, record in document.root.items()
        }
        log.debug("Loaded %s entries for %s cache from %s", len(entries), self.name, self.path)
        return entries
