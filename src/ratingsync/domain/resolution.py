"""Resolution of scheme-tagged source references to IMDb ids.

Each scheme has exactly one strategy. ``SchemeResolver`` dispatches on the scheme
parsed from the item's guid; items whose guid matches no known scheme are dropped.
"""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING, Protocol

from ratingsync.domain.model import LibraryKind, Scheme

if TYPE_CHECKING:
    from collections.abc import Mapping

    from ratingsync.domain.model import CatalogItem
    from ratingsync.domain.ports import IdLookup, ResolutionCache

log = getLogger(__name__)


class ResolutionStrategy(Protocol):
    """Confirm or set an item's IMDb id; ``False`` drops the item."""

    def resolve(self, item: CatalogItem, kind: LibraryKind) -> bool: ...


class IdentityResolution:
    """The guid already carries the IMDb id."""

    def resolve(self, item: CatalogItem, kind: LibraryKind) -> bool:
        _ = kind
        source = item.source
        if source is None:
            return False
        item.imdb_id = source.value
        return True


class DisabledResolution:
    """Stand-in for schemes whose credentials were not supplied."""

    def resolve(self, item: CatalogItem, kind: LibraryKind) -> bool:
        _ = (item, kind)
        return False


@dataclass(slots=True)
class CachedLookupResolution:
    """Cache-first resolution backed by a remote lookup.

    A definitive "no mapping" answer is blacklisted in the cache. Transient lookup
    failures (``LookupUnavailableError``) propagate and are never cached.
    """

    cache: ResolutionCache
    lookup: IdLookup

    def resolve(self, item: CatalogItem, kind: LibraryKind) -> bool:
        source = item.source
        if source is None:
            return False

        entry = self.cache.lookup(source.value)
        if entry is not None:
            if entry.is_blacklisted:
                return False
            item.imdb_id = entry.value
            return True

        imdb_id = self.lookup.lookup(source.value, kind)
        if imdb_id is None:
            log.warning(
                "No IMDb id for %s (%s); blacklisting in %s cache",
                source,
                item.title,
                self.cache.name,
            )
            self.cache.blacklist(source.value)
            return False

        self.cache.store(source.value, imdb_id)
        item.imdb_id = imdb_id
        return True


@dataclass(slots=True)
class KindRoutedResolution:
    """Route to a different strategy per library kind (e.g. TMDB movies vs. TV)."""

    movie: ResolutionStrategy
    series: ResolutionStrategy

    def resolve(self, item: CatalogItem, kind: LibraryKind) -> bool:
        strategy = self.movie if kind is LibraryKind.MOVIE else self.series
        return strategy.resolve(item, kind)


@dataclass(slots=True)
class SchemeResolver:
    strategies: Mapping[Scheme, ResolutionStrategy]

    def strategy_for(self, scheme: Scheme) -> ResolutionStrategy | None:
        return self.strategies.get(scheme)

    def resolve(self, item: CatalogItem, kind: LibraryKind) -> bool:
        source = item.source
        if source is None:
            log.warning(
                "Item %s (%s) has no supported agent guid: %s", item.id, item.title, item.guid
            )
            return False
        strategy = self.strategy_for(source.scheme)
        if strategy is None:
            return False
        return strategy.resolve(item, kind)


def build_resolver(
    *,
    tmdb: IdLookup | None,
    tvdb: IdLookup | None,
    caches: Mapping[str, ResolutionCache],
) -> SchemeResolver:
    """Assemble the fixed scheme table, disabling schemes without a lookup client."""

    disabled = DisabledResolution()
    strategies: dict[Scheme, ResolutionStrategy] = {Scheme.IMDB: IdentityResolution()}

    if tmdb is not None:
        strategies[Scheme.TMDB] = KindRoutedResolution(
            movie=CachedLookupResolution(cache=caches["tmdb"], lookup=tmdb),
            series=CachedLookupResolution(cache=caches["tmdb-series"], lookup=tmdb),
        )
    else:
        strategies[Scheme.TMDB] = disabled

    if tvdb is not None:
        strategies[Scheme.TVDB] = CachedLookupResolution(cache=caches["tvdb"], lookup=tvdb)
    else:
        strategies[Scheme.TVDB] = disabled

    return SchemeResolver(strategies=strategies)
