"""Catalog-side entities: libraries, items and their source references."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Final

from .enums import LibraryKind, Scheme

if TYPE_CHECKING:
    from .rating import Rating

RATING_TOLERANCE: Final[float] = 1e-3

_GUID_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"(?P<IMDB>agents\.imdb://(?P<imdb_id>tt[^?/#]+))"
    r"|(?P<TMDB>agents\.themoviedb://(?P<tmdb_id>[^?/#]+))"
    r"|(?P<TVDB>agents\.thetvdb://(?P<tvdb_id>[^?/#]+))"
)


@dataclass(frozen=True, slots=True)
class SourceReference:
    """Scheme-tagged raw identifier parsed from a catalog guid."""

    scheme: Scheme
    value: str

    def __str__(self) -> str:
        return f"{self.scheme}:{self.value}"


def parse_source_reference(guid: str | None) -> SourceReference | None:
    """Parse a Plex legacy agent guid, returning ``None`` for unknown schemes.

    >>> parse_source_reference("com.plexapp.agents.themoviedb://603?lang=en")
    SourceReference(scheme=<Scheme.TMDB: 'TMDB'>, value='603')
    """

    if not guid:
        return None
    match = _GUID_PATTERN.search(guid)
    if match is None:
        return None
    for scheme in Scheme:
        if match.group(scheme.value) is not None:
            return SourceReference(scheme, match.group(f"{scheme.value.lower()}_id"))
    return None


@dataclass(frozen=True, slots=True)
class Library:
    id: int
    name: str
    kind: LibraryKind
    item_count: int = 0


@dataclass(eq=False, kw_only=True)
class CatalogItem:
    """One catalog row within a library plus its resolution state.

    Identity is the catalog row id; ``rating`` and ``votes`` hold the values currently
    stored and are overwritten in place by the transform stage.
    """

    id: int
    guid: str
    title: str = ""
    metadata_hash: str | None = None
    rating: float | None = None
    votes: int | None = None
    imdb_id: str | None = None

    @property
    def source(self) -> SourceReference | None:
        return parse_source_reference(self.guid)

    def needs_update(self, rating: Rating) -> bool:
        """Return whether ``rating`` differs from the stored rating or vote count."""

        if self.rating is None or self.votes is None:
            return True
        same_rating = math.isclose(self.rating, rating.value, abs_tol=RATING_TOLERANCE)
        return not (same_rating and self.votes == rating.votes)

    def apply(self, rating: Rating) -> None:
        self.rating = rating.value
        self.votes = rating.votes

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CatalogItem):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    def __repr__(self) -> str:
        return f"CatalogItem(id={self.id}, guid={self.guid!r}, imdb_id={self.imdb_id!r})"
