"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import IntEnum, StrEnum


class Scheme(StrEnum):
    """Source system that produced an item's guid."""

    IMDB = "IMDB"
    TMDB = "TMDB"
    TVDB = "TVDB"


class LibraryKind(StrEnum):
    MOVIE = "movie"
    SERIES = "series"


class JobStage(IntEnum):
    """Fixed, forward-only sequence of pipeline stages."""

    CREATED = 0
    RESOLVED = 1
    ACCUMULATED = 2
    TRANSFORMED = 3
    DB_UPDATED = 4
    COMPLETED = 5

    @property
    def is_terminal(self) -> bool:
        return self is JobStage.COMPLETED

    def next_stage(self) -> JobStage:
        if self.is_terminal:
            raise ValueError("COMPLETED is terminal and has no next stage")
        return JobStage(self.value + 1)
