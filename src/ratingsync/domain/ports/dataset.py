"""Port for the read-only rating dataset."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from ratingsync.domain.model import Rating


@runtime_checkable
class RatingDataset(Protocol):
    def lookup(self, imdb_id: str) -> Rating | None: ...

    def __len__(self) -> int: ...
