"""Rating values taken from the bulk dataset."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Rating:
    value: float
    votes: int
