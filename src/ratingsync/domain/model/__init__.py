"""Domain model for rating synchronization."""

from __future__ import annotations

from .catalog import CatalogItem, Library, SourceReference, parse_source_reference
from .enums import JobStage, LibraryKind, Scheme
from .job import Job, StageRegressionError
from .rating import Rating

__all__ = [
    "CatalogItem",
    "Job",
    "JobStage",
    "Library",
    "LibraryKind",
    "Rating",
    "Scheme",
    "SourceReference",
    "StageRegressionError",
    "parse_source_reference",
]
