"""Domain port definitions for adapters."""

from __future__ import annotations

from .cache import CacheEntry, ResolutionCache
from .catalog import CatalogGateway, CatalogSession
from .dataset import RatingDataset
from .files import ItemFileWriter, MissingFileReporter
from .lookup import IdLookup
from .persistence import JobStateRepository

__all__ = [
    "CacheEntry",
    "CatalogGateway",
    "CatalogSession",
    "IdLookup",
    "ItemFileWriter",
    "JobStateRepository",
    "MissingFileReporter",
    "RatingDataset",
    "ResolutionCache",
]
