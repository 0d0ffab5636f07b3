"""Plex Media Server adapters: library database, Info.xml files and reports."""

from __future__ import annotations

from .database import PlexCatalog, PlexCatalogSession, is_busy_error
from .reports import MissingFileLogWriter
from .tables import library_sections, metadata_items, plex_metadata
from .xml_files import PlexInfoXmlWriter

__all__ = [
    "MissingFileLogWriter",
    "PlexCatalog",
    "PlexCatalogSession",
    "PlexInfoXmlWriter",
    "is_busy_error",
    "library_sections",
    "metadata_items",
    "plex_metadata",
]
