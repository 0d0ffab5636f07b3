"""SQLAlchemy Core view of the Plex library tables this tool touches.

Only the columns read or written here are declared; the schema is owned by Plex.
"""

from __future__ import annotations

from typing import Final

from sqlalchemy import Column, Float, Integer, MetaData, String, Table

from ratingsync.domain.model import LibraryKind

plex_metadata = MetaData()

library_sections = Table(
    "library_sections",
    plex_metadata,
    Column("id", Integer, primary_key=True),
    Column("name", String),
    Column("section_type", Integer),
)

metadata_items = Table(
    "metadata_items",
    plex_metadata,
    Column("id", Integer, primary_key=True),
    Column("library_section_id", Integer),
    Column("metadata_type", Integer),
    Column("guid", String),
    Column("title", String),
    Column("hash", String),
    Column("audience_rating", Float),
    Column("extra_data", String),
)

SECTION_TYPES: Final[dict[LibraryKind, int]] = {
    LibraryKind.MOVIE: 1,
    LibraryKind.SERIES: 2,
}
METADATA_TYPES: Final[dict[LibraryKind, int]] = {
    LibraryKind.MOVIE: 1,
    LibraryKind.SERIES: 2,
}
