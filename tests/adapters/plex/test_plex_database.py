from __future__ import annotations

import sqlite3
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine, insert, select
from sqlalchemy.exc import OperationalError

from ratingsync.adapters.plex import (
    PlexCatalog,
    is_busy_error,
    library_sections,
    metadata_items,
    plex_metadata,
)
from ratingsync.adapters.plex.extra_data import parse_extra_data, with_imdb_rating
from ratingsync.domain.errors import CatalogBusyError
from ratingsync.domain.model import CatalogItem, LibraryKind

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path

EXTRA_DATA = "at%3AaudienceRatingImage=rottentomatoes%3A%2F%2Fimage.rating.upright&pv%3Aversion=5"


@pytest.fixture
def database_path(tmp_path: Path) -> Iterator[Path]:
    path = tmp_path / "com.plexapp.plugins.library.db"
    engine = create_engine(f"sqlite:///{path}")
    plex_metadata.create_all(engine)
    with engine.begin() as connection:
        connection.execute(
            insert(library_sections),
            [
                {"id": 1, "name": "Movies", "section_type": 1},
                {"id": 2, "name": "Shows", "section_type": 2},
                {"id": 3, "name": "Music", "section_type": 8},
            ],
        )
        connection.execute(
            insert(metadata_items),
            [
                {
                    "id": 10,
                    "library_section_id": 1,
                    "metadata_type": 1,
                    "guid": "com.plexapp.agents.imdb://tt0133093?lang=en",
                    "title": "The Matrix",
                    "hash": "0123456789abcdef",
                    "audience_rating": 8.5,
                    "extra_data": EXTRA_DATA + "&at%3AimdbVoteCount=1000",
                },
                {
                    "id": 11,
                    "library_section_id": 1,
                    "metadata_type": 1,
                    "guid": "com.plexapp.agents.themoviedb://603?lang=en",
                    "title": "The Matrix Reloaded",
                    "hash": "fedcba9876543210",
                    "audience_rating": None,
                    "extra_data": None,
                },
                {
                    "id": 20,
                    "library_section_id": 2,
                    "metadata_type": 2,
                    "guid": "com.plexapp.agents.thetvdb://81189?lang=en",
                    "title": "Breaking Bad",
                    "hash": "aa00",
                    "audience_rating": 9.0,
                    "extra_data": "",
                },
                {
                    "id": 21,
                    "library_section_id": 2,
                    "metadata_type": 4,
                    "guid": "com.plexapp.agents.thetvdb://81189/1/1?lang=en",
                    "title": "Pilot",
                    "hash": "bb11",
                    "audience_rating": None,
                    "extra_data": None,
                },
            ],
        )
    engine.dispose()
    yield path


def test_list_libraries_filters_by_kind_and_counts_items(database_path: Path) -> None:
    catalog = PlexCatalog(database_path)

    with catalog.session() as session:
        libraries = session.list_libraries([LibraryKind.MOVIE, LibraryKind.SERIES])
        movies_only = session.list_libraries([LibraryKind.MOVIE])

    assert [(lib.id, lib.name, lib.kind, lib.item_count) for lib in libraries] == [
        (1, "Movies", LibraryKind.MOVIE, 2),
        (2, "Shows", LibraryKind.SERIES, 1),
    ]
    assert [lib.id for lib in movies_only] == [1]


def test_list_items_reads_rating_votes_and_hash(database_path: Path) -> None:
    catalog = PlexCatalog(database_path)

    with catalog.session() as session:
        [movies, _shows] = session.list_libraries([LibraryKind.MOVIE, LibraryKind.SERIES])
        items = session.list_items(movies)

    assert [item.id for item in items] == [10, 11]
    matrix = items[0]
    assert matrix.title == "The Matrix"
    assert matrix.metadata_hash == "0123456789abcdef"
    assert (matrix.rating, matrix.votes) == (8.5, 1000)
    assert (items[1].rating, items[1].votes) == (None, None)


def test_list_items_for_shows_skips_episodes(database_path: Path) -> None:
    catalog = PlexCatalog(database_path)

    with catalog.session() as session:
        [shows] = session.list_libraries([LibraryKind.SERIES])
        items = session.list_items(shows)

    assert [item.id for item in items] == [20]


def test_batch_write_updates_rating_and_preserves_extra_keys(database_path: Path) -> None:
    catalog = PlexCatalog(database_path)
    with catalog.session() as session:
        [movies] = session.list_libraries([LibraryKind.MOVIE])
        items = session.list_items(movies)
        items[0].rating, items[0].votes = 8.7, 2_000_000
        items[1].rating, items[1].votes = 7.2, 600_000
        session.batch_write(items)

    engine = create_engine(f"sqlite:///{database_path}")
    with engine.connect() as connection:
        rows = {
            row.id: row
            for row in connection.execute(
                select(
                    metadata_items.c.id,
                    metadata_items.c.audience_rating,
                    metadata_items.c.extra_data,
                )
            )
        }
    engine.dispose()

    assert rows[10].audience_rating == pytest.approx(8.7)
    matrix_extra = parse_extra_data(rows[10].extra_data)
    assert matrix_extra["at:audienceRatingImage"] == "imdb://image.rating"
    assert matrix_extra["at:imdbVoteCount"] == "2000000"
    assert matrix_extra["pv:version"] == "5"
    assert parse_extra_data(rows[11].extra_data)["at:imdbVoteCount"] == "600000"
    assert rows[20].audience_rating == pytest.approx(9.0)


def test_locked_database_raises_catalog_busy(database_path: Path) -> None:
    items = [CatalogItem(id=10, guid="com.plexapp.agents.imdb://tt0133093", rating=8.7, votes=1)]
    holder = sqlite3.connect(database_path, isolation_level=None)
    holder.execute("BEGIN EXCLUSIVE")
    try:
        catalog = PlexCatalog(database_path, busy_timeout_seconds=0)
        with catalog.session() as session, pytest.raises(CatalogBusyError):
            session.batch_write(items)
    finally:
        holder.execute("ROLLBACK")
        holder.close()


@pytest.mark.parametrize(
    ("message", "expected"),
    [
        ("database is locked", True),
        ("[SQLITE_BUSY] The database file is locked", True),
        ("database table is locked", True),
        ("no such table: metadata_items", False),
        ("disk I/O error", False),
    ],
)
def test_is_busy_error_matches_lock_messages(message: str, *, expected: bool) -> None:
    error = OperationalError("UPDATE metadata_items", {}, sqlite3.OperationalError(message))

    assert is_busy_error(error) is expected


def test_extra_data_keeps_unrelated_keys_and_sets_rating_image() -> None:
    updated = parse_extra_data(with_imdb_rating(EXTRA_DATA, 42))

    assert updated == {
        "at:audienceRatingImage": "imdb://image.rating",
        "pv:version": "5",
        "at:imdbVoteCount": "42",
    }


def test_extra_data_from_empty_column() -> None:
    assert parse_extra_data(with_imdb_rating(None, 7)) == {
        "at:audienceRatingImage": "imdb://image.rating",
        "at:imdbVoteCount": "7",
    }
