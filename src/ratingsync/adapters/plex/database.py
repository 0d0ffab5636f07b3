"""SQLAlchemy gateway to the Plex library database."""

from __future__ import annotations

from contextlib import contextmanager
from logging import getLogger
from typing import TYPE_CHECKING, Final

from sqlalchemy import bindparam, create_engine, func, select, update
from sqlalchemy.exc import OperationalError
from sqlalchemy.pool import NullPool

from ratingsync.domain.errors import CatalogBusyError
from ratingsync.domain.model import CatalogItem, Library

from .extra_data import parse_extra_data, vote_count, with_imdb_rating
from .tables import METADATA_TYPES, SECTION_TYPES, library_sections, metadata_items

if TYPE_CHECKING:
    from collections.abc import Collection, Iterator, Sequence
    from pathlib import Path

    from sqlalchemy.engine import Connection, Engine

    from ratingsync.domain.model import LibraryKind

log = getLogger(__name__)

BUSY_ERROR_NAMES: Final[frozenset[str]] = frozenset({"SQLITE_BUSY", "SQLITE_LOCKED"})
_BUSY_MESSAGES: Final[tuple[str, ...]] = ("database is locked", "database table is locked")
_SELECT_CHUNK = 500


def is_busy_error(exc: OperationalError) -> bool:
    """Return whether ``exc`` means another process holds the SQLite write lock."""

    original = exc.orig
    error_name = getattr(original, "sqlite_errorname", None)
    if error_name in BUSY_ERROR_NAMES:
        return True
    message = str(original if original is not None else exc).strip().lower()
    return message.startswith("[sqlite_busy]") or any(text in message for text in _BUSY_MESSAGES)


class PlexCatalogSession:
    """Catalog operations bound to one engine for the lifetime of a ``session()`` block."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    def list_libraries(self, kinds: Collection[LibraryKind]) -> list[Library]:
        kind_by_type = {SECTION_TYPES[kind]: kind for kind in kinds}
        if not kind_by_type:
            return []

        item_count = (
            select(func.count(metadata_items.c.id))
            .where(metadata_items.c.library_section_id == library_sections.c.id)
            .where(metadata_items.c.metadata_type == library_sections.c.section_type)
            .scalar_subquery()
        )
        statement = (
            select(
                library_sections.c.id,
                library_sections.c.name,
                library_sections.c.section_type,
                item_count.label("item_count"),
            )
            .where(library_sections.c.section_type.in_(kind_by_type))
            .order_by(library_sections.c.id)
        )
        with self._engine.connect() as connection:
            rows = connection.execute(statement).all()
        return [
            Library(
                id=row.id,
                name=row.name or "",
                kind=kind_by_type[row.section_type],
                item_count=row.item_count or 0,
            )
            for row in rows
        ]

    def list_items(self, library: Library) -> list[CatalogItem]:
        statement = (
            select(
                metadata_items.c.id,
                metadata_items.c.guid,
                metadata_items.c.title,
                metadata_items.c.hash,
                metadata_items.c.audience_rating,
                metadata_items.c.extra_data,
            )
            .where(metadata_items.c.library_section_id == library.id)
            .where(metadata_items.c.metadata_type == METADATA_TYPES[library.kind])
            .order_by(metadata_items.c.id)
        )
        with self._engine.connect() as connection:
            rows = connection.execute(statement).all()
        log.debug("Read %s item(s) from library %s", len(rows), library.name)
        return [
            CatalogItem(
                id=row.id,
                guid=row.guid or "",
                title=row.title or "",
                metadata_hash=row.hash,
                rating=row.audience_rating,
                votes=vote_count(parse_extra_data(row.extra_data)),
            )
            for row in rows
        ]

    def batch_write(self, items: Sequence[CatalogItem]) -> None:
        if not items:
            return
        try:
            with self._engine.begin() as connection:
                current = _read_extra_data(connection, [item.id for item in items])
                connection.execute(
                    update(metadata_items)
                    .where(metadata_items.c.id == bindparam("item_id"))
                    .values(
                        audience_rating=bindparam("rating"),
                        extra_data=bindparam("extra"),
                    ),
                    [
                        {
                            "item_id": item.id,
                            "rating": item.rating,
                            "extra": with_imdb_rating(current.get(item.id), item.votes),
                        }
                        for item in items
                    ],
                )
        except OperationalError as exc:
            if is_busy_error(exc):
                raise CatalogBusyError(f"Plex database is locked: {exc.orig}") from exc
            raise


def _read_extra_data(connection: Connection, ids: Sequence[int]) -> dict[int, str | None]:
    values: dict[int, str | None] = {}
    for start in range(0, len(ids), _SELECT_CHUNK):
        chunk = ids[start : start + _SELECT_CHUNK]
        rows = connection.execute(
            select(metadata_items.c.id, metadata_items.c.extra_data).where(
                metadata_items.c.id.in_(chunk)
            )
        )
        values.update({row.id: row.extra_data for row in rows})
    return values


class PlexCatalog:
    """Opens a fresh engine per ``session()`` and disposes it when the block exits."""

    def __init__(self, database_path: Path, *, busy_timeout_seconds: float = 5.0) -> None:
        self.database_path = database_path
        self.busy_timeout_seconds = busy_timeout_seconds

    @property
    def database_uri(self) -> str:
        return f"sqlite:///{self.database_path}"

    @contextmanager
    def session(self) -> Iterator[PlexCatalogSession]:
        engine = create_engine(
            self.database_uri,
            poolclass=NullPool,
            connect_args={"timeout": self.busy_timeout_seconds},
        )
        try:
            yield PlexCatalogSession(engine)
        finally:
            engine.dispose()
