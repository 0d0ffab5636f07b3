"""Writer for the ``Info.xml`` fallback files inside Plex metadata bundles."""

from __future__ import annotations

import os
import tempfile
import xml.etree.ElementTree as ET
from logging import getLogger
from pathlib import Path
from typing import TYPE_CHECKING, Final

from ratingsync.domain.model import LibraryKind

from .extra_data import IMDB_RATING_IMAGE

if TYPE_CHECKING:
    from ratingsync.domain.model import CatalogItem

log = getLogger(__name__)

RATING_ATTRIBUTE: Final[str] = "audienceRating"
RATING_IMAGE_ATTRIBUTE: Final[str] = "audienceRatingImage"
_BUNDLE_TAIL: Final[Path] = Path("Contents", "_combined", "Info.xml")


class PlexInfoXmlWriter:
    """Rewrites the rating attributes on the root element of an item's ``Info.xml``.

    The bundle location is derived from the item's metadata hash:
    ``<root>/<hash[0]>/<hash[1:]>.bundle/Contents/_combined/Info.xml``.
    """

    def __init__(self, movie_root: Path, series_root: Path) -> None:
        self.movie_root = movie_root
        self.series_root = series_root

    def root_for(self, kind: LibraryKind) -> Path:
        return self.movie_root if kind is LibraryKind.MOVIE else self.series_root

    def path_for(self, item: CatalogItem, kind: LibraryKind) -> Path | None:
        metadata_hash = (item.metadata_hash or "").strip()
        if len(metadata_hash) < 2:  # noqa: PLR2004
            return None
        bundle = f"{metadata_hash[1:]}.bundle"
        return self.root_for(kind) / metadata_hash[0] / bundle / _BUNDLE_TAIL

    def update(self, item: CatalogItem, kind: LibraryKind) -> None:
        path = self.path_for(item, kind)
        if path is None:
            raise FileNotFoundError(f"Item {item.id} has no metadata hash")
        if not path.is_file():
            raise FileNotFoundError(str(path))
        if item.rating is None:
            log.debug("Item %s has no rating to write, leaving %s untouched", item.id, path)
            return

        tree = ET.parse(path)
        root = tree.getroot()
        root.set(RATING_ATTRIBUTE, f"{item.rating:.1f}")
        root.set(RATING_IMAGE_ATTRIBUTE, IMDB_RATING_IMAGE)
        _write_atomically(tree, path)


def _write_atomically(tree: ET.ElementTree, path: Path) -> None:
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "wb") as handle:
            tree.write(handle, encoding="utf-8", xml_declaration=True)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise
