"""Download and parse the IMDb ``title.ratings`` bulk dataset."""

from __future__ import annotations

import asyncio
import gzip
from logging import getLogger
from typing import TYPE_CHECKING

import httpx

from ratingsync.adapters.http_resilience import ResilientClient
from ratingsync.domain.errors import DatasetAcquireError
from ratingsync.domain.model import Rating

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Mapping

    from ratingsync.config.http_resilience import ResilienceConfig
    from ratingsync.config.imdb import ImdbDatasetConfig

log = getLogger(__name__)

HEADER_PREFIX = "tconst"
_COLUMNS = 3


class ImdbRatingDataset:
    """Immutable view over one download of the rating dataset."""

    __slots__ = ("_ratings",)

    def __init__(self, ratings: Mapping[str, Rating]) -> None:
        self._ratings = dict(ratings)

    def lookup(self, imdb_id: str) -> Rating | None:
        return self._ratings.get(imdb_id)

    def __len__(self) -> int:
        return len(self._ratings)

    def __contains__(self, imdb_id: object) -> bool:
        return imdb_id in self._ratings


def parse_rating_tsv(lines: Iterable[str]) -> dict[str, Rating]:
    """Parse ``tconst``, ``averageRating``, ``numVotes`` rows, skipping the header.

    Malformed rows are skipped.
    """

    ratings: dict[str, Rating] = {}
    skipped = 0
    for raw in lines:
        line = raw.rstrip("\r\n")
        if not line or line.startswith(HEADER_PREFIX):
            continue
        columns = line.split("\t")
        if len(columns) != _COLUMNS:
            skipped += 1
            continue
        imdb_id, average, votes = columns
        try:
            ratings[imdb_id] = Rating(value=float(average), votes=int(votes))
        except ValueError:
            skipped += 1
    if skipped:
        log.debug("Skipped %s malformed dataset row(s)", skipped)
    return ratings


def _default_client_factory(config: ResilienceConfig) -> ResilientClient:
    return ResilientClient(config)


def download_rating_dataset(
    config: ImdbDatasetConfig,
    *,
    client_factory: Callable[[ResilienceConfig], ResilientClient] = _default_client_factory,
) -> ImdbRatingDataset:
    """Fetch, decompress and parse the dataset; any failure raises ``DatasetAcquireError``."""

    log.info("Downloading IMDb rating dataset %s", config.path)
    try:
        payload = asyncio.run(_fetch(config, client_factory))
    except httpx.HTTPError as exc:
        raise DatasetAcquireError(f"Could not download the IMDb dataset: {exc}") from exc

    try:
        text = gzip.decompress(payload).decode("utf-8")
    except (OSError, EOFError, UnicodeDecodeError) as exc:
        raise DatasetAcquireError(f"Could not decompress the IMDb dataset: {exc}") from exc

    ratings = parse_rating_tsv(text.splitlines())
    if not ratings:
        raise DatasetAcquireError("The IMDb dataset contained no ratings")
    log.info("Loaded %s rating(s) from the IMDb dataset", len(ratings))
    return ImdbRatingDataset(ratings)


async def _fetch(
    config: ImdbDatasetConfig,
    client_factory: Callable[[ResilienceConfig], ResilientClient],
) -> bytes:
    async with client_factory(config.resilience) as client:
        response = await client.get(config.path)
        response.raise_for_status()
        return response.content
