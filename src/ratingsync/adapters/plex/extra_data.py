"""Codec for the url-encoded ``extra_data`` column of ``metadata_items``."""

from __future__ import annotations

from typing import Final
from urllib.parse import parse_qsl, quote

RATING_IMAGE_KEY: Final[str] = "at:audienceRatingImage"
VOTE_COUNT_KEY: Final[str] = "at:imdbVoteCount"
IMDB_RATING_IMAGE: Final[str] = "imdb://image.rating"


def parse_extra_data(raw: str | None) -> dict[str, str]:
    """Decode ``at:key=value&...`` into an ordered mapping.

    >>> parse_extra_data("at%3AaudienceRatingImage=imdb%3A%2F%2Fimage.rating&at:imdbVoteCount=12")
    {'at:audienceRatingImage': 'imdb://image.rating', 'at:imdbVoteCount': '12'}
    """

    if not raw:
        return {}
    return dict(parse_qsl(raw, keep_blank_values=True))


def format_extra_data(values: dict[str, str]) -> str:
    return "&".join(
        f"{quote(key, safe=':')}={quote(value, safe='')}" for key, value in values.items()
    )


def vote_count(values: dict[str, str]) -> int | None:
    raw = values.get(VOTE_COUNT_KEY)
    if raw is None:
        return None
    try:
        return int(raw)
    except ValueError:
        return None


def with_imdb_rating(raw: str | None, votes: int | None) -> str:
    """Return ``raw`` with the IMDb rating image and vote count set, other keys preserved."""

    values = parse_extra_data(raw)
    values[RATING_IMAGE_KEY] = IMDB_RATING_IMAGE
    if votes is not None:
        values[VOTE_COUNT_KEY] = str(votes)
    return format_extra_data(values)
