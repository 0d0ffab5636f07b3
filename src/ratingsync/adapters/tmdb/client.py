"""TMDB API client used to map TMDB ids to IMDb ids."""

from __future__ import annotations

from http import HTTPStatus
from logging import getLogger
from typing import TYPE_CHECKING

import httpx
from pydantic import ValidationError

from ratingsync.adapters.http_resilience import BlockingClientSession, ResilientClient
from ratingsync.domain.errors import LookupUnavailableError
from ratingsync.domain.model import LibraryKind

from .schema import ErrorResponse, ExternalIdsResponse

if TYPE_CHECKING:
    from collections.abc import Callable

    from ratingsync.config.http_resilience import ResilienceConfig
    from ratingsync.config.tmdb import TmdbConfig

log = getLogger(__name__)

_SERVICE = "tmdb"


def _media_path(kind: LibraryKind) -> str:
    return "movie" if kind is LibraryKind.MOVIE else "tv"


class TmdbClient:
    """Resolve TMDB movie and TV ids through ``external_ids``.

    All requests share one HTTP session until ``close``.
    """

    def __init__(
        self,
        *,
        config: TmdbConfig,
        client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
    ) -> None:
        self._config = config
        self._session = BlockingClientSession(
            config.resilience, client_factory or ResilientClient
        )

    def lookup(self, source_id: str, kind: LibraryKind) -> str | None:
        return self._session.call(lambda client: self._lookup_async(client, source_id, kind))

    def verify(self) -> bool:
        """Return whether the configured API key is accepted."""

        return self._session.call(self._verify_async)

    def close(self) -> None:
        self._session.close()

    async def _lookup_async(
        self, client: ResilientClient, source_id: str, kind: LibraryKind
    ) -> str | None:
        path = f"{_media_path(kind)}/{source_id}/external_ids"
        try:
            response = await client.get(path, params={"api_key": self._config.api_key})
        except httpx.HTTPError as exc:
            raise LookupUnavailableError(
                f"TMDB request for {path} failed: {exc}", service=_SERVICE
            ) from exc

        if response.status_code == HTTPStatus.NOT_FOUND:
            log.debug("TMDB has no %s entry for id %s", _media_path(kind), source_id)
            return None
        if response.is_error:
            raise LookupUnavailableError(
                f"TMDB returned {response.status_code} for {path}: {_error_message(response)}",
                service=_SERVICE,
            )

        try:
            payload = ExternalIdsResponse.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise LookupUnavailableError(
                f"Unexpected TMDB payload for {path}", service=_SERVICE
            ) from exc
        return payload.imdb

    async def _verify_async(self, client: ResilientClient) -> bool:
        try:
            response = await client.get("configuration", params={"api_key": self._config.api_key})
        except httpx.HTTPError as exc:
            raise LookupUnavailableError(f"TMDB is unreachable: {exc}", service=_SERVICE) from exc

        if response.status_code == HTTPStatus.UNAUTHORIZED:
            log.error("TMDB rejected the API key: %s", _error_message(response))
            return False
        if response.is_error:
            raise LookupUnavailableError(
                f"TMDB returned {response.status_code} while verifying the API key",
                service=_SERVICE,
            )
        return True


def _error_message(response: httpx.Response) -> str:
    try:
        return ErrorResponse.model_validate(response.json()).status_message
    except (ValueError, ValidationError):
        return response.reason_phrase

