"""TVDB API client used to map TVDB series ids to IMDb ids."""

from __future__ import annotations

from http import HTTPStatus
from logging import getLogger
from typing import TYPE_CHECKING

import httpx
from pydantic import ValidationError

from ratingsync.adapters.http_resilience import BlockingClientSession, ResilientClient
from ratingsync.domain.errors import LookupUnavailableError

from .schema import LoginResponse, SeriesExtendedResponse

if TYPE_CHECKING:
    from collections.abc import Callable

    from ratingsync.config.http_resilience import ResilienceConfig
    from ratingsync.config.tvdb import TvdbConfig
    from ratingsync.domain.model import LibraryKind

log = getLogger(__name__)

_SERVICE = "tvdb"


class TvdbClient:
    """Resolve TVDB series ids through the ``remoteIds`` of the extended series record.

    The bearer token from ``/login`` and one HTTP session are kept until ``close``.
    The token is refreshed once when the API answers 401.
    """

    def __init__(
        self,
        *,
        config: TvdbConfig,
        client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
    ) -> None:
        self._config = config
        self._session = BlockingClientSession(
            config.resilience, client_factory or ResilientClient
        )
        self._token: str | None = None

    def lookup(self, source_id: str, kind: LibraryKind) -> str | None:
        _ = kind
        return self._session.call(lambda client: self._lookup_async(client, source_id))

    def verify(self) -> bool:
        """Return whether a login with the configured API key succeeds."""

        return self._session.call(self._verify_async)

    def close(self) -> None:
        self._session.close()

    async def _lookup_async(self, client: ResilientClient, source_id: str) -> str | None:
        response = await self._fetch_series(client, source_id)
        if response.status_code == HTTPStatus.UNAUTHORIZED:
            log.debug("TVDB token rejected, logging in again")
            self._token = None
            response = await self._fetch_series(client, source_id)

        if response.status_code == HTTPStatus.NOT_FOUND:
            log.debug("TVDB has no series with id %s", source_id)
            return None
        if response.is_error:
            raise LookupUnavailableError(
                f"TVDB returned {response.status_code} for series {source_id}",
                service=_SERVICE,
            )

        try:
            payload = SeriesExtendedResponse.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise LookupUnavailableError(
                f"Unexpected TVDB payload for series {source_id}", service=_SERVICE
            ) from exc
        return payload.data.imdb_id

    async def _fetch_series(self, client: ResilientClient, source_id: str) -> httpx.Response:
        token = await self._ensure_token(client)
        try:
            return await client.get(
                f"series/{source_id}/extended",
                params={"meta": "translations", "short": "true"},
                headers={"Authorization": f"Bearer {token}"},
            )
        except httpx.HTTPError as exc:
            raise LookupUnavailableError(
                f"TVDB request for series {source_id} failed: {exc}", service=_SERVICE
            ) from exc

    async def _ensure_token(self, client: ResilientClient) -> str:
        if self._token is not None:
            return self._token

        response = await self._login(client)
        if response.is_error:
            raise LookupUnavailableError(
                f"TVDB login failed with status {response.status_code}", service=_SERVICE
            )
        self._token = _login_token(response)
        return self._token

    async def _login(self, client: ResilientClient) -> httpx.Response:
        try:
            return await client.post("login", json={"apikey": self._config.api_key})
        except httpx.HTTPError as exc:
            raise LookupUnavailableError(f"TVDB is unreachable: {exc}", service=_SERVICE) from exc

    async def _verify_async(self, client: ResilientClient) -> bool:
        response = await self._login(client)
        if response.status_code == HTTPStatus.UNAUTHORIZED:
            log.error("TVDB rejected the API key")
            return False
        if response.is_error:
            raise LookupUnavailableError(
                f"TVDB returned {response.status_code} while verifying the API key",
                service=_SERVICE,
            )
        self._token = _login_token(response)
        return True


def _login_token(response: httpx.Response) -> str:
    try:
        return LoginResponse.model_validate(response.json()).data.token
    except (ValueError, ValidationError) as exc:
        raise LookupUnavailableError("Unexpected TVDB login payload", service=_SERVICE) from exc
