"""Shared async HTTP client for the TMDB, TVDB and IMDb dataset adapters.

Requests wait on an optional rate limiter and go through a retrying transport. When the
config carries a ``CacheConfig`` responses are kept in an in-memory hishel store.
"""

from __future__ import annotations

import asyncio
import threading
from logging import getLogger
from typing import TYPE_CHECKING, Any, TypedDict

import httpx
from aiolimiter import AsyncLimiter
from hishel import AsyncSqliteStorage
from hishel.httpx import AsyncCacheClient
from httpx_retries import Retry, RetryTransport

from ratingsync import __version__
from ratingsync.config.http_resilience import (
    CacheConfig,
    RateLimit,
    ResilienceConfig,
    RetryPolicy,
)

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Mapping
    from types import TracebackType

__all__ = [
    "BlockingClientSession",
    "CacheConfig",
    "RateLimit",
    "ResilienceConfig",
    "ResilientClient",
    "RetryPolicy",
]

log = getLogger(__name__)


class _ClientOptions(TypedDict):
    base_url: str
    timeout: float
    headers: dict[str, str]
    transport: httpx.AsyncBaseTransport
    event_hooks: dict[str, list[Callable[[httpx.Response], Awaitable[None]]]]


def build_retry(policy: RetryPolicy) -> Retry:
    return Retry(
        total=policy.total,
        backoff_factor=policy.backoff_factor,
        max_backoff_wait=policy.max_backoff_wait,
        status_forcelist=tuple(policy.status_forcelist),
        retry_on_exceptions=policy.retry_on_exceptions,
    )


def _memory_storage(cache: CacheConfig) -> AsyncSqliteStorage:
    return AsyncSqliteStorage(database_path=":memory:", default_ttl=cache.ttl_seconds)


class ResilientClient:
    """``httpx.AsyncClient`` with retry transport, optional rate limit and response cache."""

    def __init__(self, config: ResilienceConfig) -> None:
        self.config = config
        self._limiter: AsyncLimiter | None = None
        if config.ratelimit is not None:
            self._limiter = AsyncLimiter(config.ratelimit.max_calls, config.ratelimit.per_seconds)

        options: _ClientOptions = {
            "base_url": config.base_url or "",
            "timeout": config.timeout_seconds,
            "headers": {"User-Agent": f"{config.user_agent}/{__version__}"},
            "transport": RetryTransport(retry=build_retry(config.retry)),
            "event_hooks": {"response": [self._log_error_response]},
        }
        if config.cache is None:
            self._client = httpx.AsyncClient(**options)
        else:
            self._client = AsyncCacheClient(**options, storage=_memory_storage(config.cache))

    async def __aenter__(self) -> ResilientClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def get(
        self,
        url: str,
        *,
        params: Mapping[str, str] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> httpx.Response:
        return await self._limited(
            lambda: self._client.get(url, params=params, headers=headers)
        )

    async def post(
        self,
        url: str,
        *,
        json: Any = None,  # noqa: ANN401
        headers: Mapping[str, str] | None = None,
    ) -> httpx.Response:
        return await self._limited(lambda: self._client.post(url, json=json, headers=headers))

    async def _limited(self, send: Callable[[], Awaitable[httpx.Response]]) -> httpx.Response:
        if self._limiter is None:
            return await send()
        async with self._limiter:
            return await send()

    async def _log_error_response(self, response: httpx.Response) -> None:
        # The query string is left out, it may carry an API key.
        if response.is_error:
            log.debug(
                "%s %s %s returned %s",
                self.config.name,
                response.request.method,
                response.request.url.path,
                response.status_code,
            )


class BlockingClientSession:
    """One event loop and one ``ResilientClient`` shared by a synchronous facade.

    Every ``call`` runs on the same loop against the same client, so the rate limiter
    and the response cache cover all requests until ``close``.
    """

    def __init__(
        self,
        config: ResilienceConfig,
        client_factory: Callable[[ResilienceConfig], ResilientClient] = ResilientClient,
    ) -> None:
        self._config = config
        self._client_factory = client_factory
        self._runner: asyncio.Runner | None = None
        self._client: ResilientClient | None = None
        self._lock = threading.Lock()

    def call[T](self, operation: Callable[[ResilientClient], Awaitable[T]]) -> T:
        with self._lock:
            if self._runner is None:
                self._runner = asyncio.Runner()
            return self._runner.run(self._invoke(operation))

    async def _invoke[T](self, operation: Callable[[ResilientClient], Awaitable[T]]) -> T:
        # Created inside the loop, the limiter and cache storage bind to it.
        if self._client is None:
            self._client = self._client_factory(self._config)
        return await operation(self._client)

    def close(self) -> None:
        with self._lock:
            runner, client = self._runner, self._client
            self._runner = None
            self._client = None
            if runner is None:
                return
            try:
                if client is not None:
                    runner.run(client.aclose())
            finally:
                runner.close()
