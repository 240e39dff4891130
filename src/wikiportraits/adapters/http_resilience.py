"""httpx client for MediaWiki endpoints: retries, rate limiting, lag back-off and caching."""

from __future__ import annotations

import asyncio
import json
from logging import getLogger
from typing import TYPE_CHECKING

import httpx
from aiolimiter import AsyncLimiter
from hishel import AsyncSqliteStorage, FilterPolicy
from hishel import Response as HishelCacheResponse
from hishel._policies import BaseFilter
from hishel.httpx import AsyncCacheClient
from httpx_retries import Retry, RetryTransport

from wikiportraits.config.endpoints import MediaWikiLagError

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Mapping
    from types import TracebackType

    from httpx._types import RequestFiles

    from wikiportraits.config.endpoints import (
        CachePredicate,
        EndpointConfig,
        ResponseCache,
        RetryPolicy,
    )

log = getLogger(__name__)

MEDIAWIKI_LAG_ERRORS = frozenset({"maxlag", "ratelimited"})
TRANSIENT_ERRORS: tuple[type[httpx.HTTPError], ...] = (
    httpx.TimeoutException,
    httpx.NetworkError,
    httpx.RemoteProtocolError,
)


def build_retry(policy: RetryPolicy) -> Retry:
    return Retry(
        total=policy.attempts,
        backoff_factor=policy.backoff_factor,
        max_backoff_wait=policy.max_backoff_wait,
        respect_retry_after_header=True,
        allowed_methods=sorted(policy.methods),
        status_forcelist=sorted(policy.statuses),
        retry_on_exceptions=TRANSIENT_ERRORS,
    )


def mediawiki_error_code(payload: object) -> str | None:
    if not isinstance(payload, dict):
        return None
    error = payload.get("error")
    if isinstance(error, dict) and isinstance(error.get("code"), str):
        return error["code"]
    return None


async def raise_on_mediawiki_lag(response: httpx.Response) -> None:
    """Response hook raising :class:`MediaWikiLagError` for ``maxlag``/``ratelimited``."""

    if "json" not in response.headers.get("content-type", ""):
        return
    await response.aread()
    try:
        payload = response.json()
    except ValueError:
        return
    code = mediawiki_error_code(payload)
    if code in MEDIAWIKI_LAG_ERRORS:
        info = str(payload["error"].get("info", ""))
        raise MediaWikiLagError(code, info, response=response)


def should_cache_mediawiki_payload(payload: object) -> bool:
    return mediawiki_error_code(payload) is None


class ResilientClient:
    """One endpoint's HTTP client; requests always go to ``config.api_url``."""

    def __init__(self, config: EndpointConfig) -> None:
        self.config = config
        self._limiter = (
            AsyncLimiter(config.requests_per_second, 1.0)
            if config.requests_per_second
            else None
        )
        transport = RetryTransport(retry=build_retry(config.retry))
        event_hooks = {"response": list(config.response_hooks)}
        headers = dict(config.headers)

        if config.cache is not None:
            storage, policy = _cache_components(config.cache)
            self._client: httpx.AsyncClient = AsyncCacheClient(
                timeout=config.timeout_seconds,
                transport=transport,
                headers=headers,
                event_hooks=event_hooks,
                storage=storage,
                policy=policy,
            )
        else:
            self._client = httpx.AsyncClient(
                timeout=config.timeout_seconds,
                transport=transport,
                headers=headers,
                event_hooks=event_hooks,
            )

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

    async def get(self, params: Mapping[str, str]) -> httpx.Response:
        return await self._send(lambda: self._client.get(self.config.api_url, params=params))

    async def post(
        self, data: Mapping[str, str], *, files: RequestFiles | None = None
    ) -> httpx.Response:
        if files is None:
            return await self._send(lambda: self._client.post(self.config.api_url, data=data))
        return await self._send(
            lambda: self._client.post(self.config.api_url, data=data, files=files)
        )

    async def _send(self, func: Callable[[], Awaitable[httpx.Response]]) -> httpx.Response:
        retry = self.config.retry
        attempt = 0
        while True:
            try:
                return await self._limited(func)
            except MediaWikiLagError as exc:
                attempt += 1
                if attempt > retry.lag_attempts:
                    raise
                delay = _lag_delay(exc.response, retry, attempt)
                log.warning(
                    "%s: %s; retrying in %.1fs (%d/%d)",
                    self.config.name,
                    exc,
                    delay,
                    attempt,
                    retry.lag_attempts,
                )
                await asyncio.sleep(delay)

    async def _limited(self, func: Callable[[], Awaitable[httpx.Response]]) -> httpx.Response:
        if self._limiter is None:
            return await func()
        async with self._limiter:
            return await func()


def _lag_delay(response: httpx.Response, retry: RetryPolicy, attempt: int) -> float:
    try:
        delay = float(response.headers["Retry-After"])
    except (KeyError, ValueError):
        delay = retry.lag_wait_seconds * attempt
    return min(delay, retry.max_backoff_wait)


class _PayloadFilter(BaseFilter[HishelCacheResponse]):
    """Stores a response only when its JSON body passes ``predicate``."""

    def __init__(self, predicate: CachePredicate) -> None:
        self._predicate = predicate

    def needs_body(self) -> bool:
        return True

    def apply(self, item: HishelCacheResponse, body: bytes | None) -> bool:
        del item
        if body is None:
            return True
        try:
            payload = json.loads(body.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError):
            return True
        return bool(self._predicate(payload))


def _cache_components(cache: ResponseCache) -> tuple[AsyncSqliteStorage, FilterPolicy | None]:
    database_path = str(cache.sqlite_path) if cache.sqlite_path is not None else ":memory:"
    storage = AsyncSqliteStorage(
        database_path=database_path,
        default_ttl=cache.ttl_seconds,
        refresh_ttl_on_access=False,
    )
    if cache.should_cache is None:
        return storage, None
    return storage, FilterPolicy(response_filters=[_PayloadFilter(cache.should_cache)])


__all__ = [
    "ResilientClient",
    "build_retry",
    "mediawiki_error_code",
    "raise_on_mediawiki_lag",
    "should_cache_mediawiki_payload",
]
