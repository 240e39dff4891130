from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import httpx
import pytest
from httpx_retries import Retry

from wikiportraits.adapters.http_resilience import (
    ResilientClient,
    build_retry,
    mediawiki_error_code,
    raise_on_mediawiki_lag,
    should_cache_mediawiki_payload,
)
from wikiportraits.config.endpoints import (
    EndpointConfig,
    MediaWikiLagError,
    ResponseCache,
    RetryPolicy,
)

if TYPE_CHECKING:
    from collections.abc import Callable

API_URL = "https://example.org/w/api.php"
MAXLAG = {"error": {"code": "maxlag", "info": "Waiting for a database server: 6 seconds lagged"}}


def _client(
    handler: Callable[[int], httpx.Response], *, lag_attempts: int = 2
) -> tuple[ResilientClient, list[httpx.Request]]:
    seen: list[httpx.Request] = []

    async def async_handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return handler(len(seen))

    client = ResilientClient(
        EndpointConfig(
            name="test",
            api_url=API_URL,
            retry=RetryPolicy(lag_attempts=lag_attempts, lag_wait_seconds=0.0),
        )
    )
    client._client = httpx.AsyncClient(  # noqa: SLF001  # type: ignore[reportPrivateUsage]
        transport=httpx.MockTransport(async_handler),
        event_hooks={"response": [raise_on_mediawiki_lag]},
    )
    return client, seen


def test_mediawiki_error_code() -> None:
    assert mediawiki_error_code(MAXLAG) == "maxlag"
    assert mediawiki_error_code({"error": {"info": "no code"}}) is None
    assert mediawiki_error_code({"query": {}}) is None
    assert mediawiki_error_code(["not", "a", "dict"]) is None


def test_error_payloads_are_not_cached() -> None:
    assert should_cache_mediawiki_payload({"search": []})
    assert not should_cache_mediawiki_payload(MAXLAG)


def test_maxlag_payload_is_retried() -> None:
    def handler(attempt: int) -> httpx.Response:
        if attempt == 1:
            return httpx.Response(200, json=MAXLAG)
        return httpx.Response(200, json={"ok": True})

    client, seen = _client(handler)

    async def run() -> httpx.Response:
        async with client:
            return await client.get({"action": "query"})

    response = asyncio.run(run())

    assert response.json() == {"ok": True}
    assert len(seen) == 2
    assert all(str(request.url).startswith(API_URL) for request in seen)
    assert seen[0].url.params["action"] == "query"


def test_persistent_maxlag_gives_up_after_lag_attempts() -> None:
    client, seen = _client(lambda _: httpx.Response(200, json=MAXLAG), lag_attempts=1)

    async def run() -> None:
        async with client:
            await client.get({"action": "query"})

    with pytest.raises(MediaWikiLagError) as excinfo:
        asyncio.run(run())
    assert excinfo.value.code == "maxlag"
    assert "6 seconds lagged" in str(excinfo.value)
    assert len(seen) == 2


def test_other_error_payloads_are_not_retried() -> None:
    error = {"error": {"code": "badtoken", "info": "Invalid CSRF token."}}
    client, seen = _client(lambda _: httpx.Response(200, json=error))

    async def run() -> httpx.Response:
        async with client:
            return await client.post({"action": "edit"})

    assert asyncio.run(run()).json() == error
    assert len(seen) == 1


def test_non_json_responses_pass_through() -> None:
    client, seen = _client(lambda _: httpx.Response(200, text="plain"))

    async def run() -> httpx.Response:
        async with client:
            return await client.post({"a": "b"})

    assert asyncio.run(run()).text == "plain"
    assert seen[0].method == "POST"
    assert seen[0].content == b"a=b"


def test_build_retry_uses_policy() -> None:
    retry = build_retry(RetryPolicy(attempts=3))

    assert isinstance(retry, Retry)
    assert retry.total == 3


def test_cached_endpoint_uses_cache_client() -> None:
    config = EndpointConfig(
        name="search",
        api_url=API_URL,
        cache=ResponseCache(ttl_seconds=60.0, should_cache=should_cache_mediawiki_payload),
    )

    async def run() -> type[httpx.AsyncClient]:
        async with ResilientClient(config) as client:
            return type(client._client)  # noqa: SLF001  # type: ignore[reportPrivateUsage]

    assert asyncio.run(run()).__name__ == "AsyncCacheClient"
