"""HTTP policies for the MediaWiki Action API endpoints."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import httpx

if TYPE_CHECKING:
    from collections.abc import Mapping
    from pathlib import Path

type ResponseHook = Callable[[httpx.Response], Awaitable[None] | None]
type CachePredicate = Callable[[object], bool]


class MediaWikiLagError(httpx.HTTPError):
    """A response whose payload asks the client to back off.

    MediaWiki reports ``maxlag`` and ``ratelimited`` with HTTP 200, so these are raised
    from a response hook and retried by the client rather than the transport.
    """

    def __init__(self, code: str, info: str, *, response: httpx.Response) -> None:
        super().__init__(f"MediaWiki asked to back off ({code}): {info}")
        self.code = code
        self.response = response


@dataclass(slots=True, frozen=True)
class RetryPolicy:
    attempts: int = 4
    backoff_factor: float = 0.5
    max_backoff_wait: float = 60.0
    # writes are token-guarded POSTs, a replay is rejected rather than applied twice
    methods: frozenset[str] = frozenset({"GET", "POST"})
    statuses: frozenset[int] = frozenset({429, 502, 503, 504})
    lag_attempts: int = 3
    # used when a lagged response carries no Retry-After header
    lag_wait_seconds: float = 5.0


@dataclass(slots=True, frozen=True)
class ResponseCache:
    """hishel cache settings; responses stay in memory unless ``sqlite_path`` is set."""

    ttl_seconds: float
    sqlite_path: Path | None = None
    should_cache: CachePredicate | None = None


@dataclass(slots=True, frozen=True)
class EndpointConfig:
    name: str
    api_url: str
    headers: Mapping[str, str] = field(default_factory=dict)
    timeout_seconds: float = 30.0
    requests_per_second: float | None = None
    retry: RetryPolicy = field(default_factory=RetryPolicy)
    cache: ResponseCache | None = None
    response_hooks: tuple[ResponseHook, ...] = ()


__all__ = [
    "CachePredicate",
    "EndpointConfig",
    "MediaWikiLagError",
    "ResponseCache",
    "ResponseHook",
    "RetryPolicy",
]
