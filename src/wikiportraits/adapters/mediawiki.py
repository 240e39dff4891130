"""Shared plumbing for MediaWiki Action API clients (Wikidata and Commons)."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Any, ClassVar

from wikiportraits.adapters.http_resilience import ResilientClient, mediawiki_error_code

if TYPE_CHECKING:
    from collections.abc import Callable
    from types import TracebackType

    from httpx._types import RequestFiles

    from wikiportraits.config.endpoints import EndpointConfig
    from wikiportraits.config.wikimedia import WikimediaConfig

log = getLogger(__name__)


class MediaWikiAPIError(RuntimeError):
    """Raised when a MediaWiki API returns an error payload."""

    def __init__(self, message: str, *, code: str | None = None) -> None:
        super().__init__(message)
        self.code = code


class MediaWikiClient:
    """Keeps one resilient HTTP client per endpoint configuration for its lifetime."""

    error_cls: ClassVar[type[MediaWikiAPIError]] = MediaWikiAPIError

    def __init__(
        self,
        *,
        config: WikimediaConfig,
        client_factory: Callable[[EndpointConfig], ResilientClient] | None = None,
    ) -> None:
        self._config = config
        self._client_factory = client_factory or ResilientClient
        self._clients: dict[str, ResilientClient] = {}
        self._csrf_token: str | None = None

    async def __aenter__(self) -> MediaWikiClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        clients, self._clients = self._clients, {}
        for client in clients.values():
            await client.aclose()

    def _client(self, endpoint: EndpointConfig) -> ResilientClient:
        client = self._clients.get(endpoint.name)
        if client is None:
            client = self._client_factory(endpoint)
            self._clients[endpoint.name] = client
        return client

    async def _get(self, endpoint: EndpointConfig, params: dict[str, str]) -> dict[str, Any]:
        query = {"format": "json", "maxlag": str(self._config.maxlag), **params}
        response = await self._client(endpoint).get(query)
        response.raise_for_status()
        return self._check(response.json())

    async def _post(
        self,
        endpoint: EndpointConfig,
        data: dict[str, str],
        *,
        files: RequestFiles | None = None,
    ) -> dict[str, Any]:
        if not self._config.can_write:
            raise self.error_cls(
                "Writing requires WIKIMEDIA_ACCESS_TOKEN to be set", code="no-credentials"
            )
        token = await self._token(endpoint)
        form = {"format": "json", "maxlag": str(self._config.maxlag), **data, "token": token}
        response = await self._client(endpoint).post(form, files=files)
        response.raise_for_status()
        try:
            return self._check(response.json())
        except MediaWikiAPIError as exc:
            if exc.code == "badtoken":
                self._csrf_token = None
            raise

    async def _token(self, endpoint: EndpointConfig) -> str:
        if self._csrf_token is None:
            payload = await self._get(
                endpoint, {"action": "query", "meta": "tokens", "type": "csrf"}
            )
            token = payload.get("query", {}).get("tokens", {}).get("csrftoken")
            if not isinstance(token, str) or not token:
                raise self.error_cls("No CSRF token in response", code="badtoken")
            self._csrf_token = token
        return self._csrf_token

    def _check(self, payload: object) -> dict[str, Any]:
        if not isinstance(payload, dict):
            raise self.error_cls("Unexpected MediaWiki response payload")
        code = mediawiki_error_code(payload)
        if code is not None:
            info = payload["error"].get("info", "")
            raise self.error_cls(f"{code}: {info}", code=code)
        for module, warning in (payload.get("warnings") or {}).items():
            log.warning("MediaWiki warning from %s: %s", module, warning)
        return payload


__all__ = ["MediaWikiAPIError", "MediaWikiClient"]
