"""Wikimedia (Wikidata and Commons) endpoint configuration."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from .endpoints import EndpointConfig, ResponseCache, RetryPolicy
from .env import optional_env_var, require_env_vars
from .storage import search_cache_path

if TYPE_CHECKING:
    from .endpoints import CachePredicate, ResponseHook

WIKIDATA_API_URL = "https://www.wikidata.org/w/api.php"
COMMONS_API_URL = "https://commons.wikimedia.org/w/api.php"
DEFAULT_MAXLAG_SECONDS = 5
REQUESTS_PER_SECOND = 10.0
# only search responses are cached; entity reads always hit the API
SEARCH_CACHE_TTL_SECONDS = 3600.0


@dataclass(frozen=True, slots=True)
class WikimediaConfig:
    user_agent: str
    access_token: str | None
    author_qid: str | None
    wikidata: EndpointConfig
    wikidata_search: EndpointConfig
    commons: EndpointConfig
    maxlag: int = DEFAULT_MAXLAG_SECONDS

    @property
    def can_write(self) -> bool:
        return self.access_token is not None


def get_wikimedia_config(
    *,
    response_hooks: tuple[ResponseHook, ...] = (),
    persistent_search_cache: bool = False,
    search_cache_predicate: CachePredicate | None = None,
) -> WikimediaConfig:
    values = require_env_vars(("WIKIPORTRAITS_APP_NAME", "WIKIPORTRAITS_CONTACT"))
    user_agent = f"{values['WIKIPORTRAITS_APP_NAME']} ({values['WIKIPORTRAITS_CONTACT']})"
    access_token = optional_env_var("WIKIMEDIA_ACCESS_TOKEN")

    headers = {"User-Agent": user_agent}
    if access_token is not None:
        headers["Authorization"] = f"Bearer {access_token}"

    def endpoint(name: str, api_url: str, cache: ResponseCache | None = None) -> EndpointConfig:
        return EndpointConfig(
            name=name,
            api_url=api_url,
            headers=headers,
            requests_per_second=REQUESTS_PER_SECOND,
            retry=RetryPolicy(),
            cache=cache,
            response_hooks=response_hooks,
        )

    search_cache = ResponseCache(
        ttl_seconds=SEARCH_CACHE_TTL_SECONDS,
        sqlite_path=search_cache_path() if persistent_search_cache else None,
        should_cache=search_cache_predicate,
    )
    return WikimediaConfig(
        user_agent=user_agent,
        access_token=access_token,
        author_qid=optional_env_var("WIKIPORTRAITS_AUTHOR_QID"),
        wikidata=endpoint("wikidata", WIKIDATA_API_URL),
        wikidata_search=endpoint("wikidata-search", WIKIDATA_API_URL, search_cache),
        commons=endpoint("commons", COMMONS_API_URL),
    )
