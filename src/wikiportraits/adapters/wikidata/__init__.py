"""Public interface for the Wikidata adapter."""

from __future__ import annotations

from .client import WikidataAPIError, WikidataClient
from .schema import EntityPayload, GetEntitiesResponse, SearchResponse
from .translator import entity_from_payload, structured_data_from_payload

__all__ = [
    "EntityPayload",
    "GetEntitiesResponse",
    "SearchResponse",
    "WikidataAPIError",
    "WikidataClient",
    "entity_from_payload",
    "structured_data_from_payload",
]
