"""Wikidata Action API client."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, ClassVar

from wikiportraits.adapters.mediawiki import MediaWikiAPIError, MediaWikiClient
from wikiportraits.domain.model.entity import is_pending_id
from wikiportraits.domain.ports.knowledge_base import DEFAULT_FIELDS, DEFAULT_LANGUAGES

from .schema import EditEntityResponse, GetEntitiesResponse, SearchResponse
from .translator import changes_json, draft_json, entity_from_payload, entity_from_search_hit

if TYPE_CHECKING:
    from collections.abc import Sequence

    from wikiportraits.domain.actions import PropertyChange
    from wikiportraits.domain.model.entity import EntityDraft, KnowledgeBaseEntity

log = getLogger(__name__)

DEFAULT_EDIT_SUMMARY = "Updated with WikiPortraits"


class WikidataAPIError(MediaWikiAPIError):
    """Raised when the Wikidata API returns an error or an unusable payload."""


class WikidataClient(MediaWikiClient):
    """Implements the knowledge-base port against Wikidata.

    Entity reads go to an uncached endpoint so a missing property is always judged
    against the latest revision. Searches use their own endpoint configuration, which
    carries the cache.
    """

    error_cls: ClassVar[type[MediaWikiAPIError]] = WikidataAPIError

    async def get_entity(
        self,
        entity_id: str,
        *,
        languages: Sequence[str] = DEFAULT_LANGUAGES,
        fields: Sequence[str] = DEFAULT_FIELDS,
    ) -> KnowledgeBaseEntity:
        if is_pending_id(entity_id):
            raise WikidataAPIError(f"{entity_id} has not been created yet", code="pending")

        params = {"action": "wbgetentities", "ids": entity_id}
        if fields:
            params["props"] = "|".join(fields)
        if languages:
            params["languages"] = "|".join(languages)
        payload = await self._get(self._config.wikidata, params)
        response = GetEntitiesResponse.model_validate(payload)

        entity = response.entities.get(entity_id)
        if entity is None or entity.is_missing:
            raise WikidataAPIError(f"Entity {entity_id} not found", code="no-such-entity")
        return entity_from_payload(entity)

    async def search_entities(
        self,
        query: str,
        *,
        limit: int = 10,
        language: str = "en",
    ) -> list[KnowledgeBaseEntity]:
        query = query.strip()
        if not query:
            return []
        payload = await self._get(
            self._config.wikidata_search,
            {
                "action": "wbsearchentities",
                "search": query,
                "language": language,
                "uselang": language,
                "type": "item",
                "limit": str(limit),
            },
        )
        response = SearchResponse.model_validate(payload)
        return [entity_from_search_hit(hit, language=language) for hit in response.search]

    async def create_entity(self, draft: EntityDraft) -> str:
        payload = await self._post(
            self._config.wikidata,
            {
                "action": "wbeditentity",
                "new": "item",
                "data": draft_json(draft),
                "summary": DEFAULT_EDIT_SUMMARY,
            },
        )
        entity_id = EditEntityResponse.model_validate(payload).entity.id
        log.info("Created Wikidata entity %s", entity_id)
        return entity_id

    async def update_entity(self, entity_id: str, changes: Sequence[PropertyChange]) -> None:
        if is_pending_id(entity_id):
            raise WikidataAPIError(f"{entity_id} has not been created yet", code="pending")
        if not changes:
            return
        await self._post(
            self._config.wikidata,
            {
                "action": "wbeditentity",
                "id": entity_id,
                "data": changes_json(changes),
                "summary": DEFAULT_EDIT_SUMMARY,
            },
        )
        log.info(
            "Updated %s on Wikidata entity %s",
            ", ".join(change.property for change in changes),
            entity_id,
        )


__all__ = ["WikidataAPIError", "WikidataClient"]
