"""Port for the structured knowledge base (Wikidata)."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence

    from wikiportraits.domain.actions import PropertyChange
    from wikiportraits.domain.model.entity import EntityDraft, KnowledgeBaseEntity

DEFAULT_LANGUAGES: tuple[str, ...] = ("en",)
DEFAULT_FIELDS: tuple[str, ...] = ("labels", "claims")


@runtime_checkable
class KnowledgeBaseClient(Protocol):
    """Read and write access to knowledge-base entities.

    ``get_entity`` must always return the current remote revision; callers rely on it
    to decide whether a property is missing.
    """

    async def get_entity(
        self,
        entity_id: str,
        *,
        languages: Sequence[str] = DEFAULT_LANGUAGES,
        fields: Sequence[str] = DEFAULT_FIELDS,
    ) -> KnowledgeBaseEntity: ...

    async def search_entities(
        self,
        query: str,
        *,
        limit: int = 10,
        language: str = "en",
    ) -> list[KnowledgeBaseEntity]: ...

    async def create_entity(self, draft: EntityDraft) -> str: ...

    async def update_entity(self, entity_id: str, changes: Sequence[PropertyChange]) -> None: ...


__all__ = ["DEFAULT_FIELDS", "DEFAULT_LANGUAGES", "KnowledgeBaseClient"]
