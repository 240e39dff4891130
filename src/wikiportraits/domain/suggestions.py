"""Related-entity suggestions for the event panel.

Candidates are scored by how they relate to the current event and to the entities
already selected: same time window, same location, shared performers or shared
genres. Results are cached per context for an hour by default.
"""

from __future__ import annotations

import asyncio
import json
import time
from dataclasses import dataclass, field
from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING, Final

from wikiportraits.domain.model.form import WorkflowType
from wikiportraits.domain.model.properties import Property

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable
    from datetime import date

    from wikiportraits.domain.model.entity import KnowledgeBaseEntity
    from wikiportraits.domain.ports.knowledge_base import KnowledgeBaseClient

log = getLogger(__name__)

DEFAULT_TTL_SECONDS: Final[float] = 3600.0


class RelationshipType(StrEnum):
    TEMPORAL = "temporal"
    SPATIAL = "spatial"
    PERFORMER = "performer"
    GENRE = "genre"


CONFIDENCE: Final[dict[RelationshipType, float]] = {
    RelationshipType.PERFORMER: 0.9,
    RelationshipType.SPATIAL: 0.8,
    RelationshipType.TEMPORAL: 0.7,
    RelationshipType.GENRE: 0.6,
}


@dataclass(slots=True, frozen=True, kw_only=True)
class SuggestionContext:
    current_event: KnowledgeBaseEntity | None = None
    existing_entities: tuple[KnowledgeBaseEntity, ...] = ()
    # explicit candidates skip the knowledge-base search
    candidates: tuple[KnowledgeBaseEntity, ...] = ()
    workflow_type: WorkflowType = WorkflowType.GENERAL
    temporal_window_days: int = 30
    min_confidence: float = 0.0
    max_results: int = 10
    language: str = "en"

    def fingerprint(self) -> str:
        return json.dumps(
            {
                "event": self.current_event.id if self.current_event else None,
                "existing": sorted(entity.id for entity in self.existing_entities),
                "candidates": [entity.id for entity in self.candidates],
                "workflow": str(self.workflow_type),
                "window": self.temporal_window_days,
                "min": self.min_confidence,
                "max": self.max_results,
                "language": self.language,
            },
            sort_keys=True,
        )


@dataclass(slots=True, frozen=True, kw_only=True)
class Suggestion:
    entity: KnowledgeBaseEntity
    relationship: RelationshipType
    confidence: float
    reasoning: str
    suggested_property: str


@dataclass(slots=True, frozen=True)
class CacheStats:
    size: int
    hits: int
    misses: int
    ttl_seconds: float


@dataclass(slots=True)
class _CacheEntry:
    expires_at: float
    suggestions: tuple[Suggestion, ...] = field(default_factory=tuple)


def _dates(entity: KnowledgeBaseEntity) -> list[date]:
    values = entity.iter_time_values(Property.POINT_IN_TIME, Property.START_TIME)
    return [d for d in (value.to_date() for value in values) if d is not None]


def _ids(entities: Iterable[KnowledgeBaseEntity], prop: str) -> set[str]:
    return {qid for entity in entities for qid in entity.entity_ids(prop)}


class SuggestionEngine:
    def __init__(
        self,
        knowledge_base: KnowledgeBaseClient,
        *,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        search_limit: int = 20,
    ) -> None:
        self.knowledge_base = knowledge_base
        self.ttl_seconds = ttl_seconds
        self.search_limit = search_limit
        self._clock = clock
        self._cache: dict[str, _CacheEntry] = {}
        self._hits = 0
        self._misses = 0

    async def suggest(self, context: SuggestionContext) -> list[Suggestion]:
        key = context.fingerprint()
        now = self._clock()
        entry = self._cache.get(key)
        if entry is not None and entry.expires_at > now:
            self._hits += 1
            return list(entry.suggestions)
        self._misses += 1

        candidates = await self._candidates(context)
        scored = [s for candidate in candidates for s in self._score(context, candidate)]
        scored.sort(key=lambda s: s.confidence, reverse=True)

        best: dict[str, Suggestion] = {}
        for suggestion in scored:
            best.setdefault(suggestion.entity.id, suggestion)
        result = [s for s in best.values() if s.confidence >= context.min_confidence]
        result = result[: context.max_results]

        self._evict_expired(now)
        self._cache[key] = _CacheEntry(now + self.ttl_seconds, tuple(result))
        return result

    def clear_cache(self) -> None:
        self._cache.clear()
        self._hits = 0
        self._misses = 0

    def cache_stats(self) -> CacheStats:
        self._evict_expired(self._clock())
        return CacheStats(
            size=len(self._cache),
            hits=self._hits,
            misses=self._misses,
            ttl_seconds=self.ttl_seconds,
        )

    def _evict_expired(self, now: float) -> None:
        for key in [k for k, entry in self._cache.items() if entry.expires_at <= now]:
            del self._cache[key]

    async def _candidates(self, context: SuggestionContext) -> list[KnowledgeBaseEntity]:
        excluded = {entity.id for entity in context.existing_entities}
        if context.current_event is not None:
            excluded.add(context.current_event.id)

        if context.candidates:
            candidates = list(context.candidates)
        else:
            candidates = await self._search(context)
        return [entity for entity in candidates if entity.id not in excluded]

    async def _search(self, context: SuggestionContext) -> list[KnowledgeBaseEntity]:
        event = context.current_event
        query = event.label(context.language) if event is not None else None
        if not query:
            return []
        try:
            hits = await self.knowledge_base.search_entities(
                query, limit=self.search_limit, language=context.language
            )
        except Exception:  # noqa: BLE001
            log.warning("Suggestion search for %r failed", query, exc_info=True)
            return []

        # search hits carry no claims; fetch full entities and drop the ones that fail
        fetched = await asyncio.gather(
            *(
                self.knowledge_base.get_entity(
                    hit.id, languages=(context.language,), fields=("labels", "claims")
                )
                for hit in hits
            ),
            return_exceptions=True,
        )
        entities: list[KnowledgeBaseEntity] = []
        for hit, outcome in zip(hits, fetched, strict=True):
            if isinstance(outcome, Exception):
                log.warning("Skipping suggestion candidate %s: %s", hit.id, outcome)
                continue
            if isinstance(outcome, BaseException):
                raise outcome
            entities.append(outcome)
        return entities

    def _score(
        self, context: SuggestionContext, candidate: KnowledgeBaseEntity
    ) -> list[Suggestion]:
        suggestions: list[Suggestion] = []
        event = context.current_event
        event_label = event.label(context.language, default=event.id) if event else ""

        def add(relationship: RelationshipType, reasoning: str, prop: str) -> None:
            suggestions.append(
                Suggestion(
                    entity=candidate,
                    relationship=relationship,
                    confidence=CONFIDENCE[relationship],
                    reasoning=reasoning,
                    suggested_property=prop,
                )
            )

        if event is not None:
            event_dates = _dates(event)
            candidate_dates = _dates(candidate)
            if any(
                abs((a - b).days) <= context.temporal_window_days
                for a in event_dates
                for b in candidate_dates
            ):
                add(
                    RelationshipType.TEMPORAL,
                    f"Occurred around the same time as {event_label}",
                    Property.POINT_IN_TIME,
                )
            if _ids([event], Property.LOCATION) & _ids([candidate], Property.LOCATION):
                add(
                    RelationshipType.SPATIAL,
                    f"Occurred at the same location as {event_label}",
                    Property.LOCATION,
                )
            if _ids([event], Property.PERFORMER) & _ids([candidate], Property.PERFORMER):
                add(
                    RelationshipType.PERFORMER,
                    f"Features same performers as {event_label}",
                    Property.PERFORMER,
                )

        genres = _ids(context.existing_entities, Property.GENRE) & _ids(
            [candidate], Property.GENRE
        )
        if genres:
            add(
                RelationshipType.GENRE,
                f"Matches common genres: {', '.join(sorted(genres))}",
                Property.GENRE,
            )
        return suggestions


__all__ = [
    "CacheStats",
    "RelationshipType",
    "Suggestion",
    "SuggestionContext",
    "SuggestionEngine",
]
