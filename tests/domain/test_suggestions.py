from __future__ import annotations

import asyncio
from datetime import date

import pytest

from tests.support.factories import items, make_entity
from tests.support.fakes import FakeKnowledgeBase
from wikiportraits.domain.model.entity import KnowledgeBaseEntity, TimeValue
from wikiportraits.domain.model.properties import Property
from wikiportraits.domain.suggestions import (
    RelationshipType,
    SuggestionContext,
    SuggestionEngine,
)


def _on(day: date) -> list[TimeValue]:
    return [TimeValue.from_date(day)]


@pytest.fixture
def event() -> KnowledgeBaseEntity:
    return make_entity(
        "Q1",
        "Test Festival",
        claims={
            Property.POINT_IN_TIME: _on(date(2024, 6, 1)),
            Property.LOCATION: items("Q60"),
            Property.PERFORMER: items("Q100"),
        },
    )


@pytest.fixture
def candidates() -> tuple[KnowledgeBaseEntity, ...]:
    return (
        make_entity("Q2", "Same month", claims={Property.POINT_IN_TIME: _on(date(2024, 6, 15))}),
        make_entity("Q3", "Same place", claims={Property.LOCATION: items("Q60")}),
        make_entity(
            "Q4",
            "Same band",
            claims={
                Property.PERFORMER: items("Q100"),
                Property.POINT_IN_TIME: _on(date(2024, 6, 2)),
            },
        ),
        make_entity("Q5", "Same genre", claims={Property.GENRE: items("Q11399")}),
        make_entity("Q6", "Unrelated", claims={Property.POINT_IN_TIME: _on(date(2020, 1, 1))}),
    )


@pytest.fixture
def existing() -> tuple[KnowledgeBaseEntity, ...]:
    return (make_entity("Q100", "Test Band", claims={Property.GENRE: items("Q11399")}),)


def test_candidates_are_ranked_by_strongest_relationship(
    event: KnowledgeBaseEntity,
    candidates: tuple[KnowledgeBaseEntity, ...],
    existing: tuple[KnowledgeBaseEntity, ...],
) -> None:
    engine = SuggestionEngine(FakeKnowledgeBase())
    context = SuggestionContext(
        current_event=event, existing_entities=existing, candidates=candidates
    )

    suggestions = asyncio.run(engine.suggest(context))

    assert [(s.entity.id, s.relationship) for s in suggestions] == [
        ("Q4", RelationshipType.PERFORMER),
        ("Q3", RelationshipType.SPATIAL),
        ("Q2", RelationshipType.TEMPORAL),
        ("Q5", RelationshipType.GENRE),
    ]
    assert suggestions[0].confidence == pytest.approx(0.9)
    assert suggestions[0].suggested_property == Property.PERFORMER
    assert suggestions[-1].reasoning == "Matches common genres: Q11399"


def test_confidence_floor_and_result_limit(
    event: KnowledgeBaseEntity,
    candidates: tuple[KnowledgeBaseEntity, ...],
) -> None:
    engine = SuggestionEngine(FakeKnowledgeBase())

    strong = asyncio.run(
        engine.suggest(
            SuggestionContext(current_event=event, candidates=candidates, min_confidence=0.75)
        )
    )
    limited = asyncio.run(
        engine.suggest(SuggestionContext(current_event=event, candidates=candidates, max_results=1))
    )

    assert [s.entity.id for s in strong] == ["Q4", "Q3"]
    assert [s.entity.id for s in limited] == ["Q4"]


def test_selected_entities_and_event_are_excluded(
    event: KnowledgeBaseEntity,
    existing: tuple[KnowledgeBaseEntity, ...],
) -> None:
    engine = SuggestionEngine(FakeKnowledgeBase())
    context = SuggestionContext(
        current_event=event,
        existing_entities=existing,
        candidates=(event, *existing),
    )

    assert asyncio.run(engine.suggest(context)) == []


def test_results_are_cached_until_they_expire(
    event: KnowledgeBaseEntity,
    candidates: tuple[KnowledgeBaseEntity, ...],
) -> None:
    now = [0.0]
    engine = SuggestionEngine(FakeKnowledgeBase(), ttl_seconds=60.0, clock=lambda: now[0])
    context = SuggestionContext(current_event=event, candidates=candidates)

    first = asyncio.run(engine.suggest(context))
    second = asyncio.run(engine.suggest(context))
    stats = engine.cache_stats()

    assert first == second
    assert (stats.size, stats.hits, stats.misses) == (1, 1, 1)

    now[0] = 61.0
    assert engine.cache_stats().size == 0

    engine.clear_cache()
    stats = engine.cache_stats()
    assert (stats.hits, stats.misses) == (0, 0)


def test_candidates_come_from_search_when_none_are_given(event: KnowledgeBaseEntity) -> None:
    full = make_entity("Q2", "Same month", claims={Property.POINT_IN_TIME: _on(date(2024, 6, 20))})
    knowledge_base = FakeKnowledgeBase(
        [full],
        failing=["Q7"],
        search_results={"Test Festival": [make_entity("Q2"), make_entity("Q7")]},
    )
    engine = SuggestionEngine(knowledge_base)

    suggestions = asyncio.run(engine.suggest(SuggestionContext(current_event=event)))

    assert knowledge_base.search_calls == ["Test Festival"]
    assert [(s.entity.id, s.relationship) for s in suggestions] == [
        ("Q2", RelationshipType.TEMPORAL)
    ]


def test_no_event_and_no_candidates_gives_nothing() -> None:
    knowledge_base = FakeKnowledgeBase()

    assert asyncio.run(SuggestionEngine(knowledge_base).suggest(SuggestionContext())) == []
    assert knowledge_base.search_calls == []


def test_expired_entries_are_evicted_when_new_results_are_cached(
    event: KnowledgeBaseEntity,
    candidates: tuple[KnowledgeBaseEntity, ...],
) -> None:
    now = [0.0]
    engine = SuggestionEngine(FakeKnowledgeBase(), ttl_seconds=60.0, clock=lambda: now[0])
    stale = SuggestionContext(current_event=event, candidates=candidates)
    fresh = SuggestionContext(current_event=event, candidates=candidates, max_results=2)

    asyncio.run(engine.suggest(stale))
    now[0] = 61.0
    asyncio.run(engine.suggest(fresh))

    assert list(engine._cache) == [fresh.fingerprint()]


class _CancellingKnowledgeBase(FakeKnowledgeBase):
    async def get_entity(self, entity_id: str, **kwargs: object) -> KnowledgeBaseEntity:
        if entity_id == "Q7":
            raise asyncio.CancelledError
        return await super().get_entity(entity_id)


def test_cancelled_candidate_lookup_is_not_swallowed(event: KnowledgeBaseEntity) -> None:
    knowledge_base = _CancellingKnowledgeBase(
        [make_entity("Q2", "Same month")],
        search_results={"Test Festival": [make_entity("Q2"), make_entity("Q7")]},
    )
    engine = SuggestionEngine(knowledge_base)

    async def suggest() -> None:
        with pytest.raises(asyncio.CancelledError):
            await engine.suggest(SuggestionContext(current_event=event))

    asyncio.run(suggest())
    assert engine.cache_stats().size == 0
