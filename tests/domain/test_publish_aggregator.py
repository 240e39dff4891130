from __future__ import annotations

import asyncio
from dataclasses import replace
from datetime import date
from typing import TYPE_CHECKING

import pytest

from tests.support.factories import make_event, make_existing_image, make_form, make_queued_image
from tests.support.fakes import FakeKnowledgeBase, FakeMediaRepository
from wikiportraits.domain.action_builders import ActionBuilderFactory
from wikiportraits.domain.actions import (
    ActionStatus,
    ActionTransitionError,
    StructuredDataAction,
    UnknownActionError,
)
from wikiportraits.domain.model.event import Participant
from wikiportraits.domain.model.form import FormState, WorkflowType
from wikiportraits.domain.model.images import Caption
from wikiportraits.domain.model.properties import Property
from wikiportraits.domain.ports.media_repository import StructuredDataSnapshot
from wikiportraits.domain.publish import PublishDataAggregator, dependency_key

if TYPE_CHECKING:
    from wikiportraits.domain.model.entity import KnowledgeBaseEntity
    from wikiportraits.domain.model.form import PublishFormData


class _FailingFactory:
    def __init__(self, media: FakeMediaRepository) -> None:
        self.media = media

    def get(self, workflow_type: str) -> object:
        raise RuntimeError(f"no builder for {workflow_type}")


def _aggregator(
    data: PublishFormData,
    knowledge_base: FakeKnowledgeBase,
    media: FakeMediaRepository,
) -> PublishDataAggregator:
    factory = ActionBuilderFactory(knowledge_base=knowledge_base, media=media)
    return PublishDataAggregator(FormState(data=data), factory)


@pytest.fixture
def music_form(band: KnowledgeBaseEntity) -> PublishFormData:
    return make_form(
        event=make_event(),
        organizations=[band],
        queue=[make_queued_image(taken=date(2024, 6, 1))],
    )


def _structured_for(aggregator: PublishDataAggregator, image_id: str) -> list[StructuredDataAction]:
    return [a for a in aggregator.structured_data_actions if a.image_id == image_id]


def test_recalculation_is_idempotent(
    music_form: PublishFormData,
    knowledge_base: FakeKnowledgeBase,
    media: FakeMediaRepository,
) -> None:
    aggregator = _aggregator(music_form, knowledge_base, media)

    assert asyncio.run(aggregator.recalculate())
    keys = [action.key() for action in aggregator.actions]

    assert not asyncio.run(aggregator.recalculate())
    assert [action.key() for action in aggregator.actions] == keys
    assert asyncio.run(aggregator.recalculate(force=True))
    assert [action.key() for action in aggregator.actions] == keys


def test_computed_state_follows_actions(
    music_form: PublishFormData,
    knowledge_base: FakeKnowledgeBase,
    media: FakeMediaRepository,
) -> None:
    aggregator = _aggregator(music_form, knowledge_base, media)

    asyncio.run(aggregator.recalculate())

    computed = aggregator.form_state.computed
    assert "Test Festival 2024" in computed.categories
    assert computed.categories == sorted(computed.categories)
    assert computed.publish == aggregator.counts
    assert computed.publish.total == len(aggregator.actions)


def test_dependency_key_changes_with_the_form(music_form: PublishFormData) -> None:
    before = dependency_key(music_form)

    music_form.files.queue[0].metadata.selected_band_members.append("Q200")

    assert dependency_key(music_form) != before


def test_empty_form_yields_no_actions(
    knowledge_base: FakeKnowledgeBase, media: FakeMediaRepository
) -> None:
    aggregator = _aggregator(make_form(), knowledge_base, media)

    assert asyncio.run(aggregator.recalculate())
    assert aggregator.actions == []
    assert media.category_checks == []


def test_manual_category_survives_recalculation(
    music_form: PublishFormData,
    knowledge_base: FakeKnowledgeBase,
    media: FakeMediaRepository,
) -> None:
    aggregator = _aggregator(music_form, knowledge_base, media)
    asyncio.run(aggregator.recalculate())

    manual = aggregator.add_category("  Extra category ")
    assert manual is not None
    assert manual.manual
    assert manual.should_create
    assert aggregator.add_category("Extra category") is None
    assert aggregator.add_category("Test Festival 2024") is None

    music_form.files.queue.append(make_queued_image("img-2"))
    assert asyncio.run(aggregator.recalculate())

    assert aggregator.find("category:Extra category") is manual


def test_removed_category_stays_removed_until_added_again(
    music_form: PublishFormData,
    knowledge_base: FakeKnowledgeBase,
    media: FakeMediaRepository,
) -> None:
    aggregator = _aggregator(music_form, knowledge_base, media)
    asyncio.run(aggregator.recalculate())

    assert aggregator.remove_category("WikiPortraits")
    assert not aggregator.remove_category("WikiPortraits")
    asyncio.run(aggregator.recalculate(force=True))
    assert aggregator.find("category:WikiPortraits") is None

    aggregator.add_category("WikiPortraits")
    asyncio.run(aggregator.recalculate(force=True))
    assert aggregator.find("category:WikiPortraits") is not None


def test_status_updates_follow_the_state_machine(
    music_form: PublishFormData,
    knowledge_base: FakeKnowledgeBase,
    media: FakeMediaRepository,
) -> None:
    aggregator = _aggregator(music_form, knowledge_base, media)
    asyncio.run(aggregator.recalculate())
    key = "category:Test Festival 2024"

    aggregator.update_action_status(key, ActionStatus.IN_PROGRESS)
    with pytest.raises(ActionTransitionError):
        aggregator.update_action_status(key, ActionStatus.PENDING)
    action = aggregator.update_action_status(key, ActionStatus.ERROR, "HTTP 500")

    assert action.error == "HTTP 500"
    assert aggregator.counts.error == 1
    with pytest.raises(UnknownActionError):
        aggregator.update_action_status("category:Nope", ActionStatus.IN_PROGRESS)


def test_completed_structured_data_freezes_the_snapshot(
    knowledge_base: FakeKnowledgeBase, media: FakeMediaRepository
) -> None:
    image = make_existing_image()
    form = make_form(existing=[image], workflow_type=WorkflowType.GENERAL)
    aggregator = _aggregator(form, knowledge_base, media)

    asyncio.run(aggregator.recalculate())
    assert _structured_for(aggregator, image.id) == []

    image.metadata.selected_band_members.append("Q200")
    asyncio.run(aggregator.recalculate())
    (action,) = _structured_for(aggregator, image.id)
    assert action.property_value(Property.DEPICTS) == ["Q200"]

    aggregator.update_action_status(action.key(), ActionStatus.IN_PROGRESS)
    aggregator.update_action_status(action.key(), ActionStatus.COMPLETED)
    asyncio.run(aggregator.recalculate(force=True))

    assert _structured_for(aggregator, image.id) == []


def test_failed_pass_keeps_previous_actions(
    music_form: PublishFormData,
    knowledge_base: FakeKnowledgeBase,
    media: FakeMediaRepository,
) -> None:
    aggregator = _aggregator(music_form, knowledge_base, media)
    asyncio.run(aggregator.recalculate())
    keys = [action.key() for action in aggregator.actions]

    aggregator.builder_factory = _FailingFactory(media)  # type: ignore[assignment]

    assert not asyncio.run(aggregator.recalculate(force=True))
    assert [action.key() for action in aggregator.actions] == keys
    assert not aggregator.is_calculating


def test_refresh_drops_derived_actions_but_keeps_manual_ones(
    music_form: PublishFormData,
    knowledge_base: FakeKnowledgeBase,
    media: FakeMediaRepository,
) -> None:
    aggregator = _aggregator(music_form, knowledge_base, media)
    asyncio.run(aggregator.recalculate())
    aggregator.add_category("Extra category")
    generation = aggregator.generation

    aggregator.refresh()

    assert [action.key() for action in aggregator.actions] == ["category:Extra category"]
    assert aggregator.generation == generation + 1
    assert asyncio.run(aggregator.recalculate())
    assert aggregator.find("category:Test Festival 2024") is not None


class _GatedMediaRepository(FakeMediaRepository):
    def __init__(self) -> None:
        super().__init__()
        self.entered = asyncio.Event()
        self.release = asyncio.Event()

    async def category_exists(self, name: str) -> bool:
        self.entered.set()
        await self.release.wait()
        return await super().category_exists(name)


def test_trigger_during_a_pass_is_dropped_and_refresh_discards_the_pass(
    music_form: PublishFormData, knowledge_base: FakeKnowledgeBase
) -> None:
    async def scenario() -> tuple[PublishDataAggregator, bool, bool, bool]:
        media = _GatedMediaRepository()
        aggregator = _aggregator(music_form, knowledge_base, media)
        first = asyncio.create_task(aggregator.recalculate())
        await media.entered.wait()

        calculating = aggregator.is_calculating
        second = await aggregator.recalculate(force=True)
        aggregator.add_category("Extra category")
        aggregator.refresh()
        media.release.set()
        return aggregator, calculating, second, await first

    aggregator, calculating, second, first = asyncio.run(scenario())

    assert calculating
    assert not second
    assert not first
    assert not aggregator.is_calculating
    assert [action.key() for action in aggregator.actions] == ["category:Extra category"]


def test_dependency_key_follows_participant_links(band: KnowledgeBaseEntity) -> None:
    performer = Participant(name="Test Band", commons_category="Test Band")
    form = make_form(event=make_event(participants=[performer]), organizations=[band])
    before = dependency_key(form)

    assert form.event_details is not None
    form.event_details.participants = [
        replace(performer, wikipedia_url="https://en.wikipedia.org/wiki/Test_Band")
    ]
    linked = dependency_key(form)
    form.event_details.participants = [replace(performer, knowledge_base_id="Q100")]

    assert linked != before
    assert dependency_key(form) not in (before, linked)


def test_listeners_are_notified_until_unsubscribed(
    music_form: PublishFormData,
    knowledge_base: FakeKnowledgeBase,
    media: FakeMediaRepository,
) -> None:
    aggregator = _aggregator(music_form, knowledge_base, media)
    seen: list[int] = []
    unsubscribe = aggregator.subscribe(lambda agg: seen.append(len(agg.actions)))

    asyncio.run(aggregator.recalculate())
    assert len(seen) == 1

    unsubscribe()
    aggregator.add_category("Extra category")
    assert len(seen) == 1


def test_page_id_is_filled_in_after_upload(
    music_form: PublishFormData,
    knowledge_base: FakeKnowledgeBase,
    media: FakeMediaRepository,
) -> None:
    aggregator = _aggregator(music_form, knowledge_base, media)
    asyncio.run(aggregator.recalculate())

    assert aggregator.update_structured_data_page_id("img-1", 5001)
    assert not aggregator.update_structured_data_page_id("missing", 5002)
    (action,) = _structured_for(aggregator, "img-1")
    assert action.commons_page_id == 5001


def test_reload_replaces_original_state_and_recalculates(knowledge_base: FakeKnowledgeBase) -> None:
    image = make_existing_image(members=["Q200"], captions=[Caption("en", "Old")])
    media = FakeMediaRepository(
        pages={"File:existing-1.jpg": "== original =="},
        structured_data={
            4242: StructuredDataSnapshot(depicts=("Q300",), captions=(Caption("en", "Old"),))
        },
    )
    form = make_form(existing=[image], workflow_type=WorkflowType.GENERAL)
    aggregator = _aggregator(form, knowledge_base, media)
    asyncio.run(aggregator.recalculate())
    assert _structured_for(aggregator, image.id) == []

    assert asyncio.run(aggregator.reload_image_from_repository(image.id))

    original = aggregator.context.original_states[image.id]
    assert original.selected_band_members == ("Q300",)
    (action,) = _structured_for(aggregator, image.id)
    assert action.property_value(Property.DEPICTS) == ["Q200"]
    assert not asyncio.run(aggregator.reload_image_from_repository("unknown"))
