from __future__ import annotations

import asyncio
from dataclasses import replace

from tests.support.factories import make_entity, make_existing_image, make_queued_image
from tests.support.fakes import FakeKnowledgeBase, FakeMediaRepository
from wikiportraits.domain.action_builders import (
    BuilderContext,
    GeneralActionBuilder,
    category_status,
    depicts_for,
)
from wikiportraits.domain.actions import ActionStatus, EntityKind, ImageOperation
from wikiportraits.domain.categories.creation import CategoryCreation
from wikiportraits.domain.model.entity import KnowledgeBaseEntity
from wikiportraits.domain.model.images import Caption, OriginalImageState
from wikiportraits.domain.model.properties import CAPTIONS_FIELD, Property


def _builder(
    knowledge_base: FakeKnowledgeBase | None = None,
    media: FakeMediaRepository | None = None,
) -> GeneralActionBuilder:
    return GeneralActionBuilder(
        knowledge_base=knowledge_base or FakeKnowledgeBase(),
        media=media or FakeMediaRepository(),
    )


async def _derive_category(entity: KnowledgeBaseEntity) -> str | None:
    return entity.label("en")


def test_depicts_for_orders_and_filters() -> None:
    assert depicts_for("Q100", ["Q200", "Q100", "pending-3", ""]) == ("Q100", "Q200")
    assert depicts_for(None, ["Q200"]) == ("Q200",)
    assert depicts_for("pending-event", []) == ()


def test_category_status() -> None:
    assert category_status(True, should_create=True) is ActionStatus.COMPLETED
    assert category_status(False, should_create=True) is ActionStatus.PENDING
    assert category_status(False, should_create=False) is ActionStatus.READY
    assert category_status(None, should_create=False) is ActionStatus.READY


def test_category_actions_from_list() -> None:
    media = FakeMediaRepository(["Existing"], failing_categories=["Flaky"])
    creations = [
        CategoryCreation(category_name="Missing", parent_category="Parent", description="New."),
        CategoryCreation(category_name="Existing"),
        CategoryCreation(category_name="Flaky"),
        CategoryCreation(category_name="Not wanted", should_create=False),
    ]

    actions = asyncio.run(
        _builder(media=media).build_category_actions_from_list(
            ["Missing", "Existing", " Existing ", "Flaky", "Plain", "Not wanted", ""], creations
        )
    )
    by_name = {action.category_name: action for action in actions}

    assert list(by_name) == ["Missing", "Existing", "Flaky", "Plain", "Not wanted"]
    assert by_name["Missing"].status is ActionStatus.PENDING
    assert by_name["Missing"].should_create
    assert by_name["Missing"].parent_category == "Parent"
    assert by_name["Existing"].status is ActionStatus.COMPLETED
    assert not by_name["Existing"].should_create
    assert by_name["Flaky"].exists is None
    assert by_name["Flaky"].status is ActionStatus.READY
    assert by_name["Plain"].status is ActionStatus.READY
    assert by_name["Not wanted"].status is ActionStatus.READY


def test_missing_property_action_only_for_missing_claims() -> None:
    band = make_entity("Q100", "Test Band")
    tagged = make_entity("Q101", "Tagged", claims={Property.COMMONS_CATEGORY: ["Tagged"]})
    builder = _builder(FakeKnowledgeBase([band, tagged], failing=["Q102"]))

    def run(entity_id: str):
        return asyncio.run(
            builder.missing_property_action(
                entity_id,
                EntityKind.ORGANIZATION,
                "label",
                Property.COMMONS_CATEGORY,
                _derive_category,
            )
        )

    action = run("Q100")
    assert action is not None
    assert action.changes[0].property == Property.COMMONS_CATEGORY
    assert action.changes[0].new_value == "Test Band"
    assert run("Q101") is None
    assert run("Q102") is None
    assert run("pending-7") is None


def test_missing_property_action_without_derived_value() -> None:
    builder = _builder(FakeKnowledgeBase([make_entity("Q100")]))

    action = asyncio.run(
        builder.missing_property_action(
            "Q100", EntityKind.PERSON, "x", Property.COMMONS_CATEGORY, _derive_category
        )
    )

    assert action is None


def test_main_image_actions_one_per_flagged_image() -> None:
    band = make_entity("Q100", "Test Band")
    images = [
        make_queued_image("img-1", main=True),
        make_queued_image("img-2"),
        make_queued_image("img-3", main=True),
    ]

    actions = _builder().build_main_image_actions(images, band)

    assert [action.source_image_id for action in actions] == ["img-1", "img-3"]
    assert [action.changes[0].new_value for action in actions] == ["img-1.jpg", "img-3.jpg"]
    assert len({action.key() for action in actions}) == 2
    assert _builder().build_main_image_actions(images, KnowledgeBaseEntity.pending("X")) == []
    assert _builder().build_main_image_actions(images, None) == []


def test_new_image_actions_carry_depicts_and_metadata() -> None:
    image = make_queued_image(members=["Q200"])
    image.metadata.categories = ["Test Band"]

    (action,) = _builder().build_new_image_actions([image], "Q100")

    assert action.operation is ImageOperation.UPLOAD
    assert action.thumbnail == "preview://img-1"
    assert action.metadata.depicts == ("Q100", "Q200")
    assert action.metadata.categories == ("Test Band",)


def test_existing_image_actions_only_for_changed_wikitext() -> None:
    unchanged = make_existing_image("existing-1")
    changed = make_existing_image("existing-2", page_id=77)
    context = BuilderContext()
    builder = _builder()

    assert builder.build_existing_image_actions([unchanged, changed], context) == []

    changed.metadata.wikitext = "== edited =="
    (action,) = builder.build_existing_image_actions([unchanged, changed], context)

    assert action.operation is ImageOperation.UPDATE_METADATA
    assert action.commons_page_id == 77


def test_original_state_from_repository_wins_on_first_sight() -> None:
    image = make_existing_image(members=["Q200"])
    image.original_state = OriginalImageState(selected_band_members=())

    (action,) = _builder().build_existing_image_structured_data([image], BuilderContext())

    assert action.property_value(Property.DEPICTS) == ["Q200"]
    assert action.commons_page_id == 4242


def test_existing_structured_data_for_changed_members_and_captions() -> None:
    image = make_existing_image(members=["Q200"])
    context = BuilderContext()
    builder = _builder()

    assert builder.build_existing_image_structured_data([image], context, "Q100") == []

    image.metadata.captions = [Caption("en", "Singer on stage")]
    (action,) = builder.build_existing_image_structured_data([image], context, "Q100")

    assert action.property_value(Property.DEPICTS) == ["Q100", "Q200"]
    assert action.property_value(CAPTIONS_FIELD) == [Caption("en", "Singer on stage")]


def test_new_image_structured_data_flags_what_needs_writing() -> None:
    image = make_queued_image(members=["Q200"])

    (action,) = _builder().build_new_image_structured_data([image])
    flags = {p.property: p.needs_update for p in action.properties}

    assert flags == {
        Property.DEPICTS: True,
        Property.INCEPTION: False,
        Property.POINT_OF_VIEW_COORDINATES: False,
    }
    assert action.commons_page_id is None


def test_builder_context_freeze_and_forget() -> None:
    image = make_existing_image(members=["Q200"])
    context = BuilderContext()

    assert context.original_state_for(image).selected_band_members == ("Q200",)
    image.metadata = replace(image.metadata, selected_band_members=["Q300"])
    assert context.original_state_for(image).selected_band_members == ("Q200",)

    context.freeze(image)
    assert context.original_state_for(image).selected_band_members == ("Q300",)
    context.forget(image.id)
    assert image.id not in context.original_states

