from __future__ import annotations

import pytest

from wikiportraits.domain.actions import (
    ActionStatus,
    ActionTransitionError,
    CategoryAction,
    EntityKind,
    EntityOperation,
    ImageAction,
    ImageOperation,
    KnowledgeBaseAction,
    PropertyChange,
    StructuredDataAction,
    StructuredDataProperty,
    check_transition,
    count_actions,
)


def _update(entity_id: str, *props: str, image_id: str | None = None) -> KnowledgeBaseAction:
    return KnowledgeBaseAction(
        entity_id=entity_id,
        entity_kind=EntityKind.ORGANIZATION,
        entity_label="Test Band",
        operation=EntityOperation.UPDATE,
        changes=tuple(PropertyChange(property=prop, new_value="x") for prop in props),
        source_image_id=image_id,
    )


def test_keys_are_prefixed_with_kind() -> None:
    assert CategoryAction(category_name="Test Band").key() == "category:Test Band"
    image = ImageAction(image_id="img-1", filename="a.jpg", operation=ImageOperation.UPLOAD)
    assert image.key() == "image:img-1"
    assert StructuredDataAction(image_id="img-1").key() == "structured-data:img-1"


def test_knowledge_base_keys_distinguish_properties_and_images() -> None:
    category = _update("Q100", "P373")
    image = _update("Q100", "P18", image_id="img-1")
    both = _update("Q100", "P373", "P18")

    assert category.key() == "knowledge-base:Q100:P373"
    assert image.key() == "knowledge-base:Q100:P18:img-1"
    assert len({category.key(), image.key(), both.key()}) == 3


@pytest.mark.parametrize(
    ("current", "new"),
    [
        (ActionStatus.PENDING, ActionStatus.IN_PROGRESS),
        (ActionStatus.PENDING, ActionStatus.SKIPPED),
        (ActionStatus.IN_PROGRESS, ActionStatus.COMPLETED),
        (ActionStatus.IN_PROGRESS, ActionStatus.ERROR),
        (ActionStatus.READY, ActionStatus.READY),
        (ActionStatus.COMPLETED, ActionStatus.COMPLETED),
    ],
)
def test_allowed_transitions(current: ActionStatus, new: ActionStatus) -> None:
    check_transition(current, new)


@pytest.mark.parametrize(
    ("current", "new"),
    [
        (ActionStatus.PENDING, ActionStatus.COMPLETED),
        (ActionStatus.READY, ActionStatus.IN_PROGRESS),
        (ActionStatus.COMPLETED, ActionStatus.PENDING),
        (ActionStatus.ERROR, ActionStatus.IN_PROGRESS),
        (ActionStatus.SKIPPED, ActionStatus.PENDING),
    ],
)
def test_rejected_transitions(current: ActionStatus, new: ActionStatus) -> None:
    with pytest.raises(ActionTransitionError):
        check_transition(current, new)


def test_transition_keeps_error_only_for_error_status() -> None:
    action = CategoryAction(category_name="Test Band")

    action.transition(ActionStatus.IN_PROGRESS, "ignored")
    assert action.error is None

    action.transition(ActionStatus.ERROR, "HTTP 500")
    assert action.status is ActionStatus.ERROR
    assert action.error == "HTTP 500"


def test_property_value_lookup() -> None:
    action = StructuredDataAction(
        image_id="img-1",
        properties=(StructuredDataProperty(property="P180", value=["Q100"]),),
    )

    assert action.property_value("P180") == ["Q100"]
    assert action.property_value("P571") is None


def test_count_actions() -> None:
    actions = [
        CategoryAction(category_name="A"),
        CategoryAction(category_name="B", status=ActionStatus.READY),
        CategoryAction(category_name="C", status=ActionStatus.COMPLETED),
        CategoryAction(category_name="D", status=ActionStatus.ERROR),
    ]

    counts = count_actions(actions)

    assert (counts.total, counts.pending, counts.completed, counts.error) == (4, 1, 1, 1)
