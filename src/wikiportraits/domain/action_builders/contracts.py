"""Action builder contract and the state shared between builder passes."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from wikiportraits.domain.model.images import OriginalImageState

if TYPE_CHECKING:
    from wikiportraits.domain.actions import (
        CategoryAction,
        ImageAction,
        KnowledgeBaseAction,
        StructuredDataAction,
    )
    from wikiportraits.domain.model.form import PublishFormData
    from wikiportraits.domain.model.images import ImageRecord


@dataclass(slots=True)
class BuilderContext:
    """Original-state snapshots of existing images, keyed by image id.

    The context outlives a single pass. Snapshots are written on first sight of an
    image and when its structured-data update completes, nowhere else.
    """

    original_states: dict[str, OriginalImageState] = field(default_factory=dict)

    def original_state_for(self, image: ImageRecord) -> OriginalImageState:
        state = self.original_states.get(image.id)
        if state is None:
            state = image.original_state or OriginalImageState.from_metadata(image.metadata)
            self.original_states[image.id] = state
        return state

    def freeze(self, image: ImageRecord) -> None:
        self.original_states[image.id] = OriginalImageState.from_metadata(image.metadata)

    def forget(self, image_id: str) -> None:
        self.original_states.pop(image_id, None)


@runtime_checkable
class ActionBuilder(Protocol):
    async def build_category_actions(self, form: PublishFormData) -> list[CategoryAction]: ...

    async def build_knowledge_base_actions(
        self, form: PublishFormData
    ) -> list[KnowledgeBaseAction]: ...

    async def build_image_actions(
        self, form: PublishFormData, context: BuilderContext
    ) -> list[ImageAction]: ...

    async def build_structured_data_actions(
        self, form: PublishFormData, context: BuilderContext
    ) -> list[StructuredDataAction]: ...


@dataclass(slots=True, kw_only=True)
class BuiltActions:
    categories: list[CategoryAction] = field(default_factory=list)
    knowledge_base: list[KnowledgeBaseAction] = field(default_factory=list)
    images: list[ImageAction] = field(default_factory=list)
    structured_data: list[StructuredDataAction] = field(default_factory=list)


async def build_all(
    builder: ActionBuilder,
    form: PublishFormData,
    context: BuilderContext,
) -> BuiltActions:
    """Run the four builder operations concurrently."""

    categories, knowledge_base, images, structured_data = await asyncio.gather(
        builder.build_category_actions(form),
        builder.build_knowledge_base_actions(form),
        builder.build_image_actions(form, context),
        builder.build_structured_data_actions(form, context),
    )
    return BuiltActions(
        categories=categories,
        knowledge_base=knowledge_base,
        images=images,
        structured_data=structured_data,
    )


__all__ = ["ActionBuilder", "BuilderContext", "BuiltActions", "build_all"]
