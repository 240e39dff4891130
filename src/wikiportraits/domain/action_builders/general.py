"""Builder for uploads without a specialised workflow."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .base import BaseActionBuilder

if TYPE_CHECKING:
    from wikiportraits.domain.actions import (
        CategoryAction,
        ImageAction,
        KnowledgeBaseAction,
        StructuredDataAction,
    )
    from wikiportraits.domain.model.form import PublishFormData

    from .contracts import BuilderContext


class GeneralActionBuilder(BaseActionBuilder):
    """Plain uploads: no derived categories and no knowledge-base edits."""

    async def build_category_actions(self, form: PublishFormData) -> list[CategoryAction]:
        return []

    async def build_knowledge_base_actions(
        self, form: PublishFormData
    ) -> list[KnowledgeBaseAction]:
        return []

    async def build_image_actions(
        self, form: PublishFormData, context: BuilderContext
    ) -> list[ImageAction]:
        return [
            *self.build_new_image_actions(form.files.queue),
            *self.build_existing_image_actions(form.files.existing, context),
        ]

    async def build_structured_data_actions(
        self, form: PublishFormData, context: BuilderContext
    ) -> list[StructuredDataAction]:
        return [
            *self.build_new_image_structured_data(form.files.queue),
            *self.build_existing_image_structured_data(form.files.existing, context),
        ]
