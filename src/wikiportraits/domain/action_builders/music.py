"""Builder for music events: event, band and performer categories plus their entities."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Final

from wikiportraits.domain.actions import (
    EntityKind,
    EntityOperation,
    KnowledgeBaseAction,
    PropertyChange,
)
from wikiportraits.domain.categories.band import (
    check_needs_disambiguation,
    flatten_band_categories,
    get_all_band_category_structures,
)
from wikiportraits.domain.categories.creation import CategoryCreation
from wikiportraits.domain.categories.extractor import collect_image_categories
from wikiportraits.domain.categories.music import (
    detect_band_categories,
    generate_categories,
    get_categories_to_create,
)
from wikiportraits.domain.categories.performer import (
    get_performer_categories,
    get_performer_category,
)
from wikiportraits.domain.model.entity import PENDING_ID_PREFIX
from wikiportraits.domain.model.properties import Item, Property

from .base import BaseActionBuilder

if TYPE_CHECKING:
    from collections.abc import Awaitable

    from wikiportraits.domain.actions import (
        CategoryAction,
        ImageAction,
        StructuredDataAction,
    )
    from wikiportraits.domain.model.entity import KnowledgeBaseEntity
    from wikiportraits.domain.model.event import EventDetails
    from wikiportraits.domain.model.form import PublishFormData

    from .contracts import BuilderContext

EVENT_PLACEHOLDER_ID: Final[str] = f"{PENDING_ID_PREFIX}event"
UNKNOWN_LABEL: Final[str] = "Unknown"


class MusicActionBuilder(BaseActionBuilder):
    async def build_category_actions(self, form: PublishFormData) -> list[CategoryAction]:
        names: list[str] = list(collect_image_categories(form.files.queue))
        creations: list[CategoryCreation] = []

        event = form.event_details
        if event is not None and event.title:
            names.extend(generate_categories(event))
            creations.extend(get_categories_to_create(event))
            band_names, band_creations = await self._band_categories(form, event)
            names.extend(band_names)
            creations.extend(band_creations)
            creations.extend(detect_band_categories(names, event.event_name))

        if form.entities.people:
            for info in await get_performer_categories(form.entities.people, media=self.media):
                names.append(info.commons_category)
                if info.needs_creation:
                    creations.append(
                        CategoryCreation(
                            category_name=info.commons_category,
                            description=info.description,
                            event_name=info.performer_name,
                        )
                    )

        return await self.build_category_actions_from_list(names, creations)

    async def _band_categories(
        self, form: PublishFormData, event: EventDetails
    ) -> tuple[list[str], list[CategoryCreation]]:
        organization = form.primary_organization
        band_name = organization.label("en") if organization is not None else None
        if organization is None or not band_name:
            return [], []

        names = [f"{band_name} at {event.event_name}"]
        if not event.year:
            return names, []
        structures = await get_all_band_category_structures(
            [(band_name, organization.id)],
            event.year,
            event.event_name,
            knowledge_base=self.knowledge_base,
            media=self.media,
        )
        creations = flatten_band_categories(structures)
        names.extend(creation.category_name for creation in creations)
        return names, creations

    async def build_knowledge_base_actions(
        self, form: PublishFormData
    ) -> list[KnowledgeBaseAction]:
        actions: list[KnowledgeBaseAction] = []
        event = form.event_details
        if event is not None and event.title and not event.knowledge_base_id:
            actions.append(self._event_creation(event))

        checks: list[Awaitable[KnowledgeBaseAction | None]] = [
            self._person_commons_category(person)
            for person in form.entities.people
            if not person.is_new
        ]
        checks.extend(
            self._organization_commons_category(organization)
            for organization in form.entities.organizations
            if not organization.is_new
        )
        actions.extend(action for action in await asyncio.gather(*checks) if action is not None)

        actions.extend(
            self.build_main_image_actions(
                [*form.files.queue, *form.files.existing], form.primary_organization
            )
        )
        return actions

    def _event_creation(self, event: EventDetails) -> KnowledgeBaseAction:
        changes = [PropertyChange(property=Property.INSTANCE_OF, new_value=Item.MUSIC_FESTIVAL)]
        if event.date is not None:
            changes.append(
                PropertyChange(property=Property.POINT_IN_TIME, new_value=event.date.isoformat())
            )
        return KnowledgeBaseAction(
            entity_id=EVENT_PLACEHOLDER_ID,
            entity_kind=EntityKind.EVENT,
            entity_label=event.title,
            operation=EntityOperation.CREATE,
            changes=tuple(changes),
        )

    async def _person_commons_category(
        self, person: KnowledgeBaseEntity
    ) -> KnowledgeBaseAction | None:
        async def derive(fresh: KnowledgeBaseEntity) -> str:
            category = await get_performer_category(fresh, media=self.media)
            return category.commons_category

        return await self.missing_property_action(
            person.id,
            EntityKind.PERSON,
            person.label("en", default=UNKNOWN_LABEL) or UNKNOWN_LABEL,
            Property.COMMONS_CATEGORY,
            derive,
        )

    async def _organization_commons_category(
        self, organization: KnowledgeBaseEntity
    ) -> KnowledgeBaseAction | None:
        label = organization.label("en", default=UNKNOWN_LABEL) or UNKNOWN_LABEL

        async def derive(fresh: KnowledgeBaseEntity) -> str:
            check = await check_needs_disambiguation(
                fresh.label("en", default=label) or label,
                organization.id,
                knowledge_base=self.knowledge_base,
                media=self.media,
            )
            return check.suggested_name

        return await self.missing_property_action(
            organization.id,
            EntityKind.ORGANIZATION,
            label,
            Property.COMMONS_CATEGORY,
            derive,
        )

    async def build_image_actions(
        self, form: PublishFormData, context: BuilderContext
    ) -> list[ImageAction]:
        organization = form.primary_organization
        return [
            *self.build_new_image_actions(
                form.files.queue, organization.id if organization is not None else None
            ),
            *self.build_existing_image_actions(form.files.existing, context),
        ]

    async def build_structured_data_actions(
        self, form: PublishFormData, context: BuilderContext
    ) -> list[StructuredDataAction]:
        organization = form.primary_organization
        organization_id = organization.id if organization is not None else None
        return [
            *self.build_new_image_structured_data(form.files.queue, organization_id),
            *self.build_existing_image_structured_data(
                form.files.existing, context, organization_id
            ),
        ]
