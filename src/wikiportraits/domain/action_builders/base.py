"""Helpers shared by every workflow's action builder."""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from logging import getLogger
from typing import TYPE_CHECKING

from wikiportraits.domain.actions import (
    ActionStatus,
    CategoryAction,
    EntityKind,
    EntityOperation,
    ImageAction,
    ImageActionMetadata,
    ImageOperation,
    KnowledgeBaseAction,
    PropertyChange,
    StructuredDataAction,
    StructuredDataProperty,
)
from wikiportraits.domain.categories.creation import first_by_name
from wikiportraits.domain.model.entity import is_pending_id
from wikiportraits.domain.model.properties import CAPTIONS_FIELD, Property

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Iterable, Sequence

    from wikiportraits.domain.categories.creation import CategoryCreation
    from wikiportraits.domain.model.entity import KnowledgeBaseEntity
    from wikiportraits.domain.model.form import PublishFormData
    from wikiportraits.domain.model.images import ImageRecord
    from wikiportraits.domain.ports.knowledge_base import KnowledgeBaseClient
    from wikiportraits.domain.ports.media_repository import MediaRepositoryClient

    from .contracts import BuilderContext

    type DeriveValue = Callable[[KnowledgeBaseEntity], Awaitable[str | None]]

log = getLogger(__name__)


def depicts_for(organization_id: str | None, members: Iterable[str]) -> tuple[str, ...]:
    """Organization first, then the selected members; placeholders are left out."""

    ids = [organization_id, *members] if organization_id else list(members)
    return tuple(dict.fromkeys(i for i in ids if i and not is_pending_id(i)))


def category_status(exists: bool | None, *, should_create: bool) -> ActionStatus:
    if exists is True:
        return ActionStatus.COMPLETED
    if should_create:
        return ActionStatus.PENDING
    # also covers categories whose existence could not be checked
    return ActionStatus.READY


class BaseActionBuilder(ABC):
    """Base class for workflow builders; subclasses implement the four build operations."""

    def __init__(
        self,
        *,
        knowledge_base: KnowledgeBaseClient,
        media: MediaRepositoryClient,
    ) -> None:
        self.knowledge_base = knowledge_base
        self.media = media

    # ------------------------------------------------------------------
    # Categories
    # ------------------------------------------------------------------

    async def check_category_existence(self, names: Iterable[str]) -> dict[str, bool | None]:
        """Check all ``names`` concurrently; a failed check maps to ``None``."""

        names = list(dict.fromkeys(names))

        async def check(name: str) -> bool | None:
            try:
                return await self.media.category_exists(name)
            except Exception:  # noqa: BLE001
                log.warning("Could not check whether Category:%s exists", name, exc_info=True)
                return None

        results = await asyncio.gather(*(check(name) for name in names))
        return dict(zip(names, results, strict=True))

    async def build_category_actions_from_list(
        self,
        names: Iterable[str],
        creations: Iterable[CategoryCreation] = (),
    ) -> list[CategoryAction]:
        names = list(dict.fromkeys(name.strip() for name in names if name and name.strip()))
        existence = await self.check_category_existence(names)
        creations_by_name = first_by_name(creations)

        actions: list[CategoryAction] = []
        for name in names:
            exists = existence.get(name)
            creation = creations_by_name.get(name)
            should_create = creation is not None and creation.should_create and exists is False
            actions.append(
                CategoryAction(
                    category_name=name,
                    status=category_status(exists, should_create=should_create),
                    exists=exists,
                    should_create=should_create,
                    parent_category=creation.parent_category if creation else None,
                    additional_parents=creation.additional_parents if creation else (),
                    description=creation.description if creation else None,
                )
            )
        return actions

    # ------------------------------------------------------------------
    # Knowledge base
    # ------------------------------------------------------------------

    async def missing_property_action(
        self,
        entity_id: str,
        entity_kind: EntityKind,
        entity_label: str,
        prop: str,
        derive: DeriveValue,
    ) -> KnowledgeBaseAction | None:
        """Emit an update for ``prop`` when the current remote entity lacks it.

        The entity is always fetched fresh. Placeholder ids are skipped, and any failure
        is logged and yields no action.
        """

        if not entity_id or is_pending_id(entity_id):
            return None
        try:
            entity = await self.knowledge_base.get_entity(entity_id, fields=("labels", "claims"))
            if entity.has_claim(prop):
                return None
            value = await derive(entity)
        except Exception:
            log.exception("Could not check %s on %s %s", prop, entity_kind, entity_id)
            return None
        if not value:
            log.warning("No value derived for %s on %s", prop, entity_id)
            return None
        return KnowledgeBaseAction(
            entity_id=entity_id,
            entity_kind=entity_kind,
            entity_label=entity_label,
            operation=EntityOperation.UPDATE,
            changes=(PropertyChange(property=prop, new_value=value),),
        )

    def build_main_image_actions(
        self,
        images: Iterable[ImageRecord],
        organization: KnowledgeBaseEntity | None,
    ) -> list[KnowledgeBaseAction]:
        """One image-property update per image flagged as main image.

        Several flagged images yield competing actions; whichever runs last wins.
        """

        if organization is None or organization.is_pending:
            return []
        label = organization.label("en", default="Band") or "Band"
        return [
            KnowledgeBaseAction(
                entity_id=organization.id,
                entity_kind=EntityKind.ORGANIZATION,
                entity_label=label,
                operation=EntityOperation.UPDATE,
                changes=(
                    PropertyChange(property=Property.IMAGE, new_value=image.display_filename),
                ),
                source_image_id=image.id,
            )
            for image in images
            if image.metadata.set_as_main_image
        ]

    # ------------------------------------------------------------------
    # Images
    # ------------------------------------------------------------------

    def build_new_image_actions(
        self,
        images: Sequence[ImageRecord],
        organization_id: str | None = None,
    ) -> list[ImageAction]:
        return [
            ImageAction(
                image_id=image.id,
                filename=image.display_filename,
                operation=ImageOperation.UPLOAD,
                thumbnail=image.preview,
                metadata=ImageActionMetadata(
                    description=image.metadata.description,
                    categories=tuple(image.metadata.categories),
                    depicts=depicts_for(organization_id, image.metadata.selected_band_members),
                    date=image.metadata.date,
                    location=image.metadata.gps,
                ),
            )
            for image in images
        ]

    def build_existing_image_actions(
        self,
        images: Sequence[ImageRecord],
        context: BuilderContext,
    ) -> list[ImageAction]:
        """Page-body updates for existing images whose wikitext differs from the snapshot."""

        actions: list[ImageAction] = []
        for image in images:
            original = context.original_state_for(image)
            if not image.is_existing or image.metadata.wikitext == original.wikitext:
                continue
            actions.append(
                ImageAction(
                    image_id=image.id,
                    filename=image.display_filename,
                    operation=ImageOperation.UPDATE_METADATA,
                    commons_page_id=image.commons_page_id,
                    thumbnail=image.thumb_url or image.preview,
                    metadata=ImageActionMetadata(
                        description=image.metadata.description,
                        categories=tuple(image.metadata.categories),
                    ),
                )
            )
        return actions

    # ------------------------------------------------------------------
    # Structured data
    # ------------------------------------------------------------------

    def build_new_image_structured_data(
        self,
        images: Sequence[ImageRecord],
        organization_id: str | None = None,
    ) -> list[StructuredDataAction]:
        actions: list[StructuredDataAction] = []
        for image in images:
            metadata = image.metadata
            depicts = list(depicts_for(organization_id, metadata.selected_band_members))
            properties = [
                StructuredDataProperty(
                    property=Property.DEPICTS, value=depicts, needs_update=bool(depicts)
                ),
                StructuredDataProperty(
                    property=Property.INCEPTION,
                    value=metadata.date,
                    needs_update=metadata.date is not None,
                ),
                StructuredDataProperty(
                    property=Property.POINT_OF_VIEW_COORDINATES,
                    value=metadata.gps,
                    needs_update=metadata.gps is not None,
                ),
            ]
            if metadata.captions:
                properties.append(
                    StructuredDataProperty(property=CAPTIONS_FIELD, value=list(metadata.captions))
                )
            actions.append(StructuredDataAction(image_id=image.id, properties=tuple(properties)))
        return actions

    def build_existing_image_structured_data(
        self,
        images: Sequence[ImageRecord],
        context: BuilderContext,
        organization_id: str | None = None,
    ) -> list[StructuredDataAction]:
        """Depicts/caption updates for existing images.

        A wikitext change alone also triggers an update: edits to the page body usually
        mean depicts or captions need republishing.
        """

        actions: list[StructuredDataAction] = []
        for image in images:
            original = context.original_state_for(image)
            if not image.is_existing:
                continue
            metadata = image.metadata
            depicts = depicts_for(organization_id, metadata.selected_band_members)
            original_depicts = depicts_for(organization_id, original.selected_band_members)
            captions = tuple(metadata.captions)

            changed = (
                sorted(depicts) != sorted(original_depicts)
                or captions != original.captions
                or metadata.wikitext != original.wikitext
            )
            if not changed:
                continue

            properties: list[StructuredDataProperty] = []
            if depicts:
                properties.append(
                    StructuredDataProperty(property=Property.DEPICTS, value=list(depicts))
                )
            if captions:
                properties.append(
                    StructuredDataProperty(property=CAPTIONS_FIELD, value=list(captions))
                )
            if properties:
                actions.append(
                    StructuredDataAction(
                        image_id=image.id,
                        commons_page_id=image.commons_page_id,
                        properties=tuple(properties),
                    )
                )
        return actions

    # ------------------------------------------------------------------
    # Workflow operations
    # ------------------------------------------------------------------

    @abstractmethod
    async def build_category_actions(self, form: PublishFormData) -> list[CategoryAction]: ...

    @abstractmethod
    async def build_knowledge_base_actions(
        self, form: PublishFormData
    ) -> list[KnowledgeBaseAction]: ...

    @abstractmethod
    async def build_image_actions(
        self, form: PublishFormData, context: BuilderContext
    ) -> list[ImageAction]: ...

    @abstractmethod
    async def build_structured_data_actions(
        self, form: PublishFormData, context: BuilderContext
    ) -> list[StructuredDataAction]: ...
