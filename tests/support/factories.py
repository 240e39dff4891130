"""Builders for domain objects used across the tests."""

from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING

from wikiportraits.domain.model.entity import EntityRef, KnowledgeBaseEntity, Statement
from wikiportraits.domain.model.event import EventDetails, EventKind, Participant
from wikiportraits.domain.model.form import (
    FileSet,
    PublishFormData,
    SelectedEntities,
    WorkflowType,
)
from wikiportraits.domain.model.images import Caption, ImageMetadata, ImageRecord, SourceFile

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence

    from wikiportraits.domain.model.entity import StatementValue


def make_entity(
    entity_id: str,
    label: str | None = None,
    *,
    claims: Mapping[str, Sequence[StatementValue]] | None = None,
    is_new: bool = False,
) -> KnowledgeBaseEntity:
    return KnowledgeBaseEntity(
        id=entity_id,
        labels={"en": label} if label else {},
        claims={
            prop: [Statement(property=prop, value=value) for value in values]
            for prop, values in (claims or {}).items()
        },
        is_new=is_new,
    )


def items(*ids: str) -> list[EntityRef]:
    return [EntityRef(entity_id) for entity_id in ids]


def make_source_file(
    name: str = "photo.jpg",
    *,
    size: int = 2048,
    last_modified: float = 1_717_236_000.0,
    media_type: str = "image/jpeg",
    digest: str | None = None,
) -> SourceFile:
    return SourceFile(
        name=name,
        size=size,
        media_type=media_type,
        last_modified=last_modified,
        digest=digest,
    )


def make_queued_image(
    image_id: str = "img-1",
    *,
    name: str | None = None,
    categories: Iterable[str] = (),
    members: Iterable[str] = (),
    captions: Iterable[Caption] = (),
    taken: date | None = None,
    main: bool = False,
) -> ImageRecord:
    return ImageRecord(
        id=image_id,
        file=make_source_file(name or f"{image_id}.jpg"),
        preview=f"preview://{image_id}",
        metadata=ImageMetadata(
            description="Band performing",
            categories=list(categories),
            selected_band_members=list(members),
            captions=list(captions),
            date=taken,
            set_as_main_image=main,
        ),
    )


def make_existing_image(
    image_id: str = "existing-1",
    *,
    page_id: int = 4242,
    wikitext: str = "== original ==",
    members: Iterable[str] = (),
    captions: Iterable[Caption] = (),
    filename: str | None = None,
) -> ImageRecord:
    return ImageRecord(
        id=image_id,
        commons_page_id=page_id,
        filename=filename or f"{image_id}.jpg",
        metadata=ImageMetadata(
            wikitext=wikitext,
            selected_band_members=list(members),
            captions=list(captions),
        ),
    )


def make_event(
    title: str = "Test Festival",
    *,
    on: date | None = date(2024, 6, 1),
    kind: EventKind = EventKind.GENERIC,
    participants: Iterable[Participant] = (),
    knowledge_base_id: str | None = None,
    category_exists: bool | None = None,
) -> EventDetails:
    return EventDetails(
        title=title,
        date=on,
        kind=kind,
        participants=list(participants),
        knowledge_base_id=knowledge_base_id,
        category_exists=category_exists,
    )


def make_form(
    *,
    event: EventDetails | None = None,
    queue: Iterable[ImageRecord] = (),
    existing: Iterable[ImageRecord] = (),
    organizations: Iterable[KnowledgeBaseEntity] = (),
    people: Iterable[KnowledgeBaseEntity] = (),
    workflow_type: WorkflowType = WorkflowType.MUSIC_EVENT,
) -> PublishFormData:
    return PublishFormData(
        workflow_type=workflow_type,
        event_details=event,
        entities=SelectedEntities(people=list(people), organizations=list(organizations)),
        files=FileSet(queue=list(queue), existing=list(existing)),
    )
