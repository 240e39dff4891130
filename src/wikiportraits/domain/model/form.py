"""Typed form aggregate shared by the planner and the publish UI."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator

    from .entity import KnowledgeBaseEntity
    from .event import EventDetails
    from .images import ImageRecord


class WorkflowType(StrEnum):
    MUSIC_EVENT = "music-event"
    GENERAL = "general"


@dataclass(slots=True, kw_only=True)
class SelectedEntities:
    people: list[KnowledgeBaseEntity] = field(default_factory=list)
    organizations: list[KnowledgeBaseEntity] = field(default_factory=list)

    @property
    def primary_organization(self) -> KnowledgeBaseEntity | None:
        return self.organizations[0] if self.organizations else None


@dataclass(slots=True, kw_only=True)
class FileSet:
    queue: list[ImageRecord] = field(default_factory=list)
    existing: list[ImageRecord] = field(default_factory=list)

    def __iter__(self) -> Iterator[ImageRecord]:
        yield from self.queue
        yield from self.existing

    def find(self, image_id: str) -> ImageRecord | None:
        return next((image for image in self if image.id == image_id), None)

    def find_existing(self, image_id: str) -> ImageRecord | None:
        return next((image for image in self.existing if image.id == image_id), None)


@dataclass(slots=True, kw_only=True)
class PublishFormData:
    workflow_type: WorkflowType = WorkflowType.GENERAL
    event_details: EventDetails | None = None
    entities: SelectedEntities = field(default_factory=SelectedEntities)
    files: FileSet = field(default_factory=FileSet)

    @property
    def primary_organization(self) -> KnowledgeBaseEntity | None:
        return self.entities.primary_organization


@dataclass(slots=True, frozen=True)
class PublishCounts:
    total: int = 0
    pending: int = 0
    completed: int = 0
    error: int = 0


@dataclass(slots=True, kw_only=True)
class ComputedState:
    categories: list[str] = field(default_factory=list)
    publish: PublishCounts = field(default_factory=PublishCounts)


@dataclass(slots=True, kw_only=True)
class FormState:
    """Form data as edited by the user, plus values derived by the planner."""

    data: PublishFormData = field(default_factory=PublishFormData)
    computed: ComputedState = field(default_factory=ComputedState)
