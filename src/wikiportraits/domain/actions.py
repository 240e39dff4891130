"""Publish actions: the units of work that bring Commons and Wikidata up to date.

Actions are derived, never persisted. Every variant computes its natural key once at
construction; the key is what the publish UI hands back when it reports progress.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, ClassVar

from wikiportraits.domain.model.form import PublishCounts

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import date

    from wikiportraits.domain.model.images import Caption, GpsCoordinate


class ActionStatus(StrEnum):
    PENDING = "pending"
    READY = "ready"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    ERROR = "error"
    SKIPPED = "skipped"


class ActionKind(StrEnum):
    CATEGORY = "category"
    KNOWLEDGE_BASE = "knowledge-base"
    IMAGE = "image"
    STRUCTURED_DATA = "structured-data"


class EntityKind(StrEnum):
    PERSON = "person"
    ORGANIZATION = "organization"
    EVENT = "event"
    LOCATION = "location"


class EntityOperation(StrEnum):
    CREATE = "create"
    UPDATE = "update"
    LINK = "link"
    VERIFY = "verify"


class ImageOperation(StrEnum):
    UPLOAD = "upload"
    UPDATE_METADATA = "update-metadata"
    ADD_DEPICTS = "add-depicts"
    SET_MAIN_IMAGE = "set-main-image"


class ActionTransitionError(ValueError):
    """Raised when a status change is not allowed by the action state machine."""


class UnknownActionError(LookupError):
    """Raised when no action matches a key."""


_ALLOWED_TRANSITIONS: dict[ActionStatus, frozenset[ActionStatus]] = {
    ActionStatus.PENDING: frozenset({ActionStatus.IN_PROGRESS, ActionStatus.SKIPPED}),
    ActionStatus.IN_PROGRESS: frozenset({ActionStatus.COMPLETED, ActionStatus.ERROR}),
}


def check_transition(current: ActionStatus, new: ActionStatus) -> None:
    if current is new:
        return
    if new not in _ALLOWED_TRANSITIONS.get(current, frozenset()):
        raise ActionTransitionError(f"Cannot move action from {current} to {new}")


@dataclass(slots=True, frozen=True, kw_only=True)
class PropertyChange:
    property: str
    new_value: str
    old_value: str | None = None


type StructuredDataValue = str | list[str] | list[Caption] | GpsCoordinate | date | None


@dataclass(slots=True, frozen=True, kw_only=True)
class StructuredDataProperty:
    property: str
    value: StructuredDataValue
    exists: bool = False
    needs_update: bool = True


@dataclass(slots=True, frozen=True, kw_only=True)
class ImageActionMetadata:
    description: str = ""
    categories: tuple[str, ...] = ()
    depicts: tuple[str, ...] = ()
    date: date | None = None
    location: GpsCoordinate | None = None


@dataclass(slots=True, kw_only=True)
class _Action:
    KIND: ClassVar[ActionKind]

    status: ActionStatus = ActionStatus.PENDING
    error: str | None = None
    _key: str = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        self._key = f"{self.KIND}:{self._natural_key()}"

    def _natural_key(self) -> str:
        raise NotImplementedError

    @property
    def kind(self) -> ActionKind:
        return self.KIND

    def key(self) -> str:
        return self._key

    def transition(self, status: ActionStatus, error: str | None = None) -> None:
        check_transition(self.status, status)
        self.status = status
        self.error = error if status is ActionStatus.ERROR else None


@dataclass(slots=True, kw_only=True)
class CategoryAction(_Action):
    KIND: ClassVar[ActionKind] = ActionKind.CATEGORY

    category_name: str
    exists: bool | None = None
    should_create: bool = False
    parent_category: str | None = None
    additional_parents: tuple[str, ...] = ()
    description: str | None = None
    manual: bool = False

    def _natural_key(self) -> str:
        return self.category_name


@dataclass(slots=True, kw_only=True)
class KnowledgeBaseAction(_Action):
    KIND: ClassVar[ActionKind] = ActionKind.KNOWLEDGE_BASE

    entity_id: str
    entity_kind: EntityKind
    entity_label: str
    operation: EntityOperation
    changes: tuple[PropertyChange, ...] = ()
    source_image_id: str | None = None

    def _natural_key(self) -> str:
        # one entity can carry several updates (P373 and P18 on the same band)
        properties = "+".join(change.property for change in self.changes)
        parts = [self.entity_id, properties]
        if self.source_image_id is not None:
            parts.append(self.source_image_id)
        return ":".join(parts)


@dataclass(slots=True, kw_only=True)
class ImageAction(_Action):
    KIND: ClassVar[ActionKind] = ActionKind.IMAGE

    image_id: str
    filename: str
    operation: ImageOperation
    commons_page_id: int | None = None
    thumbnail: str | None = None
    metadata: ImageActionMetadata = field(default_factory=ImageActionMetadata)

    def _natural_key(self) -> str:
        return self.image_id


@dataclass(slots=True, kw_only=True)
class StructuredDataAction(_Action):
    KIND: ClassVar[ActionKind] = ActionKind.STRUCTURED_DATA

    image_id: str
    # unknown until the upload has produced a page
    commons_page_id: int | None = None
    properties: tuple[StructuredDataProperty, ...] = ()

    def _natural_key(self) -> str:
        return self.image_id

    def property_value(self, prop: str) -> StructuredDataValue:
        return next((p.value for p in self.properties if p.property == prop), None)


type PublishAction = CategoryAction | KnowledgeBaseAction | ImageAction | StructuredDataAction


def count_actions(actions: Iterable[PublishAction]) -> PublishCounts:
    statuses = Counter(action.status for action in actions)
    return PublishCounts(
        total=sum(statuses.values()),
        pending=statuses[ActionStatus.PENDING],
        completed=statuses[ActionStatus.COMPLETED],
        error=statuses[ActionStatus.ERROR],
    )
