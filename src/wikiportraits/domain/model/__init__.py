"""Domain model for the publish planner."""

from __future__ import annotations

from .entity import (
    PENDING_ID_PREFIX,
    EntityDraft,
    EntityRef,
    GlobeCoordinate,
    KnowledgeBaseEntity,
    Statement,
    StatementRank,
    StatementValue,
    TimeValue,
    is_pending_id,
)
from .event import EventDetails, EventKind, Participant, ParticipantKind
from .form import (
    ComputedState,
    FileSet,
    FormState,
    PublishCounts,
    PublishFormData,
    SelectedEntities,
    WorkflowType,
)
from .images import (
    DEFAULT_LICENSE,
    DEFAULT_SOURCE,
    Caption,
    GpsCoordinate,
    ImageMetadata,
    ImageRecord,
    OriginalImageState,
    SourceFile,
)
from .properties import CAPTIONS_FIELD, Item, Property

__all__ = [
    "CAPTIONS_FIELD",
    "DEFAULT_LICENSE",
    "DEFAULT_SOURCE",
    "PENDING_ID_PREFIX",
    "Caption",
    "ComputedState",
    "EntityDraft",
    "EntityRef",
    "EventDetails",
    "EventKind",
    "FileSet",
    "FormState",
    "GlobeCoordinate",
    "GpsCoordinate",
    "ImageMetadata",
    "ImageRecord",
    "Item",
    "KnowledgeBaseEntity",
    "OriginalImageState",
    "Participant",
    "ParticipantKind",
    "Property",
    "PublishCounts",
    "PublishFormData",
    "SelectedEntities",
    "SourceFile",
    "Statement",
    "StatementRank",
    "StatementValue",
    "TimeValue",
    "WorkflowType",
    "is_pending_id",
]
