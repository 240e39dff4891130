"""JSON session files: a saved publish form that the CLI can plan against.

A session file looks like::

    {
      "workflow_type": "music-event",
      "event": {"title": "Test Festival", "date": "2024-06-01", "kind": "festival",
                "participants": [{"name": "Test Band"}]},
      "entities": {"organizations": [{"id": "Q100", "labels": {"en": "Test Band"}}]},
      "files": {"queue": [{"id": "img-1", "file": {"path": "photo.jpg"},
                           "metadata": {"set_as_main_image": true}}]}
    }

Claim values are plain strings, ``{"id": "Q5"}`` for items or ``{"time": "+2024-06-01T00:00:00Z"}``
for dates. Relative file paths resolve against the session file's directory.
"""

from __future__ import annotations

import json
from datetime import date as date_type
from logging import getLogger
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from wikiportraits.domain.model.entity import (
    EntityRef,
    GlobeCoordinate,
    KnowledgeBaseEntity,
    Statement,
    TimeValue,
)
from wikiportraits.domain.model.event import EventDetails, EventKind, Participant, ParticipantKind
from wikiportraits.domain.model.form import FileSet, PublishFormData, SelectedEntities, WorkflowType
from wikiportraits.domain.model.images import (
    DEFAULT_LICENSE,
    DEFAULT_SOURCE,
    Caption,
    GpsCoordinate,
    ImageMetadata,
    ImageRecord,
    OriginalImageState,
    SourceFile,
)

log = getLogger(__name__)


class SessionFileError(ValueError):
    """Raised when a session file cannot be read or does not validate."""


class SessionModel(BaseModel):
    model_config = ConfigDict(extra="forbid")


class EntityRefModel(SessionModel):
    id: str


class TimeModel(SessionModel):
    time: str
    precision: int = 11


class CoordinateModel(SessionModel):
    latitude: float
    longitude: float
    precision: float | None = None


type ClaimValueModel = EntityRefModel | TimeModel | CoordinateModel | str


class EntityModel(SessionModel):
    id: str
    labels: dict[str, str] = Field(default_factory=dict)
    descriptions: dict[str, str] = Field(default_factory=dict)
    claims: dict[str, list[ClaimValueModel]] = Field(default_factory=dict)
    sitelinks: dict[str, str] = Field(default_factory=dict)
    is_new: bool = False

    def to_domain(self) -> KnowledgeBaseEntity:
        return KnowledgeBaseEntity(
            id=self.id,
            labels=dict(self.labels),
            descriptions=dict(self.descriptions),
            claims={
                prop: [Statement(property=prop, value=_claim_value(v)) for v in values]
                for prop, values in self.claims.items()
            },
            sitelinks=dict(self.sitelinks),
            is_new=self.is_new,
        )


def _claim_value(value: ClaimValueModel) -> EntityRef | TimeValue | GlobeCoordinate | str:
    match value:
        case EntityRefModel(id=entity_id):
            return EntityRef(entity_id)
        case TimeModel(time=time, precision=precision):
            return TimeValue(time=time, precision=precision)
        case CoordinateModel(latitude=lat, longitude=lon, precision=precision):
            return GlobeCoordinate(lat, lon, precision)
        case _:
            return value


class ParticipantModel(SessionModel):
    name: str
    kind: ParticipantKind = ParticipantKind.BAND
    commons_category: str | None = None
    knowledge_base_id: str | None = None
    wikipedia_url: str | None = None

    def to_domain(self) -> Participant:
        return Participant(**self.model_dump())


class EventModel(SessionModel):
    title: str
    date: date_type | None = None
    commons_category: str | None = None
    knowledge_base_id: str | None = None
    language: str = "en"
    kind: EventKind = EventKind.GENERIC
    location: str | None = None
    venue: str | None = None
    city: str | None = None
    country: str | None = None
    tour: str | None = None
    participants: list[ParticipantModel] = Field(default_factory=list)
    category_exists: bool | None = None
    add_to_concerts_category: bool = False

    def to_domain(self) -> EventDetails:
        values = self.model_dump(exclude={"participants"})
        return EventDetails(
            **values, participants=[participant.to_domain() for participant in self.participants]
        )


class EntitiesModel(SessionModel):
    people: list[EntityModel] = Field(default_factory=list)
    organizations: list[EntityModel] = Field(default_factory=list)


class FileModel(SessionModel):
    path: Path | None = None
    name: str | None = None
    size: int | None = None
    media_type: str | None = None
    last_modified: float | None = None
    digest: str | None = None

    def to_domain(self, base_dir: Path) -> SourceFile:
        path = self.path
        if path is not None and not path.is_absolute():
            path = base_dir / path
        if path is not None and path.is_file():
            scanned = SourceFile.from_path(path, with_digest=self.digest is None)
            return SourceFile(
                name=self.name or scanned.name,
                size=self.size if self.size is not None else scanned.size,
                media_type=self.media_type or scanned.media_type,
                last_modified=(
                    self.last_modified if self.last_modified is not None else scanned.last_modified
                ),
                path=path,
                digest=self.digest or scanned.digest,
            )
        name = self.name or (path.name if path is not None else None)
        if name is None:
            raise SessionFileError("File entries need a name or an existing path")
        return SourceFile(
            name=name,
            size=self.size or 0,
            media_type=self.media_type or "application/octet-stream",
            last_modified=self.last_modified or 0.0,
            path=path,
            digest=self.digest,
        )


class CaptionModel(SessionModel):
    language: str
    text: str

    def to_domain(self) -> Caption:
        return Caption(self.language, self.text)


class GpsModel(SessionModel):
    latitude: float
    longitude: float
    source: str = "exif"


class MetadataModel(SessionModel):
    description: str = ""
    author: str = ""
    author_qid: str | None = None
    date: date_type | None = None
    time: str | None = None
    date_from_exif: bool = False
    source: str = DEFAULT_SOURCE
    license: str = DEFAULT_LICENSE
    categories: list[str] = Field(default_factory=list)
    selected_band_members: list[str] = Field(default_factory=list)
    captions: list[CaptionModel] = Field(default_factory=list)
    wikitext: str = ""
    wikitext_modified: bool = False
    template: str | None = None
    gps: GpsModel | None = None
    set_as_main_image: bool = False
    suggested_filename: str | None = None

    def to_domain(self) -> ImageMetadata:
        values = self.model_dump(exclude={"captions", "gps"})
        return ImageMetadata(
            **values,
            captions=[caption.to_domain() for caption in self.captions],
            gps=GpsCoordinate(**self.gps.model_dump()) if self.gps is not None else None,
        )


class OriginalStateModel(SessionModel):
    wikitext: str = ""
    selected_band_members: list[str] = Field(default_factory=list)
    captions: list[CaptionModel] = Field(default_factory=list)

    def to_domain(self) -> OriginalImageState:
        return OriginalImageState(
            wikitext=self.wikitext,
            selected_band_members=tuple(self.selected_band_members),
            captions=tuple(caption.to_domain() for caption in self.captions),
        )


class ImageModel(SessionModel):
    id: str
    file: FileModel | None = None
    commons_page_id: int | None = None
    filename: str | None = None
    thumb_url: str | None = None
    metadata: MetadataModel = Field(default_factory=MetadataModel)
    original_state: OriginalStateModel | None = None

    def to_domain(self, base_dir: Path) -> ImageRecord:
        return ImageRecord(
            id=self.id,
            file=self.file.to_domain(base_dir) if self.file is not None else None,
            commons_page_id=self.commons_page_id,
            filename=self.filename,
            thumb_url=self.thumb_url,
            metadata=self.metadata.to_domain(),
            original_state=(
                self.original_state.to_domain() if self.original_state is not None else None
            ),
        )


class FilesModel(SessionModel):
    queue: list[ImageModel] = Field(default_factory=list)
    existing: list[ImageModel] = Field(default_factory=list)


class SessionFileModel(SessionModel):
    workflow_type: WorkflowType = WorkflowType.GENERAL
    event: EventModel | None = None
    entities: EntitiesModel = Field(default_factory=EntitiesModel)
    files: FilesModel = Field(default_factory=FilesModel)

    def to_domain(self, base_dir: Path) -> PublishFormData:
        return PublishFormData(
            workflow_type=self.workflow_type,
            event_details=self.event.to_domain() if self.event is not None else None,
            entities=SelectedEntities(
                people=[entity.to_domain() for entity in self.entities.people],
                organizations=[entity.to_domain() for entity in self.entities.organizations],
            ),
            files=FileSet(
                queue=[image.to_domain(base_dir) for image in self.files.queue],
                existing=[image.to_domain(base_dir) for image in self.files.existing],
            ),
        )


def load_session_file(path: Path) -> PublishFormData:
    """Read and validate a session file into form data."""

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise SessionFileError(f"Cannot read session file {path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise SessionFileError(f"Session file {path} is not valid JSON: {exc}") from exc

    try:
        model = SessionFileModel.model_validate(raw)
    except ValidationError as exc:
        raise SessionFileError(f"Session file {path} is invalid:\n{exc}") from exc

    form = model.to_domain(path.parent)
    log.info(
        "Loaded session %s: %d queued, %d existing images",
        path.name,
        len(form.files.queue),
        len(form.files.existing),
    )
    return form


__all__ = ["SessionFileError", "SessionFileModel", "load_session_file"]
