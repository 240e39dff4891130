"""Turn local image files into queued image records."""

from __future__ import annotations

import asyncio
import secrets
import time
from dataclasses import dataclass, field
from datetime import date
from logging import getLogger
from typing import TYPE_CHECKING

from wikiportraits.domain.categories.music import generate_description
from wikiportraits.domain.descriptions import (
    FALLBACK_DESCRIPTION,
    generate_general_description,
    generate_music_event_description,
    is_description_complete,
)
from wikiportraits.domain.model.event import EventKind
from wikiportraits.domain.model.form import PublishFormData, WorkflowType
from wikiportraits.domain.model.images import ImageMetadata, ImageRecord
from wikiportraits.domain.wikitext import render_file_page

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from wikiportraits.domain.model.event import EventDetails
    from wikiportraits.domain.model.images import SourceFile
    from wikiportraits.domain.ports.files import ExifData, ExifReader, PreviewStore

log = getLogger(__name__)

UNKNOWN_PHOTOGRAPHER = "Unknown photographer"


def author_field(author_qid: str | None) -> str:
    return f"{{{{Creator:{author_qid}}}}}" if author_qid else UNKNOWN_PHOTOGRAPHER


def wikiportraits_event(event: EventDetails | None) -> str | None:
    """Event part of the ``WikiPortraits at ...`` category, if there is an event."""

    if event is None or not event.title:
        return None
    if event.kind is EventKind.FESTIVAL and event.year:
        return f"{event.base_name} {event.year}"
    if event.year:
        return f"{event.year} {event.base_name}"
    return event.title


def new_image_id(name: str) -> str:
    return f"{name}-{int(time.time() * 1000)}-{secrets.token_hex(5)}"


@dataclass(slots=True, kw_only=True)
class FileProcessor:
    """Build :class:`ImageRecord` objects for files added to the upload queue."""

    workflow_type: WorkflowType
    exif_reader: ExifReader
    previews: PreviewStore
    event_details: EventDetails | None = None
    author_qid: str | None = None
    language: str = "en"
    today: Callable[[], date] = field(default=date.today)

    async def create_image_records(self, files: Sequence[SourceFile]) -> list[ImageRecord]:
        """Process ``files`` concurrently, keeping their order."""

        return list(await asyncio.gather(*(self.create_image_record(file) for file in files)))

    async def create_image_record(self, file: SourceFile) -> ImageRecord:
        exif = await asyncio.to_thread(self._read_exif, file)
        captured_at = exif.captured_at if exif is not None else None

        metadata = ImageMetadata(
            description=self._description(),
            author=author_field(self.author_qid),
            author_qid=self.author_qid,
            date=captured_at.date() if captured_at is not None else self.today(),
            time=captured_at.strftime("%H:%M:%S") if captured_at is not None else None,
            date_from_exif=captured_at is not None,
            gps=exif.gps if exif is not None else None,
        )
        metadata.wikitext = render_file_page(
            metadata,
            wikiportraits_event=self._wikiportraits_event(),
            language=self.language,
        )
        return ImageRecord(
            id=new_image_id(file.name),
            file=file,
            preview=self.previews.allocate(file),
            metadata=metadata,
        )

    def release_image_record(self, image: ImageRecord) -> None:
        if image.preview is not None:
            self.previews.release(image.preview)
            image.preview = None

    def _read_exif(self, file: SourceFile) -> ExifData | None:
        try:
            return self.exif_reader.read(file)
        except Exception:  # noqa: BLE001
            log.warning("Could not read EXIF data from %s", file.name, exc_info=True)
            return None

    def _is_music(self) -> bool:
        return self.workflow_type is WorkflowType.MUSIC_EVENT and self.event_details is not None

    def _description(self) -> str:
        event = self.event_details
        form = PublishFormData(workflow_type=self.workflow_type, event_details=event)
        if self.workflow_type is not WorkflowType.MUSIC_EVENT or event is None:
            return generate_general_description(form)
        if event.kind is EventKind.GENERIC:
            description = generate_music_event_description(form)
        else:
            description = generate_description(event)
        return description if is_description_complete(description) else FALLBACK_DESCRIPTION

    def _wikiportraits_event(self) -> str | None:
        return wikiportraits_event(self.event_details) if self._is_music() else None
