"""Image records: queued uploads and already-published Commons files."""

from __future__ import annotations

import hashlib
import mimetypes
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from datetime import date
    from pathlib import Path

DEFAULT_SOURCE = "own work"
DEFAULT_LICENSE = "CC-BY-SA-4.0"
UNKNOWN_FILENAME = "Unknown"

_DIGEST_CHUNK_SIZE = 1 << 20


@dataclass(slots=True, frozen=True, kw_only=True)
class SourceFile:
    """Local file handle as seen by the uploader."""

    name: str
    size: int
    media_type: str
    last_modified: float
    path: Path | None = None
    digest: str | None = None

    @classmethod
    def from_path(cls, path: Path, *, with_digest: bool = True) -> SourceFile:
        stat = path.stat()
        media_type, _ = mimetypes.guess_type(path.name)
        return cls(
            name=path.name,
            size=stat.st_size,
            media_type=media_type or "application/octet-stream",
            last_modified=stat.st_mtime,
            path=path,
            digest=_sha256(path) if with_digest else None,
        )


def _sha256(path: Path) -> str:
    sha = hashlib.sha256()
    with path.open("rb") as handle:
        while chunk := handle.read(_DIGEST_CHUNK_SIZE):
            sha.update(chunk)
    return sha.hexdigest()


@dataclass(slots=True, frozen=True)
class Caption:
    language: str
    text: str


@dataclass(slots=True, frozen=True)
class GpsCoordinate:
    latitude: float
    longitude: float
    source: str = "exif"


@dataclass(slots=True, kw_only=True)
class ImageMetadata:
    description: str = ""
    author: str = ""
    author_qid: str | None = None
    date: date | None = None
    time: str | None = None
    date_from_exif: bool = False
    source: str = DEFAULT_SOURCE
    license: str = DEFAULT_LICENSE
    categories: list[str] = field(default_factory=list)
    selected_band_members: list[str] = field(default_factory=list)
    captions: list[Caption] = field(default_factory=list)
    wikitext: str = ""
    wikitext_modified: bool = False
    template: str | None = None
    gps: GpsCoordinate | None = None
    set_as_main_image: bool = False
    suggested_filename: str | None = None

    def add_category(self, name: str) -> bool:
        name = name.strip()
        if not name or name in self.categories:
            return False
        self.categories.append(name)
        return True


@dataclass(slots=True, frozen=True, kw_only=True)
class OriginalImageState:
    """Last published values of an existing image's editable fields."""

    wikitext: str = ""
    selected_band_members: tuple[str, ...] = ()
    captions: tuple[Caption, ...] = ()

    @classmethod
    def from_metadata(cls, metadata: ImageMetadata) -> OriginalImageState:
        return cls(
            wikitext=metadata.wikitext,
            selected_band_members=tuple(metadata.selected_band_members),
            captions=tuple(metadata.captions),
        )


@dataclass(slots=True, kw_only=True)
class ImageRecord:
    id: str
    file: SourceFile | None = None
    preview: str | None = None
    metadata: ImageMetadata = field(default_factory=ImageMetadata)
    commons_page_id: int | None = None
    filename: str | None = None
    thumb_url: str | None = None
    # state as read from Commons, preferred over the in-form values on first sight
    original_state: OriginalImageState | None = None

    @property
    def is_existing(self) -> bool:
        return self.commons_page_id is not None

    @property
    def display_filename(self) -> str:
        if self.metadata.suggested_filename:
            return self.metadata.suggested_filename
        if self.filename:
            return self.filename
        if self.file is not None:
            return self.file.name
        return UNKNOWN_FILENAME
