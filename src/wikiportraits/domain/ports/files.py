"""Ports for local file inspection."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from datetime import datetime

    from wikiportraits.domain.model.images import GpsCoordinate, SourceFile


@dataclass(slots=True, frozen=True, kw_only=True)
class ExifData:
    captured_at: datetime | None = None
    gps: GpsCoordinate | None = None
    camera: str | None = None


@runtime_checkable
class ExifReader(Protocol):
    def read(self, file: SourceFile) -> ExifData | None: ...


@runtime_checkable
class PreviewStore(Protocol):
    """Allocates preview handles; every allocated handle must be released."""

    def allocate(self, file: SourceFile) -> str: ...

    def release(self, handle: str) -> None: ...


__all__ = ["ExifData", "ExifReader", "PreviewStore"]
