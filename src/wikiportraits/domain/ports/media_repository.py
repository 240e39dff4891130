"""Port for the media repository (Wikimedia Commons)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from pathlib import Path

    from wikiportraits.domain.model.images import Caption


@dataclass(slots=True, frozen=True, kw_only=True)
class CategoryInfo:
    title: str
    file_count: int = 0
    subcategory_count: int = 0
    page_count: int = 0


@dataclass(slots=True, frozen=True, kw_only=True)
class StructuredDataSnapshot:
    depicts: tuple[str, ...] = ()
    captions: tuple[Caption, ...] = ()


@dataclass(slots=True, frozen=True, kw_only=True)
class FileUpload:
    filename: str
    path: Path
    wikitext: str
    comment: str = "Uploaded with WikiPortraits"


@runtime_checkable
class MediaRepositoryClient(Protocol):
    async def category_exists(self, name: str) -> bool: ...

    async def get_category_info(self, name: str) -> CategoryInfo | None: ...

    async def get_page_body(self, title: str) -> str | None: ...

    async def upload_file(self, upload: FileUpload) -> int: ...

    async def update_page_body(self, page_id: int, wikitext: str, *, summary: str = "") -> None: ...

    async def get_structured_data(self, page_id: int) -> StructuredDataSnapshot: ...


__all__ = [
    "CategoryInfo",
    "FileUpload",
    "MediaRepositoryClient",
    "StructuredDataSnapshot",
]
