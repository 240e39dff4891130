"""Wikimedia Commons Action API client."""

from __future__ import annotations

import asyncio
import mimetypes
from logging import getLogger
from typing import TYPE_CHECKING, ClassVar

from wikiportraits.adapters.mediawiki import MediaWikiAPIError, MediaWikiClient
from wikiportraits.adapters.wikidata.schema import GetEntitiesResponse
from wikiportraits.adapters.wikidata.translator import structured_data_from_payload
from wikiportraits.domain.ports.media_repository import CategoryInfo, StructuredDataSnapshot

from .schema import EditResponse, QueryPage, QueryResponse, UploadResponse

if TYPE_CHECKING:
    from wikiportraits.domain.ports.media_repository import FileUpload

log = getLogger(__name__)

CATEGORY_PREFIX = "Category:"
FILE_PREFIX = "File:"


class CommonsAPIError(MediaWikiAPIError):
    """Raised when the Commons API returns an error or refuses an edit."""


def category_title(name: str) -> str:
    name = name.strip()
    return name if name.startswith(CATEGORY_PREFIX) else f"{CATEGORY_PREFIX}{name}"


def mediainfo_id(page_id: int) -> str:
    return f"M{page_id}"


class CommonsClient(MediaWikiClient):
    """Implements the media-repository port against Wikimedia Commons."""

    error_cls: ClassVar[type[MediaWikiAPIError]] = CommonsAPIError

    async def category_exists(self, name: str) -> bool:
        page = await self._query_page(category_title(name), prop="info")
        return page is not None and page.exists

    async def get_category_info(self, name: str) -> CategoryInfo | None:
        page = await self._query_page(category_title(name), prop="categoryinfo|info")
        if page is None or not page.exists:
            return None
        info = page.categoryinfo
        if info is None:
            return CategoryInfo(title=page.title)
        return CategoryInfo(
            title=page.title,
            file_count=info.files,
            subcategory_count=info.subcats,
            page_count=info.pages,
        )

    async def get_page_body(self, title: str) -> str | None:
        page = await self._query_page(
            title,
            prop="revisions",
            extra={"rvprop": "content", "rvslots": "main"},
        )
        if page is None or not page.exists or not page.revisions:
            return None
        return page.revisions[0].main_content

    async def upload_file(self, upload: FileUpload) -> int:
        content = await asyncio.to_thread(upload.path.read_bytes)
        media_type, _ = mimetypes.guess_type(upload.filename)
        payload = await self._post(
            self._config.commons,
            {
                "action": "upload",
                "filename": upload.filename,
                "text": upload.wikitext,
                "comment": upload.comment,
            },
            files={"file": (upload.filename, content, media_type or "application/octet-stream")},
        )
        result = UploadResponse.model_validate(payload).upload
        if result.result != "Success":
            warnings = ", ".join(sorted(result.warnings or {}))
            raise CommonsAPIError(
                f"Upload of {upload.filename} stopped: {result.result} ({warnings})",
                code=result.result.lower(),
            )

        title = f"{FILE_PREFIX}{result.filename or upload.filename}"
        page = await self._query_page(title, prop="info")
        if page is None or page.pageid is None:
            raise CommonsAPIError(f"Uploaded {title} but could not resolve its page id")
        log.info("Uploaded %s as page %d", title, page.pageid)
        return page.pageid

    async def update_page_body(self, page_id: int, wikitext: str, *, summary: str = "") -> None:
        payload = await self._post(
            self._config.commons,
            {
                "action": "edit",
                "pageid": str(page_id),
                "text": wikitext,
                "summary": summary,
                "nocreate": "1",
            },
        )
        result = EditResponse.model_validate(payload).edit
        if result.result != "Success":
            raise CommonsAPIError(
                f"Edit of page {page_id} failed: {result.result}", code=result.result.lower()
            )

    async def get_structured_data(self, page_id: int) -> StructuredDataSnapshot:
        entity_id = mediainfo_id(page_id)
        payload = await self._get(
            self._config.commons, {"action": "wbgetentities", "ids": entity_id}
        )
        entity = GetEntitiesResponse.model_validate(payload).entities.get(entity_id)
        if entity is None:
            return StructuredDataSnapshot()
        return structured_data_from_payload(entity)

    async def _query_page(
        self,
        title: str,
        *,
        prop: str,
        extra: dict[str, str] | None = None,
    ) -> QueryPage | None:
        params = {
            "action": "query",
            "formatversion": "2",
            "titles": title,
            "prop": prop,
            **(extra or {}),
        }
        payload = await self._get(self._config.commons, params)
        return QueryResponse.model_validate(payload).first_page()


__all__ = ["CommonsAPIError", "CommonsClient", "category_title", "mediainfo_id"]
