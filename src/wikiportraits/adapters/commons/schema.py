"""Commons Action API response schemas (``formatversion=2``)."""

from __future__ import annotations

from typing import Any

from pydantic import Field

from wikiportraits.adapters.wikidata.schema import WikibaseBaseModel


class CommonsBaseModel(WikibaseBaseModel):
    pass


class CategoryInfoPayload(CommonsBaseModel):
    size: int = 0
    pages: int = 0
    files: int = 0
    subcats: int = 0
    hidden: bool = False


class RevisionSlot(CommonsBaseModel):
    content: str = ""
    contentmodel: str | None = None
    contentformat: str | None = None


class Revision(CommonsBaseModel):
    slots: dict[str, RevisionSlot] = Field(default_factory=dict)
    revid: int | None = None
    parentid: int | None = None

    @property
    def main_content(self) -> str | None:
        slot = self.slots.get("main")
        return slot.content if slot is not None else None


class QueryPage(CommonsBaseModel):
    title: str
    ns: int | None = None
    pageid: int | None = None
    missing: bool = False
    invalid: bool = False
    invalidreason: str | None = None
    categoryinfo: CategoryInfoPayload | None = None
    revisions: list[Revision] = Field(default_factory=list)

    @property
    def exists(self) -> bool:
        return not self.missing and not self.invalid and self.pageid is not None


class QueryResult(CommonsBaseModel):
    pages: list[QueryPage] = Field(default_factory=list)
    normalized: list[dict[str, Any]] | None = None


class QueryResponse(CommonsBaseModel):
    query: QueryResult = Field(default_factory=QueryResult)
    batchcomplete: bool | str | None = None

    def first_page(self) -> QueryPage | None:
        return next(iter(self.query.pages), None)


class UploadResult(CommonsBaseModel):
    result: str
    filename: str | None = None
    warnings: dict[str, Any] | None = None
    imageinfo: dict[str, Any] | None = None
    filekey: str | None = None


class UploadResponse(CommonsBaseModel):
    upload: UploadResult


class EditResult(CommonsBaseModel):
    result: str
    pageid: int | None = None
    title: str | None = None
    contentmodel: str | None = None
    oldrevid: int | None = None
    newrevid: int | None = None
    newtimestamp: str | None = None
    nochange: bool | None = None


class EditResponse(CommonsBaseModel):
    edit: EditResult


__all__ = [
    "CategoryInfoPayload",
    "EditResponse",
    "QueryPage",
    "QueryResponse",
    "UploadResponse",
]
