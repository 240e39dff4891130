"""Wikibase JSON response schemas (Wikidata items and Commons MediaInfo)."""

from __future__ import annotations

import logging
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field, field_validator

log = logging.getLogger(__name__)

type EntityId = str  # Q123, P31 or M456


class WikibaseBaseModel(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)
    _logged_extra_keys: ClassVar[set[str]] = set()

    def model_post_init(self, _context: object, /) -> None:
        extras = self.__pydantic_extra__
        if not extras:
            return
        new_keys = set(extras).difference(self._logged_extra_keys)
        if not new_keys:
            return
        self._logged_extra_keys.update(new_keys)
        log.debug(
            "Wikibase %s: unmodeled keys: %s",
            type(self).__name__,
            ", ".join(sorted(new_keys)),
        )


class LanguageValue(WikibaseBaseModel):
    language: str
    value: str


class DataValue(WikibaseBaseModel):
    value: Any
    type: str


class EntityIdValue(WikibaseBaseModel):
    id: EntityId | None = None
    entity_type: str | None = Field(default=None, alias="entity-type")
    numeric_id: int | None = Field(default=None, alias="numeric-id")


class TimeDataValue(WikibaseBaseModel):
    time: str
    precision: int = 11
    timezone: int = 0
    before: int = 0
    after: int = 0
    calendarmodel: str | None = None


class GlobeCoordinateValue(WikibaseBaseModel):
    latitude: float
    longitude: float
    precision: float | None = None
    altitude: float | None = None
    globe: str | None = None


class MonolingualTextValue(WikibaseBaseModel):
    text: str
    language: str


class Snak(WikibaseBaseModel):
    snaktype: str
    property: EntityId
    hash: str | None = None
    datavalue: DataValue | None = None
    datatype: str | None = None


class StatementPayload(WikibaseBaseModel):
    mainsnak: Snak
    type: str = "statement"
    id: str | None = None
    rank: str = "normal"
    qualifiers: dict[str, list[Snak]] | None = None
    qualifiers_order: list[str] | None = Field(default=None, alias="qualifiers-order")
    references: list[dict[str, Any]] | None = None


class Sitelink(WikibaseBaseModel):
    site: str
    title: str
    badges: list[str] = Field(default_factory=list)
    url: str | None = None


class EntityPayload(WikibaseBaseModel):
    id: EntityId
    type: str | None = None
    missing: str | bool | None = None
    labels: dict[str, LanguageValue] = Field(default_factory=dict)
    descriptions: dict[str, LanguageValue] = Field(default_factory=dict)
    aliases: dict[str, list[LanguageValue]] = Field(default_factory=dict)
    claims: dict[str, list[StatementPayload]] = Field(default_factory=dict)
    # MediaInfo entities carry their statements under this name
    statements: dict[str, list[StatementPayload]] = Field(default_factory=dict)
    sitelinks: dict[str, Sitelink] = Field(default_factory=dict)
    pageid: int | None = None
    ns: int | None = None
    title: str | None = None
    lastrevid: int | None = None
    modified: str | None = None
    datatype: str | None = None

    @field_validator(
        "labels",
        "descriptions",
        "aliases",
        "claims",
        "statements",
        "sitelinks",
        mode="before",
    )
    @classmethod
    def _empty_map(cls, value: object) -> object:
        # PHP serialises empty maps as []
        if isinstance(value, list) and not value:
            return {}
        return value

    @property
    def is_missing(self) -> bool:
        return self.missing is not None and self.missing is not False

    def all_statements(self) -> dict[str, list[StatementPayload]]:
        return self.claims or self.statements


class GetEntitiesResponse(WikibaseBaseModel):
    entities: dict[str, EntityPayload] = Field(default_factory=dict)
    success: int | None = None


class SearchHit(WikibaseBaseModel):
    id: EntityId
    title: str | None = None
    pageid: int | None = None
    label: str | None = None
    description: str | None = None
    concepturi: str | None = None
    url: str | None = None
    repository: str | None = None
    display: dict[str, Any] | None = None
    match: dict[str, Any] | None = None
    aliases: list[str] | None = None


class SearchResponse(WikibaseBaseModel):
    search: list[SearchHit] = Field(default_factory=list)
    searchinfo: dict[str, Any] | None = None
    search_continue: int | None = Field(default=None, alias="search-continue")
    success: int | None = None


class EditEntityResponse(WikibaseBaseModel):
    entity: EntityPayload
    success: int | None = None


__all__ = [
    "DataValue",
    "EditEntityResponse",
    "EntityIdValue",
    "EntityPayload",
    "GetEntitiesResponse",
    "GlobeCoordinateValue",
    "LanguageValue",
    "MonolingualTextValue",
    "SearchHit",
    "SearchResponse",
    "Sitelink",
    "Snak",
    "StatementPayload",
    "TimeDataValue",
    "WikibaseBaseModel",
]
