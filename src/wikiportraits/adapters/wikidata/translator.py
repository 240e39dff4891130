"""Translate Wikibase payloads into knowledge-base entities and back."""

from __future__ import annotations

import json
from datetime import date
from logging import getLogger
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from wikiportraits.domain.model.entity import (
    EntityRef,
    GlobeCoordinate,
    KnowledgeBaseEntity,
    Statement,
    StatementRank,
    TimeValue,
)
from wikiportraits.domain.model.images import Caption
from wikiportraits.domain.model.properties import Property
from wikiportraits.domain.ports.media_repository import StructuredDataSnapshot

from .schema import (
    EntityIdValue,
    EntityPayload,
    GlobeCoordinateValue,
    MonolingualTextValue,
    SearchHit,
    Snak,
    TimeDataValue,
)

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from wikiportraits.domain.actions import PropertyChange
    from wikiportraits.domain.model.entity import EntityDraft, StatementValue

log = getLogger(__name__)

GREGORIAN_CALENDAR = "http://www.wikidata.org/entity/Q1985727"
EARTH_GLOBE = "http://www.wikidata.org/entity/Q2"

ITEM_PROPERTIES = frozenset(
    {
        Property.INSTANCE_OF,
        Property.DEPICTS,
        Property.LOCATION,
        Property.PERFORMER,
        Property.GENRE,
        Property.OCCUPATION,
        Property.CITIZENSHIP,
    }
)
TIME_PROPERTIES = frozenset({Property.INCEPTION, Property.POINT_IN_TIME, Property.START_TIME})


def snak_value(snak: Snak) -> StatementValue:
    """Domain value of a main snak; ``None`` for novalue/somevalue and unknown types."""

    if snak.snaktype != "value" or snak.datavalue is None:
        return None
    raw = snak.datavalue.value
    try:
        match snak.datavalue.type:
            case "wikibase-entityid":
                ref = EntityIdValue.model_validate(raw)
                if ref.id is not None:
                    return EntityRef(ref.id)
                if ref.numeric_id is not None:
                    return EntityRef(f"Q{ref.numeric_id}")
                return None
            case "string":
                return str(raw)
            case "time":
                time = TimeDataValue.model_validate(raw)
                return TimeValue(time=time.time, precision=time.precision)
            case "globecoordinate":
                coord = GlobeCoordinateValue.model_validate(raw)
                return GlobeCoordinate(coord.latitude, coord.longitude, coord.precision)
            case "monolingualtext":
                return MonolingualTextValue.model_validate(raw).text
            case other:
                log.debug("Ignoring %s value of %s", other, snak.property)
                return None
    except ValidationError:
        log.warning("Malformed %s value on %s", snak.datavalue.type, snak.property)
        return None


def _rank(value: str) -> StatementRank:
    try:
        return StatementRank(value)
    except ValueError:
        return StatementRank.NORMAL


def entity_from_payload(payload: EntityPayload) -> KnowledgeBaseEntity:
    claims: dict[str, list[Statement]] = {}
    for prop, statements in payload.all_statements().items():
        claims[prop] = [
            Statement(
                property=prop,
                value=snak_value(statement.mainsnak),
                rank=_rank(statement.rank),
                id=statement.id,
            )
            for statement in statements
        ]
    return KnowledgeBaseEntity(
        id=payload.id,
        labels={lang: label.value for lang, label in payload.labels.items()},
        descriptions={lang: desc.value for lang, desc in payload.descriptions.items()},
        claims=claims,
        sitelinks={site: link.title for site, link in payload.sitelinks.items()},
    )


def entity_from_search_hit(hit: SearchHit, *, language: str) -> KnowledgeBaseEntity:
    return KnowledgeBaseEntity(
        id=hit.id,
        labels={language: hit.label} if hit.label else {},
        descriptions={language: hit.description} if hit.description else {},
    )


def structured_data_from_payload(payload: EntityPayload) -> StructuredDataSnapshot:
    """Depicted items and captions of a MediaInfo entity."""

    if payload.is_missing:
        return StructuredDataSnapshot()
    entity = entity_from_payload(payload)
    return StructuredDataSnapshot(
        depicts=tuple(entity.entity_ids(Property.DEPICTS)),
        captions=tuple(
            Caption(language=lang, text=text) for lang, text in sorted(entity.labels.items())
        ),
    )


### outgoing ###


def _datavalue(value: StatementValue) -> dict[str, Any] | None:
    match value:
        case EntityRef(id=entity_id):
            return {
                "type": "wikibase-entityid",
                "value": {"entity-type": "item", "id": entity_id},
            }
        case TimeValue(time=time, precision=precision):
            return {
                "type": "time",
                "value": {
                    "time": time,
                    "timezone": 0,
                    "before": 0,
                    "after": 0,
                    "precision": precision,
                    "calendarmodel": GREGORIAN_CALENDAR,
                },
            }
        case GlobeCoordinate(latitude=lat, longitude=lon, precision=precision):
            return {
                "type": "globecoordinate",
                "value": {
                    "latitude": lat,
                    "longitude": lon,
                    "precision": precision if precision is not None else 0.0001,
                    "globe": EARTH_GLOBE,
                },
            }
        case str():
            return {"type": "string", "value": value}
        case _:
            return None


def statement_json(statement: Statement) -> dict[str, Any]:
    datavalue = _datavalue(statement.value)
    snak: dict[str, Any] = {"property": statement.property}
    if datavalue is None:
        snak["snaktype"] = "novalue"
    else:
        snak["snaktype"] = "value"
        snak["datavalue"] = datavalue
    return {"mainsnak": snak, "type": "statement", "rank": str(statement.rank)}


def statement_from_change(change: PropertyChange) -> Statement:
    """Typed statement for a string-valued property change."""

    value: StatementValue = change.new_value
    if change.property in ITEM_PROPERTIES:
        value = EntityRef(change.new_value)
    elif change.property in TIME_PROPERTIES:
        value = TimeValue.from_date(date.fromisoformat(change.new_value[:10]))
    return Statement(property=change.property, value=value)


def _language_map(values: dict[str, str]) -> dict[str, dict[str, str]]:
    return {lang: {"language": lang, "value": text} for lang, text in values.items()}


def draft_json(draft: EntityDraft) -> str:
    return json.dumps(
        {
            "labels": _language_map(draft.labels),
            "descriptions": _language_map(draft.descriptions),
            "claims": _claims(draft.statements),
        }
    )


def changes_json(changes: Sequence[PropertyChange]) -> str:
    return json.dumps({"claims": _claims(statement_from_change(c) for c in changes)})


def _claims(statements: Iterable[Statement]) -> list[dict[str, Any]]:
    return [statement_json(statement) for statement in statements]


__all__ = [
    "changes_json",
    "draft_json",
    "entity_from_payload",
    "entity_from_search_hit",
    "snak_value",
    "statement_from_change",
    "statement_json",
    "structured_data_from_payload",
]
