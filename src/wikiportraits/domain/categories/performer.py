"""Commons categories for individual performers."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING, Final

from wikiportraits.domain.model.properties import Property

from .band import infobox_qid

if TYPE_CHECKING:
    from collections.abc import Iterable

    from wikiportraits.domain.model.entity import KnowledgeBaseEntity
    from wikiportraits.domain.ports.media_repository import MediaRepositoryClient

log = getLogger(__name__)

OCCUPATIONS: Final[dict[str, str]] = {
    "Q177220": "singer",
    "Q855091": "guitarist",
    "Q765778": "bassist",
    "Q386854": "drummer",
    "Q2252262": "keyboardist",
    "Q36834": "composer",
    "Q639669": "musician",
    "Q10800557": "singer-songwriter",
    "Q488205": "singer-songwriter",
    "Q2643890": "music producer",
    "Q222722": "conductor",
    "Q1414443": "vocalist",
}

NATIONALITIES: Final[dict[str, str]] = {
    "Q20": "Norwegian",
    "Q30": "American",
    "Q145": "British",
    "Q183": "German",
    "Q142": "French",
    "Q38": "Italian",
    "Q29": "Spanish",
    "Q96": "Mexican",
    "Q16": "Canadian",
    "Q408": "Australian",
    "Q31": "Belgian",
    "Q55": "Dutch",
    "Q34": "Swedish",
    "Q35": "Danish",
    "Q33": "Finnish",
    "Q39": "Swiss",
    "Q40": "Austrian",
    "Q155": "Brazilian",
    "Q159": "Russian",
    "Q17": "Japanese",
    "Q148": "Chinese",
    "Q884": "South Korean",
    "Q668": "Indian",
}


class PerformerCategorySource(StrEnum):
    COMMONS_CATEGORY = "p373"
    BASE = "base"
    DISAMBIGUATED = "disambiguated"


@dataclass(slots=True, frozen=True, kw_only=True)
class PerformerCategory:
    performer_name: str
    performer_qid: str
    commons_category: str
    source: PerformerCategorySource
    needs_creation: bool
    description: str


def occupation_label(entity: KnowledgeBaseEntity) -> str | None:
    occupations = entity.entity_ids(Property.OCCUPATION)
    if not occupations:
        return None
    for occupation in occupations:
        if occupation in OCCUPATIONS:
            return OCCUPATIONS[occupation]
    return "musician"


def nationality_label(entity: KnowledgeBaseEntity) -> str | None:
    citizenships = entity.entity_ids(Property.CITIZENSHIP)
    return NATIONALITIES.get(citizenships[0]) if citizenships else None


def disambiguated_name(name: str, entity: KnowledgeBaseEntity) -> str:
    occupation = occupation_label(entity)
    if occupation:
        return f"{name} ({occupation})"
    nationality = nationality_label(entity)
    if nationality:
        return f"{name} ({nationality} musician)"
    return f"{name} (musician)"


async def get_performer_category(
    entity: KnowledgeBaseEntity,
    *,
    media: MediaRepositoryClient,
) -> PerformerCategory:
    name = entity.label("en", default=entity.id) or entity.id
    description = f"[[d:{entity.id}|{name}]]."

    def result(
        category: str, source: PerformerCategorySource, *, create: bool
    ) -> PerformerCategory:
        return PerformerCategory(
            performer_name=name,
            performer_qid=entity.id,
            commons_category=category,
            source=source,
            needs_creation=create,
            description=description,
        )

    if entity.commons_category:
        exists = await media.category_exists(entity.commons_category)
        return result(
            entity.commons_category, PerformerCategorySource.COMMONS_CATEGORY, create=not exists
        )

    if not await media.category_exists(name):
        return result(name, PerformerCategorySource.BASE, create=True)

    found_qid = infobox_qid(await media.get_page_body(f"Category:{name}"))
    # an unlinked category is most likely one created for this performer earlier
    if found_qid is None or found_qid == entity.id:
        return result(name, PerformerCategorySource.BASE, create=False)

    candidate = disambiguated_name(name, entity)
    exists = await media.category_exists(candidate)
    return result(candidate, PerformerCategorySource.DISAMBIGUATED, create=not exists)


async def get_performer_categories(
    entities: Iterable[KnowledgeBaseEntity],
    *,
    media: MediaRepositoryClient,
) -> list[PerformerCategory]:
    """Resolve categories concurrently; performers whose lookup fails are left out."""

    entities = list(entities)
    results = await asyncio.gather(
        *(get_performer_category(entity, media=media) for entity in entities),
        return_exceptions=True,
    )
    categories: list[PerformerCategory] = []
    for entity, outcome in zip(entities, results, strict=True):
        if isinstance(outcome, Exception):
            log.warning("Skipping performer category for %s: %s", entity.id, outcome)
            continue
        if isinstance(outcome, BaseException):
            raise outcome
        categories.append(outcome)
    return categories
