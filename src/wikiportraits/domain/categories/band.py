"""Band category hierarchy with disambiguation against existing Commons categories."""

from __future__ import annotations

import asyncio
import re
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from wikiportraits.domain.model.entity import is_pending_id

from .creation import CategoryCreation, first_by_name

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from wikiportraits.domain.ports.knowledge_base import KnowledgeBaseClient
    from wikiportraits.domain.ports.media_repository import MediaRepositoryClient

log = getLogger(__name__)

_INFOBOX_QID = re.compile(r"\{\{\s*Wikidata\s+Infobox[^}]*\|([^}|]+)", re.IGNORECASE)


@dataclass(slots=True, frozen=True)
class DisambiguationResult:
    needs_disambiguation: bool
    suggested_name: str
    reason: str | None = None


@dataclass(slots=True, frozen=True, kw_only=True)
class BandCategoryStructure:
    band_name: str
    band_qid: str
    main_category: str
    needs_disambiguation: bool
    year: str
    event_name: str
    categories_to_create: list[CategoryCreation] = field(default_factory=list)


def infobox_qid(page_body: str | None) -> str | None:
    """Return the item id linked from a ``{{Wikidata Infobox|Q..}}`` template, if any."""

    if not page_body:
        return None
    match = _INFOBOX_QID.search(page_body)
    return match.group(1).strip() if match else None


async def _existing_commons_category(qid: str, knowledge_base: KnowledgeBaseClient) -> str | None:
    if is_pending_id(qid):
        return None
    try:
        entity = await knowledge_base.get_entity(qid, fields=("claims", "labels"))
    except Exception:  # noqa: BLE001
        log.warning("Could not fetch %s for Commons category check", qid, exc_info=True)
        return None
    return entity.commons_category


async def check_needs_disambiguation(
    name: str,
    qid: str,
    *,
    knowledge_base: KnowledgeBaseClient,
    media: MediaRepositoryClient,
) -> DisambiguationResult:
    """Pick the Commons category name for band ``name`` (item ``qid``).

    An existing Commons category property on the item wins. Otherwise the plain name is
    used unless a category of that name exists and links to another item.
    """

    disambiguated = f"{name} (band)"
    try:
        existing = await _existing_commons_category(qid, knowledge_base)
        if existing:
            return DisambiguationResult(
                needs_disambiguation=existing != name,
                suggested_name=existing,
                reason=f"Using Commons category from {qid}",
            )

        if not await media.category_exists(name):
            return DisambiguationResult(needs_disambiguation=False, suggested_name=name)

        found_qid = infobox_qid(await media.get_page_body(f"Category:{name}"))
        if found_qid == qid:
            return DisambiguationResult(
                needs_disambiguation=False,
                suggested_name=name,
                reason=f"Category:{name} already links to {qid}",
            )
        return DisambiguationResult(
            needs_disambiguation=True,
            suggested_name=disambiguated,
            reason=f"Category:{name} links to {found_qid or 'no item'}",
        )
    except Exception:
        log.exception("Disambiguation check failed for %s", name)
        return DisambiguationResult(
            needs_disambiguation=True,
            suggested_name=disambiguated,
            reason="Existing category could not be verified",
        )


async def generate_band_category_structure(
    band_name: str,
    band_qid: str,
    year: str,
    event_name: str,
    *,
    knowledge_base: KnowledgeBaseClient,
    media: MediaRepositoryClient,
) -> BandCategoryStructure:
    check = await check_needs_disambiguation(
        band_name, band_qid, knowledge_base=knowledge_base, media=media
    )
    main = check.suggested_name
    link = f"[[d:{band_qid}|{band_name}]]"
    by_year = f"{main} by year"
    in_year = f"{main} in {year}"

    categories = [
        CategoryCreation(category_name=main, description=f"{link}.", event_name=band_name),
        CategoryCreation(
            category_name=by_year,
            parent_category=main,
            description=f"{link} by year.",
            event_name=band_name,
        ),
        CategoryCreation(
            category_name=in_year,
            parent_category=by_year,
            description=f"{link} in {year}.",
            event_name=band_name,
        ),
        CategoryCreation(
            category_name=f"{band_name} at {event_name}",
            parent_category=in_year,
            additional_parents=(event_name,),
            description=f"{link} performing at {event_name}.",
            event_name=band_name,
        ),
    ]
    return BandCategoryStructure(
        band_name=band_name,
        band_qid=band_qid,
        main_category=main,
        needs_disambiguation=check.needs_disambiguation,
        year=year,
        event_name=event_name,
        categories_to_create=categories,
    )


async def get_all_band_category_structures(
    bands: Sequence[tuple[str, str]],
    year: str,
    event_name: str,
    *,
    knowledge_base: KnowledgeBaseClient,
    media: MediaRepositoryClient,
) -> list[BandCategoryStructure]:
    """Build structures for ``(name, qid)`` pairs concurrently."""

    return list(
        await asyncio.gather(
            *(
                generate_band_category_structure(
                    name, qid, year, event_name, knowledge_base=knowledge_base, media=media
                )
                for name, qid in bands
            )
        )
    )


def flatten_band_categories(structures: Iterable[BandCategoryStructure]) -> list[CategoryCreation]:
    creations = (c for structure in structures for c in structure.categories_to_create)
    return list(first_by_name(creations).values())
