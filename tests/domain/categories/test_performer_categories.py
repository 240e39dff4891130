from __future__ import annotations

import asyncio

import pytest

from tests.support.factories import items, make_entity
from tests.support.fakes import FakeMediaRepository
from wikiportraits.domain.categories import (
    PerformerCategorySource,
    get_performer_categories,
    get_performer_category,
)
from wikiportraits.domain.categories.performer import disambiguated_name
from wikiportraits.domain.model.properties import Property


def test_commons_category_property_is_used() -> None:
    singer = make_entity("Q5001", "Singer", claims={Property.COMMONS_CATEGORY: ["Singer (NO)"]})

    result = asyncio.run(
        get_performer_category(singer, media=FakeMediaRepository(["Singer (NO)"]))
    )

    assert result.source is PerformerCategorySource.COMMONS_CATEGORY
    assert result.commons_category == "Singer (NO)"
    assert not result.needs_creation


def test_missing_category_is_created_under_plain_name() -> None:
    singer = make_entity("Q5001", "Singer")

    result = asyncio.run(get_performer_category(singer, media=FakeMediaRepository()))

    assert result.source is PerformerCategorySource.BASE
    assert result.needs_creation
    assert result.description == "[[d:Q5001|Singer]]."


def test_taken_name_is_disambiguated_by_occupation() -> None:
    singer = make_entity("Q5001", "Singer", claims={Property.OCCUPATION: items("Q177220")})
    media = FakeMediaRepository(["Singer"], pages={"Category:Singer": "{{Wikidata Infobox|Q9}}"})

    result = asyncio.run(get_performer_category(singer, media=media))

    assert result.source is PerformerCategorySource.DISAMBIGUATED
    assert result.commons_category == "Singer (singer)"
    assert result.needs_creation


def test_disambiguated_name_fallbacks() -> None:
    unknown_occupation = make_entity("Q1", claims={Property.OCCUPATION: items("Q424242")})
    norwegian = make_entity("Q2", claims={Property.CITIZENSHIP: items("Q20")})

    assert disambiguated_name("Kim", unknown_occupation) == "Kim (musician)"
    assert disambiguated_name("Kim", norwegian) == "Kim (Norwegian musician)"
    assert disambiguated_name("Kim", make_entity("Q3")) == "Kim (musician)"


def test_failed_lookups_are_left_out() -> None:
    ok = make_entity("Q1", "Fine")
    broken = make_entity("Q2", "Broken")
    media = FakeMediaRepository(failing_categories=["Broken"])

    results = asyncio.run(get_performer_categories([ok, broken], media=media))

    assert [r.performer_qid for r in results] == ["Q1"]


class _CancellingMediaRepository(FakeMediaRepository):
    async def category_exists(self, name: str) -> bool:
        if name == "Cancelled":
            raise asyncio.CancelledError
        return await super().category_exists(name)


def test_cancelled_lookup_propagates() -> None:
    entities = [make_entity("Q1", "Fine"), make_entity("Q2", "Cancelled")]

    async def resolve() -> None:
        with pytest.raises(asyncio.CancelledError):
            await get_performer_categories(entities, media=_CancellingMediaRepository())

    asyncio.run(resolve())
