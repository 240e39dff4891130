from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

WIKIPORTRAITS = "WikiPortraits"
WIKIPORTRAITS_MUSIC_EVENTS = "WikiPortraits at music events"
WIKIPORTRAITS_CONCERTS = "WikiPortraits at Concerts"
WIKIPORTRAITS_PROJECT_LINK = "[[c:Commons:WikiPortraits|WikiPortraits]]"


@dataclass(slots=True, frozen=True, kw_only=True)
class CategoryCreation:
    """A Commons category the planner may need to create, with its parents."""

    category_name: str
    should_create: bool = True
    parent_category: str | None = None
    additional_parents: tuple[str, ...] = ()
    description: str | None = None
    event_name: str | None = None


def first_by_name(creations: Iterable[CategoryCreation]) -> dict[str, CategoryCreation]:
    """Index creations by category name; the first entry for a name wins."""

    indexed: dict[str, CategoryCreation] = {}
    for creation in creations:
        indexed.setdefault(creation.category_name, creation)
    return indexed
