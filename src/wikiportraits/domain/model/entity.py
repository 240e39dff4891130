"""Knowledge-base entity model.

Entities mirror the Wikidata JSON shape closely enough for the planner: labels and
descriptions keyed by language, claims keyed by property with typed statement values,
and sitelinks keyed by site id. They are read-only views of a remote record; the
planner never mutates them and always re-reads a fresh copy before deciding that a
property is missing.
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from datetime import date
from enum import StrEnum
from typing import TYPE_CHECKING, Final

from .properties import Property

if TYPE_CHECKING:
    from collections.abc import Iterator

PENDING_ID_PREFIX: Final[str] = "pending-"

_pending_counter = itertools.count(1)


@dataclass(slots=True, frozen=True)
class EntityRef:
    id: str


@dataclass(slots=True, frozen=True)
class TimeValue:
    """Wikidata time value, e.g. ``+2024-06-01T00:00:00Z`` with day precision (11)."""

    time: str
    precision: int = 11

    @classmethod
    def from_date(cls, value: date) -> TimeValue:
        return cls(time=f"+{value.isoformat()}T00:00:00Z", precision=11)

    def to_date(self) -> date | None:
        raw = self.time.lstrip("+")[:10]
        try:
            year, month, day = (int(part) for part in raw.split("-"))
            return date(year, max(month, 1), max(day, 1))
        except ValueError:
            return None


@dataclass(slots=True, frozen=True)
class GlobeCoordinate:
    latitude: float
    longitude: float
    precision: float | None = None


type StatementValue = EntityRef | str | TimeValue | GlobeCoordinate | None


class StatementRank(StrEnum):
    PREFERRED = "preferred"
    NORMAL = "normal"
    DEPRECATED = "deprecated"


@dataclass(slots=True, frozen=True, kw_only=True)
class Statement:
    property: str
    value: StatementValue
    rank: StatementRank = StatementRank.NORMAL
    id: str | None = None


@dataclass(slots=True, kw_only=True)
class KnowledgeBaseEntity:
    id: str
    labels: dict[str, str] = field(default_factory=dict)
    descriptions: dict[str, str] = field(default_factory=dict)
    claims: dict[str, list[Statement]] = field(default_factory=dict)
    sitelinks: dict[str, str] = field(default_factory=dict)
    is_new: bool = False

    @classmethod
    def pending(cls, label: str, *, language: str = "en") -> KnowledgeBaseEntity:
        """Create a placeholder for an entity that has not been created remotely yet."""

        return cls(
            id=f"{PENDING_ID_PREFIX}{next(_pending_counter)}",
            labels={language: label},
            is_new=True,
        )

    @property
    def is_pending(self) -> bool:
        return is_pending_id(self.id)

    def label(self, language: str = "en", default: str | None = None) -> str | None:
        if language in self.labels:
            return self.labels[language]
        if default is not None:
            return default
        # fall back to any label before giving up
        return next(iter(self.labels.values()), None)

    def description(self, language: str = "en") -> str | None:
        return self.descriptions.get(language)

    def statements(self, prop: str) -> list[Statement]:
        return [
            statement
            for statement in self.claims.get(prop, [])
            if statement.rank is not StatementRank.DEPRECATED
        ]

    def has_claim(self, prop: str) -> bool:
        return bool(self.claims.get(prop))

    def values(self, prop: str) -> list[StatementValue]:
        return [statement.value for statement in self.statements(prop)]

    def first_value(self, prop: str) -> StatementValue:
        return next(iter(self.values(prop)), None)

    def entity_ids(self, prop: str) -> list[str]:
        return [value.id for value in self.values(prop) if isinstance(value, EntityRef)]

    def iter_time_values(self, *props: str) -> Iterator[TimeValue]:
        for prop in props:
            for value in self.values(prop):
                if isinstance(value, TimeValue):
                    yield value

    @property
    def commons_category(self) -> str | None:
        value = self.first_value(Property.COMMONS_CATEGORY)
        return value if isinstance(value, str) and value else None

    @property
    def instance_of(self) -> list[str]:
        return self.entity_ids(Property.INSTANCE_OF)

    def wikipedia_title(self, language: str = "en") -> str | None:
        return self.sitelinks.get(f"{language}wiki")


@dataclass(slots=True, kw_only=True)
class EntityDraft:
    """Payload for creating a new knowledge-base entity."""

    labels: dict[str, str] = field(default_factory=dict)
    descriptions: dict[str, str] = field(default_factory=dict)
    statements: list[Statement] = field(default_factory=list)


def is_pending_id(entity_id: str) -> bool:
    return entity_id.startswith(PENDING_ID_PREFIX)
