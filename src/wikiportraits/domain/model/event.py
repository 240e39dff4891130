"""Event details entered for one publishing session."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from datetime import date

_TRAILING_YEAR = re.compile(r"\s+\d{4}$")


class EventKind(StrEnum):
    GENERIC = "generic"
    FESTIVAL = "festival"
    CONCERT = "concert"


class ParticipantKind(StrEnum):
    BAND = "band"
    PERSON = "person"
    OTHER = "other"


@dataclass(slots=True, frozen=True, kw_only=True)
class Participant:
    name: str
    kind: ParticipantKind = ParticipantKind.BAND
    commons_category: str | None = None
    knowledge_base_id: str | None = None
    wikipedia_url: str | None = None


@dataclass(slots=True, kw_only=True)
class EventDetails:
    title: str
    date: date | None = None
    commons_category: str | None = None
    knowledge_base_id: str | None = None
    language: str = "en"
    kind: EventKind = EventKind.GENERIC
    location: str | None = None
    venue: str | None = None
    city: str | None = None
    country: str | None = None
    tour: str | None = None
    participants: list[Participant] = field(default_factory=list)
    category_exists: bool | None = None
    add_to_concerts_category: bool = False

    @property
    def year(self) -> str:
        return str(self.date.year) if self.date is not None else ""

    @property
    def event_name(self) -> str:
        """Commons category name of the event itself, e.g. ``Jærnåttå 2025``."""

        if self.commons_category:
            return self.commons_category
        return f"{self.title} {self.year}" if self.year else self.title

    @property
    def base_name(self) -> str:
        return _TRAILING_YEAR.sub("", self.title)

    @property
    def bands(self) -> list[Participant]:
        return [p for p in self.participants if p.kind is ParticipantKind.BAND and p.name]

    @property
    def headliner(self) -> Participant | None:
        bands = self.bands
        if bands:
            return bands[0]
        return next((p for p in self.participants if p.name), None)
