"""File description text that satisfies Commons' "complete description" checks."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from .categories.music import format_long_date

if TYPE_CHECKING:
    from collections.abc import Sequence

    from .model.form import PublishFormData

FALLBACK_DESCRIPTION = "Concert photograph"
MIN_DESCRIPTION_WORDS = 2


@dataclass(slots=True, frozen=True, kw_only=True)
class DescriptionOptions:
    include_performers: bool = True
    include_location: bool = True
    include_date: bool = True
    language: str = "en"


def _join_names(names: Sequence[str]) -> str:
    if len(names) <= 2:
        return " and ".join(names)
    return f"{', '.join(names[:-1])}, and {names[-1]}"


def generate_music_event_description(
    form: PublishFormData,
    options: DescriptionOptions | None = None,
) -> str:
    """Describe who performs where and when, e.g. ``Band featuring A performing at X.``"""

    options = options or DescriptionOptions()
    event = form.event_details
    band = form.primary_organization
    band_name = band.label(options.language, default=band.id) if band is not None else None
    performers = [
        name
        for person in form.entities.people
        if (name := person.label(options.language, default=person.id))
    ]

    parts: list[str] = []
    if options.include_performers:
        if band_name:
            parts.append(band_name)
            if performers:
                parts.append(f"featuring {_join_names(performers)}")
            parts.append("performing")
        elif performers:
            parts.append(_join_names(performers))
            parts.append("performing")

    if event is not None and event.title:
        if parts:
            parts.append("at")
        parts.append(event.title)

    if event is not None and options.include_location:
        places = [place for place in (event.venue, event.location) if place]
        if len(places) == 2 and places[0] == places[1]:
            places = places[:1]
        if places:
            if parts:
                parts.append("in")
            parts.append(", ".join(places))

    if event is not None and event.date is not None and options.include_date:
        if parts:
            parts.append("on")
        parts.append(format_long_date(event.date))

    description = " ".join(parts)
    if not description:
        return FALLBACK_DESCRIPTION
    description = description[0].upper() + description[1:]
    return description if description.endswith(".") else f"{description}."


def generate_minimal_description(
    form: PublishFormData,
    *,
    fallback: str = FALLBACK_DESCRIPTION,
) -> str:
    event = form.event_details
    if event is None or not event.title:
        return fallback
    return f"{event.title} {event.year}" if event.year else event.title


def generate_general_description(form: PublishFormData, custom_text: str | None = None) -> str:
    if custom_text and custom_text.strip():
        return custom_text.strip()
    return generate_minimal_description(form, fallback="")


def is_description_complete(description: str | None) -> bool:
    if not description or not description.strip():
        return False
    return len(description.split()) >= MIN_DESCRIPTION_WORDS
