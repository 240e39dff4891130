"""Category and description derivation for music events.

Three event shapes are supported. ``GENERIC`` events (title, date, participants) use
the WikiPortraits "at {year} {event}" scheme; festivals and concerts keep the older
festival/concert category trees.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING
from urllib.parse import unquote

from wikiportraits.domain.model.event import EventKind, ParticipantKind

from .creation import (
    WIKIPORTRAITS,
    WIKIPORTRAITS_CONCERTS,
    WIKIPORTRAITS_MUSIC_EVENTS,
    WIKIPORTRAITS_PROJECT_LINK,
    CategoryCreation,
)

if TYPE_CHECKING:
    from datetime import date

    from wikiportraits.domain.model.event import EventDetails

WELL_KNOWN_EVENTS = ("eurovision", "coachella", "glastonbury")
DEFAULT_EVENT_DESCRIPTION = "Music event photos."


def format_long_date(value: date) -> str:
    return f"{value:%B} {value.day}, {value.year}"


def wikipedia_page_name(name: str, wikipedia_url: str | None) -> str:
    if not wikipedia_url:
        return name
    page = wikipedia_url.rstrip("/").rsplit("/", 1)[-1]
    return unquote(page.replace("_", " "))


def _year_suffix(event: EventDetails) -> str:
    return f" {event.year}" if event.year else ""


# ---------------------------------------------------------------------------
# Categories applied to images
# ---------------------------------------------------------------------------


def generate_categories(event: EventDetails | None) -> list[str]:
    """Return the sorted category names an event contributes to its uploads."""

    if event is None or not event.title:
        return [WIKIPORTRAITS]
    match event.kind:
        case EventKind.FESTIVAL:
            return _festival_categories(event)
        case EventKind.CONCERT:
            return _concert_categories(event)
        case _:
            return _generic_categories(event)


def _generic_categories(event: EventDetails) -> list[str]:
    categories = {WIKIPORTRAITS}
    year = event.year
    if year:
        categories.add(f"WikiPortraits at {year} {event.title}")
        categories.add(f"WikiPortraits in {year}")
        categories.add(WIKIPORTRAITS_MUSIC_EVENTS)
    else:
        categories.add(f"WikiPortraits at {event.event_name}")
    categories.add(event.event_name)
    categories.update(
        p.commons_category for p in event.participants if p.name and p.commons_category
    )
    return sorted(categories)


def _festival_categories(event: EventDetails) -> list[str]:
    categories = {WIKIPORTRAITS}
    if event.add_to_concerts_category:
        categories.add(WIKIPORTRAITS_CONCERTS)

    name, year = event.base_name, event.year
    if year:
        categories.add(f"{name} {year}")
        categories.add(name)
        if event.location:
            categories.add(f"Music festivals in {event.location}")
        if event.country:
            categories.add(f"Music festivals in {event.country}")
        categories.add(f"Music festivals in {year}")

    for band in event.bands:
        categories.add(band.name)
        if year:
            categories.add(f"{band.name} at {name} {year}")
    return sorted(categories)


def _concert_categories(event: EventDetails) -> list[str]:
    categories = {WIKIPORTRAITS}
    if event.add_to_concerts_category:
        categories.add(WIKIPORTRAITS_CONCERTS)

    artist = event.headliner
    if artist is not None:
        categories.add(artist.name)
    if event.venue:
        categories.add(f"Concerts at {event.venue}")
    if event.city:
        categories.add(f"Concerts in {event.city}")
    if event.country:
        categories.add(f"Concerts in {event.country}")
    if event.year:
        categories.add(f"Concerts in {event.year}")
    if event.tour:
        categories.add(f"{event.tour} tour")
        if artist is not None:
            categories.add(f"{artist.name} tours")
    return sorted(categories)


def generate_image_categories(event: EventDetails, band_name: str | None = None) -> list[str]:
    """Categories for a single image, optionally performed by ``band_name``."""

    if event.kind is EventKind.GENERIC:
        event_name = event.event_name
        categories = {event_name, f"WikiPortraits at {event_name}"}
        if band_name:
            categories.add(f"{band_name} at {event_name}")
            if event.year:
                categories.add(f"{band_name} in {event.year}")
        return sorted(categories)

    categories = {WIKIPORTRAITS}
    if event.add_to_concerts_category:
        categories.add(WIKIPORTRAITS_CONCERTS)
    if event.kind is EventKind.FESTIVAL and event.year:
        festival = f"{event.base_name} {event.year}"
        categories.add(f"WikiPortraits at {festival}")
        if band_name:
            categories.add(f"{band_name} at {festival}")
    elif event.kind is EventKind.CONCERT and event.headliner is not None:
        categories.add(event.headliner.name)
    return sorted(categories)


# ---------------------------------------------------------------------------
# Categories that may need creating
# ---------------------------------------------------------------------------


def get_categories_to_create(event: EventDetails | None) -> list[CategoryCreation]:
    if event is None or not event.title:
        return []
    match event.kind:
        case EventKind.FESTIVAL:
            return _festival_creations(event)
        case EventKind.CONCERT:
            return _concert_creations(event)
        case _:
            return _generic_creations(event)


def _generic_creations(event: EventDetails) -> list[CategoryCreation]:
    title, year, event_name = event.title, event.year, event.event_name
    base_name = event.base_name
    year_suffix = _year_suffix(event)
    well_known = any(name in event_name.lower() for name in WELL_KNOWN_EVENTS)
    by_year = f"{base_name} by year"

    creations = [
        CategoryCreation(
            category_name=base_name,
            should_create=not well_known,
            description=f"[[{base_name}]].",
            event_name=base_name,
        )
    ]
    if year:
        creations.append(
            CategoryCreation(
                category_name=by_year,
                should_create=not well_known,
                parent_category=base_name,
                description=f"[[{base_name}]] by year.",
                event_name=base_name,
            )
        )
    creations.append(
        CategoryCreation(
            category_name=event_name,
            # unknown existence means a manually entered event: create it
            should_create=event.category_exists is not True,
            parent_category=by_year if year else base_name,
            description=f"{title}{year_suffix}.",
            event_name=title,
        )
    )
    if year:
        creations.append(
            CategoryCreation(
                category_name=f"WikiPortraits in {year}",
                parent_category=WIKIPORTRAITS,
                description=f"Images uploaded via {WIKIPORTRAITS_PROJECT_LINK} in {year}.",
                event_name=WIKIPORTRAITS,
            )
        )
    creations.append(
        CategoryCreation(
            category_name=WIKIPORTRAITS_MUSIC_EVENTS,
            parent_category=WIKIPORTRAITS,
            description=f"Images from music events uploaded via {WIKIPORTRAITS_PROJECT_LINK}.",
            event_name=WIKIPORTRAITS,
        )
    )

    wikiportraits_event = (
        f"WikiPortraits at {year} {base_name}" if year else f"WikiPortraits at {title}"
    )
    creations.append(
        CategoryCreation(
            category_name=wikiportraits_event,
            parent_category=f"WikiPortraits in {year}" if year else WIKIPORTRAITS,
            additional_parents=(WIKIPORTRAITS_MUSIC_EVENTS,),
            description=(
                f"Images from [[{title}]]{year_suffix} uploaded via "
                f"{WIKIPORTRAITS_PROJECT_LINK}."
            ),
            event_name=title,
        )
    )

    for participant in event.participants:
        if participant.name and participant.kind is ParticipantKind.BAND:
            creations.append(
                CategoryCreation(
                    category_name=f"{participant.name} at {event_name}",
                    parent_category=event_name,
                    description=f"[[{participant.name}]] performing at {title}{year_suffix}.",
                    event_name=title,
                )
            )

    for participant in event.participants:
        if participant.name and participant.commons_category:
            creations.append(
                CategoryCreation(
                    category_name=participant.commons_category,
                    parent_category=event_name,
                    additional_parents=(wikiportraits_event,),
                    description=f"[[{participant.name}]] at {title}{year_suffix}.",
                    event_name=title,
                )
            )
    return creations


def _festival_creations(event: EventDetails) -> list[CategoryCreation]:
    name, year = event.base_name, event.year
    if not year:
        return []
    festival = f"{name} {year}"
    location = f" in {event.location}" if event.location else ""

    creations = [
        CategoryCreation(
            category_name=festival,
            parent_category=name,
            description=f"[[{name}]] {year}{location}.",
            event_name=name,
        ),
        CategoryCreation(
            category_name=f"WikiPortraits at {festival}",
            parent_category=WIKIPORTRAITS,
            description=f"WikiPortraits photos taken at [[{name}]] {year}.",
            event_name=name,
        ),
        CategoryCreation(
            category_name=name,
            parent_category=WIKIPORTRAITS_CONCERTS if event.add_to_concerts_category else None,
            description=f"[[{name}]] music festival.",
            event_name=name,
        ),
    ]
    for band in event.bands:
        page = wikipedia_page_name(band.name, band.wikipedia_url)
        creations.append(
            CategoryCreation(
                category_name=f"{band.name} at {festival}",
                parent_category=festival,
                description=f"[[{page}]] performing at [[{name}]] {year}.",
                event_name=name,
            )
        )
        creations.append(
            CategoryCreation(category_name=band.name, description=f"[[{page}]].", event_name=name)
        )
    return creations


def _concert_creations(event: EventDetails) -> list[CategoryCreation]:
    artist = event.headliner
    if artist is None:
        return []
    page = wikipedia_page_name(artist.name, artist.wikipedia_url)
    creations = [
        CategoryCreation(
            category_name=artist.name,
            parent_category=WIKIPORTRAITS_CONCERTS if event.add_to_concerts_category else None,
            description=f"[[{page}]].",
            event_name=artist.name,
        )
    ]
    if event.venue:
        city = f" in {event.city}" if event.city else ""
        creations.append(
            CategoryCreation(
                category_name=f"Concerts at {event.venue}",
                description=f"Concerts held at {event.venue}{city}.",
                event_name=artist.name,
            )
        )
    return creations


def detect_band_categories(categories: list[str], event_name: str) -> list[CategoryCreation]:
    """Find "<band> at <event>" categories among ``categories``."""

    pattern = re.compile(rf"^(.+) at {re.escape(event_name)}$")
    detected: list[CategoryCreation] = []
    for category in categories:
        match = pattern.match(category)
        if match:
            detected.append(
                CategoryCreation(
                    category_name=category,
                    parent_category=event_name,
                    description=f"[[{match.group(1)}]] performing at {event_name}.",
                    event_name=event_name,
                )
            )
    return detected


# ---------------------------------------------------------------------------
# Descriptions
# ---------------------------------------------------------------------------


def generate_description(event: EventDetails | None) -> str:
    """Human-readable description for the file page of an event upload."""

    if event is None:
        return DEFAULT_EVENT_DESCRIPTION
    if event.kind is EventKind.FESTIVAL:
        description = f"Photos from {event.base_name}{_year_suffix(event)}"
        if event.location:
            description += f" in {event.location}"
        band_names = [band.name for band in event.bands]
        if band_names:
            description += f". Featured band: {', '.join(band_names)}"
        return f"{description}."
    if event.kind is EventKind.CONCERT and event.headliner is not None:
        description = f"Photos from {event.headliner.name} concert"
        if event.date is not None:
            description += f" on {format_long_date(event.date)}"
        if event.venue:
            description += f" at {event.venue}"
        if event.city:
            description += f" in {event.city}"
        if event.tour:
            description += f" ({event.tour} tour)"
        return f"{description}."
    return DEFAULT_EVENT_DESCRIPTION
