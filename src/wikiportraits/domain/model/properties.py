"""Knowledge-base property and item identifiers used by the planner."""

from __future__ import annotations

from enum import StrEnum
from typing import Final


class Property(StrEnum):
    INSTANCE_OF = "P31"
    IMAGE = "P18"
    COMMONS_CATEGORY = "P373"
    DEPICTS = "P180"
    INCEPTION = "P571"
    POINT_IN_TIME = "P585"
    POINT_OF_VIEW_COORDINATES = "P1259"
    START_TIME = "P580"
    LOCATION = "P276"
    PERFORMER = "P175"
    GENRE = "P136"
    OCCUPATION = "P106"
    CITIZENSHIP = "P27"


class Item(StrEnum):
    HUMAN = "Q5"
    MUSIC_FESTIVAL = "Q132241"


# pseudo-property carrying MediaInfo captions in structured-data actions
CAPTIONS_FIELD: Final[str] = "labels"
