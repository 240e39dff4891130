"""Category links embedded in file-page wikitext."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

    from wikiportraits.domain.model.images import ImageMetadata, ImageRecord

_CATEGORY_LINK = re.compile(r"\[\[Category:([^\]]+)\]\]", re.IGNORECASE)


def extract_categories_from_wikitext(wikitext: str | None) -> list[str]:
    if not wikitext:
        return []
    names = (match.strip() for match in _CATEGORY_LINK.findall(wikitext))
    return [name for name in names if name]


def collect_image_categories(images: Iterable[ImageRecord]) -> list[str]:
    """Sorted union of the categories listed on, or linked from, each image."""

    categories: set[str] = set()
    for image in images:
        categories.update(name.strip() for name in image.metadata.categories if name.strip())
        categories.update(extract_categories_from_wikitext(image.metadata.wikitext))
    return sorted(categories)


def sync_categories_from_wikitext(metadata: ImageMetadata) -> list[str]:
    """Copy categories linked in the wikitext into ``metadata.categories``; return the new ones."""

    return [
        name
        for name in extract_categories_from_wikitext(metadata.wikitext)
        if metadata.add_category(name)
    ]
