"""Category and description derivation."""

from __future__ import annotations

from .band import (
    BandCategoryStructure,
    DisambiguationResult,
    check_needs_disambiguation,
    flatten_band_categories,
    generate_band_category_structure,
    get_all_band_category_structures,
)
from .creation import CategoryCreation
from .extractor import (
    collect_image_categories,
    extract_categories_from_wikitext,
    sync_categories_from_wikitext,
)
from .music import (
    detect_band_categories,
    generate_categories,
    generate_description,
    generate_image_categories,
    get_categories_to_create,
)
from .performer import (
    PerformerCategory,
    PerformerCategorySource,
    get_performer_categories,
    get_performer_category,
)

__all__ = [
    "BandCategoryStructure",
    "CategoryCreation",
    "DisambiguationResult",
    "PerformerCategory",
    "PerformerCategorySource",
    "check_needs_disambiguation",
    "collect_image_categories",
    "detect_band_categories",
    "extract_categories_from_wikitext",
    "flatten_band_categories",
    "generate_band_category_structure",
    "generate_categories",
    "generate_description",
    "generate_image_categories",
    "get_all_band_category_structures",
    "get_categories_to_create",
    "get_performer_categories",
    "get_performer_category",
    "sync_categories_from_wikitext",
]
