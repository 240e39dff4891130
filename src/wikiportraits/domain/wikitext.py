"""Rendering of the Commons file description page."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .categories.creation import WIKIPORTRAITS

if TYPE_CHECKING:
    from .model.images import ImageMetadata


def render_file_page(
    metadata: ImageMetadata,
    *,
    wikiportraits_event: str | None = None,
    default_template: str | None = None,
    language: str = "en",
    force: bool = False,
) -> str:
    """Render the ``{{Information}}`` page body for an image.

    Wikitext the user edited by hand is returned unchanged unless ``force`` is set.
    ``metadata.template`` overrides ``default_template``; an empty string removes the
    template line.
    """

    if metadata.wikitext and metadata.wikitext_modified and not force:
        return metadata.wikitext

    template = metadata.template if metadata.template is not None else default_template
    template_line = f"\n{{{{{template.strip()}}}}}\n" if template and template.strip() else ""

    wikiportraits_category = (
        f"{WIKIPORTRAITS} at {wikiportraits_event}" if wikiportraits_event else WIKIPORTRAITS
    )
    has_event_category = any(c.startswith(f"{WIKIPORTRAITS} at") for c in metadata.categories)
    categories = [*([] if has_event_category else [wikiportraits_category]), *metadata.categories]

    date_text = metadata.date.isoformat() if metadata.date is not None else ""
    if metadata.time:
        date_text = f"{date_text} {metadata.time}".strip()

    location = ""
    if metadata.gps is not None:
        location = f"\n{{{{Location|{metadata.gps.latitude}|{metadata.gps.longitude}}}}}"

    lines = [
        "=={{int:filedesc}}==",
        "{{Information",
        f"|description={{{{{language}|1={metadata.description}}}}}",
        f"|author={metadata.author}",
        f"|date={date_text}",
        f"|source={metadata.source}",
        "|permission=",
        "|other_versions=",
        f"}}}}{location}",
        template_line,
        "=={{int:license-header}}==",
        f"{{{{{metadata.license}}}}}",
        "",
        *(f"[[Category:{category}]]" for category in categories if category),
    ]
    return "\n".join(lines)
