"""Public interface for the Commons adapter."""

from __future__ import annotations

from .client import CommonsAPIError, CommonsClient, category_title, mediainfo_id

__all__ = ["CommonsAPIError", "CommonsClient", "category_title", "mediainfo_id"]
