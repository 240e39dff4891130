"""Local state: the data directory and the persistent search cache inside it."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Final

from .env import optional_env_var

DATA_DIR_ENV: Final[str] = "WIKIPORTRAITS_DATA_DIR"
SEARCH_CACHE_FILENAME: Final[str] = "wikidata-search.sqlite"


def _platform_data_home() -> Path:
    if os.name == "nt":
        return Path(os.getenv("LOCALAPPDATA") or Path.home() / "AppData" / "Local")
    return Path(os.getenv("XDG_DATA_HOME") or Path.home() / ".local" / "share")


def data_dir(*, create: bool = True) -> Path:
    configured = optional_env_var(DATA_DIR_ENV)
    path = Path(configured) if configured else _platform_data_home() / "wikiportraits"
    path = path.expanduser().resolve()
    if create:
        path.mkdir(parents=True, exist_ok=True)
    return path


def search_cache_path(*, create: bool = True) -> Path:
    return data_dir(create=create) / SEARCH_CACHE_FILENAME
