"""Environment variable loaders for configuration."""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

from .errors import MissingConfigurationError

if TYPE_CHECKING:
    from collections.abc import Sequence


def optional_env_var(name: str) -> str | None:
    """Stripped value of ``name``; unset and blank both read as ``None``."""

    value = os.getenv(name, "").strip()
    return value or None


def require_env_vars(names: Sequence[str]) -> dict[str, str]:
    """Values of ``names``; every missing or blank one is listed in the error."""

    values = {name: optional_env_var(name) for name in names}
    missing = sorted(name for name, value in values.items() if value is None)
    if missing:
        raise MissingConfigurationError(f"Missing configuration for: {', '.join(missing)}")
    return {name: value for name, value in values.items() if value is not None}
