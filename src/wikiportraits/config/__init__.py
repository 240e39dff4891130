"""Application configuration helpers."""

from __future__ import annotations

from .endpoints import EndpointConfig, MediaWikiLagError, ResponseCache, RetryPolicy
from .env import optional_env_var, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .logging import configure_logging
from .storage import data_dir, search_cache_path
from .wikimedia import WikimediaConfig, get_wikimedia_config

__all__ = [
    "ConfigurationError",
    "EndpointConfig",
    "MediaWikiLagError",
    "MissingConfigurationError",
    "ResponseCache",
    "RetryPolicy",
    "WikimediaConfig",
    "configure_logging",
    "data_dir",
    "get_wikimedia_config",
    "optional_env_var",
    "require_env_vars",
    "search_cache_path",
]
