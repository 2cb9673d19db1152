"""Application configuration helpers."""

from __future__ import annotations

from .env import optional_env_var
from .errors import ConfigurationError
from .lookup import (
    CACHE_GROUP_PREFIX,
    CANONICAL_ID_FIELD,
    CANONICAL_SITE_ID_FIELD,
    LookupConfig,
    ObjectType,
    get_lookup_config,
    parse_object_type,
)
from .storage import get_data_dir, get_database_uri

__all__ = [
    "CACHE_GROUP_PREFIX",
    "CANONICAL_ID_FIELD",
    "CANONICAL_SITE_ID_FIELD",
    "ConfigurationError",
    "LookupConfig",
    "ObjectType",
    "get_data_dir",
    "get_database_uri",
    "get_lookup_config",
    "optional_env_var",
    "parse_object_type",
]
