"""Lookup configuration: which object type, which metadata fields, which cache group."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Final

from .env import optional_env_var
from .errors import ConfigurationError

CANONICAL_ID_FIELD: Final[str] = "ea-syncable-import-src-id-canonical"
CANONICAL_SITE_ID_FIELD: Final[str] = "ea-syncable-import-src-site-canonical"
CACHE_GROUP_PREFIX: Final[str] = "ea-canonical-id-lookup"


class ObjectType(StrEnum):
    POST = "post"
    TERM = "term"


@dataclass(frozen=True, slots=True)
class LookupConfig:
    """Identifies one canonical lookup: its object type and indexed fields.

    The cache group is derived from the object type so that post and term
    lookups never share cache entries.
    """

    object_type: ObjectType = ObjectType.POST
    canonical_id_field: str = CANONICAL_ID_FIELD
    canonical_site_id_field: str = CANONICAL_SITE_ID_FIELD

    def __post_init__(self) -> None:
        if not self.canonical_id_field.strip():
            raise ConfigurationError("canonical_id_field must not be blank")
        if not self.canonical_site_id_field.strip():
            raise ConfigurationError("canonical_site_id_field must not be blank")
        if self.canonical_id_field == self.canonical_site_id_field:
            raise ConfigurationError("canonical id and site id fields must differ")

    @property
    def cache_group(self) -> str:
        return f"{CACHE_GROUP_PREFIX}-{self.object_type}"


def parse_object_type(value: str) -> ObjectType:
    try:
        return ObjectType(value.strip().lower())
    except ValueError as exc:
        choices = ", ".join(member.value for member in ObjectType)
        raise ConfigurationError(
            f"Unknown object type {value!r}; expected one of: {choices}"
        ) from exc


def get_lookup_config(*, object_type: ObjectType | str | None = None) -> LookupConfig:
    """Build a lookup configuration, filling gaps from the environment."""

    raw_type = object_type or optional_env_var("CANONICAL_LOOKUP_OBJECT_TYPE")
    resolved_type = ObjectType.POST if raw_type is None else parse_object_type(str(raw_type))
    return LookupConfig(
        object_type=resolved_type,
        canonical_id_field=optional_env_var("CANONICAL_LOOKUP_ID_FIELD") or CANONICAL_ID_FIELD,
        canonical_site_id_field=(
            optional_env_var("CANONICAL_LOOKUP_SITE_FIELD") or CANONICAL_SITE_ID_FIELD
        ),
    )
