from __future__ import annotations

from dataclasses import dataclass, field

"""Config dataclasses for recordcache.

Built by recordcache.config.loader after schema validation; every other
module receives these objects instead of raw YAML dictionaries.
"""


@dataclass(frozen=True)
class DatabaseConfig:
    """Database connection configuration.

    Used as fallback when environment variables are not set.
    Environment variables take precedence over these values.
    """
    host: str | None = None
    port: int | None = None
    user: str | None = None
    password: str | None = None
    database: str | None = None
    dsn: str | None = None


@dataclass(frozen=True)
class FieldConfig:
    name: str
    type: str  # string | number | boolean | date
    required: bool = False


@dataclass(frozen=True)
class CollectionConfig:
    """One target collection: the table it lives in and its typed fields.

    The collection name doubles as the version counter key and as the
    default sheet name for imports.
    """
    name: str
    table: str
    fields: list[FieldConfig]
    display_field: str | None = None
    scope: str = "global"


@dataclass(frozen=True)
class AppConfig:
    """Root configuration object."""
    source_directory: str  # Directory holding workbooks referenced by name
    collections: dict[str, CollectionConfig]
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    local_cache_directory: str = "./.cache/local"
    properties_table: str = "app_properties"
    user: str | None = None  # identity for user-scoped counters
