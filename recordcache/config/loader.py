from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from recordcache.models.config_models import (
    AppConfig,
    CollectionConfig,
    DatabaseConfig,
    FieldConfig,
)

"""Config loader.

Responsibilities:
- Load YAML config/cache.yml
- Validate it against config_schema.json (shipped next to this module)
- Apply defaults and build the frozen AppConfig dataclasses
"""

DEFAULT_CONFIG_PATH = Path("config/cache.yml")
SCHEMA_PATH = Path(__file__).with_name("config_schema.json")


class ConfigError(Exception):
    pass


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the JSON schema.

    Raises:
        ConfigError: If the schema file does not exist, is not valid JSON,
            or the config data fails validation (missing required keys,
            wrong types, unknown keys).
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")

    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def _build_collection(name: str, raw: dict[str, Any]) -> CollectionConfig:
    fields: list[FieldConfig] = []
    for field_name, spec in raw["fields"].items():
        if isinstance(spec, str):
            fields.append(FieldConfig(name=field_name, type=spec))
        else:
            fields.append(
                FieldConfig(name=field_name, type=spec["type"], required=spec.get("required", False))
            )
    display_field = raw.get("display_field")
    if display_field is not None and display_field not in raw["fields"]:
        raise ConfigError(
            f"collection '{name}': display_field '{display_field}' is not one of its fields"
        )
    return CollectionConfig(
        name=name,
        table=raw["table"],
        fields=fields,
        display_field=display_field,
        scope=raw.get("scope", "global"),
    )


def load_config(path: Path = DEFAULT_CONFIG_PATH) -> AppConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e

    _validate_config_schema(data)

    db_raw = data.get("database") or {}
    db = DatabaseConfig(
        host=db_raw.get("host"),
        port=db_raw.get("port"),
        user=db_raw.get("user"),
        password=db_raw.get("password"),
        database=db_raw.get("database"),
        dsn=db_raw.get("dsn"),
    )
    collections = {
        name: _build_collection(name, raw) for name, raw in data["collections"].items()
    }
    return AppConfig(
        source_directory=data["source_directory"],
        collections=collections,
        database=db,
        local_cache_directory=data.get("local_cache_directory", "./.cache/local"),
        properties_table=data.get("properties_table", "app_properties"),
        user=data.get("user"),
    )
