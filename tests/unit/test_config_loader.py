from __future__ import annotations

from pathlib import Path

import pytest

from recordcache.config.loader import ConfigError, load_config


def test_load_config_success(write_config: Path):
    cfg = load_config(write_config)
    assert cfg.source_directory == "./data"
    assert cfg.local_cache_directory == "./.cache/local"
    assert cfg.properties_table == "app_properties"
    assert cfg.user is None

    staff = cfg.collections["Staff"]
    assert staff.table == "staff"
    assert staff.display_field == "name"
    assert staff.scope == "global"
    assert [(f.name, f.type, f.required) for f in staff.fields] == [
        ("id", "number", True),
        ("name", "string", False),
        ("active", "boolean", False),
    ]
    assert cfg.collections["People"].scope == "user"
    assert cfg.database.port == 5432


def test_load_config_missing_file(temp_workdir: Path):
    with pytest.raises(ConfigError, match="not found"):
        load_config(temp_workdir / "config" / "not_exists.yml")


def test_load_config_missing_required(write_config: Path):
    text = write_config.read_text(encoding="utf-8").replace("source_directory: ./data\n", "")
    write_config.write_text(text, encoding="utf-8")
    with pytest.raises(ConfigError) as e:
        load_config(write_config)
    assert "config validation failed" in str(e.value) and "required property" in str(e.value)


def test_load_config_unknown_field_type(write_config: Path):
    text = write_config.read_text(encoding="utf-8").replace("active: boolean", "active: money")
    write_config.write_text(text, encoding="utf-8")
    with pytest.raises(ConfigError, match="config validation failed"):
        load_config(write_config)


def test_load_config_extra_field(write_config: Path):
    text = write_config.read_text(encoding="utf-8") + "\nextra_field: not_allowed\n"
    write_config.write_text(text, encoding="utf-8")
    with pytest.raises(ConfigError, match="config validation failed"):
        load_config(write_config)


def test_load_config_display_field_must_exist(write_config: Path):
    text = write_config.read_text(encoding="utf-8").replace("display_field: name", "display_field: nickname")
    write_config.write_text(text, encoding="utf-8")
    with pytest.raises(ConfigError, match="display_field"):
        load_config(write_config)


def test_load_config_invalid_yaml(write_config: Path):
    write_config.write_text("collections: [unclosed\n", encoding="utf-8")
    with pytest.raises(ConfigError, match="invalid yaml"):
        load_config(write_config)


@pytest.mark.parametrize("table", ["a..b", "a.", ".a", "staff;drop"])
def test_load_config_rejects_bad_table_names(write_config: Path, table: str):
    text = write_config.read_text(encoding="utf-8").replace("table: staff", f'table: "{table}"')
    write_config.write_text(text, encoding="utf-8")
    with pytest.raises(ConfigError, match="config validation failed"):
        load_config(write_config)


def test_load_config_accepts_schema_qualified_table(write_config: Path):
    text = write_config.read_text(encoding="utf-8").replace("table: staff", "table: hr.staff")
    write_config.write_text(text, encoding="utf-8")
    assert load_config(write_config).collections["Staff"].table == "hr.staff"
