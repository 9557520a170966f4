# Shared pytest fixtures
from __future__ import annotations

import tempfile
from pathlib import Path

import pandas as pd
import pytest

from recordcache.models.collection import CollectionModel, FieldSpec, FieldType, ModelRegistry
from recordcache.store.local_cache import LocalCache
from recordcache.store.local_storage import MemoryLocalStorage
from recordcache.store.properties import MemoryPropertyStore
from recordcache.store.versions import VersionStore


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return """source_directory: ./data
local_cache_directory: ./.cache/local
collections:
  Staff:
    table: staff
    display_field: name
    fields:
      id: {type: number, required: true}
      name: string
      active: boolean
  People:
    table: people
    scope: user
    fields:
      id: number
      name: string
database:
  host: localhost
  port: 5432
  user: appuser
  password: secret
  database: appdb
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "cache.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


def make_workbook(directory: Path, name: str, sheets: dict[str, list[list[object]]]) -> Path:
    """Write raw rows (header rows included) to an .xlsx file."""
    p = directory / name
    with pd.ExcelWriter(p, engine="openpyxl") as writer:
        for sheet, rows in sheets.items():
            pd.DataFrame(rows).to_excel(writer, sheet_name=sheet, header=False, index=False)
    return p


@pytest.fixture()
def workbook_factory():
    return make_workbook


@pytest.fixture()
def staff_registry() -> ModelRegistry:
    registry = ModelRegistry()
    registry.register(
        CollectionModel(
            name="Staff",
            table="staff",
            fields={
                "id": FieldSpec("id", FieldType.NUMBER),
                "name": FieldSpec("name", FieldType.STRING),
            },
            display_field="name",
        )
    )
    return registry


@pytest.fixture()
def properties() -> MemoryPropertyStore:
    return MemoryPropertyStore()


@pytest.fixture()
def versions(properties: MemoryPropertyStore) -> VersionStore:
    return VersionStore(properties, user="ann@example.com")


@pytest.fixture()
def local_storage() -> MemoryLocalStorage:
    return MemoryLocalStorage()


@pytest.fixture()
def local_cache(local_storage: MemoryLocalStorage) -> LocalCache:
    return LocalCache(local_storage)
