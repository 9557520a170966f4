from __future__ import annotations

import math
import numbers
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any

import numpy as np
import pandas as pd

from .config_models import CollectionConfig

"""Target collection models: typed fields, record construction, registry.

A record is a plain ``dict`` (field name -> value). ``CollectionModel.assign``
is the single place where a raw spreadsheet cell becomes a typed value; any
problem is raised as FieldAssignmentError so the importer can drop the row.
"""

__all__ = [
    "FieldAssignmentError",
    "FieldType",
    "FieldSpec",
    "CollectionModel",
    "ModelRegistry",
    "Record",
]

Record = dict[str, Any]

_TRUE_STRINGS = {"true", "yes", "y", "1"}
_FALSE_STRINGS = {"false", "no", "n", "0"}


class FieldAssignmentError(ValueError):
    """Raised when a value cannot be assigned to a field."""

    def __init__(self, field_name: str, message: str) -> None:
        super().__init__(f"{field_name}: {message}")
        self.field_name = field_name
        self.message = message


class FieldType(Enum):
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    DATE = "date"


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def _to_number(value: Any) -> int | float:
    if isinstance(value, bool):
        raise ValueError(f"boolean {value!r} is not a number")
    if isinstance(value, numbers.Real):
        num = float(value)
    elif isinstance(value, str):
        text = value.strip()
        try:
            return int(text)
        except ValueError:
            pass
        try:
            num = float(text)
        except ValueError:
            raise ValueError(f"{value!r} is not a number") from None
    else:
        raise ValueError(f"{type(value).__name__} is not a number")
    if math.isinf(num) or math.isnan(num):
        raise ValueError(f"{value!r} is not a finite number")
    return int(num) if num.is_integer() else num


def _to_boolean(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, numbers.Number) and value in (0, 1):
        return bool(value)
    if isinstance(value, str) and value.strip().lower() in _TRUE_STRINGS | _FALSE_STRINGS:
        return value.strip().lower() in _TRUE_STRINGS
    raise ValueError(f"{value!r} is not a boolean")


def _to_date(value: Any) -> date:
    if isinstance(value, pd.Timestamp):
        return value.date()
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip()[:10])
        except ValueError:
            raise ValueError(f"{value!r} is not an ISO date") from None
    raise ValueError(f"{type(value).__name__} is not a date")


def _to_string(value: Any) -> str:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, float) and value.is_integer():
        # pandas reads integer-looking cells of mixed columns as floats
        return str(int(value))
    return str(value)


_COERCERS = {
    FieldType.STRING: _to_string,
    FieldType.NUMBER: _to_number,
    FieldType.BOOLEAN: _to_boolean,
    FieldType.DATE: _to_date,
}


@dataclass(frozen=True)
class FieldSpec:
    name: str
    type: FieldType
    required: bool = False

    def coerce(self, value: Any) -> Any:
        """Convert a raw cell value into this field's type.

        Blank cells become None unless the field is required.
        """
        if _is_blank(value):
            if self.required:
                raise FieldAssignmentError(self.name, "value is required")
            return None
        if isinstance(value, np.generic):
            # numpy scalar -> python scalar
            value = value.item()
        try:
            return _COERCERS[self.type](value)
        except ValueError as e:
            raise FieldAssignmentError(self.name, str(e)) from e


@dataclass(frozen=True)
class CollectionModel:
    """A named, typed record collection."""
    name: str
    table: str
    fields: dict[str, FieldSpec]
    display_field: str | None = None
    scope: str = "global"

    @classmethod
    def from_config(cls, cfg: CollectionConfig) -> CollectionModel:
        fields = {
            f.name: FieldSpec(name=f.name, type=FieldType(f.type), required=f.required)
            for f in cfg.fields
        }
        return cls(
            name=cfg.name,
            table=cfg.table,
            fields=fields,
            display_field=cfg.display_field,
            scope=cfg.scope,
        )

    @property
    def field_names(self) -> list[str]:
        return list(self.fields)

    def new_record(self) -> Record:
        return {name: None for name in self.fields}

    def assign(self, record: Record, field_name: str, value: Any) -> None:
        spec = self.fields.get(field_name)
        if spec is None:
            raise FieldAssignmentError(field_name, f"no such field in {self.name}")
        record[field_name] = spec.coerce(value)


@dataclass
class ModelRegistry:
    """Collection name -> CollectionModel."""
    models: dict[str, CollectionModel] = field(default_factory=dict)

    @classmethod
    def from_configs(cls, collections: dict[str, CollectionConfig]) -> ModelRegistry:
        return cls({name: CollectionModel.from_config(c) for name, c in collections.items()})

    def register(self, model: CollectionModel) -> None:
        self.models[model.name] = model

    def get(self, name: str) -> CollectionModel | None:
        return self.models.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self.models
