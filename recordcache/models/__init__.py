"""Domain models for recordcache.

Configuration dataclasses, typed collection models used by the spreadsheet
importer, import results and the error log record.
"""

from .collection import (
    CollectionModel,
    FieldAssignmentError,
    FieldSpec,
    FieldType,
    ModelRegistry,
    Record,
)
from .config_models import AppConfig, CollectionConfig, DatabaseConfig, FieldConfig
from .error_record import ErrorRecord
from .import_result import ImportResult, RowFailure

__all__ = [
    # Configuration models
    "AppConfig",
    "CollectionConfig",
    "DatabaseConfig",
    "FieldConfig",
    # Collection models
    "CollectionModel",
    "FieldAssignmentError",
    "FieldSpec",
    "FieldType",
    "ModelRegistry",
    "Record",
    # Results
    "ErrorRecord",
    "ImportResult",
    "RowFailure",
]
