"""Version counters, client-side storage and the local record cache."""

from .local_cache import SENTINEL_MARKER, LocalCache
from .local_storage import (
    FileLocalStorage,
    LocalStorage,
    MemoryLocalStorage,
    NullLocalStorage,
    open_local_storage,
)
from .properties import MemoryPropertyStore, PgPropertyStore, PropertyStore
from .versions import InvalidScopeError, Scope, VersionStore

__all__ = [
    "SENTINEL_MARKER",
    "LocalCache",
    "FileLocalStorage",
    "LocalStorage",
    "MemoryLocalStorage",
    "NullLocalStorage",
    "open_local_storage",
    "MemoryPropertyStore",
    "PgPropertyStore",
    "PropertyStore",
    "InvalidScopeError",
    "Scope",
    "VersionStore",
]
