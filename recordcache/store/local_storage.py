from __future__ import annotations

import hashlib
import logging
from pathlib import Path
from typing import Protocol

"""Best-effort client-side string storage (one device / profile).

Mirrors the browser localStorage contract: get_item / set_item / remove_item
on string keys and string values. FileLocalStorage keeps one file per key;
NullLocalStorage is what callers get when no storage is available.
"""

__all__ = [
    "LocalStorage",
    "FileLocalStorage",
    "MemoryLocalStorage",
    "NullLocalStorage",
    "open_local_storage",
]

logger = logging.getLogger(__name__)


class LocalStorage(Protocol):
    available: bool

    def get_item(self, key: str) -> str | None: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...


class NullLocalStorage:
    """Storage that never holds anything."""

    available = False

    def get_item(self, key: str) -> str | None:
        return None

    def set_item(self, key: str, value: str) -> None:
        return None

    def remove_item(self, key: str) -> None:
        return None


class MemoryLocalStorage:
    available = True

    def __init__(self) -> None:
        self.items: dict[str, str] = {}

    def get_item(self, key: str) -> str | None:
        return self.items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self.items[key] = value

    def remove_item(self, key: str) -> None:
        self.items.pop(key, None)


class FileLocalStorage:
    """One UTF-8 text file per key, named by the key's sha1.

    OSError from the filesystem is propagated; LocalCache decides how to
    degrade.
    """

    available = True

    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)

    @staticmethod
    def _sha1_key(key: str) -> str:
        return hashlib.sha1(key.encode("utf-8")).hexdigest()

    def _item_path(self, key: str) -> Path:
        return self.directory / f"{self._sha1_key(key)}.item"

    def get_item(self, key: str) -> str | None:
        path = self._item_path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set_item(self, key: str, value: str) -> None:
        path = self._item_path(key)
        tmp = path.with_suffix(".tmp")
        tmp.write_text(value, encoding="utf-8")
        tmp.replace(path)

    def remove_item(self, key: str) -> None:
        path = self._item_path(key)
        if path.exists():
            path.unlink()


def open_local_storage(directory: str | Path | None) -> LocalStorage:
    """Open file storage under ``directory``, or a NullLocalStorage when that fails.

    ``None`` means local storage is disabled.
    """
    if directory is None:
        logger.info("local storage disabled -> cache runs empty")
        return NullLocalStorage()
    try:
        storage = FileLocalStorage(directory)
        probe = storage.directory / ".probe"
        probe.write_text("", encoding="utf-8")
        probe.unlink()
    except OSError as e:
        logger.warning("local storage unavailable at %s -> cache runs empty: %s", directory, e)
        return NullLocalStorage()
    return storage
