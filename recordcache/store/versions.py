from __future__ import annotations

import logging
from enum import Enum

from .properties import PropertyStore

"""Authoritative version counters ("mark dirty" signals).

A counter is identified by (scope, key). It only ever goes up: readers never
decrement it, and a missing counter is created on first read by incrementing
it to 1. Callers bump it with ``increment`` whenever the data behind ``key``
changes, which invalidates every client-side copy cached under an older value.
"""

__all__ = [
    "InvalidScopeError",
    "Scope",
    "VersionStore",
]

logger = logging.getLogger(__name__)


class InvalidScopeError(ValueError):
    """Raised for an unsupported scope, or a user scope without a user."""


class Scope(Enum):
    USER = "user"
    GLOBAL = "global"

    @classmethod
    def parse(cls, value: Scope | str) -> Scope:
        if isinstance(value, Scope):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise InvalidScopeError(f"unsupported scope: {value!r}") from None


def _parse_counter(raw: str | None) -> int | None:
    if raw is None:
        return None
    try:
        value = int(raw.strip())
    except ValueError:
        return None
    return value if value >= 0 else None


class VersionStore:
    """Version counters persisted in a PropertyStore.

    Every call may write: ``get`` initializes missing counters, so there is
    no read-only fast path.
    """

    def __init__(self, properties: PropertyStore, user: str | None = None) -> None:
        self.properties = properties
        self.user = user

    def _namespace(self, scope: Scope | str) -> str:
        parsed = Scope.parse(scope)
        if parsed is Scope.GLOBAL:
            return "global"
        if not self.user:
            raise InvalidScopeError("user scope requires a user identity")
        return f"user:{self.user}"

    def get(self, scope: Scope | str, key: str) -> int:
        namespace = self._namespace(scope)
        current = _parse_counter(self.properties.get_property(namespace, key))
        if current is None:
            value = self.increment(scope, key)
            logger.debug("version initialized namespace=%s key=%s value=%d", namespace, key, value)
            return value
        return current

    def increment(self, scope: Scope | str, key: str) -> int:
        namespace = self._namespace(scope)
        current = _parse_counter(self.properties.get_property(namespace, key)) or 0
        value = current + 1
        self.properties.set_property(namespace, key, str(value))
        logger.debug("version bumped namespace=%s key=%s value=%d", namespace, key, value)
        return value
