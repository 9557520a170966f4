from __future__ import annotations

from dataclasses import dataclass

from recordcache.models.collection import Record


@dataclass(frozen=True)
class RecordFilter:
    """Case-insensitive substring match on one display field.

    An empty or missing ``text`` matches every record. Records whose field is
    missing or None only match the empty filter.
    """
    field: str
    text: str | None = None

    def matches(self, record: Record) -> bool:
        if not self.text:
            return True
        value = record.get(self.field)
        if value is None:
            return False
        return self.text.casefold() in str(value).casefold()

    def apply(self, records: list[Record]) -> list[Record]:
        return [r for r in records if self.matches(r)]
