from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any
from uuid import UUID

from mdenrich.crud.models import Record
from mdenrich.crud.repo import RecordRepo
from mdenrich.util.errors import PersistenceError


def _copy(record: Record, **update: Any) -> Record:
    return Record(**{**record.model_dump(), **update})


@dataclass
class MemoryRecordRepo(RecordRepo):
    """Dict-backed repository for tests and dry runs; stores copies so callers cannot mutate state."""
    _records: dict[UUID, Record] = field(default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def find_by_slug(self, slug: str) -> Record | None:
        with self._lock:
            for r in self._records.values():
                if r.slug == slug:
                    return _copy(r)
        return None

    def insert(self, record: Record) -> Record:
        with self._lock:
            if any(r.slug == record.slug for r in self._records.values()):
                raise PersistenceError(f"Duplicate slug '{record.slug}'")
            self._records[record.id] = _copy(record)
        return record

    def update(self, record_id: UUID, fields: dict[str, Any]) -> Record:
        with self._lock:
            if record_id not in self._records:
                raise PersistenceError(f"Record {record_id} not found")
            updated = _copy(self._records[record_id], **fields)
            self._records[record_id] = updated
            return _copy(updated)

    def count(self) -> int:
        return len(self._records)

    def list_all(self) -> list[Record]:
        with self._lock:
            return sorted((_copy(r) for r in self._records.values()), key=lambda r: r.slug)

    def clear(self) -> int:
        with self._lock:
            removed = len(self._records)
            self._records.clear()
        return removed
