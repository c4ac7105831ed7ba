from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any
from uuid import UUID

from mdenrich.crud.models import Record


class RecordRepo(ABC):
    """Narrow persistence contract the pipeline depends on.

    Implementations raise PersistenceError for any storage failure.
    """

    @abstractmethod
    def find_by_slug(self, slug: str) -> Record | None:
        raise NotImplementedError

    @abstractmethod
    def insert(self, record: Record) -> Record:
        raise NotImplementedError

    @abstractmethod
    def update(self, record_id: UUID, fields: dict[str, Any]) -> Record:
        """Apply fields to the record with record_id and return the stored result."""
        raise NotImplementedError

    @abstractmethod
    def count(self) -> int:
        raise NotImplementedError

    @abstractmethod
    def list_all(self) -> list[Record]:
        raise NotImplementedError

    @abstractmethod
    def clear(self) -> int:
        """Delete every record; return how many were removed."""
        raise NotImplementedError
