"""Record upsert keyed on slug, plus the per-slug lock registry that serializes it"""

import threading
from collections import defaultdict
from contextlib import contextmanager
from datetime import datetime
from typing import Iterator
from uuid import uuid4

from mdenrich.core.models import RecordAttrs
from mdenrich.crud.models import IDENTITY_FIELDS, Record
from mdenrich.crud.repo import RecordRepo


class SlugLocks:
    """One lock per slug so concurrent upserts of the same slug cannot interleave lookup and write."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, threading.Lock] = defaultdict(threading.Lock)

    @contextmanager
    def hold(self, slug: str) -> Iterator[None]:
        with self._guard:
            lock = self._locks[slug]
        with lock:
            yield


def upsert_record(repo: RecordRepo, attrs: RecordAttrs, locks: SlugLocks | None = None) -> tuple[Record, str]:
    """Insert a new record or update the one sharing attrs.slug.

    Returns (record, status) where status is 'created' or 'updated'. Updates
    leave id, slug, created_at and view_count untouched and advance updated_at.
    Raises PersistenceError from the repository unchanged.
    """
    if locks is None:
        return _upsert(repo, attrs)
    with locks.hold(attrs.slug):
        return _upsert(repo, attrs)


def _upsert(repo: RecordRepo, attrs: RecordAttrs) -> tuple[Record, str]:
    now = datetime.now()
    existing = repo.find_by_slug(attrs.slug)

    if existing:
        fields = {k: v for k, v in attrs.model_dump().items() if k not in IDENTITY_FIELDS}
        fields["updated_at"] = now
        return repo.update(existing.id, fields), 'updated'

    record = Record(
        id=uuid4(),
        **attrs.model_dump(),
        view_count=0,
        created_at=now,
        updated_at=now,
    )
    return repo.insert(record), 'created'


def set_fields(repo: RecordRepo, record: Record, **fields) -> Record:
    """Update selected mutable fields of a stored record and advance updated_at."""
    illegal = IDENTITY_FIELDS.intersection(fields)
    if illegal:
        raise ValueError(f"Cannot overwrite identity fields: {sorted(illegal)}")
    return repo.update(record.id, {**fields, "updated_at": datetime.now()})
