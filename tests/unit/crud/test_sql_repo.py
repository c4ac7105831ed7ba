"""Unit tests for crud/sql_repo.py and crud/memory_repo.py"""

from datetime import datetime
from uuid import uuid4

import pytest
from sqlmodel import SQLModel

from mdenrich.crud.memory_repo import MemoryRecordRepo
from mdenrich.crud.models import Record
from mdenrich.util.errors import PersistenceError


def _record(slug="a", **fields):
    now = datetime(2024, 1, 1, 12, 0)
    data = dict(id=uuid4(), slug=slug, title="T", body="B", excerpt="E", tags=["x"],
                published_at=now, created_at=now, updated_at=now)
    data.update(fields)
    return Record(**data)


@pytest.fixture(name="any_repo", params=["sql", "memory"])
def any_repo_fixture(request, sql_repo):
    """Both repository implementations, to check they honour the same contract."""
    if request.param == "sql":
        return sql_repo
    return MemoryRecordRepo()


def test_insert_and_find(any_repo):
    inserted = any_repo.insert(_record("hello", tags=["a", "b"]))
    found = any_repo.find_by_slug("hello")
    assert found.id == inserted.id
    assert found.tags == ["a", "b"]
    assert found.view_count == 0


def test_find_missing_returns_none(any_repo):
    assert any_repo.find_by_slug("absent") is None


def test_duplicate_slug_rejected(any_repo):
    any_repo.insert(_record("dup"))
    with pytest.raises(PersistenceError):
        any_repo.insert(_record("dup"))


def test_update_applies_fields(any_repo):
    inserted = any_repo.insert(_record("a"))
    updated = any_repo.update(inserted.id, {"title": "New", "tags": ["y", "z"]})
    assert updated.title == "New"
    assert any_repo.find_by_slug("a").tags == ["y", "z"]


def test_update_missing_record(any_repo):
    with pytest.raises(PersistenceError, match="not found"):
        any_repo.update(uuid4(), {"title": "x"})


def test_count_list_and_clear(any_repo):
    for slug in ("c", "a", "b"):
        any_repo.insert(_record(slug))
    assert any_repo.count() == 3
    assert [r.slug for r in any_repo.list_all()] == ["a", "b", "c"]
    assert any_repo.clear() == 3
    assert any_repo.count() == 0


def test_memory_repo_returns_copies():
    repo = MemoryRecordRepo()
    repo.insert(_record("a"))
    found = repo.find_by_slug("a")
    found.title = "mutated"
    assert repo.find_by_slug("a").title == "T"


def test_sql_errors_wrapped(engine, sql_repo):
    SQLModel.metadata.drop_all(engine)
    with pytest.raises(PersistenceError, match="Count failed"):
        sql_repo.count()
