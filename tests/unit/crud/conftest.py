"""Shared fixtures for crud unit tests"""

from datetime import datetime

import pytest
from sqlalchemy import create_engine
from sqlmodel import SQLModel

from mdenrich.core.models import RecordAttrs
from mdenrich.crud.models import Record  # noqa: F401  registers the records table
from mdenrich.crud.sql_repo import SQLRecordRepo


@pytest.fixture(name="engine")
def engine_fixture():
    """In-memory SQLite engine with all tables created."""
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False})
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture(name="sql_repo")
def sql_repo_fixture(engine):
    return SQLRecordRepo(engine)


@pytest.fixture(name="make_attrs")
def make_attrs_fixture():
    """Factory for RecordAttrs with overridable fields."""
    def make(**overrides):
        fields = dict(
            slug="a",
            title="First title",
            body="First body text.",
            excerpt="First body text.",
            tags=["one"],
            published_at=datetime(2024, 1, 1),
            estimated_read_minutes=3,
        )
        fields.update(overrides)
        return RecordAttrs(**fields)
    return make
