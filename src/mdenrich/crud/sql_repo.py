from __future__ import annotations

from typing import Any
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from mdenrich.crud.models import Record
from mdenrich.crud.repo import RecordRepo
from mdenrich.util.errors import PersistenceError


class SQLRecordRepo(RecordRepo):
    """SQLModel-backed repository.

    Each call opens and commits its own short session, so no transaction stays
    open while the caller waits on remote enrichment.
    """

    def __init__(self, engine: Engine):
        self.engine = engine

    def _session(self) -> Session:
        return Session(self.engine, expire_on_commit=False)

    def find_by_slug(self, slug: str) -> Record | None:
        try:
            with self._session() as session:
                return session.exec(select(Record).where(Record.slug == slug)).first()
        except SQLAlchemyError as e:
            raise PersistenceError(f"Lookup failed for slug '{slug}': {e}") from e

    def insert(self, record: Record) -> Record:
        try:
            with self._session() as session:
                session.add(record)
                session.commit()
                session.refresh(record)
                return record
        except SQLAlchemyError as e:
            raise PersistenceError(f"Insert failed for slug '{record.slug}': {e}") from e

    def update(self, record_id: UUID, fields: dict[str, Any]) -> Record:
        try:
            with self._session() as session:
                row = session.get(Record, record_id)
                if row is None:
                    raise PersistenceError(f"Record {record_id} not found")
                for name, value in fields.items():
                    setattr(row, name, value)
                session.add(row)
                session.commit()
                session.refresh(row)
                return row
        except SQLAlchemyError as e:
            raise PersistenceError(f"Update failed for record {record_id}: {e}") from e

    def count(self) -> int:
        try:
            with self._session() as session:
                return session.exec(select(func.count()).select_from(Record)).one()
        except SQLAlchemyError as e:
            raise PersistenceError(f"Count failed: {e}") from e

    def list_all(self) -> list[Record]:
        try:
            with self._session() as session:
                return list(session.exec(select(Record).order_by(Record.slug)).all())
        except SQLAlchemyError as e:
            raise PersistenceError(f"Listing records failed: {e}") from e

    def clear(self) -> int:
        try:
            with self._session() as session:
                rows = session.exec(select(Record)).all()
                for row in rows:
                    session.delete(row)
                session.commit()
                return len(rows)
        except SQLAlchemyError as e:
            raise PersistenceError(f"Clearing records failed: {e}") from e
