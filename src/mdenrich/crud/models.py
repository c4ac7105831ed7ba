"""Database table definition for enriched article records"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID, uuid4

from sqlalchemy import Column, DateTime, JSON, String, Text
from sqlmodel import Field, SQLModel


# Identity fields an update must never overwrite
IDENTITY_FIELDS = frozenset({"id", "slug", "created_at", "view_count"})


class Record(SQLModel, table=True):
    """An ingested article with its derived metadata"""
    __tablename__ = "records"
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    slug: str = Field(..., sa_column=Column(String(255), nullable=False, unique=True, index=True))
    title: str = Field(..., sa_column=Column(Text, nullable=False))
    body: str = Field(..., sa_column=Column(Text, nullable=False))
    excerpt: str = Field(..., sa_column=Column(String(255), nullable=False))
    author: Optional[str] = Field(default=None)
    author_contact: Optional[str] = Field(default=None)
    tags: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    featured: bool = Field(default=False, nullable=False)
    published: bool = Field(default=True, nullable=False)
    published_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime(timezone=False), nullable=True))
    estimated_read_minutes: Optional[int] = Field(default=None, description="Minutes to read; >= 1 once enriched")
    view_count: int = Field(default=0, nullable=False, description="Owned by the presentation layer")
    created_at: datetime = Field(default_factory=datetime.now, sa_column=Column(DateTime(timezone=False), nullable=False))
    updated_at: datetime = Field(default_factory=datetime.now, sa_column=Column(DateTime(timezone=False), nullable=False))
