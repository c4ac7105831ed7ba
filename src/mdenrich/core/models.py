"""Intermediate data models for the parse, synthesize and enrich stages"""

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field


@dataclass(frozen=True)
class Document:
    """A source file read once per load; discarded after parsing."""
    path: Path
    raw:  bytes

    @property
    def filename(self) -> str:
        return self.path.name


class ParsedMetadata(BaseModel):
    """Typed front-matter. Unset fields stay None so "absent" differs from "explicitly empty"."""
    title:             Optional[str] = None
    slug:              Optional[str] = None
    excerpt:           Optional[str] = None
    author:            Optional[str] = None
    author_contact:    Optional[str] = None
    tags:              Optional[list[str]] = None
    featured:          Optional[bool] = None
    published:         Optional[bool] = None
    published_at:      Optional[datetime] = None
    read_time_minutes: Optional[int] = None
    extra: dict[str, str] = Field(default_factory=dict)   # unrecognized keys, raw values


class RecordAttrs(BaseModel):
    """Fully synthesized record fields handed to enrichment and then to the upsert engine."""
    slug:           str
    title:          str
    body:           str
    excerpt:        str
    author:         Optional[str] = None
    author_contact: Optional[str] = None
    tags:           list[str] = Field(default_factory=list)
    featured:       bool = False
    published:      bool = True
    published_at:   datetime
    estimated_read_minutes: Optional[int] = None     # None until enrichment runs


@dataclass
class DocumentResult:
    """Outcome of pushing one document through the pipeline."""
    path:   Path
    slug:   Optional[str] = None
    status: Optional[str] = None     # 'created' | 'updated'; None on failure
    error:  Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class LoadReport:
    """Aggregate of a single load pass."""
    results: list[DocumentResult]
    cancelled: bool = False

    @property
    def processed(self) -> int:
        return sum(1 for r in self.results if r.ok)

    @property
    def errors(self) -> list[str]:
        return [f"Failed to load {r.path.name}: {r.error}" for r in self.results if not r.ok]

    def count(self, status: str) -> int:
        return sum(1 for r in self.results if r.status == status)
