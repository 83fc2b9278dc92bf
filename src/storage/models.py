# src/storage/models.py
"""Storage domain models: Article, StoredSource, Run and their creation payloads."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, Field

from newsforge.core.models import MAX_SOURCES, ArticleStatus, LengthRange


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class StoredSource(BaseModel):
    """Input snapshot of one source, as saved with the article version."""

    description: str = ""
    accredit: str = ""
    source_text: str = ""
    url: str = ""
    verbatim: bool = False
    primary: bool = False
    is_base_source: bool = False


class NewArticle(BaseModel):
    """Payload for creating an article version; the store assigns id and version."""

    org_id: str
    slug: str
    headline: str = ""
    source_type: Literal["single", "multi"]
    sources: list[StoredSource] = Field(min_length=1, max_length=MAX_SOURCES)
    preset_title: str = ""
    preset_instructions: str = ""
    preset_blobs: int = 1
    preset_length: LengthRange = "400-550"
    created_by: str


class Article(BaseModel):
    """One persisted article version."""

    id: str
    org_id: str
    slug: str
    version: int
    headline: str | None = None
    blob: str | None = None
    content: str | None = None
    rich_content: str | None = None
    sentences: list[str] | None = None
    sources: list[StoredSource] = Field(default_factory=list)
    preset_title: str = ""
    preset_instructions: str = ""
    preset_blobs: int = 1
    preset_length: LengthRange = "400-550"
    status: ArticleStatus = "pending"
    # Free string: rows written by older clients may carry other values.
    source_type: str = "single"
    created_by: str = ""
    updated_by: str = ""
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class NewRun(BaseModel):
    """Payload for opening a run record."""

    article_id: str
    user_id: str
    source_type: str
    length: str
    cost_usd: float = 0.0
    input_tokens_used: int = 0
    output_tokens_used: int = 0


class Run(BaseModel):
    """Cost and token ledger entry for one pipeline execution."""

    id: str
    article_id: str
    user_id: str
    source_type: str
    length: str
    cost_usd: float = 0.0
    input_tokens_used: int = 0
    output_tokens_used: int = 0
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
