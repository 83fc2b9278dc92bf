# src/core/models.py
"""Shared request models used across modules.

JSON on the wire keeps the camelCase field names of the step API and the web
client; Python code uses snake_case through pydantic aliases.
"""

from __future__ import annotations

from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

ArticleStatus = Literal[
    "pending",
    "started",
    "10%",
    "25%",
    "50%",
    "75%",
    "90%",
    "failed",
    "completed",
    "archived",
]

# Status values written while a pipeline is running, in order.
PROGRESS_CHECKPOINTS: tuple[ArticleStatus, ...] = ("10%", "25%", "50%", "75%", "90%")

LengthRange = Literal["100-250", "400-550", "700-850", "1000-1200"]
SourceType = Literal["single", "multi"]

MAX_SOURCES = 6


class CamelModel(BaseModel):
    """Base model serialising to camelCase and accepting either spelling."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RequestMetadata(CamelModel):
    """Who asked for the article and which version it replaces."""

    user_id: str
    org_id: str
    current_version: int | None = None


class Instructions(CamelModel):
    """Editorial preset applied to a run."""

    free_text: str = ""
    blob_count: int = Field(default=1, ge=1, le=MAX_SOURCES)
    length_range: LengthRange = "400-550"


class SourceInput(CamelModel):
    """One news source as supplied by the user."""

    description: str = ""
    accredit: str = ""
    source_text: str = ""
    url: str = ""
    verbatim: bool = False
    primary: bool = False
    # Aggregate only
    number: int = 1
    is_base_source: bool = False


class DigestRequest(CamelModel):
    """Single-source article request."""

    kind: Literal["digest"] = "digest"
    metadata: RequestMetadata
    slug: str
    headline: str = ""
    instructions: Instructions = Field(default_factory=Instructions)
    source: SourceInput

    @model_validator(mode="after")
    def validate_source_text(self) -> DigestRequest:
        if not self.source.source_text.strip():
            raise ValueError("source 1 text must not be empty")
        return self

    @property
    def sources(self) -> list[SourceInput]:
        return [self.source]


class AggregateRequest(CamelModel):
    """Multi-source article request; sources are in importance order."""

    kind: Literal["aggregate"] = "aggregate"
    metadata: RequestMetadata
    slug: str
    headline: str = ""
    instructions: Instructions = Field(default_factory=Instructions)
    sources: list[SourceInput] = Field(min_length=1, max_length=MAX_SOURCES)

    @model_validator(mode="after")
    def validate_source_text(self) -> AggregateRequest:
        if not self.sources[0].source_text.strip():
            raise ValueError("source 1 text must not be empty")
        return self


PipelineRequest = Annotated[
    Union[DigestRequest, AggregateRequest], Field(discriminator="kind")
]
