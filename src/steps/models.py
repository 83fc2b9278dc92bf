# src/steps/models.py
"""Step envelope and per-step payloads.

Every external step is described by a StepSpec naming its endpoint and the
payload model its response is parsed into. The invoker wraps each outcome in
a StepResult; a failed step carries the payload model's empty defaults.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Generic, TypeVar

from pydantic import ConfigDict, Field

from newsforge.core.models import CamelModel
from newsforge.tracking.models import UsageEntry, UsageTotals


class StepPayload(CamelModel):
    """Base for parsed step responses. Unknown response keys are ignored."""

    model_config = ConfigDict(extra="ignore")

    def has_content(self) -> bool:
        """True when the payload carries the output the next step needs."""
        raise NotImplementedError


class StepRequest(CamelModel):
    """Base for step request bodies."""


P = TypeVar("P", bound=StepPayload)


@dataclass(frozen=True)
class StepSpec(Generic[P]):
    """Static description of one external step."""

    number: int
    key: str
    name: str
    endpoint: str
    payload_cls: type[P]

    @property
    def tag(self) -> str:
        return f"STEP_{self.number}"


@dataclass(frozen=True)
class StepResult(Generic[P]):
    """Normalised outcome of one step call."""

    article_id: str
    step_number: int
    step_name: str
    success: bool
    payload: P
    usage: list[UsageEntry] = field(default_factory=list)
    totals: UsageTotals = field(default_factory=UsageTotals)

    @property
    def ok(self) -> bool:
        """Succeeded and produced usable output."""
        return self.success and self.payload.has_content()

    @classmethod
    def failed(cls, article_id: str, spec: StepSpec[P]) -> StepResult[P]:
        return cls(
            article_id=article_id,
            step_number=spec.number,
            step_name=spec.name,
            success=False,
            payload=spec.payload_cls(),
        )


# === Payloads shared by both pipelines ===


class HeadlineBlobsPayload(StepPayload):
    headline: str = ""
    blobs: list[str] = Field(default_factory=list)

    def has_content(self) -> bool:
        return bool(self.headline) and bool(self.blobs)

    def as_text(self) -> str:
        return f"Headline: {self.headline}\nBlobs: {chr(10).join(self.blobs)}"


class OutlinePayload(StepPayload):
    outline: str = ""

    def has_content(self) -> bool:
        return bool(self.outline)


class ArticlePayload(StepPayload):
    article: str = ""

    def has_content(self) -> bool:
        return bool(self.article)


# === Digest payloads ===


class QuotesPayload(StepPayload):
    quotes: str = ""

    def has_content(self) -> bool:
        return bool(self.quotes)


class SummaryPayload(StepPayload):
    summary: str = ""

    def has_content(self) -> bool:
        return bool(self.summary)


class ParaphrasePayload(StepPayload):
    paraphrased_article: str = ""

    def has_content(self) -> bool:
        return bool(self.paraphrased_article)


class FormattedArticlePayload(StepPayload):
    formatted_article: str = ""
    sentences: list[str] | None = None

    def has_content(self) -> bool:
        return bool(self.formatted_article)


# === Aggregate payloads ===


class AggregateSource(CamelModel):
    """A source as exchanged with the aggregate steps."""

    model_config = ConfigDict(extra="ignore")

    number: int
    accredit: str = ""
    text: str = ""
    url: str = ""
    use_verbatim: bool = False
    is_primary_source: bool = False
    is_base_source: bool = False
    facts_bit_splitting1: str | None = None
    facts_bit_splitting2: str | None = None


class SourcesPayload(StepPayload):
    sources: list[AggregateSource] = Field(default_factory=list)

    def has_content(self) -> bool:
        return bool(self.sources)


class RewritePayload(StepPayload):
    rewritten_article: str = ""

    def has_content(self) -> bool:
        return bool(self.rewritten_article)


class ColorCodePayload(StepPayload):
    color_coded_article: str = ""
    rich_content: str = ""

    def has_content(self) -> bool:
        return bool(self.color_coded_article)
