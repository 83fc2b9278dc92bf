# src/steps/aggregate_steps.py
"""Aggregate (multi source) step catalogue, step outputs record and request builders."""

from __future__ import annotations

from pydantic import ConfigDict, Field

from newsforge.core.models import AggregateRequest, CamelModel, LengthRange
from newsforge.steps.models import (
    AggregateSource,
    ArticlePayload,
    ColorCodePayload,
    HeadlineBlobsPayload,
    OutlinePayload,
    RewritePayload,
    SourcesPayload,
    StepRequest,
    StepSpec,
)

# Placeholder written to facts_bit_splitting2 when no source is primary.
NO_PRIMARY_SENTINEL = "--"

# === Catalogue ===

FACTS_BIT_SPLITTING = StepSpec(
    1, "facts_bit_splitting", "Facts Bit Splitting",
    "aggregate-steps/01-facts-bit-splitting", SourcesPayload,
)
FACTS_BIT_SPLITTING_2 = StepSpec(
    2, "facts_bit_splitting_2", "Facts Bit Splitting 2",
    "aggregate-steps/02-facts-bit-splitting-2", SourcesPayload,
)
HEADLINES_BLOBS = StepSpec(
    3, "headlines_blobs", "Headlines Blobs",
    "aggregate-steps/03-headlines-blobs", HeadlineBlobsPayload,
)
WRITE_ARTICLE_OUTLINE = StepSpec(
    4, "write_article_outline", "Write Article Outline",
    "aggregate-steps/04-write-article-outline", OutlinePayload,
)
WRITE_ARTICLE = StepSpec(
    5, "write_article", "Write Article",
    "aggregate-steps/05-write-article", ArticlePayload,
)
REWRITE_ARTICLE = StepSpec(
    6, "rewrite_article", "Rewrite Article",
    "aggregate-steps/06-rewrite-article", RewritePayload,
)
REWRITE_ARTICLE_2 = StepSpec(
    7, "rewrite_article_2", "Rewrite Article 2",
    "aggregate-steps/07-rewrite-article-2", RewritePayload,
)
COLOR_CODE = StepSpec(
    8, "color_code", "Color Code",
    "aggregate-steps/08-color-code", ColorCodePayload,
)

AGGREGATE_STEPS: tuple[StepSpec, ...] = (
    FACTS_BIT_SPLITTING,
    FACTS_BIT_SPLITTING_2,
    HEADLINES_BLOBS,
    WRITE_ARTICLE_OUTLINE,
    WRITE_ARTICLE,
    REWRITE_ARTICLE,
    REWRITE_ARTICLE_2,
    COLOR_CODE,
)


# === Article step outputs ===


class TextOutput(CamelModel):
    model_config = ConfigDict(frozen=True)

    text: str = ""


class HeadlinesBlobsOutput(CamelModel):
    model_config = ConfigDict(frozen=True)

    headline: str = ""
    blobs: tuple[str, ...] = ()


class ArticleStepOutputs(CamelModel):
    """Outputs of steps 3 onwards, read by every later step.

    Immutable: each ``with_*`` call returns a new record, so a builder only
    ever sees the outputs that existed when it was called.
    """

    model_config = ConfigDict(frozen=True)

    headlines_blobs: HeadlinesBlobsOutput | None = None
    paraphrasing_facts: TextOutput | None = None
    write_article_outline: TextOutput | None = None
    write_article: TextOutput | None = None
    rewrite_article: TextOutput | None = None
    rewrite_article2: TextOutput | None = None
    color_code: TextOutput | None = None

    @classmethod
    def from_headlines_blobs(cls, payload: HeadlineBlobsPayload) -> ArticleStepOutputs:
        return cls(
            headlines_blobs=HeadlinesBlobsOutput(
                headline=payload.headline, blobs=tuple(payload.blobs)
            ),
            paraphrasing_facts=TextOutput(text=""),
        )

    def with_text(self, key: str, text: str) -> ArticleStepOutputs:
        if key not in type(self).model_fields or key == "headlines_blobs":
            raise KeyError(f"Not a text output: {key}")
        return self.model_copy(update={key: TextOutput(text=text)})


# === Request bodies ===


class SourcesRequest(StepRequest):
    sources: list[AggregateSource]


class FactsBitSplittingRequest(SourcesRequest):
    pass


class FactsBitSplitting2Request(SourcesRequest):
    pass


class HeadlinesBlobsRequest(SourcesRequest):
    no_of_blobs: int
    headline_suggestion: str = ""
    instructions: str


class WriteArticleOutlineRequest(SourcesRequest):
    instructions: str
    article_step_outputs: ArticleStepOutputs


class WriteArticleRequest(SourcesRequest):
    length: LengthRange
    instructions: str
    article_step_outputs: ArticleStepOutputs


class RewriteArticleRequest(SourcesRequest):
    article_step_outputs: ArticleStepOutputs


class ColorCodeRequest(SourcesRequest):
    article_step_outputs: ArticleStepOutputs = Field(default_factory=ArticleStepOutputs)


# === Builders ===


def to_aggregate_sources(request: AggregateRequest) -> list[AggregateSource]:
    """Wire shape of the request's sources."""
    return [
        AggregateSource(
            number=s.number,
            accredit=s.accredit,
            text=s.source_text,
            url=s.url,
            use_verbatim=s.verbatim,
            is_primary_source=s.primary,
            is_base_source=s.is_base_source,
        )
        for s in request.sources
    ]


def has_primary_source(request: AggregateRequest) -> bool:
    return any(s.primary for s in request.sources)


def skip_facts_bit_splitting_2(sources: list[AggregateSource]) -> SourcesPayload:
    """Pass-through result used instead of step 2 when no source is primary."""
    return SourcesPayload(
        sources=[
            s.model_copy(update={"facts_bit_splitting2": NO_PRIMARY_SENTINEL})
            for s in sources
        ]
    )


def build_facts_bit_splitting(request: AggregateRequest) -> FactsBitSplittingRequest:
    return FactsBitSplittingRequest(sources=to_aggregate_sources(request))


def build_facts_bit_splitting_2(step1: SourcesPayload) -> FactsBitSplitting2Request:
    return FactsBitSplitting2Request(sources=step1.sources)


def build_headlines_blobs(
    request: AggregateRequest, step2: SourcesPayload
) -> HeadlinesBlobsRequest:
    return HeadlinesBlobsRequest(
        no_of_blobs=request.instructions.blob_count,
        headline_suggestion=request.headline,
        instructions=request.instructions.free_text,
        sources=step2.sources,
    )


def build_write_article_outline(
    request: AggregateRequest, step2: SourcesPayload, outputs: ArticleStepOutputs
) -> WriteArticleOutlineRequest:
    return WriteArticleOutlineRequest(
        instructions=request.instructions.free_text,
        sources=step2.sources,
        article_step_outputs=outputs,
    )


def build_write_article(
    request: AggregateRequest, step2: SourcesPayload, outputs: ArticleStepOutputs
) -> WriteArticleRequest:
    return WriteArticleRequest(
        length=request.instructions.length_range,
        instructions=request.instructions.free_text,
        sources=step2.sources,
        article_step_outputs=outputs,
    )


def build_rewrite_article(
    step2: SourcesPayload, outputs: ArticleStepOutputs
) -> RewriteArticleRequest:
    return RewriteArticleRequest(sources=step2.sources, article_step_outputs=outputs)


def build_color_code(
    step2: SourcesPayload, outputs: ArticleStepOutputs
) -> ColorCodeRequest:
    return ColorCodeRequest(sources=step2.sources, article_step_outputs=outputs)
