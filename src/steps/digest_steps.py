# src/steps/digest_steps.py
"""Digest (single source) step catalogue and request builders.

Each builder takes only the original request and the payloads of earlier
steps, so a step's request can never depend on a later step.
"""

from __future__ import annotations

import json

from newsforge.core.models import DigestRequest, LengthRange
from newsforge.steps.models import (
    ArticlePayload,
    FormattedArticlePayload,
    HeadlineBlobsPayload,
    OutlinePayload,
    ParaphrasePayload,
    QuotesPayload,
    StepRequest,
    StepSpec,
    SummaryPayload,
)

# === Catalogue ===

EXTRACT_FACT_QUOTES = StepSpec(
    1, "extract_fact_quotes", "Extract Fact Quotes",
    "steps/01-extract-fact-quotes", QuotesPayload,
)
SUMMARIZE_FACTS = StepSpec(
    2, "summarize_facts", "Summarize Facts",
    "steps/02-summarize-facts", SummaryPayload,
)
WRITE_HEADLINE_AND_BLOBS = StepSpec(
    3, "write_headline_and_blobs", "Write Headline and Blobs",
    "steps/03-write-headline-and-blobs", HeadlineBlobsPayload,
)
WRITE_ARTICLE_OUTLINE = StepSpec(
    4, "write_article_outline", "Write Article Outline",
    "steps/04-write-article-outline", OutlinePayload,
)
WRITE_ARTICLE = StepSpec(
    5, "write_article", "Write Article",
    "steps/05-write-article", ArticlePayload,
)
PARAPHRASE_ARTICLE = StepSpec(
    6, "paraphrase_article", "Paraphrase Article",
    "steps/06-paraphrase-article", ParaphrasePayload,
)
SENTENCE_PER_LINE_ATTRIBUTION = StepSpec(
    7, "sentence_per_line_attribution", "Sentence Per Line Attribution",
    "steps/07-sentence-per-line-attribution", FormattedArticlePayload,
)
DIGEST_VERBATIM = StepSpec(
    8, "verbatim", "Digest Verbatim",
    "steps/digest-verbatim", FormattedArticlePayload,
)

DIGEST_STEPS: tuple[StepSpec, ...] = (
    EXTRACT_FACT_QUOTES,
    SUMMARIZE_FACTS,
    WRITE_HEADLINE_AND_BLOBS,
    WRITE_ARTICLE_OUTLINE,
    WRITE_ARTICLE,
    PARAPHRASE_ARTICLE,
    SENTENCE_PER_LINE_ATTRIBUTION,
    DIGEST_VERBATIM,
)


# === Request bodies ===


class SourceFields(StepRequest):
    source_accredit: str
    source_description: str
    source_text: str


class ExtractFactQuotesRequest(SourceFields):
    pass


class SummarizeFactsRequest(SourceFields):
    instructions: str


class WriteHeadlineAndBlobsRequest(SourceFields):
    blobs: int
    headline: str
    instructions: str
    summarize_facts: str
    extract_fact_quotes: str


class WriteArticleOutlineRequest(SourceFields):
    instructions: str
    summarize_facts_text: str
    extract_fact_quotes_text: str
    headline_and_blobs_text: str


class WriteArticleRequest(SourceFields):
    length: LengthRange
    is_primary_source: bool
    instructions: str
    headline_and_blobs_text: str
    summarize_facts_text: str
    article_outline_text: str


class ParaphraseArticleRequest(SourceFields):
    article_text: str


class SentencePerLineAttributionRequest(StepRequest):
    paraphrased_article: str


class DigestVerbatimRequest(StepRequest):
    source_text: str


# === Builders ===


def _source_fields(request: DigestRequest) -> dict[str, str]:
    return {
        "source_accredit": request.source.accredit,
        "source_description": request.source.description,
        "source_text": request.source.source_text,
    }


def build_extract_fact_quotes(request: DigestRequest) -> ExtractFactQuotesRequest:
    return ExtractFactQuotesRequest(**_source_fields(request))


def build_summarize_facts(request: DigestRequest) -> SummarizeFactsRequest:
    return SummarizeFactsRequest(
        **_source_fields(request),
        instructions=request.instructions.free_text,
    )


def build_write_headline_and_blobs(
    request: DigestRequest,
    quotes: QuotesPayload,
    summary: SummaryPayload,
) -> WriteHeadlineAndBlobsRequest:
    return WriteHeadlineAndBlobsRequest(
        **_source_fields(request),
        blobs=request.instructions.blob_count,
        headline=request.headline,
        instructions=request.instructions.free_text,
        summarize_facts=summary.summary,
        extract_fact_quotes=quotes.quotes,
    )


def build_write_article_outline(
    request: DigestRequest,
    quotes: QuotesPayload,
    summary: SummaryPayload,
    headline_blobs: HeadlineBlobsPayload,
) -> WriteArticleOutlineRequest:
    return WriteArticleOutlineRequest(
        **_source_fields(request),
        instructions=request.instructions.free_text,
        summarize_facts_text=summary.summary,
        extract_fact_quotes_text=json.dumps(quotes.quotes),
        headline_and_blobs_text=headline_blobs.as_text(),
    )


def build_write_article(
    request: DigestRequest,
    summary: SummaryPayload,
    headline_blobs: HeadlineBlobsPayload,
    outline: OutlinePayload,
) -> WriteArticleRequest:
    return WriteArticleRequest(
        **_source_fields(request),
        length=request.instructions.length_range,
        is_primary_source=request.source.primary,
        instructions=request.instructions.free_text,
        headline_and_blobs_text=headline_blobs.as_text(),
        summarize_facts_text=summary.summary,
        article_outline_text=outline.outline,
    )


def build_paraphrase_article(
    request: DigestRequest, article: ArticlePayload
) -> ParaphraseArticleRequest:
    return ParaphraseArticleRequest(
        **_source_fields(request),
        article_text=article.article,
    )


def build_sentence_per_line_attribution(
    paraphrased: ParaphrasePayload,
) -> SentencePerLineAttributionRequest:
    return SentencePerLineAttributionRequest(
        paraphrased_article=paraphrased.paraphrased_article,
    )


def build_digest_verbatim(request: DigestRequest) -> DigestVerbatimRequest:
    return DigestVerbatimRequest(source_text=request.source.source_text)
