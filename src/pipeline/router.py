# src/pipeline/router.py
"""Pipeline router: article id in, the matching orchestrator run, structured result out."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from newsforge.core.models import (
    AggregateRequest,
    DigestRequest,
    Instructions,
    RequestMetadata,
    SourceInput,
)
from newsforge.logging.context import clear_context, set_article_context
from newsforge.pipeline.aggregate import AggregateOrchestrator
from newsforge.pipeline.base import BaseOrchestrator
from newsforge.pipeline.digest import DigestOrchestrator
from newsforge.storage.base_article_store import BaseArticleStore
from newsforge.storage.models import Article
from newsforge.storage.run_ledger import RunLedger
from newsforge.tracking.models import UsageTotals

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PipelineExecutionResult:
    success: bool
    article_id: str
    error: str | None = None


def _metadata(article: Article) -> RequestMetadata:
    return RequestMetadata(
        user_id=article.created_by,
        org_id=article.org_id,
        current_version=article.version,
    )


def _instructions(article: Article) -> Instructions:
    return Instructions(
        free_text=article.preset_instructions,
        blob_count=article.preset_blobs,
        length_range=article.preset_length,
    )


def build_digest_request(article: Article) -> DigestRequest:
    """Single-source request from a stored article (source 1 only)."""
    source = article.sources[0]
    return DigestRequest(
        metadata=_metadata(article),
        slug=article.slug,
        headline=article.headline or "",
        instructions=_instructions(article),
        source=SourceInput(
            description=source.description,
            accredit=source.accredit,
            source_text=source.source_text,
            url=source.url,
            verbatim=source.verbatim,
            primary=source.primary,
        ),
    )


def build_aggregate_request(article: Article) -> AggregateRequest:
    """Multi-source request; sources without text are dropped and the rest renumbered from 1."""
    sources = [
        SourceInput(
            number=number,
            description=s.description,
            accredit=s.accredit,
            source_text=s.source_text,
            url=s.url,
            verbatim=s.verbatim,
            primary=s.primary,
            is_base_source=s.is_base_source,
        )
        for number, s in enumerate(
            (s for s in article.sources if s.source_text), start=1
        )
    ]
    return AggregateRequest(
        metadata=_metadata(article),
        slug=article.slug,
        headline=article.headline or "",
        instructions=_instructions(article),
        sources=sources,
    )


class PipelineRouter:
    """Loads an article, picks its orchestrator and keeps the run ledger.

    ``execute_pipeline_by_article_id`` never raises; every failure comes back
    as ``success=False`` with an error message.
    """

    def __init__(
        self,
        store: BaseArticleStore,
        digest: DigestOrchestrator,
        aggregate: AggregateOrchestrator,
        ledger: RunLedger | None = None,
    ) -> None:
        self._store = store
        self._digest = digest
        self._aggregate = aggregate
        self._ledger = ledger or RunLedger(store)

    async def execute_pipeline_by_article_id(self, article_id: str) -> PipelineExecutionResult:
        set_article_context(article_id)
        logger.info("Starting pipeline execution for article %s", article_id)
        try:
            article = await self._store.get_article_by_id(article_id)
            if article is None:
                logger.error("Article not found: %s", article_id)
                return PipelineExecutionResult(False, article_id, "Article not found")

            await self._store.update_article_status(article_id, article.created_by, "started")

            orchestrator: BaseOrchestrator
            if article.source_type == "single":
                orchestrator, request = self._digest, build_digest_request(article)
            elif article.source_type == "multi":
                orchestrator, request = self._aggregate, build_aggregate_request(article)
            else:
                logger.error("Unknown source type: %s", article.source_type)
                return PipelineExecutionResult(
                    False, article_id, f"Unknown source type: {article.source_type}"
                )
            logger.info(
                "Routing article %s (%s) to %s pipeline",
                article_id, article.slug, orchestrator.mode,
            )

            run = await self._ledger.open_run(article)
            set_article_context(article_id, run.id)
            totals = UsageTotals()
            try:
                response = await orchestrator.run(article_id, request)
                totals = response.usage
            finally:
                await self._ledger.close_run(run, totals)

            return PipelineExecutionResult(response.success, article_id, response.error)
        except Exception as e:
            logger.exception("Pipeline execution failed for article %s", article_id)
            return PipelineExecutionResult(False, article_id, str(e) or type(e).__name__)
        finally:
            clear_context()
