# src/pipeline/trigger.py
"""Article creation and background pipeline scheduling."""

from __future__ import annotations

import asyncio
import logging

from newsforge.core.models import AggregateRequest, DigestRequest
from newsforge.core.slug import clean_slug
from newsforge.pipeline.router import PipelineExecutionResult, PipelineRouter
from newsforge.storage.base_article_store import ArticleNotFoundError, BaseArticleStore
from newsforge.storage.models import Article, NewArticle, StoredSource

logger = logging.getLogger(__name__)


def to_new_article(
    request: DigestRequest | AggregateRequest,
    user_id: str | None = None,
    org_id: str | None = None,
) -> NewArticle:
    """Convert a request into a creation payload with a cleaned slug.

    user_id and org_id override the request metadata (the authenticated
    caller wins over what the client sent).
    """
    cleaned = clean_slug(request.slug)
    if not cleaned:
        raise ValueError(f"Slug {request.slug!r} has no usable characters")
    if cleaned != request.slug:
        logger.info("Slug cleaned: %r -> %r", request.slug, cleaned)

    sources = [
        StoredSource(
            description=s.description,
            accredit=s.accredit,
            source_text=s.source_text,
            url=s.url,
            verbatim=s.verbatim,
            primary=s.primary,
            is_base_source=s.is_base_source,
        )
        for s in request.sources
    ]
    return NewArticle(
        org_id=org_id or request.metadata.org_id,
        slug=cleaned,
        headline=request.headline,
        source_type="single" if isinstance(request, DigestRequest) else "multi",
        sources=sources,
        preset_instructions=request.instructions.free_text,
        preset_blobs=request.instructions.blob_count,
        preset_length=request.instructions.length_range,
        created_by=user_id or request.metadata.user_id,
    )


async def create_article_from_request(
    store: BaseArticleStore,
    request: DigestRequest | AggregateRequest,
    user_id: str | None = None,
    org_id: str | None = None,
) -> Article:
    """Persist a new pending article version for request.

    Raises:
        ValueError: If the slug cleans to nothing or the sources are invalid.
    """
    article = await store.create_article_record(to_new_article(request, user_id, org_id))
    logger.info(
        "Article created with source type %s and id %s (v%d)",
        article.source_type, article.id, article.version,
    )
    return article


class PipelineTrigger:
    """Schedules router runs as background asyncio tasks.

    Holds a reference to every running task until it finishes.
    """

    def __init__(self, store: BaseArticleStore, router: PipelineRouter) -> None:
        self._store = store
        self._router = router
        self._tasks: set[asyncio.Task[PipelineExecutionResult]] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def start_pipeline_execution(
        self, article_id: str, user_id: str | None = None
    ) -> asyncio.Task[PipelineExecutionResult]:
        """Mark the article started and run its pipeline in the background.

        Raises:
            ArticleNotFoundError: If article_id does not exist.
        """
        article = await self._store.get_article_by_id(article_id)
        if article is None:
            raise ArticleNotFoundError(article_id)
        await self._store.update_article_status(
            article_id, user_id or article.created_by, "started"
        )

        task = asyncio.create_task(
            self._run(article_id), name=f"pipeline-{article_id}"
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        logger.info("Pipeline scheduled for background execution: %s", article_id)
        return task

    async def wait_all(self) -> list[PipelineExecutionResult]:
        """Wait for every scheduled pipeline to finish."""
        if not self._tasks:
            return []
        return list(await asyncio.gather(*self._tasks))

    async def _run(self, article_id: str) -> PipelineExecutionResult:
        result = await self._router.execute_pipeline_by_article_id(article_id)
        if result.success:
            logger.info("Background pipeline completed for article %s", article_id)
        else:
            logger.error(
                "Background pipeline failed for article %s: %s", article_id, result.error
            )
        return result
