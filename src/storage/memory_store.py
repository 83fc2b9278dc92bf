# src/storage/memory_store.py
"""In-process article store for tests and single-process runs."""

from __future__ import annotations

import asyncio
import logging
import uuid
from collections import defaultdict

from newsforge.core.models import ArticleStatus
from newsforge.storage.base_article_store import ArticleNotFoundError, BaseArticleStore
from newsforge.storage.models import Article, NewArticle, NewRun, Run, utcnow

logger = logging.getLogger(__name__)


class MemoryArticleStore(BaseArticleStore):
    """Dict-backed store. Version allocation is serialised per (org_id, slug)."""

    def __init__(self) -> None:
        self._articles: dict[str, Article] = {}
        self._runs: dict[str, Run] = {}
        # Locks live only while some caller holds or waits on them.
        self._slug_locks: dict[tuple[str, str], asyncio.Lock] = {}
        self._slug_lock_users: defaultdict[tuple[str, str], int] = defaultdict(int)

    async def create_article_record(self, new_article: NewArticle) -> Article:
        key = (new_article.org_id, new_article.slug)
        lock = self._slug_locks.setdefault(key, asyncio.Lock())
        self._slug_lock_users[key] += 1
        try:
            async with lock:
                current = max(
                    (a.version for a in self._articles.values()
                     if (a.org_id, a.slug) == key),
                    default=0,
                )
                # Read and insert are separate round trips in a real backend.
                await asyncio.sleep(0)
                article = Article(
                    id=str(uuid.uuid4()),
                    version=current + 1,
                    status="pending",
                    updated_by=new_article.created_by,
                    **new_article.model_dump(),
                )
                self._articles[article.id] = article
        finally:
            self._release_slug_lock(key)
        logger.info(
            "Created article %s (%s v%d)", article.id, article.slug, article.version
        )
        return article.model_copy(deep=True)

    def _release_slug_lock(self, key: tuple[str, str]) -> None:
        self._slug_lock_users[key] -= 1
        if not self._slug_lock_users[key]:
            del self._slug_lock_users[key]
            del self._slug_locks[key]

    async def get_article_by_id(self, article_id: str) -> Article | None:
        article = self._articles.get(article_id)
        return article.model_copy(deep=True) if article else None

    async def list_article_versions(self, org_id: str, slug: str) -> list[Article]:
        versions = [
            a.model_copy(deep=True) for a in self._articles.values()
            if a.org_id == org_id and a.slug == slug
        ]
        return sorted(versions, key=lambda a: a.version, reverse=True)

    async def update_article_status(
        self, article_id: str, user_id: str, status: ArticleStatus
    ) -> Article | None:
        article = self._articles.get(article_id)
        if article is None:
            logger.warning("Article %s not found for status update", article_id)
            return None
        updated = article.model_copy(
            update={"status": status, "updated_by": user_id, "updated_at": utcnow()}
        )
        self._articles[article_id] = updated
        return updated.model_copy(deep=True)

    async def update_article_with_results(
        self,
        article_id: str,
        user_id: str,
        success: bool,
        headline: str,
        blobs: list[str],
        content: str,
        rich_content: str | None = None,
        sentences: list[str] | None = None,
    ) -> None:
        article = self._articles.get(article_id)
        if article is None:
            raise ArticleNotFoundError(article_id)
        self._articles[article_id] = article.model_copy(
            update={
                "status": "completed" if success else "failed",
                "headline": headline if success else None,
                "blob": "\n".join(blobs) if success else None,
                "content": content if success else None,
                "rich_content": rich_content if success else None,
                "sentences": list(sentences) if success and sentences else None,
                "updated_by": user_id,
                "updated_at": utcnow(),
            }
        )

    async def create_run(self, new_run: NewRun) -> Run:
        run = Run(id=str(uuid.uuid4()), **new_run.model_dump())
        self._runs[run.id] = run
        return run.model_copy()

    async def update_run(
        self, run_id: str, cost_usd: float, input_tokens: int, output_tokens: int
    ) -> Run | None:
        run = self._runs.get(run_id)
        if run is None:
            logger.warning("Run %s not found for update", run_id)
            return None
        updated = run.model_copy(
            update={
                "cost_usd": cost_usd,
                "input_tokens_used": input_tokens,
                "output_tokens_used": output_tokens,
                "updated_at": utcnow(),
            }
        )
        self._runs[run_id] = updated
        return updated.model_copy()

    async def get_run(self, run_id: str) -> Run | None:
        run = self._runs.get(run_id)
        return run.model_copy() if run else None

    async def list_runs(self, article_id: str) -> list[Run]:
        return [r.model_copy() for r in self._runs.values() if r.article_id == article_id]
