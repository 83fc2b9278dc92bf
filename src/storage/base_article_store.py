# src/storage/base_article_store.py
"""Abstract article and run store interface."""

from __future__ import annotations

from abc import ABC, abstractmethod

from newsforge.core.models import ArticleStatus
from newsforge.storage.models import Article, NewArticle, NewRun, Run


class ArticleNotFoundError(LookupError):
    """Raised when an operation requires an article row that does not exist."""


class BaseArticleStore(ABC):
    """Unified interface for article persistence backends.

    Implementations must allocate versions atomically per (org_id, slug):
    concurrent creations for the same slug get distinct, consecutive versions.
    """

    @abstractmethod
    async def create_article_record(self, new_article: NewArticle) -> Article:
        """Insert the next version of (org_id, slug) with status 'pending'."""

    @abstractmethod
    async def get_article_by_id(self, article_id: str) -> Article | None:
        """Fetch one article version, or None."""

    @abstractmethod
    async def list_article_versions(self, org_id: str, slug: str) -> list[Article]:
        """All versions for (org_id, slug), newest first."""

    @abstractmethod
    async def update_article_status(
        self, article_id: str, user_id: str, status: ArticleStatus
    ) -> Article | None:
        """Set status; returns the updated article or None if missing."""

    @abstractmethod
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
        """Terminal write: 'completed' with outputs, or 'failed' with outputs cleared.

        Raises:
            ArticleNotFoundError: If the article does not exist.
        """

    @abstractmethod
    async def create_run(self, new_run: NewRun) -> Run:
        """Open a run ledger entry."""

    @abstractmethod
    async def update_run(
        self, run_id: str, cost_usd: float, input_tokens: int, output_tokens: int
    ) -> Run | None:
        """Record final cost and token totals on a run."""

    @abstractmethod
    async def get_run(self, run_id: str) -> Run | None:
        """Fetch one run, or None."""

    @abstractmethod
    async def list_runs(self, article_id: str) -> list[Run]:
        """All runs recorded for an article version, oldest first."""

    async def close(self) -> None:
        """Release backend resources. Default: no-op."""
