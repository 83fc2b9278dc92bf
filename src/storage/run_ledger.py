# src/storage/run_ledger.py
"""Run lifecycle: open a zero-cost run before a pipeline, close it with totals after."""

from __future__ import annotations

import logging

from newsforge.storage.base_article_store import BaseArticleStore
from newsforge.storage.models import Article, NewRun, Run
from newsforge.tracking.models import UsageTotals

logger = logging.getLogger(__name__)


class RunLedger:
    """Thin lifecycle wrapper over the store's run records.

    A run is written exactly twice: once when opened with zero cost, once when
    closed with the accumulated totals.
    """

    def __init__(self, store: BaseArticleStore) -> None:
        self._store = store

    async def open_run(self, article: Article) -> Run:
        """Create the run record for a pipeline about to start on article."""
        run = await self._store.create_run(
            NewRun(
                article_id=article.id,
                user_id=article.created_by,
                source_type=article.source_type,
                length=article.preset_length,
                cost_usd=0.0,
                input_tokens_used=0,
                output_tokens_used=0,
            )
        )
        logger.info("Opened run %s for article %s", run.id, article.id)
        return run

    async def close_run(self, run: Run, totals: UsageTotals) -> Run | None:
        """Write final cost and token totals."""
        closed = await self._store.update_run(
            run.id,
            cost_usd=round(totals.total_cost_usd, 6),
            input_tokens=totals.total_input_tokens,
            output_tokens=totals.total_output_tokens,
        )
        logger.info(
            "Closed run %s: $%.6f, %d in / %d out tokens",
            run.id,
            totals.total_cost_usd,
            totals.total_input_tokens,
            totals.total_output_tokens,
        )
        return closed
