# src/pipeline/aggregate.py
"""Aggregate orchestrator: up to six sources merged into one color-coded article.

Step order and status checkpoints:
  1. Facts bit splitting                       -> 10%
  2. Facts bit splitting 2 (skipped without a primary source) -> 10%
  3. Headlines and blobs                       -> 25%
  4. Write article outline                     -> 50%
  5. Write article                             -> 50%
  6. Rewrite article                           -> 75%
  7. Rewrite article 2                         -> 90%
  8. Color code, then completed/failed

From step 3 on, every step reads an ArticleStepOutputs record holding the
outputs of the steps before it.
"""

from __future__ import annotations

import logging

from newsforge.core.models import AggregateRequest
from newsforge.core.text import ensure_verbatim_opening
from newsforge.notify.email import BaseNotifier
from newsforge.pipeline.base import (
    BaseOrchestrator,
    PipelineResponse,
    RunLogFactory,
    RunState,
)
from newsforge.steps import aggregate_steps as steps
from newsforge.steps.invoker import StepInvoker
from newsforge.steps.models import HeadlineBlobsPayload, SourcesPayload, StepResult
from newsforge.storage.base_article_store import BaseArticleStore

logger = logging.getLogger(__name__)

DEFAULT_MIN_ARTICLE_CHARS = 100


class AggregateOrchestrator(BaseOrchestrator):
    """Runs the multi-source pipeline for one stored article."""

    mode = "aggregate"

    def __init__(
        self,
        store: BaseArticleStore,
        invoker: StepInvoker,
        notifier: BaseNotifier | None = None,
        run_log_factory: RunLogFactory | None = None,
        min_article_chars: int = DEFAULT_MIN_ARTICLE_CHARS,
    ) -> None:
        super().__init__(store, invoker, notifier, run_log_factory)
        self._min_article_chars = min_article_chars

    async def _execute(self, state: RunState, request: AggregateRequest) -> PipelineResponse:
        split = await self._step(
            state, steps.FACTS_BIT_SPLITTING,
            lambda: steps.build_facts_bit_splitting(request),
        )
        await self._checkpoint(state, "10%")

        if steps.has_primary_source(request):
            split2 = await self._step(
                state, steps.FACTS_BIT_SPLITTING_2,
                lambda: steps.build_facts_bit_splitting_2(split.payload),
            )
        else:
            split2 = self._skip_facts_bit_splitting_2(state, split.payload)
        await self._checkpoint(state, "10%")

        headlines = await self._step(
            state, steps.HEADLINES_BLOBS,
            lambda: steps.build_headlines_blobs(request, split2.payload),
        )
        await self._checkpoint(state, "25%")

        outputs = steps.ArticleStepOutputs.from_headlines_blobs(headlines.payload)

        outline = await self._step(
            state, steps.WRITE_ARTICLE_OUTLINE,
            lambda: steps.build_write_article_outline(request, split2.payload, outputs),
        )
        outputs = outputs.with_text("write_article_outline", outline.payload.outline)
        await self._checkpoint(state, "50%")

        article = await self._step(
            state, steps.WRITE_ARTICLE,
            lambda: steps.build_write_article(request, split2.payload, outputs),
        )
        outputs = outputs.with_text("write_article", article.payload.article)
        await self._checkpoint(state, "50%")

        rewrite = await self._step(
            state, steps.REWRITE_ARTICLE,
            lambda: steps.build_rewrite_article(split2.payload, outputs),
        )
        outputs = outputs.with_text("rewrite_article", rewrite.payload.rewritten_article)
        await self._checkpoint(state, "75%")

        rewrite2 = await self._step(
            state, steps.REWRITE_ARTICLE_2,
            lambda: steps.build_rewrite_article(split2.payload, outputs),
        )
        outputs = outputs.with_text("rewrite_article2", rewrite2.payload.rewritten_article)
        await self._checkpoint(state, "90%")

        colored = await self._step(
            state, steps.COLOR_CODE,
            lambda: steps.build_color_code(split2.payload, outputs),
        )

        generated = colored.payload.color_coded_article
        success = self.validate(state, headlines.payload, generated)
        content = generated
        lead = request.sources[0]
        if lead.verbatim:
            content = ensure_verbatim_opening(content, lead.source_text)

        return await self._finalize(
            state,
            request,
            success=success,
            headline=headlines.payload.headline,
            blobs=headlines.payload.blobs,
            content=content,
            rich_content=colored.payload.rich_content or None,
        )

    def validate(
        self, state: RunState, headlines: HeadlineBlobsPayload, content: str
    ) -> bool:
        """Every step succeeded, the article is long enough, headline and blobs present."""
        all_steps_ok = all(r.success for r in state.steps.values())
        long_enough = len(content) > self._min_article_chars
        has_headline_blobs = bool(headlines.headline.strip()) and any(
            b.strip() for b in headlines.blobs
        )
        return all_steps_ok and long_enough and has_headline_blobs

    def _skip_facts_bit_splitting_2(
        self, state: RunState, split: SourcesPayload
    ) -> StepResult[SourcesPayload]:
        spec = steps.FACTS_BIT_SPLITTING_2
        result = StepResult(
            article_id=state.article_id,
            step_number=spec.number,
            step_name=spec.name,
            success=True,
            payload=steps.skip_facts_bit_splitting_2(split.sources),
        )
        state.record(spec.key, result)
        logger.info(
            "No primary source for article %s, step 2 skipped", state.article_id
        )
        if state.run_log is not None:
            state.run_log.log_note(
                "STEP_2_SKIPPED",
                "No primary source, facts bit splitting 2 skipped",
                {"sentinel": steps.NO_PRIMARY_SENTINEL, "sources": len(split.sources)},
            )
        return result
