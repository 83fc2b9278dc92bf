# src/pipeline/digest.py
"""Digest orchestrator: one source in, one article out.

Step order:
  1. Extract fact quotes                       -> 10%
  2. Summarize facts
  3. Write headline and blobs                  -> 25%
  then either the verbatim branch:
     Digest verbatim (status 50% on entry)
  or the normal branch:
  4. Write article outline
  5. Write article                             -> 50%
  6. Paraphrase article                        -> 75%
  7. Sentence per line attribution
  finally                                      -> 90%, then completed/failed
"""

from __future__ import annotations

import logging

from newsforge.core.models import DigestRequest
from newsforge.core.text import ensure_verbatim_opening
from newsforge.pipeline.base import BaseOrchestrator, PipelineResponse, RunState
from newsforge.steps import digest_steps as steps
from newsforge.steps.models import HeadlineBlobsPayload

logger = logging.getLogger(__name__)


class DigestOrchestrator(BaseOrchestrator):
    """Runs the single-source pipeline for one stored article."""

    mode = "digest"

    async def _execute(self, state: RunState, request: DigestRequest) -> PipelineResponse:
        quotes = await self._step(
            state, steps.EXTRACT_FACT_QUOTES,
            lambda: steps.build_extract_fact_quotes(request),
        )
        await self._checkpoint(state, "10%")

        summary = await self._step(
            state, steps.SUMMARIZE_FACTS,
            lambda: steps.build_summarize_facts(request),
        )
        headline_blobs = await self._step(
            state, steps.WRITE_HEADLINE_AND_BLOBS,
            lambda: steps.build_write_headline_and_blobs(
                request, quotes.payload, summary.payload
            ),
        )
        await self._checkpoint(state, "25%")

        sentences: list[str] | None = None
        if request.source.verbatim:
            await self._checkpoint(state, "50%")
            verbatim = await self._step(
                state, steps.DIGEST_VERBATIM,
                lambda: steps.build_digest_verbatim(request),
            )
            content = ensure_verbatim_opening(
                verbatim.payload.formatted_article, request.source.source_text
            )
            sentences = verbatim.payload.sentences
        else:
            outline = await self._step(
                state, steps.WRITE_ARTICLE_OUTLINE,
                lambda: steps.build_write_article_outline(
                    request, quotes.payload, summary.payload, headline_blobs.payload
                ),
            )
            article = await self._step(
                state, steps.WRITE_ARTICLE,
                lambda: steps.build_write_article(
                    request, summary.payload, headline_blobs.payload, outline.payload
                ),
            )
            await self._checkpoint(state, "50%")

            paraphrased = await self._step(
                state, steps.PARAPHRASE_ARTICLE,
                lambda: steps.build_paraphrase_article(request, article.payload),
            )
            await self._checkpoint(state, "75%")

            formatted = await self._step(
                state, steps.SENTENCE_PER_LINE_ATTRIBUTION,
                lambda: steps.build_sentence_per_line_attribution(paraphrased.payload),
            )
            content = formatted.payload.formatted_article
            sentences = formatted.payload.sentences

        await self._checkpoint(state, "90%")

        return await self._finalize(
            state,
            request,
            success=validate_digest(state, headline_blobs.payload, content),
            headline=headline_blobs.payload.headline,
            blobs=headline_blobs.payload.blobs,
            content=content,
            sentences=sentences,
        )


def validate_digest(
    state: RunState, headline_blobs: HeadlineBlobsPayload, content: str
) -> bool:
    """Every executed step succeeded, content is non-empty, headline and blobs present."""
    all_steps_ok = all(r.success for r in state.steps.values())
    has_content = bool(content.strip())
    has_headline_blobs = bool(headline_blobs.headline.strip()) and any(
        b.strip() for b in headline_blobs.blobs
    )
    return all_steps_ok and has_content and has_headline_blobs
