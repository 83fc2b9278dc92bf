# src/pipeline/base.py
"""Shared orchestration machinery for the digest and aggregate pipelines.

An orchestrator runs its steps strictly in sequence. After every step the
result is checked; the first step that failed or came back empty aborts the
run: the article is marked failed, ``STEP_<n>_FAILED`` is logged, the run log
is closed and a failed PipelineResponse is returned. Unexpected exceptions
are caught at the same boundary and cleaned up best-effort. There is no
retry and no resume; re-running an article starts again from step 1.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from newsforge.core.models import PROGRESS_CHECKPOINTS, ArticleStatus
from newsforge.logging.context import set_pipeline_context
from newsforge.notify.email import BaseNotifier
from newsforge.steps.invoker import StepInvoker
from newsforge.steps.models import P, StepRequest, StepResult, StepSpec
from newsforge.storage.base_article_store import BaseArticleStore
from newsforge.tracking.cost_calculator import merge_totals
from newsforge.tracking.models import UsageTotals
from newsforge.tracking.pipeline_logger import PipelineLogger, PipelineMode

logger = logging.getLogger(__name__)

RunLogFactory = Callable[[str, PipelineMode], "PipelineLogger | None"]


def console_run_log_factory(session_id: str, mode: PipelineMode) -> PipelineLogger:
    return PipelineLogger(session_id, mode, file_logging=False)


@dataclass
class PipelineResponse:
    """Outcome of one orchestrator run."""

    success: bool
    usage: UsageTotals = field(default_factory=UsageTotals)
    steps: dict[str, StepResult] = field(default_factory=dict)
    content: str | None = None
    failed_step: int | None = None
    error: str | None = None
    log_file_path: str | None = None


@dataclass
class RunState:
    """Mutable bookkeeping for a single run: results so far and the run log."""

    article_id: str
    user_id: str
    run_log: PipelineLogger | None
    steps: dict[str, StepResult] = field(default_factory=dict)
    last_status: ArticleStatus | None = None

    def record(self, key: str, result: StepResult) -> None:
        self.steps[key] = result

    @property
    def totals(self) -> UsageTotals:
        return merge_totals(*(r.totals for r in self.steps.values()))

    @property
    def log_file_path(self) -> str | None:
        return self.run_log.get_log_file_path() if self.run_log else None


class StepAborted(Exception):
    """Raised inside a run when a step did not produce usable output."""

    def __init__(self, spec: StepSpec, result: StepResult) -> None:
        super().__init__(f"Step {spec.number} ({spec.name}) failed")
        self.spec = spec
        self.result = result


class BaseOrchestrator(ABC):
    """Run skeleton shared by both pipelines.

    Args:
        store: Article persistence.
        invoker: Step invoker bound to the step API.
        notifier: Completion notifier, or None to skip notifications.
        run_log_factory: Builds the per-run PipelineLogger; may return None.
    """

    mode: PipelineMode

    def __init__(
        self,
        store: BaseArticleStore,
        invoker: StepInvoker,
        notifier: BaseNotifier | None = None,
        run_log_factory: RunLogFactory | None = None,
    ) -> None:
        self._store = store
        self._invoker = invoker
        self._notifier = notifier
        self._run_log_factory = run_log_factory or console_run_log_factory

    async def run(self, article_id: str, request: Any) -> PipelineResponse:
        """Execute every step for article_id. Never raises."""
        set_pipeline_context(self.mode)
        state = RunState(
            article_id=article_id,
            user_id=request.metadata.user_id,
            run_log=self._open_run_log(request),
        )
        logger.info("Starting %s pipeline for article %s", self.mode, article_id)
        try:
            if state.run_log is not None:
                state.run_log.log_initial_request(request)
            try:
                return await self._execute(state, request)
            except StepAborted as aborted:
                return await self._handle_step_failure(state, aborted)
        except Exception as e:
            logger.exception("%s pipeline failed for article %s", self.mode, article_id)
            return await self._handle_unexpected_error(state, e)
        finally:
            set_pipeline_context(None)

    @abstractmethod
    async def _execute(self, state: RunState, request: Any) -> PipelineResponse:
        """Run the step sequence and finalize."""

    # ------------------------------------------------------------------
    # Step plumbing
    # ------------------------------------------------------------------

    async def _step(
        self,
        state: RunState,
        spec: StepSpec[P],
        build_request: Callable[[], StepRequest],
    ) -> StepResult[P]:
        result = await self._invoker.invoke(
            state.article_id, spec, build_request, state.run_log
        )
        state.record(spec.key, result)
        if not result.ok:
            raise StepAborted(spec, result)
        return result

    async def _checkpoint(self, state: RunState, status: ArticleStatus) -> None:
        if status not in PROGRESS_CHECKPOINTS:
            raise ValueError(f"{status!r} is not a progress checkpoint")
        if state.last_status is not None and (
            PROGRESS_CHECKPOINTS.index(status) < PROGRESS_CHECKPOINTS.index(state.last_status)
        ):
            raise ValueError(f"Checkpoint {status!r} would move back from {state.last_status!r}")
        await self._store.update_article_status(state.article_id, state.user_id, status)
        state.last_status = status

    # ------------------------------------------------------------------
    # Termination
    # ------------------------------------------------------------------

    async def _finalize(
        self,
        state: RunState,
        request: Any,
        *,
        success: bool,
        headline: str,
        blobs: list[str],
        content: str,
        rich_content: str | None = None,
        sentences: list[str] | None = None,
    ) -> PipelineResponse:
        await self._store.update_article_with_results(
            state.article_id,
            state.user_id,
            success,
            headline,
            blobs,
            content,
            rich_content=rich_content,
            sentences=sentences,
        )
        response = PipelineResponse(
            success=success,
            usage=state.totals,
            steps=dict(state.steps),
            content=content if success else None,
            error=None if success else "Final article failed validation",
            log_file_path=state.log_file_path,
        )
        if state.run_log is not None:
            state.run_log.log_pipeline_complete(success, _summary(response))
        self._close_run_log(state)

        if success:
            await self._notify(request)
            logger.info("%s pipeline completed for article %s", self.mode, state.article_id)
        else:
            logger.warning(
                "%s pipeline for article %s failed final validation",
                self.mode, state.article_id,
            )
        return response

    async def _handle_step_failure(
        self, state: RunState, aborted: StepAborted
    ) -> PipelineResponse:
        number = aborted.spec.number
        logger.warning(
            "Step %d (%s) failed for article %s, pipeline stopped",
            number, aborted.spec.name, state.article_id,
        )
        await self._store.update_article_status(state.article_id, state.user_id, "failed")
        if state.run_log is not None:
            state.run_log.log_error(
                f"STEP_{number}_FAILED", f"Step {number} failed, pipeline stopped"
            )
        self._close_run_log(state)
        return PipelineResponse(
            success=False,
            usage=state.totals,
            steps=dict(state.steps),
            failed_step=number,
            error=str(aborted),
            log_file_path=state.log_file_path,
        )

    async def _handle_unexpected_error(
        self, state: RunState, error: Exception
    ) -> PipelineResponse:
        if state.run_log is not None:
            try:
                state.run_log.log_error("PIPELINE_ERROR", error)
            except Exception:
                logger.exception("Failed to write PIPELINE_ERROR to run log")
        try:
            await self._store.update_article_status(state.article_id, state.user_id, "failed")
        except Exception:
            logger.exception("Failed to mark article %s as failed", state.article_id)
        try:
            self._close_run_log(state)
        except Exception:
            logger.exception("Failed to close run log for article %s", state.article_id)
        return PipelineResponse(
            success=False,
            usage=state.totals,
            steps=dict(state.steps),
            error=str(error) or type(error).__name__,
            log_file_path=state.log_file_path,
        )

    # ------------------------------------------------------------------
    # Collaborators
    # ------------------------------------------------------------------

    def _open_run_log(self, request: Any) -> PipelineLogger | None:
        session_id = f"{request.metadata.user_id}-{request.slug}"
        try:
            return self._run_log_factory(session_id, self.mode)
        except Exception:
            logger.exception("Could not create run log for session %s", session_id)
            return None

    def _close_run_log(self, state: RunState) -> None:
        if state.run_log is None:
            return
        logger.info("Pipeline logs saved to: %s", state.run_log.get_log_file_path())
        state.run_log.close()

    async def _notify(self, request: Any) -> None:
        if self._notifier is None:
            return
        try:
            await self._notifier.send_completion_email(
                request.slug, request.metadata.current_version, request.metadata.user_id
            )
        except Exception as e:
            logger.error("Completion notification failed for %s: %s", request.slug, e)


def _summary(response: PipelineResponse) -> dict[str, Any]:
    return {
        "success": response.success,
        "usage": response.usage,
        "steps": {
            key: {"stepNumber": r.step_number, "success": r.success}
            for key, r in response.steps.items()
        },
    }
