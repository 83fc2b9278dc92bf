# src/logging/context.py
"""Contextual logging support: attach article_id, run_id, pipeline and step to log records.

Context lives in contextvars, so each asyncio task running a pipeline sees only
its own values.
"""

from __future__ import annotations

import contextvars
from dataclasses import dataclass
from typing import Any

_article_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "article_id", default=None
)
_run_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "run_id", default=None
)
_pipeline: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "pipeline", default=None
)
_step: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "step", default=None
)


@dataclass
class LogContext:
    """Immutable snapshot of current logging context."""

    article_id: str | None = None
    run_id: str | None = None
    pipeline: str | None = None
    step: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    """Snapshot current context variables."""
    return LogContext(
        article_id=_article_id.get(),
        run_id=_run_id.get(),
        pipeline=_pipeline.get(),
        step=_step.get(),
    )


def set_article_context(article_id: str, run_id: str | None = None) -> None:
    """Set article-level context (called once per pipeline execution)."""
    _article_id.set(article_id)
    _run_id.set(run_id)


def set_pipeline_context(pipeline: str | None) -> None:
    """Record which orchestrator ("digest" or "aggregate") is running (None once it ends)."""
    _pipeline.set(pipeline)


def set_step_context(step: str | None) -> None:
    """Set the step currently executing (None between steps)."""
    _step.set(step)


def clear_context() -> None:
    """Reset all context variables."""
    _article_id.set(None)
    _run_id.set(None)
    _pipeline.set(None)
    _step.set(None)
