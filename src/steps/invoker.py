# src/steps/invoker.py
"""Step invoker: one external step call, normalised into a StepResult.

The invoker never raises. Builder errors, transport errors, non-2xx
responses, undecodable bodies and payloads that fail validation all become
``success=False`` with the step's empty payload. Malformed usage entries are
skipped; they never fail a step.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

import httpx
from pydantic import ValidationError

from newsforge.logging.context import set_step_context
from newsforge.steps.models import P, StepRequest, StepResult, StepSpec
from newsforge.tracking.cost_calculator import PriceTable, accumulate
from newsforge.tracking.models import UsageEntry
from newsforge.tracking.pipeline_logger import PipelineLogger

logger = logging.getLogger(__name__)


class StepInvoker:
    """Posts step requests to the step API through a shared httpx client.

    The client is expected to carry the step API base URL; step endpoints are
    relative paths such as ``steps/01-extract-fact-quotes``.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        price_table: PriceTable | None = None,
    ) -> None:
        self._client = client
        self._price_table = price_table

    async def invoke(
        self,
        article_id: str,
        spec: StepSpec[P],
        build_request: Callable[[], StepRequest],
        run_log: PipelineLogger | None = None,
    ) -> StepResult[P]:
        """Build, send and parse one step.

        Args:
            article_id: Article the step works for (carried into the result).
            spec: Which step to call.
            build_request: Zero-argument builder closing over prior step
                results and the original request.
            run_log: Per-run pipeline logger, or None.
        """
        set_step_context(spec.key)
        try:
            request = build_request()
            body = request.model_dump(mode="json", by_alias=True, exclude_none=True)
            if run_log is not None:
                run_log.log_step_request(spec.number, spec.name, body)

            response = await self._client.post(spec.endpoint, json=body)
            response.raise_for_status()
            data = response.json()
            if run_log is not None:
                run_log.log_step_response(spec.number, spec.name, data)

            usage, payload = self._parse(spec, data)
        except Exception as e:
            logger.warning(
                "Step %d (%s) failed for article %s: %s",
                spec.number, spec.name, article_id, e,
            )
            if run_log is not None:
                run_log.log_error(f"{spec.tag}_ERROR", e)
            return StepResult.failed(article_id, spec)
        finally:
            set_step_context(None)

        result = StepResult(
            article_id=article_id,
            step_number=spec.number,
            step_name=spec.name,
            success=True,
            payload=payload,
            usage=usage,
            totals=accumulate(usage, self._price_table),
        )
        if run_log is not None:
            run_log.log_step_complete(spec.number, spec.name, {
                "success": True,
                "payload": payload,
                "totals": result.totals,
            })
        logger.info(
            "Step %d (%s) done: %d in / %d out tokens, $%.6f",
            spec.number, spec.name,
            result.totals.total_input_tokens,
            result.totals.total_output_tokens,
            result.totals.total_cost_usd,
        )
        return result

    @staticmethod
    def _parse(spec: StepSpec[P], data: Any) -> tuple[list[UsageEntry], P]:
        if not isinstance(data, dict):
            raise ValueError(f"Expected a JSON object, got {type(data).__name__}")
        payload = spec.payload_cls.model_validate(data)
        return _parse_usage(spec, data.get("usage") or []), payload


def _parse_usage(spec: StepSpec[Any], raw: Any) -> list[UsageEntry]:
    """Valid usage entries only; malformed ones are dropped, never fatal."""
    if not isinstance(raw, list):
        logger.debug("Step %d usage is not a list, ignored", spec.number)
        return []
    entries: list[UsageEntry] = []
    for item in raw:
        try:
            entries.append(UsageEntry.model_validate(item))
        except ValidationError as e:
            logger.debug(
                "Step %d: skipping malformed usage entry %r (%d errors)",
                spec.number, item, e.error_count(),
            )
    return entries
