# src/tracking/models.py
"""Tracking domain models: UsageEntry, UsageTotals, ModelPricing."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class UsageEntry(BaseModel):
    """Token usage reported by a step for one model call."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="ignore"
    )

    model: str
    input_tokens: int = 0
    output_tokens: int = 0


class UsageTotals(BaseModel):
    """Accumulated tokens and cost for one step or one whole run."""

    total_input_tokens: int = 0
    total_output_tokens: int = 0
    total_cost_usd: float = 0.0

    @property
    def total_tokens(self) -> int:
        return self.total_input_tokens + self.total_output_tokens


class ModelPricing(BaseModel):
    """Pricing per 1M tokens for a model."""

    model: str
    input_price_per_1m: float
    output_price_per_1m: float
