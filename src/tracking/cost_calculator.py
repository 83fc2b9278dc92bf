# src/tracking/cost_calculator.py
"""Usage accumulation: token usage entries to totals and USD cost.

Pure functions; the price table is read-only after start-up.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Mapping
from pathlib import Path

from newsforge.tracking.models import ModelPricing, UsageEntry, UsageTotals

logger = logging.getLogger(__name__)

# Default pricing per 1M tokens
DEFAULT_PRICING: dict[str, ModelPricing] = {
    "claude-3-5-sonnet": ModelPricing(
        model="claude-3-5-sonnet",
        input_price_per_1m=3.0, output_price_per_1m=15.0,
    ),
    "claude-3-5-sonnet-20240620": ModelPricing(
        model="claude-3-5-sonnet-20240620",
        input_price_per_1m=3.0, output_price_per_1m=15.0,
    ),
    "claude-3-opus-20240229": ModelPricing(
        model="claude-3-opus-20240229",
        input_price_per_1m=15.0, output_price_per_1m=75.0,
    ),
    "claude-4-sonnet-20250514": ModelPricing(
        model="claude-4-sonnet-20250514",
        input_price_per_1m=3.0, output_price_per_1m=15.0,
    ),
    "claude-sonnet-4-20250514": ModelPricing(
        model="claude-sonnet-4-20250514",
        input_price_per_1m=3.0, output_price_per_1m=15.0,
    ),
}

PriceTable = Mapping[str, ModelPricing]


def compute_entry_cost(entry: UsageEntry, pricing: ModelPricing) -> float:
    """Cost in USD of a single usage entry."""
    return (entry.input_tokens * pricing.input_price_per_1m / 1_000_000
            + entry.output_tokens * pricing.output_price_per_1m / 1_000_000)


def accumulate(
    entries: Iterable[UsageEntry],
    price_table: PriceTable | None = None,
) -> UsageTotals:
    """Fold usage entries into totals.

    Entries for models missing from the price table are skipped entirely:
    neither their tokens nor any cost are counted.
    """
    table = DEFAULT_PRICING if price_table is None else price_table
    total_in = 0
    total_out = 0
    total_cost = 0.0
    for entry in entries:
        pricing = table.get(entry.model)
        if pricing is None:
            logger.debug("No pricing for model %s, usage entry skipped", entry.model)
            continue
        total_in += entry.input_tokens
        total_out += entry.output_tokens
        total_cost += compute_entry_cost(entry, pricing)
    return UsageTotals(
        total_input_tokens=total_in,
        total_output_tokens=total_out,
        total_cost_usd=total_cost,
    )


def merge_totals(*totals: UsageTotals) -> UsageTotals:
    """Sum several totals (e.g. one per step) into a run total."""
    return UsageTotals(
        total_input_tokens=sum(t.total_input_tokens for t in totals),
        total_output_tokens=sum(t.total_output_tokens for t in totals),
        total_cost_usd=sum(t.total_cost_usd for t in totals),
    )


def load_price_table(path: Path | str) -> dict[str, ModelPricing]:
    """Load a price table from JSON, layered over DEFAULT_PRICING.

    File format: {"<model>": {"input_price_per_1m": 3.0, "output_price_per_1m": 15.0}}
    """
    raw = json.loads(Path(path).expanduser().read_text(encoding="utf-8"))
    table = dict(DEFAULT_PRICING)
    for model, prices in raw.items():
        table[model] = ModelPricing(model=model, **prices)
    logger.info("Loaded pricing for %d models from %s", len(raw), path)
    return table
