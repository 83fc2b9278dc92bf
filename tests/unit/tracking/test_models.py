# tests/unit/tracking/test_models.py
"""Tests for tracking/models.py."""

from __future__ import annotations

from newsforge.tracking.models import UsageEntry, UsageTotals


class TestUsageEntry:
    def test_camel_case_input(self):
        entry = UsageEntry.model_validate(
            {"model": "m", "inputTokens": 12, "outputTokens": 3, "cacheHits": 1}
        )
        assert entry.input_tokens == 12
        assert entry.output_tokens == 3

    def test_snake_case_input(self):
        entry = UsageEntry(model="m", input_tokens=4)
        assert entry.output_tokens == 0


class TestUsageTotals:
    def test_total_tokens(self):
        totals = UsageTotals(total_input_tokens=7, total_output_tokens=8)
        assert totals.total_tokens == 15
        assert totals.total_cost_usd == 0.0
