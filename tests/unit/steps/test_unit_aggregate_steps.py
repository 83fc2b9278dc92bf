# tests/unit/steps/test_unit_aggregate_steps.py
"""Tests for steps/aggregate_steps.py: outputs record, sentinel and builders."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from newsforge.steps import aggregate_steps as steps
from newsforge.steps.models import AggregateSource, HeadlineBlobsPayload, SourcesPayload


def _outputs() -> steps.ArticleStepOutputs:
    return steps.ArticleStepOutputs.from_headlines_blobs(
        HeadlineBlobsPayload(headline="H", blobs=["b1", "b2"])
    )


class TestArticleStepOutputs:
    def test_from_headlines_blobs(self):
        outputs = _outputs()
        assert outputs.headlines_blobs.headline == "H"
        assert outputs.headlines_blobs.blobs == ("b1", "b2")
        assert outputs.paraphrasing_facts.text == ""
        assert outputs.write_article_outline is None

    def test_with_text_returns_new_record(self):
        before = _outputs()
        after = before.with_text("write_article_outline", "outline")
        assert after.write_article_outline.text == "outline"
        assert before.write_article_outline is None

    def test_frozen(self):
        outputs = _outputs()
        with pytest.raises(ValidationError):
            outputs.write_article = steps.TextOutput(text="x")

    def test_unknown_key(self):
        with pytest.raises(KeyError):
            _outputs().with_text("nope", "x")

    def test_headlines_blobs_not_text(self):
        with pytest.raises(KeyError):
            _outputs().with_text("headlines_blobs", "x")

    def test_wire_shape(self):
        dumped = _outputs().with_text("rewrite_article2", "r2").model_dump(
            by_alias=True, exclude_none=True
        )
        assert dumped["headlinesBlobs"] == {"headline": "H", "blobs": ("b1", "b2")}
        assert dumped["rewriteArticle2"] == {"text": "r2"}
        assert "writeArticle" not in dumped


class TestSkipFactsBitSplitting2:
    def test_sentinel_on_every_source(self):
        sources = [AggregateSource(number=1, facts_bit_splitting1="f1"),
                   AggregateSource(number=2, facts_bit_splitting1="f2")]
        payload = steps.skip_facts_bit_splitting_2(sources)
        assert [s.facts_bit_splitting2 for s in payload.sources] == ["--", "--"]
        assert [s.facts_bit_splitting1 for s in payload.sources] == ["f1", "f2"]
        assert sources[0].facts_bit_splitting2 is None

    def test_has_primary_source(self, aggregate_request):
        assert not steps.has_primary_source(aggregate_request)
        sources = list(aggregate_request.sources)
        sources[2] = sources[2].model_copy(update={"primary": True})
        assert steps.has_primary_source(aggregate_request.model_copy(update={"sources": sources}))


class TestBuilders:
    def test_to_aggregate_sources(self, aggregate_request):
        sources = steps.to_aggregate_sources(aggregate_request)
        assert [s.number for s in sources] == [1, 2, 3]
        assert sources[0].text == "Reuters text."
        assert sources[0].accredit == "Reuters"

    def test_facts_bit_splitting_body(self, aggregate_request):
        body = steps.build_facts_bit_splitting(aggregate_request).model_dump(
            mode="json", by_alias=True, exclude_none=True
        )
        first = body["sources"][0]
        assert first["useVerbatim"] is False
        assert first["isPrimarySource"] is False
        assert "factsBitSplitting1" not in first

    def test_headlines_blobs(self, aggregate_request):
        step2 = SourcesPayload(sources=[AggregateSource(number=1, text="t")])
        request = steps.build_headlines_blobs(aggregate_request, step2)
        assert request.no_of_blobs == 2
        assert request.instructions == "Roundup"
        assert request.sources == step2.sources

    def test_write_article_carries_length_and_outputs(self, aggregate_request):
        step2 = SourcesPayload(sources=[AggregateSource(number=1, text="t")])
        outputs = _outputs().with_text("write_article_outline", "o")
        request = steps.build_write_article(aggregate_request, step2, outputs)
        body = request.model_dump(mode="json", by_alias=True, exclude_none=True)
        assert body["length"] == "700-850"
        assert body["articleStepOutputs"]["writeArticleOutline"] == {"text": "o"}
