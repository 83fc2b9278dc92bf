# tests/unit/core/test_unit_request_models.py
"""Tests for core/models.py: request validation and wire aliases."""

from __future__ import annotations

import pytest
from pydantic import TypeAdapter, ValidationError

from newsforge.core.models import (
    AggregateRequest,
    DigestRequest,
    Instructions,
    PipelineRequest,
    RequestMetadata,
    SourceInput,
)

META = RequestMetadata(user_id="u1", org_id="1")


class TestDigestRequest:
    def test_camel_case_json(self):
        request = DigestRequest.model_validate({
            "metadata": {"userId": "u1", "orgId": "1", "currentVersion": 2},
            "slug": "fed",
            "instructions": {"freeText": "short", "blobCount": 3, "lengthRange": "100-250"},
            "source": {"sourceText": "Body", "accredit": "AP", "verbatim": True},
        })
        assert request.metadata.current_version == 2
        assert request.instructions.blob_count == 3
        assert request.source.verbatim is True
        assert request.sources == [request.source]

    def test_empty_source_text_rejected(self):
        with pytest.raises(ValidationError, match="source 1 text"):
            DigestRequest(metadata=META, slug="s", source=SourceInput(source_text="   "))

    def test_defaults(self):
        request = DigestRequest(metadata=META, slug="s", source=SourceInput(source_text="x"))
        assert request.instructions.length_range == "400-550"
        assert request.instructions.blob_count == 1
        assert request.headline == ""


class TestAggregateRequest:
    def test_max_six_sources(self):
        sources = [SourceInput(number=i, source_text="t") for i in range(1, 8)]
        with pytest.raises(ValidationError):
            AggregateRequest(metadata=META, slug="s", sources=sources)

    def test_requires_a_source(self):
        with pytest.raises(ValidationError):
            AggregateRequest(metadata=META, slug="s", sources=[])

    def test_first_source_needs_text(self):
        with pytest.raises(ValidationError, match="source 1 text"):
            AggregateRequest(
                metadata=META, slug="s",
                sources=[SourceInput(number=1), SourceInput(number=2, source_text="t")],
            )


class TestInstructions:
    def test_blob_count_bounds(self):
        with pytest.raises(ValidationError):
            Instructions(blob_count=0)
        with pytest.raises(ValidationError):
            Instructions(blob_count=7)

    def test_unknown_length_range(self):
        with pytest.raises(ValidationError):
            Instructions(length_range="1-2")


class TestPipelineRequestUnion:
    def test_discriminates_on_kind(self):
        adapter = TypeAdapter(PipelineRequest)
        digest = adapter.validate_python({
            "kind": "digest",
            "metadata": {"userId": "u", "orgId": "1"},
            "slug": "a",
            "source": {"sourceText": "x"},
        })
        aggregate = adapter.validate_python({
            "kind": "aggregate",
            "metadata": {"userId": "u", "orgId": "1"},
            "slug": "a",
            "sources": [{"number": 1, "sourceText": "x"}],
        })
        assert isinstance(digest, DigestRequest)
        assert isinstance(aggregate, AggregateRequest)
