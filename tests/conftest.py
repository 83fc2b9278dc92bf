# tests/conftest.py
"""Shared test fixtures for all unit tests.

Provides a fake step API (httpx.MockTransport), an in-memory store, sample
requests and ready-wired orchestrators. No network access: every step call
is served by FakeStepApi.
"""

from __future__ import annotations

import json
from collections.abc import Callable
from typing import Any
from unittest.mock import AsyncMock

import httpx
import pytest

from newsforge.core.models import (
    AggregateRequest,
    DigestRequest,
    Instructions,
    RequestMetadata,
    SourceInput,
)
from newsforge.notify.email import BaseNotifier
from newsforge.pipeline.aggregate import AggregateOrchestrator
from newsforge.pipeline.digest import DigestOrchestrator
from newsforge.pipeline.router import PipelineRouter
from newsforge.steps.invoker import StepInvoker
from newsforge.storage.memory_store import MemoryArticleStore
from newsforge.tracking.cost_calculator import DEFAULT_PRICING
from newsforge.tracking.pipeline_logger import PipelineLogger

STEP_API_BASE = "http://steps.test/api"
MODEL = "claude-3-5-sonnet-20240620"
VERBATIM_TEXT = "BREAKING: X happened."

COLOR_CODED_ARTICLE = (
    "The central bank raised its benchmark rate by a quarter point on Wednesday, "
    "citing persistent inflation. Markets were calm after the announcement, "
    "according to traders in New York and London."
)


def usage(input_tokens: int = 1000, output_tokens: int = 500, model: str = MODEL) -> list[dict]:
    return [{"inputTokens": input_tokens, "outputTokens": output_tokens, "model": model}]


Responder = Callable[[dict[str, Any]], Any]


class FakeStepApi:
    """Routes step endpoints to canned or computed JSON bodies and records calls."""

    def __init__(self) -> None:
        self._routes: dict[str, tuple[int, Responder]] = {}
        self.calls: list[tuple[str, dict[str, Any]]] = []

    def set(self, endpoint: str, body: Any, status: int = 200) -> None:
        responder = body if callable(body) else (lambda _req, _b=body: _b)
        self._routes[endpoint] = (status, responder)

    def fail(self, endpoint: str, status: int = 500) -> None:
        self.set(endpoint, {"error": "boom"}, status=status)

    def handler(self, request: httpx.Request) -> httpx.Response:
        endpoint = request.url.path.removeprefix("/api/")
        body = json.loads(request.content) if request.content else {}
        self.calls.append((endpoint, body))
        if endpoint not in self._routes:
            return httpx.Response(404, json={"error": f"no route {endpoint}"})
        status, responder = self._routes[endpoint]
        return httpx.Response(status, json=responder(body))

    @property
    def endpoints(self) -> list[str]:
        return [endpoint for endpoint, _ in self.calls]

    def body_for(self, endpoint: str) -> dict[str, Any]:
        for called, body in self.calls:
            if called == endpoint:
                return body
        raise KeyError(endpoint)


def _with_field(field: str, prefix: str) -> Responder:
    def respond(req: dict[str, Any]) -> dict[str, Any]:
        return {
            "sources": [
                {**s, field: f"{prefix} for source {s['number']}"} for s in req["sources"]
            ],
            "usage": usage(),
        }
    return respond


def install_default_routes(api: FakeStepApi) -> None:
    # Digest
    api.set("steps/01-extract-fact-quotes", {"quotes": '"Rates rose," the Fed said.', "usage": usage()})
    api.set("steps/02-summarize-facts", {"summary": "The Fed raised rates by 25bp.", "usage": usage()})
    api.set("steps/03-write-headline-and-blobs", {
        "headline": "Fed Raises Rates", "blobs": ["Rates up 25bp", "Markets calm"], "usage": usage(),
    })
    api.set("steps/04-write-article-outline", {"outline": "1. Lead\n2. Reaction", "usage": usage()})
    api.set("steps/05-write-article", {"article": "The Fed raised rates. Markets were calm.", "usage": usage()})
    api.set("steps/06-paraphrase-article", {
        "paraphrasedArticle": "The central bank lifted rates. Traders shrugged.", "usage": usage(),
    })
    api.set("steps/07-sentence-per-line-attribution", {
        "formattedArticle": "The central bank lifted rates, the Fed said.\nTraders shrugged.",
        "usage": usage(),
    })
    api.set("steps/digest-verbatim", lambda req: {
        "formattedArticle": f"{req['sourceText']}\n\nMore context followed.", "usage": usage(),
    })
    # Aggregate
    api.set("aggregate-steps/01-facts-bit-splitting", _with_field("factsBitSplitting1", "facts"))
    api.set("aggregate-steps/02-facts-bit-splitting-2", _with_field("factsBitSplitting2", "primary facts"))
    api.set("aggregate-steps/03-headlines-blobs", {
        "headline": "Markets Digest Rate Hike", "blobs": ["Rates up", "Stocks flat"], "usage": usage(),
    })
    api.set("aggregate-steps/04-write-article-outline", {"outline": "Lead, reaction, outlook", "usage": usage()})
    api.set("aggregate-steps/05-write-article", {"article": "Draft article text.", "usage": usage()})
    api.set("aggregate-steps/06-rewrite-article", {"rewrittenArticle": "Rewrite one.", "usage": usage()})
    api.set("aggregate-steps/07-rewrite-article-2", {"rewrittenArticle": "Rewrite two.", "usage": usage()})
    api.set("aggregate-steps/08-color-code", {
        "colorCodedArticle": COLOR_CODED_ARTICLE,
        "richContent": '{"type": "doc"}',
        "usage": usage(),
    })


class RecordingArticleStore(MemoryArticleStore):
    """MemoryArticleStore that remembers every status written per article."""

    def __init__(self) -> None:
        super().__init__()
        self.statuses: dict[str, list[str]] = {}

    async def update_article_status(self, article_id, user_id, status):
        self.statuses.setdefault(article_id, []).append(status)
        return await super().update_article_status(article_id, user_id, status)


# === FIXTURES: Step API ===


@pytest.fixture
def step_api() -> FakeStepApi:
    api = FakeStepApi()
    install_default_routes(api)
    return api


@pytest.fixture
def step_client(step_api: FakeStepApi) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        base_url=STEP_API_BASE, transport=httpx.MockTransport(step_api.handler)
    )


@pytest.fixture
def invoker(step_client: httpx.AsyncClient) -> StepInvoker:
    return StepInvoker(step_client, DEFAULT_PRICING)


# === FIXTURES: Collaborators ===


@pytest.fixture
def store() -> RecordingArticleStore:
    return RecordingArticleStore()


@pytest.fixture
def notifier() -> AsyncMock:
    return AsyncMock(spec=BaseNotifier)


@pytest.fixture
def run_log_factory(tmp_path):
    """Pipeline loggers writing into tmp_path, kept for inspection."""
    created: list[PipelineLogger] = []

    def factory(session_id: str, mode: str) -> PipelineLogger:
        run_log = PipelineLogger(session_id, mode, log_dir=tmp_path / "logs")
        created.append(run_log)
        return run_log

    factory.created = created  # type: ignore[attr-defined]
    return factory


@pytest.fixture
def digest_orchestrator(store, invoker, notifier, run_log_factory) -> DigestOrchestrator:
    return DigestOrchestrator(store, invoker, notifier, run_log_factory)


@pytest.fixture
def aggregate_orchestrator(store, invoker, notifier, run_log_factory) -> AggregateOrchestrator:
    return AggregateOrchestrator(store, invoker, notifier, run_log_factory)


@pytest.fixture
def router(store, digest_orchestrator, aggregate_orchestrator) -> PipelineRouter:
    return PipelineRouter(store, digest_orchestrator, aggregate_orchestrator)


# === FIXTURES: Sample requests ===


@pytest.fixture
def metadata() -> RequestMetadata:
    return RequestMetadata(user_id="user-1", org_id="7", current_version=None)


@pytest.fixture
def digest_request(metadata) -> DigestRequest:
    return DigestRequest(
        metadata=metadata,
        slug="fed-rates",
        headline="",
        instructions=Instructions(free_text="Neutral tone", blob_count=2, length_range="400-550"),
        source=SourceInput(
            description="Press release",
            accredit="Federal Reserve",
            source_text="The Federal Reserve raised rates by 25 basis points.",
            url="https://example.com/fed",
        ),
    )


@pytest.fixture
def aggregate_request(metadata) -> AggregateRequest:
    return AggregateRequest(
        metadata=metadata,
        slug="rate-hike-roundup",
        instructions=Instructions(free_text="Roundup", blob_count=2, length_range="700-850"),
        sources=[
            SourceInput(number=1, accredit="Reuters", source_text="Reuters text."),
            SourceInput(number=2, accredit="AP", source_text="AP text."),
            SourceInput(number=3, accredit="Bloomberg", source_text="Bloomberg text."),
        ],
    )
