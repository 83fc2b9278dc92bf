# src/api/facade.py
"""Public API facade: wire settings, store, step client and orchestrators together.

Usage:
    from newsforge.api.facade import build_engine
    engine = build_engine()
    article, result = await engine.submit(request)
    await engine.aclose()
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import partial

import httpx

from newsforge.config.settings import Settings
from newsforge.core.models import AggregateRequest, DigestRequest
from newsforge.notify.email import (
    BaseNotifier,
    HttpEmailNotifier,
    NullNotifier,
    Recipient,
    RecipientLookup,
)
from newsforge.pipeline.aggregate import AggregateOrchestrator
from newsforge.pipeline.base import RunLogFactory
from newsforge.pipeline.digest import DigestOrchestrator
from newsforge.pipeline.router import PipelineExecutionResult, PipelineRouter
from newsforge.pipeline.trigger import PipelineTrigger, create_article_from_request
from newsforge.steps.invoker import StepInvoker
from newsforge.storage.base_article_store import BaseArticleStore
from newsforge.storage.models import Article
from newsforge.storage.run_ledger import RunLedger
from newsforge.storage.sqlite_store import SqliteArticleStore
from newsforge.tracking.cost_calculator import DEFAULT_PRICING, PriceTable, load_price_table
from newsforge.tracking.pipeline_logger import PipelineLogger, PipelineMode

logger = logging.getLogger(__name__)


@dataclass
class Engine:
    """Everything needed to create articles and run their pipelines."""

    settings: Settings
    store: BaseArticleStore
    client: httpx.AsyncClient
    router: PipelineRouter
    trigger: PipelineTrigger
    owns_client: bool = False

    async def submit(
        self,
        request: DigestRequest | AggregateRequest,
        user_id: str | None = None,
        org_id: str | None = None,
    ) -> tuple[Article, PipelineExecutionResult]:
        """Create a new article version for request and run it to completion."""
        article = await create_article_from_request(self.store, request, user_id, org_id)
        result = await self.router.execute_pipeline_by_article_id(article.id)
        return article, result

    async def aclose(self) -> None:
        await self.trigger.wait_all()
        if self.owns_client:
            await self.client.aclose()
        await self.store.close()


def build_price_table(settings: Settings) -> PriceTable:
    if settings.pricing_file is None:
        return DEFAULT_PRICING
    return load_price_table(settings.pricing_file)


def build_step_client(settings: Settings) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        base_url=settings.step_api_base_url,
        timeout=settings.step_timeout_s,
        headers={"Content-Type": "application/json"},
    )


def build_run_log_factory(settings: Settings) -> RunLogFactory:
    def factory(session_id: str, mode: PipelineMode) -> PipelineLogger:
        return PipelineLogger(
            session_id,
            mode,
            log_dir=settings.pipeline_log_dir,
            file_logging=settings.pipeline_file_logging,
        )

    return factory


async def _static_recipient(recipient: Recipient | None, user_id: str | None) -> Recipient | None:
    return recipient


def build_notifier(
    settings: Settings,
    client: httpx.AsyncClient,
    recipient_lookup: RecipientLookup | None = None,
) -> BaseNotifier:
    if not settings.notifications_enabled:
        return NullNotifier()
    if recipient_lookup is None:
        default = (
            Recipient(settings.notify_email, settings.notify_name)
            if settings.notify_email else None
        )
        recipient_lookup = partial(_static_recipient, default)
    return HttpEmailNotifier(client, settings.app_base_url, recipient_lookup)


def build_router(
    settings: Settings,
    store: BaseArticleStore,
    client: httpx.AsyncClient,
    notifier: BaseNotifier | None = None,
    run_log_factory: RunLogFactory | None = None,
) -> PipelineRouter:
    """Router with both orchestrators sharing one invoker."""
    invoker = StepInvoker(client, build_price_table(settings))
    run_log_factory = run_log_factory or build_run_log_factory(settings)
    notifier = notifier or build_notifier(settings, client)
    digest = DigestOrchestrator(store, invoker, notifier, run_log_factory)
    aggregate = AggregateOrchestrator(
        store,
        invoker,
        notifier,
        run_log_factory,
        min_article_chars=settings.min_aggregate_article_chars,
    )
    return PipelineRouter(store, digest, aggregate, RunLedger(store))


def build_engine(
    settings: Settings | None = None,
    store: BaseArticleStore | None = None,
    client: httpx.AsyncClient | None = None,
    notifier: BaseNotifier | None = None,
    run_log_factory: RunLogFactory | None = None,
) -> Engine:
    """Assemble an Engine. Missing pieces are built from settings."""
    settings = settings or Settings()
    store = store or SqliteArticleStore(settings.database_path)
    owns_client = client is None
    client = client or build_step_client(settings)
    router = build_router(settings, store, client, notifier, run_log_factory)
    logger.debug(
        "Engine ready: store=%s, step_api=%s", type(store).__name__, client.base_url
    )
    return Engine(
        settings=settings,
        store=store,
        client=client,
        router=router,
        trigger=PipelineTrigger(store, router),
        owns_client=owns_client,
    )
