# tests/unit/pipeline/test_unit_trigger.py
"""Tests for pipeline/trigger.py: article creation and background runs."""

from __future__ import annotations

import pytest

from newsforge.pipeline.trigger import (
    PipelineTrigger,
    create_article_from_request,
    to_new_article,
)
from newsforge.storage.base_article_store import ArticleNotFoundError


class TestToNewArticle:
    def test_digest(self, digest_request):
        new = to_new_article(digest_request)
        assert new.slug == "fedrates"
        assert new.source_type == "single"
        assert new.org_id == "7"
        assert new.created_by == "user-1"
        assert new.preset_blobs == 2
        assert new.sources[0].source_text.startswith("The Federal Reserve")

    def test_aggregate(self, aggregate_request):
        new = to_new_article(aggregate_request)
        assert new.source_type == "multi"
        assert len(new.sources) == 3
        assert new.preset_length == "700-850"

    def test_caller_overrides_metadata(self, digest_request):
        new = to_new_article(digest_request, user_id="auth-user", org_id="99")
        assert new.created_by == "auth-user"
        assert new.org_id == "99"

    def test_unusable_slug(self, digest_request):
        request = digest_request.model_copy(update={"slug": "?!"})
        with pytest.raises(ValueError, match="no usable characters"):
            to_new_article(request)


class TestCreateArticle:
    @pytest.mark.asyncio
    async def test_versions_increment(self, store, digest_request):
        first = await create_article_from_request(store, digest_request)
        second = await create_article_from_request(store, digest_request)
        assert (first.version, second.version) == (1, 2)
        assert first.status == "pending"


class TestPipelineTrigger:
    @pytest.mark.asyncio
    async def test_background_run(self, store, router, digest_request):
        trigger = PipelineTrigger(store, router)
        article = await create_article_from_request(store, digest_request)

        task = await trigger.start_pipeline_execution(article.id)
        assert (await store.get_article_by_id(article.id)).status == "started"

        results = await trigger.wait_all()
        assert task.done()
        assert results[0].success is True
        assert trigger.pending == 0
        assert (await store.get_article_by_id(article.id)).status == "completed"

    @pytest.mark.asyncio
    async def test_unknown_article(self, store, router):
        trigger = PipelineTrigger(store, router)
        with pytest.raises(ArticleNotFoundError):
            await trigger.start_pipeline_execution("missing")
        assert trigger.pending == 0

    @pytest.mark.asyncio
    async def test_wait_all_without_tasks(self, store, router):
        assert await PipelineTrigger(store, router).wait_all() == []
