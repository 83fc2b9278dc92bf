# src/notify/email.py
"""Completion notification: best-effort email when an article is ready.

Notification failures never fail a pipeline; every error is logged and
swallowed here.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

import httpx

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Recipient:
    email: str
    name: str = "User"


RecipientLookup = Callable[[str | None], Awaitable[Recipient | None]]


class BaseNotifier(ABC):
    """Interface for completion notifications."""

    @abstractmethod
    async def send_completion_email(
        self, slug: str, current_version: int | None, user_id: str | None = None
    ) -> None:
        """Notify that article slug (version) finished. Must not raise."""


class NullNotifier(BaseNotifier):
    """Notifier used when notifications are disabled."""

    async def send_completion_email(
        self, slug: str, current_version: int | None, user_id: str | None = None
    ) -> None:
        logger.debug("Notifications disabled, skipping email for %s", slug)


def build_completion_email(
    recipient: Recipient, slug: str, current_version: int | None, app_base_url: str
) -> dict:
    """JSON body accepted by the send endpoint."""
    version = current_version or 1
    return {
        "to": [recipient.email],
        "subject": f"Article Complete: {slug} version {version}",
        "href": f"{app_base_url}/article?slug={slug}&version={version}",
        "name": recipient.name or "User",
        "slug": slug,
        "version": version,
    }


class HttpEmailNotifier(BaseNotifier):
    """Posts the completion email to the application's send endpoint."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        app_base_url: str,
        recipient_lookup: RecipientLookup,
        send_endpoint: str = "send",
    ) -> None:
        self._client = client
        self._app_base_url = app_base_url.rstrip("/")
        self._lookup = recipient_lookup
        self._send_endpoint = send_endpoint

    async def send_completion_email(
        self, slug: str, current_version: int | None, user_id: str | None = None
    ) -> None:
        try:
            recipient = await self._lookup(user_id)
            if recipient is None or not recipient.email:
                logger.warning("No email address for completion notification (%s)", slug)
                return
            body = build_completion_email(
                recipient, slug, current_version, self._app_base_url
            )
            response = await self._client.post(self._send_endpoint, json=body)
            response.raise_for_status()
            logger.info("Completion email sent to %s", recipient.email)
        except Exception as e:
            logger.error("Failed to send completion email for %s: %s", slug, e)
