"""Async Slack webhook client.

Posts Block Kit messages to the configured incoming webhook and to the
``response_url`` of an interaction (optionally replacing the original
message). Retries follow the HubSpot adapter: 3 attempts with exponential
backoff on connection errors and timeouts.
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from src.rld_compliance.errors import SlackDeliveryError

logger = structlog.get_logger(__name__)

_slack_retry = retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    retry=retry_if_exception_type((httpx.ConnectError, httpx.TimeoutException)),
    reraise=True,
)


class SlackNotifier:
    """Sends messages to a Slack incoming webhook.

    Args:
        webhook_url: Incoming webhook URL for override requests. May be empty,
            in which case ``notify`` raises SlackDeliveryError.
        timeout: Request timeout in seconds.
        transport: Optional httpx transport (tests use httpx.MockTransport).
    """

    def __init__(
        self,
        webhook_url: str,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._webhook_url = webhook_url
        self._timeout = timeout
        self._transport = transport

    @property
    def configured(self) -> bool:
        return bool(self._webhook_url)

    @_slack_retry
    async def post(self, url: str, payload: dict[str, Any]) -> int:
        """POST a JSON payload to ``url``. Raises SlackDeliveryError on non-2xx."""
        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            response = await client.post(url, json=payload)
        if response.status_code >= 300:
            logger.warning(
                "slack.post_rejected",
                status_code=response.status_code,
                body=response.text[:200],
            )
            raise SlackDeliveryError(response.status_code, response.text)
        return response.status_code

    async def notify(self, payload: dict[str, Any]) -> int:
        """Post to the configured incoming webhook."""
        if not self._webhook_url:
            raise SlackDeliveryError(0, "No webhook URL")
        status_code = await self.post(self._webhook_url, payload)
        logger.info("slack.notification_sent", status_code=status_code)
        return status_code

    async def respond(
        self,
        response_url: str,
        payload: dict[str, Any],
        replace_original: bool = True,
    ) -> int:
        """Post to an interaction response_url, replacing the original message."""
        body = {**payload, "replace_original": replace_original}
        status_code = await self.post(response_url, body)
        logger.info(
            "slack.message_replaced" if replace_original else "slack.message_responded",
            status_code=status_code,
        )
        return status_code
