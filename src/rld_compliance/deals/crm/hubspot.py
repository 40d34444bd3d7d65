"""HubSpot CRM adapter over the CRM v3 deal objects API.

Key implementation details:
- Private app token auth (Bearer header)
- One PATCH per update so multi-property writes are atomic on HubSpot's side
- tenacity retry + exponential backoff on connection errors, timeouts,
  HTTP 429 and 5xx; other 4xx responses fail immediately
- httpx errors and non-JSON bodies are translated to CRMError
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog
from tenacity import retry, retry_if_exception, stop_after_attempt, wait_exponential

from src.rld_compliance.deals.crm.adapter import CRMAdapter
from src.rld_compliance.errors import CRMError

logger = structlog.get_logger(__name__)


def _is_retryable(exc: BaseException) -> bool:
    if isinstance(exc, (httpx.ConnectError, httpx.TimeoutException)):
        return True
    if isinstance(exc, httpx.HTTPStatusError):
        code = exc.response.status_code
        return code == 429 or code >= 500
    return False


_hubspot_retry = retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    retry=retry_if_exception(_is_retryable),
    reraise=True,
)


def _error_message(response: httpx.Response) -> str:
    """Extract HubSpot's error message from a failed response."""
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return f"HubSpot API error: HTTP {response.status_code}"


class HubSpotAdapter(CRMAdapter):
    """Async HubSpot deal adapter.

    Args:
        access_token: Private app access token.
        base_url: API root, https://api.hubapi.com unless testing.
        timeout_read: Timeout for GET calls (seconds).
        timeout_mutate: Timeout for PATCH calls (seconds).
        transport: Optional httpx transport (tests use httpx.MockTransport).
    """

    def __init__(
        self,
        access_token: str,
        base_url: str = "https://api.hubapi.com",
        timeout_read: float = 10.0,
        timeout_mutate: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._headers = {
            "Authorization": f"Bearer {access_token}",
            "Content-Type": "application/json",
        }
        self._timeout_read = timeout_read
        self._timeout_mutate = timeout_mutate
        self._transport = transport

    def _client(self, timeout: float) -> httpx.AsyncClient:
        """Create a new httpx client with specified timeout."""
        return httpx.AsyncClient(
            headers=self._headers,
            timeout=timeout,
            transport=self._transport,
        )

    def _deal_url(self, deal_id: str) -> str:
        return f"{self._base_url}/crm/v3/objects/deals/{deal_id}"

    async def get_deal_properties(
        self, deal_id: str, properties: list[str]
    ) -> dict[str, Any]:
        """GET /crm/v3/objects/deals/{id}?properties=... and return properties."""
        try:
            data = await self._get_deal(deal_id, properties)
        except httpx.HTTPStatusError as exc:
            raise CRMError(_error_message(exc.response), exc.response.status_code) from exc
        except httpx.HTTPError as exc:
            raise CRMError(f"HubSpot request failed: {exc}") from exc
        except ValueError as exc:
            raise CRMError(f"HubSpot returned an invalid response: {exc}") from exc

        fetched = data.get("properties") or {}
        logger.info(
            "hubspot.deal_fetched",
            deal_id=deal_id,
            properties=sorted(fetched.keys()),
        )
        return fetched

    async def update_deal_properties(
        self, deal_id: str, properties: dict[str, str]
    ) -> dict[str, Any]:
        """PATCH /crm/v3/objects/deals/{id} with every property at once."""
        try:
            data = await self._patch_deal(deal_id, properties)
        except httpx.HTTPStatusError as exc:
            raise CRMError(_error_message(exc.response), exc.response.status_code) from exc
        except httpx.HTTPError as exc:
            raise CRMError(f"HubSpot request failed: {exc}") from exc
        except ValueError as exc:
            raise CRMError(f"HubSpot returned an invalid response: {exc}") from exc

        logger.info(
            "hubspot.deal_updated",
            deal_id=deal_id,
            fields=sorted(properties.keys()),
        )
        return {"id": data.get("id", deal_id), "updatedAt": data.get("updatedAt")}

    @_hubspot_retry
    async def _get_deal(self, deal_id: str, properties: list[str]) -> dict[str, Any]:
        async with self._client(self._timeout_read) as client:
            response = await client.get(
                self._deal_url(deal_id),
                params={"properties": ",".join(properties)},
            )
            response.raise_for_status()
            return response.json()

    @_hubspot_retry
    async def _patch_deal(self, deal_id: str, properties: dict[str, str]) -> dict[str, Any]:
        async with self._client(self._timeout_mutate) as client:
            response = await client.patch(
                self._deal_url(deal_id),
                json={"properties": properties},
            )
            response.raise_for_status()
            return response.json()
