"""Tests for the HubSpot deal adapter against a mocked HTTP transport."""

from __future__ import annotations

import json

import httpx
import pytest
from tenacity import wait_none

from src.rld_compliance.deals.crm.adapter import CRMAdapter
from src.rld_compliance.deals.crm.hubspot import HubSpotAdapter
from src.rld_compliance.errors import CRMError

BASE_URL = "https://api.hubspot.test"


def _make_adapter(handler) -> HubSpotAdapter:
    return HubSpotAdapter(
        access_token="pat-test",
        base_url=BASE_URL,
        transport=httpx.MockTransport(handler),
    )


@pytest.fixture
def no_retry_wait(monkeypatch):
    """Remove backoff sleeps so retry tests run instantly."""
    monkeypatch.setattr(HubSpotAdapter._get_deal.retry, "wait", wait_none())
    monkeypatch.setattr(HubSpotAdapter._patch_deal.retry, "wait", wait_none())


class TestGetDealProperties:
    async def test_returns_properties(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(
                200,
                json={
                    "id": "123",
                    "properties": {"dealname": "Acme", "closedate": "2025-06-02T00:00:00Z"},
                },
            )

        adapter = _make_adapter(handler)
        result = await adapter.get_deal_properties("123", ["dealname", "closedate"])

        assert result == {"dealname": "Acme", "closedate": "2025-06-02T00:00:00Z"}
        request = seen[0]
        assert request.method == "GET"
        assert request.url.path == "/crm/v3/objects/deals/123"
        assert request.url.params["properties"] == "dealname,closedate"
        assert request.headers["Authorization"] == "Bearer pat-test"

    async def test_missing_properties_key(self):
        adapter = _make_adapter(lambda request: httpx.Response(200, json={"id": "123"}))
        assert await adapter.get_deal_properties("123", ["dealname"]) == {}

    async def test_not_found_raises_crm_error(self):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(404, json={"status": "error", "message": "resource not found"})

        adapter = _make_adapter(handler)
        with pytest.raises(CRMError) as exc_info:
            await adapter.get_deal_properties("999", ["dealname"])

        assert exc_info.value.status_code == 404
        assert str(exc_info.value) == "resource not found"
        # 4xx is not retried
        assert len(calls) == 1

    async def test_error_without_json_body(self):
        adapter = _make_adapter(lambda request: httpx.Response(401, text="Unauthorized"))
        with pytest.raises(CRMError) as exc_info:
            await adapter.get_deal_properties("123", ["dealname"])
        assert exc_info.value.status_code == 401
        assert "HTTP 401" in str(exc_info.value)

    async def test_server_errors_are_retried(self, no_retry_wait):
        responses = iter(
            [
                httpx.Response(503, json={"message": "unavailable"}),
                httpx.Response(200, json={"properties": {"dealname": "Acme"}}),
            ]
        )
        adapter = _make_adapter(lambda request: next(responses))
        assert await adapter.get_deal_properties("123", ["dealname"]) == {"dealname": "Acme"}

    async def test_rate_limit_exhausts_retries(self, no_retry_wait):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(429, json={"message": "rate limited"})

        adapter = _make_adapter(handler)
        with pytest.raises(CRMError) as exc_info:
            await adapter.get_deal_properties("123", ["dealname"])
        assert exc_info.value.status_code == 429
        assert len(calls) == 3

    async def test_connection_error_becomes_crm_error(self, no_retry_wait):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        adapter = _make_adapter(handler)
        with pytest.raises(CRMError) as exc_info:
            await adapter.get_deal_properties("123", ["dealname"])
        assert exc_info.value.status_code is None
        assert "HubSpot request failed" in str(exc_info.value)


class TestUpdateDealProperties:
    async def test_patches_all_properties_at_once(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"id": "123", "updatedAt": "2025-05-01T12:00:00Z"})

        adapter = _make_adapter(handler)
        ack = await adapter.update_deal_properties(
            "123", {"requested_launch_date": "2025-06-30", "compliance_status": "compliant"}
        )

        assert ack == {"id": "123", "updatedAt": "2025-05-01T12:00:00Z"}
        assert len(seen) == 1
        request = seen[0]
        assert request.method == "PATCH"
        assert request.url.path == "/crm/v3/objects/deals/123"
        assert json.loads(request.content) == {
            "properties": {
                "requested_launch_date": "2025-06-30",
                "compliance_status": "compliant",
            }
        }

    async def test_single_property_delegates_to_batch(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"id": "123", "updatedAt": "2025-05-01T12:00:00Z"})

        adapter = _make_adapter(handler)
        await adapter.update_deal_property("123", "requested_launch_date", "2025-06-30")
        assert json.loads(seen[0].content) == {
            "properties": {"requested_launch_date": "2025-06-30"}
        }

    async def test_validation_error(self):
        adapter = _make_adapter(
            lambda request: httpx.Response(
                400, json={"message": "Property values were not valid"}
            )
        )
        with pytest.raises(CRMError) as exc_info:
            await adapter.update_deal_properties("123", {"closedate": "nope"})
        assert exc_info.value.status_code == 400
        assert str(exc_info.value) == "Property values were not valid"


class TestCRMAdapterContract:
    def test_hubspot_is_a_crm_adapter(self):
        assert issubclass(HubSpotAdapter, CRMAdapter)

    def test_abstract_adapter_cannot_be_instantiated(self):
        with pytest.raises(TypeError):
            CRMAdapter()


class TestInvalidResponses:
    async def test_non_json_deal_body_becomes_crm_error(self):
        adapter = _make_adapter(
            lambda request: httpx.Response(200, text="<html>gateway</html>")
        )
        with pytest.raises(CRMError) as exc_info:
            await adapter.get_deal_properties("123", ["dealname"])
        assert str(exc_info.value).startswith("HubSpot returned an invalid response")

    async def test_non_json_update_body_becomes_crm_error(self):
        adapter = _make_adapter(
            lambda request: httpx.Response(200, text="<html>gateway</html>")
        )
        with pytest.raises(CRMError) as exc_info:
            await adapter.update_deal_properties("123", {"dealname": "Acme"})
        assert str(exc_info.value).startswith("HubSpot returned an invalid response")
