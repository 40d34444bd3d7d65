"""Tests for Slack notifications: webhook client, message builders, and
interaction payload parsing."""

from __future__ import annotations

import json
from datetime import date, datetime

import httpx
import pytest

from src.rld_compliance.deals.schemas import DealSnapshot
from src.rld_compliance.errors import SlackDeliveryError, SlackPayloadError
from src.rld_compliance.notifications.interactions import extract_interaction, parse_slack_action
from src.rld_compliance.notifications.messages import (
    build_decision_message,
    build_override_request_message,
)
from src.rld_compliance.notifications.slack import SlackNotifier

WEBHOOK_URL = "https://hooks.slack.test/services/T000/B000/XXX"
RESPONSE_URL = "https://hooks.slack.test/actions/T000/1/abc"


def _make_notifier(handler, webhook_url: str = WEBHOOK_URL) -> SlackNotifier:
    return SlackNotifier(webhook_url=webhook_url, transport=httpx.MockTransport(handler))


def _make_interaction(value: str = "approve_123", user: dict | None = None) -> dict:
    return {
        "type": "block_actions",
        "user": user if user is not None else {"id": "U1", "name": "morgan.lead"},
        "actions": [{"action_id": "approve_override", "value": value}],
        "response_url": RESPONSE_URL,
    }


# ── SlackNotifier ────────────────────────────────────────────────────────────


class TestSlackNotifier:
    async def test_notify_posts_to_webhook(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, text="ok")

        notifier = _make_notifier(handler)
        status = await notifier.notify({"text": "hello"})

        assert status == 200
        assert str(seen[0].url) == WEBHOOK_URL
        assert json.loads(seen[0].content) == {"text": "hello"}

    async def test_notify_rejected(self):
        notifier = _make_notifier(lambda request: httpx.Response(400, text="invalid_blocks"))
        with pytest.raises(SlackDeliveryError) as exc_info:
            await notifier.notify({"text": "hello"})
        assert exc_info.value.status_code == 400
        assert str(exc_info.value) == "Slack API error: 400 - invalid_blocks"

    async def test_notify_without_webhook(self):
        notifier = _make_notifier(lambda request: httpx.Response(200), webhook_url="")
        assert not notifier.configured
        with pytest.raises(SlackDeliveryError):
            await notifier.notify({"text": "hello"})

    async def test_respond_replaces_original(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, text="ok")

        notifier = _make_notifier(handler)
        await notifier.respond(RESPONSE_URL, {"text": "done"})

        assert str(seen[0].url) == RESPONSE_URL
        assert json.loads(seen[0].content) == {"text": "done", "replace_original": True}


# ── Message builders ─────────────────────────────────────────────────────────


class TestMessages:
    def test_override_request_message(self):
        deal = DealSnapshot(
            deal_id="123",
            deal_name="Acme Expansion",
            seat_count="250",
            close_date="2025-06-02T00:00:00Z",
            requested_launch_date="2025-06-16",
        )
        message = build_override_request_message(
            deal,
            violations=["RLD too soon (less than 4 weeks)"],
            suggested_rld=date(2025, 6, 30),
            requested_by="Sam Rep (sam@acme.com)",
            request_date=date(2025, 5, 1),
            rep_name="Sam Rep",
            deal_url="https://app.hubspot.com/contacts/1/deal/123",
        )

        assert message["blocks"][0]["text"]["text"] == "🆘 OVERRIDE REQUEST - Deal Compliance"
        rendered = json.dumps(message, ensure_ascii=False)
        assert "Acme Expansion" in rendered
        assert "250" in rendered
        assert "Sam Rep" in rendered
        assert "Mon, Jun 2, 2025" in rendered
        assert "Mon, Jun 16, 2025" in rendered
        assert "Mon, Jun 30, 2025" in rendered
        assert "RLD too soon (less than 4 weeks)" in rendered

        buttons = [
            element
            for block in message["blocks"]
            if block["type"] == "actions"
            for element in block["elements"]
        ]
        assert buttons[0]["action_id"] == "view_deal_button"
        assert buttons[0]["url"] == "https://app.hubspot.com/contacts/1/deal/123"

    def test_override_request_without_violations(self):
        deal = DealSnapshot(deal_id="123")
        message = build_override_request_message(
            deal,
            violations=[],
            suggested_rld=None,
            requested_by="Sam Rep",
            request_date=date(2025, 5, 1),
            rep_name="",
            deal_url="https://app.hubspot.com/contacts/1/deal/123",
        )
        rendered = json.dumps(message, ensure_ascii=False)
        assert "Multiple violations" in rendered
        assert "Unknown Deal" in rendered
        assert "Not set" in rendered

    @pytest.mark.parametrize(
        "action,expected",
        [
            ("approve", "✅ Override Approved - Deal #123"),
            ("deny", "❌ Override Denied - Deal #123"),
        ],
    )
    def test_decision_message(self, action, expected):
        message = build_decision_message(action, "123", "morgan.lead", datetime(2025, 5, 1, 14, 30))
        assert message["text"] == expected
        rendered = json.dumps(message, ensure_ascii=False)
        assert "morgan.lead" in rendered
        assert "05/01/2025, 02:30:00 PM" in rendered


# ── Interaction parsing ──────────────────────────────────────────────────────


class TestParseSlackAction:
    def test_form_payload_string(self):
        action = parse_slack_action({"payload": json.dumps(_make_interaction())})
        assert action.action == "approve"
        assert action.deal_id == "123"
        assert action.manager_name == "morgan.lead"
        assert action.manager_id == "U1"
        assert action.response_url == RESPONSE_URL

    def test_body_envelope(self):
        action = parse_slack_action({"body": _make_interaction("deny_456")})
        assert action.action == "deny"
        assert action.deal_id == "456"

    def test_parameters_envelope(self):
        envelope = {"parameters": {"payload": json.dumps(_make_interaction())}}
        assert parse_slack_action(envelope).deal_id == "123"

    def test_raw_bytes(self):
        raw = json.dumps(_make_interaction()).encode()
        assert parse_slack_action(raw).action == "approve"

    def test_top_level_interaction(self):
        assert parse_slack_action(_make_interaction()).deal_id == "123"

    @pytest.mark.parametrize(
        "user,expected",
        [
            ({"real_name": "Morgan Lead"}, "Morgan Lead"),
            ({"username": "mlead"}, "mlead"),
            ({}, "Manager"),
        ],
    )
    def test_manager_name_fallbacks(self, user, expected):
        action = parse_slack_action(_make_interaction(user=user))
        assert action.manager_name == expected

    def test_no_actions(self):
        with pytest.raises(SlackPayloadError, match="No Slack actions found in payload"):
            parse_slack_action({"payload": json.dumps({"type": "block_actions"})})

    def test_not_json(self):
        with pytest.raises(SlackPayloadError):
            parse_slack_action("not json")

    @pytest.mark.parametrize("value", ["approve", "escalate_123", "approve_", ""])
    def test_unrecognized_value(self, value):
        with pytest.raises(SlackPayloadError):
            parse_slack_action(_make_interaction(value))

    def test_extract_interaction_returns_decoded_dict(self):
        data = extract_interaction({"payload": json.dumps(_make_interaction())})
        assert data["actions"][0]["value"] == "approve_123"
