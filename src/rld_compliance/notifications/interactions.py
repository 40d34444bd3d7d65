"""Parsing of Slack interactive-message (button) payloads.

Slack delivers block actions as a form field ``payload`` holding JSON; other
relays forward the decoded object under ``body`` or as the whole request. The
clicked button's value encodes the decision and deal, e.g. ``approve_39542884170``.
"""

from __future__ import annotations

import json
from typing import Any

from pydantic import BaseModel

from src.rld_compliance.errors import SlackPayloadError

VALID_ACTIONS = frozenset({"approve", "deny"})


class SlackAction(BaseModel):
    """A manager's button click."""

    action: str
    deal_id: str
    manager_name: str
    manager_id: str | None = None
    response_url: str | None = None


def _decode(value: Any) -> Any:
    if isinstance(value, (str, bytes)):
        try:
            return json.loads(value)
        except ValueError as exc:
            raise SlackPayloadError(f"Payload is not valid JSON: {exc}") from exc
    return value


def extract_interaction(envelope: Any) -> dict[str, Any]:
    """Locate the interaction object inside whatever envelope it arrived in."""
    envelope = _decode(envelope)
    if not isinstance(envelope, dict):
        raise SlackPayloadError("No Slack actions found in payload")

    if envelope.get("body"):
        data = _decode(envelope["body"])
    elif isinstance(envelope.get("parameters"), dict) and envelope["parameters"].get("payload"):
        data = _decode(envelope["parameters"]["payload"])
    elif envelope.get("payload"):
        data = _decode(envelope["payload"])
    else:
        data = envelope

    if not isinstance(data, dict) or not data.get("actions"):
        raise SlackPayloadError("No Slack actions found in payload")
    return data


def parse_slack_action(envelope: Any) -> SlackAction:
    """Parse the first action of an interaction payload.

    Raises:
        SlackPayloadError: If no action is present or its value is malformed.
    """
    data = extract_interaction(envelope)
    action = data["actions"][0]
    value = str(action.get("value") or "")

    action_type, _, deal_id = value.partition("_")
    if action_type not in VALID_ACTIONS or not deal_id:
        raise SlackPayloadError(f"Unrecognized action value: {value!r}")

    user = data.get("user") or {}
    manager_name = (
        user.get("name") or user.get("real_name") or user.get("username") or "Manager"
    )

    return SlackAction(
        action=action_type,
        deal_id=deal_id,
        manager_name=manager_name,
        manager_id=user.get("id"),
        response_url=data.get("response_url"),
    )
