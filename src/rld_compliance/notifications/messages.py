"""Slack Block Kit message builders for override requests and decisions."""

from __future__ import annotations

from datetime import date, datetime
from typing import Any

from src.rld_compliance.compliance.dates import format_display
from src.rld_compliance.deals.schemas import DealSnapshot


def _section(text: str) -> dict[str, Any]:
    return {"type": "section", "text": {"type": "mrkdwn", "text": text}}


def _fields(*texts: str) -> dict[str, Any]:
    return {
        "type": "section",
        "fields": [{"type": "mrkdwn", "text": text} for text in texts],
    }


def _header(text: str) -> dict[str, Any]:
    return {"type": "header", "text": {"type": "plain_text", "text": text, "emoji": True}}


def build_override_request_message(
    deal: DealSnapshot,
    *,
    violations: list[str],
    suggested_rld: date | None,
    requested_by: str,
    request_date: date,
    rep_name: str,
    deal_url: str,
) -> dict[str, Any]:
    """Message announcing a pending override request to managers.

    Carries a link button to the deal rather than approve/deny buttons;
    approval happens in the CRM.
    """
    violation_text = ", ".join(violations) if violations else "Multiple violations"
    deal_name = deal.deal_name or "Unknown Deal"

    return {
        "text": f"🆘 Override Request - {deal.deal_name or 'Deal'} requires approval",
        "blocks": [
            _header("🆘 OVERRIDE REQUEST - Deal Compliance"),
            _section(f"*📋 Deal:* {deal_name}"),
            _fields(
                f"*💰 Seats:* {deal.seat_count or 'Unknown'}",
                f"*👤 Rep:* {rep_name or 'Unknown Rep'}",
            ),
            _fields(
                f"*📅 Close Date:* {format_display(deal.close_date)}",
                f"*🚨 Violation:* {violation_text}",
                f"*📍 Current RLD:* {format_display(deal.requested_launch_date)}",
                f"*💡 Suggested RLD:* {format_display(suggested_rld)}",
            ),
            {"type": "divider"},
            _section(
                "⚠️ *Action Required:* Please review and approve this override request "
                "in HubSpot.\n\n"
                "*Status:* ⏳ Pending Approval\n"
                f"*Requested by:* {requested_by}\n"
                f"*Request date:* {format_display(request_date)}"
            ),
            {
                "type": "actions",
                "elements": [
                    {
                        "type": "button",
                        "text": {
                            "type": "plain_text",
                            "text": "🔗 View Deal in HubSpot",
                            "emoji": True,
                        },
                        "url": deal_url,
                        "action_id": "view_deal_button",
                    }
                ],
            },
        ],
    }


def build_decision_message(
    action: str,
    deal_id: str,
    manager_name: str,
    decided_at: datetime,
) -> dict[str, Any]:
    """Replacement message shown after a manager approves or denies."""
    approved = action == "approve"
    icon = "✅" if approved else "❌"
    verb = "Approved" if approved else "Denied"
    outcome = (
        "✅ *Deal can now be closed won.* The sales rep has been notified."
        if approved
        else "❌ *Deal closure remains blocked.* The sales rep should adjust dates "
        "or request a new override."
    )
    decided = decided_at.strftime("%m/%d/%Y, %I:%M:%S %p")

    return {
        "text": f"{icon} Override {verb} - Deal #{deal_id}",
        "blocks": [
            _header(f"{icon} OVERRIDE {action.upper()} - Deal Compliance"),
            _section(
                f"{icon} *Override {verb.upper()}* by {manager_name}\n\n"
                f"*Deal:* Deal #{deal_id}\n*Decision made at:* {decided} ET"
            ),
            _section(outcome),
            {
                "type": "context",
                "elements": [
                    {"type": "mrkdwn", "text": f"Deal ID: {deal_id} | Manager: {manager_name}"}
                ],
            },
        ],
    }
