"""HubSpot deal property names and their mapping onto DealSnapshot fields.

Defines:
- Property name constants for every deal property the service reads or writes.
- DEAL_PROPERTY_MAP: internal field name -> HubSpot property name.
- DEFAULT_DEAL_PROPERTIES: the property list fetched when callers do not ask
  for specific ones.
- Well-known property values (auto-approval actor tag, legacy gate values).
"""

from __future__ import annotations

# ── Property Names ─────────────────────────────────────────────────────────

DEAL_NAME = "dealname"
SEAT_COUNT = "seat_count___final"
CLOSE_DATE = "closedate"
REQUESTED_LAUNCH_DATE = "requested_launch_date"
IS_CLOSED = "is_closed"
PIPELINE = "pipeline"

COMPLIANCE_STATUS = "compliance_status"
OVERRIDE_REQUEST_STATUS = "override_request_status"
OVERRIDE_REQUESTED_BY = "override_requested_by"
OVERRIDE_REQUEST_DATE = "override_request_date"
OVERRIDE_APPROVED_BY = "override_approved_by"
OVERRIDE_APPROVAL_DATE = "override_approval_date"
APPROVED_CLOSE_DATE = "approved_close_date"
APPROVED_RLD = "approved_rld"

# Legacy property that the deal-stage gate still reads before allowing
# Closed Won. Kept in sync with override_request_status.
LEGACY_OVERRIDE_APPROVAL = "rld_override_approval"


# ── Field Mapping ──────────────────────────────────────────────────────────

DEAL_PROPERTY_MAP: dict[str, str] = {
    "deal_name": DEAL_NAME,
    "seat_count": SEAT_COUNT,
    "close_date": CLOSE_DATE,
    "requested_launch_date": REQUESTED_LAUNCH_DATE,
    "is_closed": IS_CLOSED,
    "pipeline": PIPELINE,
    "compliance_status": COMPLIANCE_STATUS,
    "override_status": OVERRIDE_REQUEST_STATUS,
    "override_requested_by": OVERRIDE_REQUESTED_BY,
    "override_request_date": OVERRIDE_REQUEST_DATE,
    "override_approved_by": OVERRIDE_APPROVED_BY,
    "override_approval_date": OVERRIDE_APPROVAL_DATE,
    "approved_close_date": APPROVED_CLOSE_DATE,
    "approved_rld": APPROVED_RLD,
    "legacy_approval": LEGACY_OVERRIDE_APPROVAL,
}

DEFAULT_DEAL_PROPERTIES: list[str] = list(DEAL_PROPERTY_MAP.values())

# Fields wiped whenever an approval is invalidated.
OVERRIDE_CLEAR_PROPERTIES: tuple[str, ...] = (
    OVERRIDE_APPROVED_BY,
    OVERRIDE_APPROVAL_DATE,
    OVERRIDE_REQUESTED_BY,
    OVERRIDE_REQUEST_DATE,
    LEGACY_OVERRIDE_APPROVAL,
    APPROVED_CLOSE_DATE,
    APPROVED_RLD,
)


# ── Well-known Values ──────────────────────────────────────────────────────

AUTO_APPROVED_BY = "Auto-approved (Compliant)"

LEGACY_APPROVED = "Approved"
LEGACY_APPROVED_WITH_OVERRIDE = "Approved with Override"
LEGACY_CLOSING_VALUES: frozenset[str] = frozenset(
    {LEGACY_APPROVED, LEGACY_APPROVED_WITH_OVERRIDE}
)
