"""Approval state reconciliation.

Compares a deal's persisted approval/compliance properties with freshly
evaluated violations and plans the minimal set of property writes that brings
them back in line. Pure: no I/O, ``today`` is passed in.

Transition policy, evaluated in this order:
1. Approved and close date or RLD drifted from the approval-time snapshot
   -> clear every override field (strict mode, manual approvals included).
2. Compliant and not approved -> auto-approve and snapshot both dates.
3. Not compliant and approved by the auto-approval tag -> clear.
4. Anything else -> untouched. Manual approvals survive non-compliance;
   that is what overrides are for.

After a drift clear the remaining rules run against the cleared state, so a
compliant deal is re-approved with fresh snapshots in the same pass. This
keeps reconcile(apply(reconcile(deal))) a no-op.
"""

from __future__ import annotations

from datetime import date
from enum import Enum

import structlog
from pydantic import BaseModel, Field

from src.rld_compliance.compliance.dates import format_for_api, normalize_date_value
from src.rld_compliance.compliance.evaluator import is_compliant, primary_violation
from src.rld_compliance.compliance.schemas import Violation, ViolationType
from src.rld_compliance.deals import properties as props
from src.rld_compliance.deals.schemas import DealSnapshot, OverrideStatus

logger = structlog.get_logger(__name__)


class Transition(str, Enum):
    DATE_DRIFT_CLEARED = "date_drift_cleared"
    AUTO_APPROVED = "auto_approved"
    STALE_AUTO_APPROVAL_CLEARED = "stale_auto_approval_cleared"


class ReconciliationPlan(BaseModel):
    """Property writes needed to make a deal's approval state consistent."""

    deal_id: str
    compliance_status: ViolationType
    updates: dict[str, str] = Field(default_factory=dict)
    transitions: list[Transition] = Field(default_factory=list)

    @property
    def has_changes(self) -> bool:
        return bool(self.updates)


def cleared_override_properties() -> dict[str, str]:
    """Property values that reset a deal to ``none`` with no approval."""
    cleared = {prop: "" for prop in props.OVERRIDE_CLEAR_PROPERTIES}
    cleared[props.OVERRIDE_REQUEST_STATUS] = OverrideStatus.NONE.value
    return cleared


def approval_properties(
    deal: DealSnapshot,
    approved_by: str,
    approval_date: date,
    legacy_value: str,
) -> dict[str, str]:
    """Property values recording an approval and snapshotting both dates."""
    return {
        props.OVERRIDE_REQUEST_STATUS: OverrideStatus.APPROVED.value,
        props.OVERRIDE_APPROVED_BY: approved_by,
        props.OVERRIDE_APPROVAL_DATE: format_for_api(approval_date) or "",
        props.LEGACY_OVERRIDE_APPROVAL: legacy_value,
        props.APPROVED_CLOSE_DATE: normalize_date_value(deal.close_date),
        props.APPROVED_RLD: normalize_date_value(deal.requested_launch_date),
    }


def _drifted(current: str | None, approved: str | None) -> bool:
    """A snapshot only counts when one was recorded."""
    if not approved:
        return False
    return normalize_date_value(current) != normalize_date_value(approved)


def dates_changed_since_approval(deal: DealSnapshot) -> bool:
    if not deal.is_approved:
        return False
    return _drifted(deal.close_date, deal.approved_close_date) or _drifted(
        deal.requested_launch_date, deal.approved_rld
    )


def reconcile(
    deal: DealSnapshot,
    violations: list[Violation],
    today: date,
) -> ReconciliationPlan:
    """Plan the property writes for a deal given its current violations."""
    status = primary_violation(violations)
    compliant = is_compliant(violations)

    planned: dict[str, str] = {}
    transitions: list[Transition] = []

    if (deal.compliance_status or "") != status.value:
        planned[props.COMPLIANCE_STATUS] = status.value

    state = deal
    if dates_changed_since_approval(state):
        logger.info(
            "reconcile.date_drift_cleared",
            deal_id=deal.deal_id,
            close_date=deal.close_date,
            approved_close_date=deal.approved_close_date,
            rld=deal.requested_launch_date,
            approved_rld=deal.approved_rld,
            approval_type=(
                "auto" if deal.override_approved_by == props.AUTO_APPROVED_BY else "manual"
            ),
        )
        cleared = cleared_override_properties()
        planned.update(cleared)
        transitions.append(Transition.DATE_DRIFT_CLEARED)
        state = state.with_updates(cleared)

    if compliant:
        if not state.is_approved:
            approval = approval_properties(
                state, props.AUTO_APPROVED_BY, today, props.LEGACY_APPROVED
            )
            planned.update(approval)
            transitions.append(Transition.AUTO_APPROVED)
            logger.info("reconcile.auto_approved", deal_id=deal.deal_id)
    elif state.is_approved and state.override_approved_by == props.AUTO_APPROVED_BY:
        planned.update(cleared_override_properties())
        transitions.append(Transition.STALE_AUTO_APPROVAL_CLEARED)
        logger.info("reconcile.stale_auto_approval_cleared", deal_id=deal.deal_id)

    updates = _changed_only(deal, planned)
    return ReconciliationPlan(
        deal_id=deal.deal_id,
        compliance_status=status,
        updates=updates,
        transitions=transitions,
    )


def _changed_only(deal: DealSnapshot, planned: dict[str, str]) -> dict[str, str]:
    """Drop planned writes whose value already matches the deal."""
    current = deal.to_properties()
    return {prop: value for prop, value in planned.items() if current.get(prop, "") != value}
