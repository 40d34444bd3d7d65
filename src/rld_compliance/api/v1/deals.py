"""REST API endpoints for deal compliance and overrides.

Each endpoint maps to one workflow operation and returns its OperationResult
as-is: failures are reported in the body (``success: false``) rather than as
HTTP errors, so the CRM sidebar can show the message and diagnostics.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from src.rld_compliance.api.deps import get_workflow
from src.rld_compliance.deals.schemas import Actor, OperationResult
from src.rld_compliance.deals.workflow import OverrideWorkflow

router = APIRouter(prefix="/deals", tags=["deals"])


# ── Request Schemas ──────────────────────────────────────────────────────────


class UpdatePropertyRequest(BaseModel):
    """Request body for writing a single deal property."""

    property: str | None = None
    value: str | None = None


class SetRLDRequest(BaseModel):
    """Request body for setting a custom requested launch date."""

    date: str | None = None
    request_override: bool = False
    actor: Actor | None = None


class ActorRequest(BaseModel):
    """Request body carrying the acting CRM user."""

    actor: Actor


# ── Endpoints ────────────────────────────────────────────────────────────────


@router.get("/{deal_id}/properties", response_model=OperationResult)
async def get_deal_properties(
    deal_id: str,
    properties: str | None = Query(default=None, description="Comma-separated property names"),
    workflow: OverrideWorkflow = Depends(get_workflow),
) -> OperationResult:
    """Fetch deal properties (the tracked compliance set by default)."""
    requested = [p.strip() for p in properties.split(",") if p.strip()] if properties else None
    return await workflow.get_deal(deal_id, requested)


@router.patch("/{deal_id}/properties", response_model=OperationResult)
async def update_deal_property(
    deal_id: str,
    body: UpdatePropertyRequest,
    workflow: OverrideWorkflow = Depends(get_workflow),
) -> OperationResult:
    """Write a single deal property."""
    return await workflow.update_property(deal_id, body.property, body.value)


@router.get("/{deal_id}/compliance", response_model=OperationResult)
async def get_compliance(
    deal_id: str,
    workflow: OverrideWorkflow = Depends(get_workflow),
) -> OperationResult:
    """Violations, suggested RLD and closing gate for a deal (no writes)."""
    return await workflow.evaluate_deal(deal_id)


@router.post("/{deal_id}/compliance/sync", response_model=OperationResult)
async def sync_compliance(
    deal_id: str,
    workflow: OverrideWorkflow = Depends(get_workflow),
) -> OperationResult:
    """Re-evaluate the deal and write back compliance and approval state."""
    return await workflow.sync_compliance(deal_id)


@router.post("/{deal_id}/rld/suggested", response_model=OperationResult)
async def apply_suggested_rld(
    deal_id: str,
    workflow: OverrideWorkflow = Depends(get_workflow),
) -> OperationResult:
    """Replace the RLD with the suggested launch date."""
    return await workflow.apply_suggested_rld(deal_id)


@router.post("/{deal_id}/rld", response_model=OperationResult)
async def set_custom_rld(
    deal_id: str,
    body: SetRLDRequest,
    workflow: OverrideWorkflow = Depends(get_workflow),
) -> OperationResult:
    """Set a custom RLD, optionally requesting an override when non-compliant."""
    if body.request_override:
        if body.actor is None:
            return OperationResult.fail("Actor is required to request an override", deal_id=deal_id)
        return await workflow.set_custom_rld_with_override(deal_id, body.date, body.actor)
    return await workflow.set_custom_rld(deal_id, body.date)


@router.post("/{deal_id}/override/request", response_model=OperationResult)
async def request_override(
    deal_id: str,
    body: ActorRequest,
    workflow: OverrideWorkflow = Depends(get_workflow),
) -> OperationResult:
    """Mark the deal pending approval and notify managers on Slack."""
    return await workflow.request_override(deal_id, body.actor)


@router.post("/{deal_id}/override/approve", response_model=OperationResult)
async def approve_override(
    deal_id: str,
    body: ActorRequest,
    workflow: OverrideWorkflow = Depends(get_workflow),
) -> OperationResult:
    """Approve a pending override (approvers only)."""
    return await workflow.approve_override(deal_id, body.actor)
