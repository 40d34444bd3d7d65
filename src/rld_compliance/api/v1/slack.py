"""Slack interactivity endpoint for the approve/deny buttons.

Slack posts block actions as ``application/x-www-form-urlencoded`` with a
single ``payload`` field. JSON bodies (relays, tests) are accepted as well.
Slack only needs a fast 200; the outcome is reported in the body and in the
replaced message.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Request

from src.rld_compliance.api.deps import get_workflow
from src.rld_compliance.deals.schemas import OperationResult
from src.rld_compliance.deals.workflow import OverrideWorkflow

router = APIRouter(prefix="/slack", tags=["slack"])


async def _read_envelope(request: Request) -> Any:
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("application/x-www-form-urlencoded"):
        form = await request.form()
        return {"payload": form.get("payload")}
    return await request.body()


@router.post("/actions", response_model=OperationResult)
async def slack_actions(
    request: Request,
    workflow: OverrideWorkflow = Depends(get_workflow),
) -> OperationResult:
    """Handle an approve/deny button click."""
    envelope = await _read_envelope(request)
    return await workflow.handle_slack_action(envelope)
