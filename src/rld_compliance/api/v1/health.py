"""Health check endpoint.

Liveness only: reports the environment and which integrations are
configured, without calling HubSpot or Slack.
"""

from __future__ import annotations

from fastapi import APIRouter

from src.rld_compliance.config import get_settings

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check():
    """Basic liveness check."""
    settings = get_settings()
    return {
        "status": "ok",
        "environment": settings.ENVIRONMENT.value,
        "hubspot_configured": settings.has_hubspot_token(),
        "slack_configured": bool(settings.SLACK_WEBHOOK_URL),
    }
