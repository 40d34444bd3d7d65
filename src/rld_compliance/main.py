"""FastAPI application factory.

Creates the app with logging middleware, CORS for the CRM extension iframe,
lifespan logging setup, and the v1 API router.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.rld_compliance.api.middleware.logging import LoggingMiddleware, configure_structlog
from src.rld_compliance.api.v1.router import router as v1_router
from src.rld_compliance.config import get_settings


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan: configure logging and report integrations."""
    settings = get_settings()
    configure_structlog(settings)
    log = structlog.get_logger(__name__)

    if not settings.has_hubspot_token():
        log.warning("startup.hubspot_token_missing")
    if not settings.SLACK_WEBHOOK_URL:
        log.warning("startup.slack_webhook_missing")

    log.info(
        "startup.complete",
        environment=settings.ENVIRONMENT.value,
        expansions_pipeline_id=settings.EXPANSIONS_PIPELINE_ID,
        business_timezone=settings.BUSINESS_TIMEZONE,
    )
    yield
    log.info("shutdown.complete")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="RLD Compliance API",
        version="0.1.0",
        description="Requested launch date compliance and override approvals for HubSpot deals",
        lifespan=lifespan,
    )

    # Middleware is added in reverse order (last added = outermost)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(LoggingMiddleware)

    app.include_router(v1_router)

    return app


# Module-level app for uvicorn
app = create_app()
