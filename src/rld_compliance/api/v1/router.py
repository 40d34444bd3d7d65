"""V1 API router -- aggregates all v1 endpoint routers."""

from __future__ import annotations

from fastapi import APIRouter

from src.rld_compliance.api.v1 import deals, health, slack

router = APIRouter(prefix="/api/v1")

router.include_router(health.router)
router.include_router(deals.router)
router.include_router(slack.router)
