"""Structured logging setup and per-request logging middleware.

``configure_structlog`` wires structlog onto stdlib logging once at startup:
console output in development, JSON lines in production.

``LoggingMiddleware`` binds ``request_id`` (and ``deal_id`` for deal routes)
into structlog's context variables, so every event logged while handling the
request (workflow, HubSpot, Slack) carries them. It then emits one
``request_completed`` event with status and timing.
"""

from __future__ import annotations

import logging
import re
import time
import uuid

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from src.rld_compliance.config import Environment, Settings, get_settings

logger = structlog.get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

_DEAL_PATH = re.compile(r"/deals/(?P<deal_id>[^/]+)")


def configure_structlog(settings: Settings | None = None) -> None:
    """Configure structlog and the stdlib root logger."""
    settings = settings or get_settings()

    logging.basicConfig(format="%(message)s", level=settings.LOG_LEVEL.upper())

    renderer = (
        structlog.processors.JSONRenderer()
        if settings.ENVIRONMENT == Environment.production
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def _elapsed_ms(start: float) -> float:
    return round((time.monotonic() - start) * 1000, 2)


def _bind_deal(path: str) -> None:
    # Routing has not run yet, and the endpoint only sees context bound before
    # call_next, so the deal id comes from the raw path.
    match = _DEAL_PATH.search(path)
    if match:
        structlog.contextvars.bind_contextvars(deal_id=match.group("deal_id"))


class LoggingMiddleware(BaseHTTPMiddleware):
    """Binds request context for structlog and logs each request once.

    Reuses an incoming X-Request-ID (HubSpot and Slack relays may set one)
    and echoes it on the response.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)
        _bind_deal(request.url.path)
        start = time.monotonic()

        try:
            response = await call_next(request)
        except Exception:
            logger.exception(
                "request_failed",
                method=request.method,
                path=request.url.path,
                duration_ms=_elapsed_ms(start),
            )
            raise

        response.headers[REQUEST_ID_HEADER] = request_id

        if response.status_code >= 500:
            emit = logger.error
        elif response.status_code >= 400:
            emit = logger.warning
        else:
            emit = logger.info
        emit(
            "request_completed",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=_elapsed_ms(start),
        )
        structlog.contextvars.clear_contextvars()
        return response
