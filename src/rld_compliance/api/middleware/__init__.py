"""API middleware package."""

from src.rld_compliance.api.middleware.logging import LoggingMiddleware

__all__ = ["LoggingMiddleware"]
