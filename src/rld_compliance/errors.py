"""Domain exceptions for the compliance service.

Clients and the rule engine raise these; the override workflow converts them
into structured ``OperationResult`` failures at its boundary.
"""

from __future__ import annotations


class ComplianceServiceError(Exception):
    """Base class for all service errors."""


class InvalidDateError(ComplianceServiceError, ValueError):
    """Raised when a date value cannot be parsed."""

    def __init__(self, value: object) -> None:
        self.value = value
        super().__init__(
            f"Invalid date format: {value!r}. Please use YYYY-MM-DD or MM/DD/YYYY"
        )


class CRMError(ComplianceServiceError):
    """Tagged failure from the CRM object store."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class SlackDeliveryError(ComplianceServiceError):
    """Raised when Slack rejects a webhook or response_url post."""

    def __init__(self, status_code: int, body: str = "") -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(f"Slack API error: {status_code} - {body}")


class SlackPayloadError(ComplianceServiceError):
    """Raised when an interaction payload carries no usable action."""
