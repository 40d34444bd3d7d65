"""Pydantic schemas for deals, actors, and workflow results.

Defines:
- OverrideStatus: approval lifecycle values stored in override_request_status
- DealSnapshot: typed view over the raw HubSpot deal properties
- Actor: the HubSpot user (or Slack manager) performing an action
- PropertyUpdateResult / OperationResult: structured, never-raising results
  returned by the override workflow
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from src.rld_compliance.deals.properties import (
    DEAL_PROPERTY_MAP,
    LEGACY_CLOSING_VALUES,
)


class OverrideStatus(str, Enum):
    """Approval lifecycle: none -> pending -> approved."""

    NONE = "none"
    PENDING = "pending"
    APPROVED = "approved"
    DENIED = "denied"

    @classmethod
    def parse(cls, value: object) -> OverrideStatus:
        """Map a raw CRM value to a status. Empty or unknown means none."""
        if value is None:
            return cls.NONE
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.NONE


# ── Deal ────────────────────────────────────────────────────────────────────


class DealSnapshot(BaseModel):
    """Point-in-time view of a deal's compliance-relevant properties.

    Date fields hold the raw CRM strings; the rule engine parses them. Empty
    strings and None both mean "not set".
    """

    model_config = ConfigDict(frozen=True)

    deal_id: str
    deal_name: str | None = None
    seat_count: str | None = None
    close_date: str | None = None
    requested_launch_date: str | None = None
    is_closed: bool = False
    pipeline: str | None = None
    compliance_status: str | None = None
    override_status: OverrideStatus = OverrideStatus.NONE
    override_requested_by: str | None = None
    override_request_date: str | None = None
    override_approved_by: str | None = None
    override_approval_date: str | None = None
    approved_close_date: str | None = None
    approved_rld: str | None = None
    legacy_approval: str | None = None

    @classmethod
    def from_properties(cls, deal_id: str, properties: dict[str, Any]) -> DealSnapshot:
        """Build a snapshot from a HubSpot ``properties`` mapping."""
        data: dict[str, Any] = {"deal_id": str(deal_id)}
        for field_name, prop_name in DEAL_PROPERTY_MAP.items():
            if prop_name not in properties:
                continue
            value = properties[prop_name]
            if field_name == "override_status":
                data[field_name] = OverrideStatus.parse(value)
            elif field_name == "is_closed":
                data[field_name] = str(value).strip().lower() == "true" if value is not None else False
            else:
                data[field_name] = None if value is None else str(value)
        return cls(**data)

    def to_properties(self) -> dict[str, str]:
        """Serialize back to HubSpot property names (empty string for unset)."""
        properties: dict[str, str] = {}
        for field_name, prop_name in DEAL_PROPERTY_MAP.items():
            value = getattr(self, field_name)
            if isinstance(value, OverrideStatus):
                properties[prop_name] = value.value
            elif isinstance(value, bool):
                properties[prop_name] = "true" if value else "false"
            else:
                properties[prop_name] = "" if value is None else value
        return properties

    def with_updates(self, updates: dict[str, str]) -> DealSnapshot:
        """Return a new snapshot with property-level updates applied."""
        if not updates:
            return self
        merged = {**self.to_properties(), **updates}
        return DealSnapshot.from_properties(self.deal_id, merged)

    @property
    def is_approved(self) -> bool:
        return self.override_status == OverrideStatus.APPROVED

    @property
    def can_close(self) -> bool:
        """Whether the legacy stage gate currently allows Closed Won."""
        return (self.legacy_approval or "") in LEGACY_CLOSING_VALUES

    @property
    def display_name(self) -> str:
        if self.deal_name:
            return self.deal_name
        return f"{self.seat_count or 'Unknown'} Seat Deal"


# ── Actor ───────────────────────────────────────────────────────────────────


class Actor(BaseModel):
    """User performing an override action (from the CRM UI context)."""

    model_config = ConfigDict(coerce_numbers_to_str=True)

    id: str | None = None
    first_name: str = ""
    last_name: str = ""
    email: str | None = None
    teams: list[str] = Field(default_factory=list)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def display(self) -> str:
        """Actor tag stored on the deal, e.g. ``Jane Doe (jane@acme.com)``."""
        if self.email:
            return f"{self.full_name} ({self.email})"
        return self.full_name or "Unknown"


# ── Results ─────────────────────────────────────────────────────────────────


class PropertyUpdateResult(BaseModel):
    """Outcome of writing one property."""

    property: str
    value: str
    success: bool
    error: str | None = None


class OperationResult(BaseModel):
    """Structured result of a workflow operation. Never raised, always returned."""

    success: bool
    deal_id: str | None = None
    error: str | None = None
    message: str | None = None
    data: dict[str, Any] = Field(default_factory=dict)
    debug_info: dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def ok(cls, deal_id: str | None = None, message: str | None = None, **data: Any) -> OperationResult:
        return cls(success=True, deal_id=deal_id, message=message, data=data)

    @classmethod
    def fail(
        cls,
        error: str,
        deal_id: str | None = None,
        debug_info: dict[str, Any] | None = None,
        **data: Any,
    ) -> OperationResult:
        return cls(
            success=False,
            deal_id=deal_id,
            error=error,
            data=data,
            debug_info=debug_info or {},
        )
