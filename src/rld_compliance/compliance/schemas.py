"""Pydantic schemas for launch-date compliance results."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict


class Severity(str, Enum):
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class ViolationType(str, Enum):
    """Rule outcomes, persisted verbatim to the ``compliance_status`` property."""

    COMPLIANT = "compliant"
    CLOSE_DATE_PAST = "close_date_past"
    RLD_PAST = "rld_past"
    RLD_BEFORE_CLOSE = "rld_before_close"
    RLD_TOO_SOON = "rld_too_soon"
    RLD_WRONG_DAY = "rld_wrong_day"
    RLD_HOLIDAY = "rld_holiday"
    MISSING_DATA = "missing_data"


# Violations that the suggested launch date can fix.
RLD_FIXABLE_TYPES: frozenset[ViolationType] = frozenset(
    {
        ViolationType.RLD_BEFORE_CLOSE,
        ViolationType.RLD_TOO_SOON,
        ViolationType.RLD_WRONG_DAY,
        ViolationType.RLD_HOLIDAY,
        ViolationType.RLD_PAST,
    }
)


class Violation(BaseModel):
    """A single rule outcome. Lower priority means more severe."""

    model_config = ConfigDict(frozen=True)

    priority: int
    type: ViolationType
    message: str
    severity: Severity

    @property
    def is_compliant_marker(self) -> bool:
        return self.type == ViolationType.COMPLIANT
