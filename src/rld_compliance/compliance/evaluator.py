"""Launch-date compliance evaluator.

Checks a deal's close date and requested launch date (RLD) against the
launch scheduling rules and returns every rule that fired, most severe first.

Rules (all evaluated, not first-match):
1. close_date_past   -- close date before today on an open deal (error)
2. rld_past          -- RLD before today (error)
3. rld_before_close  -- RLD before close date (error), otherwise
   rld_too_soon      -- RLD under 28 days after close (warning)
4. rld_holiday / rld_wrong_day -- RLD must be a non-holiday Monday, or the
   Tuesday after a holiday Monday (warning)
5. missing_data      -- close date or RLD not set (warning)

Rules 3 and 4 do not apply to the Expansions pipeline.
"""

from __future__ import annotations

from datetime import date, timedelta

from src.rld_compliance.compliance.dates import DateLike, parse_date_lenient
from src.rld_compliance.compliance.holidays import HolidayCalendar
from src.rld_compliance.compliance.schemas import (
    RLD_FIXABLE_TYPES,
    Severity,
    Violation,
    ViolationType,
)

MINIMUM_LEAD_DAYS = 28

MONDAY = 0
TUESDAY = 1

_CLOSE_DATE_PAST = Violation(
    priority=1,
    type=ViolationType.CLOSE_DATE_PAST,
    message="Close Date is overdue",
    severity=Severity.ERROR,
)
_RLD_PAST = Violation(
    priority=2,
    type=ViolationType.RLD_PAST,
    message="RLD is in the past",
    severity=Severity.ERROR,
)
_RLD_BEFORE_CLOSE = Violation(
    priority=3,
    type=ViolationType.RLD_BEFORE_CLOSE,
    message="RLD before Close Date",
    severity=Severity.ERROR,
)
_RLD_TOO_SOON = Violation(
    priority=4,
    type=ViolationType.RLD_TOO_SOON,
    message="RLD too soon (less than 4 weeks)",
    severity=Severity.WARNING,
)
_RLD_HOLIDAY = Violation(
    priority=5,
    type=ViolationType.RLD_HOLIDAY,
    message="RLD is on a federal holiday",
    severity=Severity.WARNING,
)
_RLD_TUESDAY = Violation(
    priority=5,
    type=ViolationType.RLD_WRONG_DAY,
    message="RLD should be Monday (Tuesday only if Monday is holiday)",
    severity=Severity.WARNING,
)
_RLD_WRONG_DAY = Violation(
    priority=5,
    type=ViolationType.RLD_WRONG_DAY,
    message="RLD must be on Monday (or Tuesday if Monday is holiday)",
    severity=Severity.WARNING,
)
_MISSING_DATA = Violation(
    priority=6,
    type=ViolationType.MISSING_DATA,
    message="Missing required dates",
    severity=Severity.WARNING,
)


def parse_closed_flag(value: object) -> bool:
    """CRM booleans arrive as ``"true"``/``"false"`` strings or real bools."""
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() == "true"


class ComplianceEvaluator:
    """Evaluates launch-date rules for a deal.

    Args:
        holidays: Non-business dates for the weekday rule.
        expansions_pipeline_id: Pipeline exempt from timing and weekday rules.
    """

    def __init__(self, holidays: HolidayCalendar, expansions_pipeline_id: str) -> None:
        self._holidays = holidays
        self._expansions_pipeline_id = str(expansions_pipeline_id)

    @property
    def holidays(self) -> HolidayCalendar:
        return self._holidays

    def is_expansions(self, pipeline: str | None) -> bool:
        return pipeline is not None and str(pipeline) == self._expansions_pipeline_id

    def evaluate(
        self,
        close_date: DateLike,
        rld: DateLike,
        is_closed: object = False,
        pipeline: str | None = None,
        *,
        today: date,
    ) -> list[Violation]:
        """Return the violations for a deal, sorted by priority.

        Unparseable dates count as missing. When nothing fires the result is a
        single ``compliant`` marker with priority 0.
        """
        close = parse_date_lenient(close_date)
        launch = parse_date_lenient(rld)
        expansions = self.is_expansions(pipeline)

        violations: list[Violation] = []

        if close is not None and close < today and not parse_closed_flag(is_closed):
            violations.append(_CLOSE_DATE_PAST)

        if launch is not None and launch < today:
            violations.append(_RLD_PAST)

        if not expansions and close is not None and launch is not None:
            if launch < close:
                violations.append(_RLD_BEFORE_CLOSE)
            elif launch < close + timedelta(days=MINIMUM_LEAD_DAYS):
                violations.append(_RLD_TOO_SOON)

        if not expansions and launch is not None:
            weekday_violation = self.check_launch_weekday(launch)
            if weekday_violation is not None:
                violations.append(weekday_violation)

        if close is None or launch is None:
            violations.append(_MISSING_DATA)

        violations.sort(key=lambda v: v.priority)

        if not violations:
            message = (
                "Expansions pipeline - flexible timing" if expansions else "All rules compliant"
            )
            return [
                Violation(
                    priority=0,
                    type=ViolationType.COMPLIANT,
                    message=message,
                    severity=Severity.SUCCESS,
                )
            ]

        return violations

    def check_launch_weekday(self, launch: date) -> Violation | None:
        """Monday unless it is a holiday; Tuesday only after a holiday Monday."""
        weekday = launch.weekday()
        if weekday == MONDAY:
            return _RLD_HOLIDAY if self._holidays.is_holiday(launch) else None
        if weekday == TUESDAY:
            monday_before = launch - timedelta(days=1)
            return None if self._holidays.is_holiday(monday_before) else _RLD_TUESDAY
        return _RLD_WRONG_DAY


# ── Violation list helpers ──────────────────────────────────────────────────


def is_compliant(violations: list[Violation]) -> bool:
    return len(violations) == 1 and violations[0].type == ViolationType.COMPLIANT


def primary_violation(violations: list[Violation]) -> ViolationType:
    """Most severe non-compliant violation type, or ``compliant``."""
    for violation in violations:
        if violation.type != ViolationType.COMPLIANT:
            return violation.type
    return ViolationType.COMPLIANT


def violation_messages(violations: list[Violation]) -> list[str]:
    return [v.message for v in violations if v.type != ViolationType.COMPLIANT]


def needs_rld_fix(violations: list[Violation]) -> bool:
    return any(v.type in RLD_FIXABLE_TYPES for v in violations)
