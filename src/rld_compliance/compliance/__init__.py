"""Launch-date compliance rule engine.

Provides the ComplianceEvaluator (violations for a close date / RLD pair),
suggest_launch_date (canonical RLD), reconcile (approval state sync) and the
HolidayCalendar they share. Everything here is pure: no I/O, and "today" is
always passed in.
"""

from src.rld_compliance.compliance.evaluator import (
    ComplianceEvaluator,
    is_compliant,
    needs_rld_fix,
    primary_violation,
)
from src.rld_compliance.compliance.holidays import HolidayCalendar
from src.rld_compliance.compliance.reconciler import ReconciliationPlan, Transition, reconcile
from src.rld_compliance.compliance.schemas import Severity, Violation, ViolationType
from src.rld_compliance.compliance.suggestion import suggest_launch_date

__all__ = [
    "ComplianceEvaluator",
    "HolidayCalendar",
    "ReconciliationPlan",
    "Severity",
    "Transition",
    "Violation",
    "ViolationType",
    "is_compliant",
    "needs_rld_fix",
    "primary_violation",
    "reconcile",
    "suggest_launch_date",
]
