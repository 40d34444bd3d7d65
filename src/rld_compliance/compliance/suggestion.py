"""Suggested requested-launch-date (RLD) calculation.

The canonical launch date is the first Monday at least four weeks after the
close date, shifted to Tuesday when that Monday is a holiday. When the deal
already has an RLD that respects the four-week minimum, only its weekday is
corrected so reps who are nearly right do not see their date jump around.
"""

from __future__ import annotations

from datetime import date, timedelta

from src.rld_compliance.compliance.dates import DateLike, parse_date_lenient
from src.rld_compliance.compliance.evaluator import MINIMUM_LEAD_DAYS, MONDAY, TUESDAY
from src.rld_compliance.compliance.holidays import HolidayCalendar


def roll_to_monday(day: date) -> date:
    """Nearest Monday on or after ``day``."""
    return day + timedelta(days=(MONDAY - day.weekday()) % 7)


def shift_off_holiday(monday: date, holidays: HolidayCalendar) -> date:
    """Holiday Mondays launch on Tuesday instead. No further rolling."""
    if holidays.is_holiday(monday):
        return monday + timedelta(days=1)
    return monday


def canonical_launch_date(close: date, holidays: HolidayCalendar) -> date:
    """First valid launch day on or after close + 28 days."""
    target = roll_to_monday(close + timedelta(days=MINIMUM_LEAD_DAYS))
    return shift_off_holiday(target, holidays)


def suggest_launch_date(
    close_date: DateLike,
    current_rld: DateLike,
    holidays: HolidayCalendar,
) -> date | None:
    """Compute the suggested RLD for a deal, or None without a close date.

    The result is always a non-holiday Monday, or the Tuesday after a holiday
    Monday, and never earlier than close date + 28 days.
    """
    close = parse_date_lenient(close_date)
    if close is None:
        return None

    target = canonical_launch_date(close, holidays)

    current = parse_date_lenient(current_rld)
    minimum = close + timedelta(days=MINIMUM_LEAD_DAYS)
    if current is None or current < minimum:
        return target

    weekday = current.weekday()
    if weekday == MONDAY:
        return shift_off_holiday(current, holidays)
    if weekday == TUESDAY and holidays.is_holiday(current - timedelta(days=1)):
        return current

    # Snap to the nearer launch day; ties and sub-minimum dates go forward.
    back = shift_off_holiday(current - timedelta(days=weekday), holidays)
    forward = shift_off_holiday(roll_to_monday(current), holidays)
    if back >= minimum and current - back < forward - current:
        return back
    return forward
