"""Holiday calendar used by the launch-date rules.

Holidays are plain configuration: a built-in list of US federal holidays,
extended at runtime with ``EXTRA_HOLIDAYS`` from settings. Dates are grouped
by calendar year so additional years or locales can be layered on without
touching the rule code.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date

import structlog

from src.rld_compliance.compliance.dates import parse_date

logger = structlog.get_logger(__name__)


# ── US Federal Holidays ─────────────────────────────────────────────────────
# Actual calendar dates (not the observed weekday when a holiday falls on a
# weekend). Extend through EXTRA_HOLIDAYS rather than editing this list.

US_FEDERAL_HOLIDAYS: tuple[str, ...] = (
    # 2024
    "2024-01-01", "2024-01-15", "2024-02-19", "2024-05-27", "2024-06-19",
    "2024-07-04", "2024-09-02", "2024-10-14", "2024-11-11", "2024-11-28", "2024-12-25",
    # 2025
    "2025-01-01", "2025-01-20", "2025-02-17", "2025-05-26", "2025-06-19",
    "2025-07-04", "2025-09-01", "2025-10-13", "2025-11-11", "2025-11-27", "2025-12-25",
    # 2026
    "2026-01-01", "2026-01-19", "2026-02-16", "2026-05-25", "2026-06-19",
    "2026-07-04", "2026-09-07", "2026-10-12", "2026-11-11", "2026-11-26", "2026-12-25",
    # 2027
    "2027-01-01", "2027-01-18", "2027-02-15", "2027-05-31", "2027-06-19",
    "2027-07-04", "2027-09-06", "2027-10-11", "2027-11-11", "2027-11-25", "2027-12-25",
)


class HolidayCalendar:
    """Immutable set of non-business dates, indexed by calendar year."""

    def __init__(self, holidays: Iterable[date] = ()) -> None:
        by_year: dict[int, set[date]] = {}
        for day in holidays:
            by_year.setdefault(day.year, set()).add(day)
        self._by_year: dict[int, frozenset[date]] = {
            year: frozenset(days) for year, days in by_year.items()
        }

    @classmethod
    def from_iso_dates(cls, values: Iterable[str]) -> HolidayCalendar:
        """Build a calendar from ISO date strings.

        Raises InvalidDateError for any entry that is not a valid date.
        """
        days = []
        for value in values:
            parsed = parse_date(value)
            if parsed is not None:
                days.append(parsed)
        return cls(days)

    @classmethod
    def us_federal(cls, extra: Iterable[str] = ()) -> HolidayCalendar:
        """Built-in US federal holidays plus any configured extras."""
        calendar = cls.from_iso_dates(US_FEDERAL_HOLIDAYS)
        extra = list(extra)
        if extra:
            calendar = calendar.extended(cls.from_iso_dates(extra))
            logger.debug("holidays.extended", extra_count=len(extra))
        return calendar

    def is_holiday(self, day: date) -> bool:
        return day in self._by_year.get(day.year, frozenset())

    def for_year(self, year: int) -> frozenset[date]:
        return self._by_year.get(year, frozenset())

    def years(self) -> list[int]:
        return sorted(self._by_year)

    def extended(self, other: HolidayCalendar) -> HolidayCalendar:
        """Return a new calendar containing the holidays of both."""
        return HolidayCalendar([*self, *other])

    def __contains__(self, day: object) -> bool:
        return isinstance(day, date) and self.is_holiday(day)

    def __iter__(self):
        for year in self.years():
            yield from sorted(self._by_year[year])

    def __len__(self) -> int:
        return sum(len(days) for days in self._by_year.values())
