"""Date parsing and formatting for CRM date properties.

HubSpot returns date properties in several shapes depending on the property
type and API version:
- ``2025-06-30`` for date-only properties (requested_launch_date)
- ``2025-06-02T00:00:00Z`` / ``2025-06-02T16:33:12.345Z`` for datetime
  properties (closedate); only the calendar date is significant
- epoch milliseconds as a string for legacy properties
- ``06/30/2025`` when typed by a user into the custom date field

All parsing works on calendar dates only, never on instants, so there is no
timezone shift between what the CRM shows and what the rules evaluate.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

from src.rld_compliance.errors import InvalidDateError

DateLike = date | datetime | str | int | None


def parse_date(value: DateLike) -> date | None:
    """Parse a CRM or user supplied date value into a ``date``.

    Returns None for empty values. Raises InvalidDateError when a non-empty
    value cannot be interpreted as a calendar date.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, int):
        return _from_epoch_millis(value)

    text = str(value).strip()
    if not text:
        return None

    if text.isdigit() and len(text) > 8:
        return _from_epoch_millis(int(text))

    if "T" in text:
        text = text.split("T", 1)[0]

    try:
        if "/" in text:
            return datetime.strptime(text, "%m/%d/%Y").date()
        return date.fromisoformat(text)
    except ValueError as exc:
        raise InvalidDateError(value) from exc


def parse_date_lenient(value: DateLike) -> date | None:
    """Like parse_date, but unparseable values count as not set."""
    try:
        return parse_date(value)
    except InvalidDateError:
        return None


def _from_epoch_millis(millis: int) -> date:
    try:
        return datetime.fromtimestamp(millis / 1000, tz=timezone.utc).date()
    except (OverflowError, OSError, ValueError) as exc:
        raise InvalidDateError(millis) from exc


def format_for_api(value: date | None) -> str | None:
    """Format a date the way date properties are written back (YYYY-MM-DD)."""
    if value is None:
        return None
    return value.isoformat()


def format_display(value: DateLike) -> str:
    """Human-readable date for notifications, e.g. ``Mon, Jun 30, 2025``."""
    parsed = parse_date_lenient(value)
    if parsed is None:
        return "Not set"
    return f"{parsed:%a}, {parsed:%b} {parsed.day}, {parsed.year}"


def normalize_date_value(value: DateLike) -> str:
    """Canonical string form used to compare stored date snapshots.

    Parseable values collapse to ISO dates so ``2025-06-02T00:00:00Z`` and
    ``2025-06-02`` compare equal; anything else compares as stripped text.
    """
    parsed = parse_date_lenient(value)
    if parsed is not None:
        return parsed.isoformat()
    return "" if value is None else str(value).strip()


def today_in(tz_name: str) -> date:
    """Current calendar date in the given IANA time zone."""
    return datetime.now(ZoneInfo(tz_name)).date()


def now_in(tz_name: str) -> datetime:
    return datetime.now(ZoneInfo(tz_name))
