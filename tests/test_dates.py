"""Tests for CRM date parsing, normalization, and display formatting."""

from __future__ import annotations

from datetime import date, datetime, timezone

import pytest

from src.rld_compliance.compliance.dates import (
    format_display,
    format_for_api,
    normalize_date_value,
    parse_date,
    parse_date_lenient,
)
from src.rld_compliance.errors import InvalidDateError


class TestParseDate:
    @pytest.mark.parametrize(
        "value",
        [
            "2025-06-30",
            "2025-06-30T00:00:00Z",
            "2025-06-30T16:33:12.345Z",
            "06/30/2025",
            " 2025-06-30 ",
            date(2025, 6, 30),
            datetime(2025, 6, 30, 23, 59, tzinfo=timezone.utc),
        ],
    )
    def test_accepted_shapes(self, value):
        assert parse_date(value) == date(2025, 6, 30)

    def test_epoch_millis_string(self):
        # 2025-06-30T00:00:00Z
        assert parse_date("1751241600000") == date(2025, 6, 30)

    def test_epoch_millis_int(self):
        assert parse_date(1751241600000) == date(2025, 6, 30)

    @pytest.mark.parametrize("value", [None, "", "   "])
    def test_empty_is_none(self, value):
        assert parse_date(value) is None

    @pytest.mark.parametrize("value", ["not a date", "2025-13-01", "31/12/2025", "2025/06/30"])
    def test_invalid_raises(self, value):
        with pytest.raises(InvalidDateError) as exc_info:
            parse_date(value)
        assert "Please use YYYY-MM-DD or MM/DD/YYYY" in str(exc_info.value)

    def test_invalid_date_error_is_value_error(self):
        with pytest.raises(ValueError):
            parse_date("garbage")

    def test_lenient_returns_none_for_garbage(self):
        assert parse_date_lenient("garbage") is None
        assert parse_date_lenient("2025-06-30") == date(2025, 6, 30)


class TestFormatting:
    def test_format_for_api(self):
        assert format_for_api(date(2025, 6, 2)) == "2025-06-02"
        assert format_for_api(None) is None

    def test_format_display(self):
        assert format_display("2025-06-30") == "Mon, Jun 30, 2025"
        assert format_display(date(2025, 9, 2)) == "Tue, Sep 2, 2025"

    def test_format_display_not_set(self):
        assert format_display(None) == "Not set"
        assert format_display("") == "Not set"
        assert format_display("garbage") == "Not set"


class TestNormalizeDateValue:
    def test_datetime_and_date_strings_compare_equal(self):
        assert normalize_date_value("2025-06-02T00:00:00Z") == normalize_date_value("2025-06-02")

    def test_user_format_normalized(self):
        assert normalize_date_value("06/02/2025") == "2025-06-02"

    def test_empty_values(self):
        assert normalize_date_value(None) == ""
        assert normalize_date_value("") == ""

    def test_unparseable_kept_as_text(self):
        assert normalize_date_value("  soon ") == "soon"
