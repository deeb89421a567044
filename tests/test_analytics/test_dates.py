"""Tests for day-granularity date helpers."""

from datetime import date, datetime

from commercial_intel.analytics.dates import days_between, format_day, parse_day, shift_months


class TestParseDay:
    def test_brazilian_format(self):
        assert parse_day("05/03/2025") == date(2025, 3, 5)

    def test_iso_format(self):
        assert parse_day("2025-03-05") == date(2025, 3, 5)

    def test_iso_with_time(self):
        assert parse_day("2025-03-05T14:30:00") == date(2025, 3, 5)
        assert parse_day("2025-03-05 14:30:00") == date(2025, 3, 5)

    def test_date_objects_pass_through(self):
        assert parse_day(date(2024, 1, 2)) == date(2024, 1, 2)
        assert parse_day(datetime(2024, 1, 2, 9, 0)) == date(2024, 1, 2)

    def test_unparseable_returns_none(self):
        for value in (None, "", "   ", "31/02/2025", "not a date", "1/2", "aa/bb/cccc"):
            assert parse_day(value) is None


class TestHelpers:
    def test_days_between(self):
        assert days_between(date(2025, 1, 1), date(2025, 1, 31)) == 30
        assert days_between(date(2025, 1, 31), date(2025, 1, 1)) == -30

    def test_shift_months_clamps_day(self):
        assert shift_months(date(2025, 3, 31), -1) == date(2025, 2, 28)
        assert shift_months(date(2024, 3, 31), -1) == date(2024, 2, 29)

    def test_shift_months_across_years(self):
        assert shift_months(date(2025, 1, 15), -6) == date(2024, 7, 15)
        assert shift_months(date(2025, 11, 15), 3) == date(2026, 2, 15)

    def test_format_day(self):
        assert format_day(date(2025, 1, 2)) == "2025-01-02"
        assert format_day(None) == ""
