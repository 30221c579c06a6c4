# backend/tests/unit/core/test_timezone_service.py
"""
Tests for TimezoneService conversions, parsing and display formats.
"""

from datetime import date, time, timezone

import pytest

from lesson_booking.core.exceptions import InvalidDateFormatException, InvalidTimezoneException
from lesson_booking.core.timezone_service import NonExistentLocalTimeError, TimezoneService
from tests.helpers import utc


class TestConversions:
    def test_local_to_utc_tokyo(self):
        result = TimezoneService.local_to_utc(date(2024, 1, 5), time(19, 0), "Asia/Tokyo")
        assert result == utc(2024, 1, 5, 10, 0)
        assert result.tzinfo == timezone.utc

    def test_local_to_utc_uses_rules_of_the_given_date(self):
        winter = TimezoneService.local_to_utc(date(2024, 1, 15), time(9, 0), "America/New_York")
        summer = TimezoneService.local_to_utc(date(2024, 7, 15), time(9, 0), "America/New_York")
        assert winter.hour == 14
        assert summer.hour == 13

    def test_nonexistent_local_time_raises(self):
        with pytest.raises(NonExistentLocalTimeError):
            TimezoneService.local_to_utc(date(2024, 3, 10), time(2, 30), "America/New_York")

    def test_ambiguous_local_time_resolves_to_first_occurrence(self):
        result = TimezoneService.local_to_utc(date(2024, 11, 3), time(1, 30), "America/New_York")
        assert result == utc(2024, 11, 3, 5, 30)

    def test_create_time_in_timezone(self):
        result = TimezoneService.create_time_in_timezone(date(2024, 1, 5), 9, 30, "Asia/Taipei")
        assert result == utc(2024, 1, 5, 1, 30)

    def test_create_time_in_timezone_in_spring_forward_gap(self):
        with pytest.raises(NonExistentLocalTimeError):
            TimezoneService.create_time_in_timezone(date(2024, 3, 10), 2, 0, "America/New_York")

    def test_utc_to_local_treats_naive_as_utc(self):
        local = TimezoneService.utc_to_local(utc(2024, 1, 5, 10, 0).replace(tzinfo=None), "Asia/Taipei")
        assert (local.hour, local.minute) == (18, 0)

    def test_unknown_timezone(self):
        with pytest.raises(InvalidTimezoneException) as exc_info:
            TimezoneService.get_timezone("Asia/Atlantis")
        assert exc_info.value.code == "INVALID_INPUT"
        assert exc_info.value.message == "Unknown timezone: Asia/Atlantis"

    def test_empty_timezone(self):
        with pytest.raises(InvalidTimezoneException):
            TimezoneService.get_timezone("")


class TestParsing:
    @pytest.mark.parametrize(
        "value",
        ["2024-01-05T10:00:00Z", "2024-01-05T10:00:00+00:00", "2024-01-05T19:00:00+09:00"],
    )
    def test_parse_iso_with_offset(self, value):
        assert TimezoneService.parse_iso_datetime(value) == utc(2024, 1, 5, 10, 0)

    @pytest.mark.parametrize("value", ["2024-01-05T10:00:00", "", "not a date"])
    def test_parse_iso_rejects_naive_or_garbage(self, value):
        with pytest.raises(InvalidDateFormatException):
            TimezoneService.parse_iso_datetime(value)

    def test_parse_date(self):
        assert TimezoneService.parse_date("2024-01-05") == date(2024, 1, 5)

    @pytest.mark.parametrize("value", ["05/01/2024", "2024-13-01", None])
    def test_parse_date_invalid(self, value):
        with pytest.raises(InvalidDateFormatException):
            TimezoneService.parse_date(value)

    def test_parse_in_timezone(self):
        result = TimezoneService.parse_in_timezone("2024-01-05 19:00", "Asia/Tokyo")
        assert result == utc(2024, 1, 5, 10, 0)


class TestDayBounds:
    def test_tokyo_day(self):
        bounds = TimezoneService.day_bounds_utc(date(2024, 1, 5), "Asia/Tokyo")
        assert bounds.start == utc(2024, 1, 4, 15, 0)
        assert bounds.end == utc(2024, 1, 5, 15, 0)

    def test_spring_forward_day_is_23_hours(self):
        bounds = TimezoneService.day_bounds_utc(date(2024, 3, 10), "America/New_York")
        assert bounds.duration.total_seconds() == 23 * 3600

    def test_local_day_of(self):
        assert TimezoneService.local_day_of(utc(2024, 1, 4, 16, 0), "Asia/Tokyo") == date(2024, 1, 5)


class TestFormatting:
    def test_format_for_display(self):
        text = TimezoneService.format_for_display(
            utc(2024, 1, 15, 5, 0), utc(2024, 1, 15, 5, 50), "Asia/Tokyo"
        )
        assert text == "2024/01/15 (Mon) 14:00 - 14:50 (Asia/Tokyo)"

    def test_format_time_range_with_date(self):
        text = TimezoneService.format_time_range(
            utc(2024, 1, 15, 5, 0), utc(2024, 1, 15, 5, 50), "Asia/Taipei", include_date=True
        )
        assert text == "01/15 13:00 - 13:50"
