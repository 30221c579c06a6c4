"""
Centralized timezone handling for the booking engine.

Rules:
- Working hours and slot candidates: instructor's timezone
- All storage and comparisons: UTC instants
- Display: instructor's and student's timezone side by side
"""

from datetime import date, datetime, time, timedelta, timezone
from typing import Optional

import pytz

from ..models.booking import TimeInterval
from .constants import DATE_TIME_FORMAT, DATE_WITH_WEEKDAY_FORMAT, TIME_FORMAT
from .exceptions import InvalidDateFormatException, InvalidTimezoneException


class NonExistentLocalTimeError(ValueError):
    """The wall-clock time is skipped by a DST spring-forward transition."""


class TimezoneService:
    """Pure conversions between wall-clock times and UTC instants."""

    @staticmethod
    def utc_now() -> datetime:
        return datetime.now(timezone.utc)

    @staticmethod
    def get_timezone(tz_str: Optional[str]) -> pytz.BaseTzInfo:
        """Resolve an IANA timezone, raising InvalidTimezoneException if unknown."""
        if not tz_str:
            raise InvalidTimezoneException(tz_str)
        try:
            return pytz.timezone(tz_str)
        except pytz.UnknownTimeZoneError:
            raise InvalidTimezoneException(tz_str)

    @staticmethod
    def local_to_utc(local_date: date, local_time: time, timezone_str: str) -> datetime:
        """
        Convert a local date/time to a UTC instant.

        Uses the timezone rules valid on local_date (not today), so DST
        transitions are honoured. An ambiguous fall-back time resolves to its
        first occurrence.

        Raises:
            NonExistentLocalTimeError: If the time falls in a spring-forward gap
        """
        tz = TimezoneService.get_timezone(timezone_str)
        naive_dt = datetime.combine(local_date, local_time)

        try:
            # is_dst=None raises for ambiguous/nonexistent times
            local_dt = tz.localize(naive_dt, is_dst=None)
        except pytz.exceptions.AmbiguousTimeError:
            local_dt = tz.localize(naive_dt, is_dst=True)
        except pytz.exceptions.NonExistentTimeError:
            raise NonExistentLocalTimeError(
                f"The time {local_time.strftime(TIME_FORMAT)} does not exist on "
                f"{local_date} in {timezone_str} due to Daylight Saving Time."
            )

        return local_dt.astimezone(timezone.utc)

    @staticmethod
    def utc_to_local(utc_dt: datetime, timezone_str: str) -> datetime:
        """Convert an instant to the given timezone. Naive input is taken as UTC."""
        if utc_dt.tzinfo is None:
            utc_dt = utc_dt.replace(tzinfo=timezone.utc)

        tz = TimezoneService.get_timezone(timezone_str)
        return utc_dt.astimezone(tz)

    @staticmethod
    def format_for_timezone(dt: datetime, timezone_str: str, fmt: str = DATE_TIME_FORMAT) -> str:
        return TimezoneService.utc_to_local(dt, timezone_str).strftime(fmt)

    @staticmethod
    def parse_in_timezone(date_string: str, timezone_str: str, fmt: str = DATE_TIME_FORMAT) -> datetime:
        """Parse a wall-clock string in the given timezone and return the UTC instant."""
        try:
            naive = datetime.strptime(date_string, fmt)
        except (TypeError, ValueError):
            raise InvalidDateFormatException(date_string)
        try:
            return TimezoneService.local_to_utc(naive.date(), naive.time(), timezone_str)
        except NonExistentLocalTimeError:
            raise InvalidDateFormatException(date_string)

    @staticmethod
    def parse_iso_datetime(value: str) -> datetime:
        """Parse an ISO-8601 datetime carrying an offset ("Z" accepted) into UTC."""
        if not isinstance(value, str) or not value.strip():
            raise InvalidDateFormatException(value)
        candidate = value.strip()
        if candidate.endswith(("Z", "z")):
            candidate = candidate[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(candidate)
        except ValueError:
            raise InvalidDateFormatException(value)
        if parsed.tzinfo is None:
            raise InvalidDateFormatException(value)
        return parsed.astimezone(timezone.utc)

    @staticmethod
    def parse_date(value: str) -> date:
        """Parse a YYYY-MM-DD date."""
        try:
            return datetime.strptime(value.strip(), "%Y-%m-%d").date()
        except (AttributeError, ValueError):
            raise InvalidDateFormatException(value)

    @staticmethod
    def start_of_day_in_timezone(day: date, timezone_str: str) -> datetime:
        """UTC instant of the first moment of ``day`` in the given timezone."""
        try:
            return TimezoneService.local_to_utc(day, time(0, 0), timezone_str)
        except NonExistentLocalTimeError:
            # Some zones skip midnight itself; the day then starts at 01:00
            return TimezoneService.local_to_utc(day, time(1, 0), timezone_str)

    @staticmethod
    def day_bounds_utc(day: date, timezone_str: str) -> TimeInterval:
        """[start, end) of a calendar day in the given timezone, as UTC instants."""
        start = TimezoneService.start_of_day_in_timezone(day, timezone_str)
        end = TimezoneService.start_of_day_in_timezone(day + timedelta(days=1), timezone_str)
        return TimeInterval(start, end)

    @staticmethod
    def local_day_of(dt: datetime, timezone_str: str) -> date:
        """Calendar date of an instant as seen in the given timezone."""
        return TimezoneService.utc_to_local(dt, timezone_str).date()

    @staticmethod
    def create_time_in_timezone(day: date, hour: int, minute: int, timezone_str: str) -> datetime:
        """UTC instant for hour:minute on ``day`` in the given timezone."""
        return TimezoneService.local_to_utc(day, time(hour, minute), timezone_str)

    @staticmethod
    def format_time_range(
        start: datetime, end: datetime, timezone_str: str, include_date: bool = False
    ) -> str:
        """
        Human-readable range, e.g. "14:00 - 14:50" or "01/15 14:00 - 14:50".
        """
        start_fmt = f"%m/%d {TIME_FORMAT}" if include_date else TIME_FORMAT
        start_str = TimezoneService.format_for_timezone(start, timezone_str, start_fmt)
        end_str = TimezoneService.format_for_timezone(end, timezone_str, TIME_FORMAT)
        return f"{start_str} - {end_str}"

    @staticmethod
    def format_date_with_weekday(dt: datetime, timezone_str: str) -> str:
        return TimezoneService.format_for_timezone(dt, timezone_str, DATE_WITH_WEEKDAY_FORMAT)

    @staticmethod
    def format_for_display(start: datetime, end: datetime, timezone_str: str) -> str:
        """
        Full display string used in booking details.

        Returns: e.g. "2024/01/15 (Mon) 14:00 - 14:50 (Asia/Tokyo)"
        """
        day_part = TimezoneService.format_date_with_weekday(start, timezone_str)
        return f"{day_part} {TimezoneService.format_time_range(start, end, timezone_str)} ({timezone_str})"
