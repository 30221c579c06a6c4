# backend/tests/helpers.py
"""Test helpers shared across unit and route tests."""

from datetime import datetime, timedelta, timezone
from typing import Optional

from lesson_booking.integrations.booking_metadata import BookingMetadata
from lesson_booking.integrations.in_memory_calendar import InMemoryCalendarClient
from lesson_booking.models.booking import TimeInterval

NOW = datetime(2024, 1, 1, 0, 0, tzinfo=timezone.utc)
STUDENT_EMAIL = "student@example.com"
BOOKING_ID_RE = r"^MZK-20240101-[A-Z0-9]{6}$"


class FakeClock:
    """Callable clock that tests can move forward."""

    def __init__(self, now: datetime):
        self.current = now

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> None:
        self.current += timedelta(**kwargs)


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


def seed_booking(
    calendar: InMemoryCalendarClient,
    start: datetime,
    *,
    booking_id: str = "MZK-20231220-SEED01",
    email: str = STUDENT_EMAIL,
    modification_count: int = 0,
    duration_minutes: int = 50,
    note: Optional[str] = None,
):
    """Write a booking straight into the calendar, bypassing policy checks."""
    metadata = BookingMetadata(
        booking_id=booking_id,
        student_name="Seeded Student",
        student_email=email,
        student_timezone="Asia/Taipei",
        note=note or "",
        created_at=utc(2023, 12, 20, 0, 0),
        modification_count=modification_count,
    )
    interval = TimeInterval(start, start + timedelta(minutes=duration_minutes))
    return calendar.create_event(interval, metadata, email)
