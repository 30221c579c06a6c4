"""
Booking domain models.

A booking lives only as an event on the instructor's calendar. These
dataclasses are the engine's view of that event; nothing here is persisted
locally. All datetimes are timezone-aware and normalized to UTC.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from typing import Optional


def _require_aware(value: datetime, name: str) -> datetime:
    if value.tzinfo is None:
        raise ValueError(f"{name} must be timezone-aware")
    return value.astimezone(timezone.utc)


@dataclass(frozen=True)
class TimeInterval:
    """Half-open interval [start, end)."""

    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        start = _require_aware(self.start, "start")
        end = _require_aware(self.end, "end")
        if start >= end:
            raise ValueError(f"Interval start {start.isoformat()} must be before end {end.isoformat()}")
        object.__setattr__(self, "start", start)
        object.__setattr__(self, "end", end)

    def overlaps(self, other: "TimeInterval") -> bool:
        return self.start < other.end and self.end > other.start

    def padded(self, before: timedelta = timedelta(0), after: timedelta = timedelta(0)) -> "TimeInterval":
        return TimeInterval(self.start - before, self.end + after)

    @property
    def duration(self) -> timedelta:
        return self.end - self.start


@dataclass(frozen=True)
class Slot:
    """A candidate lesson window. Identity is its start instant."""

    start_time: datetime
    end_time: datetime

    def __post_init__(self) -> None:
        object.__setattr__(self, "start_time", _require_aware(self.start_time, "start_time"))
        object.__setattr__(self, "end_time", _require_aware(self.end_time, "end_time"))

    @property
    def interval(self) -> TimeInterval:
        return TimeInterval(self.start_time, self.end_time)


@dataclass(frozen=True)
class AnnotatedSlot:
    """Slot with display strings in the instructor's and the student's timezone."""

    slot: Slot
    instructor_time: str
    student_time: str
    display_instructor: str
    display_student: str

    def to_payload(self) -> dict[str, str]:
        return {
            "start_time": self.slot.start_time.isoformat(),
            "end_time": self.slot.end_time.isoformat(),
            "instructor_time": self.instructor_time,
            "student_time": self.student_time,
            "display_instructor": self.display_instructor,
            "display_student": self.display_student,
        }


@dataclass(frozen=True)
class BookingInfo:
    """Student-supplied details for a new booking."""

    student_name: str
    student_email: str
    student_timezone: str
    note: Optional[str] = None


@dataclass(frozen=True)
class BookingRecord:
    """A live booking as read back from the calendar."""

    booking_id: str
    external_id: str
    student_name: str
    student_email: str
    student_timezone: str
    lesson_start: datetime
    lesson_end: datetime
    created_at: datetime
    modification_count: int = 0
    note: Optional[str] = None
    last_modified_at: Optional[datetime] = field(default=None)

    def __post_init__(self) -> None:
        lesson_start = _require_aware(self.lesson_start, "lesson_start")
        lesson_end = _require_aware(self.lesson_end, "lesson_end")
        if lesson_start >= lesson_end:
            raise ValueError("lesson_start must be before lesson_end")
        if self.modification_count < 0:
            raise ValueError("modification_count must be >= 0")
        object.__setattr__(self, "lesson_start", lesson_start)
        object.__setattr__(self, "lesson_end", lesson_end)
        object.__setattr__(self, "created_at", _require_aware(self.created_at, "created_at"))

    @property
    def interval(self) -> TimeInterval:
        return TimeInterval(self.lesson_start, self.lesson_end)

    def email_matches(self, email: Optional[str]) -> bool:
        return (email or "").strip().lower() == self.student_email.strip().lower()

    def rescheduled(self, new_interval: TimeInterval, modified_at: datetime) -> "BookingRecord":
        return replace(
            self,
            lesson_start=new_interval.start,
            lesson_end=new_interval.end,
            modification_count=self.modification_count + 1,
            last_modified_at=modified_at,
        )
