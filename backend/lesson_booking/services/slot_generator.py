"""
Candidate lesson slots for one instructor-zone day.

Candidates are laid out on the instructor's wall clock and converted to UTC
instants immediately; everything after that compares instants. On DST
transition days:

- a wall-clock start skipped by spring-forward is not offered
- a repeated fall-back start is offered once, at its first occurrence
- the "finishes within working hours" check reads the lesson end back on the
  local wall clock, so the working window keeps its nominal local meaning
"""

from __future__ import annotations

from datetime import date, datetime, timedelta
import logging
from typing import Iterable, Iterator, List, Sequence

from ..core.timezone_service import NonExistentLocalTimeError, TimezoneService
from ..models.booking import Slot, TimeInterval
from ..models.policy import LessonPolicy, WorkingHoursConfig

logger = logging.getLogger(__name__)

MINUTES_PER_DAY = 24 * 60


class SlotGenerator:
    """Pure function of (day, busy intervals, now) under a fixed configuration."""

    def __init__(
        self,
        instructor_timezone: str,
        working_hours: WorkingHoursConfig,
        policy: LessonPolicy,
    ) -> None:
        self.instructor_timezone = instructor_timezone
        self.working_hours = working_hours
        self.policy = policy

    @property
    def lesson_duration(self) -> timedelta:
        return timedelta(minutes=self.policy.lesson_duration_minutes)

    @property
    def buffer(self) -> timedelta:
        return timedelta(minutes=self.policy.buffer_minutes)

    def candidate_starts(self, day: date) -> Iterator[datetime]:
        """UTC instants of every candidate start on ``day``, in order."""
        first = self.working_hours.start_hour * 60
        last = self.working_hours.end_hour * 60
        for minute_of_day in range(first, last, self.policy.slot_interval_minutes):
            if minute_of_day >= MINUTES_PER_DAY:
                break
            hour, minute = divmod(minute_of_day, 60)
            try:
                yield TimezoneService.create_time_in_timezone(
                    day, hour, minute, self.instructor_timezone
                )
            except NonExistentLocalTimeError:
                logger.debug(
                    "Skipping %s %02d:%02d: wall-clock time does not exist", day, hour, minute
                )

    def ends_within_working_hours(self, day: date, end: datetime) -> bool:
        local_end = TimezoneService.utc_to_local(end, self.instructor_timezone)
        day_offset = (local_end.date() - day).days
        end_minute = day_offset * MINUTES_PER_DAY + local_end.hour * 60 + local_end.minute
        return end_minute <= self.working_hours.end_hour * 60

    def is_offered_start(self, start: datetime) -> bool:
        """True if ``start`` is on the day's slot grid and finishes in working hours."""
        day = TimezoneService.local_day_of(start, self.instructor_timezone)
        if start not in set(self.candidate_starts(day)):
            return False
        return self.ends_within_working_hours(day, start + self.lesson_duration)

    def is_free(self, start: datetime, busy: Iterable[TimeInterval]) -> bool:
        """True if [start, start + duration + buffer) overlaps no busy interval."""
        padded_end = start + self.lesson_duration + self.buffer
        return not any(start < block.end and padded_end > block.start for block in busy)

    def generate(
        self,
        day: date,
        busy: Sequence[TimeInterval],
        now: datetime,
    ) -> List[Slot]:
        """
        Open slots on ``day`` (an instructor-zone calendar date).

        Args:
            day: Calendar date in the instructor's timezone
            busy: Busy intervals covering the day plus a margin on both sides
            now: Current instant; slots starting at or before it are dropped

        Returns:
            Chronologically ordered slots
        """
        slots: List[Slot] = []
        for start in self.candidate_starts(day):
            end = start + self.lesson_duration
            if not self.ends_within_working_hours(day, end):
                continue
            if start <= now:
                continue
            if not self.is_free(start, busy):
                continue
            slots.append(Slot(start_time=start, end_time=end))

        slots.sort(key=lambda slot: slot.start_time)
        return slots
