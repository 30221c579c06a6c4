# backend/lesson_booking/services/availability_service.py
"""
Availability Service for the booking engine.

Turns one instructor-zone calendar day into the list of slots a student can
book right now, with display strings in both timezones.
"""

from datetime import date, datetime
from typing import Callable, List, Optional

from ..core.config import EngineConfig
from ..core.constants import TIME_FORMAT
from ..core.exceptions import InvalidInputException
from ..core.timezone_service import TimezoneService
from ..integrations.calendar_client import CalendarClient
from ..models.booking import AnnotatedSlot, Slot
from .base import BaseService
from .policy_engine import PolicyEngine
from .slot_generator import SlotGenerator


class AvailabilityService(BaseService):
    """Lists open slots for a day against the instructor's calendar."""

    def __init__(
        self,
        config: EngineConfig,
        calendar: CalendarClient,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        super().__init__(config, clock)
        self.calendar = calendar
        self.slot_generator = SlotGenerator(
            config.instructor_timezone, config.working_hours, config.policy
        )

    def parse_day(self, value: Optional[str]) -> date:
        """Parse a YYYY-MM-DD query value."""
        if not value:
            raise InvalidInputException("missing_date")
        return TimezoneService.parse_date(value)

    @BaseService.measure_operation("list_available_slots")
    def list_available_slots(
        self, day: date, student_timezone: Optional[str] = None
    ) -> List[AnnotatedSlot]:
        """
        Open slots on ``day`` in the instructor's timezone.

        Args:
            day: Calendar date in the instructor's timezone
            student_timezone: IANA zone for the student display; defaults to
                the configured student timezone

        Returns:
            Annotated slots in chronological order; empty when nothing is open

        Raises:
            InvalidTimezoneException: Unknown student timezone
            RemoteUnavailableException: The calendar could not be read
        """
        student_tz = student_timezone or self.config.default_student_timezone
        TimezoneService.get_timezone(student_tz)

        bounds = TimezoneService.day_bounds_utc(day, self.config.instructor_timezone)
        margin = self.slot_generator.lesson_duration + self.slot_generator.buffer
        busy = self.calendar.query_busy(bounds.start - margin, bounds.end + margin)

        generated = self.slot_generator.generate(day, busy, self.now())

        # "now" may have moved on since generation
        now = self.now()
        policy = self.config.policy
        bookable = [
            slot
            for slot in generated
            if PolicyEngine.is_booking_time_valid(slot.start_time, now, policy).allowed
        ]

        self.logger.debug(
            "Availability computed",
            extra={
                "day": day.isoformat(),
                "busy_blocks": len(busy),
                "generated": len(generated),
                "bookable": len(bookable),
            },
        )
        return [self.annotate(slot, student_tz) for slot in bookable]

    def annotate(self, slot: Slot, student_timezone: str) -> AnnotatedSlot:
        instructor_tz = self.config.instructor_timezone
        return AnnotatedSlot(
            slot=slot,
            instructor_time=TimezoneService.format_for_timezone(
                slot.start_time, instructor_tz, TIME_FORMAT
            ),
            student_time=TimezoneService.format_for_timezone(
                slot.start_time, student_timezone, TIME_FORMAT
            ),
            display_instructor=TimezoneService.format_time_range(
                slot.start_time, slot.end_time, instructor_tz
            ),
            display_student=TimezoneService.format_time_range(
                slot.start_time, slot.end_time, student_timezone
            ),
        )
