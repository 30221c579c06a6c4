# backend/lesson_booking/services/booking_service.py
"""
Booking Service for the booking engine.

Handles the lifecycle of a booking held on the instructor's calendar:
create, look up, reschedule and cancel. The calendar is the only store;
every operation re-reads it.

Writes follow a re-check-before-write protocol. The time the lesson and its
buffer cover is claimed (in-process keys plus optional Redis keys shared
between instances), busy time around it is re-queried, and only then is the
event written. Overlapping writers always share a claim key. Without Redis,
writers in different processes can still race; the calendar itself offers
no compare-and-swap.
"""

from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Callable, Iterator, List, Optional, TypeVar

from ..core.booking_id import generate_booking_id, is_valid_booking_id
from ..core.booking_lock import SlotClaimer, slot_claim_keys
from ..core.config import EngineConfig
from ..core.constants import MAX_BOOKING_ID_ATTEMPTS
from ..core.exceptions import (
    BookingIdConflictException,
    BookingNotFoundException,
    CannotCancelException,
    CannotModifyException,
    DomainException,
    EmailMismatchException,
    InternalErrorException,
    InvalidInputException,
    RemoteUnavailableException,
    SlotTakenException,
)
from ..core.timezone_service import TimezoneService
from ..integrations.booking_metadata import BookingMetadata
from ..integrations.calendar_client import CalendarClient, CalendarEvent, CreatedEvent
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..models.booking import BookingInfo, BookingRecord, TimeInterval
from ..models.policy import LessonPolicy
from .base import BaseService
from .policy_engine import PolicyEngine, PolicyResult
from .slot_generator import SlotGenerator

T = TypeVar("T")


@dataclass(frozen=True)
class BookingConfirmation:
    booking_id: str
    external_id: str
    lesson_start: datetime
    lesson_end: datetime
    html_link: Optional[str] = None


@dataclass(frozen=True)
class BookingDetails:
    """A booking plus what its owner may still do with it."""

    record: BookingRecord
    cancel_status: PolicyResult
    modify_status: PolicyResult
    display_instructor: str
    display_student: str

    @property
    def can_cancel(self) -> bool:
        return self.cancel_status.allowed

    @property
    def can_modify(self) -> bool:
        return self.modify_status.allowed


def _subtract(block: TimeInterval, hole: TimeInterval) -> List[TimeInterval]:
    """Parts of ``block`` not covered by ``hole``."""
    if not block.overlaps(hole):
        return [block]
    parts = []
    if block.start < hole.start:
        parts.append(TimeInterval(block.start, hole.start))
    if hole.end < block.end:
        parts.append(TimeInterval(hole.end, block.end))
    return parts


class BookingService(BaseService):
    """
    Service layer for booking operations.

    Every failed precondition raises before the calendar is written, so a
    failure never leaves a partial change behind.
    """

    def __init__(
        self,
        config: EngineConfig,
        calendar: CalendarClient,
        claimer: Optional[SlotClaimer] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        super().__init__(config, clock)
        self.calendar = calendar
        self.claimer = claimer or SlotClaimer()
        self.slot_generator = SlotGenerator(
            config.instructor_timezone, config.working_hours, config.policy
        )

    @property
    def policy(self) -> LessonPolicy:
        return self.config.policy

    @property
    def lesson_duration(self) -> timedelta:
        return timedelta(minutes=self.policy.lesson_duration_minutes)

    @property
    def buffer(self) -> timedelta:
        return timedelta(minutes=self.policy.buffer_minutes)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    @BaseService.measure_operation("create_booking")
    def create(self, start_time: datetime, booking_info: BookingInfo) -> BookingConfirmation:
        """
        Book the slot starting at ``start_time``.

        Raises:
            InvalidInputException: The start is outside the booking window or
                not an offered slot, or the student timezone is unknown
            SlotTakenException: The slot is no longer free
            RemoteUnavailableException: The calendar could not be reached
        """
        with self._track_outcome("create"):
            TimezoneService.get_timezone(booking_info.student_timezone)
            self._require_bookable_start(start_time)
            interval = TimeInterval(start_time, start_time + self.lesson_duration)

            with self.claimer.claim(self._claim_keys(interval)) as acquired:
                if not acquired:
                    raise SlotTakenException(details={"slot_start": interval.start.isoformat()})
                self._ensure_slot_free(interval, taken_key="slot_taken")
                created = self._write_new_booking(interval, booking_info)

        self.log_operation(
            "booking_created",
            booking_id=created.booking_id,
            slot_start=interval.start.isoformat(),
        )
        return BookingConfirmation(
            booking_id=created.booking_id,
            external_id=created.external_id,
            lesson_start=interval.start,
            lesson_end=interval.end,
            html_link=created.html_link,
        )

    @BaseService.measure_operation("find_booking")
    def find(self, booking_id: str, email: str) -> BookingRecord:
        """
        Look up a booking and check the caller owns it.

        Raises:
            BookingNotFoundException: No live booking has this id
            EmailMismatchException: ``email`` is not the booking's email
            InternalErrorException: The stored booking data is unreadable
        """
        return self._find_owned(booking_id, email)[1]

    @BaseService.measure_operation("get_booking_details")
    def get_booking_details(self, booking_id: str, email: str) -> BookingDetails:
        record = self._find_owned(booking_id, email)[1]
        now = self.now()
        student_tz = record.student_timezone or self.config.default_student_timezone
        return BookingDetails(
            record=record,
            cancel_status=PolicyEngine.can_cancel(record.lesson_start, now, self.policy),
            modify_status=PolicyEngine.can_modify(
                record.lesson_start, record.modification_count, now, self.policy
            ),
            display_instructor=TimezoneService.format_for_display(
                record.lesson_start, record.lesson_end, self.config.instructor_timezone
            ),
            display_student=TimezoneService.format_for_display(
                record.lesson_start, record.lesson_end, student_tz
            ),
        )

    @BaseService.measure_operation("modify_booking")
    def modify(self, booking_id: str, email: str, new_start_time: datetime) -> BookingRecord:
        """
        Move a booking to ``new_start_time``.

        Raises:
            BookingNotFoundException, EmailMismatchException: Lookup failed
            CannotModifyException: Modification limit or deadline reached
            InvalidInputException: The new start is not bookable
            SlotTakenException: The new slot is not free
        """
        with self._track_outcome("modify"):
            event, record = self._find_owned(booking_id, email)

            status = PolicyEngine.can_modify(
                record.lesson_start, record.modification_count, self.now(), self.policy
            )
            if not status.allowed:
                raise CannotModifyException(
                    status.message_key,
                    params=status.params,
                    details={"booking_id": booking_id, "reason": status.reason.value},
                )

            self._require_bookable_start(new_start_time)
            new_interval = TimeInterval(new_start_time, new_start_time + self.lesson_duration)

            with self.claimer.claim(self._claim_keys(new_interval)) as acquired:
                if not acquired:
                    raise SlotTakenException(
                        "new_slot_taken", details={"slot_start": new_interval.start.isoformat()}
                    )
                self._ensure_slot_free(
                    new_interval, taken_key="new_slot_taken", exclude=record.interval
                )

                updated = record.rescheduled(new_interval, self.now())
                self._call_calendar(
                    "patch_event",
                    self.calendar.patch_event,
                    event.external_id,
                    new_interval,
                    self._metadata_for(updated),
                )

        self.log_operation(
            "booking_modified",
            booking_id=booking_id,
            slot_start=new_interval.start.isoformat(),
            modification_count=updated.modification_count,
        )
        return updated

    @BaseService.measure_operation("cancel_booking")
    def cancel(self, booking_id: str, email: str) -> BookingRecord:
        """
        Cancel a booking; its calendar event is removed.

        Raises:
            BookingNotFoundException, EmailMismatchException: Lookup failed
            CannotCancelException: The cancellation deadline has passed
        """
        with self._track_outcome("cancel"):
            event, record = self._find_owned(booking_id, email)

            status = PolicyEngine.can_cancel(record.lesson_start, self.now(), self.policy)
            if not status.allowed:
                raise CannotCancelException(
                    status.message_key,
                    params=status.params,
                    details={"booking_id": booking_id},
                )

            self._call_calendar("delete_event", self.calendar.delete_event, event.external_id)

        self.log_operation("booking_cancelled", booking_id=booking_id)
        return record

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _require_bookable_start(self, start_time: datetime) -> None:
        if start_time.tzinfo is None:
            raise InvalidInputException(details={"start_time": "must carry a UTC offset"})

        window = PolicyEngine.is_booking_time_valid(start_time, self.now(), self.policy)
        if not window.allowed:
            raise InvalidInputException(
                window.message_key,
                params=window.params,
                details={"reason": window.reason.value, "start_time": start_time.isoformat()},
            )
        if not self.slot_generator.is_offered_start(start_time):
            raise InvalidInputException(
                "slot_not_offered", details={"start_time": start_time.isoformat()}
            )

    def _claim_keys(self, interval: TimeInterval) -> List[str]:
        """Claim keys covering the lesson plus its trailing buffer."""
        return slot_claim_keys(
            interval.start, interval.end + self.buffer, self.policy.slot_interval_minutes
        )

    def _ensure_slot_free(
        self,
        interval: TimeInterval,
        *,
        taken_key: str,
        exclude: Optional[TimeInterval] = None,
    ) -> None:
        """Re-query busy time over [start - buffer, end + buffer) and fail if any remains."""
        window = interval.padded(before=self.buffer, after=self.buffer)
        busy = self._call_calendar("query_busy", self.calendar.query_busy, window.start, window.end)

        conflicts = []
        for block in busy:
            remaining = _subtract(block, exclude) if exclude else [block]
            conflicts.extend(part for part in remaining if part.overlaps(window))

        if conflicts:
            self.logger.info(
                "Slot no longer free",
                extra={"slot_start": interval.start.isoformat(), "conflicts": len(conflicts)},
            )
            raise SlotTakenException(taken_key, details={"slot_start": interval.start.isoformat()})

    def _write_new_booking(self, interval: TimeInterval, info: BookingInfo) -> CreatedEvent:
        for attempt in range(1, MAX_BOOKING_ID_ATTEMPTS + 1):
            created_at = self.now()
            metadata = BookingMetadata(
                booking_id=generate_booking_id(self.config.booking_id_prefix, created_at),
                student_name=info.student_name,
                student_email=info.student_email,
                student_timezone=info.student_timezone,
                note=info.note or "",
                created_at=created_at,
                modification_count=0,
            )
            try:
                return self._call_calendar(
                    "create_event",
                    self.calendar.create_event,
                    interval,
                    metadata,
                    info.student_email,
                )
            except BookingIdConflictException:
                self.logger.warning(
                    "Booking id collision, regenerating",
                    extra={"booking_id": metadata.booking_id, "attempt": attempt},
                )
        raise InternalErrorException(details={"reason": "booking_id_exhausted"})

    def _find_owned(self, booking_id: str, email: str) -> tuple[CalendarEvent, BookingRecord]:
        if not is_valid_booking_id(booking_id, self.config.booking_id_prefix):
            raise InvalidInputException(details={"booking_id": booking_id})

        event = self._call_calendar("find_event", self.calendar.find_event_by_marker, booking_id)
        if event is None:
            raise BookingNotFoundException(details={"booking_id": booking_id})

        record = self._to_record(event)
        if not record.email_matches(email):
            self.logger.info("Email mismatch", extra={"booking_id": booking_id})
            raise EmailMismatchException(details={"booking_id": booking_id})
        return event, record

    def _to_record(self, event: CalendarEvent) -> BookingRecord:
        metadata = event.metadata
        try:
            return BookingRecord(
                booking_id=metadata.booking_id,
                external_id=event.external_id,
                student_name=metadata.student_name,
                student_email=metadata.student_email,
                student_timezone=metadata.student_timezone,
                lesson_start=event.interval.start,
                lesson_end=event.interval.end,
                created_at=metadata.created_at,
                modification_count=metadata.modification_count,
                note=metadata.note or None,
                last_modified_at=metadata.last_modified_at,
            )
        except ValueError as exc:
            self.logger.error(
                "Stored booking is inconsistent: %s",
                exc,
                extra={"booking_id": metadata.booking_id},
            )
            raise InternalErrorException(
                "metadata_unreadable", details={"booking_id": metadata.booking_id}
            ) from exc

    def _metadata_for(self, record: BookingRecord) -> BookingMetadata:
        return BookingMetadata(
            booking_id=record.booking_id,
            student_name=record.student_name,
            student_email=record.student_email,
            student_timezone=record.student_timezone,
            note=record.note or "",
            created_at=record.created_at,
            modification_count=record.modification_count,
            last_modified_at=record.last_modified_at,
        )

    def _call_calendar(self, operation: str, func: Callable[..., T], *args: Any) -> T:
        """Run a calendar call, mapping anything that is not a domain error to RemoteUnavailable."""
        try:
            return func(*args)
        except DomainException:
            raise
        except Exception as exc:
            self.logger.error("Calendar %s failed: %s", operation, exc, exc_info=True)
            raise RemoteUnavailableException(details={"operation": operation}) from exc

    @contextmanager
    def _track_outcome(self, operation: str) -> Iterator[None]:
        try:
            yield
        except DomainException as exc:
            prometheus_metrics.record_booking_outcome(operation, exc.code)
            raise
        prometheus_metrics.record_booking_outcome(operation, "success")
