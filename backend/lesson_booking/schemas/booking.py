# backend/lesson_booking/schemas/booking.py
"""
Request and response schemas for the booking endpoints.

Request rules: student name 1-50 characters, a valid email, an optional note
of at most 500 characters, and datetimes carrying an explicit UTC offset.
"""

from datetime import datetime, timezone
from typing import List, Optional

from pydantic import AwareDatetime, EmailStr, Field, field_validator

from ..core.constants import MAX_NOTE_LENGTH, MAX_STUDENT_NAME_LENGTH
from ..models.booking import AnnotatedSlot, BookingInfo
from ..services.booking_service import BookingConfirmation, BookingDetails
from ._strict_base import ResponseModel, StrictRequestModel


def _to_utc(value: datetime) -> datetime:
    return value.astimezone(timezone.utc)


class BookingCreate(StrictRequestModel):
    """Schema for booking a slot."""

    start_time: AwareDatetime = Field(..., description="Slot start, ISO-8601 with offset")
    student_name: str = Field(..., min_length=1, max_length=MAX_STUDENT_NAME_LENGTH)
    student_email: EmailStr
    student_timezone: Optional[str] = Field(None, description="IANA timezone of the student")
    note: Optional[str] = Field(None, max_length=MAX_NOTE_LENGTH)

    @field_validator("start_time")
    @classmethod
    def normalize_start(cls, v: datetime) -> datetime:
        return _to_utc(v)

    @field_validator("note")
    @classmethod
    def blank_note_is_none(cls, v: Optional[str]) -> Optional[str]:
        return v or None

    def to_booking_info(self, default_timezone: str) -> BookingInfo:
        return BookingInfo(
            student_name=self.student_name,
            student_email=str(self.student_email),
            student_timezone=self.student_timezone or default_timezone,
            note=self.note,
        )


class BookingModify(StrictRequestModel):
    """Schema for moving a booking to a new slot."""

    email: EmailStr
    new_start_time: AwareDatetime

    @field_validator("new_start_time")
    @classmethod
    def normalize_start(cls, v: datetime) -> datetime:
        return _to_utc(v)


class BookingCancel(StrictRequestModel):
    email: EmailStr


class SlotResponse(ResponseModel):
    start_time: datetime
    end_time: datetime
    instructor_time: str
    student_time: str
    display_instructor: str
    display_student: str

    @classmethod
    def from_annotated(cls, slot: AnnotatedSlot) -> "SlotResponse":
        return cls(**slot.to_payload())


class AvailableSlotsResponse(ResponseModel):
    success: bool = True
    date: str
    instructor_timezone: str
    student_timezone: str
    slots: List[SlotResponse]


class BookingCreatedData(ResponseModel):
    event_id: str
    start_time: datetime
    end_time: datetime
    html_link: Optional[str] = None


class BookingCreateResponse(ResponseModel):
    success: bool = True
    booking_id: str
    message: str
    data: BookingCreatedData

    @classmethod
    def from_confirmation(cls, confirmation: BookingConfirmation, message: str) -> "BookingCreateResponse":
        return cls(
            booking_id=confirmation.booking_id,
            message=message,
            data=BookingCreatedData(
                event_id=confirmation.external_id,
                start_time=confirmation.lesson_start,
                end_time=confirmation.lesson_end,
                html_link=confirmation.html_link,
            ),
        )


class BookingDetailOut(ResponseModel):
    booking_id: str
    student_name: str
    student_email: str
    student_timezone: str
    note: Optional[str] = None
    start_time: datetime
    end_time: datetime
    display_instructor: str
    display_student: str
    created_at: datetime
    modification_count: int
    last_modified_at: Optional[datetime] = None
    can_cancel: bool
    cancel_error: Optional[str] = None
    can_modify: bool
    modify_error: Optional[str] = None


class BookingDetailResponse(ResponseModel):
    success: bool = True
    booking: BookingDetailOut

    @classmethod
    def from_details(cls, details: BookingDetails, locale: str) -> "BookingDetailResponse":
        record = details.record
        return cls(
            booking=BookingDetailOut(
                booking_id=record.booking_id,
                student_name=record.student_name,
                student_email=record.student_email,
                student_timezone=record.student_timezone,
                note=record.note,
                start_time=record.lesson_start,
                end_time=record.lesson_end,
                display_instructor=details.display_instructor,
                display_student=details.display_student,
                created_at=record.created_at,
                modification_count=record.modification_count,
                last_modified_at=record.last_modified_at,
                can_cancel=details.can_cancel,
                cancel_error=details.cancel_status.message(locale),
                can_modify=details.can_modify,
                modify_error=details.modify_status.message(locale),
            )
        )


class BookingActionResponse(ResponseModel):
    success: bool = True
    booking_id: str
    message: str
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    modification_count: Optional[int] = None


class ErrorBody(ResponseModel):
    code: str
    message: str


class ErrorResponse(ResponseModel):
    success: bool = False
    error: ErrorBody
