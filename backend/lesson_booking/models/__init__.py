"""Domain models for the lesson booking engine."""

from .booking import AnnotatedSlot, BookingInfo, BookingRecord, Slot, TimeInterval
from .policy import LessonPolicy, WorkingHoursConfig

__all__ = [
    "AnnotatedSlot",
    "BookingInfo",
    "BookingRecord",
    "LessonPolicy",
    "Slot",
    "TimeInterval",
    "WorkingHoursConfig",
]
