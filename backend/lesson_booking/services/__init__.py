from .availability_service import AvailabilityService
from .booking_service import BookingConfirmation, BookingDetails, BookingService
from .policy_engine import PolicyEngine, PolicyReason, PolicyResult
from .slot_generator import SlotGenerator

__all__ = [
    "AvailabilityService",
    "BookingConfirmation",
    "BookingDetails",
    "BookingService",
    "PolicyEngine",
    "PolicyReason",
    "PolicyResult",
    "SlotGenerator",
]
