from .booking_metadata import BookingMetadata, MetadataDecodeError
from .calendar_client import CalendarClient, CalendarEvent, CreatedEvent
from .google_calendar_client import GoogleCalendarClient
from .in_memory_calendar import InMemoryCalendarClient

__all__ = [
    "BookingMetadata",
    "CalendarClient",
    "CalendarEvent",
    "CreatedEvent",
    "GoogleCalendarClient",
    "InMemoryCalendarClient",
    "MetadataDecodeError",
]
