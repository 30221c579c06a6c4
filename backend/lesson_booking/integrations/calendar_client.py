"""
Calendar collaborator contract.

The engine reads busy time and stores bookings only through this interface.
Implementations raise ``RemoteUnavailableException`` for transport or auth
failures and ``InternalErrorException`` for unreadable stored metadata; they
never leak provider-specific errors.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from ..models.booking import TimeInterval
from .booking_metadata import BookingMetadata


@dataclass(frozen=True)
class CalendarEvent:
    external_id: str
    interval: TimeInterval
    metadata: BookingMetadata
    attendee_email: Optional[str] = None
    html_link: Optional[str] = None


@dataclass(frozen=True)
class CreatedEvent:
    external_id: str
    booking_id: str
    html_link: Optional[str] = None


class CalendarClient(ABC):
    """Narrow interface to the instructor's calendar."""

    @abstractmethod
    def query_busy(self, range_start: datetime, range_end: datetime) -> List[TimeInterval]:
        """Busy intervals intersecting [range_start, range_end)."""

    @abstractmethod
    def create_event(
        self, interval: TimeInterval, metadata: BookingMetadata, attendee_email: str
    ) -> CreatedEvent:
        """
        Store a booking event and notify the attendee.

        Raises:
            BookingIdConflictException: If metadata.booking_id is already in use
        """

    @abstractmethod
    def find_event_by_marker(self, booking_id: str) -> Optional[CalendarEvent]:
        """Find the live event whose metadata carries booking_id."""

    @abstractmethod
    def patch_event(
        self, external_id: str, new_interval: TimeInterval, new_metadata: BookingMetadata
    ) -> None:
        """Move an event and replace its metadata, notifying the attendee."""

    @abstractmethod
    def delete_event(self, external_id: str) -> None:
        """Remove an event, notifying the attendee."""
