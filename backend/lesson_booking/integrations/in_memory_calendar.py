"""In-memory calendar for local development and tests."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
import logging
import threading
from typing import Dict, List, Optional
from uuid import uuid4

from ..core.exceptions import BookingIdConflictException, BookingNotFoundException
from ..models.booking import TimeInterval
from .booking_metadata import BookingMetadata
from .calendar_client import CalendarClient, CalendarEvent, CreatedEvent


@dataclass
class SentNotification:
    action: str
    attendee_email: Optional[str]
    external_id: str


@dataclass
class _StoredEvent:
    interval: TimeInterval
    metadata: BookingMetadata
    attendee_email: str


class InMemoryCalendarClient(CalendarClient):
    """Thread-safe stand-in for the remote calendar."""

    def __init__(self) -> None:
        self._events: Dict[str, _StoredEvent] = {}
        self._blocked: List[TimeInterval] = []
        self._lock = threading.Lock()
        self.notifications: List[SentNotification] = []
        self._logger = logging.getLogger(self.__class__.__name__)

    def block(self, interval: TimeInterval) -> None:
        """Mark time busy without a booking (instructor's own events)."""
        with self._lock:
            self._blocked.append(interval)

    def query_busy(self, range_start: datetime, range_end: datetime) -> List[TimeInterval]:
        window = TimeInterval(range_start, range_end)
        with self._lock:
            intervals = self._blocked + [event.interval for event in self._events.values()]
        return sorted((i for i in intervals if i.overlaps(window)), key=lambda i: i.start)

    def create_event(
        self, interval: TimeInterval, metadata: BookingMetadata, attendee_email: str
    ) -> CreatedEvent:
        with self._lock:
            if any(e.metadata.booking_id == metadata.booking_id for e in self._events.values()):
                raise BookingIdConflictException(details={"booking_id": metadata.booking_id})
            external_id = f"evt_{uuid4().hex}"
            self._events[external_id] = _StoredEvent(interval, metadata, attendee_email)
            self.notifications.append(SentNotification("created", attendee_email, external_id))
        self._logger.debug(
            "In-memory event created",
            extra={"external_id": external_id, "booking_id": metadata.booking_id},
        )
        return CreatedEvent(external_id=external_id, booking_id=metadata.booking_id)

    def find_event_by_marker(self, booking_id: str) -> Optional[CalendarEvent]:
        with self._lock:
            for external_id, event in self._events.items():
                if event.metadata.booking_id == booking_id:
                    return CalendarEvent(
                        external_id=external_id,
                        interval=event.interval,
                        metadata=event.metadata,
                        attendee_email=event.attendee_email,
                    )
        return None

    def patch_event(
        self, external_id: str, new_interval: TimeInterval, new_metadata: BookingMetadata
    ) -> None:
        with self._lock:
            event = self._events.get(external_id)
            if event is None:
                raise BookingNotFoundException(details={"external_id": external_id})
            event.interval = new_interval
            event.metadata = new_metadata
            self.notifications.append(SentNotification("updated", event.attendee_email, external_id))

    def delete_event(self, external_id: str) -> None:
        with self._lock:
            event = self._events.pop(external_id, None)
            if event is None:
                raise BookingNotFoundException(details={"external_id": external_id})
            self.notifications.append(SentNotification("cancelled", event.attendee_email, external_id))

    @property
    def event_count(self) -> int:
        with self._lock:
            return len(self._events)
