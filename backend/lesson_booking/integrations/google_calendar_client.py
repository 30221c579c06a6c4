"""Google Calendar implementation of the calendar collaborator."""

from __future__ import annotations

from datetime import datetime, timedelta
import logging
from typing import Any, Callable, Dict, List, Optional

from google.auth.exceptions import GoogleAuthError
from google.oauth2 import service_account
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
import httplib2

from ..core.config import Settings
from ..core.constants import (
    BOOKING_SEARCH_LOOKAHEAD_DAYS,
    BOOKING_SEARCH_LOOKBACK_DAYS,
    EMAIL_REMINDER_MINUTES,
    POPUP_REMINDER_MINUTES,
)
from ..core.exceptions import (
    BookingNotFoundException,
    InternalErrorException,
    InvalidDateFormatException,
    RemoteUnavailableException,
)
from ..core.timezone_service import TimezoneService
from ..models.booking import TimeInterval
from .booking_metadata import (
    BookingMetadata,
    MetadataDecodeError,
    contains_marker,
    parse_description,
    render_description,
)
from .calendar_client import CalendarClient, CalendarEvent, CreatedEvent

logger = logging.getLogger(__name__)

SCOPES = ["https://www.googleapis.com/auth/calendar"]

_TRANSPORT_ERRORS = (HttpError, GoogleAuthError, httplib2.HttpLib2Error, OSError)


def build_credentials(settings: Settings) -> service_account.Credentials:
    """Service account credentials from inline env values or a key file."""
    if settings.google_service_account_email and settings.google_private_key:
        info = {
            "type": "service_account",
            "client_email": settings.google_service_account_email,
            "private_key": settings.google_private_key.get_secret_value(),
            "token_uri": "https://oauth2.googleapis.com/token",
        }
        return service_account.Credentials.from_service_account_info(info, scopes=SCOPES)
    if settings.google_service_account_file:
        return service_account.Credentials.from_service_account_file(
            settings.google_service_account_file, scopes=SCOPES
        )
    raise ValueError(
        "Google credentials missing: set GOOGLE_SERVICE_ACCOUNT_EMAIL and GOOGLE_PRIVATE_KEY "
        "or GOOGLE_SERVICE_ACCOUNT_FILE"
    )


class GoogleCalendarClient(CalendarClient):
    """Reads free/busy and stores bookings as events on one Google calendar."""

    def __init__(
        self,
        *,
        calendar_id: str,
        service: Any,
        instructor_timezone: str,
        summary_prefix: str = "Japanese lesson",
        no_note_label: str = "None",
        clock: Callable[[], datetime] = TimezoneService.utc_now,
    ) -> None:
        if not calendar_id:
            raise ValueError("GOOGLE_CALENDAR_ID is not set")
        self._calendar_id = calendar_id
        self._service = service
        self._timezone = instructor_timezone
        self._summary_prefix = summary_prefix
        self._no_note_label = no_note_label
        self._clock = clock

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs: Any) -> "GoogleCalendarClient":
        credentials = build_credentials(settings)
        service = build("calendar", "v3", credentials=credentials, cache_discovery=False)
        return cls(
            calendar_id=settings.google_calendar_id or "",
            service=service,
            instructor_timezone=settings.instructor_timezone,
            **kwargs,
        )

    def _execute(self, request: Any, operation: str) -> Dict[str, Any]:
        try:
            return request.execute() or {}
        except HttpError as exc:
            status = getattr(exc.resp, "status", None)
            if operation in {"patch", "delete"} and status in (404, 410):
                raise BookingNotFoundException(details={"operation": operation})
            logger.error("Google Calendar %s failed with status %s: %s", operation, status, exc)
            raise RemoteUnavailableException(details={"operation": operation}) from exc
        except _TRANSPORT_ERRORS as exc:
            logger.error("Google Calendar %s transport error: %s", operation, exc)
            raise RemoteUnavailableException(details={"operation": operation}) from exc

    def _time_body(self, instant: datetime) -> Dict[str, str]:
        return {"dateTime": instant.isoformat(), "timeZone": self._timezone}

    def query_busy(self, range_start: datetime, range_end: datetime) -> List[TimeInterval]:
        body = {
            "timeMin": range_start.isoformat(),
            "timeMax": range_end.isoformat(),
            "items": [{"id": self._calendar_id}],
            "timeZone": self._timezone,
        }
        result = self._execute(self._service.freebusy().query(body=body), "freebusy")
        calendar = result.get("calendars", {}).get(self._calendar_id, {})
        if calendar.get("errors"):
            logger.error("freebusy.query returned errors: %s", calendar["errors"])
            raise RemoteUnavailableException(details={"operation": "freebusy"})

        intervals = []
        for block in calendar.get("busy", []):
            try:
                start = TimezoneService.parse_iso_datetime(block["start"])
                end = TimezoneService.parse_iso_datetime(block["end"])
            except (KeyError, InvalidDateFormatException) as exc:
                logger.error("Malformed busy block %s: %s", block, exc)
                raise RemoteUnavailableException(details={"operation": "freebusy"}) from exc
            if start < end:
                intervals.append(TimeInterval(start, end))
        logger.debug("freebusy %s..%s: %d busy blocks", range_start, range_end, len(intervals))
        return intervals

    def create_event(
        self, interval: TimeInterval, metadata: BookingMetadata, attendee_email: str
    ) -> CreatedEvent:
        event = {
            "summary": f"{self._summary_prefix} - {metadata.student_name}",
            "description": render_description(metadata, no_note_label=self._no_note_label),
            "start": self._time_body(interval.start),
            "end": self._time_body(interval.end),
            "attendees": [{"email": attendee_email, "displayName": metadata.student_name}],
            "reminders": {
                "useDefault": False,
                "overrides": [
                    {"method": "email", "minutes": EMAIL_REMINDER_MINUTES},
                    {"method": "popup", "minutes": POPUP_REMINDER_MINUTES},
                ],
            },
        }
        request = self._service.events().insert(
            calendarId=self._calendar_id, body=event, sendUpdates="all"
        )
        created = self._execute(request, "insert")
        return CreatedEvent(
            external_id=created["id"],
            booking_id=metadata.booking_id,
            html_link=created.get("htmlLink"),
        )

    def find_event_by_marker(self, booking_id: str) -> Optional[CalendarEvent]:
        now = self._clock()
        params: Dict[str, Any] = {
            "calendarId": self._calendar_id,
            "timeMin": (now - timedelta(days=BOOKING_SEARCH_LOOKBACK_DAYS)).isoformat(),
            "timeMax": (now + timedelta(days=BOOKING_SEARCH_LOOKAHEAD_DAYS)).isoformat(),
            "q": booking_id,
            "singleEvents": True,
        }
        while True:
            page = self._execute(self._service.events().list(**params), "list")
            for item in page.get("items", []):
                if not contains_marker(item.get("description"), booking_id):
                    continue
                event = self._to_calendar_event(item)
                if event.metadata.booking_id == booking_id:
                    return event
            token = page.get("nextPageToken")
            if not token:
                return None
            params["pageToken"] = token

    def _to_calendar_event(self, item: Dict[str, Any]) -> CalendarEvent:
        try:
            metadata = parse_description(item.get("description"))
            start = TimezoneService.parse_iso_datetime(item["start"]["dateTime"])
            end = TimezoneService.parse_iso_datetime(item["end"]["dateTime"])
            interval = TimeInterval(start, end)
        except (MetadataDecodeError, InvalidDateFormatException, KeyError, ValueError) as exc:
            logger.error("Unreadable booking event %s: %s", item.get("id"), exc)
            raise InternalErrorException("metadata_unreadable", details={"event_id": item.get("id")}) from exc

        attendees = item.get("attendees") or []
        return CalendarEvent(
            external_id=item["id"],
            interval=interval,
            metadata=metadata,
            attendee_email=attendees[0].get("email") if attendees else None,
            html_link=item.get("htmlLink"),
        )

    def patch_event(
        self, external_id: str, new_interval: TimeInterval, new_metadata: BookingMetadata
    ) -> None:
        body = {
            "start": self._time_body(new_interval.start),
            "end": self._time_body(new_interval.end),
            "description": render_description(new_metadata, no_note_label=self._no_note_label),
        }
        request = self._service.events().patch(
            calendarId=self._calendar_id, eventId=external_id, body=body, sendUpdates="all"
        )
        self._execute(request, "patch")

    def delete_event(self, external_id: str) -> None:
        request = self._service.events().delete(
            calendarId=self._calendar_id, eventId=external_id, sendUpdates="all"
        )
        self._execute(request, "delete")
