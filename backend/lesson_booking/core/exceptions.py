# backend/lesson_booking/core/exceptions.py
"""
Domain-specific exceptions for the lesson booking engine.

Each exception carries a stable code, a message key into the message catalog
and optional details. The API layer converts them into
``{"success": false, "error": {"code", "message"}}`` responses.
"""

from typing import Any, Dict, Optional

from fastapi import HTTPException, status

from .messages import DEFAULT_LOCALE, translate


class DomainException(Exception):
    """Base exception for all domain-specific errors."""

    code: str = "INTERNAL_ERROR"
    message_key: str = "internal_error"
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message_key: Optional[str] = None,
        *,
        params: Optional[Dict[str, Any]] = None,
        details: Optional[Dict[str, Any]] = None,
        code: Optional[str] = None,
    ) -> None:
        if message_key:
            self.message_key = message_key
        if code:
            self.code = code
        self.params = params or {}
        self.details = details or {}
        self.message = translate(self.message_key, DEFAULT_LOCALE, **self.params)
        super().__init__(self.message)

    def localized_message(self, locale: str) -> str:
        return translate(self.message_key, locale, **self.params)

    def to_error_payload(self, locale: str = DEFAULT_LOCALE) -> Dict[str, Any]:
        return {"code": self.code, "message": self.localized_message(locale)}

    def to_http_exception(self, locale: str = DEFAULT_LOCALE) -> HTTPException:
        return HTTPException(
            status_code=self.status_code,
            detail={
                "message": self.localized_message(locale),
                "code": self.code,
                "details": self.details,
            },
        )


class InvalidInputException(DomainException):
    """Malformed request, or a requested time outside the booking window."""

    code = "INVALID_INPUT"
    message_key = "invalid_input"
    status_code = status.HTTP_400_BAD_REQUEST


class InvalidTimezoneException(InvalidInputException):
    """Raised for an unknown IANA timezone identifier."""

    message_key = "invalid_timezone"

    def __init__(self, timezone_name: Optional[str]) -> None:
        super().__init__(
            params={"timezone": timezone_name},
            details={"timezone": timezone_name},
        )


class InvalidDateFormatException(InvalidInputException):
    """Raised when a date or datetime string cannot be parsed."""

    message_key = "invalid_date_format"

    def __init__(self, value: Optional[str]) -> None:
        super().__init__(params={"value": value}, details={"value": value})


class SlotTakenException(DomainException):
    """The requested slot became busy between listing and writing."""

    code = "SLOT_TAKEN"
    message_key = "slot_taken"
    status_code = status.HTTP_409_CONFLICT


class BookingNotFoundException(DomainException):
    """No live booking carries the requested booking id."""

    code = "BOOKING_NOT_FOUND"
    message_key = "booking_not_found"
    status_code = status.HTTP_404_NOT_FOUND


class EmailMismatchException(DomainException):
    """The caller's email does not own the booking."""

    code = "EMAIL_MISMATCH"
    message_key = "email_mismatch"
    status_code = status.HTTP_403_FORBIDDEN


class CannotCancelException(DomainException):
    """Cancellation blocked by the cancel deadline."""

    code = "CANNOT_CANCEL"
    message_key = "cancel_deadline_passed"
    status_code = status.HTTP_400_BAD_REQUEST


class CannotModifyException(DomainException):
    """Modification blocked by the deadline or the modification count."""

    code = "CANNOT_MODIFY"
    message_key = "modify_deadline_passed"
    status_code = status.HTTP_400_BAD_REQUEST


class RemoteUnavailableException(DomainException):
    """The calendar collaborator failed (transport, auth, quota)."""

    code = "REMOTE_UNAVAILABLE"
    message_key = "remote_unavailable"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


class InternalErrorException(DomainException):
    """Stored booking data is corrupt or otherwise unusable."""

    code = "INTERNAL_ERROR"
    message_key = "internal_error"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class BookingIdConflictException(DomainException):
    """
    Raised by a calendar client when a generated booking id already exists.

    Never surfaces to callers: BookingService regenerates the id and retries.
    """

    code = "INTERNAL_ERROR"
    message_key = "internal_error"
