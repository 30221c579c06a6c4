"""
Calendar routes - API v1

Booking endpoints under /api/v1/calendar.
All business logic delegated to AvailabilityService and BookingService.

Endpoints:
    GET    /available-slots?date=YYYY-MM-DD&timezone=Zone  → Open slots for a day
    POST   /book                                            → Book a slot
    GET    /booking/{booking_id}?email=                     → Booking details
    PATCH  /booking/{booking_id}                            → Move a booking
    DELETE /booking/{booking_id}                            → Cancel a booking
"""

import asyncio
import logging
from typing import NoReturn, Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status

from ...api.dependencies import (
    get_availability_service,
    get_booking_service,
    get_engine_config,
)
from ...core.config import EngineConfig
from ...core.exceptions import DomainException
from ...core.messages import translate
from ...schemas.booking import (
    AvailableSlotsResponse,
    BookingActionResponse,
    BookingCancel,
    BookingCreate,
    BookingCreateResponse,
    BookingDetailResponse,
    BookingModify,
    ErrorResponse,
    SlotResponse,
)
from ...services.availability_service import AvailabilityService
from ...services.booking_service import BookingService

logger = logging.getLogger(__name__)

# V1 router - no prefix here, will be added when mounting in main.py
router = APIRouter(tags=["calendar-v1"])

ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Invalid input or policy violation"},
    403: {"model": ErrorResponse, "description": "Email does not match the booking"},
    404: {"model": ErrorResponse, "description": "Booking not found"},
    409: {"model": ErrorResponse, "description": "Slot already taken"},
    503: {"model": ErrorResponse, "description": "Calendar unavailable"},
}


def handle_domain_exception(exc: DomainException, locale: str) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    raise exc.to_http_exception(locale)


def _unexpected(operation: str, exc: Exception, locale: str) -> NoReturn:
    logger.error("Unexpected error in %s: %s", operation, exc, exc_info=True)
    raise HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail={"code": "INTERNAL_ERROR", "message": translate("internal_error", locale)},
    )


@router.get(
    "/available-slots",
    response_model=AvailableSlotsResponse,
    responses=ERROR_RESPONSES,
)
async def get_available_slots(
    date: Optional[str] = Query(None, description="Day in the instructor's timezone (YYYY-MM-DD)"),
    timezone: Optional[str] = Query(None, description="Student timezone (IANA)"),
    config: EngineConfig = Depends(get_engine_config),
    service: AvailabilityService = Depends(get_availability_service),
) -> AvailableSlotsResponse:
    """List open slots for one day, displayed in both timezones."""
    student_timezone = timezone or config.default_student_timezone
    try:
        day = service.parse_day(date)
        slots = await asyncio.to_thread(service.list_available_slots, day, student_timezone)
    except DomainException as exc:
        handle_domain_exception(exc, config.locale)
    except Exception as e:
        _unexpected("get_available_slots", e, config.locale)

    return AvailableSlotsResponse(
        date=day.isoformat(),
        instructor_timezone=config.instructor_timezone,
        student_timezone=student_timezone,
        slots=[SlotResponse.from_annotated(slot) for slot in slots],
    )


@router.post(
    "/book",
    response_model=BookingCreateResponse,
    status_code=status.HTTP_201_CREATED,
    responses=ERROR_RESPONSES,
)
async def create_booking(
    payload: BookingCreate,
    config: EngineConfig = Depends(get_engine_config),
    service: BookingService = Depends(get_booking_service),
) -> BookingCreateResponse:
    """Book the slot at ``start_time``; the student is notified by the calendar."""
    try:
        confirmation = await asyncio.to_thread(
            service.create,
            payload.start_time,
            payload.to_booking_info(config.default_student_timezone),
        )
    except DomainException as exc:
        handle_domain_exception(exc, config.locale)
    except Exception as e:
        _unexpected("create_booking", e, config.locale)

    return BookingCreateResponse.from_confirmation(
        confirmation, translate("booking_created", config.locale)
    )


@router.get(
    "/booking/{booking_id}",
    response_model=BookingDetailResponse,
    responses=ERROR_RESPONSES,
)
async def get_booking(
    booking_id: str = Path(..., description="Booking id, e.g. MZK-20240101-AB12CD"),
    email: str = Query(..., min_length=3, description="Email used for the booking"),
    config: EngineConfig = Depends(get_engine_config),
    service: BookingService = Depends(get_booking_service),
) -> BookingDetailResponse:
    """Booking details plus whether it can still be cancelled or changed."""
    try:
        details = await asyncio.to_thread(service.get_booking_details, booking_id, email)
    except DomainException as exc:
        handle_domain_exception(exc, config.locale)
    except Exception as e:
        _unexpected("get_booking", e, config.locale)

    return BookingDetailResponse.from_details(details, config.locale)


@router.patch(
    "/booking/{booking_id}",
    response_model=BookingActionResponse,
    responses=ERROR_RESPONSES,
)
async def modify_booking(
    payload: BookingModify,
    booking_id: str = Path(..., description="Booking id"),
    config: EngineConfig = Depends(get_engine_config),
    service: BookingService = Depends(get_booking_service),
) -> BookingActionResponse:
    """Move a booking to a new slot."""
    try:
        record = await asyncio.to_thread(
            service.modify, booking_id, str(payload.email), payload.new_start_time
        )
    except DomainException as exc:
        handle_domain_exception(exc, config.locale)
    except Exception as e:
        _unexpected("modify_booking", e, config.locale)

    return BookingActionResponse(
        booking_id=record.booking_id,
        message=translate("booking_modified", config.locale),
        start_time=record.lesson_start,
        end_time=record.lesson_end,
        modification_count=record.modification_count,
    )


@router.delete(
    "/booking/{booking_id}",
    response_model=BookingActionResponse,
    responses=ERROR_RESPONSES,
)
async def cancel_booking(
    payload: BookingCancel,
    booking_id: str = Path(..., description="Booking id"),
    config: EngineConfig = Depends(get_engine_config),
    service: BookingService = Depends(get_booking_service),
) -> BookingActionResponse:
    """Cancel a booking; the calendar event is removed."""
    try:
        record = await asyncio.to_thread(service.cancel, booking_id, str(payload.email))
    except DomainException as exc:
        handle_domain_exception(exc, config.locale)
    except Exception as e:
        _unexpected("cancel_booking", e, config.locale)

    return BookingActionResponse(
        booking_id=record.booking_id,
        message=translate("booking_cancelled", config.locale),
    )
