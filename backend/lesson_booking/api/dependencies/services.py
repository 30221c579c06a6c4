"""
Service layer dependencies for dependency injection.

Everything is scoped to the app built by ``create_app``: the engine config
comes from the settings the app was created with, and the calendar client and
slot claimer are built from those settings on first use and kept on
``app.state``. Tests replace any of these through ``app.dependency_overrides``.
"""

import logging
import threading
from typing import Callable, TypeVar

from fastapi import Depends, FastAPI, Request

from ...core.booking_lock import SlotClaimer
from ...core.config import EngineConfig, Settings
from ...core.messages import translate
from ...integrations import CalendarClient, GoogleCalendarClient, InMemoryCalendarClient
from ...services.availability_service import AvailabilityService
from ...services.booking_service import BookingService

logger = logging.getLogger(__name__)

T = TypeVar("T")

_build_lock = threading.Lock()


def _app_singleton(app: FastAPI, name: str, build: Callable[[Settings, EngineConfig], T]) -> T:
    instance = getattr(app.state, name, None)
    if instance is not None:
        return instance
    with _build_lock:
        instance = getattr(app.state, name, None)
        if instance is None:
            instance = build(app.state.settings, app.state.engine_config)
            setattr(app.state, name, instance)
    return instance


def _build_calendar_client(settings: Settings, config: EngineConfig) -> CalendarClient:
    if settings.calendar_backend == "memory":
        logger.warning("CALENDAR_BACKEND=memory: bookings are not persisted")
        return InMemoryCalendarClient()
    return GoogleCalendarClient.from_settings(
        settings, no_note_label=translate("no_note", config.locale)
    )


def _build_slot_claimer(settings: Settings, config: EngineConfig) -> SlotClaimer:
    return SlotClaimer.from_url(
        settings.redis_url,
        namespace=settings.redis_namespace,
        ttl_s=settings.slot_claim_ttl_seconds,
    )


def get_engine_config(request: Request) -> EngineConfig:
    return request.app.state.engine_config


def get_calendar_client(request: Request) -> CalendarClient:
    return _app_singleton(request.app, "calendar_client", _build_calendar_client)


def get_slot_claimer(request: Request) -> SlotClaimer:
    return _app_singleton(request.app, "slot_claimer", _build_slot_claimer)


def get_availability_service(
    config: EngineConfig = Depends(get_engine_config),
    calendar: CalendarClient = Depends(get_calendar_client),
) -> AvailabilityService:
    return AvailabilityService(config, calendar)


def get_booking_service(
    config: EngineConfig = Depends(get_engine_config),
    calendar: CalendarClient = Depends(get_calendar_client),
    claimer: SlotClaimer = Depends(get_slot_claimer),
) -> BookingService:
    return BookingService(config, calendar, claimer)
