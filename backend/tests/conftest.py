# backend/tests/conftest.py
"""
Shared fixtures: a pinned clock, an English-locale engine config, an
in-memory calendar and services wired to them.

All tests run with "now" = 2024-01-01T00:00Z unless they move the clock.
The instructor works 09:00-21:00 Asia/Tokyo (00:00-12:00 UTC).
"""

import pytest

from lesson_booking.core.booking_lock import SlotClaimer
from lesson_booking.core.config import EngineConfig
from lesson_booking.integrations.in_memory_calendar import InMemoryCalendarClient
from lesson_booking.services.availability_service import AvailabilityService
from lesson_booking.services.base import BaseService
from lesson_booking.services.booking_service import BookingService

from .helpers import NOW, FakeClock


@pytest.fixture(autouse=True)
def clear_service_metrics():
    BaseService._class_metrics.clear()
    yield


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(NOW)


@pytest.fixture
def engine_config() -> EngineConfig:
    return EngineConfig(locale="en")


@pytest.fixture
def calendar() -> InMemoryCalendarClient:
    return InMemoryCalendarClient()


@pytest.fixture
def claimer() -> SlotClaimer:
    return SlotClaimer()


@pytest.fixture
def availability_service(engine_config, calendar, clock) -> AvailabilityService:
    return AvailabilityService(engine_config, calendar, clock=clock)


@pytest.fixture
def booking_service(engine_config, calendar, claimer, clock) -> BookingService:
    return BookingService(engine_config, calendar, claimer, clock=clock)
