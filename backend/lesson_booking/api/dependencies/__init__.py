from .services import (
    get_availability_service,
    get_booking_service,
    get_calendar_client,
    get_engine_config,
    get_slot_claimer,
)

__all__ = [
    "get_availability_service",
    "get_booking_service",
    "get_calendar_client",
    "get_engine_config",
    "get_slot_claimer",
]
