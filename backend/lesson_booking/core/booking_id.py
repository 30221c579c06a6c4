"""Booking identifier helpers: PREFIX-YYYYMMDD-XXXXXX."""

from datetime import date, datetime, timezone
import re
import secrets
from typing import Optional

from .constants import BOOKING_ID_ALPHABET, BOOKING_ID_SUFFIX_LENGTH, DEFAULT_BOOKING_ID_PREFIX


def booking_id_pattern(prefix: str = DEFAULT_BOOKING_ID_PREFIX) -> re.Pattern[str]:
    return re.compile(rf"^{re.escape(prefix)}-(\d{{8}})-([A-Z0-9]{{{BOOKING_ID_SUFFIX_LENGTH}}})$")


def generate_booking_id(
    prefix: str = DEFAULT_BOOKING_ID_PREFIX, created_at: Optional[datetime] = None
) -> str:
    """Generate a new booking id stamped with the UTC creation date."""
    created = (created_at or datetime.now(timezone.utc)).astimezone(timezone.utc)
    suffix = "".join(secrets.choice(BOOKING_ID_ALPHABET) for _ in range(BOOKING_ID_SUFFIX_LENGTH))
    return f"{prefix}-{created.strftime('%Y%m%d')}-{suffix}"


def is_valid_booking_id(booking_id: Optional[str], prefix: str = DEFAULT_BOOKING_ID_PREFIX) -> bool:
    """Check the shape of a booking id and that its date part is a real date."""
    if not booking_id:
        return False
    match = booking_id_pattern(prefix).match(booking_id)
    if not match:
        return False
    return get_date_from_booking_id(booking_id, prefix) is not None


def get_date_from_booking_id(booking_id: str, prefix: str = DEFAULT_BOOKING_ID_PREFIX) -> Optional[date]:
    """Extract the creation date encoded in a booking id."""
    match = booking_id_pattern(prefix).match(booking_id or "")
    if not match:
        return None
    try:
        return datetime.strptime(match.group(1), "%Y%m%d").date()
    except ValueError:
        return None
