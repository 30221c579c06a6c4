"""Application-wide constants for the MZK lesson booking engine."""

from __future__ import annotations

BRAND_NAME = "MZK Japanese Lessons"

API_TITLE = f"{BRAND_NAME} Booking API"
API_VERSION = "1.0.0"
API_DESCRIPTION = "Availability and booking engine for single-instructor lessons."

# Timezones (IANA identifiers)
DEFAULT_INSTRUCTOR_TIMEZONE = "Asia/Tokyo"
DEFAULT_STUDENT_TIMEZONE = "Asia/Taipei"

# Booking identifier: PREFIX-YYYYMMDD-XXXXXX
DEFAULT_BOOKING_ID_PREFIX = "MZK"
BOOKING_ID_SUFFIX_LENGTH = 6
BOOKING_ID_ALPHABET = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"
MAX_BOOKING_ID_ATTEMPTS = 3

# Text constraints
MAX_STUDENT_NAME_LENGTH = 50
MAX_NOTE_LENGTH = 500
MAX_EMAIL_LENGTH = 254

# Window searched for a booking marker, relative to now
BOOKING_SEARCH_LOOKBACK_DAYS = 30
BOOKING_SEARCH_LOOKAHEAD_DAYS = 60

# Calendar event reminders (minutes before start)
EMAIL_REMINDER_MINUTES = 24 * 60
POPUP_REMINDER_MINUTES = 30

# Display formats (strftime)
TIME_FORMAT = "%H:%M"
DATE_TIME_FORMAT = "%Y-%m-%d %H:%M"
DATE_WITH_WEEKDAY_FORMAT = "%Y/%m/%d (%a)"

API_V1_PREFIX = "/api/v1"
