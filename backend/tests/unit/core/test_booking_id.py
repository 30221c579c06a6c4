# backend/tests/unit/core/test_booking_id.py
import re
from datetime import date

import pytest

from lesson_booking.core.booking_id import (
    generate_booking_id,
    get_date_from_booking_id,
    is_valid_booking_id,
)
from tests.helpers import BOOKING_ID_RE, NOW


def test_generated_id_format():
    assert re.match(BOOKING_ID_RE, generate_booking_id("MZK", NOW))


def test_generated_ids_differ():
    ids = {generate_booking_id("MZK", NOW) for _ in range(50)}
    assert len(ids) > 1


def test_custom_prefix():
    booking_id = generate_booking_id("ABC", NOW)
    assert booking_id.startswith("ABC-20240101-")
    assert is_valid_booking_id(booking_id, "ABC")
    assert not is_valid_booking_id(booking_id, "MZK")


@pytest.mark.parametrize(
    "value",
    [
        None,
        "",
        "MZK-2024011-ABC123",
        "MZK-20240101-abc123",
        "MZK-20240101-ABC12",
        "MZK-20241301-ABC123",
        "XYZ-20240101-ABC123",
    ],
)
def test_invalid_ids(value):
    assert not is_valid_booking_id(value)


def test_date_is_extracted():
    assert get_date_from_booking_id("MZK-20240105-ABC123") == date(2024, 1, 5)
    assert get_date_from_booking_id("garbage") is None
