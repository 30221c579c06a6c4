# backend/tests/unit/integrations/test_in_memory_calendar.py
import pytest

from lesson_booking.core.exceptions import BookingIdConflictException, BookingNotFoundException
from lesson_booking.models.booking import TimeInterval
from tests.helpers import STUDENT_EMAIL, seed_booking, utc


def test_query_busy_returns_overlapping_blocks_sorted(calendar):
    seed_booking(calendar, utc(2024, 1, 5, 5, 0))
    calendar.block(TimeInterval(utc(2024, 1, 5, 2, 0), utc(2024, 1, 5, 3, 0)))
    calendar.block(TimeInterval(utc(2024, 1, 6, 2, 0), utc(2024, 1, 6, 3, 0)))

    busy = calendar.query_busy(utc(2024, 1, 5, 0, 0), utc(2024, 1, 5, 12, 0))

    assert [b.start for b in busy] == [utc(2024, 1, 5, 2, 0), utc(2024, 1, 5, 5, 0)]


def test_query_busy_window_is_half_open(calendar):
    calendar.block(TimeInterval(utc(2024, 1, 5, 2, 0), utc(2024, 1, 5, 3, 0)))
    assert calendar.query_busy(utc(2024, 1, 5, 3, 0), utc(2024, 1, 5, 4, 0)) == []


def test_create_and_find(calendar):
    created = seed_booking(calendar, utc(2024, 1, 5, 5, 0), note="hello")

    event = calendar.find_event_by_marker(created.booking_id)

    assert event.external_id == created.external_id
    assert event.metadata.note == "hello"
    assert event.attendee_email == STUDENT_EMAIL
    assert calendar.notifications[0].action == "created"


def test_duplicate_booking_id_conflicts(calendar):
    seed_booking(calendar, utc(2024, 1, 5, 5, 0))
    with pytest.raises(BookingIdConflictException):
        seed_booking(calendar, utc(2024, 1, 6, 5, 0))
    assert calendar.event_count == 1


def test_find_unknown_returns_none(calendar):
    assert calendar.find_event_by_marker("MZK-20240101-NOPE00") is None


def test_patch_moves_event(calendar):
    created = seed_booking(calendar, utc(2024, 1, 5, 5, 0))
    event = calendar.find_event_by_marker(created.booking_id)
    new_interval = TimeInterval(utc(2024, 1, 7, 5, 0), utc(2024, 1, 7, 5, 50))

    calendar.patch_event(
        created.external_id,
        new_interval,
        event.metadata.model_copy(update={"modification_count": 1}),
    )

    moved = calendar.find_event_by_marker(created.booking_id)
    assert moved.interval == new_interval
    assert moved.metadata.modification_count == 1
    assert calendar.notifications[-1].action == "updated"


def test_delete_removes_event(calendar):
    created = seed_booking(calendar, utc(2024, 1, 5, 5, 0))

    calendar.delete_event(created.external_id)

    assert calendar.find_event_by_marker(created.booking_id) is None
    assert calendar.notifications[-1].action == "cancelled"


def test_unknown_external_id_is_not_found(calendar):
    interval = TimeInterval(utc(2024, 1, 7, 5, 0), utc(2024, 1, 7, 5, 50))
    with pytest.raises(BookingNotFoundException):
        calendar.delete_event("evt_missing")
    with pytest.raises(BookingNotFoundException):
        calendar.patch_event("evt_missing", interval, None)
