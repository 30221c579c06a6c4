# backend/tests/routes/test_calendar_routes.py
"""
Route tests for /api/v1/calendar.

Services are wired to an in-memory calendar and a pinned clock through
dependency overrides, so no Google credentials are needed.
"""

from types import SimpleNamespace
from unittest.mock import MagicMock

from fastapi.testclient import TestClient
import pytest

from lesson_booking.api.dependencies import (
    get_availability_service,
    get_booking_service,
    get_calendar_client,
    get_engine_config,
    get_slot_claimer,
)
from lesson_booking.core.config import EngineConfig, Settings
from lesson_booking.core.exceptions import BookingNotFoundException
from lesson_booking.integrations.calendar_client import CalendarClient
from lesson_booking.integrations.in_memory_calendar import InMemoryCalendarClient
from lesson_booking.main import create_app
from lesson_booking.services.booking_service import BookingService
from tests.helpers import STUDENT_EMAIL, seed_booking, utc

BASE = "/api/v1/calendar"
LESSON_START = "2024-01-05T10:00:00Z"


@pytest.fixture
def app(engine_config, availability_service, booking_service):
    app = create_app(Settings(calendar_backend="memory", message_locale="en"))
    app.dependency_overrides[get_engine_config] = lambda: engine_config
    app.dependency_overrides[get_availability_service] = lambda: availability_service
    app.dependency_overrides[get_booking_service] = lambda: booking_service
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app, raise_server_exceptions=False)


def book_payload(**overrides):
    payload = {
        "start_time": LESSON_START,
        "student_name": "Lin Mei",
        "student_email": STUDENT_EMAIL,
        "student_timezone": "Asia/Taipei",
        "note": "Conversation practice",
    }
    payload.update(overrides)
    return payload


def assert_error(response, status_code: int, code: str):
    assert response.status_code == status_code, response.text
    body = response.json()
    assert body["success"] is False
    assert body["error"]["code"] == code
    assert body["error"]["message"]
    return body["error"]


class TestAvailableSlots:
    def test_lists_slots(self, client):
        response = client.get(f"{BASE}/available-slots", params={"date": "2024-01-05"})

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["date"] == "2024-01-05"
        assert data["instructor_timezone"] == "Asia/Tokyo"
        assert data["student_timezone"] == "Asia/Taipei"
        assert len(data["slots"]) == 12
        first = data["slots"][0]
        assert first["start_time"] == "2024-01-05T00:00:00Z"
        assert first["instructor_time"] == "09:00"
        assert first["student_time"] == "08:00"

    def test_student_timezone_parameter(self, client):
        response = client.get(
            f"{BASE}/available-slots", params={"date": "2024-01-05", "timezone": "Europe/London"}
        )
        assert response.json()["slots"][0]["student_time"] == "00:00"

    def test_missing_date(self, client):
        error = assert_error(client.get(f"{BASE}/available-slots"), 400, "INVALID_INPUT")
        assert error["message"] == "Please provide a date"

    def test_malformed_date(self, client):
        response = client.get(f"{BASE}/available-slots", params={"date": "05-01-2024"})
        assert_error(response, 400, "INVALID_INPUT")

    def test_unknown_timezone(self, client):
        response = client.get(
            f"{BASE}/available-slots", params={"date": "2024-01-05", "timezone": "Bad/Zone"}
        )
        error = assert_error(response, 400, "INVALID_INPUT")
        assert "Bad/Zone" in error["message"]


class TestCreateBooking:
    def test_book_slot(self, client, calendar):
        response = client.post(f"{BASE}/book", json=book_payload())

        assert response.status_code == 201, response.text
        body = response.json()
        assert body["success"] is True
        assert body["booking_id"].startswith("MZK-20240101-")
        assert body["message"].startswith("Booking confirmed")
        assert body["data"]["start_time"] == "2024-01-05T10:00:00Z"
        assert body["data"]["end_time"] == "2024-01-05T10:50:00Z"
        assert calendar.event_count == 1

    def test_offset_start_time_is_normalized(self, client):
        response = client.post(f"{BASE}/book", json=book_payload(start_time="2024-01-05T19:00:00+09:00"))
        assert response.status_code == 201
        assert response.json()["data"]["start_time"] == "2024-01-05T10:00:00Z"

    def test_booked_slot_disappears_from_listing(self, client):
        client.post(f"{BASE}/book", json=book_payload())
        slots = client.get(f"{BASE}/available-slots", params={"date": "2024-01-05"}).json()["slots"]
        assert LESSON_START not in [s["start_time"] for s in slots]

    def test_duplicate_booking_conflicts(self, client):
        assert client.post(f"{BASE}/book", json=book_payload()).status_code == 201
        assert_error(client.post(f"{BASE}/book", json=book_payload()), 409, "SLOT_TAKEN")

    @pytest.mark.parametrize(
        "overrides",
        [
            {"student_email": "not-an-email"},
            {"student_name": ""},
            {"student_name": "x" * 51},
            {"note": "x" * 501},
            {"start_time": "2024-01-05T10:00:00"},
            {"start_time": "soon"},
            {"unexpected": "field"},
        ],
    )
    def test_invalid_payload(self, client, calendar, overrides):
        response = client.post(f"{BASE}/book", json=book_payload(**overrides))
        assert_error(response, 400, "INVALID_INPUT")
        assert calendar.event_count == 0

    def test_missing_field(self, client):
        payload = book_payload()
        del payload["student_email"]
        error = assert_error(client.post(f"{BASE}/book", json=payload), 400, "INVALID_INPUT")
        assert "student_email" in error["message"]

    def test_too_soon(self, client):
        response = client.post(f"{BASE}/book", json=book_payload(start_time="2024-01-01T12:00:00Z"))
        error = assert_error(response, 400, "INVALID_INPUT")
        assert error["message"] == "Bookings must be made at least 24 hours in advance"


class TestBookingDetails:
    def test_get_booking(self, client):
        booking_id = client.post(f"{BASE}/book", json=book_payload()).json()["booking_id"]

        response = client.get(f"{BASE}/booking/{booking_id}", params={"email": STUDENT_EMAIL})

        assert response.status_code == 200
        booking = response.json()["booking"]
        assert booking["booking_id"] == booking_id
        assert booking["student_name"] == "Lin Mei"
        assert booking["note"] == "Conversation practice"
        assert booking["display_instructor"] == "2024/01/05 (Fri) 19:00 - 19:50 (Asia/Tokyo)"
        assert booking["display_student"] == "2024/01/05 (Fri) 18:00 - 18:50 (Asia/Taipei)"
        assert booking["modification_count"] == 0
        assert booking["can_cancel"] is True
        assert booking["cancel_error"] is None
        assert booking["can_modify"] is True

    def test_wrong_email_is_forbidden(self, client):
        booking_id = client.post(f"{BASE}/book", json=book_payload()).json()["booking_id"]
        response = client.get(f"{BASE}/booking/{booking_id}", params={"email": "x@example.com"})
        assert_error(response, 403, "EMAIL_MISMATCH")

    def test_unknown_booking(self, client):
        response = client.get(
            f"{BASE}/booking/MZK-20240101-ZZZZZZ", params={"email": STUDENT_EMAIL}
        )
        assert_error(response, 404, "BOOKING_NOT_FOUND")

    def test_email_is_required(self, client):
        assert_error(client.get(f"{BASE}/booking/MZK-20240101-ZZZZZZ"), 400, "INVALID_INPUT")

    def test_blocked_actions_are_explained(self, client, calendar, clock):
        seed_booking(calendar, utc(2024, 1, 5, 10, 0), modification_count=2)
        clock.advance(days=4)

        response = client.get(
            f"{BASE}/booking/MZK-20231220-SEED01", params={"email": STUDENT_EMAIL}
        )

        booking = response.json()["booking"]
        assert booking["can_cancel"] is False
        assert booking["cancel_error"] == "Lessons cannot be cancelled within 24 hours of the start time"
        assert booking["modify_error"] == "A booking can be changed at most 2 times"


class TestModifyAndCancel:
    def test_modify_booking(self, client):
        booking_id = client.post(f"{BASE}/book", json=book_payload()).json()["booking_id"]

        response = client.patch(
            f"{BASE}/booking/{booking_id}",
            json={"email": STUDENT_EMAIL, "new_start_time": "2024-01-06T10:00:00Z"},
        )

        assert response.status_code == 200, response.text
        body = response.json()
        assert body["booking_id"] == booking_id
        assert body["modification_count"] == 1
        assert body["start_time"] == "2024-01-06T10:00:00Z"
        assert body["message"] == "Booking changed successfully"

    def test_modify_into_taken_slot(self, client):
        mine = client.post(f"{BASE}/book", json=book_payload()).json()["booking_id"]
        client.post(f"{BASE}/book", json=book_payload(start_time="2024-01-06T10:00:00Z"))

        response = client.patch(
            f"{BASE}/booking/{mine}",
            json={"email": STUDENT_EMAIL, "new_start_time": "2024-01-06T10:00:00Z"},
        )
        error = assert_error(response, 409, "SLOT_TAKEN")
        assert error["message"].startswith("The new time slot")

    def test_modify_limit(self, client, calendar):
        seed_booking(calendar, utc(2024, 1, 20, 10, 0), modification_count=2)
        response = client.patch(
            f"{BASE}/booking/MZK-20231220-SEED01",
            json={"email": STUDENT_EMAIL, "new_start_time": "2024-01-21T10:00:00Z"},
        )
        assert_error(response, 400, "CANNOT_MODIFY")

    def test_cancel_booking(self, client):
        booking_id = client.post(f"{BASE}/book", json=book_payload()).json()["booking_id"]

        response = client.request(
            "DELETE", f"{BASE}/booking/{booking_id}", json={"email": STUDENT_EMAIL}
        )

        assert response.status_code == 200
        assert response.json()["message"] == "Booking cancelled successfully"
        again = client.get(f"{BASE}/booking/{booking_id}", params={"email": STUDENT_EMAIL})
        assert_error(again, 404, "BOOKING_NOT_FOUND")

    def test_cancel_after_deadline(self, client, clock):
        booking_id = client.post(f"{BASE}/book", json=book_payload()).json()["booking_id"]
        clock.advance(days=3, hours=12)

        response = client.request(
            "DELETE", f"{BASE}/booking/{booking_id}", json={"email": STUDENT_EMAIL}
        )
        assert_error(response, 400, "CANNOT_CANCEL")


class TestCalendarOutage:
    def test_calendar_failure_is_503(self, app, client, engine_config, clock):
        calendar = MagicMock(spec=CalendarClient)
        calendar.find_event_by_marker.side_effect = ConnectionError("reset by peer")
        app.dependency_overrides[get_booking_service] = lambda: BookingService(
            engine_config, calendar, clock=clock
        )

        response = client.get(
            f"{BASE}/booking/MZK-20240101-ABC123", params={"email": STUDENT_EMAIL}
        )

        assert_error(response, 503, "REMOTE_UNAVAILABLE")


class TestLocale:
    def test_messages_follow_configured_locale(self, client, app):
        app.dependency_overrides[get_engine_config] = lambda: EngineConfig(locale="zh-TW")
        error = assert_error(client.get(f"{BASE}/available-slots"), 400, "INVALID_INPUT")
        assert error["message"] == "請提供日期參數"


class TestAppSettings:
    def test_locale_comes_from_app_settings_without_overrides(self):
        client = TestClient(create_app(Settings(calendar_backend="memory", message_locale="ja")))

        error = assert_error(client.get(f"{BASE}/available-slots"), 400, "INVALID_INPUT")

        assert error["message"] == "日付を指定してください"

    def test_calendar_and_claimer_are_scoped_to_the_app(self):
        first = SimpleNamespace(app=create_app(Settings(calendar_backend="memory")))
        second = SimpleNamespace(
            app=create_app(Settings(calendar_backend="memory", message_locale="zh-TW"))
        )

        assert isinstance(get_calendar_client(first), InMemoryCalendarClient)
        assert get_calendar_client(first) is get_calendar_client(first)
        assert get_calendar_client(first) is not get_calendar_client(second)
        assert get_slot_claimer(first) is get_slot_claimer(first)
        assert get_engine_config(second).locale == "zh-TW"

    def test_domain_error_escaping_a_route_uses_envelope(self):
        app = create_app(Settings(calendar_backend="memory", message_locale="ja"))

        @app.get("/missing")
        def missing():
            raise BookingNotFoundException()

        response = TestClient(app).get("/missing")

        error = assert_error(response, 404, "BOOKING_NOT_FOUND")
        assert error["message"] == "予約が見つかりません"


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_metrics(self, client):
        client.get(f"{BASE}/available-slots", params={"date": "2024-01-05"})
        response = client.get("/metrics")
        assert response.status_code == 200
        assert "mzk_service_operations_total" in response.text
