"""
HTTP tests for the appointment endpoints.
"""

import pytest

from salon.core import timekeeping

pytestmark = [pytest.mark.controllers, pytest.mark.appointment]


@pytest.fixture
def service_id(client, auth_headers):
    response = client.post(
        "/api/services",
        json={"name": "Haircut", "duration": 30, "price": 250},
        headers=auth_headers("admin"),
    )
    assert response.status_code == 201
    return response.get_json()["data"]["id"]


def _book(client, auth_headers, customer_id, service_id, slot="10:00 AM", day="2024-06-01"):
    return client.post(
        "/api/appointments",
        json={"date": day, "time_slot": slot, "services": [service_id]},
        headers=auth_headers("customer", customer_id),
    )


class TestBookingFlow:
    def test_slot_lifecycle(self, client, auth_headers, service_id):
        """Book, collide, cancel, then reschedule another booking into the slot."""
        first = _book(client, auth_headers, 10, service_id)
        assert first.status_code == 201
        first_data = first.get_json()["data"]
        assert first_data["status"] == "pending"
        assert first_data["customer_id"] == 10
        assert first_data["services"] == [service_id]

        clash = _book(client, auth_headers, 11, service_id)
        assert clash.status_code == 409
        assert clash.get_json()["error"] == "conflict"

        cancelled = client.put(
            f"/api/appointments/{first_data['id']}/cancel", headers=auth_headers("customer", 10)
        )
        assert cancelled.status_code == 200
        assert cancelled.get_json()["data"]["status"] == "cancelled"

        other = _book(client, auth_headers, 12, service_id, slot="11:00 AM")
        assert other.status_code == 201
        moved = client.put(
            f"/api/appointments/{other.get_json()['data']['id']}/reschedule",
            json={"date": "2024-06-01", "time_slot": "10:00 AM"},
            headers=auth_headers("staff", 2),
        )
        assert moved.status_code == 200
        assert moved.get_json()["data"]["status"] == "rescheduled"
        assert moved.get_json()["data"]["time_slot"] == "10:00 AM"

        # a rescheduled appointment does not hold the slot
        assert _book(client, auth_headers, 13, service_id).status_code == 201

    def test_unknown_service_is_not_found(self, client, auth_headers, service_id):
        response = client.post(
            "/api/appointments",
            json={"date": "2024-06-01", "time_slot": "9:00 AM", "services": [service_id, 999]},
            headers=auth_headers("customer", 10),
        )
        assert response.status_code == 404
        assert response.get_json()["error"] == "not_found"

    def test_invalid_slot_lists_valid_ones(self, client, auth_headers, service_id):
        response = _book(client, auth_headers, 10, service_id, slot="6:00 PM")

        body = response.get_json()
        assert response.status_code == 400
        assert body["error"] == "validation_error"
        assert "9:00 AM" in body["details"]["valid_slots"]

    def test_customer_cannot_cancel_someone_elses_booking(self, client, auth_headers, service_id):
        booked = _book(client, auth_headers, 10, service_id).get_json()["data"]

        response = client.put(
            f"/api/appointments/{booked['id']}/cancel", headers=auth_headers("customer", 99)
        )
        assert response.status_code == 404

    def test_completed_booking_cannot_be_cancelled(self, client, auth_headers, service_id):
        booked = _book(client, auth_headers, 10, service_id).get_json()["data"]
        client.put(
            f"/api/appointments/{booked['id']}/status",
            json={"status": "completed"},
            headers=auth_headers("admin"),
        )

        response = client.put(
            f"/api/appointments/{booked['id']}/cancel", headers=auth_headers("customer", 10)
        )
        assert response.status_code == 400
        assert response.get_json()["error"] == "invalid_state"


class TestAppointmentQueries:
    def test_my_appointments_only_lists_own(self, client, auth_headers, service_id):
        _book(client, auth_headers, 10, service_id, slot="9:00 AM")
        _book(client, auth_headers, 11, service_id, slot="10:00 AM")

        response = client.get("/api/appointments/my", headers=auth_headers("customer", 10))

        data = response.get_json()["data"]
        assert [a["customer_id"] for a in data] == [10]

    def test_list_filters_by_date(self, client, auth_headers, service_id):
        _book(client, auth_headers, 10, service_id, day="2024-06-01")
        _book(client, auth_headers, 10, service_id, day="2024-06-02")

        response = client.get("/api/appointments?date=2024-06-02", headers=auth_headers("staff"))

        data = response.get_json()["data"]
        assert [a["date"] for a in data] == ["2024-06-02"]

    def test_today_sheet_includes_durations_in_slot_order(self, client, auth_headers, service_id):
        today = timekeeping.today().isoformat()
        _book(client, auth_headers, 10, service_id, slot="1:00 PM", day=today)
        _book(client, auth_headers, 11, service_id, slot="9:00 AM", day=today)

        response = client.get("/api/appointments/today", headers=auth_headers("admin"))

        data = response.get_json()["data"]
        assert [a["time_slot"] for a in data] == ["9:00 AM", "1:00 PM"]
        assert all(a["total_duration"] == 30 for a in data)

    def test_get_unknown_appointment(self, client, auth_headers):
        response = client.get("/api/appointments/4040", headers=auth_headers("admin"))
        assert response.status_code == 404


class TestAppointmentAccess:
    def test_missing_token_is_unauthorized(self, client):
        response = client.post("/api/appointments", json={})
        assert response.status_code == 401
        assert response.get_json()["error"] == "unauthorized"

    def test_invalid_token_is_unauthorized(self, client):
        response = client.get(
            "/api/appointments/my", headers={"Authorization": "Bearer not-a-token"}
        )
        assert response.status_code == 401

    @pytest.mark.parametrize(
        "method, path",
        [
            ("get", "/api/appointments"),
            ("get", "/api/appointments/today"),
            ("put", "/api/appointments/1/status"),
            ("put", "/api/appointments/1/reschedule"),
        ],
    )
    def test_customers_cannot_use_privileged_routes(self, client, auth_headers, method, path):
        response = getattr(client, method)(path, json={}, headers=auth_headers("customer", 10))
        assert response.status_code == 403
        assert response.get_json()["error"] == "forbidden"
