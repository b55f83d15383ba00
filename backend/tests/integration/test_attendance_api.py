"""
HTTP tests for attendance, holidays and the monthly summary.
"""

from datetime import timedelta

import pytest

from salon.core import timekeeping

pytestmark = [pytest.mark.controllers, pytest.mark.attendance]


def _create_staff(client, headers, index=1, name=None):
    response = client.post(
        "/api/staff",
        json={
            "name": name or f"Staff {index}",
            "phone": f"98100000{index:02d}",
            "national_id": f"7000000000{index:02d}",
            "dob": "1991-07-09",
            "gender": "Female",
            "role": "Stylist",
        },
        headers=headers,
    )
    assert response.status_code == 201, response.get_json()
    return response.get_json()["data"]["id"]


def _attendance(client, headers, staff_id, action, time, day="2024-06-03"):
    return client.post(
        "/api/attendance",
        json={"staff_id": staff_id, "action": action, "time": time, "date": day},
        headers=headers,
    )


class TestCheckInCheckOut:
    def test_full_day(self, client, auth_headers):
        admin = auth_headers("admin")
        staff_id = _create_staff(client, admin)

        check_in = _attendance(client, auth_headers("staff", 5), staff_id, "checkIn", "09:00 AM")
        assert check_in.status_code == 200
        assert check_in.get_json()["message"] == "Checked in successfully"
        assert check_in.get_json()["data"]["time"] == "09:00 AM"

        again = _attendance(client, admin, staff_id, "checkIn", "10:00 AM")
        assert again.status_code == 400
        assert again.get_json()["error"] == "already_done"

        check_out = _attendance(client, admin, staff_id, "checkOut", "06:00 PM")
        assert check_out.status_code == 200
        assert check_out.get_json()["data"]["working_hours"] == 9.0

        summary = client.get(
            f"/api/staff/{staff_id}/attendance/summary?month=6&year=2024", headers=admin
        )
        data = summary.get_json()["data"]
        assert data["present"] == 1
        assert data["working_hours"] == 9.0
        assert data["total_days"] == 30

    def test_check_out_first_is_invalid_state(self, client, auth_headers):
        admin = auth_headers("admin")
        staff_id = _create_staff(client, admin)

        response = _attendance(client, admin, staff_id, "checkOut", "06:00 PM")

        assert response.status_code == 400
        assert response.get_json()["error"] == "invalid_state"

    def test_unknown_action(self, client, auth_headers):
        admin = auth_headers("admin")
        staff_id = _create_staff(client, admin)

        response = _attendance(client, admin, staff_id, "breakStart", "12:00 PM")

        assert response.status_code == 400
        assert response.get_json()["details"]["valid_actions"] == ["checkIn", "checkOut"]

    def test_unknown_staff(self, client, auth_headers):
        response = _attendance(client, auth_headers("admin"), 999, "checkIn", "09:00 AM")
        assert response.status_code == 404

    def test_customers_cannot_record_attendance(self, client, auth_headers):
        response = _attendance(client, auth_headers("customer", 3), 1, "checkIn", "09:00 AM")
        assert response.status_code == 403

    def test_range_listing(self, client, auth_headers):
        admin = auth_headers("admin")
        staff_id = _create_staff(client, admin, name="Kavya")
        _attendance(client, admin, staff_id, "checkIn", "09:00 AM", day="2024-06-03")
        _attendance(client, admin, staff_id, "checkIn", "09:15 AM", day="2024-06-04")

        response = client.get(
            "/api/attendance?start_date=2024-06-01&end_date=2024-06-03", headers=admin
        )

        data = response.get_json()["data"]
        assert [(r["date"], r["staff_name"]) for r in data] == [("2024-06-03", "Kavya")]

    def test_mark_status_is_admin_only(self, client, auth_headers):
        admin = auth_headers("admin")
        staff_id = _create_staff(client, admin)
        payload = {"staff_id": staff_id, "date": "2024-06-05", "status": "Absent"}

        assert client.put("/api/attendance/status", json=payload, headers=auth_headers("staff")).status_code == 403
        response = client.put("/api/attendance/status", json=payload, headers=admin)
        assert response.status_code == 200
        assert response.get_json()["data"]["status"] == "Absent"


class TestHolidays:
    def test_declare_and_remove_holiday(self, client, auth_headers):
        admin = auth_headers("admin")
        first = _create_staff(client, admin, 1)
        _create_staff(client, admin, 2)
        day = (timekeeping.today() + timedelta(days=5)).isoformat()

        declared = client.post(
            "/api/attendance/holiday", json={"date": day, "notes": "Festival"}, headers=admin
        )
        assert declared.status_code == 201
        assert declared.get_json()["data"] == {
            "date": day,
            "staff_count": 2,
            "upserted": 2,
            "modified": 0,
            "failed": 0,
        }

        redeclared = client.post("/api/attendance/holiday", json={"date": day}, headers=admin)
        assert redeclared.get_json()["data"]["modified"] == 2

        blocked = _attendance(client, admin, first, "checkIn", None, day=day)
        assert blocked.status_code == 400

        removed = client.delete(f"/api/attendance/holiday?date={day}", headers=admin)
        assert removed.status_code == 200
        assert removed.get_json()["data"]["deleted_count"] == 2

        missing = client.delete(f"/api/attendance/holiday?date={day}", headers=admin)
        assert missing.status_code == 404

    def test_past_holiday_is_rejected(self, client, auth_headers):
        response = client.post(
            "/api/attendance/holiday", json={"date": "2020-01-01"}, headers=auth_headers("admin")
        )
        assert response.status_code == 400

    def test_today_status(self, client, auth_headers):
        admin = auth_headers("admin")
        present = _create_staff(client, admin, 1)
        _create_staff(client, admin, 2)
        _attendance(client, admin, present, "checkIn", None, day=None)

        response = client.get("/api/attendance/today", headers=auth_headers("staff"))

        counts = response.get_json()["data"]["counts"]
        assert counts == {"total": 2, "present": 1, "holiday": 0, "absent": 1}
