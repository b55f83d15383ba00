"""
Attendance controller: check-in/out, status marking, holidays and reports.
"""

from flask import Blueprint, request

from salon.core.api_utils import api_response, get_json_payload, parse_int_arg
from salon.core.auth_decorators import role_required
from salon.core.limiter_config import limiter
from salon.db.session import SessionLocal
from salon.repositories.attendance_repo import AttendanceRepository
from salon.repositories.staff_repo import StaffRepository
from salon.schemas.dtos import (
    AttendanceActionRequest,
    AttendanceStatusRequest,
    HolidayRequest,
    to_dict_list,
)
from salon.services.attendance_service import AttendanceService

attendance_bp = Blueprint("attendance", __name__, url_prefix="/api/attendance")


def attendance_service(db) -> AttendanceService:
    return AttendanceService(AttendanceRepository(db), StaffRepository(db))


@attendance_bp.route("", methods=["POST"])
@limiter.limit("60 per minute")
@role_required("admin", "staff")
def record_attendance():
    """Record a check-in or check-out.

    Body: ``{"staff_id": 3, "action": "checkIn", "time": "09:00 AM", "date": "2024-06-03"}``
    (``time`` and ``date`` are optional and default to now / today).
    """
    db = SessionLocal()
    try:
        action_request = AttendanceActionRequest.from_payload(get_json_payload())
        result = attendance_service(db).record_attendance(action_request)
        message = (
            "Checked in successfully"
            if result.action == "checkIn"
            else "Checked out successfully"
        )
        return api_response(True, message, result.to_dict())
    finally:
        db.close()


@attendance_bp.route("/status", methods=["PUT"])
@limiter.limit("30 per minute")
@role_required("admin")
def mark_status():
    db = SessionLocal()
    try:
        status_request = AttendanceStatusRequest.from_payload(get_json_payload())
        record = attendance_service(db).mark_status(status_request)
        return api_response(True, "Attendance status updated", record.to_dict())
    finally:
        db.close()


@attendance_bp.route("", methods=["GET"])
@limiter.limit("100 per minute")
@role_required("admin", "staff")
def list_attendance():
    """Attendance between ``start_date`` and ``end_date`` (inclusive)."""
    db = SessionLocal()
    try:
        records = attendance_service(db).list_by_date_range(
            request.args.get("start_date"),
            request.args.get("end_date"),
            parse_int_arg("staff_id", request.args.get("staff_id")),
        )
        return api_response(True, "Attendance records retrieved", to_dict_list(records))
    finally:
        db.close()


@attendance_bp.route("/today", methods=["GET"])
@limiter.limit("100 per minute")
@role_required("admin", "staff")
def today_status():
    db = SessionLocal()
    try:
        status = attendance_service(db).today_status()
        return api_response(True, "Today's attendance status", status.to_dict())
    finally:
        db.close()


@attendance_bp.route("/holiday", methods=["POST"])
@limiter.limit("10 per minute")
@role_required("admin")
def declare_holiday():
    db = SessionLocal()
    try:
        payload = get_json_payload()
        holiday_request = HolidayRequest(date=payload.get("date"), notes=payload.get("notes"))
        result = attendance_service(db).declare_holiday(holiday_request)
        return api_response(
            True,
            f"Holiday declared for {result.staff_count} staff members",
            result.to_dict(),
            201,
        )
    finally:
        db.close()


@attendance_bp.route("/holiday", methods=["DELETE"])
@limiter.limit("10 per minute")
@role_required("admin")
def delete_holiday():
    db = SessionLocal()
    try:
        date_value = request.args.get("date") or get_json_payload().get("date")
        deleted = attendance_service(db).delete_holiday(date_value)
        return api_response(
            True,
            "Holiday removed successfully",
            {"date": date_value, "deleted_count": deleted},
        )
    finally:
        db.close()
