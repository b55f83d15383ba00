"""
Staff controller: admin CRUD plus the per-staff monthly attendance summary.
"""

from flask import Blueprint, request

from salon.controllers.attendance_controller import attendance_service
from salon.core.api_utils import api_response, get_json_payload, parse_int_arg
from salon.core.auth_decorators import role_required
from salon.core.exceptions import ValidationError
from salon.core.limiter_config import limiter
from salon.db.session import SessionLocal
from salon.repositories.staff_repo import StaffRepository
from salon.schemas.dtos import StaffRequest, to_dict_list
from salon.services.staff_service import StaffService

staff_bp = Blueprint("staff", __name__, url_prefix="/api/staff")


def _parse_bool_arg(name: str, value):
    if value is None or value == "":
        return None
    lowered = value.strip().lower()
    if lowered in ("true", "1", "yes"):
        return True
    if lowered in ("false", "0", "no"):
        return False
    raise ValidationError(f"{name} must be true or false", name)


@staff_bp.route("", methods=["POST"])
@limiter.limit("30 per minute")
@role_required("admin")
def create_staff():
    db = SessionLocal()
    try:
        created = StaffService(StaffRepository(db)).create_staff(
            StaffRequest.from_payload(get_json_payload())
        )
        return api_response(True, "Staff created successfully", created.to_dict(), 201)
    finally:
        db.close()


@staff_bp.route("", methods=["GET"])
@limiter.limit("100 per minute")
@role_required("admin")
def list_staff():
    db = SessionLocal()
    try:
        staff = StaffService(StaffRepository(db)).list_staff(
            role=request.args.get("role"),
            is_active=_parse_bool_arg("is_active", request.args.get("is_active")),
        )
        return api_response(True, "Staff retrieved", to_dict_list(staff))
    finally:
        db.close()


@staff_bp.route("/<int:staff_id>", methods=["GET"])
@limiter.limit("100 per minute")
@role_required("admin")
def get_staff(staff_id: int):
    db = SessionLocal()
    try:
        staff = StaffService(StaffRepository(db)).get_staff(staff_id)
        return api_response(True, "Staff retrieved", staff.to_dict())
    finally:
        db.close()


@staff_bp.route("/<int:staff_id>", methods=["PUT"])
@limiter.limit("30 per minute")
@role_required("admin")
def update_staff(staff_id: int):
    db = SessionLocal()
    try:
        updated = StaffService(StaffRepository(db)).update_staff(
            staff_id, StaffRequest.from_payload(get_json_payload(), partial=True)
        )
        return api_response(True, "Staff updated successfully", updated.to_dict())
    finally:
        db.close()


@staff_bp.route("/<int:staff_id>", methods=["DELETE"])
@limiter.limit("10 per minute")
@role_required("admin")
def delete_staff(staff_id: int):
    """Delete a staff member together with their attendance history."""
    db = SessionLocal()
    try:
        result = StaffService(StaffRepository(db)).delete_staff(staff_id)
        return api_response(True, "Staff deleted successfully", result)
    finally:
        db.close()


@staff_bp.route("/<int:staff_id>/attendance/summary", methods=["GET"])
@limiter.limit("100 per minute")
@role_required("admin", "staff")
def attendance_summary(staff_id: int):
    db = SessionLocal()
    try:
        summary = attendance_service(db).summary(
            staff_id,
            month=parse_int_arg("month", request.args.get("month")),
            year=parse_int_arg("year", request.args.get("year")),
        )
        return api_response(True, "Attendance summary retrieved", summary.to_dict())
    finally:
        db.close()
