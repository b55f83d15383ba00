"""
Appointment controller for handling HTTP requests.

Handles HTTP concerns only: parse the request, open a session, delegate to
:class:`AppointmentService` and wrap the result in the JSON envelope.
Business failures propagate as ``SalonError`` and are rendered by the
application's error handlers.
"""

from flask import Blueprint, request

from salon.core.api_utils import api_response, get_json_payload
from salon.core.auth_decorators import (
    get_current_principal,
    principal_required,
    role_required,
)
from salon.core.limiter_config import limiter
from salon.db.session import SessionLocal
from salon.repositories.appointment_repo import AppointmentRepository
from salon.repositories.catalog_repo import CatalogRepository
from salon.schemas.dtos import (
    AppointmentCreateRequest,
    AppointmentStatusRequest,
    RescheduleRequest,
    to_dict_list,
)
from salon.services.appointment_service import AppointmentService

appointment_bp = Blueprint("appointments", __name__, url_prefix="/api/appointments")


def _service(db) -> AppointmentService:
    return AppointmentService(AppointmentRepository(db), CatalogRepository(db))


@appointment_bp.route("", methods=["POST"])
@limiter.limit("30 per minute")
@principal_required
def create_appointment():
    """Book services or a combo into a slot for the calling customer."""
    principal = get_current_principal()
    db = SessionLocal()
    try:
        create_request = AppointmentCreateRequest.from_payload(
            get_json_payload(), principal.user_id
        )
        created = _service(db).create_appointment(create_request)
        return api_response(True, "Appointment booked successfully", created.to_dict(), 201)
    finally:
        db.close()


@appointment_bp.route("", methods=["GET"])
@limiter.limit("100 per minute")
@role_required("admin", "staff")
def list_appointments():
    db = SessionLocal()
    try:
        appointments = _service(db).list_appointments(
            appointment_date=request.args.get("date"),
            status=request.args.get("status"),
        )
        return api_response(True, "Appointments retrieved", to_dict_list(appointments))
    finally:
        db.close()


@appointment_bp.route("/my", methods=["GET"])
@limiter.limit("100 per minute")
@principal_required
def my_appointments():
    principal = get_current_principal()
    db = SessionLocal()
    try:
        appointments = _service(db).list_for_customer(principal.user_id)
        return api_response(True, "Appointments retrieved", to_dict_list(appointments))
    finally:
        db.close()


@appointment_bp.route("/today", methods=["GET"])
@limiter.limit("100 per minute")
@role_required("admin", "staff")
def today_appointments():
    """Today's pending, confirmed and rescheduled appointments in slot order."""
    db = SessionLocal()
    try:
        appointments = _service(db).list_today()
        return api_response(
            True, "Today's appointments retrieved", to_dict_list(appointments)
        )
    finally:
        db.close()


@appointment_bp.route("/<int:appointment_id>", methods=["GET"])
@limiter.limit("100 per minute")
@role_required("admin", "staff")
def get_appointment(appointment_id: int):
    db = SessionLocal()
    try:
        appointment = _service(db).get_appointment(appointment_id)
        return api_response(True, "Appointment retrieved", appointment.to_dict())
    finally:
        db.close()


@appointment_bp.route("/<int:appointment_id>/status", methods=["PUT"])
@limiter.limit("30 per minute")
@role_required("admin", "staff")
def update_status(appointment_id: int):
    db = SessionLocal()
    try:
        status_request = AppointmentStatusRequest(status=get_json_payload().get("status"))
        updated = _service(db).update_status(appointment_id, status_request)
        return api_response(True, "Appointment status updated", updated.to_dict())
    finally:
        db.close()


@appointment_bp.route("/<int:appointment_id>/cancel", methods=["PUT"])
@limiter.limit("30 per minute")
@principal_required
def cancel_appointment(appointment_id: int):
    """Cancel one of the caller's own appointments."""
    principal = get_current_principal()
    db = SessionLocal()
    try:
        cancelled = _service(db).cancel_appointment(appointment_id, principal.user_id)
        return api_response(True, "Appointment cancelled successfully", cancelled.to_dict())
    finally:
        db.close()


@appointment_bp.route("/<int:appointment_id>/reschedule", methods=["PUT"])
@limiter.limit("30 per minute")
@role_required("admin", "staff")
def reschedule_appointment(appointment_id: int):
    db = SessionLocal()
    try:
        reschedule_request = RescheduleRequest.from_payload(get_json_payload())
        updated = _service(db).reschedule_appointment(appointment_id, reschedule_request)
        return api_response(True, "Appointment rescheduled successfully", updated.to_dict())
    finally:
        db.close()
