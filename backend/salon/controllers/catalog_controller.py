"""
Catalog controller: public reads and admin management of services and combos.
"""

from flask import Blueprint, request

from salon.core.api_utils import api_response, get_json_payload
from salon.core.auth_decorators import role_required
from salon.core.exceptions import ValidationError
from salon.core.limiter_config import limiter
from salon.db.session import SessionLocal
from salon.repositories.catalog_repo import CatalogRepository
from salon.schemas.dtos import ComboRequest, ServiceRequest, to_dict_list
from salon.services.catalog_service import CatalogService

services_bp = Blueprint("services", __name__, url_prefix="/api/services")
combos_bp = Blueprint("combos", __name__, url_prefix="/api/combos")


def _catalog(db) -> CatalogService:
    return CatalogService(CatalogRepository(db))


def _active_filter():
    value = request.args.get("active")
    if value is None or value == "":
        return None
    if value.lower() in ("true", "1", "yes"):
        return True
    if value.lower() in ("false", "0", "no"):
        return False
    raise ValidationError("active must be true or false", "active")


def _status_body():
    is_active = get_json_payload().get("is_active")
    if is_active is not None and not isinstance(is_active, bool):
        raise ValidationError("is_active must be true or false", "is_active")
    return is_active


# ------------------- SERVICES -------------------
@services_bp.route("", methods=["GET"])
@limiter.limit("100 per minute")
def list_services():
    db = SessionLocal()
    try:
        services = _catalog(db).list_services(
            category=request.args.get("category"), active=_active_filter()
        )
        return api_response(True, "Services retrieved", to_dict_list(services))
    finally:
        db.close()


@services_bp.route("/<int:service_id>", methods=["GET"])
@limiter.limit("100 per minute")
def get_service(service_id: int):
    db = SessionLocal()
    try:
        service = _catalog(db).get_service(service_id)
        return api_response(True, "Service retrieved", service.to_dict())
    finally:
        db.close()


@services_bp.route("", methods=["POST"])
@limiter.limit("30 per minute")
@role_required("admin")
def create_service():
    db = SessionLocal()
    try:
        created = _catalog(db).create_service(
            ServiceRequest.from_payload(get_json_payload())
        )
        return api_response(True, "Service created successfully", created.to_dict(), 201)
    finally:
        db.close()


@services_bp.route("/<int:service_id>", methods=["PUT"])
@limiter.limit("30 per minute")
@role_required("admin")
def update_service(service_id: int):
    db = SessionLocal()
    try:
        updated = _catalog(db).update_service(
            service_id, ServiceRequest.from_payload(get_json_payload(), partial=True)
        )
        return api_response(True, "Service updated successfully", updated.to_dict())
    finally:
        db.close()


@services_bp.route("/<int:service_id>/status", methods=["PATCH"])
@limiter.limit("30 per minute")
@role_required("admin")
def set_service_status(service_id: int):
    """Set ``is_active`` from the body, or toggle it when the body is empty."""
    db = SessionLocal()
    try:
        updated = _catalog(db).set_service_status(service_id, _status_body())
        state = "activated" if updated.is_active else "deactivated"
        return api_response(True, f"Service {state} successfully", updated.to_dict())
    finally:
        db.close()


@services_bp.route("/<int:service_id>", methods=["DELETE"])
@limiter.limit("10 per minute")
@role_required("admin")
def delete_service(service_id: int):
    db = SessionLocal()
    try:
        _catalog(db).delete_service(service_id)
        return api_response(True, "Service deleted successfully")
    finally:
        db.close()


# ------------------- COMBOS -------------------
@combos_bp.route("", methods=["GET"])
@limiter.limit("100 per minute")
def list_combos():
    db = SessionLocal()
    try:
        combos = _catalog(db).list_combos(active=_active_filter())
        return api_response(True, "Combos retrieved", to_dict_list(combos))
    finally:
        db.close()


@combos_bp.route("/<int:combo_id>", methods=["GET"])
@limiter.limit("100 per minute")
def get_combo(combo_id: int):
    db = SessionLocal()
    try:
        combo = _catalog(db).get_combo(combo_id)
        return api_response(True, "Combo retrieved", combo.to_dict())
    finally:
        db.close()


@combos_bp.route("", methods=["POST"])
@limiter.limit("30 per minute")
@role_required("admin")
def create_combo():
    db = SessionLocal()
    try:
        created = _catalog(db).create_combo(ComboRequest.from_payload(get_json_payload()))
        return api_response(True, "Combo created successfully", created.to_dict(), 201)
    finally:
        db.close()


@combos_bp.route("/<int:combo_id>", methods=["PUT"])
@limiter.limit("30 per minute")
@role_required("admin")
def update_combo(combo_id: int):
    db = SessionLocal()
    try:
        updated = _catalog(db).update_combo(
            combo_id, ComboRequest.from_payload(get_json_payload(), partial=True)
        )
        return api_response(True, "Combo updated successfully", updated.to_dict())
    finally:
        db.close()


@combos_bp.route("/<int:combo_id>/status", methods=["PATCH"])
@limiter.limit("30 per minute")
@role_required("admin")
def set_combo_status(combo_id: int):
    db = SessionLocal()
    try:
        updated = _catalog(db).set_combo_status(combo_id, _status_body())
        state = "activated" if updated.is_active else "deactivated"
        return api_response(True, f"Combo {state} successfully", updated.to_dict())
    finally:
        db.close()


@combos_bp.route("/<int:combo_id>", methods=["DELETE"])
@limiter.limit("10 per minute")
@role_required("admin")
def delete_combo(combo_id: int):
    db = SessionLocal()
    try:
        _catalog(db).delete_combo(combo_id)
        return api_response(True, "Combo deleted successfully")
    finally:
        db.close()
