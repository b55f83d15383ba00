# Controllers package initialization
# Flask blueprints exposing the HTTP API

from . import (
    appointment_controller,
    attendance_controller,
    catalog_controller,
    health_controller,
    staff_controller,
)

__all__ = [
    "appointment_controller",
    "attendance_controller",
    "catalog_controller",
    "health_controller",
    "staff_controller",
]
