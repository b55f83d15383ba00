# Services package initialization
# Application services: business rules over the repository interfaces

from . import appointment_service
from . import attendance_service
from . import catalog_service
from . import staff_service

__all__ = [
    "appointment_service",
    "attendance_service",
    "catalog_service",
    "staff_service",
]
