# Repositories package initialization
# SQLAlchemy implementations of the domain repository interfaces

from .appointment_repo import AppointmentRepository
from .attendance_repo import AttendanceRepository
from .catalog_repo import CatalogRepository
from .staff_repo import StaffRepository

__all__ = [
    "AppointmentRepository",
    "AttendanceRepository",
    "CatalogRepository",
    "StaffRepository",
]
