"""
Domain package - Pure business logic layer.

This package contains:
- entities.py: Domain entities, enumerations and lifecycle rules
- interfaces.py: Repository contracts consumed by the services
"""

from .entities import Appointment, Attendance, Combo, ComboItem, Principal, Service, Staff
from .interfaces import (
    IAppointmentReader,
    IAppointmentRepository,
    IAppointmentWriter,
    IAttendanceRepository,
    ICatalogLookup,
    ICatalogRepository,
    ICatalogWriter,
    IStaffRepository,
)

__all__ = [
    # Domain entities
    "Appointment",
    "Attendance",
    "Combo",
    "ComboItem",
    "Principal",
    "Service",
    "Staff",
    # Repository interfaces
    "IAppointmentRepository",
    "IAttendanceRepository",
    "ICatalogRepository",
    "IStaffRepository",
    # Segregated interfaces
    "IAppointmentReader",
    "IAppointmentWriter",
    "ICatalogLookup",
    "ICatalogWriter",
]
