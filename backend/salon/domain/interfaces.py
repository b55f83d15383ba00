"""
Abstract interfaces for repositories following Interface Segregation Principle.

These interfaces define contracts without implementation details,
enabling dependency injection and easier testing.
"""

from abc import ABC, abstractmethod
from datetime import date
from typing import Dict, List, Optional, Sequence

from .entities import Appointment, Attendance, Combo, Service, Staff


class ICatalogLookup(ABC):
    """Read-only catalog checks consumed by the scheduler."""

    @abstractmethod
    def lookup_service(self, service_id: int) -> Optional[Service]:
        """Get a service by ID, active or not."""
        pass

    @abstractmethod
    def lookup_combo(self, combo_id: int) -> Optional[Combo]:
        """Get a combo by ID, active or not."""
        pass

    @abstractmethod
    def count_active_services(self, service_ids: Sequence[int]) -> int:
        """Count how many of the given IDs are existing, active services."""
        pass

    @abstractmethod
    def get_services(self, service_ids: Sequence[int]) -> List[Service]:
        """Batch fetch services by ID (missing IDs are skipped)."""
        pass


class ICatalogWriter(ABC):
    """Catalog management operations."""

    @abstractmethod
    def list_services(
        self, category: Optional[str] = None, active: Optional[bool] = None
    ) -> List[Service]:
        pass

    @abstractmethod
    def create_service(self, service: Service) -> Service:
        pass

    @abstractmethod
    def update_service(self, service: Service) -> Service:
        pass

    @abstractmethod
    def delete_service(self, service_id: int) -> bool:
        pass

    @abstractmethod
    def list_combos(self, active: Optional[bool] = None) -> List[Combo]:
        pass

    @abstractmethod
    def create_combo(self, combo: Combo) -> Combo:
        pass

    @abstractmethod
    def update_combo(self, combo: Combo) -> Combo:
        pass

    @abstractmethod
    def delete_combo(self, combo_id: int) -> bool:
        pass


class ICatalogRepository(ICatalogLookup, ICatalogWriter):
    """Complete catalog repository interface."""

    pass


class IAppointmentReader(ABC):
    """Interface for appointment read operations."""

    @abstractmethod
    def get_by_id(self, appointment_id: int) -> Optional[Appointment]:
        """Get appointment by ID."""
        pass

    @abstractmethod
    def get_for_customer(
        self, appointment_id: int, customer_id: int
    ) -> Optional[Appointment]:
        """Get appointment by ID only if it belongs to the customer."""
        pass

    @abstractmethod
    def find_slot_occupant(
        self,
        appointment_date: date,
        time_slot: str,
        exclude_id: Optional[int] = None,
    ) -> Optional[Appointment]:
        """Find a pending/confirmed appointment holding the slot."""
        pass

    @abstractmethod
    def list(
        self, appointment_date: Optional[date] = None, status: Optional[str] = None
    ) -> List[Appointment]:
        """List appointments ordered by date and slot."""
        pass

    @abstractmethod
    def list_by_customer(self, customer_id: int) -> List[Appointment]:
        """List a customer's appointments, newest date first."""
        pass

    @abstractmethod
    def list_for_day(
        self, appointment_date: date, statuses: Sequence[str]
    ) -> List[Appointment]:
        """List one day's appointments with the given statuses, in slot order."""
        pass


class IAppointmentWriter(ABC):
    """Interface for appointment write operations."""

    @abstractmethod
    def create(self, appointment: Appointment) -> Appointment:
        """Insert; raises ConflictError when the slot constraint is violated."""
        pass

    @abstractmethod
    def update(
        self, appointment: Appointment, expected_status: Optional[str] = None
    ) -> Appointment:
        """Persist date, slot, status and notes; raises ConflictError on collision.

        With ``expected_status`` the write only happens if the stored status is
        still that value, otherwise InvalidStateError is raised.
        """
        pass


class IAppointmentRepository(IAppointmentReader, IAppointmentWriter):
    """Complete appointment repository interface."""

    pass


class IStaffRepository(ABC):
    """Staff directory persistence."""

    @abstractmethod
    def get_by_id(self, staff_id: int) -> Optional[Staff]:
        pass

    @abstractmethod
    def list(
        self, role: Optional[str] = None, is_active: Optional[bool] = None
    ) -> List[Staff]:
        pass

    @abstractmethod
    def list_active(self) -> List[Staff]:
        pass

    @abstractmethod
    def create(self, staff: Staff) -> Staff:
        pass

    @abstractmethod
    def update(self, staff: Staff) -> Staff:
        pass

    @abstractmethod
    def delete(self, staff_id: int) -> int:
        """Delete staff and their attendance. Returns removed attendance count.

        Raises NotFoundError when the staff member does not exist.
        """
        pass


class IAttendanceRepository(ABC):
    """Attendance ledger persistence keyed by (staff, day)."""

    @abstractmethod
    def get_by_staff_and_day(self, staff_id: int, day: date) -> Optional[Attendance]:
        pass

    @abstractmethod
    def save(self, record: Attendance) -> Attendance:
        """Insert or update; raises ConflictError on a duplicate (staff, day)."""
        pass

    @abstractmethod
    def save_transition(self, record: Attendance, action: str) -> Optional[Attendance]:
        """Write a check-in/check-out only if the stored row is still in the
        prior state. Returns None when a concurrent writer got there first."""
        pass

    @abstractmethod
    def upsert_holidays(
        self, staff_ids: Sequence[int], day: date, notes: str
    ) -> Dict[str, int]:
        """Per-record holiday upsert. Returns upserted/modified/failed counts."""
        pass

    @abstractmethod
    def delete_holidays(self, day: date) -> int:
        pass

    @abstractmethod
    def list_for_day(self, day: date) -> List[Attendance]:
        pass

    @abstractmethod
    def list_range(
        self, start: date, end: date, staff_id: Optional[int] = None
    ) -> List[Attendance]:
        pass
