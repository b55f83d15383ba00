"""
Repository mock factories and entity builders.

Mocks are specced on the domain interfaces so a service test fails loudly if
it calls something the interface does not offer.
"""

from datetime import date, datetime, timezone
from unittest.mock import Mock

from salon.domain.entities import (
    Appointment,
    Attendance,
    Combo,
    ComboItem,
    Service,
    Staff,
)
from salon.domain.interfaces import (
    IAppointmentRepository,
    IAttendanceRepository,
    ICatalogLookup,
    ICatalogRepository,
    IStaffRepository,
)


class AppointmentRepositoryFactory:
    @staticmethod
    def create_mock_full() -> Mock:
        repo = Mock(spec=IAppointmentRepository)
        repo.get_by_id.return_value = None
        repo.get_for_customer.return_value = None
        repo.find_slot_occupant.return_value = None
        repo.list.return_value = []
        repo.list_by_customer.return_value = []
        repo.list_for_day.return_value = []
        # Echo writes back with an id, like the real repository
        repo.create.side_effect = lambda a: _with_id(a, 1)
        repo.update.side_effect = lambda a, expected_status=None: a
        return repo


class CatalogRepositoryFactory:
    @staticmethod
    def create_mock_lookup() -> Mock:
        lookup = Mock(spec=ICatalogLookup)
        lookup.lookup_service.return_value = None
        lookup.lookup_combo.return_value = None
        lookup.count_active_services.return_value = 0
        lookup.get_services.return_value = []
        return lookup

    @staticmethod
    def create_mock_full() -> Mock:
        repo = Mock(spec=ICatalogRepository)
        repo.lookup_service.return_value = None
        repo.lookup_combo.return_value = None
        repo.get_services.return_value = []
        repo.list_services.return_value = []
        repo.list_combos.return_value = []
        repo.create_service.side_effect = lambda s: _with_id(s, 1)
        repo.update_service.side_effect = lambda s: s
        repo.create_combo.side_effect = lambda c: _with_id(c, 1)
        repo.update_combo.side_effect = lambda c: c
        repo.delete_service.return_value = True
        repo.delete_combo.return_value = True
        return repo


class StaffRepositoryFactory:
    @staticmethod
    def create_mock_full() -> Mock:
        repo = Mock(spec=IStaffRepository)
        repo.get_by_id.return_value = None
        repo.list.return_value = []
        repo.list_active.return_value = []
        repo.create.side_effect = lambda s: _with_id(s, 1)
        repo.update.side_effect = lambda s: s
        repo.delete.return_value = 0
        return repo


class AttendanceRepositoryFactory:
    @staticmethod
    def create_mock_full() -> Mock:
        repo = Mock(spec=IAttendanceRepository)
        repo.get_by_staff_and_day.return_value = None
        repo.save.side_effect = lambda r: r if r.id else _with_id(r, 1)
        repo.save_transition.side_effect = lambda r, action: r if r.id else _with_id(r, 1)
        repo.upsert_holidays.return_value = {"upserted": 0, "modified": 0, "failed": 0}
        repo.delete_holidays.return_value = 0
        repo.list_for_day.return_value = []
        repo.list_range.return_value = []
        return repo


def _with_id(entity, entity_id):
    if entity.id is None:
        entity.id = entity_id
    return entity


# ---------- entity builders ----------
def make_service(service_id=1, **overrides) -> Service:
    data = dict(
        id=service_id,
        name=f"Service {service_id}",
        duration=30,
        price=100.0,
        category="Hair",
        is_active=True,
    )
    data.update(overrides)
    return Service(**data)


def make_combo(combo_id=1, service_ids=(1, 2), **overrides) -> Combo:
    data = dict(
        id=combo_id,
        name=f"Combo {combo_id}",
        items=[ComboItem(service_id=sid, sequence=i + 1) for i, sid in enumerate(service_ids)],
        discount=0.0,
        total_duration=60,
        total_price=200.0,
        is_active=True,
    )
    data.update(overrides)
    return Combo(**data)


def make_appointment(appointment_id=1, **overrides) -> Appointment:
    data = dict(
        id=appointment_id,
        customer_id=10,
        appointment_date=date(2024, 6, 1),
        time_slot="10:00 AM",
        service_ids=[1],
        status="pending",
        created_at=datetime(2024, 5, 20, 12, 0, tzinfo=timezone.utc),
    )
    data.update(overrides)
    return Appointment(**data)


def make_staff(staff_id=1, **overrides) -> Staff:
    data = dict(
        id=staff_id,
        name=f"Staff {staff_id}",
        phone=f"98765432{staff_id:02d}",
        national_id=f"1234567890{staff_id:02d}",
        dob=date(1990, 1, 15),
        gender="Female",
        role="Stylist",
        is_active=True,
    )
    data.update(overrides)
    return Staff(**data)


def make_attendance(staff_id=1, day=date(2024, 6, 3), **overrides) -> Attendance:
    data = dict(staff_id=staff_id, day=day)
    data.update(overrides)
    return Attendance(**data)
