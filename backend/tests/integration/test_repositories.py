"""
Repository tests against a real (in-memory SQLite) database.

These exercise the storage-level guarantees: the partial unique slot index,
the (staff, day) attendance key, cascades and holiday upsert counts.
"""

from datetime import date, datetime, timezone

import pytest
from sqlalchemy.exc import IntegrityError

from salon.core.exceptions import ConflictError, InvalidStateError, NotFoundError
from salon.db.base import AppointmentModel, AttendanceModel
from salon.db.session import SessionLocal
from salon.domain.entities import Appointment, Attendance, Combo, ComboItem, Service, Staff
from salon.repositories import (
    AppointmentRepository,
    AttendanceRepository,
    CatalogRepository,
    StaffRepository,
)

JUNE_1 = date(2024, 6, 1)


def _staff(index: int, name: str = None, **overrides) -> Staff:
    data = dict(
        name=name or f"Staff {index}",
        phone=f"90000000{index:02d}",
        national_id=f"5000000000{index:02d}",
        dob=date(1990, 5, 20),
        gender="Female",
        role="Stylist",
    )
    data.update(overrides)
    return Staff(**data)


@pytest.fixture
def catalog_repo(db_session):
    return CatalogRepository(db_session)


@pytest.fixture
def appointment_repo(db_session):
    return AppointmentRepository(db_session)


@pytest.fixture
def staff_repo(db_session):
    return StaffRepository(db_session)


@pytest.fixture
def attendance_repo(db_session):
    return AttendanceRepository(db_session)


@pytest.fixture
def haircut(catalog_repo):
    return catalog_repo.create_service(Service(name="Haircut", duration=30, price=250.0))


@pytest.mark.repositories
@pytest.mark.appointment
class TestAppointmentSlotIndex:
    def test_index_rejects_second_active_row_even_without_service_checks(
        self, db_session, haircut
    ):
        db_session.add(
            AppointmentModel(customer_id=1, appointment_date=JUNE_1, time_slot="10:00 AM", status="pending")
        )
        db_session.commit()

        db_session.add(
            AppointmentModel(customer_id=2, appointment_date=JUNE_1, time_slot="10:00 AM", status="confirmed")
        )
        with pytest.raises(IntegrityError):
            db_session.commit()
        db_session.rollback()

    def test_inactive_rows_do_not_hold_the_slot(self, db_session):
        for status in ("cancelled", "completed", "rescheduled", "pending"):
            db_session.add(
                AppointmentModel(customer_id=1, appointment_date=JUNE_1, time_slot="9:00 AM", status=status)
            )
        db_session.commit()

        assert db_session.query(AppointmentModel).count() == 4

    def test_repository_maps_index_violation_to_conflict(self, appointment_repo, haircut):
        first = appointment_repo.create(
            Appointment(customer_id=1, appointment_date=JUNE_1, time_slot="10:00 AM", service_ids=[haircut.id])
        )
        assert first.id is not None
        assert first.service_ids == [haircut.id]

        with pytest.raises(ConflictError) as exc_info:
            appointment_repo.create(
                Appointment(customer_id=2, appointment_date=JUNE_1, time_slot="10:00 AM", service_ids=[haircut.id])
            )
        assert exc_info.value.details == {"date": "2024-06-01", "time_slot": "10:00 AM"}

    def test_reactivating_into_a_taken_slot_conflicts(self, appointment_repo, haircut):
        held = appointment_repo.create(
            Appointment(customer_id=1, appointment_date=JUNE_1, time_slot="10:00 AM", service_ids=[haircut.id])
        )
        held.status = "cancelled"
        appointment_repo.update(held)
        appointment_repo.create(
            Appointment(customer_id=2, appointment_date=JUNE_1, time_slot="10:00 AM", service_ids=[haircut.id])
        )

        held.status = "confirmed"
        with pytest.raises(ConflictError):
            appointment_repo.update(held)

    def test_find_slot_occupant_ignores_excluded_and_inactive(self, appointment_repo, haircut):
        booked = appointment_repo.create(
            Appointment(customer_id=1, appointment_date=JUNE_1, time_slot="11:00 AM", service_ids=[haircut.id])
        )

        assert appointment_repo.find_slot_occupant(JUNE_1, "11:00 AM").id == booked.id
        assert appointment_repo.find_slot_occupant(JUNE_1, "11:00 AM", exclude_id=booked.id) is None
        assert appointment_repo.find_slot_occupant(JUNE_1, "12:00 PM") is None

    def test_lists_use_business_slot_order(self, appointment_repo, haircut):
        for slot in ("1:00 PM", "10:00 AM", "9:00 AM", "11:00 AM"):
            appointment_repo.create(
                Appointment(customer_id=5, appointment_date=JUNE_1, time_slot=slot, service_ids=[haircut.id])
            )

        day_sheet = appointment_repo.list_for_day(JUNE_1, ("pending",))
        assert [a.time_slot for a in day_sheet] == ["9:00 AM", "10:00 AM", "11:00 AM", "1:00 PM"]
        mine = appointment_repo.list_by_customer(5)
        assert [a.time_slot for a in mine] == ["9:00 AM", "10:00 AM", "11:00 AM", "1:00 PM"]

    def test_get_for_customer_scopes_by_owner(self, appointment_repo, haircut):
        booked = appointment_repo.create(
            Appointment(customer_id=1, appointment_date=JUNE_1, time_slot="2:00 PM", service_ids=[haircut.id])
        )

        assert appointment_repo.get_for_customer(booked.id, 1) is not None
        assert appointment_repo.get_for_customer(booked.id, 2) is None


@pytest.mark.repositories
@pytest.mark.catalog
class TestCatalogRepository:
    def test_combo_round_trip_keeps_sequence(self, catalog_repo):
        wash = catalog_repo.create_service(Service(name="Wash", duration=15, price=100.0))
        cut = catalog_repo.create_service(Service(name="Cut", duration=30, price=200.0))

        combo = catalog_repo.create_combo(
            Combo(name="Wash & Cut", items=[ComboItem(cut.id, 2), ComboItem(wash.id, 1)], total_price=300.0)
        )

        loaded = catalog_repo.lookup_combo(combo.id)
        assert loaded.service_ids == [wash.id, cut.id]
        assert loaded.total_price == 300.0

    def test_count_active_services(self, catalog_repo):
        active = catalog_repo.create_service(Service(name="A", duration=10, price=1.0))
        inactive = catalog_repo.create_service(Service(name="B", duration=10, price=1.0, is_active=False))

        assert catalog_repo.count_active_services([active.id, inactive.id, 999]) == 1
        assert catalog_repo.count_active_services([]) == 0

    def test_deleting_a_booked_service_conflicts(self, catalog_repo, appointment_repo, haircut):
        appointment_repo.create(
            Appointment(customer_id=1, appointment_date=JUNE_1, time_slot="9:00 AM", service_ids=[haircut.id])
        )

        with pytest.raises(ConflictError):
            catalog_repo.delete_service(haircut.id)
        assert catalog_repo.lookup_service(haircut.id) is not None

    def test_delete_unused_service(self, catalog_repo, haircut):
        assert catalog_repo.delete_service(haircut.id) is True
        assert catalog_repo.delete_service(haircut.id) is False


@pytest.mark.repositories
@pytest.mark.staff
class TestStaffRepository:
    def test_duplicate_phone_conflicts(self, staff_repo):
        staff_repo.create(_staff(1))

        with pytest.raises(ConflictError, match="phone"):
            staff_repo.create(_staff(2, phone="9000000001"))

    def test_duplicate_national_id_conflicts(self, staff_repo):
        staff_repo.create(_staff(1))

        with pytest.raises(ConflictError, match="national ID"):
            staff_repo.create(_staff(2, national_id="500000000001"))

    def test_joining_date_defaults_and_is_aware(self, staff_repo):
        created = staff_repo.create(_staff(1))

        assert created.joining_date is not None
        assert created.joining_date.tzinfo == timezone.utc

    def test_delete_cascades_attendance(self, db_session, staff_repo, attendance_repo):
        member = staff_repo.create(_staff(1))
        attendance_repo.save(Attendance(staff_id=member.id, day=date(2024, 6, 3)))
        attendance_repo.save(Attendance(staff_id=member.id, day=date(2024, 6, 4), status="Absent"))

        assert staff_repo.delete(member.id) == 2

        assert db_session.query(AttendanceModel).count() == 0
        with pytest.raises(NotFoundError):
            staff_repo.delete(member.id)

    def test_list_filters_and_orders_by_name(self, staff_repo):
        staff_repo.create(_staff(1, name="Zara"))
        staff_repo.create(_staff(2, name="Amit", role="Barber"))
        staff_repo.create(_staff(3, name="Maya", is_active=False))

        assert [s.name for s in staff_repo.list()] == ["Amit", "Maya", "Zara"]
        assert [s.name for s in staff_repo.list_active()] == ["Amit", "Zara"]
        assert [s.name for s in staff_repo.list(role="Barber")] == ["Amit"]


@pytest.mark.repositories
@pytest.mark.attendance
class TestAttendanceRepository:
    def test_second_row_for_same_day_conflicts(self, staff_repo, attendance_repo):
        member = staff_repo.create(_staff(1))
        attendance_repo.save(Attendance(staff_id=member.id, day=date(2024, 6, 3)))

        with pytest.raises(ConflictError):
            attendance_repo.save(Attendance(staff_id=member.id, day=date(2024, 6, 3)))

    def test_instants_round_trip_as_utc(self, staff_repo, attendance_repo):
        member = staff_repo.create(_staff(1))
        check_in = datetime(2024, 6, 3, 3, 30, tzinfo=timezone.utc)

        saved = attendance_repo.save(Attendance(staff_id=member.id, day=date(2024, 6, 3), check_in=check_in))

        loaded = attendance_repo.get_by_staff_and_day(member.id, date(2024, 6, 3))
        assert saved.id == loaded.id
        assert loaded.check_in == check_in
        assert loaded.check_in.tzinfo == timezone.utc

    def test_holiday_upsert_counts_and_idempotence(self, staff_repo, attendance_repo):
        first = staff_repo.create(_staff(1))
        second = staff_repo.create(_staff(2))
        day = date(2030, 1, 26)
        attendance_repo.save(
            Attendance(staff_id=first.id, day=day, check_in=datetime(2030, 1, 26, 9, 0, tzinfo=timezone.utc))
        )

        counts = attendance_repo.upsert_holidays([first.id, second.id], day, "Republic Day")
        assert counts == {"upserted": 1, "modified": 1, "failed": 0}

        again = attendance_repo.upsert_holidays([first.id, second.id], day, "Republic Day")
        assert again == {"upserted": 0, "modified": 2, "failed": 0}

        rows = attendance_repo.list_for_day(day)
        assert len(rows) == 2
        assert all(r.is_holiday and r.status == "Holiday" for r in rows)
        assert all(r.check_in is None and r.notes == "Republic Day" for r in rows)

    def test_holiday_upsert_applies_the_entity_override(self, staff_repo, attendance_repo):
        member = staff_repo.create(_staff(1))
        day = date(2030, 3, 8)
        attendance_repo.save(Attendance(staff_id=member.id, day=day, status="Late", notes="Traffic"))

        attendance_repo.upsert_holidays([member.id], day, "")

        stored = attendance_repo.get_by_staff_and_day(member.id, day)
        assert (stored.status, stored.is_holiday, stored.notes) == ("Holiday", True, "Public Holiday")

    def test_holiday_upsert_isolates_failures(self, staff_repo, attendance_repo):
        member = staff_repo.create(_staff(1))
        day = date(2030, 8, 15)

        counts = attendance_repo.upsert_holidays([member.id, 9999], day, "Independence Day")

        assert counts == {"upserted": 1, "modified": 0, "failed": 1}
        assert attendance_repo.get_by_staff_and_day(member.id, day).is_holiday is True

    def test_delete_holidays_leaves_regular_records(self, staff_repo, attendance_repo):
        first = staff_repo.create(_staff(1))
        second = staff_repo.create(_staff(2))
        day = date(2030, 1, 26)
        attendance_repo.upsert_holidays([first.id], day, "Republic Day")
        attendance_repo.save(Attendance(staff_id=second.id, day=day, status="Absent"))

        assert attendance_repo.delete_holidays(day) == 1
        remaining = attendance_repo.list_for_day(day)
        assert [r.staff_id for r in remaining] == [second.id]

    def test_list_range_is_inclusive_and_filtered(self, staff_repo, attendance_repo):
        first = staff_repo.create(_staff(1, name="Bina"))
        second = staff_repo.create(_staff(2, name="Anil"))
        for member in (first, second):
            for day in (date(2024, 5, 31), date(2024, 6, 1), date(2024, 6, 30), date(2024, 7, 1)):
                attendance_repo.save(Attendance(staff_id=member.id, day=day))

        june = attendance_repo.list_range(date(2024, 6, 1), date(2024, 6, 30))
        assert [(r.day.day, r.staff_id) for r in june] == [
            (1, second.id),
            (1, first.id),
            (30, second.id),
            (30, first.id),
        ]
        assert len(attendance_repo.list_range(date(2024, 6, 1), date(2024, 6, 30), first.id)) == 2


@pytest.fixture
def second_session(db_session):
    """Another session on the same database, as a concurrent request would have."""
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.mark.repositories
class TestConcurrentTransitions:
    def test_second_check_out_does_not_overwrite_the_first(
        self, staff_repo, attendance_repo, second_session
    ):
        member = staff_repo.create(_staff(1))
        day = date(2024, 6, 3)
        attendance_repo.save(
            Attendance(staff_id=member.id, day=day, check_in=datetime(2024, 6, 3, 9, 0, tzinfo=timezone.utc))
        )
        other_repo = AttendanceRepository(second_session)

        mine = attendance_repo.get_by_staff_and_day(member.id, day)
        theirs = other_repo.get_by_staff_and_day(member.id, day)
        mine.record_check_out(datetime(2024, 6, 3, 17, 0, tzinfo=timezone.utc))
        theirs.record_check_out(datetime(2024, 6, 3, 18, 0, tzinfo=timezone.utc))

        assert attendance_repo.save_transition(mine, "checkOut").check_out.hour == 17
        assert other_repo.save_transition(theirs, "checkOut") is None

        stored = attendance_repo.get_by_staff_and_day(member.id, day)
        assert stored.check_out == datetime(2024, 6, 3, 17, 0, tzinfo=timezone.utc)

    def test_second_check_in_does_not_overwrite_the_first(
        self, staff_repo, attendance_repo, second_session
    ):
        member = staff_repo.create(_staff(1))
        day = date(2024, 6, 3)
        attendance_repo.save(Attendance(staff_id=member.id, day=day, status="Late"))
        other_repo = AttendanceRepository(second_session)

        mine = attendance_repo.get_by_staff_and_day(member.id, day)
        theirs = other_repo.get_by_staff_and_day(member.id, day)
        mine.record_check_in(datetime(2024, 6, 3, 9, 0, tzinfo=timezone.utc))
        theirs.record_check_in(datetime(2024, 6, 3, 9, 30, tzinfo=timezone.utc))

        attendance_repo.save_transition(mine, "checkIn")
        assert other_repo.save_transition(theirs, "checkIn") is None
        assert attendance_repo.get_by_staff_and_day(member.id, day).check_in.minute == 0

    def test_transition_on_a_holiday_row_is_refused(self, staff_repo, attendance_repo):
        member = staff_repo.create(_staff(1))
        day = date(2030, 1, 26)
        attendance_repo.upsert_holidays([member.id], day, "Republic Day")

        record = attendance_repo.get_by_staff_and_day(member.id, day)
        record.is_holiday = False
        record.record_check_in(datetime(2030, 1, 26, 9, 0, tzinfo=timezone.utc))

        assert attendance_repo.save_transition(record, "checkIn") is None
        assert attendance_repo.get_by_staff_and_day(member.id, day).check_in is None

    def test_cancel_and_reschedule_race_keeps_the_first_writer(
        self, appointment_repo, haircut, second_session
    ):
        booked = appointment_repo.create(
            Appointment(customer_id=1, appointment_date=JUNE_1, time_slot="10:00 AM", service_ids=[haircut.id])
        )
        other_repo = AppointmentRepository(second_session)

        mine = appointment_repo.get_by_id(booked.id)
        theirs = other_repo.get_by_id(booked.id)
        mine.status = "cancelled"
        theirs.status = "rescheduled"
        theirs.time_slot = "2:00 PM"

        appointment_repo.update(mine, expected_status="pending")
        with pytest.raises(InvalidStateError) as exc_info:
            other_repo.update(theirs, expected_status="pending")
        assert exc_info.value.details == {"status": "cancelled"}

        stored = appointment_repo.get_by_id(booked.id)
        assert (stored.status, stored.time_slot) == ("cancelled", "10:00 AM")

    def test_unconditional_update_still_applies(self, appointment_repo, haircut):
        booked = appointment_repo.create(
            Appointment(customer_id=1, appointment_date=JUNE_1, time_slot="10:00 AM", service_ids=[haircut.id])
        )
        booked.notes = "Window seat"

        assert appointment_repo.update(booked).notes == "Window seat"
