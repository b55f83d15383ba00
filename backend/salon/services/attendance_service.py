"""
Attendance ledger service.

Per (staff, day) state machine: nothing -> checked in -> checked out, with
holiday declaration overriding any state. All days and instants go through
``salon.core.timekeeping`` so uniqueness keys are canonical.
"""

import logging
from typing import List, Optional

from salon.core import timekeeping
from salon.core.exceptions import (
    ConflictError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from salon.domain.entities import DEFAULT_HOLIDAY_NOTE, Attendance, Staff
from salon.domain.interfaces import IAttendanceRepository, IStaffRepository
from salon.schemas.dtos import (
    AttendanceActionRequest,
    AttendanceActionResponse,
    AttendanceResponse,
    AttendanceStatusRequest,
    AttendanceSummaryResponse,
    HolidayRequest,
    HolidayResult,
    TodayStatusResponse,
)

logger = logging.getLogger(__name__)

# Summary bucket for each non-holiday status
SUMMARY_BUCKETS = {
    "Present": "present",
    "Absent": "absent",
    "Late": "late",
    "Half-Day": "half_day",
}


def _staff_brief(staff: Staff) -> dict:
    return {"id": staff.id, "name": staff.name, "role": staff.role}


def _apply_action(record: Attendance, action: str, instant) -> None:
    if record.is_holiday:
        raise InvalidStateError("Cannot record attendance on a declared holiday")
    if action == "checkIn":
        record.record_check_in(instant)
    else:
        record.record_check_out(instant)


class AttendanceService:
    def __init__(
        self, attendance_repo: IAttendanceRepository, staff_repo: IStaffRepository
    ):
        self.attendance_repo = attendance_repo
        self.staff_repo = staff_repo

    def record_attendance(
        self, request: AttendanceActionRequest
    ) -> AttendanceActionResponse:
        """Check a staff member in or out.

        ``date`` defaults to today and ``time`` to now; an explicit time is a
        wall-clock value in the business timezone. Recorded instants may not
        lie in the future.
        """
        request.validate()

        staff = self.staff_repo.get_by_id(request.staff_id)
        if not staff or not staff.is_active:
            raise NotFoundError("Staff not found or inactive")

        day = request.date or timekeeping.today()
        if request.clock is not None:
            instant = timekeeping.combine(day, request.clock)
        else:
            instant = timekeeping.now()
        if instant > timekeeping.now():
            raise ValidationError("Attendance time cannot be in the future", "time")

        record = self.attendance_repo.get_by_staff_and_day(staff.id, day)
        if record is None:
            record = Attendance(staff_id=staff.id, day=day)
        _apply_action(record, request.action, instant)

        try:
            saved = self.attendance_repo.save_transition(record, request.action)
        except ConflictError:
            saved = None
        if saved is None:
            # A concurrent writer changed the row first; judge against its state
            current = self.attendance_repo.get_by_staff_and_day(staff.id, day)
            if current is not None:
                _apply_action(current, request.action, instant)
            raise ConflictError(
                "Attendance changed while recording, please retry",
                {"staff_id": staff.id, "date": day.isoformat()},
            )

        logger.info(
            "Attendance recorded",
            extra={
                "context": {
                    "staff_id": staff.id,
                    "day": day,
                    "action": request.action,
                    "instant": instant,
                }
            },
        )
        return AttendanceActionResponse(
            staff=_staff_brief(staff),
            date=day,
            action=request.action,
            time=timekeeping.format_clock(instant),
            status=saved.status,
            working_hours=saved.working_hours,
        )

    def mark_status(self, request: AttendanceStatusRequest) -> AttendanceResponse:
        """Upsert an explicit Present/Absent/Late/Half-Day status for a day."""
        request.validate()

        staff = self.staff_repo.get_by_id(request.staff_id)
        if not staff:
            raise NotFoundError("Staff not found")

        record = self.attendance_repo.get_by_staff_and_day(staff.id, request.date)
        if record is None:
            record = Attendance(staff_id=staff.id, day=request.date)
        record.status = request.status
        record.is_holiday = False
        if request.notes is not None:
            record.notes = request.notes

        saved = self.attendance_repo.save(record)
        logger.info(
            "Attendance status marked",
            extra={
                "context": {
                    "staff_id": staff.id,
                    "day": request.date,
                    "status": request.status,
                }
            },
        )
        return AttendanceResponse.from_domain(saved, staff.name)

    def declare_holiday(self, request: HolidayRequest) -> HolidayResult:
        """Mark every active staff member as on holiday for a present/future day."""
        request.validate()
        if request.date < timekeeping.today():
            raise ValidationError("Cannot declare holiday for past dates", "date")

        staff_ids = [s.id for s in self.staff_repo.list_active()]
        counts = self.attendance_repo.upsert_holidays(
            staff_ids, request.date, request.notes or DEFAULT_HOLIDAY_NOTE
        )

        log = logger.warning if counts["failed"] else logger.info
        log(
            "Holiday declared",
            extra={
                "context": {
                    "day": request.date,
                    "staff_count": len(staff_ids),
                    **counts,
                }
            },
        )
        return HolidayResult(
            date=request.date,
            staff_count=len(staff_ids),
            upserted=counts["upserted"],
            modified=counts["modified"],
            failed=counts["failed"],
        )

    def delete_holiday(self, date_value) -> int:
        if date_value is None:
            raise ValidationError("Date is required", "date")
        day = timekeeping.parse_calendar_date(date_value, "date")
        if day < timekeeping.today():
            raise ValidationError("Cannot delete holidays for past dates", "date")

        deleted = self.attendance_repo.delete_holidays(day)
        if deleted == 0:
            raise NotFoundError("No holiday found for this date")

        logger.info(
            "Holiday removed",
            extra={"context": {"day": day, "deleted": deleted}},
        )
        return deleted

    def list_by_date_range(
        self, start_date, end_date, staff_id: Optional[int] = None
    ) -> List[AttendanceResponse]:
        if not start_date or not end_date:
            raise ValidationError("Start date and end date are required")
        start = timekeeping.parse_calendar_date(start_date, "start_date")
        end = timekeeping.parse_calendar_date(end_date, "end_date")
        if start > end:
            raise ValidationError("Start date must be before or equal to end date")

        names = {s.id: s.name for s in self.staff_repo.list()}
        records = self.attendance_repo.list_range(start, end, staff_id)
        return [AttendanceResponse.from_domain(r, names.get(r.staff_id)) for r in records]

    def summary(
        self, staff_id: int, month: Optional[int] = None, year: Optional[int] = None
    ) -> AttendanceSummaryResponse:
        """Monthly counts by status plus summed working hours.

        Days without a record are not counted as absences.
        """
        today = timekeeping.today()
        month = today.month if month is None else month
        year = today.year if year is None else year
        if not 1 <= month <= 12:
            raise ValidationError("Month must be between 1 and 12", "month")
        if not 2000 <= year <= 2100:
            raise ValidationError("Year must be between 2000 and 2100", "year")

        staff = self.staff_repo.get_by_id(staff_id)
        if not staff:
            raise NotFoundError("Staff not found")

        first, last = timekeeping.month_bounds(year, month)
        records = self.attendance_repo.list_range(first, last, staff_id)

        result = AttendanceSummaryResponse(
            staff=_staff_brief(staff), month=month, year=year, total_days=last.day
        )
        hours = 0.0
        for record in records:
            if record.is_holiday or record.status == "Holiday":
                result.holidays += 1
            else:
                bucket = SUMMARY_BUCKETS[record.status]
                setattr(result, bucket, getattr(result, bucket) + 1)
            hours += record.working_hours
        result.working_hours = round(hours, 2)
        return result

    def today_status(self) -> TodayStatusResponse:
        """Partition active staff into present / holiday / absent for today."""
        today = timekeeping.today()
        records = {r.staff_id: r for r in self.attendance_repo.list_for_day(today)}

        result = TodayStatusResponse(date=today)
        for staff in self.staff_repo.list_active():
            record = records.get(staff.id)
            if record is None:
                result.absent.append(_staff_brief(staff))
            elif record.is_holiday:
                result.holiday.append({**_staff_brief(staff), "notes": record.notes})
            else:
                result.present.append(
                    {
                        **_staff_brief(staff),
                        "status": record.status,
                        "check_in": timekeeping.format_clock(record.check_in),
                        "check_out": timekeeping.format_clock(record.check_out),
                    }
                )
        return result
