"""
Attendance repository keyed by (staff_id, day).

The compound unique constraint on the table makes the lookup-or-create in the
service safe under concurrent first writes: the loser gets ``ConflictError``.
Check-in and check-out on an existing row are conditional updates, so a
concurrent second transition never overwrites the first.
"""

import logging
from datetime import date
from typing import Dict, List, Optional, Sequence

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from salon.core.exceptions import ConflictError, NotFoundError
from salon.db.base import AttendanceModel, StaffModel
from salon.domain.entities import Attendance
from salon.domain.interfaces import IAttendanceRepository

logger = logging.getLogger(__name__)


class AttendanceRepository(IAttendanceRepository):
    def __init__(self, db_session) -> None:
        self.db = db_session

    def get_by_staff_and_day(self, staff_id: int, day: date) -> Optional[Attendance]:
        db_record = (
            self.db.query(AttendanceModel).filter_by(staff_id=staff_id, day=day).first()
        )
        return self._to_domain(db_record) if db_record else None

    def save(self, record: Attendance) -> Attendance:
        if record.id is None:
            db_record = AttendanceModel(staff_id=record.staff_id, day=record.day)
            self.db.add(db_record)
        else:
            db_record = self.db.query(AttendanceModel).filter_by(id=record.id).first()
            if not db_record:
                raise NotFoundError("Attendance record not found")
        self._apply(db_record, record)
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            logger.warning(
                "Attendance write lost a race on (staff, day)",
                extra={
                    "context": {
                        "staff_id": record.staff_id,
                        "day": record.day,
                        "error": str(e.orig),
                    }
                },
            )
            raise ConflictError(
                "Attendance already recorded for this staff member on this day",
                {"staff_id": record.staff_id, "date": record.day.isoformat()},
            )
        self.db.refresh(db_record)
        return self._to_domain(db_record)

    def save_transition(self, record: Attendance, action: str) -> Optional[Attendance]:
        """Persist a check-in or check-out only if the stored row still allows it.

        The write is a single conditional UPDATE, so of two concurrent
        transitions on the same row exactly one matches. Returns None for the
        one that lost; a brand new row goes through ``save`` and its unique
        key instead.
        """
        if record.id is None:
            return self.save(record)

        if action == "checkIn":
            guard = [AttendanceModel.check_in.is_(None)]
            values = {AttendanceModel.check_in: record.check_in}
        else:
            guard = [
                AttendanceModel.check_in.is_not(None),
                AttendanceModel.check_out.is_(None),
            ]
            values = {AttendanceModel.check_out: record.check_out}

        matched = (
            self.db.query(AttendanceModel)
            .filter(
                AttendanceModel.id == record.id,
                AttendanceModel.is_holiday.is_(False),
                *guard,
            )
            .update(values, synchronize_session=False)
        )
        self.db.commit()
        # identity map still holds the pre-update row
        self.db.expire_all()
        if matched == 0:
            logger.warning(
                "Attendance transition lost a race",
                extra={
                    "context": {
                        "attendance_id": record.id,
                        "staff_id": record.staff_id,
                        "day": record.day,
                        "action": action,
                    }
                },
            )
            return None
        return self._to_domain(
            self.db.query(AttendanceModel).filter_by(id=record.id).one()
        )

    def upsert_holidays(
        self, staff_ids: Sequence[int], day: date, notes: str
    ) -> Dict[str, int]:
        counts = {"upserted": 0, "modified": 0, "failed": 0}
        for staff_id in staff_ids:
            try:
                with self.db.begin_nested():
                    db_record = (
                        self.db.query(AttendanceModel)
                        .filter_by(staff_id=staff_id, day=day)
                        .first()
                    )
                    created = db_record is None
                    if created:
                        db_record = AttendanceModel(staff_id=staff_id, day=day)
                        self.db.add(db_record)
                        record = Attendance(staff_id=staff_id, day=day)
                    else:
                        record = self._to_domain(db_record)
                    record.mark_holiday(notes)
                    self._apply(db_record, record)
            except SQLAlchemyError as e:
                counts["failed"] += 1
                logger.error(
                    "Holiday upsert failed for staff member",
                    extra={
                        "context": {"staff_id": staff_id, "day": day, "error": str(e)}
                    },
                )
                continue
            counts["upserted" if created else "modified"] += 1
        self.db.commit()
        return counts

    def delete_holidays(self, day: date) -> int:
        deleted = (
            self.db.query(AttendanceModel)
            .filter(AttendanceModel.day == day, AttendanceModel.is_holiday.is_(True))
            .delete(synchronize_session=False)
        )
        self.db.commit()
        return deleted

    def list_for_day(self, day: date) -> List[Attendance]:
        rows = self.db.query(AttendanceModel).filter(AttendanceModel.day == day).all()
        return [self._to_domain(r) for r in rows]

    def list_range(
        self, start: date, end: date, staff_id: Optional[int] = None
    ) -> List[Attendance]:
        query = (
            self.db.query(AttendanceModel)
            .join(StaffModel, AttendanceModel.staff_id == StaffModel.id)
            .filter(AttendanceModel.day >= start, AttendanceModel.day <= end)
        )
        if staff_id is not None:
            query = query.filter(AttendanceModel.staff_id == staff_id)
        rows = query.order_by(AttendanceModel.day.asc(), StaffModel.name.asc()).all()
        return [self._to_domain(r) for r in rows]

    def _apply(self, db_record: AttendanceModel, record: Attendance) -> None:
        db_record.check_in = record.check_in
        db_record.check_out = record.check_out
        db_record.status = record.status
        db_record.is_holiday = record.is_holiday
        db_record.notes = record.notes

    def _to_domain(self, db_record: AttendanceModel) -> Attendance:
        return Attendance(
            id=db_record.id,
            staff_id=db_record.staff_id,
            day=db_record.day,
            check_in=db_record.check_in,
            check_out=db_record.check_out,
            status=db_record.status,
            is_holiday=bool(db_record.is_holiday),
            notes=db_record.notes,
            created_at=db_record.created_at,
            updated_at=db_record.updated_at,
        )
