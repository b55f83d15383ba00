import logging
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError

from salon.core.exceptions import ConflictError, NotFoundError
from salon.db.base import AttendanceModel, StaffModel
from salon.domain.entities import Staff
from salon.domain.interfaces import IStaffRepository

logger = logging.getLogger(__name__)


class StaffRepository(IStaffRepository):
    def __init__(self, db_session) -> None:
        self.db = db_session

    def get_by_id(self, staff_id: int) -> Optional[Staff]:
        db_staff = self.db.query(StaffModel).filter_by(id=staff_id).first()
        return self._to_domain(db_staff) if db_staff else None

    def list(
        self, role: Optional[str] = None, is_active: Optional[bool] = None
    ) -> List[Staff]:
        query = self.db.query(StaffModel)
        if role:
            query = query.filter(StaffModel.role == role)
        if is_active is not None:
            query = query.filter(StaffModel.is_active.is_(is_active))
        return [self._to_domain(s) for s in query.order_by(StaffModel.name).all()]

    def list_active(self) -> List[Staff]:
        return self.list(is_active=True)

    def create(self, staff: Staff) -> Staff:
        db_staff = StaffModel(
            name=staff.name,
            phone=staff.phone,
            national_id=staff.national_id,
            dob=staff.dob,
            gender=staff.gender,
            address=staff.address,
            salary=staff.salary,
            role=staff.role,
            is_active=staff.is_active,
        )
        if staff.joining_date is not None:
            db_staff.joining_date = staff.joining_date
        self.db.add(db_staff)
        self._commit()
        self.db.refresh(db_staff)
        return self._to_domain(db_staff)

    def update(self, staff: Staff) -> Staff:
        db_staff = self.db.query(StaffModel).filter_by(id=staff.id).first()
        if not db_staff:
            raise NotFoundError("Staff not found")
        # joining_date is immutable once set
        db_staff.name = staff.name
        db_staff.phone = staff.phone
        db_staff.national_id = staff.national_id
        db_staff.dob = staff.dob
        db_staff.gender = staff.gender
        db_staff.address = staff.address
        db_staff.salary = staff.salary
        db_staff.role = staff.role
        db_staff.is_active = staff.is_active
        self._commit()
        self.db.refresh(db_staff)
        return self._to_domain(db_staff)

    def delete(self, staff_id: int) -> int:
        db_staff = self.db.query(StaffModel).filter_by(id=staff_id).first()
        if not db_staff:
            raise NotFoundError("Staff not found")
        removed = (
            self.db.query(func.count(AttendanceModel.id))
            .filter(AttendanceModel.staff_id == staff_id)
            .scalar()
            or 0
        )
        self.db.delete(db_staff)
        self.db.commit()
        logger.info(
            "Staff deleted with attendance history",
            extra={"context": {"staff_id": staff_id, "attendance_removed": removed}},
        )
        return removed

    def _commit(self) -> None:
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            message = str(e.orig).lower()
            if "national_id" in message:
                raise ConflictError(
                    "Staff with this national ID already exists", {"field": "national_id"}
                )
            if "phone" in message:
                raise ConflictError(
                    "Staff with this phone number already exists", {"field": "phone"}
                )
            raise ConflictError("Staff member already exists")

    def _to_domain(self, db_staff: StaffModel) -> Staff:
        return Staff(
            id=db_staff.id,
            name=db_staff.name,
            phone=db_staff.phone,
            national_id=db_staff.national_id,
            dob=db_staff.dob,
            gender=db_staff.gender,
            role=db_staff.role,
            address=db_staff.address,
            salary=float(db_staff.salary) if db_staff.salary is not None else None,
            is_active=bool(db_staff.is_active),
            joining_date=db_staff.joining_date,
            created_at=db_staff.created_at,
            updated_at=db_staff.updated_at,
        )
