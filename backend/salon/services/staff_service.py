import logging
from dataclasses import replace
from typing import List, Optional

from salon.core.exceptions import NotFoundError, ValidationError
from salon.domain.entities import STAFF_ROLES, Staff
from salon.domain.interfaces import IStaffRepository
from salon.schemas.dtos import StaffRequest, StaffResponse

logger = logging.getLogger(__name__)


class StaffService:
    def __init__(self, staff_repo: IStaffRepository):
        self.staff_repo = staff_repo

    def create_staff(self, request: StaffRequest) -> StaffResponse:
        request.validate()
        staff = Staff(**request.changes)
        created = self.staff_repo.create(staff)
        logger.info(
            "Staff created",
            extra={"context": {"staff_id": created.id, "role": created.role}},
        )
        return StaffResponse.from_domain(created)

    def list_staff(
        self, role: Optional[str] = None, is_active: Optional[bool] = None
    ) -> List[StaffResponse]:
        if role and role not in STAFF_ROLES:
            raise ValidationError(f"{role} is not a valid role", "role")
        return [
            StaffResponse.from_domain(s)
            for s in self.staff_repo.list(role=role, is_active=is_active)
        ]

    def get_staff(self, staff_id: int) -> StaffResponse:
        return StaffResponse.from_domain(self._get_or_404(staff_id))

    def update_staff(self, staff_id: int, request: StaffRequest) -> StaffResponse:
        """Apply a partial update; the merged entity is re-validated in full."""
        request.validate()
        existing = self._get_or_404(staff_id)
        updated = self.staff_repo.update(replace(existing, **request.changes))
        logger.info(
            "Staff updated",
            extra={
                "context": {"staff_id": staff_id, "fields": sorted(request.changes)}
            },
        )
        return StaffResponse.from_domain(updated)

    def delete_staff(self, staff_id: int) -> dict:
        removed = self.staff_repo.delete(staff_id)
        return {"staff_id": staff_id, "attendance_removed": removed}

    def _get_or_404(self, staff_id: int) -> Staff:
        staff = self.staff_repo.get_by_id(staff_id)
        if not staff:
            raise NotFoundError("Staff not found")
        return staff
