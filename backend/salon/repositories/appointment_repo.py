"""
Appointment repository implementation following SOLID principles.

The partial unique index on ``(appointment_date, time_slot)`` for pending and
confirmed rows is the final word on slot ownership; any violation surfacing
on commit is translated to ``ConflictError``.
"""

import logging
from datetime import date
from typing import List, Optional, Sequence

from sqlalchemy import case
from sqlalchemy.exc import IntegrityError

from salon.core.exceptions import ConflictError, InvalidStateError, NotFoundError
from salon.db.base import AppointmentModel, ServiceModel
from salon.domain.entities import (
    ACTIVE_SLOT_STATUSES,
    TIME_SLOTS,
    Appointment,
    slot_index,
)
from salon.domain.interfaces import IAppointmentRepository

logger = logging.getLogger(__name__)

# Business order of the slots, usable in ORDER BY
SLOT_ORDER = case(
    {slot: slot_index(slot) for slot in TIME_SLOTS},
    value=AppointmentModel.time_slot,
    else_=len(TIME_SLOTS),
)


class AppointmentRepository(IAppointmentRepository):
    """Repository for Appointment persistence operations."""

    def __init__(self, db_session) -> None:
        self.db = db_session

    def get_by_id(self, appointment_id: int) -> Optional[Appointment]:
        db_appointment = (
            self.db.query(AppointmentModel).filter_by(id=appointment_id).first()
        )
        return self._to_domain(db_appointment) if db_appointment else None

    def get_for_customer(
        self, appointment_id: int, customer_id: int
    ) -> Optional[Appointment]:
        db_appointment = (
            self.db.query(AppointmentModel)
            .filter_by(id=appointment_id, customer_id=customer_id)
            .first()
        )
        return self._to_domain(db_appointment) if db_appointment else None

    def find_slot_occupant(
        self,
        appointment_date: date,
        time_slot: str,
        exclude_id: Optional[int] = None,
    ) -> Optional[Appointment]:
        query = self.db.query(AppointmentModel).filter(
            AppointmentModel.appointment_date == appointment_date,
            AppointmentModel.time_slot == time_slot,
            AppointmentModel.status.in_(ACTIVE_SLOT_STATUSES),
        )
        if exclude_id is not None:
            query = query.filter(AppointmentModel.id != exclude_id)
        db_appointment = query.first()
        return self._to_domain(db_appointment) if db_appointment else None

    def list(
        self, appointment_date: Optional[date] = None, status: Optional[str] = None
    ) -> List[Appointment]:
        query = self.db.query(AppointmentModel)
        if appointment_date is not None:
            query = query.filter(AppointmentModel.appointment_date == appointment_date)
        if status:
            query = query.filter(AppointmentModel.status == status)
        rows = query.order_by(
            AppointmentModel.appointment_date.asc(), SLOT_ORDER, AppointmentModel.id
        ).all()
        return [self._to_domain(r) for r in rows]

    def list_by_customer(self, customer_id: int) -> List[Appointment]:
        rows = (
            self.db.query(AppointmentModel)
            .filter(AppointmentModel.customer_id == customer_id)
            .order_by(AppointmentModel.appointment_date.desc(), SLOT_ORDER)
            .all()
        )
        return [self._to_domain(r) for r in rows]

    def list_for_day(
        self, appointment_date: date, statuses: Sequence[str]
    ) -> List[Appointment]:
        rows = (
            self.db.query(AppointmentModel)
            .filter(
                AppointmentModel.appointment_date == appointment_date,
                AppointmentModel.status.in_(list(statuses)),
            )
            .order_by(SLOT_ORDER, AppointmentModel.id)
            .all()
        )
        return [self._to_domain(r) for r in rows]

    def create(self, appointment: Appointment) -> Appointment:
        services = []
        if appointment.service_ids:
            services = (
                self.db.query(ServiceModel)
                .filter(ServiceModel.id.in_(appointment.service_ids))
                .all()
            )
        db_appointment = AppointmentModel(
            customer_id=appointment.customer_id,
            combo_id=appointment.combo_id,
            appointment_date=appointment.appointment_date,
            time_slot=appointment.time_slot,
            status=appointment.status,
            notes=appointment.notes,
            services=services,
        )
        self.db.add(db_appointment)
        self._commit(appointment)
        self.db.refresh(db_appointment)
        return self._to_domain(db_appointment)

    def update(
        self, appointment: Appointment, expected_status: Optional[str] = None
    ) -> Appointment:
        query = self.db.query(AppointmentModel).filter(
            AppointmentModel.id == appointment.id
        )
        if expected_status is not None:
            query = query.filter(AppointmentModel.status == expected_status)
        try:
            matched = query.update(
                {
                    AppointmentModel.appointment_date: appointment.appointment_date,
                    AppointmentModel.time_slot: appointment.time_slot,
                    AppointmentModel.status: appointment.status,
                    AppointmentModel.notes: appointment.notes,
                },
                synchronize_session=False,
            )
            self.db.commit()
        except IntegrityError as e:
            self._slot_conflict(appointment, e)
        # identity map still holds the pre-update row
        self.db.expire_all()

        db_appointment = (
            self.db.query(AppointmentModel).filter_by(id=appointment.id).first()
        )
        if not db_appointment:
            raise NotFoundError("Appointment not found")
        if matched == 0:
            logger.warning(
                "Appointment changed before status write",
                extra={
                    "context": {
                        "appointment_id": appointment.id,
                        "expected_status": expected_status,
                        "current_status": db_appointment.status,
                    }
                },
            )
            raise InvalidStateError(
                f"Appointment is now {db_appointment.status}",
                {"status": db_appointment.status},
            )
        return self._to_domain(db_appointment)

    def _commit(self, appointment: Appointment) -> None:
        try:
            self.db.commit()
        except IntegrityError as e:
            self._slot_conflict(appointment, e)

    def _slot_conflict(self, appointment: Appointment, e: IntegrityError) -> None:
        self.db.rollback()
        logger.warning(
            "Slot constraint rejected appointment write",
            extra={
                "context": {
                    "appointment_id": appointment.id,
                    "date": appointment.appointment_date,
                    "time_slot": appointment.time_slot,
                    "error": str(e.orig),
                }
            },
        )
        raise ConflictError(
            "This time slot is already booked",
            {
                "date": appointment.appointment_date.isoformat(),
                "time_slot": appointment.time_slot,
            },
        )

    def _to_domain(self, db_appointment: AppointmentModel) -> Appointment:
        """Convert database model to domain entity."""
        return Appointment(
            id=db_appointment.id,
            customer_id=db_appointment.customer_id,
            combo_id=db_appointment.combo_id,
            service_ids=[s.id for s in db_appointment.services],
            appointment_date=db_appointment.appointment_date,
            time_slot=db_appointment.time_slot,
            status=db_appointment.status,
            notes=db_appointment.notes,
            created_at=db_appointment.created_at,
        )
