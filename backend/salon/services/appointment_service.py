"""
Appointment service following SOLID principles.

Owns the slot ledger rules: one pending/confirmed appointment per
(date, time slot), the customer cancel rule and privileged reschedule.
"""

import logging
from typing import Dict, FrozenSet, List, Optional

from salon.core import timekeeping
from salon.core.exceptions import ConflictError, InvalidStateError, NotFoundError
from salon.domain.entities import (
    ACTIVE_SLOT_STATUSES,
    APPOINTMENT_STATUSES,
    CLOSED_STATUSES,
    TODAY_STATUSES,
    Appointment,
    validate_appointment_status,
)
from salon.domain.interfaces import IAppointmentRepository, ICatalogLookup
from salon.schemas.dtos import (
    AppointmentCreateRequest,
    AppointmentResponse,
    AppointmentStatusRequest,
    RescheduleRequest,
)

logger = logging.getLogger(__name__)

# Privileged status updates may move between any two statuses.
STATUS_TRANSITIONS: Dict[str, FrozenSet[str]] = {
    status: frozenset(APPOINTMENT_STATUSES) for status in APPOINTMENT_STATUSES
}


class AppointmentService:
    """Application service for appointment-related use-cases.

    Depends on the repository and catalog lookup interfaces only, so it can
    be exercised with mocks.
    """

    def __init__(
        self, appointment_repo: IAppointmentRepository, catalog: ICatalogLookup
    ):
        self.appointment_repo = appointment_repo
        self.catalog = catalog

    def create_appointment(
        self, request: AppointmentCreateRequest
    ) -> AppointmentResponse:
        """Book a slot for a customer.

        Business Rules:
        - Exactly one of services or combo
        - The slot must not be held by a pending/confirmed appointment
        - The combo, or every listed service, must exist and be active
        """
        request.validate()

        self._ensure_slot_free(request.appointment_date, request.time_slot)

        if request.combo_id is not None:
            combo = self.catalog.lookup_combo(request.combo_id)
            if not combo or not combo.is_active:
                raise NotFoundError("Selected combo is not available")
        else:
            active = self.catalog.count_active_services(request.service_ids)
            if active != len(request.service_ids):
                raise NotFoundError("One or more selected services are not available")

        appointment = Appointment(
            customer_id=request.customer_id,
            appointment_date=request.appointment_date,
            time_slot=request.time_slot,
            service_ids=request.service_ids,
            combo_id=request.combo_id,
            notes=request.notes,
            status="pending",
        )
        created = self.appointment_repo.create(appointment)

        logger.info(
            "Appointment booked",
            extra={
                "context": {
                    "appointment_id": created.id,
                    "customer_id": created.customer_id,
                    "date": created.appointment_date,
                    "time_slot": created.time_slot,
                }
            },
        )
        return AppointmentResponse.from_domain(created)

    def list_appointments(
        self, appointment_date=None, status: Optional[str] = None
    ) -> List[AppointmentResponse]:
        day = None
        if appointment_date:
            day = timekeeping.parse_calendar_date(appointment_date, "date")
        if status:
            validate_appointment_status(status)
        appointments = self.appointment_repo.list(appointment_date=day, status=status)
        return [AppointmentResponse.from_domain(a) for a in appointments]

    def list_for_customer(self, customer_id: int) -> List[AppointmentResponse]:
        """Get all appointments for a specific customer."""
        appointments = self.appointment_repo.list_by_customer(customer_id)
        return [AppointmentResponse.from_domain(a) for a in appointments]

    def get_appointment(self, appointment_id: int) -> AppointmentResponse:
        return AppointmentResponse.from_domain(self._get_or_404(appointment_id))

    def update_status(
        self, appointment_id: int, request: AppointmentStatusRequest
    ) -> AppointmentResponse:
        request.validate()
        appointment = self._get_or_404(appointment_id)

        new_status = request.status
        # Never fails while the table is all-to-all; kept so it can be narrowed.
        if new_status not in STATUS_TRANSITIONS[appointment.status]:
            raise InvalidStateError(
                f"Cannot change status from {appointment.status} to {new_status}"
            )
        if new_status in ACTIVE_SLOT_STATUSES and not appointment.occupies_slot:
            self._ensure_slot_free(
                appointment.appointment_date, appointment.time_slot, appointment.id
            )

        previous = appointment.status
        appointment.status = new_status
        updated = self.appointment_repo.update(appointment, expected_status=previous)

        logger.info(
            "Appointment status updated",
            extra={
                "context": {
                    "appointment_id": appointment_id,
                    "from": previous,
                    "to": new_status,
                }
            },
        )
        return AppointmentResponse.from_domain(updated)

    def cancel_appointment(
        self, appointment_id: int, customer_id: int
    ) -> AppointmentResponse:
        """Customer cancellation. Only the owner may cancel, and only while open."""
        appointment = self.appointment_repo.get_for_customer(appointment_id, customer_id)
        if not appointment:
            raise NotFoundError("Appointment not found")

        if appointment.status in CLOSED_STATUSES:
            raise InvalidStateError(f"Cannot cancel a {appointment.status} appointment")

        previous = appointment.status
        appointment.status = "cancelled"
        updated = self.appointment_repo.update(appointment, expected_status=previous)

        logger.info(
            "Appointment cancelled",
            extra={
                "context": {"appointment_id": appointment_id, "customer_id": customer_id}
            },
        )
        return AppointmentResponse.from_domain(updated)

    def reschedule_appointment(
        self, appointment_id: int, request: RescheduleRequest
    ) -> AppointmentResponse:
        """Move an appointment to a new day/slot and mark it rescheduled."""
        request.validate()
        appointment = self._get_or_404(appointment_id)

        if appointment.status in CLOSED_STATUSES:
            raise InvalidStateError(
                f"Cannot reschedule a {appointment.status} appointment"
            )

        self._ensure_slot_free(
            request.appointment_date, request.time_slot, exclude_id=appointment.id
        )

        old_date, old_slot = appointment.appointment_date, appointment.time_slot
        previous = appointment.status
        appointment.appointment_date = request.appointment_date
        appointment.time_slot = request.time_slot
        appointment.status = "rescheduled"
        updated = self.appointment_repo.update(appointment, expected_status=previous)

        logger.info(
            "Appointment rescheduled",
            extra={
                "context": {
                    "appointment_id": appointment_id,
                    "from": f"{old_date} {old_slot}",
                    "to": f"{updated.appointment_date} {updated.time_slot}",
                }
            },
        )
        return AppointmentResponse.from_domain(updated)

    def list_today(self) -> List[AppointmentResponse]:
        """Today's day sheet in slot order, each with its total duration."""
        appointments = self.appointment_repo.list_for_day(
            timekeeping.today(), TODAY_STATUSES
        )
        for appointment in appointments:
            appointment.total_duration = self._total_duration(appointment)
        return [AppointmentResponse.from_domain(a) for a in appointments]

    def _get_or_404(self, appointment_id: int) -> Appointment:
        appointment = self.appointment_repo.get_by_id(appointment_id)
        if not appointment:
            raise NotFoundError("Appointment not found")
        return appointment

    def _ensure_slot_free(self, appointment_date, time_slot, exclude_id=None) -> None:
        occupant = self.appointment_repo.find_slot_occupant(
            appointment_date, time_slot, exclude_id=exclude_id
        )
        if occupant:
            raise ConflictError(
                "This time slot is already booked",
                {"date": appointment_date.isoformat(), "time_slot": time_slot},
            )

    def _total_duration(self, appointment: Appointment) -> int:
        if appointment.combo_id is not None:
            combo = self.catalog.lookup_combo(appointment.combo_id)
            return combo.total_duration if combo else 0
        services = self.catalog.get_services(appointment.service_ids)
        return sum(s.duration or 0 for s in services)
