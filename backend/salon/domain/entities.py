"""
Domain entities - Pure business logic, no framework dependencies.

Each entity validates its own invariants in ``__post_init__`` and raises
``ValidationError`` (a ``ValueError``) when constructed with bad data.
Lifecycle rules that do not need storage (attendance transitions, combo
pricing) live here as methods so services stay thin.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Iterable, List, Optional

from salon.core import timekeeping
from salon.core.exceptions import (
    AlreadyDoneError,
    InvalidStateError,
    ValidationError,
)

# Bookable hours, in business order. Sorting uses this order, never lexical.
TIME_SLOTS = (
    "9:00 AM",
    "10:00 AM",
    "11:00 AM",
    "12:00 PM",
    "1:00 PM",
    "2:00 PM",
    "3:00 PM",
    "4:00 PM",
    "5:00 PM",
)

APPOINTMENT_STATUSES = ("pending", "confirmed", "completed", "cancelled", "rescheduled")
# Statuses that occupy a slot
ACTIVE_SLOT_STATUSES = ("pending", "confirmed")
# Statuses shown on the day sheet
TODAY_STATUSES = ("pending", "confirmed", "rescheduled")
# Statuses that can no longer be cancelled or rescheduled
CLOSED_STATUSES = ("completed", "cancelled")

CATALOG_GENDERS = ("male", "female", "unisex")

STAFF_GENDERS = ("Male", "Female", "Other")
STAFF_ROLES = ("Barber", "Stylist", "Receptionist", "Manager")

ATTENDANCE_STATUSES = ("Present", "Absent", "Late", "Half-Day", "Holiday")
DEFAULT_HOLIDAY_NOTE = "Public Holiday"


def slot_index(time_slot: str) -> int:
    """Position of a slot in the business day."""
    return TIME_SLOTS.index(time_slot)


def validate_time_slot(time_slot) -> str:
    if time_slot not in TIME_SLOTS:
        raise ValidationError(
            "Invalid time slot", "time_slot", {"valid_slots": list(TIME_SLOTS)}
        )
    return time_slot


def validate_appointment_status(status) -> str:
    if status not in APPOINTMENT_STATUSES:
        raise ValidationError(
            "Invalid status",
            "status",
            {"valid_statuses": list(APPOINTMENT_STATUSES)},
        )
    return status


@dataclass
class Principal:
    """Authenticated caller as seen by the core: an id and a role.

    Implements the Flask-Login user interface explicitly so it can be
    returned from the request loader.
    """

    user_id: int
    role: str

    @property
    def is_authenticated(self) -> bool:
        return True

    @property
    def is_active(self) -> bool:
        return True

    @property
    def is_anonymous(self) -> bool:
        return False

    def get_id(self) -> str:
        return str(self.user_id)


@dataclass
class Service:
    """Bookable catalog service."""

    name: str = ""
    duration: int = 0  # minutes
    price: float = 0.0
    description: Optional[str] = None
    category: Optional[str] = None
    gender: str = "unisex"
    is_active: bool = True
    id: Optional[int] = None
    created_at: Optional[datetime] = None

    def __post_init__(self):
        if not self.name or not self.name.strip():
            raise ValidationError("Name is required", "name")
        if self.duration is None or self.duration <= 0:
            raise ValidationError("Duration must be a positive number of minutes", "duration")
        if self.price is None or self.price < 0:
            raise ValidationError("Price cannot be negative", "price")
        if self.gender not in CATALOG_GENDERS:
            raise ValidationError("Gender must be male, female or unisex", "gender")


@dataclass
class ComboItem:
    """A member service of a combo and its position in the sequence."""

    service_id: int
    sequence: int


@dataclass
class Combo:
    """Bundled set of services sold as one bookable unit.

    ``total_duration`` and ``total_price`` are snapshots taken by
    :meth:`reprice`; they are not kept in sync with later catalog edits.
    """

    name: str = ""
    items: List[ComboItem] = field(default_factory=list)
    discount: float = 0.0
    description: Optional[str] = None
    gender: str = "unisex"
    total_duration: int = 0
    total_price: float = 0.0
    is_active: bool = True
    id: Optional[int] = None
    created_at: Optional[datetime] = None

    def __post_init__(self):
        if not self.name or not self.name.strip():
            raise ValidationError("Name is required", "name")
        validate_discount(self.discount)
        if self.gender not in CATALOG_GENDERS:
            raise ValidationError("Gender must be male, female or unisex", "gender")

    @property
    def service_ids(self) -> List[int]:
        return [item.service_id for item in sorted(self.items, key=lambda i: i.sequence)]

    def reprice(self, member_services: Iterable[Service]) -> None:
        """Recompute the duration/price snapshot from active member services."""
        active = [svc for svc in member_services if svc.is_active]
        self.total_duration = sum(svc.duration or 0 for svc in active)
        base_price = sum(svc.price or 0 for svc in active)
        discounted = base_price - (base_price * (self.discount or 0) / 100)
        self.total_price = round(max(0.0, discounted), 2)


def validate_discount(discount) -> float:
    if discount is None:
        return 0.0
    if isinstance(discount, bool) or not isinstance(discount, (int, float)):
        raise ValidationError("Discount must be a number between 0 and 100", "discount")
    if discount < 0 or discount > 100:
        raise ValidationError("Discount must be a number between 0 and 100", "discount")
    return float(discount)


@dataclass
class Appointment:
    """Domain entity for a booking of one slot on one day."""

    customer_id: int = 0
    appointment_date: Optional[date] = None
    time_slot: str = ""
    service_ids: List[int] = field(default_factory=list)
    combo_id: Optional[int] = None
    status: str = "pending"
    notes: Optional[str] = None
    id: Optional[int] = None
    created_at: Optional[datetime] = None
    total_duration: Optional[int] = None

    def __post_init__(self):
        if not self.customer_id or self.customer_id <= 0:
            raise ValidationError("Valid customer_id is required", "customer_id")
        if self.appointment_date is None:
            raise ValidationError("Appointment date is required", "appointment_date")
        validate_time_slot(self.time_slot)
        validate_appointment_status(self.status)
        has_services = bool(self.service_ids)
        has_combo = self.combo_id is not None
        if has_services == has_combo:
            raise ValidationError("Please select services or a combo, not both")

    @property
    def occupies_slot(self) -> bool:
        return self.status in ACTIVE_SLOT_STATUSES


@dataclass
class Staff:
    """Domain entity for a staff member."""

    name: str = ""
    phone: str = ""
    national_id: str = ""
    dob: Optional[date] = None
    gender: str = ""
    role: str = ""
    address: Optional[str] = None
    salary: Optional[float] = None
    is_active: bool = True
    joining_date: Optional[datetime] = None
    id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        if not self.name or not self.name.strip():
            raise ValidationError("Name is required", "name")
        if len(self.name) > 100:
            raise ValidationError("Name cannot exceed 100 characters", "name")
        if not isinstance(self.phone, str) or not (
            len(self.phone) == 10 and self.phone.isdigit()
        ):
            raise ValidationError(f"{self.phone} is not a valid phone number!", "phone")
        if not isinstance(self.national_id, str) or not (
            len(self.national_id) == 12 and self.national_id.isdigit()
        ):
            raise ValidationError(
                f"{self.national_id} is not a valid national ID number!", "national_id"
            )
        if self.dob is None:
            raise ValidationError("Date of birth is required", "dob")
        if self.dob >= timekeeping.today():
            raise ValidationError("Date of birth must be in the past", "dob")
        if self.gender not in STAFF_GENDERS:
            raise ValidationError(f"{self.gender} is not a valid gender", "gender")
        if self.role not in STAFF_ROLES:
            raise ValidationError(f"{self.role} is not a valid role", "role")
        if self.address and len(self.address) > 500:
            raise ValidationError("Address cannot exceed 500 characters", "address")
        if self.salary is not None and self.salary < 0:
            raise ValidationError("Salary cannot be negative", "salary")

    @property
    def age(self) -> int:
        days = (timekeeping.today() - self.dob).days
        return int(days // 365.25)


@dataclass
class Attendance:
    """One staff member's attendance on one canonical day.

    Transitions: nothing -> checked in -> checked out. A holiday overrides
    any state and clears both instants.
    """

    staff_id: int = 0
    day: Optional[date] = None
    check_in: Optional[datetime] = None
    check_out: Optional[datetime] = None
    status: str = "Present"
    is_holiday: bool = False
    notes: Optional[str] = None
    id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        if not self.staff_id or self.staff_id <= 0:
            raise ValidationError("Staff ID is required", "staff_id")
        if self.day is None:
            raise ValidationError("Date is required", "date")
        if self.status not in ATTENDANCE_STATUSES:
            raise ValidationError(f"{self.status} is not a valid status", "status")
        if self.notes and len(self.notes) > 500:
            raise ValidationError("Notes cannot exceed 500 characters", "notes")

    @property
    def working_hours(self) -> float:
        return timekeeping.working_hours(self.check_in, self.check_out)

    def record_check_in(self, instant: datetime) -> None:
        if self.check_in is not None:
            raise AlreadyDoneError(
                "Already checked in today",
                {"existing_check_in": timekeeping.format_clock(self.check_in)},
            )
        self.check_in = instant

    def record_check_out(self, instant: datetime) -> None:
        if self.check_in is None:
            raise InvalidStateError("Cannot check out without checking in first")
        if self.check_out is not None:
            raise AlreadyDoneError(
                "Already checked out today",
                {"existing_check_out": timekeeping.format_clock(self.check_out)},
            )
        if timekeeping.to_utc(instant) < timekeeping.to_utc(self.check_in):
            raise ValidationError("Check-out time must be after check-in time", "time")
        self.check_out = instant

    def mark_holiday(self, notes: Optional[str] = None) -> None:
        self.status = "Holiday"
        self.is_holiday = True
        self.notes = notes or DEFAULT_HOLIDAY_NOTE
        self.check_in = None
        self.check_out = None
