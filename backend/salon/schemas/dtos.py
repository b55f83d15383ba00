"""
Data Transfer Objects (DTOs) and validation schemas.

Request DTOs are built from raw JSON payloads with ``from_payload`` and
normalize themselves in ``validate()`` (strings to dates, clocks, ints).
Response DTOs are built from domain entities with ``from_domain`` and
rendered with ``to_dict()``; instants are converted to the business timezone
only here.
"""

from dataclasses import asdict, dataclass, field, fields, is_dataclass
from datetime import date, datetime, time
from typing import Any, Dict, List, Optional

from salon.core import timekeeping
from salon.core.exceptions import ValidationError
from salon.domain.entities import (
    ATTENDANCE_STATUSES,
    validate_appointment_status,
    validate_discount,
    validate_time_slot,
)

ATTENDANCE_ACTIONS = ("checkIn", "checkOut")


def _serialize(value):
    if isinstance(value, datetime):
        return timekeeping.to_display(value).isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: _serialize(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_serialize(v) for v in value]
    return value


class ResponseMixin:
    def to_dict(self) -> Dict[str, Any]:
        return _serialize(asdict(self))


def _require_int(value, field_name: str, message: Optional[str] = None) -> int:
    if isinstance(value, bool):
        raise ValidationError(message or f"{field_name} must be an integer", field_name)
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(message or f"{field_name} must be an integer", field_name)


def _optional_text(value, field_name: str, max_length: Optional[int] = None):
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{field_name} must be a string", field_name)
    if max_length is not None and len(value) > max_length:
        raise ValidationError(
            f"{field_name} cannot exceed {max_length} characters", field_name
        )
    return value


def _optional_bool(value, field_name: str) -> Optional[bool]:
    if value is None:
        return None
    if not isinstance(value, bool):
        raise ValidationError(f"{field_name} must be true or false", field_name)
    return value


def _number(value, field_name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"{field_name} must be a number", field_name)
    return value


# ------------------- APPOINTMENTS -------------------
@dataclass
class AppointmentCreateRequest:
    """DTO for appointment creation requests."""

    customer_id: int
    appointment_date: Any
    time_slot: Any
    service_ids: List[int] = field(default_factory=list)
    combo_id: Optional[int] = None
    notes: Optional[str] = None

    @classmethod
    def from_payload(cls, data: dict, customer_id: int) -> "AppointmentCreateRequest":
        return cls(
            customer_id=customer_id,
            appointment_date=data.get("date"),
            time_slot=data.get("time_slot"),
            service_ids=data.get("services") or [],
            combo_id=data.get("combo_id"),
            notes=data.get("notes"),
        )

    def validate(self) -> None:
        """Validate the request data."""
        if not isinstance(self.service_ids, list):
            raise ValidationError("services must be a list of service IDs", "services")
        has_services = bool(self.service_ids)
        has_combo = self.combo_id is not None
        if has_services == has_combo:
            raise ValidationError("Please select services or a combo, not both")
        self.service_ids = [_require_int(sid, "services") for sid in self.service_ids]
        if has_combo:
            self.combo_id = _require_int(self.combo_id, "combo_id")
        if self.appointment_date is None or self.time_slot is None:
            raise ValidationError("Date and time slot are required")
        self.appointment_date = timekeeping.parse_calendar_date(
            self.appointment_date, "date"
        )
        validate_time_slot(self.time_slot)
        self.notes = _optional_text(self.notes, "notes")


@dataclass
class AppointmentStatusRequest:
    """DTO for privileged status updates."""

    status: Any

    def validate(self) -> None:
        validate_appointment_status(self.status)


@dataclass
class RescheduleRequest:
    """DTO for moving an appointment to another day/slot."""

    appointment_date: Any
    time_slot: Any

    @classmethod
    def from_payload(cls, data: dict) -> "RescheduleRequest":
        return cls(appointment_date=data.get("date"), time_slot=data.get("time_slot"))

    def validate(self) -> None:
        if self.appointment_date is None or self.time_slot is None:
            raise ValidationError("Date and time slot are required")
        self.appointment_date = timekeeping.parse_calendar_date(
            self.appointment_date, "date"
        )
        validate_time_slot(self.time_slot)


@dataclass
class AppointmentResponse(ResponseMixin):
    """DTO for appointment API responses."""

    id: int
    customer_id: int
    date: date
    time_slot: str
    status: str
    services: List[int]
    combo_id: Optional[int]
    notes: Optional[str]
    created_at: Optional[datetime]
    total_duration: Optional[int] = None

    @classmethod
    def from_domain(cls, appointment) -> "AppointmentResponse":
        """Create response from domain entity."""
        return cls(
            id=appointment.id,
            customer_id=appointment.customer_id,
            date=appointment.appointment_date,
            time_slot=appointment.time_slot,
            status=appointment.status,
            services=list(appointment.service_ids),
            combo_id=appointment.combo_id,
            notes=appointment.notes,
            created_at=appointment.created_at,
            total_duration=appointment.total_duration,
        )


# ------------------- ATTENDANCE -------------------
@dataclass
class AttendanceActionRequest:
    """DTO for check-in / check-out."""

    staff_id: Any
    action: Any
    time: Any = None
    date: Any = None
    clock: Optional[time] = None

    @classmethod
    def from_payload(cls, data: dict) -> "AttendanceActionRequest":
        return cls(
            staff_id=data.get("staff_id"),
            action=data.get("action"),
            time=data.get("time"),
            date=data.get("date"),
        )

    def validate(self) -> None:
        if self.staff_id is None or self.action is None:
            raise ValidationError("Staff ID and action are required")
        if self.action not in ATTENDANCE_ACTIONS:
            raise ValidationError(
                "Invalid action. Use 'checkIn' or 'checkOut'",
                "action",
                {"valid_actions": list(ATTENDANCE_ACTIONS)},
            )
        self.staff_id = _require_int(self.staff_id, "staff_id")
        if self.date is not None:
            self.date = timekeeping.parse_calendar_date(self.date, "date")
        if self.time is not None:
            self.clock = timekeeping.parse_clock(self.time, "time")


@dataclass
class AttendanceStatusRequest:
    """DTO for explicitly marking a day's status."""

    staff_id: Any
    date: Any
    status: Any
    notes: Optional[str] = None

    @classmethod
    def from_payload(cls, data: dict) -> "AttendanceStatusRequest":
        return cls(
            staff_id=data.get("staff_id"),
            date=data.get("date"),
            status=data.get("status"),
            notes=data.get("notes"),
        )

    def validate(self) -> None:
        if self.staff_id is None or self.date is None or self.status is None:
            raise ValidationError("Staff ID, date and status are required")
        self.staff_id = _require_int(self.staff_id, "staff_id")
        self.date = timekeeping.parse_calendar_date(self.date, "date")
        if self.status == "Holiday":
            raise ValidationError(
                "Holidays are declared through the holiday endpoint", "status"
            )
        if self.status not in ATTENDANCE_STATUSES:
            raise ValidationError(
                f"{self.status} is not a valid status",
                "status",
                {"valid_statuses": [s for s in ATTENDANCE_STATUSES if s != "Holiday"]},
            )
        self.notes = _optional_text(self.notes, "notes", 500)


@dataclass
class HolidayRequest:
    date: Any
    notes: Optional[str] = None

    def validate(self) -> None:
        if self.date is None:
            raise ValidationError("Date is required", "date")
        self.date = timekeeping.parse_calendar_date(self.date, "date")
        self.notes = _optional_text(self.notes, "notes", 500)


@dataclass
class AttendanceResponse(ResponseMixin):
    id: Optional[int]
    staff_id: int
    staff_name: Optional[str]
    date: date
    check_in: Optional[datetime]
    check_out: Optional[datetime]
    status: str
    is_holiday: bool
    notes: Optional[str]
    working_hours: float

    @classmethod
    def from_domain(cls, record, staff_name: Optional[str] = None) -> "AttendanceResponse":
        return cls(
            id=record.id,
            staff_id=record.staff_id,
            staff_name=staff_name,
            date=record.day,
            check_in=record.check_in,
            check_out=record.check_out,
            status=record.status,
            is_holiday=record.is_holiday,
            notes=record.notes,
            working_hours=record.working_hours,
        )


@dataclass
class AttendanceActionResponse(ResponseMixin):
    """Result of a check-in / check-out."""

    staff: Dict[str, Any]
    date: date
    action: str
    time: Optional[str]
    status: str
    working_hours: float


@dataclass
class HolidayResult(ResponseMixin):
    date: date
    staff_count: int
    upserted: int
    modified: int
    failed: int


@dataclass
class AttendanceSummaryResponse(ResponseMixin):
    staff: Dict[str, Any]
    month: int
    year: int
    total_days: int
    present: int = 0
    absent: int = 0
    late: int = 0
    half_day: int = 0
    holidays: int = 0
    working_hours: float = 0.0


@dataclass
class TodayStatusResponse(ResponseMixin):
    date: date
    present: List[Dict[str, Any]] = field(default_factory=list)
    holiday: List[Dict[str, Any]] = field(default_factory=list)
    absent: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        payload = super().to_dict()
        payload["counts"] = {
            "total": len(self.present) + len(self.holiday) + len(self.absent),
            "present": len(self.present),
            "holiday": len(self.holiday),
            "absent": len(self.absent),
        }
        return payload


# ------------------- STAFF -------------------
STAFF_REQUIRED_FIELDS = ("name", "phone", "national_id", "dob", "gender", "role")
STAFF_EDITABLE_FIELDS = STAFF_REQUIRED_FIELDS + ("address", "salary", "is_active")
STAFF_IMMUTABLE_FIELDS = ("id", "joining_date")


@dataclass
class StaffRequest:
    """Create (all required fields) or partial update of a staff member."""

    changes: Dict[str, Any]
    partial: bool = False

    @classmethod
    def from_payload(cls, data: dict, partial: bool = False) -> "StaffRequest":
        return cls(changes=dict(data), partial=partial)

    def validate(self) -> None:
        if self.partial:
            for key in STAFF_IMMUTABLE_FIELDS:
                if key in self.changes:
                    raise ValidationError(f"{key} cannot be modified", key)
        else:
            missing = [f for f in STAFF_REQUIRED_FIELDS if not self.changes.get(f)]
            if missing:
                raise ValidationError(
                    "Please provide all required fields", details={"missing": missing}
                )
        cleaned = {k: v for k, v in self.changes.items() if k in STAFF_EDITABLE_FIELDS}
        if "dob" in cleaned:
            cleaned["dob"] = timekeeping.parse_calendar_date(cleaned["dob"], "dob")
        if cleaned.get("salary") is not None:
            cleaned["salary"] = _number(cleaned["salary"], "salary")
        if "is_active" in cleaned:
            cleaned["is_active"] = _optional_bool(cleaned["is_active"], "is_active")
            if cleaned["is_active"] is None:
                cleaned.pop("is_active")
        for key in ("name", "phone", "national_id", "gender", "role", "address"):
            if key in cleaned:
                _optional_text(cleaned[key], key)
        self.changes = cleaned


@dataclass
class StaffResponse(ResponseMixin):
    id: int
    name: str
    phone: str
    national_id: str
    dob: date
    age: int
    gender: str
    role: str
    address: Optional[str]
    salary: Optional[float]
    is_active: bool
    joining_date: Optional[datetime]
    created_at: Optional[datetime]
    updated_at: Optional[datetime]

    @classmethod
    def from_domain(cls, staff) -> "StaffResponse":
        return cls(
            id=staff.id,
            name=staff.name,
            phone=staff.phone,
            national_id=staff.national_id,
            dob=staff.dob,
            age=staff.age,
            gender=staff.gender,
            role=staff.role,
            address=staff.address,
            salary=staff.salary,
            is_active=staff.is_active,
            joining_date=staff.joining_date,
            created_at=staff.created_at,
            updated_at=staff.updated_at,
        )


# ------------------- CATALOG -------------------
SERVICE_FIELDS = ("name", "description", "duration", "price", "category", "gender", "is_active")
COMBO_FIELDS = ("name", "description", "gender", "discount", "is_active", "services")


@dataclass
class ServiceRequest:
    changes: Dict[str, Any]
    partial: bool = False

    @classmethod
    def from_payload(cls, data: dict, partial: bool = False) -> "ServiceRequest":
        return cls(changes=dict(data), partial=partial)

    def validate(self) -> None:
        cleaned = {k: v for k, v in self.changes.items() if k in SERVICE_FIELDS}
        if not self.partial:
            missing = [f for f in ("name", "duration", "price") if cleaned.get(f) is None]
            if missing:
                raise ValidationError(
                    "Please provide all required fields", details={"missing": missing}
                )
        if "duration" in cleaned:
            cleaned["duration"] = _require_int(
                cleaned["duration"], "duration", "Duration must be a whole number of minutes"
            )
        if "price" in cleaned:
            cleaned["price"] = _number(cleaned["price"], "price")
        if "is_active" in cleaned:
            cleaned["is_active"] = _optional_bool(cleaned["is_active"], "is_active")
        for key in ("name", "description", "category", "gender"):
            if key in cleaned:
                _optional_text(cleaned[key], key)
        # description/category may be cleared; everything else keeps its value
        self.changes = {
            k: v
            for k, v in cleaned.items()
            if v is not None or k in ("description", "category")
        }


@dataclass
class ComboRequest:
    """Combo create/update. ``services`` is a list of ids or {service, sequence}."""

    changes: Dict[str, Any]
    partial: bool = False
    items: Optional[List[Dict[str, int]]] = None

    @classmethod
    def from_payload(cls, data: dict, partial: bool = False) -> "ComboRequest":
        return cls(changes=dict(data), partial=partial)

    def validate(self) -> None:
        cleaned = {k: v for k, v in self.changes.items() if k in COMBO_FIELDS}
        if "discount" in cleaned:
            cleaned["discount"] = validate_discount(cleaned["discount"])
        if not self.partial:
            if not cleaned.get("name"):
                raise ValidationError("Name is required", "name")
            if not cleaned.get("services"):
                raise ValidationError("A combo needs at least one service", "services")
        if "services" in cleaned:
            self.items = self._parse_items(cleaned.pop("services"))
        if "is_active" in cleaned:
            cleaned["is_active"] = _optional_bool(cleaned["is_active"], "is_active")
        for key in ("name", "description", "gender"):
            if key in cleaned:
                _optional_text(cleaned[key], key)
        self.changes = {
            k: v for k, v in cleaned.items() if v is not None or k == "description"
        }

    @staticmethod
    def _parse_items(raw) -> List[Dict[str, int]]:
        if not isinstance(raw, list) or not raw:
            raise ValidationError("A combo needs at least one service", "services")
        items = []
        for position, entry in enumerate(raw):
            if isinstance(entry, dict):
                service_id = _require_int(entry.get("service"), "services")
                sequence = entry.get("sequence")
                sequence = position + 1 if sequence is None else _require_int(sequence, "sequence")
            else:
                service_id = _require_int(entry, "services")
                sequence = position + 1
            items.append({"service_id": service_id, "sequence": sequence})
        return items


@dataclass
class ServiceResponse(ResponseMixin):
    id: int
    name: str
    description: Optional[str]
    duration: int
    price: float
    category: Optional[str]
    gender: str
    is_active: bool
    created_at: Optional[datetime]

    @classmethod
    def from_domain(cls, service) -> "ServiceResponse":
        return cls(**{f.name: getattr(service, f.name) for f in fields(cls)})


@dataclass
class ComboResponse(ResponseMixin):
    id: int
    name: str
    description: Optional[str]
    gender: str
    discount: float
    services: List[Dict[str, int]]
    total_duration: int
    total_price: float
    is_active: bool
    created_at: Optional[datetime]

    @classmethod
    def from_domain(cls, combo) -> "ComboResponse":
        return cls(
            id=combo.id,
            name=combo.name,
            description=combo.description,
            gender=combo.gender,
            discount=combo.discount,
            services=[
                {"service": item.service_id, "sequence": item.sequence}
                for item in sorted(combo.items, key=lambda i: i.sequence)
            ],
            total_duration=combo.total_duration,
            total_price=combo.total_price,
            is_active=combo.is_active,
            created_at=combo.created_at,
        )


def to_dict_list(items) -> List[Dict[str, Any]]:
    return [item.to_dict() if is_dataclass(item) else item for item in items]
