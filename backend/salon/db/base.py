from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Table,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.types import TypeDecorator

from salon.core import timekeeping

from .session import Base


class UTCDateTime(TypeDecorator):
    """Stores instants as UTC and always hands back aware UTC datetimes.

    SQLite has no timezone support, so values are written naive-in-UTC there
    and re-tagged on the way out.
    """

    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        value = timekeeping.to_utc(value)
        if dialect.name == "sqlite":
            return value.replace(tzinfo=None)
        return value

    def process_result_value(self, value, dialect):
        return timekeeping.to_utc(value)


# Only these statuses hold a slot; the partial unique index below enforces
# one holder per (date, slot) at the storage layer.
ACTIVE_SLOT_PREDICATE = text("status IN ('pending', 'confirmed')")


appointment_services = Table(
    "appointment_services",
    Base.metadata,
    Column(
        "appointment_id",
        Integer,
        ForeignKey("appointments.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column("service_id", Integer, ForeignKey("services.id"), primary_key=True),
)


# ------------------- CATALOG -------------------
class ServiceModel(Base):
    """Bookable service (haircut, facial, ...)"""

    __tablename__ = "services"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    duration: Mapped[int] = mapped_column(Integer, nullable=False)  # minutes
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    category: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    gender: Mapped[str] = mapped_column(String(10), nullable=False, default="unisex")
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[Optional[datetime]] = mapped_column(
        UTCDateTime(timezone=True), default=timekeeping.now
    )

    __table_args__ = (Index("ix_services_category_active", "category", "is_active"),)

    def __repr__(self):
        return f"<Service(id={self.id}, name='{self.name}', active={self.is_active})>"


class ComboModel(Base):
    """Combo with a denormalized duration/price snapshot"""

    __tablename__ = "combos"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    gender: Mapped[str] = mapped_column(String(10), nullable=False, default="unisex")
    discount: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    total_duration: Mapped[int] = mapped_column(Integer, nullable=False)
    total_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[Optional[datetime]] = mapped_column(
        UTCDateTime(timezone=True), default=timekeeping.now
    )

    items: Mapped[List["ComboServiceModel"]] = relationship(
        back_populates="combo",
        cascade="all, delete-orphan",
        order_by="ComboServiceModel.sequence",
    )

    def __repr__(self):
        return f"<Combo(id={self.id}, name='{self.name}', total_price={self.total_price})>"


class ComboServiceModel(Base):
    """Ordered membership of a service in a combo"""

    __tablename__ = "combo_services"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    combo_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("combos.id", ondelete="CASCADE"), nullable=False, index=True
    )
    service_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("services.id"), nullable=False
    )
    sequence: Mapped[int] = mapped_column(Integer, nullable=False)

    combo: Mapped["ComboModel"] = relationship(back_populates="items")


# ------------------- APPOINTMENTS -------------------
class AppointmentModel(Base):
    """Appointment occupying one slot on one day"""

    __tablename__ = "appointments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    customer_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    combo_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("combos.id"), nullable=True
    )
    appointment_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    time_slot: Mapped[str] = mapped_column(String(10), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending")
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[Optional[datetime]] = mapped_column(
        UTCDateTime(timezone=True), default=timekeeping.now
    )

    services: Mapped[List["ServiceModel"]] = relationship(
        secondary=appointment_services, order_by="ServiceModel.id"
    )
    combo: Mapped[Optional["ComboModel"]] = relationship()

    __table_args__ = (
        Index(
            "uq_appointments_active_slot",
            "appointment_date",
            "time_slot",
            unique=True,
            sqlite_where=ACTIVE_SLOT_PREDICATE,
            postgresql_where=ACTIVE_SLOT_PREDICATE,
        ),
        Index("ix_appointments_status", "status"),
    )

    def __repr__(self):
        return (
            f"<Appointment(id={self.id}, date={self.appointment_date}, "
            f"slot='{self.time_slot}', status='{self.status}')>"
        )


# ------------------- STAFF & ATTENDANCE -------------------
class StaffModel(Base):
    """Staff member"""

    __tablename__ = "staff"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    phone: Mapped[str] = mapped_column(String(10), nullable=False, unique=True)
    national_id: Mapped[str] = mapped_column(String(12), nullable=False, unique=True)
    dob: Mapped[date] = mapped_column(Date, nullable=False)
    gender: Mapped[str] = mapped_column(String(10), nullable=False)
    address: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    joining_date: Mapped[datetime] = mapped_column(
        UTCDateTime(timezone=True), nullable=False, default=timekeeping.now
    )
    salary: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2), nullable=True)
    role: Mapped[str] = mapped_column(String(20), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[Optional[datetime]] = mapped_column(
        UTCDateTime(timezone=True), default=timekeeping.now
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        UTCDateTime(timezone=True), default=timekeeping.now, onupdate=timekeeping.now
    )

    attendance: Mapped[List["AttendanceModel"]] = relationship(
        back_populates="staff", cascade="all, delete-orphan", passive_deletes=True
    )

    __table_args__ = (Index("ix_staff_role_active", "role", "is_active"),)

    def __repr__(self):
        return f"<Staff(id={self.id}, name='{self.name}', role='{self.role}')>"


class AttendanceModel(Base):
    """One attendance record per staff member per canonical day"""

    __tablename__ = "attendance"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    staff_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("staff.id", ondelete="CASCADE"), nullable=False, index=True
    )
    day: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    check_in: Mapped[Optional[datetime]] = mapped_column(
        UTCDateTime(timezone=True), nullable=True
    )
    check_out: Mapped[Optional[datetime]] = mapped_column(
        UTCDateTime(timezone=True), nullable=True
    )
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="Present")
    is_holiday: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    notes: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    created_at: Mapped[Optional[datetime]] = mapped_column(
        UTCDateTime(timezone=True), default=timekeeping.now
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        UTCDateTime(timezone=True), default=timekeeping.now, onupdate=timekeeping.now
    )

    staff: Mapped["StaffModel"] = relationship(back_populates="attendance")

    __table_args__ = (
        UniqueConstraint("staff_id", "day", name="uq_attendance_staff_day"),
        Index("ix_attendance_status", "status"),
        Index("ix_attendance_is_holiday", "is_holiday"),
    )

    def __repr__(self):
        return (
            f"<Attendance(staff_id={self.staff_id}, day={self.day}, "
            f"status='{self.status}')>"
        )
