"""
Schemas package - Data Transfer Objects and validation.

This package contains DTOs that define the API contracts: request DTOs
validate and normalize raw payloads, response DTOs render domain entities.
"""

from .dtos import (
    AppointmentCreateRequest,
    AppointmentResponse,
    AppointmentStatusRequest,
    AttendanceActionRequest,
    AttendanceActionResponse,
    AttendanceResponse,
    AttendanceStatusRequest,
    AttendanceSummaryResponse,
    ComboRequest,
    ComboResponse,
    HolidayRequest,
    HolidayResult,
    RescheduleRequest,
    ServiceRequest,
    ServiceResponse,
    StaffRequest,
    StaffResponse,
    TodayStatusResponse,
)

__all__ = [
    "AppointmentCreateRequest",
    "AppointmentResponse",
    "AppointmentStatusRequest",
    "AttendanceActionRequest",
    "AttendanceActionResponse",
    "AttendanceResponse",
    "AttendanceStatusRequest",
    "AttendanceSummaryResponse",
    "ComboRequest",
    "ComboResponse",
    "HolidayRequest",
    "HolidayResult",
    "RescheduleRequest",
    "ServiceRequest",
    "ServiceResponse",
    "StaffRequest",
    "StaffResponse",
    "TodayStatusResponse",
]
