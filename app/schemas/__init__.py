"""
Pydantic schemas for API request/response validation
"""

from app.schemas.availability import (
    BreakIn,
    AvailabilityDayIn,
    AvailabilityReplaceRequest,
    BreakOut,
    AvailabilityDayOut,
    WeeklyScheduleResponse,
    SlotsResponse,
)
from app.schemas.appointment import (
    AppointmentCreateRequest,
    AppointmentRescheduleRequest,
    UserSummary,
    AppointmentResponse,
    AppointmentListResponse,
)

__all__ = [
    # Availability
    "BreakIn",
    "AvailabilityDayIn",
    "AvailabilityReplaceRequest",
    "BreakOut",
    "AvailabilityDayOut",
    "WeeklyScheduleResponse",
    "SlotsResponse",
    # Appointments
    "AppointmentCreateRequest",
    "AppointmentRescheduleRequest",
    "UserSummary",
    "AppointmentResponse",
    "AppointmentListResponse",
]
