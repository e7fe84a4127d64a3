"""
Pydantic schemas for appointments
"""
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, List
from datetime import datetime
from uuid import UUID

from app.models.appointment import AppointmentStatus


class AppointmentCreateRequest(BaseModel):
    """Client booking request. Any client-side timezone offset is ignored."""
    business_id: UUID
    start_at: datetime = Field(..., description="ISO-8601 instant; naive values are read as UTC")
    duration_minutes: int


class AppointmentRescheduleRequest(BaseModel):
    """Reschedule needs both the new start and the new duration."""
    start_at: datetime
    duration_minutes: int


class UserSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    full_name: Optional[str] = None
    email: str


class AppointmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    client_id: UUID
    business_id: UUID
    start_at: datetime
    end_at: datetime
    duration_minutes: int
    status: AppointmentStatus
    created_at: datetime
    updated_at: datetime
    client: Optional[UserSummary] = None
    business: Optional[UserSummary] = None


class AppointmentListResponse(BaseModel):
    total: int
    appointments: List[AppointmentResponse]
