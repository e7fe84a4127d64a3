"""
Pydantic schemas for weekly availability and slot listing
"""
from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime, date
from uuid import UUID


# ============================================================================
# Request Schemas (for incoming data)
# ============================================================================

class BreakIn(BaseModel):
    """A break inside a weekday, as HH:MM strings"""
    start: str = Field(..., description="HH:MM, local time")
    end: str = Field(..., description="HH:MM, local time")


class AvailabilityDayIn(BaseModel):
    """
    One weekday entry. Disabled days are dropped from the schedule;
    enabled days need start and end.
    """
    day_of_week: int = Field(..., ge=0, le=6, description="0=Sunday ... 6=Saturday")
    enabled: bool
    start: Optional[str] = Field(None, description="HH:MM, local time")
    end: Optional[str] = Field(None, description="HH:MM, local time")
    breaks: List[BreakIn] = Field(default_factory=list)


class AvailabilityReplaceRequest(BaseModel):
    """Full replacement of a business's weekly schedule"""
    slot_step_minutes: int = Field(15, description="Clamped to 5..120")
    days: List[AvailabilityDayIn] = Field(..., min_length=1)


# ============================================================================
# Response Schemas (for outgoing data)
# ============================================================================

class BreakOut(BaseModel):
    start: str
    end: str
    start_minute: int
    end_minute: int


class AvailabilityDayOut(BaseModel):
    day_of_week: int
    start: str
    end: str
    start_minute: int
    end_minute: int
    breaks: List[BreakOut]


class WeeklyScheduleResponse(BaseModel):
    business_id: UUID
    timezone_offset_minutes: int
    slot_step_minutes: int
    days: List[AvailabilityDayOut]


class SlotsResponse(BaseModel):
    business_id: UUID
    duration_minutes: int
    slot_step_minutes: int
    range_start: datetime
    range_end: datetime
    local_date: Optional[date] = None
    slots: List[datetime]
