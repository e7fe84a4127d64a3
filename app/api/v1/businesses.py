# ============================================================================
# FILE: app/api/v1/businesses.py
# Read-only schedule and free slots of a business - thin HTTP layer
# IMPORTANT: requires auth so scheduling data is not public
# ============================================================================
from fastapi import APIRouter, Depends, HTTPException, Query, Path
from sqlalchemy.orm import Session
from datetime import datetime, date
from typing import Optional
from uuid import UUID

from app.config.database import get_db
from app.models.user import User
from app.api.dependencies import get_current_user
from app.schemas.availability import WeeklyScheduleResponse, SlotsResponse
from app.services.availability.availability_service import AvailabilityService, clamp_slot_step
from app.services.availability.slot_service import SlotService
from app.services.user.user_service import UserService

router = APIRouter(prefix="/businesses", tags=["businesses"])


def _get_business_or_404(db: Session, business_id: UUID) -> User:
    business = UserService.get_business(db, business_id)
    if not business:
        raise HTTPException(status_code=404, detail="Business not found")
    return business


@router.get("/{business_id}/availability", response_model=WeeklyScheduleResponse)
def get_business_availability(
        business_id: UUID = Path(..., description="The business user ID"),
        current_user: User = Depends(get_current_user),
        db: Session = Depends(get_db)
):
    """
    Get the weekly schedule of a business.
    Requires authenticated session.
    """
    business = _get_business_or_404(db, business_id)
    schedule = AvailabilityService.get_weekly_schedule(db, business.id)
    return schedule.to_dict(UserService.get_timezone_offset_minutes(db, business.id))


@router.get("/{business_id}/slots", response_model=SlotsResponse)
def list_free_slots(
        business_id: UUID = Path(..., description="The business user ID"),
        duration_minutes: int = Query(..., description="Appointment length, 15..240"),
        range_from: Optional[datetime] = Query(None, alias="from", description="Range start (ISO-8601)"),
        range_to: Optional[datetime] = Query(None, alias="to", description="Range end, exclusive (ISO-8601)"),
        local_date: Optional[date] = Query(None, alias="date", description="Business-local day (YYYY-MM-DD)"),
        slot_step_minutes: Optional[int] = Query(None, description="Clamped to 5..120"),
        current_user: User = Depends(get_current_user),
        db: Session = Depends(get_db)
):
    """
    List bookable start times for a business, either for a from/to range
    or for one calendar day in the business's timezone.
    Requires authenticated session.
    """
    business = _get_business_or_404(db, business_id)

    if local_date is not None:
        range_start, range_end = SlotService.local_day_range(db, business.id, local_date)
    elif range_from is not None and range_to is not None:
        range_start, range_end = range_from, range_to
    else:
        raise HTTPException(
            status_code=400,
            detail="Provide either date or both from and to"
        )

    slots = SlotService.generate_free_slots(
        db=db,
        business_id=business.id,
        range_start=range_start,
        range_end=range_end,
        duration_minutes=duration_minutes,
        slot_step_minutes=slot_step_minutes
    )

    return {
        "business_id": business.id,
        "duration_minutes": duration_minutes,
        "slot_step_minutes": clamp_slot_step(slot_step_minutes),
        "range_start": range_start,
        "range_end": range_end,
        "local_date": local_date,
        "slots": slots,
    }
