# ============================================================================
# FILE: app/api/v1/availability.py
# Weekly schedule management for the signed-in business - thin HTTP layer
# ============================================================================
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.config.database import get_db
from app.models.user import User
from app.api.dependencies import require_business
from app.schemas.availability import AvailabilityReplaceRequest, WeeklyScheduleResponse
from app.services.availability.availability_service import AvailabilityService
from app.services.user.user_service import UserService

router = APIRouter(prefix="/availability", tags=["availability"])


@router.get("/me", response_model=WeeklyScheduleResponse)
def get_my_availability(
        current_user: User = Depends(require_business),
        db: Session = Depends(get_db)
):
    """
    Get your weekly working hours and breaks.
    Requires a BUSINESS account.
    """
    schedule = AvailabilityService.get_weekly_schedule(db, current_user.id)
    tz_offset = UserService.get_timezone_offset_minutes(db, current_user.id)
    return schedule.to_dict(tz_offset)


@router.put("/me", response_model=WeeklyScheduleResponse)
def replace_my_availability(
        payload: AvailabilityReplaceRequest,
        current_user: User = Depends(require_business),
        db: Session = Depends(get_db)
):
    """
    Replace your whole weekly schedule.
    Days that are disabled or missing become closed. Breaks outside a
    day's working hours are dropped.
    Requires a BUSINESS account.
    """
    schedule = AvailabilityService.replace_weekly_schedule(
        db=db,
        business_id=current_user.id,
        days=payload.days,
        slot_step_minutes=payload.slot_step_minutes
    )
    tz_offset = UserService.get_timezone_offset_minutes(db, current_user.id)
    return schedule.to_dict(tz_offset)
