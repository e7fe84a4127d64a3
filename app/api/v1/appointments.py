
# ============================================================================
# FILE: app/api/v1/appointments.py
# Session authenticated endpoints - thin HTTP layer
# IMPORTANT: Specific routes MUST come before parameterized routes
# ============================================================================
from fastapi import APIRouter, Depends, Query, Path, status as http_status
from sqlalchemy.orm import Session
from typing import Optional
from uuid import UUID

from app.config.database import get_db
from app.models.appointment import AppointmentStatus
from app.models.user import User
from app.api.dependencies import get_current_user, require_client
from app.schemas.appointment import (
    AppointmentCreateRequest,
    AppointmentRescheduleRequest,
    AppointmentResponse,
    AppointmentListResponse,
)
from app.services.appointment.appointment_service import AppointmentService

router = APIRouter(prefix="/appointments", tags=["appointments"])


@router.post("", response_model=AppointmentResponse, status_code=http_status.HTTP_201_CREATED)
def create_appointment(
        payload: AppointmentCreateRequest,
        current_user: User = Depends(require_client),
        db: Session = Depends(get_db)
):
    """
    Book an appointment with a business.
    Requires a CLIENT account. Returns 409 if the time is taken or
    outside the business's working hours.
    """
    return AppointmentService.create_appointment(
        db=db,
        client_id=current_user.id,
        business_id=payload.business_id,
        start_at=payload.start_at,
        duration_minutes=payload.duration_minutes
    )


@router.get("/me", response_model=AppointmentListResponse)
def list_my_appointments(
        status: Optional[AppointmentStatus] = Query(None, description="Filter by status (BOOKED, CANCELED)"),
        skip: int = Query(0, ge=0, description="Number of records to skip"),
        limit: int = Query(100, ge=1, le=500, description="Number of records to return"),
        current_user: User = Depends(get_current_user),
        db: Session = Depends(get_db)
):
    """
    Your appointments: as client for CLIENT accounts, as business for
    BUSINESS accounts, everything for ADMIN.
    """
    return AppointmentService.list_appointments_for_user(
        db=db,
        user_id=current_user.id,
        role=current_user.role,
        status=status,
        skip=skip,
        limit=limit
    )


@router.get("/{appointment_id}", response_model=AppointmentResponse)
def get_appointment(
        appointment_id: UUID = Path(..., description="The appointment ID"),
        current_user: User = Depends(get_current_user),
        db: Session = Depends(get_db)
):
    """
    Get a single appointment you take part in.
    Requires authenticated session.
    """
    return AppointmentService.get_appointment(
        db=db,
        appointment_id=appointment_id,
        acting_user_id=current_user.id,
        acting_role=current_user.role
    )


@router.patch("/{appointment_id}", response_model=AppointmentResponse)
def reschedule_appointment(
        payload: AppointmentRescheduleRequest,
        appointment_id: UUID = Path(..., description="The appointment ID"),
        current_user: User = Depends(get_current_user),
        db: Session = Depends(get_db)
):
    """
    Move one of your BOOKED appointments to a new time and duration.
    Only the client who booked it may reschedule.
    """
    return AppointmentService.reschedule_appointment(
        db=db,
        appointment_id=appointment_id,
        acting_client_id=current_user.id,
        start_at=payload.start_at,
        duration_minutes=payload.duration_minutes
    )


@router.post("/{appointment_id}/cancel", response_model=AppointmentResponse)
def cancel_appointment(
        appointment_id: UUID = Path(..., description="The appointment ID"),
        current_user: User = Depends(get_current_user),
        db: Session = Depends(get_db)
):
    """
    Cancel an appointment as its client or its business.
    Cancelling twice is not an error.
    """
    return AppointmentService.cancel_appointment(
        db=db,
        appointment_id=appointment_id,
        acting_user_id=current_user.id,
        acting_role=current_user.role
    )
