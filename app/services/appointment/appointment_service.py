# ============================================================================
# app/services/appointment/appointment_service.py
# ============================================================================
"""
Booking transaction engine: create, reschedule, cancel and list appointments.

Every write runs the conflict scan and the insert/update in the same
transaction, after locking the business row. PostgreSQL additionally carries
an exclusion constraint on overlapping BOOKED intervals (see alembic), which
surfaces here as IntegrityError and is reported as a conflict.
"""
from datetime import datetime
from typing import Optional, Dict, Any, Union
from uuid import UUID
import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.exceptions import (
    SchedulingError,
    InvalidRequestError,
    PermissionDeniedError,
    NotFoundError,
    ConflictError,
    StorageError,
)
from app.models.appointment import Appointment, AppointmentStatus
from app.models.user import UserRole
from app.services.availability.availability_service import AvailabilityService
from app.services.availability.slot_service import MAX_DURATION_MINUTES, validate_duration
from app.services.user.user_service import UserService
from app.utils.intervals import overlaps, add_minutes, ensure_utc, utcnow

logger = logging.getLogger(__name__)


def _coerce_role(role: Union[UserRole, str]) -> UserRole:
    try:
        return UserRole(role)
    except ValueError:
        raise PermissionDeniedError(f"Unknown role: {role}")


class AppointmentService:
    """Handles appointment operations"""

    # ------------------------------------------------------------------
    # Validation helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _validate_start(start_at: datetime, now: Optional[datetime] = None) -> datetime:
        if not isinstance(start_at, datetime):
            raise InvalidRequestError("start_at is invalid")
        start_at = ensure_utc(start_at)
        if start_at <= ensure_utc(now or utcnow()):
            raise InvalidRequestError("start_at must be in the future")
        return start_at

    @staticmethod
    def _ensure_within_availability(
            db: Session,
            business_id: UUID,
            start_at: datetime,
            duration_minutes: int
    ) -> None:
        if not AvailabilityService.is_instant_within_availability(
                db, business_id, start_at, duration_minutes
        ):
            raise ConflictError(
                "Time slot is outside business availability",
                ConflictError.OUTSIDE_AVAILABILITY
            )

    @staticmethod
    def find_conflict(
            db: Session,
            business_id: UUID,
            start_at: datetime,
            duration_minutes: int,
            exclude_appointment_id: Optional[UUID] = None
    ) -> Optional[Appointment]:
        """
        First BOOKED appointment of the business overlapping
        [start_at, start_at + duration), or None.

        Only appointments starting inside (start - MAX_DURATION, end) can
        overlap, so the query is bounded on both sides.
        """
        end_at = add_minutes(start_at, duration_minutes)

        query = db.query(Appointment).filter(
            Appointment.business_id == business_id,
            Appointment.status == AppointmentStatus.BOOKED,
            Appointment.start_at > add_minutes(start_at, -MAX_DURATION_MINUTES),
            Appointment.start_at < end_at
        )
        if exclude_appointment_id is not None:
            query = query.filter(Appointment.id != exclude_appointment_id)

        for candidate in query.order_by(Appointment.start_at.asc()).all():
            candidate_start = ensure_utc(candidate.start_at)
            candidate_end = add_minutes(candidate_start, candidate.duration_minutes)
            if overlaps(candidate_start, candidate_end, start_at, end_at):
                return candidate
        return None

    @staticmethod
    def _run_in_transaction(db: Session, operation: str, work):
        """
        Run work() and commit. Domain errors and storage failures roll the
        whole transaction back; the caller decides whether to retry.
        """
        try:
            result = work()
            db.commit()
        except SchedulingError:
            db.rollback()
            raise
        except IntegrityError as e:
            db.rollback()
            logger.warning(f"{operation}: integrity violation treated as booking conflict: {e.orig}")
            raise ConflictError(
                "Time slot is already booked",
                ConflictError.ALREADY_BOOKED
            ) from e
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"{operation} failed: {e}")
            raise StorageError(f"{operation} failed") from e

        db.refresh(result)
        return result

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @staticmethod
    def create_appointment(
            db: Session,
            client_id: UUID,
            business_id: UUID,
            start_at: datetime,
            duration_minutes: int,
            now: Optional[datetime] = None
    ) -> Appointment:
        """
        Book [start_at, start_at + duration) for a client with a business.

        Raises:
            InvalidRequestError: start not in the future, bad duration
            NotFoundError: business_id is not an active BUSINESS
            PermissionDeniedError: client_id is not a CLIENT
            ConflictError: outside availability or overlapping a booking
            StorageError: transaction failure
        """
        def _create() -> Appointment:
            start_utc = AppointmentService._validate_start(start_at, now)
            duration = validate_duration(duration_minutes)

            client = UserService.get_user_by_id(db, client_id)
            if client is None or not client.is_client():
                raise PermissionDeniedError("Only CLIENT users can book appointments")

            # Locks the business row for the rest of the transaction
            business = UserService.get_business(db, business_id, for_update=True)
            if business is None:
                raise NotFoundError("Business not found")

            AppointmentService._ensure_within_availability(db, business_id, start_utc, duration)

            conflict = AppointmentService.find_conflict(db, business_id, start_utc, duration)
            if conflict is not None:
                logger.info(
                    f"Booking conflict for business {business_id} at {start_utc.isoformat()} "
                    f"with appointment {conflict.id}"
                )
                raise ConflictError(
                    "Time slot is already booked",
                    ConflictError.ALREADY_BOOKED
                )

            stamp = utcnow()
            appointment = Appointment(
                client_id=client_id,
                business_id=business_id,
                start_at=start_utc,
                end_at=add_minutes(start_utc, duration),
                duration_minutes=duration,
                status=AppointmentStatus.BOOKED,
                created_at=stamp,
                updated_at=stamp,
            )
            db.add(appointment)
            db.flush()
            return appointment

        appointment = AppointmentService._run_in_transaction(db, "Create appointment", _create)
        logger.info(
            f"Appointment {appointment.id} booked for business {business_id} "
            f"at {appointment.start_at.isoformat()} ({appointment.duration_minutes} min)"
        )
        return appointment

    @staticmethod
    def reschedule_appointment(
            db: Session,
            appointment_id: UUID,
            acting_client_id: UUID,
            start_at: datetime,
            duration_minutes: int,
            now: Optional[datetime] = None
    ) -> Appointment:
        """
        Move a BOOKED appointment owned by the acting client.

        Raises:
            NotFoundError, PermissionDeniedError, ConflictError,
            InvalidRequestError, StorageError
        """
        def _reschedule() -> Appointment:
            appointment = db.query(Appointment).filter(Appointment.id == appointment_id).first()
            if appointment is None:
                raise NotFoundError("Appointment not found")

            if appointment.client_id != acting_client_id:
                raise PermissionDeniedError("You can reschedule only your own appointments")

            if not appointment.is_booked():
                raise ConflictError(
                    "Only BOOKED appointments can be rescheduled",
                    ConflictError.INVALID_STATE
                )

            start_utc = AppointmentService._validate_start(start_at, now)
            duration = validate_duration(duration_minutes)

            business = UserService.get_business(db, appointment.business_id, for_update=True)
            if business is None:
                raise NotFoundError("Business not found")
            # A concurrent cancel may have committed while we waited for the lock
            db.refresh(appointment)
            if not appointment.is_booked():
                raise ConflictError(
                    "Only BOOKED appointments can be rescheduled",
                    ConflictError.INVALID_STATE
                )

            AppointmentService._ensure_within_availability(
                db, appointment.business_id, start_utc, duration
            )

            conflict = AppointmentService.find_conflict(
                db, appointment.business_id, start_utc, duration,
                exclude_appointment_id=appointment.id
            )
            if conflict is not None:
                raise ConflictError(
                    "Time slot is already booked",
                    ConflictError.ALREADY_BOOKED
                )

            appointment.start_at = start_utc
            appointment.end_at = add_minutes(start_utc, duration)
            appointment.duration_minutes = duration
            appointment.updated_at = utcnow()
            db.flush()
            return appointment

        appointment = AppointmentService._run_in_transaction(db, "Reschedule appointment", _reschedule)
        logger.info(
            f"Appointment {appointment.id} rescheduled to {appointment.start_at.isoformat()} "
            f"({appointment.duration_minutes} min)"
        )
        return appointment

    @staticmethod
    def cancel_appointment(
            db: Session,
            appointment_id: UUID,
            acting_user_id: UUID,
            acting_role: Union[UserRole, str]
    ) -> Appointment:
        """
        Cancel an appointment. A CLIENT may cancel their own bookings, a
        BUSINESS the bookings made with it. Cancelling a CANCELED
        appointment returns it unchanged.
        """
        role = _coerce_role(acting_role)

        def _cancel() -> Appointment:
            appointment = db.query(Appointment).filter(
                Appointment.id == appointment_id
            ).with_for_update().first()
            if appointment is None:
                raise NotFoundError("Appointment not found")

            allowed = (
                (role == UserRole.CLIENT and appointment.client_id == acting_user_id)
                or (role == UserRole.BUSINESS and appointment.business_id == acting_user_id)
            )
            if not allowed:
                raise PermissionDeniedError("You can cancel only your own appointments")

            if appointment.is_booked():
                appointment.status = AppointmentStatus.CANCELED
                appointment.updated_at = utcnow()
                db.flush()
                logger.info(f"Appointment {appointment.id} canceled by {role.value} {acting_user_id}")
            return appointment

        return AppointmentService._run_in_transaction(db, "Cancel appointment", _cancel)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @staticmethod
    def get_appointment(
            db: Session,
            appointment_id: UUID,
            acting_user_id: UUID,
            acting_role: Union[UserRole, str]
    ) -> Appointment:
        """Single appointment, visible to its client, its business, or an ADMIN."""
        role = _coerce_role(acting_role)
        appointment = db.query(Appointment).filter(Appointment.id == appointment_id).first()
        if appointment is None:
            raise NotFoundError("Appointment not found")

        if role == UserRole.ADMIN:
            return appointment
        if role == UserRole.CLIENT and appointment.client_id == acting_user_id:
            return appointment
        if role == UserRole.BUSINESS and appointment.business_id == acting_user_id:
            return appointment
        raise PermissionDeniedError("You can view only your own appointments")

    @staticmethod
    def list_appointments_for_user(
            db: Session,
            user_id: UUID,
            role: Union[UserRole, str],
            status: Optional[AppointmentStatus] = None,
            skip: int = 0,
            limit: int = 100
    ) -> Dict[str, Any]:
        """Appointments where the user is the client (CLIENT) or business (BUSINESS); all for ADMIN."""
        role = _coerce_role(role)
        query = db.query(Appointment)

        if role == UserRole.CLIENT:
            query = query.filter(Appointment.client_id == user_id)
        elif role == UserRole.BUSINESS:
            query = query.filter(Appointment.business_id == user_id)

        if status is not None:
            query = query.filter(Appointment.status == status)

        total = query.count()
        appointments = query.order_by(
            Appointment.start_at.asc()
        ).offset(skip).limit(limit).all()

        return {
            "total": total,
            "appointments": appointments,
        }
