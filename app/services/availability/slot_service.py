"""
Slot generation

Projects a business's weekly schedule onto a concrete UTC range and removes
breaks, existing BOOKED appointments and already-past instants.
"""
from typing import List, Iterator, Optional, Tuple
from datetime import datetime, date, timedelta
from uuid import UUID
from sqlalchemy.orm import Session
from app.config.settings import get_settings
from app.core.exceptions import InvalidRequestError
from app.models.appointment import Appointment, AppointmentStatus
from app.services.availability.availability_service import AvailabilityService, clamp_slot_step
from app.services.user.user_service import UserService
from app.utils.intervals import (
    overlaps,
    add_minutes,
    ensure_utc,
    day_of_week,
    local_to_utc,
    to_local,
    utcnow,
)
import logging

logger = logging.getLogger(__name__)

MIN_DURATION_MINUTES = 15
MAX_DURATION_MINUTES = 240
MAX_RANGE_DAYS = 62


def validate_duration(duration_minutes) -> int:
    """
    Raises:
        InvalidRequestError: if the duration is not an integer in 15..240
    """
    if not isinstance(duration_minutes, int) or isinstance(duration_minutes, bool):
        raise InvalidRequestError("duration_minutes must be an integer")
    if duration_minutes < MIN_DURATION_MINUTES:
        raise InvalidRequestError(f"duration_minutes must be >= {MIN_DURATION_MINUTES}")
    if duration_minutes > MAX_DURATION_MINUTES:
        raise InvalidRequestError(f"duration_minutes must be <= {MAX_DURATION_MINUTES}")
    return duration_minutes


class SlotService:
    """Bookable start instants for a business"""

    @staticmethod
    def _booked_ranges(
            db: Session,
            business_id: UUID,
            range_start: datetime,
            range_end: datetime
    ) -> List[Tuple[datetime, datetime]]:
        # Superset prefilter; each candidate is re-checked exactly
        window_start = add_minutes(range_start, -MAX_DURATION_MINUTES)
        window_end = add_minutes(range_end, MAX_DURATION_MINUTES)

        rows = db.query(Appointment.start_at, Appointment.duration_minutes).filter(
            Appointment.business_id == business_id,
            Appointment.status == AppointmentStatus.BOOKED,
            Appointment.start_at >= window_start,
            Appointment.start_at < window_end
        ).order_by(Appointment.start_at.asc()).all()

        return [
            (ensure_utc(start_at), add_minutes(ensure_utc(start_at), duration))
            for start_at, duration in rows
        ]

    @staticmethod
    def iter_free_slots(
            db: Session,
            business_id: UUID,
            range_start: datetime,
            range_end: datetime,
            duration_minutes: int,
            slot_step_minutes: Optional[int] = None,
            now: Optional[datetime] = None
    ) -> Iterator[datetime]:
        """
        Yield free slot starts (UTC, ascending) in [range_start, range_end).

        Storage is read once, up front; iteration after that is pure, so the
        same arguments over unchanged data always give the same sequence.
        """
        duration = validate_duration(duration_minutes)
        step = clamp_slot_step(slot_step_minutes)
        range_start = ensure_utc(range_start)
        range_end = ensure_utc(range_end)

        if range_end <= range_start:
            return iter(())
        if range_end - range_start > timedelta(days=MAX_RANGE_DAYS):
            raise InvalidRequestError(
                f"Slot range must not exceed {MAX_RANGE_DAYS} days",
                {"range_start": range_start, "range_end": range_end}
            )

        tz_offset = UserService.get_timezone_offset_minutes(db, business_id)
        schedule = AvailabilityService.get_weekly_schedule(db, business_id)
        booked = SlotService._booked_ranges(db, business_id, range_start, range_end)

        grace = timedelta(seconds=get_settings().SLOT_GRACE_SECONDS)
        earliest = ensure_utc(now or utcnow()) + grace

        first_day = to_local(range_start, tz_offset).date()
        last_day = to_local(range_end - timedelta(microseconds=1), tz_offset).date()

        def _generate() -> Iterator[datetime]:
            current_day = first_day
            while current_day <= last_day:
                day = schedule.for_day(day_of_week(current_day))
                if day is not None:
                    minute = day.start_minute
                    while minute + duration <= day.end_minute:
                        end_minute = minute + duration
                        start_at = local_to_utc(current_day, minute, tz_offset)
                        end_at = add_minutes(start_at, duration)

                        if (
                            range_start <= start_at < range_end
                            and not day.hits_break(minute, end_minute)
                            and not any(overlaps(start_at, end_at, s, e) for s, e in booked)
                            and start_at > earliest
                        ):
                            yield start_at

                        minute += step
                current_day += timedelta(days=1)

        return _generate()

    @staticmethod
    def generate_free_slots(
            db: Session,
            business_id: UUID,
            range_start: datetime,
            range_end: datetime,
            duration_minutes: int,
            slot_step_minutes: Optional[int] = None,
            now: Optional[datetime] = None
    ) -> List[datetime]:
        """Materialised form of iter_free_slots."""
        slots = list(SlotService.iter_free_slots(
            db, business_id, range_start, range_end,
            duration_minutes, slot_step_minutes, now
        ))
        logger.debug(
            f"Generated {len(slots)} slot(s) for business {business_id} "
            f"in [{range_start}, {range_end})"
        )
        return slots

    @staticmethod
    def local_day_range(
            db: Session,
            business_id: UUID,
            local_date: date
    ) -> Tuple[datetime, datetime]:
        """UTC bounds of one calendar day in the business's local time."""
        tz_offset = UserService.get_timezone_offset_minutes(db, business_id)
        day_start = local_to_utc(local_date, 0, tz_offset)
        return day_start, day_start + timedelta(days=1)

    @staticmethod
    def generate_free_slots_for_date(
            db: Session,
            business_id: UUID,
            local_date: date,
            duration_minutes: int,
            slot_step_minutes: Optional[int] = None,
            now: Optional[datetime] = None
    ) -> List[datetime]:
        """Free slots within one business-local calendar day."""
        day_start, day_end = SlotService.local_day_range(db, business_id, local_date)
        return SlotService.generate_free_slots(
            db, business_id, day_start, day_end,
            duration_minutes, slot_step_minutes, now
        )
