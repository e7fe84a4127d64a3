from dataclasses import dataclass, field
from typing import List, Dict, Optional, Iterable, Union
from datetime import datetime
from uuid import UUID
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from app.config.settings import get_settings
from app.core.exceptions import InvalidRequestError, StorageError
from app.models.availability import WeeklyWorkingWindow, AvailabilityBreak
from app.schemas.availability import AvailabilityDayIn
from app.services.user.user_service import UserService
from app.utils.intervals import (
    overlaps,
    clamp,
    hhmm_to_minutes,
    minutes_to_hhmm,
    local_day_of_week,
    local_minute_of_day,
    ensure_utc,
)
import logging

logger = logging.getLogger(__name__)

MIN_SLOT_STEP_MINUTES = 5
MAX_SLOT_STEP_MINUTES = 120


@dataclass(frozen=True)
class BreakInterval:
    start_minute: int
    end_minute: int


@dataclass
class DaySchedule:
    day_of_week: int
    start_minute: int
    end_minute: int
    breaks: List[BreakInterval] = field(default_factory=list)

    def contains(self, start_minute: int, end_minute: int) -> bool:
        return start_minute >= self.start_minute and end_minute <= self.end_minute

    def hits_break(self, start_minute: int, end_minute: int) -> bool:
        return any(
            overlaps(start_minute, end_minute, b.start_minute, b.end_minute)
            for b in self.breaks
        )

    def to_dict(self) -> Dict:
        return {
            "day_of_week": self.day_of_week,
            "start": minutes_to_hhmm(self.start_minute),
            "end": minutes_to_hhmm(self.end_minute),
            "start_minute": self.start_minute,
            "end_minute": self.end_minute,
            "breaks": [
                {
                    "start": minutes_to_hhmm(b.start_minute),
                    "end": minutes_to_hhmm(b.end_minute),
                    "start_minute": b.start_minute,
                    "end_minute": b.end_minute,
                }
                for b in self.breaks
            ],
        }


@dataclass
class WeeklySchedule:
    business_id: UUID
    days: Dict[int, DaySchedule] = field(default_factory=dict)
    slot_step_minutes: int = 15

    def is_configured(self) -> bool:
        return bool(self.days)

    def for_day(self, day_of_week: int) -> Optional[DaySchedule]:
        return self.days.get(day_of_week)

    def to_dict(self, timezone_offset_minutes: int = 0) -> Dict:
        return {
            "business_id": self.business_id,
            "timezone_offset_minutes": timezone_offset_minutes,
            "slot_step_minutes": self.slot_step_minutes,
            "days": [self.days[d].to_dict() for d in sorted(self.days)],
        }


def clamp_slot_step(slot_step_minutes: Optional[int]) -> int:
    if slot_step_minutes is None:
        slot_step_minutes = get_settings().DEFAULT_SLOT_STEP_MINUTES
    return clamp(int(slot_step_minutes), MIN_SLOT_STEP_MINUTES, MAX_SLOT_STEP_MINUTES)


class AvailabilityService:
    """Owns a business's recurring weekly schedule (working windows + breaks)"""

    @staticmethod
    def get_weekly_schedule(
            db: Session,
            business_id: UUID
    ) -> WeeklySchedule:
        """
        Load the weekly template for a business.
        A weekday without a window is closed; an empty schedule is not an error.
        """
        windows = db.query(WeeklyWorkingWindow).filter(
            WeeklyWorkingWindow.business_id == business_id
        ).order_by(WeeklyWorkingWindow.day_of_week.asc()).all()

        breaks = db.query(AvailabilityBreak).filter(
            AvailabilityBreak.business_id == business_id
        ).order_by(
            AvailabilityBreak.day_of_week.asc(),
            AvailabilityBreak.start_minute.asc()
        ).all()

        breaks_by_day: Dict[int, List[BreakInterval]] = {}
        for b in breaks:
            breaks_by_day.setdefault(b.day_of_week, []).append(
                BreakInterval(b.start_minute, b.end_minute)
            )

        schedule = WeeklySchedule(business_id=business_id, slot_step_minutes=clamp_slot_step(None))
        for w in windows:
            schedule.days[w.day_of_week] = DaySchedule(
                day_of_week=w.day_of_week,
                start_minute=w.start_minute,
                end_minute=w.end_minute,
                breaks=breaks_by_day.get(w.day_of_week, []),
            )

        return schedule

    @staticmethod
    def normalize_days(days: Iterable[Union[AvailabilityDayIn, Dict]]) -> List[DaySchedule]:
        """
        Validate day entries and turn them into DaySchedule objects.

        Disabled days are dropped. Breaks with end <= start, or that do not
        touch their window, are discarded without error.

        Raises:
            InvalidRequestError: malformed HH:MM, end <= start, bad or repeated weekday
        """
        normalized: List[DaySchedule] = []
        seen_days = set()

        for raw in days:
            try:
                day = raw if isinstance(raw, AvailabilityDayIn) else AvailabilityDayIn.model_validate(raw)
            except PydanticValidationError as e:
                raise InvalidRequestError("Invalid day entry", e.errors(include_url=False))
            dow = day.day_of_week

            if dow < 0 or dow > 6:
                raise InvalidRequestError(f"day_of_week must be 0..6, got {dow}")
            if dow in seen_days:
                raise InvalidRequestError(f"Duplicate entry for day {dow}", {"day_of_week": dow})
            seen_days.add(dow)

            if not day.enabled:
                continue

            if not day.start or not day.end:
                raise InvalidRequestError(
                    f"Missing start/end for enabled day {dow}", {"day_of_week": dow}
                )

            try:
                start_minute = hhmm_to_minutes(day.start)
                end_minute = hhmm_to_minutes(day.end)
                parsed_breaks = [
                    BreakInterval(hhmm_to_minutes(b.start), hhmm_to_minutes(b.end))
                    for b in day.breaks
                ]
            except ValueError as e:
                raise InvalidRequestError(str(e), {"day_of_week": dow})

            if end_minute <= start_minute:
                raise InvalidRequestError(
                    f"End must be after start for day {dow}", {"day_of_week": dow}
                )

            kept = sorted(
                (
                    b for b in parsed_breaks
                    if b.end_minute > b.start_minute
                    and overlaps(b.start_minute, b.end_minute, start_minute, end_minute)
                ),
                key=lambda b: (b.start_minute, b.end_minute)
            )
            dropped = len(parsed_breaks) - len(kept)
            if dropped:
                logger.debug(f"Discarded {dropped} break(s) outside the window for day {dow}")

            normalized.append(DaySchedule(dow, start_minute, end_minute, kept))

        return normalized

    @staticmethod
    def replace_weekly_schedule(
            db: Session,
            business_id: UUID,
            days: Iterable[Union[AvailabilityDayIn, Dict]],
            slot_step_minutes: Optional[int] = None
    ) -> WeeklySchedule:
        """
        Atomically replace the whole weekly schedule of a business.

        Windows for weekdays missing from the input are deleted, present ones
        are upserted, and every break is deleted and re-inserted, all in one
        transaction.
        """
        normalized = AvailabilityService.normalize_days(days)
        step = clamp_slot_step(slot_step_minutes)
        enabled_days = [d.day_of_week for d in normalized]

        try:
            stale = db.query(WeeklyWorkingWindow).filter(
                WeeklyWorkingWindow.business_id == business_id
            )
            if enabled_days:
                stale = stale.filter(WeeklyWorkingWindow.day_of_week.notin_(enabled_days))
            stale.delete(synchronize_session=False)

            existing = {
                w.day_of_week: w
                for w in db.query(WeeklyWorkingWindow).filter(
                    WeeklyWorkingWindow.business_id == business_id
                ).all()
            }

            for d in normalized:
                window = existing.get(d.day_of_week)
                if window is None:
                    db.add(WeeklyWorkingWindow(
                        business_id=business_id,
                        day_of_week=d.day_of_week,
                        start_minute=d.start_minute,
                        end_minute=d.end_minute,
                    ))
                else:
                    window.start_minute = d.start_minute
                    window.end_minute = d.end_minute

            db.query(AvailabilityBreak).filter(
                AvailabilityBreak.business_id == business_id
            ).delete(synchronize_session=False)

            for d in normalized:
                for b in d.breaks:
                    db.add(AvailabilityBreak(
                        business_id=business_id,
                        day_of_week=d.day_of_week,
                        start_minute=b.start_minute,
                        end_minute=b.end_minute,
                    ))

            db.commit()

        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Failed to replace schedule for business {business_id}: {e}")
            raise StorageError("Could not save availability") from e

        logger.info(
            f"Replaced weekly schedule for business {business_id}: "
            f"{len(normalized)} day(s), {sum(len(d.breaks) for d in normalized)} break(s)"
        )

        schedule = AvailabilityService.get_weekly_schedule(db, business_id)
        schedule.slot_step_minutes = step
        return schedule

    @staticmethod
    def is_instant_within_availability(
            db: Session,
            business_id: UUID,
            start_at_utc: datetime,
            duration_minutes: int,
            strict: Optional[bool] = None
    ) -> bool:
        """
        Check that [start, start + duration) falls inside the business's
        window for the local weekday and clears every break.

        A business that never configured a schedule is treated as always
        available unless strict availability is on (argument or
        STRICT_AVAILABILITY setting).
        """
        if strict is None:
            strict = get_settings().STRICT_AVAILABILITY

        schedule = AvailabilityService.get_weekly_schedule(db, business_id)
        if not schedule.is_configured():
            return not strict

        tz_offset = UserService.get_timezone_offset_minutes(db, business_id)
        day = schedule.for_day(local_day_of_week(start_at_utc, tz_offset))
        if day is None:
            return False

        start_minute = local_minute_of_day(start_at_utc, tz_offset)
        end_minute = start_minute + duration_minutes
        # Seconds are truncated from the start; round the end up to stay inside
        start_utc = ensure_utc(start_at_utc)
        if start_utc.second or start_utc.microsecond:
            end_minute += 1

        if not day.contains(start_minute, end_minute):
            return False

        return not day.hits_break(start_minute, end_minute)
