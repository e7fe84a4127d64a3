# app/utils/intervals.py
"""
Interval and minute-of-day arithmetic shared by availability, slots and booking.

All intervals are half-open: [start, end). Touching endpoints never overlap.

Timezone offsets follow the "UTC minus local" convention in minutes, so a
business at UTC+02:00 stores -120 and local = utc - offset.
"""
import re
from datetime import date, datetime, time, timedelta, timezone
from typing import TypeVar

T = TypeVar("T")

MINUTES_PER_DAY = 24 * 60
MIN_TZ_OFFSET_MINUTES = -14 * 60
MAX_TZ_OFFSET_MINUTES = 14 * 60

_HHMM_RE = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


def overlaps(a_start: T, a_end: T, b_start: T, b_end: T) -> bool:
    """Half-open interval overlap for minutes or datetimes."""
    return a_start < b_end and a_end > b_start


def clamp(value: int, lo: int, hi: int) -> int:
    return max(lo, min(hi, value))


def add_minutes(instant: datetime, minutes: int) -> datetime:
    return instant + timedelta(minutes=minutes)


def hhmm_to_minutes(hhmm: str) -> int:
    """
    Parse a strict HH:MM string (00:00..23:59) into minutes since midnight.

    Raises:
        ValueError: if the string is not a valid HH:MM value
    """
    match = _HHMM_RE.match(hhmm) if isinstance(hhmm, str) else None
    if not match:
        raise ValueError(f"Invalid time (expected HH:MM): {hhmm!r}")
    return int(match.group(1)) * 60 + int(match.group(2))


def minutes_to_hhmm(minutes: int) -> str:
    hours, mins = divmod(minutes, 60)
    return f"{hours:02d}:{mins:02d}"


def ensure_utc(value: datetime) -> datetime:
    """Naive datetimes are taken to be UTC; aware ones are converted."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def normalize_tz_offset(offset_minutes) -> int:
    if not isinstance(offset_minutes, int) or isinstance(offset_minutes, bool):
        return 0
    return clamp(offset_minutes, MIN_TZ_OFFSET_MINUTES, MAX_TZ_OFFSET_MINUTES)


def to_local(utc_instant: datetime, tz_offset_minutes: int) -> datetime:
    """Wall-clock time for the offset, returned as a naive datetime."""
    shifted = ensure_utc(utc_instant) - timedelta(minutes=tz_offset_minutes)
    return shifted.replace(tzinfo=None)


def local_day_of_week(utc_instant: datetime, tz_offset_minutes: int) -> int:
    """Local weekday with Sunday=0 ... Saturday=6."""
    return to_local(utc_instant, tz_offset_minutes).isoweekday() % 7


def day_of_week(local_date: date) -> int:
    return local_date.isoweekday() % 7


def local_minute_of_day(utc_instant: datetime, tz_offset_minutes: int) -> int:
    local = to_local(utc_instant, tz_offset_minutes)
    return local.hour * 60 + local.minute


def local_to_utc(local_date: date, minute_of_day: int, tz_offset_minutes: int) -> datetime:
    """Absolute UTC instant for a local date plus minute-of-day."""
    local_midnight = datetime.combine(local_date, time.min)
    local_dt = local_midnight + timedelta(minutes=minute_of_day)
    return (local_dt + timedelta(minutes=tz_offset_minutes)).replace(tzinfo=timezone.utc)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)
