# app/models/base.py
from sqlalchemy import DateTime
from sqlalchemy.orm import declarative_base
from sqlalchemy.types import TypeDecorator

from app.utils.intervals import ensure_utc

Base = declarative_base()


class UTCDateTime(TypeDecorator):
    """Timezone-aware DateTime that always hands back UTC datetimes.

    SQLite drops tzinfo on the way out, PostgreSQL returns the session zone.
    """
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return value
        return ensure_utc(value)

    def process_result_value(self, value, dialect):
        if value is None:
            return value
        return ensure_utc(value)
