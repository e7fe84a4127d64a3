# ===== app/models/availability.py =====
from sqlalchemy import Column, Integer, Uuid, ForeignKey, UniqueConstraint, CheckConstraint, Index
from app.models.base import Base
import uuid


class WeeklyWorkingWindow(Base):
    """Recurring working hours for one weekday of a business (local minutes)"""
    __tablename__ = "business_working_hours"
    __table_args__ = (
        UniqueConstraint("business_id", "day_of_week", name="uq_working_hours_business_day"),
        CheckConstraint("day_of_week >= 0 AND day_of_week <= 6", name="ck_working_hours_day"),
        CheckConstraint(
            "start_minute >= 0 AND end_minute <= 1439 AND end_minute > start_minute",
            name="ck_working_hours_range",
        ),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    business_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    day_of_week = Column(Integer, nullable=False)  # 0=Sunday, 6=Saturday
    start_minute = Column(Integer, nullable=False)
    end_minute = Column(Integer, nullable=False)

    def __repr__(self):
        return (
            f"<WeeklyWorkingWindow(business_id={self.business_id}, day={self.day_of_week}, "
            f"{self.start_minute}-{self.end_minute})>"
        )


class AvailabilityBreak(Base):
    """Break inside a weekday; breaks outside the window are inert"""
    __tablename__ = "business_breaks"
    __table_args__ = (
        Index("ix_business_breaks_business_day", "business_id", "day_of_week"),
        CheckConstraint("day_of_week >= 0 AND day_of_week <= 6", name="ck_breaks_day"),
        CheckConstraint("end_minute > start_minute", name="ck_breaks_range"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    business_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )

    day_of_week = Column(Integer, nullable=False)
    start_minute = Column(Integer, nullable=False)
    end_minute = Column(Integer, nullable=False)
