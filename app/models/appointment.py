from sqlalchemy import Column, Integer, Uuid, ForeignKey, Index, CheckConstraint, Enum as SQLEnum
from sqlalchemy.orm import relationship
import enum
import uuid

from app.models.base import Base, UTCDateTime
from app.utils.intervals import utcnow


class AppointmentStatus(str, enum.Enum):
    BOOKED = "BOOKED"
    CANCELED = "CANCELED"  # terminal


class Appointment(Base):
    __tablename__ = "appointments"
    __table_args__ = (
        Index("ix_appointments_business_start", "business_id", "start_at"),
        CheckConstraint(
            "duration_minutes >= 15 AND duration_minutes <= 240",
            name="ck_appointments_duration",
        ),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)

    # References
    client_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)
    business_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False)

    # Appointment details
    start_at = Column(UTCDateTime, nullable=False)
    # start_at + duration_minutes; kept in sync by the booking service
    end_at = Column(UTCDateTime, nullable=False)
    duration_minutes = Column(Integer, nullable=False)

    # Status tracking
    status = Column(
        SQLEnum(AppointmentStatus, name="appointmentstatus"),
        nullable=False,
        default=AppointmentStatus.BOOKED,
    )

    created_at = Column(UTCDateTime, default=utcnow, nullable=False)
    updated_at = Column(UTCDateTime, default=utcnow, onupdate=utcnow, nullable=False)

    client = relationship("User", foreign_keys=[client_id])
    business = relationship("User", foreign_keys=[business_id])

    def is_booked(self) -> bool:
        return self.status == AppointmentStatus.BOOKED

    def __repr__(self):
        return f"<Appointment(id={self.id}, business_id={self.business_id}, start_at={self.start_at}, status={self.status})>"
