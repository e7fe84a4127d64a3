# ============================================================================
# FILE: app/models/user.py
# Users as seen by the scheduling core: identity, role and stored timezone
# ============================================================================
from sqlalchemy import Column, String, Boolean, Integer, Uuid, Enum as SQLEnum
import uuid
import enum
from app.models.base import Base, UTCDateTime
from app.utils.intervals import utcnow


class UserRole(str, enum.Enum):
    """Platform roles."""
    CLIENT = "CLIENT"      # Books appointments
    BUSINESS = "BUSINESS"  # Owns a calendar and a weekly schedule
    ADMIN = "ADMIN"        # Read-only oversight of all appointments


class User(Base):
    __tablename__ = "users"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    email = Column(String(255), unique=True, nullable=False, index=True)
    full_name = Column(String(255), nullable=True)

    role = Column(
        SQLEnum(UserRole, name="userrole"),
        default=UserRole.CLIENT,
        nullable=False,
        index=True
    )

    # UTC - local, in minutes (same sign as a JS Date#getTimezoneOffset()).
    # Only the business's stored value drives availability decisions.
    timezone_offset_minutes = Column(Integer, default=0, nullable=False)

    # Status flags
    is_active = Column(Boolean, default=True, nullable=False)

    # Timestamps
    created_at = Column(UTCDateTime, default=utcnow, nullable=False)
    updated_at = Column(UTCDateTime, default=utcnow, onupdate=utcnow, nullable=False)

    def is_business(self) -> bool:
        return self.role == UserRole.BUSINESS

    def is_client(self) -> bool:
        return self.role == UserRole.CLIENT

    def __repr__(self):
        return f"<User {self.email} ({self.role})>"
