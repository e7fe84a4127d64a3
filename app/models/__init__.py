# app/models/__init__.py
from .base import Base
from .user import User, UserRole
from .availability import WeeklyWorkingWindow, AvailabilityBreak
from .appointment import Appointment, AppointmentStatus

__all__ = [
    "Base",
    "User",
    "UserRole",
    "WeeklyWorkingWindow",
    "AvailabilityBreak",
    "Appointment",
    "AppointmentStatus",
]
