# ============================================================================
# FILE: app/services/user/user_service.py
# Read-side user lookups the scheduling core depends on
# ============================================================================
from sqlalchemy.orm import Session
from typing import Optional
from uuid import UUID

from app.models.user import User, UserRole
from app.utils.intervals import normalize_tz_offset


class UserService:
    """Service layer for user lookups (the user directory itself lives elsewhere)."""

    @staticmethod
    def get_user_by_id(
            db: Session,
            user_id: UUID
    ) -> Optional[User]:
        """Get a user by their ID."""
        return db.query(User).filter(User.id == user_id).first()

    @staticmethod
    def get_business(
            db: Session,
            business_id: UUID,
            for_update: bool = False
    ) -> Optional[User]:
        """
        Get an active user with the BUSINESS role.

        With for_update=True the row is locked until the transaction ends,
        which serialises booking transactions for that business.
        """
        query = db.query(User).filter(
            User.id == business_id,
            User.role == UserRole.BUSINESS,
            User.is_active.is_(True)
        )
        if for_update:
            query = query.with_for_update()
        return query.first()

    @staticmethod
    def get_timezone_offset_minutes(
            db: Session,
            business_id: UUID
    ) -> int:
        """
        Server-side source of truth for a business's timezone offset.
        Offsets sent by clients are never used for availability decisions.
        Unknown users resolve to 0 (UTC).
        """
        offset = db.query(User.timezone_offset_minutes).filter(
            User.id == business_id
        ).scalar()
        return normalize_tz_offset(offset)
