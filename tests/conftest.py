"""Shared test fixtures and helpers."""

import os

# Must be set before anything under app/ is imported
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["STRICT_AVAILABILITY"] = "false"
os.environ["DB_BUSY_TIMEOUT_SECONDS"] = "10"

import uuid
from datetime import datetime, timezone
from typing import Optional

import pytest
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy.orm import sessionmaker

from app.config.database import build_engine, create_tables, get_db
from app.config.settings import get_settings
from app.models.user import User, UserRole
from app.services.availability.availability_service import AvailabilityService

# 2030-01-07 is a Monday (day_of_week=1)
MONDAY = datetime(2030, 1, 7, tzinfo=timezone.utc).date()

STANDARD_WEEKDAY = {
    "day_of_week": 1,
    "enabled": True,
    "start": "09:00",
    "end": "17:00",
    "breaks": [{"start": "13:00", "end": "14:00"}],
}


def utc(year: int, month: int, day: int, hour: int = 0, minute: int = 0) -> datetime:
    return datetime(year, month, day, hour, minute, tzinfo=timezone.utc)


@pytest.fixture
def engine(tmp_path):
    # File-backed so several connections (threads, requests) see the same data
    engine = build_engine(f"sqlite:///{tmp_path / 'scheduling.db'}")
    create_tables(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    # No expiry on commit: reading attributes must not open a write transaction
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    yield session
    session.close()


def make_user(
    session,
    role: UserRole,
    email: Optional[str] = None,
    timezone_offset_minutes: int = 0,
    is_active: bool = True,
) -> User:
    """Helper to insert a committed user."""
    user = User(
        email=email or f"{role.value.lower()}-{uuid.uuid4().hex[:8]}@example.com",
        full_name=f"Test {role.value.title()}",
        role=role,
        timezone_offset_minutes=timezone_offset_minutes,
        is_active=is_active,
    )
    session.add(user)
    session.commit()
    return user


def make_schedule(session, business: User, days=None, slot_step_minutes: int = 15):
    """Helper to store a weekly schedule; defaults to Monday 09-17 with a 13-14 break."""
    schedule = AvailabilityService.replace_weekly_schedule(
        session,
        business.id,
        days if days is not None else [STANDARD_WEEKDAY],
        slot_step_minutes,
    )
    # Every SQLite transaction holds the write lock; end the read-back one
    session.commit()
    return schedule


def make_token(user: User, token_type: str = "access") -> str:
    """Mint a JWT the way the auth service does."""
    settings = get_settings()
    return jwt.encode(
        {"sub": str(user.id), "type": token_type},
        settings.JWT_SECRET_KEY,
        algorithm=settings.JWT_ALGORITHM,
    )


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {make_token(user)}"}


@pytest.fixture
def business(db_session):
    return make_user(db_session, UserRole.BUSINESS)


@pytest.fixture
def client_user(db_session):
    return make_user(db_session, UserRole.CLIENT)


@pytest.fixture
def other_client(db_session):
    return make_user(db_session, UserRole.CLIENT)


@pytest.fixture
def admin_user(db_session):
    return make_user(db_session, UserRole.ADMIN)


@pytest.fixture
def scheduled_business(db_session, business):
    make_schedule(db_session, business)
    return business


@pytest.fixture
def api(session_factory):
    from app.main import app

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
