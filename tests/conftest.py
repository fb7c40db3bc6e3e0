"""Pytest configuration and fixtures for Work Clock tests."""

import pytest
from datetime import datetime, timezone
from types import SimpleNamespace
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from atams.db import Base

import workclock.models  # noqa: F401
from workclock.db.session import get_db
from workclock.services.work_clock_service import WorkClockService

TEST_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def utc(*args) -> datetime:
    """Aware UTC datetime shorthand: utc(2025, 1, 1, 9) -> 2025-01-01T09:00:00+00:00"""
    return datetime(*args, tzinfo=timezone.utc)


def event(wc_id, timestamp, clock_in):
    """Lightweight event as accepted by the daily record reconstruction"""
    return SimpleNamespace(wc_id=wc_id, wc_timestamp=timestamp, wc_clock_in=clock_in)


@pytest.fixture(scope="function")
def db_session():
    """Create a fresh database session for each test."""
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def service():
    return WorkClockService()


@pytest.fixture
def workday(db_session, service):
    """Two sessions on 2025-01-06: 09:00-12:00 and 13:00-17:00."""
    first = service.add_clock_in_out_pair(db_session, utc(2025, 1, 6, 9), utc(2025, 1, 6, 12))
    second = service.add_clock_in_out_pair(db_session, utc(2025, 1, 6, 13), utc(2025, 1, 6, 17))
    return first, second


@pytest.fixture
def client(db_session):
    from fastapi.testclient import TestClient
    from workclock.main import app

    def override_get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()
