"""
Pytest configuration and fixtures for backend tests.

Provides shared fixtures for:
- Test database sessions (in-memory SQLite)
- Timezone converters and a fixed reference instant
- Engine and store instances
- Sample data factories
- FastAPI test client
"""

import os
from datetime import datetime, timezone, timedelta

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Set test environment variables before importing app modules
os.environ['SCHEDULER_DB_URL'] = 'sqlite:///:memory:'
os.environ['SCHEDULER_ENV'] = 'test'

from backend.src.models import Base
from backend.src.engine import (
    EventEngine,
    InMemorySchedulingStore,
    StaticZoneConverter,
    ZoneInfoConverter,
)
from backend.src.services.event_service import EventService
from backend.src.services.profile_service import ProfileService


# Reference "now" used throughout the engine tests
NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


# ============================================================================
# Database Fixtures
# ============================================================================

@pytest.fixture(scope='function')
def test_db_engine():
    """Create an in-memory SQLite database engine for testing."""
    from sqlalchemy import event

    engine = create_engine(
        'sqlite:///:memory:',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )

    # Enable foreign key constraints for SQLite
    # This must be set for each connection
    def _fk_pragma_on_connect(dbapi_con, con_record):
        dbapi_con.execute('pragma foreign_keys=ON')

    event.listen(engine, 'connect', _fk_pragma_on_connect)

    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture(scope='function')
def test_db_session(test_db_engine):
    """Create a test database session."""
    TestingSessionLocal = sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=test_db_engine
    )
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


# ============================================================================
# Engine Fixtures
# ============================================================================

@pytest.fixture
def now():
    """Fixed reference instant (2024-05-01T12:00Z)."""
    return NOW


@pytest.fixture
def converter():
    """ZoneInfo-backed converter."""
    return ZoneInfoConverter()


@pytest.fixture
def static_converter():
    """Converter over a fixed zone table with no DST."""
    return StaticZoneConverter({
        "UTC": timezone.utc,
        "Test/Plus2": timezone(timedelta(hours=2)),
        "Test/Minus5": timezone(timedelta(hours=-5)),
    })


@pytest.fixture
def memory_store():
    """Empty in-memory scheduling store."""
    return InMemorySchedulingStore()


@pytest.fixture
def event_engine(converter, memory_store):
    """EventEngine over ZoneInfo and an in-memory store."""
    return EventEngine(converter=converter, store=memory_store)


@pytest.fixture
def sample_event(event_engine, now):
    """Factory for engine-built (unsaved) events; defaults to a New York morning meeting."""
    def _create(**overrides):
        params = {
            "title": "Planning",
            "description": None,
            "profiles": ["prf_alice", "prf_bob"],
            "timezone": "America/New_York",
            "start_local": "2024-06-01T09:00",
            "end_local": "2024-06-01T10:00",
            "created_by": "prf_alice",
            "now": now,
        }
        params.update(overrides)
        return event_engine.create(**params)
    return _create


# ============================================================================
# Service Fixtures
# ============================================================================

@pytest.fixture
def event_service(test_db_session, now):
    """EventService with a clock pinned to NOW."""
    return EventService(test_db_session, clock=lambda: now)


@pytest.fixture
def profile_service(test_db_session):
    """ProfileService over the test session."""
    return ProfileService(test_db_session)


@pytest.fixture
def sample_profile(profile_service):
    """Factory for persisted profiles."""
    def _create(name="Ada Lovelace", timezone="Europe/London"):
        return profile_service.create(name=name, timezone=timezone)
    return _create


# ============================================================================
# API Fixtures
# ============================================================================

@pytest.fixture
def test_client(test_db_session):
    """Create a test client for FastAPI application."""
    from fastapi.testclient import TestClient
    from backend.src.main import app
    from backend.src.db.database import get_db

    def get_test_db():
        try:
            yield test_db_session
        finally:
            pass

    app.dependency_overrides[get_db] = get_test_db

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()
