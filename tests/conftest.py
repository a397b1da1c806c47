"""Pytest fixtures and configuration for studyhub tests."""

import pytest
from datetime import datetime
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient

from studyhub.database.database import Base
from studyhub.database.assignment_repository import AssignmentRepository
from studyhub.database.note_repository import NoteRepository
from studyhub.database.schedule_event_repository import ScheduleEventRepository
from studyhub.models.highlight import DEFAULT_HIGHLIGHT_CATEGORIES


# Use in-memory SQLite database for tests
TEST_DATABASE_URL = "sqlite:///:memory:"


@pytest.fixture(scope="function")
def db_session(test_user_id):
    """Create a database session for testing.

    Uses an in-memory SQLite database that is created fresh for each test.
    Also creates a test user in the database.
    """
    from studyhub.database.models import UserDB

    # Create engine with StaticPool for in-memory database
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False
    )

    # Create all tables
    Base.metadata.create_all(bind=engine)

    # Create session
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()

    # Create test user (required for foreign key constraints)
    now = datetime.utcnow()
    test_user_db = UserDB(
        id=test_user_id,
        email="test@example.com",
        name="Test User",
        timezone="America/New_York",
        created_at=now,
        updated_at=now,
    )
    session.add(test_user_db)
    session.commit()

    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def test_user_id():
    """Test user ID for multi-user testing."""
    return "test-user-123"


@pytest.fixture
def event_repository(db_session: Session):
    return ScheduleEventRepository(db_session)


@pytest.fixture
def note_repository(db_session: Session):
    return NoteRepository(db_session)


@pytest.fixture
def assignment_repository(db_session: Session):
    return AssignmentRepository(db_session)


@pytest.fixture
def categories():
    """The default highlight category map (red, yellow, green, blue)."""
    return DEFAULT_HIGHLIGHT_CATEGORIES


@pytest.fixture
def test_user(test_user_id):
    """Create a test user object."""
    from studyhub.models.user import User
    now = datetime.utcnow()
    return User(
        id=test_user_id,
        email="test@example.com",
        name="Test User",
        timezone="America/New_York",
        created_at=now,
        updated_at=now,
    )


@pytest.fixture
def test_client(db_session: Session, test_user):
    """Create a FastAPI test client with overridden database dependency and authentication."""
    from studyhub.api.app import app
    from studyhub.database.database import get_db
    from studyhub.auth.dependencies import get_current_user

    # Override the get_db dependency to use our test database session
    def override_get_db():
        try:
            yield db_session
        finally:
            pass  # Don't close the session here, let the fixture handle it

    # Override authentication to return test user
    def override_get_current_user():
        return test_user

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_user] = override_get_current_user

    with TestClient(app) as client:
        yield client

    # Clean up dependency overrides
    app.dependency_overrides.clear()
