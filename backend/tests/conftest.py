from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from tatame.database import get_session
from tatame.main import app
from tatame.models.category import Category
from tatame.models.event import Event, EventCategory
from tatame.models.profile import Profile, ProfileRole
from tatame.models.registration import Registration, RegistrationStatus

TEST_DATABASE_URL = "sqlite:///:memory:"

# ============================================================================
# Test Database Setup with StaticPool
# ============================================================================
# 1. sqlite:///:memory: with StaticPool so ALL sessions share the same DB
# 2. check_same_thread=False required for TestClient/threaded access
# 3. All models MUST be imported before create_all() (see session_fixture)
# 4. App dependency overridden to use test_engine (see client_fixture)
# 5. Tables are created per test and dropped afterwards
test_engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

BASE_TIME = datetime(2026, 3, 1, 9, 0, 0)


def override_get_session():
    """Override session to use test engine"""
    with Session(test_engine) as session:
        yield session


@pytest.fixture(name="session", scope="function")
def session_fixture():
    """Provide a test database session on a freshly created schema"""
    # Import all models to ensure they're registered BEFORE create_all
    from tatame.models.match import Match  # noqa: F401

    SQLModel.metadata.create_all(test_engine)

    with Session(test_engine) as session:
        yield session

    SQLModel.metadata.drop_all(test_engine)


@pytest.fixture(name="client")
def client_fixture(session: Session):
    """Provide a test client with overridden database session

    Override MUST be set BEFORE TestClient() and stay in place
    for the entire duration. This ensures the app never uses its own engine.
    """
    app.dependency_overrides[get_session] = override_get_session

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def organizer(session: Session) -> Profile:
    profile = Profile(name="Organizer One", email="org@example.com", role=ProfileRole.organizer)
    session.add(profile)
    session.commit()
    session.refresh(profile)
    return profile


@pytest.fixture
def other_organizer(session: Session) -> Profile:
    profile = Profile(name="Organizer Two", email="org2@example.com", role=ProfileRole.organizer)
    session.add(profile)
    session.commit()
    session.refresh(profile)
    return profile


@pytest.fixture
def make_event(session: Session, organizer: Profile):
    """Factory: event owned by `organizer` with one linked category per capacity."""

    def _make(capacities=(4,), name="Open Championship", owner=None):
        event = Event(organizer_id=(owner or organizer).id, name=name)
        session.add(event)
        session.commit()
        session.refresh(event)

        categories = []
        for index, capacity in enumerate(capacities, start=1):
            category = Category(name=f"Adult Blue Light {index}", belt="blue", bracket_capacity=capacity)
            session.add(category)
            session.commit()
            session.refresh(category)
            session.add(EventCategory(event_id=event.id, category_id=category.id))
            categories.append(category)
        session.commit()
        for category in categories:
            session.refresh(category)
        return event, categories

    return _make


@pytest.fixture
def register(session: Session):
    """Factory: a registration (paid by default) for a new athlete profile.

    `minute` orders registrations by creation time.
    """

    def _register(event, category, name, minute, slot=None, status=RegistrationStatus.paid):
        athlete = Profile(name=name, role=ProfileRole.athlete)
        session.add(athlete)
        session.commit()
        session.refresh(athlete)

        registration = Registration(
            event_id=event.id,
            category_id=category.id,
            athlete_id=athlete.id,
            status=status,
            bracket_slot=slot,
            created_at=BASE_TIME + timedelta(minutes=minute),
        )
        session.add(registration)
        session.commit()
        session.refresh(registration)
        return registration

    return _register


@pytest.fixture
def as_user():
    """Factory: headers identifying the caller to the API."""

    def _headers(profile: Profile) -> dict:
        return {"X-User-Id": str(profile.id)}

    return _headers

