"""Shared test fixtures."""

from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel, create_engine
from sqlmodel.pool import StaticPool

from dogcal.core.database import get_session
from dogcal.main import app
from dogcal.models import Friendship, Pup, User, UserRole
from dogcal.routes.deps import get_transport
from dogcal.scheduling.timewindow import utcnow
from tests.fakes import FakeTransport


@pytest.fixture(name="engine")
def engine_fixture():
    """Create an in-memory SQLite database for testing."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture(name="session")
def session_fixture(engine):
    """Create a new database session for each test."""
    with Session(engine) as session:
        yield session


@pytest.fixture(name="transport")
def transport_fixture() -> FakeTransport:
    return FakeTransport()


@pytest.fixture(name="client")
def client_fixture(session: Session, transport: FakeTransport):
    """Create a test client with the test database session and fake transport."""

    def get_session_override():
        return session

    app.dependency_overrides[get_session] = get_session_override
    app.dependency_overrides[get_transport] = lambda: transport
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()


def _add(session: Session, obj):
    session.add(obj)
    session.commit()
    session.refresh(obj)
    return obj


@pytest.fixture(name="owner")
def owner_fixture(session: Session) -> User:
    return _add(session, User(name="Olivia", role=UserRole.OWNER, phone_number="07476 238512"))


@pytest.fixture(name="other_owner")
def other_owner_fixture(session: Session) -> User:
    return _add(session, User(name="Oscar", role=UserRole.OWNER, phone_number="+1 415 555 0199"))


@pytest.fixture(name="friend")
def friend_fixture(session: Session) -> User:
    return _add(session, User(name="Frankie", role=UserRole.FRIEND, phone_number="+44 7700 900123"))


@pytest.fixture(name="second_friend")
def second_friend_fixture(session: Session) -> User:
    """A linked friend who never shared a phone number."""
    return _add(session, User(name="Gus", role=UserRole.FRIEND))


@pytest.fixture(name="stranger")
def stranger_fixture(session: Session) -> User:
    """A friend with no friendship to the pup."""
    return _add(session, User(name="Sam", role=UserRole.FRIEND, phone_number="(415) 555-0100"))


@pytest.fixture(name="pup")
def pup_fixture(session: Session, owner: User) -> Pup:
    return _add(session, Pup(name="Biscuit", owner_user_id=owner.id))


@pytest.fixture(name="friendships")
def friendships_fixture(
    session: Session, pup: Pup, friend: User, second_friend: User
) -> list[Friendship]:
    links = [
        Friendship(pup_id=pup.id, friend_user_id=friend.id, history_notes="Walks on Tuesdays"),
        Friendship(pup_id=pup.id, friend_user_id=second_friend.id),
    ]
    session.add_all(links)
    session.commit()
    return links


@pytest.fixture(name="tomorrow")
def tomorrow_fixture() -> datetime:
    """10:00 UTC tomorrow, so hangouts built from it are upcoming."""
    day = utcnow() + timedelta(days=1)
    return day.replace(hour=10, minute=0, second=0, microsecond=0)
