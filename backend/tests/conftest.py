"""Pytest fixtures — file-backed SQLite database, fresh for every test."""
import os

SQLITE_URL = "sqlite:///./test.db"
os.environ.setdefault("DATABASE_URL", SQLITE_URL)

from datetime import datetime, timedelta, timezone  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from jose import jwt  # noqa: E402
from sqlalchemy import create_engine, event  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from reservio.config import settings  # noqa: E402
from reservio.database import Base, get_db  # noqa: E402
from reservio.main import app  # noqa: E402
from reservio.models.event import Event, EventStatus  # noqa: E402
from reservio.models.user import User, Role  # noqa: E402


@pytest.fixture(scope="function")
def db_engine():
    """Create a fresh SQLite engine for each test."""
    engine = create_engine(SQLITE_URL, connect_args={"check_same_thread": False})

    # WAL lets readers run while another thread commits; foreign keys are
    # enforced as they are on PostgreSQL
    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def session_factory(db_engine):
    """Session factory for tests that open one session per thread."""
    return sessionmaker(autocommit=False, autoflush=False, bind=db_engine)


@pytest.fixture(scope="function")
def db(session_factory):
    """Yield a database session, closed after the test."""
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def client(session_factory):
    """FastAPI TestClient with the database dependency overridden to use SQLite."""

    def _override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def admin(db) -> User:
    return create_test_user(db, name="Admin User", role=Role.ADMIN)


@pytest.fixture
def participant(db) -> User:
    return create_test_user(db, name="Alice Martin")


@pytest.fixture
def other_participant(db) -> User:
    return create_test_user(db, name="Bob Durand")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def create_test_user(db, name: str = "Test User", role: Role = Role.PARTICIPANT) -> User:
    """Helper — insert a user row as the identity provider would have it."""
    email = name.lower().replace(" ", ".") + "@example.com"
    user = User(email=email, fullname=name, role=role)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def token_headers(sub: str, role: Role, **claims) -> dict[str, str]:
    """Helper — bearer header signed like the identity provider does."""
    token = jwt.encode(
        {"sub": sub, "role": role.value, **claims},
        settings.JWT_SECRET,
        algorithm=settings.JWT_ALGORITHM,
    )
    return {"Authorization": f"Bearer {token}"}


def auth_headers(user: User) -> dict[str, str]:
    """Helper — bearer header for an existing ``user`` row."""
    return token_headers(user.user_id, user.role)


def insert_event(
    db,
    admin: User,
    title: str = "Test Event",
    capacity: int = 10,
    status: EventStatus = EventStatus.PUBLISHED,
    start_offset_hours: float = 24,
    duration_hours: float = 2,
) -> Event:
    """Helper — write an event row directly, bypassing lifecycle checks.

    Lets tests build states the API refuses to create, such as events that
    already started.
    """
    start = datetime.now(timezone.utc) + timedelta(hours=start_offset_hours)
    event_row = Event(
        title=title,
        description="An event created for the test suite.",
        location="Main Hall",
        start_date=start,
        end_date=start + timedelta(hours=duration_hours),
        capacity=capacity,
        status=status,
        created_by=admin.user_id,
    )
    db.add(event_row)
    db.commit()
    db.refresh(event_row)
    return event_row
