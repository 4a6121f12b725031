"""
Pytest configuration for the mentorship engine.

Every test gets a fresh in-memory SQLite database, a frozen clock and a
recording notification hook, so transitions and their events can be
asserted without a PostgreSQL server.
"""

import itertools
import os

# Must be set before the package is imported: the module-level engine is built from it
os.environ.setdefault("DATABASE_URL", "sqlite://")

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from mentorship_engine.core.notifications import NotificationDispatcher
from mentorship_engine.database import Base
from mentorship_engine.models import User
from mentorship_engine.services import MentorshipService, SchedulingService

NOW = datetime(2025, 1, 1, 9, 0, tzinfo=timezone.utc)


class FrozenClock:
    """Callable clock the services read "now" from."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)


class RecordingHook:
    def __init__(self):
        self.events = []

    def notify(self, event):
        self.events.append(event)

    @property
    def actions(self):
        return [e.action for e in self.events]


class FailingHook:
    def __init__(self):
        self.calls = 0

    def notify(self, event):
        self.calls += 1
        raise RuntimeError("mail server unreachable")


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def clock():
    return FrozenClock(NOW)


@pytest.fixture
def recorder():
    return RecordingHook()


@pytest.fixture
def failing_hook():
    return FailingHook()


@pytest.fixture
def dispatcher(recorder):
    # Inline delivery, so events can be asserted as soon as the call returns
    return NotificationDispatcher([recorder])


@pytest.fixture
def make_user(db):
    counter = itertools.count(1)

    def _make(role="mentee", gender="female", is_active=True, full_name=None):
        n = next(counter)
        user = User(
            full_name=full_name or f"{role.title()} {n}",
            email=f"{role}{n}@example.com",
            role=role,
            gender=gender,
            is_active=is_active,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def mentor(make_user):
    return make_user(role="mentor", gender="female", full_name="Grace Mentor")


@pytest.fixture
def mentee(make_user):
    # Stored with different casing on purpose; comparison is case-insensitive
    return make_user(role="mentee", gender="Female", full_name="Ada Mentee")


@pytest.fixture
def outsider(make_user):
    return make_user(role="mentee", gender="female", full_name="Not A Party")


@pytest.fixture
def mentorship_service(db, dispatcher, clock):
    return MentorshipService(db, dispatcher, clock)


@pytest.fixture
def scheduling_service(db, dispatcher, clock):
    return SchedulingService(db, dispatcher, clock)


@pytest.fixture
def pending_mentorship(mentorship_service, mentor, mentee):
    return mentorship_service.request_mentorship(mentor.id, mentee.id, actor_id=mentee.id)


@pytest.fixture
def active_mentorship(mentorship_service, pending_mentorship, mentor):
    return mentorship_service.accept(pending_mentorship.id, mentor.id)
