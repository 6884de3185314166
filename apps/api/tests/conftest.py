"""
Test configuration and fixtures.

Provides:
- A fresh in-memory SQLite database per test
- User/team fixtures and workflow/event factories
- A recording task scheduler standing in for the delivery backend
- HTTPX AsyncClient bound to the app
"""
import os
from datetime import datetime, timezone
from typing import AsyncGenerator, Generator

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.orm import Session

# Must be set before app settings are imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("ENV", "test")
for _key in ("TWILIO_SID", "TWILIO_TOKEN", "TWILIO_MESSAGING_SID"):
    os.environ.pop(_key, None)

from app.main import app
from app.db.base import Base
from app.db.session import engine, SessionLocal
from app.core.deps import get_db
from app.db.enums import MembershipRole, WorkflowTriggerEvent
from app.db.models import Membership, Team, User, Workflow, WorkflowStep
from app.schemas.workflow import AttendeeInfo, CalendarEvent, OrganizerInfo


EVENT_START = datetime(2026, 3, 10, 14, 30, tzinfo=timezone.utc)
EVENT_END = datetime(2026, 3, 10, 15, 0, tzinfo=timezone.utc)


def as_utc(value: datetime) -> datetime:
    """SQLite hands datetimes back naive; they are stored as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """Creates all tables, yields a session, then drops everything."""
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()

    yield session

    session.close()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def test_user(db: Session) -> User:
    user = User(email="host@example.com", name="Hannah Host", locale="en", time_zone="UTC")
    db.add(user)
    db.commit()
    return user


@pytest.fixture(scope="function")
def test_team(db: Session, test_user: User) -> Team:
    """A team owned by test_user."""
    team = Team(name="Support", slug="support")
    db.add(team)
    db.flush()
    db.add(
        Membership(
            user_id=test_user.id,
            team_id=team.id,
            role=MembershipRole.OWNER.value,
            accepted=True,
        )
    )
    db.commit()
    return team


# =============================================================================
# Factories
# =============================================================================

@pytest.fixture
def make_workflow(db: Session, test_user: User):
    """Persist a workflow with the given steps (dicts of WorkflowStep fields)."""

    def _make(
        trigger: WorkflowTriggerEvent = WorkflowTriggerEvent.NEW_EVENT,
        steps: list[dict] | None = None,
        *,
        time: int | None = None,
        time_unit: str | None = None,
        user_id: int | None = None,
        team_id: int | None = None,
        name: str = "Reminder workflow",
        is_active_on_all: bool = False,
    ) -> Workflow:
        if team_id is None and user_id is None:
            user_id = test_user.id
        workflow = Workflow(
            name=name,
            trigger=WorkflowTriggerEvent(trigger).value,
            time=time,
            time_unit=getattr(time_unit, "value", time_unit),
            user_id=user_id,
            team_id=team_id,
            is_active_on_all=is_active_on_all,
        )
        db.add(workflow)
        db.flush()
        for number, fields in enumerate(steps or [], start=1):
            fields = dict(fields)
            fields["action"] = getattr(fields["action"], "value", fields["action"])
            fields.setdefault("step_number", number)
            db.add(WorkflowStep(workflow_id=workflow.id, **fields))
        db.commit()
        db.refresh(workflow)
        return workflow

    return _make


@pytest.fixture
def make_event():
    def _make(**overrides) -> CalendarEvent:
        data = {
            "uid": "booking-123",
            "title": "Intro Call",
            "start_time": EVENT_START,
            "end_time": EVENT_END,
            "organizer": OrganizerInfo(
                name="Hannah Host", email="host@example.com", time_zone="UTC"
            ),
            "attendees": (
                AttendeeInfo(
                    name="Alex Guest",
                    email="alex@example.com",
                    phone_number="+15551234567",
                    time_zone="UTC",
                    locale="en",
                ),
            ),
            "location": "Room 4",
            "booker_url": "https://book.example.com",
        }
        data.update(overrides)
        return CalendarEvent(**data)

    return _make


# =============================================================================
# Task scheduler double
# =============================================================================

class RecordingTaskScheduler:
    """Records create/cancel calls instead of scheduling anything."""

    def __init__(self, fail_on_create: bool = False, fail_on_cancel: bool = False):
        self.created: list[dict] = []
        self.cancelled: list[str] = []
        self.fail_on_create = fail_on_create
        self.fail_on_cancel = fail_on_cancel

    async def create(self, task_type, payload, *, scheduled_at, reference_uid):
        if self.fail_on_create:
            raise RuntimeError("task backend unavailable")
        self.created.append(
            {
                "task_type": task_type,
                "payload": payload,
                "scheduled_at": scheduled_at,
                "reference_uid": reference_uid,
            }
        )

    async def cancel(self, reference_uid):
        if self.fail_on_cancel:
            raise RuntimeError("task backend unavailable")
        self.cancelled.append(reference_uid)
        return True


@pytest.fixture
def task_scheduler() -> RecordingTaskScheduler:
    return RecordingTaskScheduler()


@pytest.fixture
def sms_env(monkeypatch):
    """Configure SMS provider credentials for the duration of a test."""
    monkeypatch.setenv("TWILIO_SID", "AC123")
    monkeypatch.setenv("TWILIO_TOKEN", "token")
    monkeypatch.setenv("TWILIO_MESSAGING_SID", "MG123")


# =============================================================================
# Client Fixtures
# =============================================================================

@pytest.fixture(scope="function")
async def client(db: Session) -> AsyncGenerator[AsyncClient, None]:
    """AsyncClient sharing the test database session."""
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as c:
        yield c

    app.dependency_overrides.clear()
