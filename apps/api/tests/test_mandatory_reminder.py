"""Tests for the mandatory Gmail attendee reminder."""

from datetime import timedelta
from types import SimpleNamespace

import pytest

from app.core.config import settings
from app.db.enums import JobType, WorkflowAction, WorkflowTriggerEvent
from app.db.models import WorkflowReminder
from app.schemas.workflow import AttendeeInfo
from app.services.mandatory_reminder_service import (
    has_attendee_email_workflow,
    schedule_mandatory_reminder,
)

from conftest import EVENT_START, RecordingTaskScheduler, as_utc


def _gmail_event(make_event, *emails):
    return make_event(
        attendees=tuple(AttendeeInfo(name=f"Guest {i}", email=e) for i, e in enumerate(emails))
    )


def _timed(time, unit, action=WorkflowAction.EMAIL_ATTENDEE, trigger=WorkflowTriggerEvent.BEFORE_EVENT):
    return SimpleNamespace(
        trigger=trigger.value,
        time=time,
        time_unit=unit,
        steps=[SimpleNamespace(action=action.value)],
    )


def test_attendee_email_workflow_detection():
    assert has_attendee_email_workflow([_timed(12, "HOUR")])
    assert has_attendee_email_workflow([_timed(720, "MINUTE")])
    assert not has_attendee_email_workflow([_timed(13, "HOUR")])
    assert not has_attendee_email_workflow([_timed(1, "DAY")])
    assert not has_attendee_email_workflow([_timed(1, "HOUR", action=WorkflowAction.EMAIL_HOST)])
    assert not has_attendee_email_workflow(
        [_timed(1, "HOUR", trigger=WorkflowTriggerEvent.AFTER_EVENT)]
    )
    assert not has_attendee_email_workflow([])


@pytest.mark.asyncio
async def test_gmail_attendees_get_reminder_one_hour_before(db, make_event, task_scheduler):
    event = _gmail_event(make_event, "first@gmail.com", "other@example.com", "Second@Gmail.com")

    ids = await schedule_mandatory_reminder(
        db, task_scheduler, event, [], requires_confirmation=False
    )

    assert len(ids) == 2
    reminders = db.query(WorkflowReminder).order_by(WorkflowReminder.id).all()
    assert [r.id for r in reminders] == ids
    for reminder in reminders:
        assert reminder.workflow_step_id is None
        assert reminder.method == "EMAIL"
        assert as_utc(reminder.scheduled_date) == EVENT_START - timedelta(hours=1)
    assert [t["payload"]["to"] for t in task_scheduler.created] == [
        "first@gmail.com",
        "Second@Gmail.com",
    ]
    assert all(t["task_type"] == JobType.WORKFLOW_EMAIL for t in task_scheduler.created)
    assert task_scheduler.created[0]["payload"]["subject"].startswith("Reminder: Intro Call")


@pytest.mark.asyncio
async def test_reminder_uses_default_reminder_templates_in_attendee_locale(
    db, make_event, task_scheduler
):
    event = make_event(
        attendees=(AttendeeInfo(name="Camille", email="camille@gmail.com", locale="fr"),)
    )

    await schedule_mandatory_reminder(db, task_scheduler, event, [], requires_confirmation=False)

    payload = task_scheduler.created[0]["payload"]
    assert payload["subject"].startswith("Rappel: Intro Call le ")
    assert payload["body"].startswith("Bonjour Camille,")
    assert "Lieu: Room 4" in payload["body"]


@pytest.mark.asyncio
async def test_existing_attendee_workflow_suppresses_reminder(db, make_event, task_scheduler):
    event = _gmail_event(make_event, "first@gmail.com")

    ids = await schedule_mandatory_reminder(
        db, task_scheduler, event, [_timed(2, "HOUR")], requires_confirmation=False
    )

    assert ids == []
    assert task_scheduler.created == []


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "kwargs",
    [
        {"requires_confirmation": True},
        {"requires_confirmation": False, "is_dry_run": True},
        {"requires_confirmation": False, "is_platform_no_email": True},
    ],
)
async def test_skip_conditions(db, make_event, task_scheduler, kwargs):
    event = _gmail_event(make_event, "first@gmail.com")

    assert await schedule_mandatory_reminder(db, task_scheduler, event, [], **kwargs) == []
    assert db.query(WorkflowReminder).count() == 0


@pytest.mark.asyncio
async def test_disabled_setting_skips(db, make_event, task_scheduler, monkeypatch):
    monkeypatch.setattr(settings, "MANDATORY_REMINDER_ENABLED", False)
    event = _gmail_event(make_event, "first@gmail.com")

    assert await schedule_mandatory_reminder(
        db, task_scheduler, event, [], requires_confirmation=False
    ) == []


@pytest.mark.asyncio
async def test_non_gmail_attendees_get_nothing(db, make_event, task_scheduler):
    assert await schedule_mandatory_reminder(
        db, task_scheduler, make_event(), [], requires_confirmation=False
    ) == []


@pytest.mark.asyncio
async def test_errors_are_logged_not_raised(db, make_event, caplog):
    event = _gmail_event(make_event, "first@gmail.com")

    ids = await schedule_mandatory_reminder(
        db,
        RecordingTaskScheduler(fail_on_create=True),
        event,
        [],
        requires_confirmation=False,
    )

    assert ids == []
    assert "Error scheduling mandatory reminders" in caplog.text
