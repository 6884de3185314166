"""Tests for email reminder dispatch."""

from datetime import datetime, timedelta, timezone

import pytest

from app.db.enums import JobType, ReminderOutcome, WorkflowAction, WorkflowTriggerEvent
from app.db.models import WorkflowReminder
from app.services.email_reminder_service import EmailReminderService

from conftest import EVENT_START, RecordingTaskScheduler, as_utc


@pytest.mark.asyncio
async def test_email_host_new_event_is_scheduled_now(db, make_workflow, make_event, task_scheduler):
    workflow = make_workflow(
        WorkflowTriggerEvent.NEW_EVENT, [{"action": WorkflowAction.EMAIL_HOST}]
    )
    service = EmailReminderService(db, task_scheduler)

    before = datetime.now(timezone.utc)
    result = await service.schedule_reminder(workflow, workflow.steps[0], make_event())
    after = datetime.now(timezone.utc)

    assert result.success
    assert result.outcome is ReminderOutcome.SCHEDULED
    reminder = db.get(WorkflowReminder, result.reminder_id)
    assert reminder.method == "EMAIL"
    assert reminder.scheduled is True
    assert reminder.cancelled is False
    assert reminder.booking_uid == "booking-123"
    assert reminder.workflow_step_id == workflow.steps[0].id
    assert before - timedelta(seconds=1) <= as_utc(reminder.scheduled_date) <= after

    [task] = task_scheduler.created
    assert task["task_type"] == JobType.WORKFLOW_EMAIL
    assert task["reference_uid"] == reminder.uuid
    assert task["payload"]["to"] == "host@example.com"
    assert task["payload"]["reminder_id"] == reminder.id
    assert task["payload"]["subject"] == "New booking: Intro Call"


@pytest.mark.asyncio
async def test_before_event_reminder_uses_offset(db, make_workflow, make_event, task_scheduler):
    workflow = make_workflow(
        WorkflowTriggerEvent.BEFORE_EVENT,
        [{"action": WorkflowAction.EMAIL_ATTENDEE}],
        time=24,
        time_unit="HOUR",
    )
    service = EmailReminderService(db, task_scheduler)

    result = await service.schedule_reminder(
        workflow, workflow.steps[0], make_event(), seat_reference_uid="seat-1"
    )

    assert result.success
    reminder = db.get(WorkflowReminder, result.reminder_id)
    assert as_utc(reminder.scheduled_date) == EVENT_START - timedelta(hours=24)
    assert reminder.seat_reference_id == "seat-1"
    assert task_scheduler.created[0]["scheduled_at"] == EVENT_START - timedelta(hours=24)
    assert task_scheduler.created[0]["payload"]["to"] == "alex@example.com"


@pytest.mark.asyncio
async def test_attendee_override_wins_over_attendee_email(db, make_workflow, make_event, task_scheduler):
    workflow = make_workflow(
        WorkflowTriggerEvent.NEW_EVENT, [{"action": WorkflowAction.EMAIL_ATTENDEE}]
    )
    service = EmailReminderService(db, task_scheduler)

    result = await service.schedule_reminder(
        workflow,
        workflow.steps[0],
        make_event(),
        email_attendee_send_to_override="override@example.com",
    )

    assert result.success
    assert task_scheduler.created[0]["payload"]["to"] == "override@example.com"


@pytest.mark.asyncio
async def test_email_address_action_uses_step_send_to(db, make_workflow, make_event, task_scheduler):
    workflow = make_workflow(
        WorkflowTriggerEvent.NEW_EVENT,
        [{"action": WorkflowAction.EMAIL_ADDRESS, "send_to": "ops@example.com"}],
    )
    result = await EmailReminderService(db, task_scheduler).schedule_reminder(
        workflow, workflow.steps[0], make_event()
    )
    assert result.success
    assert task_scheduler.created[0]["payload"]["to"] == "ops@example.com"


@pytest.mark.asyncio
async def test_custom_subject_and_body_are_rendered(db, make_workflow, make_event, task_scheduler):
    workflow = make_workflow(
        WorkflowTriggerEvent.NEW_EVENT,
        [
            {
                "action": WorkflowAction.EMAIL_HOST,
                "email_subject": "Booked: {EVENT_TITLE}",
                "reminder_body": "{ATTENDEE_NAME} booked you",
            }
        ],
    )
    await EmailReminderService(db, task_scheduler).schedule_reminder(
        workflow, workflow.steps[0], make_event()
    )
    payload = task_scheduler.created[0]["payload"]
    assert payload["subject"] == "Booked: Intro Call"
    assert payload["body"] == "Alex Guest booked you"


@pytest.mark.asyncio
async def test_missing_recipient_fails_without_persisting(db, make_workflow, make_event, task_scheduler):
    workflow = make_workflow(
        WorkflowTriggerEvent.NEW_EVENT, [{"action": WorkflowAction.EMAIL_ATTENDEE}]
    )
    result = await EmailReminderService(db, task_scheduler).schedule_reminder(
        workflow, workflow.steps[0], make_event(attendees=())
    )

    assert result.outcome is ReminderOutcome.FAILED
    assert result.error.startswith("No recipient")
    assert db.query(WorkflowReminder).count() == 0
    assert task_scheduler.created == []


@pytest.mark.asyncio
async def test_non_email_action_is_rejected(db, make_workflow, make_event, task_scheduler):
    workflow = make_workflow(
        WorkflowTriggerEvent.NEW_EVENT, [{"action": WorkflowAction.SMS_NUMBER, "send_to": "+1555"}]
    )
    result = await EmailReminderService(db, task_scheduler).schedule_reminder(
        workflow, workflow.steps[0], make_event()
    )
    assert not result.success
    assert task_scheduler.created == []


@pytest.mark.asyncio
async def test_unschedulable_trigger_fails(db, make_workflow, make_event, task_scheduler):
    workflow = make_workflow(
        WorkflowTriggerEvent.BOOKING_PAID, [{"action": WorkflowAction.EMAIL_HOST}]
    )
    result = await EmailReminderService(db, task_scheduler).schedule_reminder(
        workflow, workflow.steps[0], make_event()
    )
    assert result.outcome is ReminderOutcome.FAILED
    assert result.error == "Could not calculate scheduled date"


@pytest.mark.asyncio
async def test_task_scheduler_error_becomes_failed_result(db, make_workflow, make_event):
    workflow = make_workflow(
        WorkflowTriggerEvent.NEW_EVENT, [{"action": WorkflowAction.EMAIL_HOST}]
    )
    service = EmailReminderService(db, RecordingTaskScheduler(fail_on_create=True))

    result = await service.schedule_reminder(workflow, workflow.steps[0], make_event())

    assert result.outcome is ReminderOutcome.FAILED
    assert result.error == "task backend unavailable"


@pytest.mark.asyncio
async def test_cancel_reminders_is_idempotent(db, make_workflow, make_event, task_scheduler):
    workflow = make_workflow(
        WorkflowTriggerEvent.BEFORE_EVENT,
        [{"action": WorkflowAction.EMAIL_HOST}, {"action": WorkflowAction.EMAIL_ATTENDEE}],
        time=1,
        time_unit="HOUR",
    )
    service = EmailReminderService(db, task_scheduler)
    for step in workflow.steps:
        await service.schedule_reminder(workflow, step, make_event())

    assert await service.cancel_reminders_for_booking("booking-123") == 2
    assert len(task_scheduler.cancelled) == 2
    assert all(r.cancelled for r in db.query(WorkflowReminder).all())

    assert await service.cancel_reminders_for_booking("booking-123") == 0
    assert len(task_scheduler.cancelled) == 2


@pytest.mark.asyncio
async def test_cancel_reminders_logs_and_stops_on_scheduler_error(db, make_workflow, make_event, task_scheduler):
    workflow = make_workflow(
        WorkflowTriggerEvent.NEW_EVENT, [{"action": WorkflowAction.EMAIL_HOST}]
    )
    await EmailReminderService(db, task_scheduler).schedule_reminder(
        workflow, workflow.steps[0], make_event()
    )

    failing = EmailReminderService(db, RecordingTaskScheduler(fail_on_cancel=True))
    assert await failing.cancel_reminders_for_booking("booking-123") == 0
    assert db.query(WorkflowReminder).filter(WorkflowReminder.cancelled.is_(False)).count() == 1
