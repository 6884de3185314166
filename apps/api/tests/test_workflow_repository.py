"""Tests for workflow data access."""

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from app.db.enums import TimeUnit, WorkflowAction, WorkflowMethod, WorkflowTriggerEvent
from app.db.models import Workflow, WorkflowReminder, WorkflowStep, WorkflowsOnEventTypes
from app.schemas.workflow import WorkflowCreate, WorkflowStepCreate, WorkflowUpdate
from app.services import workflow_repository
from app.services.workflow_repository import WorkflowNotFoundError


def _create(db, user_id, **overrides):
    data = {"name": "Reminders", "trigger": WorkflowTriggerEvent.NEW_EVENT, "user_id": user_id}
    data.update(overrides)
    return workflow_repository.create_workflow(db, WorkflowCreate(**data))


def test_create_and_find_by_owner(db, test_user, test_team):
    personal = _create(db, test_user.id)
    team = _create(db, None, team_id=test_team.id)

    assert [w.id for w in workflow_repository.find_by_user_id(db, test_user.id)] == [personal.id]
    assert [w.id for w in workflow_repository.find_by_team_id(db, test_team.id)] == [team.id]
    assert workflow_repository.find_by_id(db, personal.id).trigger == "NEW_EVENT"
    assert workflow_repository.find_by_id(db, 9999) is None


def test_workflow_create_validates_owner_and_offset(test_user):
    with pytest.raises(ValidationError):
        WorkflowCreate(name="x", trigger="NEW_EVENT")
    with pytest.raises(ValidationError):
        WorkflowCreate(name="x", trigger="NEW_EVENT", user_id=1, team_id=2)
    with pytest.raises(ValidationError):
        WorkflowCreate(name="x", trigger="BEFORE_EVENT", user_id=1)
    with pytest.raises(ValidationError):
        WorkflowCreate(name="x", trigger="NEW_EVENT", user_id=1, time=5)


def test_step_create_requires_send_to_for_custom_recipients():
    with pytest.raises(ValidationError):
        WorkflowStepCreate(action=WorkflowAction.SMS_NUMBER)
    assert WorkflowStepCreate(action=WorkflowAction.EMAIL_HOST).send_to is None


def test_update_workflow(db, test_user):
    workflow = _create(db, test_user.id)

    updated = workflow_repository.update_workflow(
        db,
        workflow.id,
        WorkflowUpdate(trigger=WorkflowTriggerEvent.BEFORE_EVENT, time=2, time_unit=TimeUnit.HOUR),
    )
    assert (updated.trigger, updated.time, updated.time_unit) == ("BEFORE_EVENT", 2, "HOUR")

    renamed = workflow_repository.update_workflow(db, workflow.id, WorkflowUpdate(name="Renamed"))
    assert renamed.name == "Renamed"
    assert renamed.time == 2


def test_update_workflow_rejects_timed_trigger_without_offset(db, test_user):
    workflow = _create(db, test_user.id)
    with pytest.raises(ValueError):
        workflow_repository.update_workflow(
            db, workflow.id, WorkflowUpdate(trigger=WorkflowTriggerEvent.AFTER_EVENT)
        )


def test_missing_workflow_raises(db):
    with pytest.raises(WorkflowNotFoundError):
        workflow_repository.update_workflow(db, 42, WorkflowUpdate(name="x"))
    with pytest.raises(WorkflowNotFoundError):
        workflow_repository.delete_workflow(db, 42)
    with pytest.raises(LookupError):
        workflow_repository.add_step(db, 42, WorkflowStepCreate(action=WorkflowAction.EMAIL_HOST))


def test_add_step_numbers_steps_in_order(db, test_user):
    workflow = _create(db, test_user.id)

    first = workflow_repository.add_step(db, workflow.id, WorkflowStepCreate(action=WorkflowAction.EMAIL_HOST))
    second = workflow_repository.add_step(
        db, workflow.id, WorkflowStepCreate(action=WorkflowAction.SMS_NUMBER, send_to="+15550001111")
    )

    assert (first.step_number, second.step_number) == (1, 2)
    assert second.number_verification_pending is True
    assert workflow_repository.count_steps(db, workflow.id) == 2
    assert [s.id for s in workflow.steps] == [first.id, second.id]


def test_delete_workflow_cascades_steps_links_and_reminders(db, test_user):
    workflow = _create(db, test_user.id)
    step = workflow_repository.add_step(
        db, workflow.id, WorkflowStepCreate(action=WorkflowAction.EMAIL_HOST)
    )
    workflow_repository.link_to_event_type(db, workflow.id, 3)
    for _ in range(2):
        workflow_repository.create_reminder(
            db,
            booking_uid="b-1",
            method=WorkflowMethod.EMAIL,
            scheduled_date=datetime(2026, 3, 10, tzinfo=timezone.utc),
            workflow_step_id=step.id,
        )
    mandatory = workflow_repository.create_reminder(
        db,
        booking_uid="b-1",
        method=WorkflowMethod.EMAIL,
        scheduled_date=datetime(2026, 3, 10, tzinfo=timezone.utc),
    )

    assert workflow_repository.delete_workflow(db, workflow.id) == 2

    assert db.query(Workflow).count() == 0
    assert db.query(WorkflowStep).count() == 0
    assert db.query(WorkflowsOnEventTypes).count() == 0
    assert [r.id for r in db.query(WorkflowReminder).all()] == [mandatory.id]
    assert workflow_repository.find_active_reminders_for_booking(
        db, "b-1", WorkflowMethod.EMAIL
    ) == [mandatory]


def test_link_is_idempotent_and_unlink(db, test_user):
    workflow = _create(db, test_user.id)

    link = workflow_repository.link_to_event_type(db, workflow.id, 3)
    again = workflow_repository.link_to_event_type(db, workflow.id, 3)
    assert link.id == again.id
    assert [w.id for w in workflow_repository.find_active_on_event_type(db, 3)] == [workflow.id]

    assert workflow_repository.unlink_from_event_type(db, workflow.id, 3) is True
    assert workflow_repository.unlink_from_event_type(db, workflow.id, 3) is False
    assert workflow_repository.find_active_on_event_type(db, 3) == []


def test_find_all_workflows_for_event_type_merges_and_deduplicates(db, test_user, test_team):
    linked = _create(db, test_user.id, name="Linked")
    both = _create(db, test_user.id, name="Both", is_active_on_all=True)
    team_all = _create(db, None, team_id=test_team.id, name="Team", is_active_on_all=True)
    _create(db, test_user.id, name="Unrelated")
    workflow_repository.link_to_event_type(db, linked.id, 5)
    workflow_repository.link_to_event_type(db, both.id, 5)

    user_scope = workflow_repository.find_all_workflows_for_event_type(db, 5, user_id=test_user.id)
    assert [w.id for w in user_scope] == [linked.id, both.id]

    team_scope = workflow_repository.find_all_workflows_for_event_type(
        db, 5, user_id=test_user.id, team_id=test_team.id
    )
    assert {w.id for w in team_scope} == {linked.id, both.id, team_all.id}
    assert len(team_scope) == 3


def _reminder(db, booking_uid="b-1", method="EMAIL", **fields):
    reminder = WorkflowReminder(
        booking_uid=booking_uid,
        method=method,
        scheduled_date=datetime(2026, 3, 10, tzinfo=timezone.utc),
        **fields,
    )
    db.add(reminder)
    db.commit()
    return reminder


def test_find_active_reminders_filters_method_and_state(db):
    active = workflow_repository.create_reminder(
        db,
        booking_uid="b-1",
        method=WorkflowMethod.EMAIL,
        scheduled_date=datetime(2026, 3, 10, tzinfo=timezone.utc),
    )
    _reminder(db, method="SMS", scheduled=True)
    _reminder(db, scheduled=True, cancelled=True)
    _reminder(db, scheduled=False)
    _reminder(db, booking_uid="b-2", scheduled=True)

    found = workflow_repository.find_active_reminders_for_booking(db, "b-1", WorkflowMethod.EMAIL)
    assert [r.id for r in found] == [active.id]
    assert active.uuid

    workflow_repository.mark_reminder_cancelled(db, active)
    assert workflow_repository.find_active_reminders_for_booking(db, "b-1", WorkflowMethod.EMAIL) == []


def test_delete_all_workflow_reminders_accepts_rows_and_ids(db):
    first = _reminder(db)
    second = _reminder(db)
    third = _reminder(db)

    assert workflow_repository.delete_all_workflow_reminders(db, [first, second.id]) == 2
    assert workflow_repository.delete_all_workflow_reminders(db, []) == 0
    assert [r.id for r in db.query(WorkflowReminder).all()] == [third.id]


def test_count_team_memberships(db, test_team):
    assert workflow_repository.count_team_memberships(db, test_team.id) == 1
    assert workflow_repository.count_team_memberships(db, 999) == 0
