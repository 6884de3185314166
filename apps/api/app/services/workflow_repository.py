"""Workflow repository - data access for workflows, steps and reminders."""

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from app.db.enums import TimeUnit, WorkflowMethod, WorkflowTriggerEvent
from app.db.models import (
    Membership,
    Workflow,
    WorkflowReminder,
    WorkflowStep,
    WorkflowsOnEventTypes,
)
from app.schemas.workflow import WorkflowCreate, WorkflowStepCreate, WorkflowUpdate


class WorkflowNotFoundError(LookupError):
    """Raised when a workflow id does not resolve to a row."""

    def __init__(self, workflow_id: int):
        super().__init__(f"Workflow {workflow_id} not found")
        self.workflow_id = workflow_id


# =============================================================================
# Workflow queries
# =============================================================================


def find_by_id(db: Session, workflow_id: int) -> Workflow | None:
    return db.query(Workflow).filter(Workflow.id == workflow_id).first()


def _get_or_raise(db: Session, workflow_id: int) -> Workflow:
    workflow = find_by_id(db, workflow_id)
    if not workflow:
        raise WorkflowNotFoundError(workflow_id)
    return workflow


def find_by_user_id(db: Session, user_id: int) -> list[Workflow]:
    """Personal workflows of a user."""
    return (
        db.query(Workflow)
        .filter(Workflow.user_id == user_id)
        .order_by(Workflow.position, Workflow.id)
        .all()
    )


def find_by_team_id(db: Session, team_id: int) -> list[Workflow]:
    return (
        db.query(Workflow)
        .filter(Workflow.team_id == team_id)
        .order_by(Workflow.position, Workflow.id)
        .all()
    )


def find_active_on_event_type(db: Session, event_type_id: int) -> list[Workflow]:
    """Workflows explicitly linked to an event type."""
    return (
        db.query(Workflow)
        .join(WorkflowsOnEventTypes, WorkflowsOnEventTypes.workflow_id == Workflow.id)
        .filter(WorkflowsOnEventTypes.event_type_id == event_type_id)
        .order_by(Workflow.position, Workflow.id)
        .all()
    )


def find_all_workflows_for_event_type(
    db: Session,
    event_type_id: int,
    user_id: int | None = None,
    team_id: int | None = None,
) -> list[Workflow]:
    """
    Every workflow that applies to bookings of an event type.

    That is the workflows linked to the event type plus the
    ``is_active_on_all`` workflows of the owning user or team. Each workflow
    appears once even when it matches both ways.
    """
    workflows = find_active_on_event_type(db, event_type_id)

    owner_filters = []
    if user_id is not None:
        owner_filters.append(Workflow.user_id == user_id)
    if team_id is not None:
        owner_filters.append(Workflow.team_id == team_id)
    if owner_filters:
        workflows += (
            db.query(Workflow)
            .filter(Workflow.is_active_on_all.is_(True), or_(*owner_filters))
            .order_by(Workflow.position, Workflow.id)
            .all()
        )

    seen: set[int] = set()
    unique: list[Workflow] = []
    for workflow in workflows:
        if workflow.id in seen:
            continue
        seen.add(workflow.id)
        unique.append(workflow)
    return unique


# =============================================================================
# Workflow mutations
# =============================================================================


def _check_offset(trigger: str, time: int | None, time_unit: str | None) -> None:
    if (time is None) != (time_unit is None):
        raise ValueError("time and time_unit must be set together")
    if trigger in (
        WorkflowTriggerEvent.BEFORE_EVENT.value,
        WorkflowTriggerEvent.AFTER_EVENT.value,
    ) and time is None:
        raise ValueError(f"{trigger} requires time and time_unit")


def create_workflow(db: Session, data: WorkflowCreate) -> Workflow:
    workflow = Workflow(
        name=data.name,
        trigger=data.trigger.value,
        time=data.time,
        time_unit=data.time_unit.value if data.time_unit else None,
        user_id=data.user_id,
        team_id=data.team_id,
        is_active_on_all=data.is_active_on_all,
    )
    db.add(workflow)
    db.commit()
    db.refresh(workflow)
    return workflow


def update_workflow(db: Session, workflow_id: int, data: WorkflowUpdate) -> Workflow:
    """Apply a partial update; the resulting offset must still be consistent."""
    workflow = _get_or_raise(db, workflow_id)

    trigger = data.trigger.value if data.trigger is not None else workflow.trigger
    if data.time is not None:
        time, time_unit = data.time, TimeUnit(data.time_unit).value
    elif "time" in data.model_fields_set:
        # Explicit nulls clear the offset
        time, time_unit = None, None
    else:
        time, time_unit = workflow.time, workflow.time_unit
    _check_offset(trigger, time, time_unit)

    if data.name is not None:
        workflow.name = data.name
    if data.is_active_on_all is not None:
        workflow.is_active_on_all = data.is_active_on_all
    workflow.trigger = trigger
    workflow.time = time
    workflow.time_unit = time_unit

    db.commit()
    db.refresh(workflow)
    return workflow


def delete_workflow(db: Session, workflow_id: int) -> int:
    """
    Delete a workflow with its steps, event type links and reminders.

    Delivery jobs re-load their reminder, so removing the rows stops any
    pending delivery. Returns the number of reminders deleted.
    """
    workflow = _get_or_raise(db, workflow_id)
    step_ids = db.query(WorkflowStep.id).filter(WorkflowStep.workflow_id == workflow.id)
    deleted = (
        db.query(WorkflowReminder)
        .filter(WorkflowReminder.workflow_step_id.in_(step_ids.scalar_subquery()))
        .delete(synchronize_session=False)
    )
    db.delete(workflow)
    db.commit()
    return deleted


def add_step(db: Session, workflow_id: int, data: WorkflowStepCreate) -> WorkflowStep:
    """Append a step; without an explicit number it goes after the last one."""
    workflow = _get_or_raise(db, workflow_id)

    step_number = data.step_number
    if step_number is None:
        current = (
            db.query(func.max(WorkflowStep.step_number))
            .filter(WorkflowStep.workflow_id == workflow.id)
            .scalar()
        )
        step_number = (current or 0) + 1

    step = WorkflowStep(
        workflow_id=workflow.id,
        step_number=step_number,
        action=data.action.value,
        send_to=data.send_to,
        template=data.template.value,
        reminder_body=data.reminder_body,
        email_subject=data.email_subject,
        sender=data.sender,
        include_calendar_event=data.include_calendar_event,
        number_verification_pending=data.number_verification_pending,
        number_required=data.number_required,
    )
    db.add(step)
    db.commit()
    db.refresh(step)
    db.expire(workflow, ["steps"])
    return step


def count_steps(db: Session, workflow_id: int) -> int:
    return (
        db.query(func.count(WorkflowStep.id))
        .filter(WorkflowStep.workflow_id == workflow_id)
        .scalar()
    ) or 0


def link_to_event_type(db: Session, workflow_id: int, event_type_id: int) -> WorkflowsOnEventTypes:
    """Activate a workflow on an event type. Linking twice is a no-op."""
    workflow = _get_or_raise(db, workflow_id)
    existing = (
        db.query(WorkflowsOnEventTypes)
        .filter(
            WorkflowsOnEventTypes.workflow_id == workflow.id,
            WorkflowsOnEventTypes.event_type_id == event_type_id,
        )
        .first()
    )
    if existing:
        return existing

    link = WorkflowsOnEventTypes(workflow_id=workflow.id, event_type_id=event_type_id)
    db.add(link)
    db.commit()
    db.refresh(link)
    return link


def unlink_from_event_type(db: Session, workflow_id: int, event_type_id: int) -> bool:
    deleted = (
        db.query(WorkflowsOnEventTypes)
        .filter(
            WorkflowsOnEventTypes.workflow_id == workflow_id,
            WorkflowsOnEventTypes.event_type_id == event_type_id,
        )
        .delete(synchronize_session=False)
    )
    db.commit()
    return deleted > 0


def count_team_memberships(db: Session, team_id: int, accepted_only: bool = True) -> int:
    query = db.query(func.count(Membership.id)).filter(Membership.team_id == team_id)
    if accepted_only:
        query = query.filter(Membership.accepted.is_(True))
    return query.scalar() or 0


# =============================================================================
# Reminders
# =============================================================================


def create_reminder(
    db: Session,
    *,
    booking_uid: str | None,
    method: WorkflowMethod,
    scheduled_date,
    workflow_step_id: int | None = None,
    seat_reference_id: str | None = None,
) -> WorkflowReminder:
    """Persist a reminder that has been handed off for delivery."""
    reminder = WorkflowReminder(
        booking_uid=booking_uid,
        method=method.value,
        scheduled_date=scheduled_date,
        workflow_step_id=workflow_step_id,
        seat_reference_id=seat_reference_id,
        scheduled=True,
        cancelled=False,
    )
    db.add(reminder)
    db.commit()
    db.refresh(reminder)
    return reminder


def find_active_reminders_for_booking(
    db: Session,
    booking_uid: str,
    method: WorkflowMethod,
) -> list[WorkflowReminder]:
    """Scheduled, not yet cancelled reminders of one channel for a booking."""
    return (
        db.query(WorkflowReminder)
        .filter(
            WorkflowReminder.booking_uid == booking_uid,
            WorkflowReminder.method == method.value,
            WorkflowReminder.scheduled.is_(True),
            WorkflowReminder.cancelled.is_(False),
        )
        .order_by(WorkflowReminder.id)
        .all()
    )


def mark_reminder_cancelled(db: Session, reminder: WorkflowReminder) -> WorkflowReminder:
    reminder.cancelled = True
    db.commit()
    db.refresh(reminder)
    return reminder


def delete_all_workflow_reminders(db: Session, reminders) -> int:
    """Delete reminders given as rows or ids. Returns the number deleted."""
    ids = [r if isinstance(r, int) else r.id for r in reminders]
    if not ids:
        return 0
    deleted = (
        db.query(WorkflowReminder)
        .filter(WorkflowReminder.id.in_(ids))
        .delete(synchronize_session=False)
    )
    db.commit()
    return deleted


def delete_reminders_for_team(db: Session, team_id: int) -> int:
    """Delete every reminder whose step belongs to a workflow owned by the team."""
    step_ids = (
        db.query(WorkflowStep.id)
        .join(Workflow, Workflow.id == WorkflowStep.workflow_id)
        .filter(Workflow.team_id == team_id)
    )
    deleted = (
        db.query(WorkflowReminder)
        .filter(WorkflowReminder.workflow_step_id.in_(step_ids.scalar_subquery()))
        .delete(synchronize_session=False)
    )
    db.commit()
    return deleted
