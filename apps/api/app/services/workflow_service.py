"""Workflow service - decides which workflows fire on a booking lifecycle event."""

from __future__ import annotations

import logging
from typing import Iterable, Sequence

from sqlalchemy.orm import Session

from app.core.structured_logging import build_log_context
from app.db.enums import WorkflowTriggerEvent
from app.db.models import Workflow
from app.schemas.workflow import CalendarEvent
from app.services import workflow_repository
from app.services.reminder_results import ScheduleAllResult
from app.services.reminder_scheduler import ReminderScheduler
from app.services.task_scheduler import JobTaskScheduler, TaskScheduler
from app.services.workflow_actions import is_supported_trigger

logger = logging.getLogger(__name__)

BEFORE_AFTER_EVENT_TRIGGERS: tuple[str, ...] = (
    WorkflowTriggerEvent.BEFORE_EVENT.value,
    WorkflowTriggerEvent.AFTER_EVENT.value,
)


def _reminder_scheduler(db: Session, task_scheduler: TaskScheduler | None) -> ReminderScheduler:
    return ReminderScheduler(db, task_scheduler or JobTaskScheduler(db))


# =============================================================================
# Workflow lookup
# =============================================================================


def get_all_workflows_from_event_type(
    db: Session,
    event_type_id: int,
    user_id: int | None = None,
    team_id: int | None = None,
) -> list[Workflow]:
    """
    Workflows with a supported trigger that apply to an event type.

    Lookup errors are logged and degrade to an empty list.
    """
    try:
        workflows = workflow_repository.find_all_workflows_for_event_type(
            db, event_type_id, user_id=user_id, team_id=team_id
        )
    except Exception:
        db.rollback()
        logger.exception(
            "Failed to get workflows for event type %s",
            event_type_id,
            extra=build_log_context(team_id=team_id),
        )
        return []
    return [w for w in workflows if is_supported_trigger(w.trigger)]


def _resolve_workflows(
    db: Session,
    workflows: Sequence[Workflow] | None,
    event_type_id: int | None,
    user_id: int | None,
    team_id: int | None,
) -> list[Workflow]:
    if workflows is not None:
        return list(workflows)
    if event_type_id:
        return get_all_workflows_from_event_type(db, event_type_id, user_id, team_id)
    return []


# =============================================================================
# Trigger selection
# =============================================================================


def select_workflows_for_booking(
    workflows: Iterable[Workflow],
    *,
    is_confirmed_by_default: bool,
    is_reschedule_event: bool,
    is_normal_booking_or_first_recurring_slot: bool,
) -> list[Workflow]:
    """
    Pick the workflows a booking state fires.

    - Reschedule: RESCHEDULE_EVENT plus the timed reminders, which re-anchor
      to the new times.
    - New and unconfirmed: nothing. NEW_EVENT waits for the confirmation.
    - New and confirmed: the timed reminders, plus NEW_EVENT for an original
      booking or the first slot of a recurring series.
    """
    if is_reschedule_event:
        return [
            w
            for w in workflows
            if w.trigger == WorkflowTriggerEvent.RESCHEDULE_EVENT.value
            or w.trigger in BEFORE_AFTER_EVENT_TRIGGERS
        ]
    if not is_confirmed_by_default:
        return []
    return [
        w
        for w in workflows
        if w.trigger in BEFORE_AFTER_EVENT_TRIGGERS
        or (
            is_normal_booking_or_first_recurring_slot
            and w.trigger == WorkflowTriggerEvent.NEW_EVENT.value
        )
    ]


# =============================================================================
# Booking lifecycle entry points
# =============================================================================


async def schedule_workflows_for_new_booking(
    db: Session,
    event: CalendarEvent,
    *,
    is_confirmed_by_default: bool,
    is_reschedule_event: bool,
    is_normal_booking_or_first_recurring_slot: bool,
    workflows: Sequence[Workflow] | None = None,
    event_type_id: int | None = None,
    user_id: int | None = None,
    team_id: int | None = None,
    sms_reminder_number: str | None = None,
    seat_reference_uid: str | None = None,
    is_dry_run: bool = False,
    task_scheduler: TaskScheduler | None = None,
) -> ScheduleAllResult:
    """
    Schedule the reminders a new (or rescheduled) booking fires.

    ``workflows`` wins when given; otherwise they are loaded by event type.
    """
    all_workflows = _resolve_workflows(db, workflows, event_type_id, user_id, team_id)
    if not all_workflows:
        logger.debug("No workflows to schedule for event type %s", event_type_id)
        return ScheduleAllResult()

    to_trigger = select_workflows_for_booking(
        all_workflows,
        is_confirmed_by_default=is_confirmed_by_default,
        is_reschedule_event=is_reschedule_event,
        is_normal_booking_or_first_recurring_slot=is_normal_booking_or_first_recurring_slot,
    )
    if not to_trigger:
        logger.debug(
            "No matching workflows (reschedule=%s, confirmed=%s)",
            is_reschedule_event,
            is_confirmed_by_default,
            extra=build_log_context(booking_uid=event.uid),
        )
        return ScheduleAllResult()

    result = await _reminder_scheduler(db, task_scheduler).schedule_all(
        to_trigger,
        event,
        is_dry_run=is_dry_run,
        sms_reminder_number=sms_reminder_number,
        seat_reference_uid=seat_reference_uid,
    )
    logger.info(
        "Scheduled %s workflow(s) for new booking",
        len(to_trigger),
        extra=build_log_context(booking_uid=event.uid),
    )
    return result


async def schedule_workflows_filtered_by_trigger_event(
    db: Session,
    event: CalendarEvent,
    triggers: Iterable[WorkflowTriggerEvent],
    *,
    workflows: Sequence[Workflow] | None = None,
    event_type_id: int | None = None,
    user_id: int | None = None,
    team_id: int | None = None,
    sms_reminder_number: str | None = None,
    seat_reference_uid: str | None = None,
    is_dry_run: bool = False,
    task_scheduler: TaskScheduler | None = None,
) -> ScheduleAllResult:
    """Schedule only the workflows whose trigger is one of ``triggers``."""
    all_workflows = _resolve_workflows(db, workflows, event_type_id, user_id, team_id)
    if not all_workflows:
        logger.debug("No workflows found for event type %s", event_type_id)
        return ScheduleAllResult()

    wanted = {WorkflowTriggerEvent(t).value for t in triggers}
    matching = [w for w in all_workflows if w.trigger in wanted]
    if not matching:
        logger.debug("No workflows matching triggers %s", sorted(wanted))
        return ScheduleAllResult()

    return await _reminder_scheduler(db, task_scheduler).schedule_all(
        matching,
        event,
        is_dry_run=is_dry_run,
        sms_reminder_number=sms_reminder_number,
        seat_reference_uid=seat_reference_uid,
    )


async def cancel_workflows_for_booking(
    db: Session,
    booking_uid: str,
    *,
    task_scheduler: TaskScheduler | None = None,
) -> int:
    """Cancel every active reminder of a booking. Returns how many were cancelled."""
    cancelled = await _reminder_scheduler(db, task_scheduler).cancel_all_for_booking(booking_uid)
    logger.info(
        "Cancelled %s reminder(s) for booking",
        cancelled,
        extra=build_log_context(booking_uid=booking_uid),
    )
    return cancelled


async def handle_booking_cancellation(
    db: Session,
    event: CalendarEvent,
    *,
    event_type_id: int | None = None,
    user_id: int | None = None,
    team_id: int | None = None,
    workflows: Sequence[Workflow] | None = None,
    sms_reminder_number: str | None = None,
    task_scheduler: TaskScheduler | None = None,
) -> ScheduleAllResult:
    """Cancel the booking's reminders, then fire EVENT_CANCELLED workflows."""
    if event.uid:
        await cancel_workflows_for_booking(db, event.uid, task_scheduler=task_scheduler)

    return await schedule_workflows_filtered_by_trigger_event(
        db,
        event,
        [WorkflowTriggerEvent.EVENT_CANCELLED],
        workflows=workflows,
        event_type_id=event_type_id,
        user_id=user_id,
        team_id=team_id,
        sms_reminder_number=sms_reminder_number,
        task_scheduler=task_scheduler,
    )


async def handle_booking_reschedule(
    db: Session,
    event: CalendarEvent,
    *,
    previous_booking_uid: str | None = None,
    event_type_id: int | None = None,
    user_id: int | None = None,
    team_id: int | None = None,
    workflows: Sequence[Workflow] | None = None,
    sms_reminder_number: str | None = None,
    task_scheduler: TaskScheduler | None = None,
) -> ScheduleAllResult:
    """Cancel the previous booking's reminders and schedule for the new times."""
    if previous_booking_uid:
        await cancel_workflows_for_booking(db, previous_booking_uid, task_scheduler=task_scheduler)

    return await schedule_workflows_for_new_booking(
        db,
        event,
        is_confirmed_by_default=True,
        is_reschedule_event=True,
        is_normal_booking_or_first_recurring_slot=True,
        workflows=workflows,
        event_type_id=event_type_id,
        user_id=user_id,
        team_id=team_id,
        sms_reminder_number=sms_reminder_number,
        task_scheduler=task_scheduler,
    )


def handle_team_removal(db: Session, team_id: int) -> int:
    """Delete every reminder created by the team's workflows."""
    deleted = workflow_repository.delete_reminders_for_team(db, team_id)
    logger.info(
        "Deleted %s reminder(s) for removed team",
        deleted,
        extra=build_log_context(team_id=team_id),
    )
    return deleted
