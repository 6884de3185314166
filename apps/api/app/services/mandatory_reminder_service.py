"""Mandatory email reminder for Gmail attendees.

Gmail attendees get a plain email reminder one hour before the event unless
one of the booking's workflows already emails attendees close to the start.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Iterable

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.structured_logging import build_log_context, mask_email
from app.db.enums import TimeUnit, WorkflowAction, WorkflowTriggerEvent
from app.db.models import Workflow
from app.schemas.workflow import CalendarEvent
from app.services import reminder_templates
from app.services.email_reminder_service import EmailReminderService
from app.services.task_scheduler import TaskScheduler

logger = logging.getLogger(__name__)

MANDATORY_REMINDER_OFFSET = timedelta(hours=1)
GMAIL_DOMAIN = "@gmail.com"


def _covers_attendee_reminder(workflow: Workflow) -> bool:
    if workflow.trigger != WorkflowTriggerEvent.BEFORE_EVENT.value or workflow.time is None:
        return False
    close_enough = (
        (workflow.time_unit == TimeUnit.HOUR.value and workflow.time <= 12)
        or (workflow.time_unit == TimeUnit.MINUTE.value and workflow.time <= 720)
    )
    if not close_enough:
        return False
    return any(step.action == WorkflowAction.EMAIL_ATTENDEE.value for step in workflow.steps)


def has_attendee_email_workflow(workflows: Iterable[Workflow]) -> bool:
    """A BEFORE_EVENT workflow within 12 hours of the start already emails attendees."""
    return any(_covers_attendee_reminder(workflow) for workflow in workflows)


async def schedule_mandatory_reminder(
    db: Session,
    task_scheduler: TaskScheduler,
    event: CalendarEvent,
    workflows: Iterable[Workflow],
    *,
    requires_confirmation: bool,
    seat_reference_uid: str | None = None,
    is_platform_no_email: bool = False,
    is_dry_run: bool = False,
) -> list[int]:
    """
    Schedule the mandatory reminder for every Gmail attendee.

    Returns the ids of the reminders created. Errors are logged, never raised.
    """
    if is_dry_run or is_platform_no_email or not settings.MANDATORY_REMINDER_ENABLED:
        return []
    if requires_confirmation:
        return []

    log_context = build_log_context(booking_uid=event.uid)
    reminder_ids: list[int] = []
    try:
        if has_attendee_email_workflow(workflows):
            return []

        gmail_attendees = [a for a in event.attendees if GMAIL_DOMAIN in (a.email or "").lower()]
        if not gmail_attendees:
            return []

        locale = gmail_attendees[0].locale or settings.DEFAULT_LOCALE
        scheduled_date = event.start_time - MANDATORY_REMINDER_OFFSET
        email_service = EmailReminderService(db, task_scheduler)

        for attendee in gmail_attendees:
            attendee_event = event.model_copy(update={"attendees": (attendee,)})
            subject, body = reminder_templates.render_email(
                WorkflowTriggerEvent.BEFORE_EVENT,
                attendee_event,
                locale,
                subject_override=reminder_templates.get_default_reminder_subject(locale),
                body_override=reminder_templates.get_default_reminder_body(locale),
            )
            reminder = await email_service.hand_off(
                booking_uid=event.uid,
                scheduled_date=scheduled_date,
                payload={
                    "to": attendee.email,
                    "subject": subject,
                    "body": body,
                    "booking_uid": event.uid,
                },
                workflow_step_id=None,
                seat_reference_uid=seat_reference_uid,
            )
            reminder_ids.append(reminder.id)
            logger.info(
                "Scheduled mandatory reminder %s to %s",
                reminder.id,
                mask_email(attendee.email),
                extra=log_context,
            )
    except Exception:
        db.rollback()
        logger.exception("Error scheduling mandatory reminders", extra=log_context)
    return reminder_ids
