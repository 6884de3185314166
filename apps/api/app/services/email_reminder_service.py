"""Email reminder dispatch."""

from __future__ import annotations

import logging

from app.core.config import settings
from app.core.structured_logging import build_log_context, mask_email
from app.db.enums import JobType, WorkflowAction, WorkflowMethod
from app.db.models import Workflow, WorkflowStep
from app.schemas.workflow import CalendarEvent
from app.services import reminder_templates
from app.services.reminder_channel import ReminderChannelService
from app.services.reminder_results import ScheduleResult
from app.services.reminder_schedule import calculate_for_workflow
from app.services.workflow_actions import is_email_action

logger = logging.getLogger(__name__)


def resolve_email_recipient(
    step: WorkflowStep,
    event: CalendarEvent,
    send_to_override: str | None = None,
) -> str | None:
    """Email address the step delivers to, or None if it cannot be resolved."""
    action = step.action
    if action == WorkflowAction.EMAIL_HOST.value:
        return event.organizer.email or None
    if action == WorkflowAction.EMAIL_ATTENDEE.value:
        if send_to_override:
            return send_to_override
        attendee = event.first_attendee
        return attendee.email if attendee and attendee.email else None
    if action == WorkflowAction.EMAIL_ADDRESS.value:
        return step.send_to or None
    return None


class EmailReminderService(ReminderChannelService):
    method = WorkflowMethod.EMAIL
    job_type = JobType.WORKFLOW_EMAIL

    async def schedule_reminder(
        self,
        workflow: Workflow,
        step: WorkflowStep,
        event: CalendarEvent,
        *,
        email_attendee_send_to_override: str | None = None,
        seat_reference_uid: str | None = None,
    ) -> ScheduleResult:
        """
        Schedule one email reminder for a workflow step.

        Never raises: every problem is reported as a failed result.
        """
        if not is_email_action(step.action):
            return ScheduleResult.failed(f"Action {step.action} is not an email action")

        log_context = build_log_context(
            workflow_id=workflow.id, step_id=step.id, booking_uid=event.uid
        )
        try:
            recipient = resolve_email_recipient(step, event, email_attendee_send_to_override)
            if not recipient:
                return ScheduleResult.failed("No recipient email address")

            attendee = event.first_attendee
            locale = (attendee.locale if attendee else None) or settings.DEFAULT_LOCALE
            subject, body = reminder_templates.render_email(
                workflow.trigger,
                event,
                locale,
                subject_override=step.email_subject,
                body_override=step.reminder_body,
            )

            scheduled_date = calculate_for_workflow(workflow, event.start_time, event.end_time)
            if scheduled_date is None:
                return ScheduleResult.failed("Could not calculate scheduled date")

            reminder = await self.hand_off(
                booking_uid=event.uid,
                scheduled_date=scheduled_date,
                payload={
                    "to": recipient,
                    "subject": subject,
                    "body": body,
                    "sender": step.sender,
                    "include_calendar_event": step.include_calendar_event,
                    "booking_uid": event.uid,
                },
                workflow_step_id=step.id,
                seat_reference_uid=seat_reference_uid,
            )
        except Exception as exc:
            self.db.rollback()
            logger.exception("Failed to schedule email reminder", extra=log_context)
            return ScheduleResult.failed(str(exc))

        logger.info(
            "Scheduled email reminder %s to %s at %s",
            reminder.id,
            mask_email(recipient),
            scheduled_date.isoformat(),
            extra=log_context,
        )
        return ScheduleResult.scheduled(reminder.id)
