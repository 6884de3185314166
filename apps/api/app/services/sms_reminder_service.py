"""SMS reminder dispatch."""

from __future__ import annotations

import logging
import os
from typing import Callable, Mapping

from app.core.config import settings
from app.core.structured_logging import build_log_context, mask_phone
from app.db.enums import JobType, WorkflowAction, WorkflowMethod
from app.db.models import Workflow, WorkflowStep
from app.schemas.workflow import CalendarEvent
from app.services import reminder_templates
from app.services.reminder_channel import ReminderChannelService
from app.services.reminder_results import ScheduleResult
from app.services.reminder_schedule import calculate_for_workflow
from app.services.task_scheduler import TaskScheduler
from app.services.workflow_actions import is_sms_action

logger = logging.getLogger(__name__)

SMS_CREDENTIAL_KEYS: tuple[str, ...] = ("TWILIO_SID", "TWILIO_TOKEN", "TWILIO_MESSAGING_SID")


def env_credentials() -> Mapping[str, str]:
    return os.environ


def sms_configured(credentials: Mapping[str, str]) -> bool:
    return all(credentials.get(key) for key in SMS_CREDENTIAL_KEYS)


def resolve_sms_recipient(
    step: WorkflowStep,
    event: CalendarEvent,
    sms_reminder_number: str | None = None,
) -> str | None:
    """Phone number the step delivers to, or None if it cannot be resolved."""
    action = step.action
    if action == WorkflowAction.SMS_ATTENDEE.value:
        if sms_reminder_number:
            return sms_reminder_number
        attendee = event.first_attendee
        return attendee.phone_number if attendee and attendee.phone_number else None
    if action == WorkflowAction.SMS_NUMBER.value:
        return step.send_to or None
    return None


class SmsReminderService(ReminderChannelService):
    method = WorkflowMethod.SMS
    job_type = JobType.WORKFLOW_SMS

    def __init__(
        self,
        db,
        task_scheduler: TaskScheduler,
        credentials: Callable[[], Mapping[str, str]] = env_credentials,
    ):
        super().__init__(db, task_scheduler)
        # Looked up on every dispatch, never cached
        self.credentials = credentials

    def is_configured(self) -> bool:
        return sms_configured(self.credentials())

    async def schedule_reminder(
        self,
        workflow: Workflow,
        step: WorkflowStep,
        event: CalendarEvent,
        *,
        sms_reminder_number: str | None = None,
        seat_reference_uid: str | None = None,
    ) -> ScheduleResult:
        """
        Schedule one SMS reminder for a workflow step.

        SMS_ATTENDEE steps whose number is still pending verification are
        refused whatever number is available. Never raises.
        """
        if not is_sms_action(step.action):
            return ScheduleResult.failed(f"Action {step.action} is not an SMS action")

        log_context = build_log_context(
            workflow_id=workflow.id, step_id=step.id, booking_uid=event.uid
        )
        try:
            if step.action == WorkflowAction.SMS_ATTENDEE.value and step.number_verification_pending:
                return ScheduleResult.failed("Phone number verification pending")

            if not self.is_configured():
                logger.warning("SMS provider is not configured", extra=log_context)
                return ScheduleResult.failed("SMS provider not configured")

            recipient = resolve_sms_recipient(step, event, sms_reminder_number)
            if not recipient:
                return ScheduleResult.failed("No recipient phone number")

            attendee = event.first_attendee
            locale = (attendee.locale if attendee else None) or settings.DEFAULT_LOCALE
            message = reminder_templates.render_sms(
                workflow.trigger,
                event,
                locale,
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
                    "message": message,
                    "sender": step.sender,
                    "booking_uid": event.uid,
                },
                workflow_step_id=step.id,
                seat_reference_uid=seat_reference_uid,
            )
        except Exception as exc:
            self.db.rollback()
            logger.exception("Failed to schedule SMS reminder", extra=log_context)
            return ScheduleResult.failed(str(exc))

        logger.info(
            "Scheduled SMS reminder %s to %s at %s",
            reminder.id,
            mask_phone(recipient),
            scheduled_date.isoformat(),
            extra=log_context,
        )
        return ScheduleResult.scheduled(reminder.id)
