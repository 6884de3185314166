"""Reminder scheduler - fans workflow steps out to the channel dispatchers."""

from __future__ import annotations

import asyncio
import logging
from typing import Iterable

from sqlalchemy.orm import Session

from app.core.structured_logging import build_log_context
from app.db.models import Workflow
from app.schemas.workflow import CalendarEvent
from app.services.email_reminder_service import EmailReminderService
from app.services.reminder_results import ScheduleAllResult, ScheduleResult
from app.services.sms_reminder_service import SmsReminderService
from app.services.task_scheduler import TaskScheduler
from app.services.workflow_actions import (
    is_email_action,
    is_sms_action,
    is_supported_action,
    is_supported_trigger,
)

logger = logging.getLogger(__name__)


class ReminderScheduler:
    def __init__(
        self,
        db: Session,
        task_scheduler: TaskScheduler,
        *,
        email_service: EmailReminderService | None = None,
        sms_service: SmsReminderService | None = None,
    ):
        self.email_service = email_service or EmailReminderService(db, task_scheduler)
        self.sms_service = sms_service or SmsReminderService(db, task_scheduler)

    async def schedule_all(
        self,
        workflows: Iterable[Workflow],
        event: CalendarEvent,
        *,
        is_dry_run: bool = False,
        email_attendee_send_to_override: str | None = None,
        sms_reminder_number: str | None = None,
        seat_reference_uid: str | None = None,
    ) -> ScheduleAllResult:
        """
        Dispatch every step of every workflow, in order, one at a time.

        Steps with an unsupported action (or under an unsupported trigger)
        are counted as skipped without touching a dispatcher. A failing step
        never prevents the next one from being attempted.
        """
        summary = ScheduleAllResult()
        if is_dry_run:
            return summary

        for workflow in workflows:
            trigger_supported = is_supported_trigger(workflow.trigger)
            for step in workflow.steps:
                if not trigger_supported:
                    result = ScheduleResult.skipped(f"unsupported trigger {workflow.trigger}")
                elif not is_supported_action(step.action):
                    result = ScheduleResult.skipped(f"unsupported action {step.action}")
                elif is_email_action(step.action):
                    result = await self.email_service.schedule_reminder(
                        workflow,
                        step,
                        event,
                        email_attendee_send_to_override=email_attendee_send_to_override,
                        seat_reference_uid=seat_reference_uid,
                    )
                elif is_sms_action(step.action):
                    result = await self.sms_service.schedule_reminder(
                        workflow,
                        step,
                        event,
                        sms_reminder_number=sms_reminder_number,
                        seat_reference_uid=seat_reference_uid,
                    )
                else:
                    result = ScheduleResult.skipped(f"unsupported action {step.action}")
                summary.add(workflow.id, step.id, result)

        logger.info(
            "Scheduled reminders: %s scheduled, %s failed, %s skipped",
            summary.scheduled,
            summary.failed,
            summary.skipped,
            extra=build_log_context(booking_uid=event.uid),
        )
        return summary

    async def cancel_all_for_booking(self, booking_uid: str) -> int:
        """
        Cancel email and SMS reminders of a booking concurrently.

        Both channels always run to completion; if either raised, the first
        error is re-raised afterwards.
        """
        outcomes = await asyncio.gather(
            self.email_service.cancel_reminders_for_booking(booking_uid),
            self.sms_service.cancel_reminders_for_booking(booking_uid),
            return_exceptions=True,
        )
        for outcome in outcomes:
            if isinstance(outcome, BaseException):
                raise outcome
        return sum(outcomes)
