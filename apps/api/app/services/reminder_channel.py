"""Shared plumbing of the per-channel reminder dispatchers."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from sqlalchemy.orm import Session

from app.core.structured_logging import build_log_context
from app.db.enums import JobType, WorkflowMethod
from app.db.models import WorkflowReminder
from app.services import workflow_repository
from app.services.task_scheduler import TaskScheduler

logger = logging.getLogger(__name__)


class ReminderChannelService:
    """
    Base for EmailReminderService and SmsReminderService.

    Every dispatch, immediate or timed, ends in ``hand_off``: a
    WorkflowReminder row is persisted and a delivery task keyed by the row's
    uuid is handed to the task scheduler.
    """

    method: WorkflowMethod
    job_type: JobType

    def __init__(self, db: Session, task_scheduler: TaskScheduler):
        self.db = db
        self.task_scheduler = task_scheduler

    async def hand_off(
        self,
        *,
        booking_uid: str | None,
        scheduled_date: datetime,
        payload: dict[str, Any],
        workflow_step_id: int | None,
        seat_reference_uid: str | None,
    ) -> WorkflowReminder:
        reminder = workflow_repository.create_reminder(
            self.db,
            booking_uid=booking_uid,
            method=self.method,
            scheduled_date=scheduled_date,
            workflow_step_id=workflow_step_id,
            seat_reference_id=seat_reference_uid,
        )
        await self.task_scheduler.create(
            self.job_type,
            {"reminder_id": reminder.id, "reminder_uuid": reminder.uuid, **payload},
            scheduled_at=scheduled_date,
            reference_uid=reminder.uuid,
        )
        return reminder

    async def cancel_reminders_for_booking(self, booking_uid: str) -> int:
        """
        Cancel this channel's active reminders for a booking.

        Returns the number of reminders cancelled. A second call finds nothing
        left to cancel and returns 0. Errors stop the loop and are logged;
        reminders already cancelled stay cancelled.
        """
        cancelled = 0
        try:
            reminders = workflow_repository.find_active_reminders_for_booking(
                self.db, booking_uid, self.method
            )
            for reminder in reminders:
                if reminder.uuid:
                    await self.task_scheduler.cancel(reminder.uuid)
                workflow_repository.mark_reminder_cancelled(self.db, reminder)
                cancelled += 1
        except Exception:
            self.db.rollback()
            logger.exception(
                "Failed to cancel %s reminders",
                self.method.value,
                extra=build_log_context(booking_uid=booking_uid),
            )
            return cancelled

        if cancelled:
            logger.info(
                "Cancelled %s %s reminder(s)",
                cancelled,
                self.method.value,
                extra=build_log_context(booking_uid=booking_uid),
            )
        return cancelled
