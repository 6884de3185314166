"""Deferred delivery task scheduling.

Reminder dispatch never delivers messages itself. It hands a task to a
``TaskScheduler`` keyed by the reminder's correlation id; whoever runs the
task re-loads the WorkflowReminder and performs delivery.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Protocol

from sqlalchemy.orm import Session

from app.db.enums import JobType
from app.services import job_service

logger = logging.getLogger(__name__)


class TaskScheduler(Protocol):
    async def create(
        self,
        task_type: JobType,
        payload: dict[str, Any],
        *,
        scheduled_at: datetime,
        reference_uid: str | None,
    ) -> Any: ...

    async def cancel(self, reference_uid: str) -> bool: ...


class JobTaskScheduler:
    """TaskScheduler backed by the ``jobs`` table."""

    def __init__(self, db: Session):
        self.db = db

    async def create(
        self,
        task_type: JobType,
        payload: dict[str, Any],
        *,
        scheduled_at: datetime,
        reference_uid: str | None,
    ):
        job = job_service.schedule_job(
            self.db,
            job_type=task_type,
            payload=payload,
            run_at=scheduled_at,
            idempotency_key=reference_uid,
        )
        logger.debug("Scheduled %s job %s for %s", task_type.value, job.id, scheduled_at.isoformat())
        return job

    async def cancel(self, reference_uid: str) -> bool:
        job = job_service.cancel_job_by_key(self.db, reference_uid)
        if not job:
            logger.debug("No pending job for reference %s", reference_uid)
            return False
        return True
