"""Job service - persistence for deferred reminder delivery jobs."""

from datetime import datetime, timezone

from sqlalchemy.orm import Session

from app.db.models import Job
from app.db.enums import JobStatus, JobType


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def schedule_job(
    db: Session,
    job_type: JobType,
    payload: dict,
    run_at: datetime | None = None,
    idempotency_key: str | None = None,
) -> Job:
    """
    Schedule a new background job.

    If run_at is None, the job runs immediately.
    If idempotency_key is provided, duplicate jobs with same key will fail
    with IntegrityError (caller should catch and handle).
    """
    job = Job(
        job_type=job_type.value,
        payload=payload,
        run_at=run_at or _utcnow(),
        status=JobStatus.PENDING.value,
        idempotency_key=idempotency_key,
    )
    db.add(job)
    db.commit()
    db.refresh(job)
    return job


def get_job_by_key(db: Session, idempotency_key: str) -> Job | None:
    """Get a job by its idempotency key."""
    return db.query(Job).filter(Job.idempotency_key == idempotency_key).first()


def cancel_job_by_key(db: Session, idempotency_key: str) -> Job | None:
    """
    Cancel the pending job carrying ``idempotency_key``.

    Returns the cancelled job, or None when no pending job has that key
    (already running, finished or never scheduled).
    """
    job = (
        db.query(Job)
        .filter(
            Job.idempotency_key == idempotency_key,
            Job.status == JobStatus.PENDING.value,
        )
        .first()
    )
    if not job:
        return None
    job.status = JobStatus.CANCELLED.value
    db.commit()
    db.refresh(job)
    return job
