"""SQLAlchemy ORM models."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    JSON,
    Index,
    Integer,
    String,
    Text,
    func,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base
from app.db.enums import (
    DEFAULT_JOB_STATUS,
)


class Job(Base):
    """
    Deferred delivery task.

    Reminder dispatch never sends anything itself: it schedules a job that
    re-loads the WorkflowReminder at ``run_at`` and delivers it.
    ``idempotency_key`` carries the reminder's correlation id so the job can
    be found again and cancelled.
    """

    __tablename__ = "jobs"
    __table_args__ = (
        Index("idx_jobs_pending", "status", "run_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    job_type: Mapped[str] = mapped_column(String(50), nullable=False)
    payload: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    run_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20),
        server_default=text(f"'{DEFAULT_JOB_STATUS.value}'"),
        default=DEFAULT_JOB_STATUS.value,
        nullable=False,
    )
    attempts: Mapped[int] = mapped_column(Integer, server_default=text("0"), default=0, nullable=False)
    max_attempts: Mapped[int] = mapped_column(Integer, server_default=text("3"), default=3, nullable=False)
    last_error: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)
    completed_at: Mapped[datetime | None] = mapped_column(nullable=True)

    # Correlation id of the reminder that owns this job
    idempotency_key: Mapped[str | None] = mapped_column(String(255), unique=True, nullable=True)
