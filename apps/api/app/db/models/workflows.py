"""SQLAlchemy ORM models."""

from __future__ import annotations

from typing import TYPE_CHECKING

import uuid
from datetime import datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base
from app.db.enums import DEFAULT_WORKFLOW_TEMPLATE

if TYPE_CHECKING:
    from app.db.models import Team, User


class Workflow(Base):
    """
    Booking automation workflow.

    A workflow is owned by exactly one user or one team, fires on a single
    booking trigger and runs its steps in order. Timed triggers
    (BEFORE_EVENT/AFTER_EVENT) carry an offset made of ``time`` + ``time_unit``.
    """

    __tablename__ = "workflows"
    __table_args__ = (
        # Exactly one owner
        CheckConstraint(
            "(user_id IS NULL) <> (team_id IS NULL)",
            name="workflow_single_owner",
        ),
        # Offset is all-or-nothing
        CheckConstraint(
            "(time IS NULL) = (time_unit IS NULL)",
            name="workflow_time_pair",
        ),
        Index("idx_workflow_user", "user_id"),
        Index("idx_workflow_team", "team_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    position: Mapped[int] = mapped_column(Integer, server_default=text("0"), default=0)

    trigger: Mapped[str] = mapped_column(String(50), nullable=False)
    time: Mapped[int | None] = mapped_column(Integer, nullable=True)
    time_unit: Mapped[str | None] = mapped_column(String(20), nullable=True)

    user_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=True
    )
    team_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("teams.id", ondelete="CASCADE"), nullable=True
    )
    is_active_on_all: Mapped[bool] = mapped_column(
        Boolean, server_default=text("false"), default=False, nullable=False
    )

    created_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)

    # Relationships
    user: Mapped["User | None"] = relationship(back_populates="workflows")
    team: Mapped["Team | None"] = relationship(back_populates="workflows")
    steps: Mapped[list["WorkflowStep"]] = relationship(
        back_populates="workflow",
        cascade="all, delete-orphan",
        order_by="WorkflowStep.step_number",
    )
    event_types: Mapped[list["WorkflowsOnEventTypes"]] = relationship(
        back_populates="workflow", cascade="all, delete-orphan"
    )


class WorkflowStep(Base):
    """One delivery action of a workflow."""

    __tablename__ = "workflow_steps"
    __table_args__ = (Index("idx_workflow_step_workflow", "workflow_id", "step_number"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    workflow_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("workflows.id", ondelete="CASCADE"), nullable=False
    )
    step_number: Mapped[int] = mapped_column(Integer, server_default=text("1"), default=1)

    action: Mapped[str] = mapped_column(String(50), nullable=False)
    send_to: Mapped[str | None] = mapped_column(String(255), nullable=True)
    template: Mapped[str] = mapped_column(
        String(20),
        server_default=text(f"'{DEFAULT_WORKFLOW_TEMPLATE.value}'"),
        default=DEFAULT_WORKFLOW_TEMPLATE.value,
        nullable=False,
    )
    reminder_body: Mapped[str | None] = mapped_column(Text, nullable=True)
    email_subject: Mapped[str | None] = mapped_column(String(500), nullable=True)
    sender: Mapped[str | None] = mapped_column(String(100), nullable=True)
    include_calendar_event: Mapped[bool] = mapped_column(
        Boolean, server_default=text("false"), default=False, nullable=False
    )

    # Only meaningful for SMS actions
    number_verification_pending: Mapped[bool] = mapped_column(
        Boolean, server_default=text("true"), default=True, nullable=False
    )
    number_required: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    verified_at: Mapped[datetime | None] = mapped_column(nullable=True)

    workflow: Mapped["Workflow"] = relationship(back_populates="steps")


class WorkflowsOnEventTypes(Base):
    """Activation of a workflow on a single event type."""

    __tablename__ = "workflows_on_event_types"
    __table_args__ = (
        UniqueConstraint("workflow_id", "event_type_id", name="uq_workflow_event_type"),
        Index("idx_woe_event_type", "event_type_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    workflow_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("workflows.id", ondelete="CASCADE"), nullable=False
    )
    # Event types live in the booking domain; no FK on purpose
    event_type_id: Mapped[int] = mapped_column(Integer, nullable=False)

    workflow: Mapped["Workflow"] = relationship(back_populates="event_types")


class WorkflowReminder(Base):
    """
    A scheduled (or immediately dispatched) reminder for one booking.

    Rows are created at scheduling time and afterwards only flipped to
    ``cancelled``. ``uuid`` correlates the row with the pending delivery task
    so that the task can be cancelled. ``workflow_step_id`` is NULL for
    mandatory reminders that are not tied to a workflow.
    """

    __tablename__ = "workflow_reminders"
    __table_args__ = (
        Index("idx_reminder_booking", "booking_uid", "method", "cancelled"),
        Index("idx_reminder_step", "workflow_step_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    uuid: Mapped[str | None] = mapped_column(
        String(36), unique=True, nullable=True, default=lambda: str(uuid.uuid4())
    )
    booking_uid: Mapped[str | None] = mapped_column(String(255), nullable=True)
    workflow_step_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("workflow_steps.id", ondelete="CASCADE"), nullable=True
    )
    method: Mapped[str] = mapped_column(String(20), nullable=False)
    scheduled_date: Mapped[datetime] = mapped_column(nullable=False)
    scheduled: Mapped[bool] = mapped_column(
        Boolean, server_default=text("false"), default=False, nullable=False
    )
    cancelled: Mapped[bool] = mapped_column(
        Boolean, server_default=text("false"), default=False, nullable=False
    )
    seat_reference_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)

    workflow_step: Mapped["WorkflowStep | None"] = relationship()
