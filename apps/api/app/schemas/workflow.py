"""Pydantic schemas for booking workflows."""

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from app.db.enums import (
    DEFAULT_WORKFLOW_TEMPLATE,
    TimeUnit,
    WorkflowAction,
    WorkflowTemplate,
    WorkflowTriggerEvent,
)


# =============================================================================
# Booking snapshot (read-only input to reminder scheduling)
# =============================================================================


class AttendeeInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str = ""
    email: str = ""
    phone_number: str | None = None
    time_zone: str = "UTC"
    locale: str = "en"


class OrganizerInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str = ""
    email: str = ""
    time_zone: str = "UTC"
    locale: str = "en"
    username: str | None = None


class CalendarEvent(BaseModel):
    """
    Immutable view of a booking handed to the reminder subsystem.

    Naive start/end times are taken to be UTC; aware ones are kept as given.
    """

    model_config = ConfigDict(frozen=True)

    uid: str | None = None
    title: str = ""
    start_time: datetime
    end_time: datetime
    organizer: OrganizerInfo
    attendees: tuple[AttendeeInfo, ...] = ()
    location: str | None = None
    additional_notes: str | None = None
    video_call_url: str | None = None
    booker_url: str | None = None
    event_type_slug: str | None = None
    cancellation_reason: str | None = None
    reschedule_reason: str | None = None

    @field_validator("start_time", "end_time")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @property
    def first_attendee(self) -> AttendeeInfo | None:
        return self.attendees[0] if self.attendees else None


# =============================================================================
# Workflow payloads
# =============================================================================


class WorkflowCreate(BaseModel):
    """Request schema for creating a workflow."""

    name: str = Field(..., min_length=1, max_length=255)
    trigger: WorkflowTriggerEvent
    time: int | None = None
    time_unit: TimeUnit | None = None
    user_id: int | None = None
    team_id: int | None = None
    is_active_on_all: bool = False

    @model_validator(mode="after")
    def _check_owner_and_offset(self) -> "WorkflowCreate":
        if (self.user_id is None) == (self.team_id is None):
            raise ValueError("Workflow must be owned by exactly one of user_id or team_id")
        if (self.time is None) != (self.time_unit is None):
            raise ValueError("time and time_unit must be set together")
        if self.trigger in (
            WorkflowTriggerEvent.BEFORE_EVENT,
            WorkflowTriggerEvent.AFTER_EVENT,
        ) and self.time is None:
            raise ValueError(f"{self.trigger.value} requires time and time_unit")
        return self


class WorkflowUpdate(BaseModel):
    """Request schema for updating a workflow (all fields optional)."""

    name: str | None = Field(None, min_length=1, max_length=255)
    trigger: WorkflowTriggerEvent | None = None
    time: int | None = None
    time_unit: TimeUnit | None = None
    is_active_on_all: bool | None = None

    @model_validator(mode="after")
    def _check_offset(self) -> "WorkflowUpdate":
        if (self.time is None) != (self.time_unit is None):
            raise ValueError("time and time_unit must be updated together")
        return self


class WorkflowStepCreate(BaseModel):
    """Request schema for adding a step to a workflow."""

    action: WorkflowAction
    step_number: int | None = Field(None, ge=1)
    send_to: str | None = None
    template: WorkflowTemplate = DEFAULT_WORKFLOW_TEMPLATE
    reminder_body: str | None = None
    email_subject: str | None = None
    sender: str | None = None
    include_calendar_event: bool = False
    number_verification_pending: bool = True
    number_required: bool | None = None

    @model_validator(mode="after")
    def _check_send_to(self) -> "WorkflowStepCreate":
        if self.action in (WorkflowAction.EMAIL_ADDRESS, WorkflowAction.SMS_NUMBER) and not self.send_to:
            raise ValueError(f"{self.action.value} requires send_to")
        return self
