"""Pydantic schemas for API request/response models."""

from app.schemas.workflow import (
    AttendeeInfo,
    CalendarEvent,
    OrganizerInfo,
    WorkflowCreate,
    WorkflowStepCreate,
    WorkflowUpdate,
)

__all__ = [
    # Booking snapshot
    "AttendeeInfo",
    "CalendarEvent",
    "OrganizerInfo",
    # Workflows
    "WorkflowCreate",
    "WorkflowStepCreate",
    "WorkflowUpdate",
]
