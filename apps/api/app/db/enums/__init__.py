"""Enum definitions for application constants."""

from app.db.enums.defaults import (
    DEFAULT_JOB_STATUS,
    DEFAULT_MEMBERSHIP_ROLE,
    DEFAULT_REMINDER_TIME,
    DEFAULT_TIME_UNIT,
    DEFAULT_WORKFLOW_TEMPLATE,
)
from app.db.enums.jobs import JobStatus, JobType
from app.db.enums.teams import MembershipRole
from app.db.enums.workflows import (
    ReminderOutcome,
    TimeUnit,
    WorkflowAction,
    WorkflowMethod,
    WorkflowTemplate,
    WorkflowTriggerEvent,
)

__all__ = [
    "DEFAULT_JOB_STATUS",
    "DEFAULT_MEMBERSHIP_ROLE",
    "DEFAULT_REMINDER_TIME",
    "DEFAULT_TIME_UNIT",
    "DEFAULT_WORKFLOW_TEMPLATE",
    "JobStatus",
    "JobType",
    "MembershipRole",
    "ReminderOutcome",
    "TimeUnit",
    "WorkflowAction",
    "WorkflowMethod",
    "WorkflowTemplate",
    "WorkflowTriggerEvent",
]
