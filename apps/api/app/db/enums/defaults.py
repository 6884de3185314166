"""Centralized defaults for enums."""

from app.db.enums.jobs import JobStatus
from app.db.enums.teams import MembershipRole
from app.db.enums.workflows import TimeUnit, WorkflowTemplate


DEFAULT_JOB_STATUS: JobStatus = JobStatus.PENDING
DEFAULT_MEMBERSHIP_ROLE: MembershipRole = MembershipRole.MEMBER
DEFAULT_WORKFLOW_TEMPLATE: WorkflowTemplate = WorkflowTemplate.REMINDER
DEFAULT_REMINDER_TIME: int = 24
DEFAULT_TIME_UNIT: TimeUnit = TimeUnit.HOUR
