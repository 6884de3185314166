"""Job-related enums."""

from enum import Enum


class JobType(str, Enum):
    """Types of background jobs."""

    WORKFLOW_EMAIL = "workflow_email"  # Deliver an email WorkflowReminder
    WORKFLOW_SMS = "workflow_sms"  # Deliver an SMS WorkflowReminder


class JobStatus(str, Enum):
    """Status of background jobs."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"
