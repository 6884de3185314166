"""SQLAlchemy ORM models."""

from app.db.models.jobs import Job
from app.db.models.teams import Membership, Team, User
from app.db.models.workflows import (
    Workflow,
    WorkflowReminder,
    WorkflowStep,
    WorkflowsOnEventTypes,
)

__all__ = [
    "Job",
    "Membership",
    "Team",
    "User",
    "Workflow",
    "WorkflowReminder",
    "WorkflowStep",
    "WorkflowsOnEventTypes",
]
