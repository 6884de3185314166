"""Centralized permission checks for workflows.

- Personal workflows: the owner can view and edit.
- Team workflows: accepted members can view; owners and admins can edit.
- Owners/admins of a user's organization can view (but not edit) that
  user's personal workflows.
"""

from dataclasses import dataclass
from typing import Literal

from sqlalchemy.orm import Session

from app.db.enums import MembershipRole
from app.db.models import Membership, User, Workflow

OwnerType = Literal["user", "team"]


@dataclass(frozen=True)
class WorkflowAuthorization:
    authorized: bool
    read_only: bool | None = None


UNAUTHORIZED = WorkflowAuthorization(authorized=False)


def _membership(db: Session, user_id: int, team_id: int) -> Membership | None:
    return (
        db.query(Membership)
        .filter(Membership.user_id == user_id, Membership.team_id == team_id)
        .first()
    )


def is_authorized(
    db: Session,
    owner_id: int,
    owner_type: OwnerType,
    current_user_id: int,
    read_only: bool | None = None,
) -> WorkflowAuthorization:
    """
    Check whether a user may access workflows of an owner.

    Args:
        db: Database session
        owner_id: Id of the owning user or team
        owner_type: 'user' or 'team'
        current_user_id: The user asking for access
        read_only: Explicit read-only flag for team members; overrides the
            role-derived value when given

    Returns:
        WorkflowAuthorization; ``read_only`` is None when unauthorized
    """
    if owner_type == "user" and owner_id == current_user_id:
        return WorkflowAuthorization(authorized=True, read_only=False)

    if owner_type == "team":
        membership = _membership(db, current_user_id, owner_id)
        if not membership or not membership.accepted:
            return UNAUTHORIZED
        can_edit = MembershipRole.can_manage(membership.role)
        return WorkflowAuthorization(
            authorized=True,
            read_only=read_only if read_only is not None else not can_edit,
        )

    if owner_type == "user":
        owner = db.query(User).filter(User.id == owner_id).first()
        if owner and owner.organization_id:
            admin = (
                db.query(Membership)
                .filter(
                    Membership.user_id == current_user_id,
                    Membership.team_id == owner.organization_id,
                    Membership.role.in_(
                        [MembershipRole.OWNER.value, MembershipRole.ADMIN.value]
                    ),
                )
                .first()
            )
            if admin:
                return WorkflowAuthorization(authorized=True, read_only=True)

    return UNAUTHORIZED


def _workflow_owner(workflow: Workflow) -> tuple[int, OwnerType]:
    if workflow.team_id is not None:
        return workflow.team_id, "team"
    return workflow.user_id, "user"


def can_view(db: Session, user_id: int, workflow: Workflow) -> bool:
    owner_id, owner_type = _workflow_owner(workflow)
    return is_authorized(db, owner_id, owner_type, user_id).authorized


def can_edit(db: Session, user_id: int, workflow: Workflow) -> bool:
    """Authorized and not read-only."""
    owner_id, owner_type = _workflow_owner(workflow)
    access = is_authorized(db, owner_id, owner_type, user_id)
    return access.authorized and not access.read_only
