"""Team-related enums."""

from enum import Enum


class MembershipRole(str, Enum):
    """Role of a user inside a team."""

    OWNER = "OWNER"
    ADMIN = "ADMIN"
    MEMBER = "MEMBER"

    @classmethod
    def can_manage(cls, value: str) -> bool:
        """Owners and admins may edit team workflows."""
        return value in (cls.OWNER.value, cls.ADMIN.value)
