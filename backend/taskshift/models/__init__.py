"""Database models (SQLAlchemy)."""

from taskshift.models.membership import (
    Membership,
    MembershipPermission,
    MembershipRole,
    MembershipStatus,
)
from taskshift.models.organization import Organization
from taskshift.models.task import Task
from taskshift.models.user import User, UserRole, UserStatus
from taskshift.models.verification import Verification, VerificationStatus

__all__ = [
    "Membership",
    "MembershipPermission",
    "MembershipRole",
    "MembershipStatus",
    "Organization",
    "Task",
    "User",
    "UserRole",
    "UserStatus",
    "Verification",
    "VerificationStatus",
]
