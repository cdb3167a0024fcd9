"""Pydantic schemas for memberships and invitations."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, model_validator

from taskshift.models.membership import MembershipPermission, MembershipRole
from taskshift.schemas.common import OrganizationId, PartialResponse, SuccessResponse
from taskshift.schemas.user import UserResponse

USERNAME_PATTERN = r"^[A-Za-z0-9_.-]+$"


class InviteRequest(BaseModel):
    """Request body for inviting someone to an organization.

    Without ``organization_id`` the inviter's current organization is used.
    """

    email: EmailStr
    full_name: str = Field(..., min_length=1, max_length=255)
    role: MembershipRole = MembershipRole.USER
    permission: MembershipPermission = MembershipPermission.TEAMATE
    organization_id: OrganizationId | None = None


class ActivateInvitationRequest(BaseModel):
    """Request body for claiming an invitation as an existing user."""

    organization_id: OrganizationId
    set_current: bool = False


class ActivateWithRegistrationRequest(BaseModel):
    """Request body for registering a new account from an invitation.

    ``code`` is the invite code from the emailed link.
    """

    email: EmailStr
    organization_id: OrganizationId
    code: str = Field(..., min_length=1, max_length=64)
    username: str = Field(..., min_length=3, max_length=50, pattern=USERNAME_PATTERN)
    full_name: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=8, max_length=128)


class MemberUpdate(BaseModel):
    """Request body for changing a member's role or permission."""

    role: MembershipRole | None = None
    permission: MembershipPermission | None = None

    @model_validator(mode="after")
    def require_change(self) -> "MemberUpdate":
        if self.role is None and self.permission is None:
            raise ValueError("Provide role and/or permission")
        return self


class MembershipResponse(BaseModel):
    """Response containing membership information."""

    id: UUID
    org_id: UUID
    user_id: UUID | None
    email: str
    full_name: str
    username: str | None
    role: str
    permission: str
    status: str
    invited_by: UUID | None
    created_at: datetime
    activated_at: datetime | None

    model_config = {"from_attributes": True}


class InvitationEnvelope(PartialResponse):
    invitation: MembershipResponse


class MembershipEnvelope(PartialResponse):
    membership: MembershipResponse


class ActivationEnvelope(PartialResponse):
    membership: MembershipResponse
    user: UserResponse


class RegistrationActivationEnvelope(PartialResponse):
    """Result of register-and-activate.

    ``membership`` or ``token`` may be missing when a later step failed; the
    failure is listed in ``warnings``.
    """

    user: UserResponse
    membership: MembershipResponse | None = None
    token: str | None = None


class MemberList(SuccessResponse):
    organization_id: UUID
    members: list[MembershipResponse]
    total: int
