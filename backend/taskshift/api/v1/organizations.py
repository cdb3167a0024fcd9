"""Organization, membership and invitation API endpoints."""

from uuid import UUID

from fastapi import APIRouter, Query, status

from taskshift.api.deps import DbSession, Memberships, VerifiedUser
from taskshift.core.errors import AdminPermissionRequired, NotMember
from taskshift.models.user import UserRole
from taskshift.schemas.common import SuccessResponse
from taskshift.schemas.membership import (
    ActivateInvitationRequest,
    ActivateWithRegistrationRequest,
    ActivationEnvelope,
    InvitationEnvelope,
    InviteRequest,
    MemberList,
    MembershipEnvelope,
    MembershipResponse,
    MemberUpdate,
    RegistrationActivationEnvelope,
)
from taskshift.schemas.organization import (
    OrganizationCreate,
    OrganizationEnvelope,
    OrganizationList,
    OrganizationResponse,
    OrganizationSelect,
    UserOrganizationList,
)
from taskshift.schemas.user import UserEnvelope, UserResponse
from taskshift.services.membership import resolve_organization_context
from taskshift.services.organization import OrganizationService

router = APIRouter(prefix="/organizations", tags=["Organizations"])


@router.post("", response_model=OrganizationEnvelope, status_code=status.HTTP_201_CREATED)
async def create_organization(
    data: OrganizationCreate,
    user: VerifiedUser,
    db: DbSession,
    memberships: Memberships,
) -> OrganizationEnvelope:
    """Create a new organization.

    The authenticated user becomes its admin and it becomes their current
    organization.
    """
    org = await OrganizationService(db).create_organization(data.name, user.id)
    await memberships.add_admin_member(org, user)
    return OrganizationEnvelope(
        message="Organization created successfully",
        organization=OrganizationResponse.model_validate(org),
    )


@router.get("", response_model=OrganizationList)
async def list_organizations(user: VerifiedUser, db: DbSession) -> OrganizationList:
    """List all organizations.

    Requires admin permission in at least one organization.
    """
    org_service = OrganizationService(db)
    if not await org_service.has_admin_permission_anywhere(user.id):
        raise AdminPermissionRequired("Admin permission is required to list organizations")
    return await org_service.list_organizations()


@router.get("/my-organizations", response_model=UserOrganizationList)
async def list_my_organizations(user: VerifiedUser, db: DbSession) -> UserOrganizationList:
    """List the organizations the current user is an active member of."""
    return await OrganizationService(db).list_user_organizations(user)


@router.get("/me", response_model=OrganizationEnvelope)
async def get_current_organization(
    user: VerifiedUser,
    db: DbSession,
    memberships: Memberships,
) -> OrganizationEnvelope:
    """Get the caller's current organization."""
    org_id = resolve_organization_context(user)
    return await get_organization(org_id, user, db, memberships)


@router.get("/members", response_model=MemberList)
async def list_members(
    user: VerifiedUser,
    memberships: Memberships,
    organization_id: UUID | None = Query(default=None),
) -> MemberList:
    """List members and pending invitations of an organization.

    Defaults to the current organization.
    """
    org_id = organization_id or resolve_organization_context(user)
    return await memberships.list_members(org_id, user)


@router.post("/join", response_model=MembershipEnvelope, status_code=status.HTTP_201_CREATED)
async def join_organization(
    data: OrganizationSelect,
    user: VerifiedUser,
    memberships: Memberships,
) -> MembershipEnvelope:
    """Join an organization directly."""
    membership = await memberships.join_organization(user, data.organization_id)
    return MembershipEnvelope(
        message="Joined organization successfully",
        membership=MembershipResponse.model_validate(membership),
    )


@router.post("/set-current", response_model=UserEnvelope)
async def set_current_organization(
    data: OrganizationSelect,
    user: VerifiedUser,
    memberships: Memberships,
) -> UserEnvelope:
    """Switch the current organization."""
    user = await memberships.set_current_organization(user, data.organization_id)
    return UserEnvelope(
        message="Current organization updated",
        user=UserResponse.model_validate(user),
    )


@router.post("/invite", response_model=InvitationEnvelope, status_code=status.HTTP_201_CREATED)
async def invite_member(
    data: InviteRequest,
    user: VerifiedUser,
    memberships: Memberships,
) -> InvitationEnvelope:
    """Invite someone by email (admin permission required).

    Defaults to the current organization. A failed invitation email does not
    undo the invitation; it is reported in ``warnings``.
    """
    org_id = data.organization_id or resolve_organization_context(user)
    outcome = await memberships.invite_member(
        org_id,
        email=data.email,
        full_name=data.full_name,
        role=data.role,
        permission=data.permission,
        inviter=user,
    )
    return InvitationEnvelope(
        message="Invitation sent successfully",
        invitation=MembershipResponse.model_validate(outcome.value),
        warnings=outcome.warnings,
        partial_failure=outcome.partial_failure,
    )


@router.post("/activate-invitation", response_model=ActivationEnvelope)
async def activate_invitation(
    data: ActivateInvitationRequest,
    user: VerifiedUser,
    memberships: Memberships,
) -> ActivationEnvelope:
    """Accept a pending invitation addressed to the current user's email."""
    outcome = await memberships.accept_invitation(user, data.organization_id, data.set_current)
    return ActivationEnvelope(
        message="Invitation activated successfully",
        membership=MembershipResponse.model_validate(outcome.value),
        user=UserResponse.model_validate(user),
        warnings=outcome.warnings,
        partial_failure=outcome.partial_failure,
    )


@router.post(
    "/activate-invitation-with-registration",
    response_model=RegistrationActivationEnvelope,
    status_code=status.HTTP_201_CREATED,
)
async def activate_invitation_with_registration(
    data: ActivateWithRegistrationRequest,
    memberships: Memberships,
) -> RegistrationActivationEnvelope:
    """Register a new account and accept its pending invitation.

    The account is created verified. If a later step fails the account
    still exists; the failure is listed in ``warnings``.
    """
    outcome = await memberships.activate_invitation_with_registration(
        email=data.email,
        org_id=data.organization_id,
        code=data.code,
        username=data.username,
        full_name=data.full_name,
        password=data.password,
    )
    result = outcome.value
    return RegistrationActivationEnvelope(
        message="Account created and invitation activated"
        if not outcome.partial_failure
        else "Account created; some steps did not complete",
        user=UserResponse.model_validate(result.user),
        membership=MembershipResponse.model_validate(result.membership) if result.membership else None,
        token=result.token,
        warnings=outcome.warnings,
        partial_failure=outcome.partial_failure,
    )


@router.get("/{organization_id}", response_model=OrganizationEnvelope)
async def get_organization(
    organization_id: UUID,
    user: VerifiedUser,
    db: DbSession,
    memberships: Memberships,
) -> OrganizationEnvelope:
    """Get organization details.

    Members can read their organizations; global admins can read any.
    """
    org = await OrganizationService(db).get_organization_by_id(organization_id)
    if user.role != UserRole.ADMIN.value:
        if await memberships.get_active_membership(organization_id, user.id) is None:
            raise NotMember()
    return OrganizationEnvelope(organization=OrganizationResponse.model_validate(org))


@router.delete("/{organization_id}/leave", response_model=UserEnvelope)
async def leave_organization(
    organization_id: UUID,
    user: VerifiedUser,
    memberships: Memberships,
) -> UserEnvelope:
    """Leave an organization."""
    await memberships.leave_organization(user, organization_id)
    return UserEnvelope(
        message="Left organization successfully",
        user=UserResponse.model_validate(user),
    )


@router.patch("/{organization_id}/members/{user_id}", response_model=MembershipEnvelope)
async def update_member(
    organization_id: UUID,
    user_id: UUID,
    data: MemberUpdate,
    user: VerifiedUser,
    memberships: Memberships,
) -> MembershipEnvelope:
    """Change a member's role or permission (admin permission required)."""
    membership = await memberships.update_member(
        organization_id,
        user_id,
        actor=user,
        role=data.role,
        permission=data.permission,
    )
    return MembershipEnvelope(
        message="Member updated successfully",
        membership=MembershipResponse.model_validate(membership),
    )


@router.delete("/{organization_id}/members/{user_id}", response_model=SuccessResponse)
async def remove_member(
    organization_id: UUID,
    user_id: UUID,
    user: VerifiedUser,
    memberships: Memberships,
) -> SuccessResponse:
    """Remove a member (admin permission required)."""
    await memberships.remove_member(organization_id, user_id, user)
    return SuccessResponse(message="Member removed successfully")
