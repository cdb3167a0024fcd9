"""Membership service.

The membership ledger: invitations, activation, direct joins, leaving and
removal, and the per-organization permission checks every other service
authorizes through.

Lifecycle of a row for one (organization, email or user)::

    [no row] --invite--> invited --activate--> active
    [no row] --join--> active
    active --update role/permission--> active
    active --leave/remove--> [no row]
"""

import uuid
from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from taskshift.core.config import Settings, get_settings
from taskshift.core.errors import (
    AdminPermissionRequired,
    AlreadyInvited,
    AlreadyMember,
    LastAdmin,
    NoOrganizationContext,
    NotFound,
    NotMember,
)
from taskshift.core.logging import get_logger
from taskshift.core.outcome import Outcome
from taskshift.core.security import create_access_token, generate_invite_code, invite_code_matches
from taskshift.models.membership import (
    Membership,
    MembershipPermission,
    MembershipRole,
    MembershipStatus,
)
from taskshift.models.organization import Organization
from taskshift.models.user import User, UserStatus
from taskshift.notifier import Notifier, build_notifier
from taskshift.notifier.templates import invitation_email, invite_link
from taskshift.schemas.membership import MemberList, MembershipResponse
from taskshift.services.organization import OrganizationService
from taskshift.services.user import UserService

logger = get_logger("service.membership")


@dataclass(frozen=True)
class PermissionGrant:
    """What an active membership allows inside one organization."""

    role: str
    permission: str

    @property
    def is_admin(self) -> bool:
        return self.permission == MembershipPermission.ADMIN.value


@dataclass
class RegistrationActivation:
    """Result of registering a new account from an invitation."""

    user: User
    membership: Membership | None = None
    token: str | None = None


def resolve_organization_context(user: User) -> UUID:
    """Return the organization a request operates in.

    The current organization when it is one of the user's organizations,
    otherwise the first organization the user joined.

    Raises:
        NoOrganizationContext: the user belongs to no organization
    """
    org_ids = user.organization_ids or []
    if user.current_organization_id is not None and str(user.current_organization_id) in org_ids:
        return user.current_organization_id
    if org_ids:
        return uuid.UUID(org_ids[0])
    raise NoOrganizationContext()


class MembershipService:
    """Service for membership and invitation operations."""

    def __init__(
        self,
        db: AsyncSession,
        notifier: Notifier | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.db = db
        self.settings = settings or get_settings()
        self.notifier = notifier or build_notifier(self.settings)
        self.organizations = OrganizationService(db)
        self.users = UserService(db)

    # Authorization

    async def get_active_membership(self, org_id: UUID, user_id: UUID) -> Membership | None:
        result = await self.db.execute(
            select(Membership).where(
                Membership.org_id == org_id,
                Membership.user_id == user_id,
                Membership.status == MembershipStatus.ACTIVE.value,
            )
        )
        return result.scalar_one_or_none()

    async def get_permission(self, org_id: UUID, user_id: UUID) -> PermissionGrant:
        """Get the user's role and permission in an organization.

        Raises:
            NotMember: the user has no active membership there
        """
        membership = await self.get_active_membership(org_id, user_id)
        if membership is None:
            raise NotMember()
        return PermissionGrant(role=membership.role, permission=membership.permission)

    async def require_member(self, org_id: UUID, user_id: UUID) -> PermissionGrant:
        return await self.get_permission(org_id, user_id)

    async def require_admin(self, org_id: UUID, user_id: UUID) -> PermissionGrant:
        """Raise unless the user holds admin permission in the organization."""
        grant = await self.get_permission(org_id, user_id)
        if not grant.is_admin:
            raise AdminPermissionRequired()
        return grant

    # Creation

    async def add_admin_member(self, org: Organization, user: User) -> Membership:
        """Make the organization's creator its active admin and current organization."""
        membership = Membership(
            org_id=org.id,
            user_id=user.id,
            email=user.email,
            full_name=user.full_name,
            username=user.username,
            role=MembershipRole.ADMIN.value,
            permission=MembershipPermission.ADMIN.value,
            status=MembershipStatus.ACTIVE.value,
            activated_at=datetime.now(UTC),
        )
        self.db.add(membership)
        user.add_organization(org.id)
        user.current_organization_id = org.id
        await self.db.flush()
        return membership

    async def get_invitation(self, org_id: UUID, email: str) -> Membership | None:
        """Get the pending invitation for (organization, email), if any."""
        result = await self.db.execute(
            select(Membership).where(
                Membership.org_id == org_id,
                Membership.email == email.lower(),
                Membership.status == MembershipStatus.INVITED.value,
            )
        )
        return result.scalar_one_or_none()

    async def invite_member(
        self,
        org_id: UUID,
        *,
        email: str,
        full_name: str,
        role: MembershipRole,
        permission: MembershipPermission,
        inviter: User,
    ) -> Outcome[Membership]:
        """Invite an email address to an organization.

        The invitation email is best-effort: a delivery failure is reported as
        a warning and the invitation is kept.

        Raises:
            NotFound: organization does not exist
            NotMember / AdminPermissionRequired: inviter is not an admin there
            AlreadyMember: a user with this email is already an active member
            AlreadyInvited: an invitation for this email is already pending
        """
        org = await self.organizations.get_organization_by_id(org_id)
        await self.require_admin(org_id, inviter.id)
        email = email.lower()

        existing_user = await self.users.get_user_by_email(email)
        if existing_user is not None and await self.get_active_membership(org_id, existing_user.id):
            raise AlreadyMember()

        result = await self.db.execute(
            select(Membership).where(Membership.org_id == org_id, Membership.email == email)
        )
        existing = result.scalar_one_or_none()
        if existing is not None:
            if existing.is_active:
                raise AlreadyMember()
            raise AlreadyInvited()

        membership = Membership(
            org_id=org_id,
            email=email,
            full_name=full_name,
            role=role.value,
            permission=permission.value,
            status=MembershipStatus.INVITED.value,
            invite_code=generate_invite_code(),
            invited_by=inviter.id,
        )
        try:
            async with self.db.begin_nested():
                self.db.add(membership)
                await self.db.flush()
        except IntegrityError as e:
            raise AlreadyInvited() from e
        await self.db.refresh(membership)

        logger.info(
            "invitation_created",
            org_id=str(org_id),
            email=email,
            permission=membership.permission,
            invited_by=str(inviter.id),
        )

        outcome = Outcome(membership)
        await outcome.attempt(
            "invitation email",
            lambda: self._send_invitation(membership, org, inviter),
        )
        return outcome

    async def _send_invitation(self, membership: Membership, org: Organization, inviter: User) -> None:
        link = invite_link(self.settings.frontend_url, membership.invite_code or "", org.id)
        await self.notifier.send(
            invitation_email(
                membership.email,
                full_name=membership.full_name,
                organization_name=org.name,
                inviter_name=inviter.full_name,
                link=link,
                sender=self.settings.email_from_invites,
            )
        )

    # Activation

    async def activate_invitation(
        self,
        email: str,
        org_id: UUID,
        user_id: UUID,
        username: str | None = None,
    ) -> Membership:
        """Turn a pending invitation into an active membership.

        Does not touch the user's organization list; callers sync it.

        Raises:
            NotFound: no pending invitation for (organization, email)
            AlreadyMember: the user is already active in the organization
        """
        membership = await self.get_invitation(org_id, email)
        if membership is None:
            raise NotFound("Invitation not found", code="INVITATION_NOT_FOUND")
        if await self.get_active_membership(org_id, user_id) is not None:
            raise AlreadyMember()

        membership.status = MembershipStatus.ACTIVE.value
        membership.user_id = user_id
        if username:
            membership.username = username
        membership.invite_code = None
        membership.activated_at = datetime.now(UTC)
        await self.db.flush()

        logger.info("invitation_activated", org_id=str(org_id), email=membership.email, user_id=str(user_id))
        return membership

    async def _sync_organization_list(self, user: User, org_id: UUID, set_current: bool) -> None:
        user.add_organization(org_id)
        if set_current or user.current_organization_id is None:
            user.current_organization_id = org_id
        await self.db.flush()

    async def accept_invitation(
        self,
        user: User,
        org_id: UUID,
        set_current: bool = False,
    ) -> Outcome[Membership]:
        """Activate the caller's own pending invitation.

        Adding the organization to the user's list is best-effort.
        """
        membership = await self.activate_invitation(user.email, org_id, user.id, user.username)

        outcome = Outcome(membership)
        await outcome.attempt(
            "organization list sync",
            lambda: self._sync_organization_list(user, org_id, set_current),
            session=self.db,
        )
        await self.db.refresh(user)
        return outcome

    async def activate_invitation_with_registration(
        self,
        *,
        email: str,
        org_id: UUID,
        code: str,
        username: str,
        full_name: str,
        password: str,
    ) -> Outcome[RegistrationActivation]:
        """Register a new, pre-verified account and claim its invitation.

        The caller proves receipt of the invitation email with the code from
        the invite link. Creating the user is the primary effect. Activation,
        the organization list sync and the credential are secondary steps:
        each failure is logged and listed in the outcome's warnings.

        Raises:
            NotFound: no pending invitation for (organization, email, code)
            UsernameExists / EmailExists: an account already exists
        """
        email = email.lower()
        invitation = await self.get_invitation(org_id, email)
        if invitation is None or not invite_code_matches(invitation.invite_code, code):
            raise NotFound("Invitation not found", code="INVITATION_NOT_FOUND")

        user = await self.users.create_user(
            username=username,
            email=email,
            full_name=full_name,
            password=password,
            status=UserStatus.VERIFIED,
        )
        logger.info("user_registered_from_invitation", user_id=str(user.id), org_id=str(org_id))

        outcome = Outcome(RegistrationActivation(user=user))
        membership = await outcome.attempt(
            "membership activation",
            lambda: self.activate_invitation(email, org_id, user.id, username),
            session=self.db,
        )
        if membership is not None:
            outcome.value.membership = membership
            await outcome.attempt(
                "organization list sync",
                lambda: self._sync_organization_list(user, org_id, True),
                session=self.db,
            )

        async def issue_token() -> str:
            return create_access_token(subject=str(user.id))

        outcome.value.token = await outcome.attempt("credential issue", issue_token)
        await self.db.refresh(user)
        return outcome

    async def join_organization(self, user: User, org_id: UUID) -> Membership:
        """Join an organization directly, without an invitation.

        Raises:
            NotFound: organization does not exist
            AlreadyMember: the user is already an active member
            AlreadyInvited: an invitation for the user's email is pending
        """
        await self.organizations.get_organization_by_id(org_id)
        if await self.get_active_membership(org_id, user.id) is not None:
            raise AlreadyMember()
        if await self.get_invitation(org_id, user.email) is not None:
            raise AlreadyInvited(
                "An invitation for your email is pending; activate it instead",
            )

        membership = Membership(
            org_id=org_id,
            user_id=user.id,
            email=user.email,
            full_name=user.full_name,
            username=user.username,
            role=MembershipRole.USER.value,
            permission=MembershipPermission.STANDARD.value,
            status=MembershipStatus.ACTIVE.value,
            activated_at=datetime.now(UTC),
        )
        try:
            async with self.db.begin_nested():
                self.db.add(membership)
                await self.db.flush()
        except IntegrityError as e:
            raise AlreadyMember() from e

        user.add_organization(org_id)
        if user.current_organization_id is None:
            user.current_organization_id = org_id
        await self.db.flush()

        logger.info("organization_joined", org_id=str(org_id), user_id=str(user.id))
        return membership

    # Removal and updates

    async def _count_active(self, org_id: UUID, *, admins_only: bool = False) -> int:
        query = select(func.count(Membership.id)).where(
            Membership.org_id == org_id,
            Membership.status == MembershipStatus.ACTIVE.value,
        )
        if admins_only:
            query = query.where(Membership.permission == MembershipPermission.ADMIN.value)
        result = await self.db.execute(query)
        return result.scalar_one()

    async def _guard_last_admin_departure(self, membership: Membership) -> None:
        if not membership.is_admin:
            return
        admins = await self._count_active(membership.org_id, admins_only=True)
        members = await self._count_active(membership.org_id)
        if admins <= 1 and members > 1:
            raise LastAdmin()

    async def _delete_membership(self, membership: Membership, user: User | None) -> None:
        await self._guard_last_admin_departure(membership)
        await self.db.delete(membership)
        if user is not None:
            user.remove_organization(membership.org_id)
        await self.db.flush()

    async def leave_organization(self, user: User, org_id: UUID) -> None:
        """Remove the caller's own membership.

        Raises:
            NotMember: the user is not an active member
            LastAdmin: the user is the last admin and others remain
        """
        membership = await self.get_active_membership(org_id, user.id)
        if membership is None:
            raise NotMember()
        await self._delete_membership(membership, user)
        logger.info("organization_left", org_id=str(org_id), user_id=str(user.id))

    async def _require_target(self, org_id: UUID, user_id: UUID) -> Membership:
        membership = await self.get_active_membership(org_id, user_id)
        if membership is None:
            raise NotFound("Member not found", code="MEMBER_NOT_FOUND")
        return membership

    async def remove_member(self, org_id: UUID, user_id: UUID, actor: User) -> None:
        """Remove another member (admin only)."""
        await self.require_admin(org_id, actor.id)
        membership = await self._require_target(org_id, user_id)
        target = actor if user_id == actor.id else await self.users.get_user_by_id(user_id)
        await self._delete_membership(membership, target)
        logger.info("member_removed", org_id=str(org_id), user_id=str(user_id), actor_id=str(actor.id))

    async def update_member(
        self,
        org_id: UUID,
        user_id: UUID,
        *,
        actor: User,
        role: MembershipRole | None = None,
        permission: MembershipPermission | None = None,
    ) -> Membership:
        """Change a member's role and/or permission (admin only).

        Raises:
            LastAdmin: the change would leave the organization without an admin
        """
        await self.require_admin(org_id, actor.id)
        membership = await self._require_target(org_id, user_id)

        if (
            permission is not None
            and permission != MembershipPermission.ADMIN
            and membership.is_admin
            and await self._count_active(org_id, admins_only=True) <= 1
        ):
            raise LastAdmin()

        if role is not None:
            membership.role = role.value
        if permission is not None:
            membership.permission = permission.value
        await self.db.flush()

        logger.info(
            "member_updated",
            org_id=str(org_id),
            user_id=str(user_id),
            role=membership.role,
            permission=membership.permission,
            actor_id=str(actor.id),
        )
        return membership

    # Context

    async def set_current_organization(self, user: User, org_id: UUID) -> User:
        """Point the user's current organization at one of their organizations.

        Raises:
            NotMember: the user is not an active member of that organization
        """
        if not user.has_organization(org_id) or await self.get_active_membership(org_id, user.id) is None:
            raise NotMember()
        user.current_organization_id = org_id
        await self.db.flush()
        return user

    async def apply_organization_fallback(self, user: User) -> UUID | None:
        """Persist the resolved organization context on the user.

        Returns the current organization id, or None when the user has none.
        """
        try:
            org_id = resolve_organization_context(user)
        except NoOrganizationContext:
            if user.current_organization_id is not None:
                user.current_organization_id = None
                await self.db.flush()
            return None
        if user.current_organization_id != org_id:
            user.current_organization_id = org_id
            await self.db.flush()
        return org_id

    async def list_members(self, org_id: UUID, actor: User) -> MemberList:
        """List invited and active members ordered by full name.

        Raises:
            NotMember: the actor is not an active member
        """
        await self.require_member(org_id, actor.id)
        result = await self.db.execute(
            select(Membership)
            .where(Membership.org_id == org_id)
            .order_by(Membership.full_name, Membership.created_at)
        )
        members = result.scalars().all()
        return MemberList(
            organization_id=org_id,
            members=[MembershipResponse.model_validate(m) for m in members],
            total=len(members),
        )
