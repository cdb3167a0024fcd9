"""Organization service."""

from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from taskshift.core.errors import DuplicateName, NotFound
from taskshift.core.logging import get_logger
from taskshift.models.membership import Membership, MembershipPermission, MembershipStatus
from taskshift.models.organization import Organization
from taskshift.models.user import User
from taskshift.schemas.organization import (
    OrganizationList,
    OrganizationResponse,
    UserOrganizationList,
    UserOrganizationResponse,
)

logger = get_logger("service.organization")


class OrganizationService:
    """Service for the organization directory."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def name_exists(self, name: str) -> bool:
        """Check if an organization name exists, ignoring case."""
        result = await self.db.execute(
            select(func.count(Organization.id)).where(
                func.lower(Organization.name) == name.strip().lower()
            )
        )
        return result.scalar_one() > 0

    async def create_organization(self, name: str, creator_id: UUID | None) -> Organization:
        """Create a new organization.

        The creator's membership is added by the caller (see
        ``MembershipService.add_admin_member``) so both land in one transaction.

        Raises:
            DuplicateName: an organization with the same name (any case) exists
        """
        name = name.strip()
        if await self.name_exists(name):
            raise DuplicateName()

        org = Organization(name=name, created_by=creator_id, status="active")
        try:
            # Savepoint, so losing a race on the unique index leaves the
            # request transaction usable
            async with self.db.begin_nested():
                self.db.add(org)
                await self.db.flush()
        except IntegrityError as e:
            raise DuplicateName() from e

        await self.db.refresh(org)
        logger.info("organization_created", org_id=str(org.id), name=name, created_by=str(creator_id))
        return org

    async def get_organization_by_id(self, org_id: UUID) -> Organization:
        """Get an organization by ID.

        Raises:
            NotFound: no organization with this ID
        """
        result = await self.db.execute(select(Organization).where(Organization.id == org_id))
        org = result.scalar_one_or_none()
        if org is None:
            raise NotFound("Organization not found", code="ORGANIZATION_NOT_FOUND")
        return org

    async def list_organizations(self) -> OrganizationList:
        """List all organizations ordered by name."""
        result = await self.db.execute(select(Organization).order_by(Organization.name))
        orgs = result.scalars().all()
        return OrganizationList(
            organizations=[OrganizationResponse.model_validate(org) for org in orgs],
            total=len(orgs),
        )

    async def list_user_organizations(self, user: User) -> UserOrganizationList:
        """List organizations where the user holds an active membership.

        Ordered as in the user's organization list; memberships missing from
        that list follow in creation order.
        """
        result = await self.db.execute(
            select(Organization, Membership)
            .join(Membership, Membership.org_id == Organization.id)
            .where(
                Membership.user_id == user.id,
                Membership.status == MembershipStatus.ACTIVE.value,
            )
            .order_by(Membership.created_at)
        )
        rows = result.all()

        position = {org_id: index for index, org_id in enumerate(user.organization_ids or [])}
        rows = sorted(rows, key=lambda row: position.get(str(row[0].id), len(position)))

        items = [
            UserOrganizationResponse(
                **OrganizationResponse.model_validate(org).model_dump(),
                role=membership.role,
                permission=membership.permission,
                is_current=org.id == user.current_organization_id,
            )
            for org, membership in rows
        ]
        return UserOrganizationList(
            organizations=items,
            current_organization_id=user.current_organization_id,
            total=len(items),
        )

    async def has_admin_permission_anywhere(self, user_id: UUID) -> bool:
        """Check if the user holds admin permission in at least one organization."""
        result = await self.db.execute(
            select(func.count(Membership.id)).where(
                Membership.user_id == user_id,
                Membership.status == MembershipStatus.ACTIVE.value,
                Membership.permission == MembershipPermission.ADMIN.value,
            )
        )
        return result.scalar_one() > 0
