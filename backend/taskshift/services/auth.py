"""Authentication service: registration, login, logout and the current user."""

from dataclasses import dataclass
from datetime import UTC, datetime

from sqlalchemy.ext.asyncio import AsyncSession

from taskshift.core.config import Settings, get_settings
from taskshift.core.errors import DuplicateName, Unauthenticated, VerificationRequired
from taskshift.core.logging import get_logger
from taskshift.core.security import create_access_token, verify_password
from taskshift.models.organization import Organization
from taskshift.models.user import User
from taskshift.schemas.auth import RegisterRequest
from taskshift.services.membership import MembershipService
from taskshift.services.organization import OrganizationService
from taskshift.services.user import UserService

logger = get_logger("service.auth")


@dataclass
class AuthResult:
    user: User
    token: str
    expires_in: int
    organization: Organization | None = None


class AuthService:
    """Service for account authentication."""

    def __init__(
        self,
        db: AsyncSession,
        memberships: MembershipService | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.db = db
        self.settings = settings or get_settings()
        self.users = UserService(db)
        self.organizations = OrganizationService(db)
        self.memberships = memberships or MembershipService(db, settings=self.settings)

    def issue_token(self, user: User) -> tuple[str, int]:
        """Create a bearer token for the user. Returns ``(token, expires_in_seconds)``."""
        token = create_access_token(subject=str(user.id))
        return token, self.settings.jwt_expiration_minutes * 60

    async def register(self, data: RegisterRequest) -> AuthResult:
        """Create an account, and optionally an organization it administers.

        The account starts ``pending`` until its email is verified.

        Raises:
            UsernameExists / EmailExists: account already exists
            DuplicateName: organization name is taken
        """
        if data.organization_name and await self.organizations.name_exists(data.organization_name):
            raise DuplicateName()

        user = await self.users.create_user(
            username=data.username,
            email=data.email,
            full_name=data.full_name,
            password=data.password,
        )

        org = None
        if data.organization_name:
            org = await self.organizations.create_organization(data.organization_name, user.id)
            await self.memberships.add_admin_member(org, user)

        logger.info(
            "user_registered",
            user_id=str(user.id),
            username=user.username,
            org_id=str(org.id) if org else None,
        )
        token, expires_in = self.issue_token(user)
        return AuthResult(user=user, token=token, expires_in=expires_in, organization=org)

    async def login(self, login: str, password: str) -> AuthResult:
        """Authenticate by username or email.

        Raises:
            Unauthenticated: unknown account or wrong password
            VerificationRequired: the account's email is not verified
        """
        user = await self.users.get_user_by_login(login)
        if user is None or not verify_password(password, user.password_hash):
            logger.info("login_failed", login=login)
            raise Unauthenticated("Invalid credentials", code="INVALID_CREDENTIALS")
        if not user.is_verified:
            raise VerificationRequired(
                "Please verify your email before logging in",
                email=user.email,
            )

        user.online = True
        user.last_login_at = datetime.now(UTC)
        await self.memberships.apply_organization_fallback(user)
        await self.db.flush()

        logger.info("user_logged_in", user_id=str(user.id))
        token, expires_in = self.issue_token(user)
        return AuthResult(user=user, token=token, expires_in=expires_in)

    async def logout(self, user: User) -> None:
        await self.users.set_online(user, False)
        logger.info("user_logged_out", user_id=str(user.id))

    async def me(self, user: User) -> User:
        """Return the user with the organization fallback applied."""
        await self.memberships.apply_organization_fallback(user)
        return user
