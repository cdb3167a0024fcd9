"""User service."""

from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from taskshift.core.errors import EmailExists, NotFound, UsernameExists
from taskshift.core.security import hash_password
from taskshift.models.user import User, UserStatus


class UserService:
    """Service for user operations."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def create_user(
        self,
        *,
        username: str,
        email: str,
        full_name: str,
        password: str,
        status: UserStatus = UserStatus.PENDING,
    ) -> User:
        """Create a new user.

        Raises:
            UsernameExists: username is taken
            EmailExists: email is taken (compared lower-case)
        """
        email = email.lower()
        if await self.username_exists(username):
            raise UsernameExists()
        if await self.email_exists(email):
            raise EmailExists()

        user = User(
            username=username,
            email=email,
            full_name=full_name,
            password_hash=hash_password(password),
            status=status.value,
            organization_ids=[],
        )
        self.db.add(user)
        await self.db.flush()
        await self.db.refresh(user)
        return user

    async def get_user_by_id(self, user_id: UUID) -> User | None:
        """Get a user by ID."""
        result = await self.db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def require_user(self, user_id: UUID) -> User:
        user = await self.get_user_by_id(user_id)
        if user is None:
            raise NotFound("User not found", code="USER_NOT_FOUND")
        return user

    async def get_user_by_email(self, email: str) -> User | None:
        """Get a user by email."""
        result = await self.db.execute(select(User).where(User.email == email.lower()))
        return result.scalar_one_or_none()

    async def get_user_by_login(self, login: str) -> User | None:
        """Get a user by username or email."""
        result = await self.db.execute(
            select(User).where(or_(User.username == login, User.email == login.lower()))
        )
        return result.scalars().first()

    async def username_exists(self, username: str) -> bool:
        """Check if a username already exists."""
        result = await self.db.execute(
            select(func.count(User.id)).where(User.username == username)
        )
        return result.scalar_one() > 0

    async def email_exists(self, email: str) -> bool:
        """Check if an email already exists."""
        result = await self.db.execute(
            select(func.count(User.id)).where(User.email == email.lower())
        )
        return result.scalar_one() > 0

    async def set_online(self, user: User, online: bool) -> User:
        user.online = online
        await self.db.flush()
        return user
