"""API dependencies for dependency injection."""

from typing import Annotated
from uuid import UUID

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from taskshift.core.config import Settings, get_settings
from taskshift.core.database import get_db
from taskshift.core.errors import Unauthenticated, VerificationRequired
from taskshift.core.security import decode_access_token
from taskshift.models.user import User
from taskshift.notifier import Notifier, build_notifier
from taskshift.services.membership import MembershipService
from taskshift.services.user import UserService

# Type alias for settings dependency
SettingsDep = Annotated[Settings, Depends(get_settings)]

# Type alias for database session dependency
DbSession = Annotated[AsyncSession, Depends(get_db)]

# HTTP Bearer token security scheme
bearer_scheme = HTTPBearer(auto_error=False)


def get_notifier(settings: SettingsDep) -> Notifier:
    """Email notifier for the request. Overridden in tests."""
    return build_notifier(settings)


NotifierDep = Annotated[Notifier, Depends(get_notifier)]


async def get_current_user(
    db: DbSession,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)] = None,
) -> User:
    """Get the current authenticated user from JWT token.

    Raises Unauthenticated if the token is missing, invalid or expired, or
    does not name an existing user.
    """
    if credentials is None:
        raise Unauthenticated()

    payload = decode_access_token(credentials.credentials)
    if payload is None:
        raise Unauthenticated("Token is not valid", code="INVALID_TOKEN")

    subject = payload.get("sub")
    if subject is None:
        raise Unauthenticated("Token is not valid", code="INVALID_TOKEN")

    try:
        user_id = UUID(str(subject))
    except ValueError as e:
        raise Unauthenticated("Token is not valid", code="INVALID_TOKEN") from e

    user = await UserService(db).get_user_by_id(user_id)
    if user is None:
        raise Unauthenticated("User not found", code="INVALID_TOKEN")

    return user


# Type alias for current user dependency
CurrentUser = Annotated[User, Depends(get_current_user)]


async def get_verified_user(user: CurrentUser) -> User:
    """Get the current user, requiring a verified email."""
    if not user.is_verified:
        raise VerificationRequired(email=user.email)
    return user


VerifiedUser = Annotated[User, Depends(get_verified_user)]


def get_membership_service(
    db: DbSession,
    notifier: NotifierDep,
    settings: SettingsDep,
) -> MembershipService:
    return MembershipService(db, notifier=notifier, settings=settings)


Memberships = Annotated[MembershipService, Depends(get_membership_service)]
