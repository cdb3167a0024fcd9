"""Authentication API endpoints."""

from fastapi import APIRouter, status

from taskshift.api.deps import CurrentUser, DbSession, Memberships, SettingsDep, VerifiedUser
from taskshift.schemas.auth import AuthResponse, LoginRequest, RegisterRequest
from taskshift.schemas.common import SuccessResponse
from taskshift.schemas.organization import OrganizationResponse
from taskshift.schemas.user import UserEnvelope, UserResponse
from taskshift.services.auth import AuthResult, AuthService

router = APIRouter(prefix="/auth", tags=["Authentication"])


def _auth_response(result: AuthResult, message: str) -> AuthResponse:
    return AuthResponse(
        message=message,
        token=result.token,
        expires_in=result.expires_in,
        user=UserResponse.model_validate(result.user),
        organization=(
            OrganizationResponse.model_validate(result.organization) if result.organization else None
        ),
    )


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(
    data: RegisterRequest,
    db: DbSession,
    memberships: Memberships,
    settings: SettingsDep,
) -> AuthResponse:
    """Register a new account.

    With ``organization_name`` the organization is created in the same
    transaction and the new user becomes its admin. The account must verify
    its email before it can log in.
    """
    result = await AuthService(db, memberships=memberships, settings=settings).register(data)
    return _auth_response(result, "User registered successfully")


@router.post("/login", response_model=AuthResponse)
async def login(
    data: LoginRequest,
    db: DbSession,
    memberships: Memberships,
    settings: SettingsDep,
) -> AuthResponse:
    """Log in with a username or email and a password."""
    result = await AuthService(db, memberships=memberships, settings=settings).login(
        data.login, data.password
    )
    return _auth_response(result, "Login successful")


@router.post("/logout", response_model=SuccessResponse)
async def logout(user: CurrentUser, db: DbSession, memberships: Memberships) -> SuccessResponse:
    """Mark the current user offline."""
    await AuthService(db, memberships=memberships).logout(user)
    return SuccessResponse(message="Logged out successfully")


@router.get("/me", response_model=UserEnvelope)
async def me(user: VerifiedUser, db: DbSession, memberships: Memberships) -> UserEnvelope:
    """Get the current user."""
    user = await AuthService(db, memberships=memberships).me(user)
    return UserEnvelope(user=UserResponse.model_validate(user))
