"""Pydantic schemas for authentication and email verification."""

from pydantic import BaseModel, EmailStr, Field

from taskshift.schemas.common import OrganizationName, SuccessResponse
from taskshift.schemas.membership import USERNAME_PATTERN
from taskshift.schemas.organization import OrganizationResponse
from taskshift.schemas.user import UserResponse


class RegisterRequest(BaseModel):
    """Request body for registration.

    With ``organization_name`` a new organization is created and the user
    becomes its admin.
    """

    username: str = Field(..., min_length=3, max_length=50, pattern=USERNAME_PATTERN)
    email: EmailStr
    full_name: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=8, max_length=128)
    organization_name: OrganizationName | None = None


class LoginRequest(BaseModel):
    """Request body for login. ``login`` is a username or an email."""

    login: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class AuthResponse(SuccessResponse):
    """Response containing a JWT and the authenticated user."""

    token: str
    token_type: str = "bearer"
    expires_in: int  # seconds
    user: UserResponse
    organization: OrganizationResponse | None = None


class SendVerificationRequest(BaseModel):
    email: EmailStr


class VerifyEmailRequest(BaseModel):
    email: EmailStr
    verification_code: str = Field(..., min_length=1, max_length=12)


class VerifyEmailResponse(SuccessResponse):
    already_verified: bool = False


class VerificationStatusResponse(SuccessResponse):
    status: str
    verified: bool
