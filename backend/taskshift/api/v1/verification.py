"""Email verification API endpoints."""

from fastapi import APIRouter
from pydantic import EmailStr

from taskshift.api.deps import DbSession, NotifierDep, SettingsDep
from taskshift.schemas.auth import (
    SendVerificationRequest,
    VerificationStatusResponse,
    VerifyEmailRequest,
    VerifyEmailResponse,
)
from taskshift.schemas.common import SuccessResponse
from taskshift.services.verification import VerificationService

router = APIRouter(prefix="/auth", tags=["Verification"])


@router.post("/send-verification", response_model=SuccessResponse)
@router.post("/resend-verification", response_model=SuccessResponse)
async def send_verification(
    data: SendVerificationRequest,
    db: DbSession,
    notifier: NotifierDep,
    settings: SettingsDep,
) -> SuccessResponse:
    """Email a new six-digit verification code."""
    service = VerificationService(db, notifier=notifier, settings=settings)
    await service.send_verification(data.email)
    return SuccessResponse(message="Verification code sent")


@router.post("/verify-email", response_model=VerifyEmailResponse)
async def verify_email(
    data: VerifyEmailRequest,
    db: DbSession,
    notifier: NotifierDep,
    settings: SettingsDep,
) -> VerifyEmailResponse:
    """Redeem a verification code."""
    service = VerificationService(db, notifier=notifier, settings=settings)
    already_verified = await service.verify_email(data.email, data.verification_code)
    if already_verified:
        return VerifyEmailResponse(message="Email is already verified", already_verified=True)
    return VerifyEmailResponse(message="Email verified successfully")


@router.get("/verification-status", response_model=VerificationStatusResponse)
async def verification_status(
    email: EmailStr,
    db: DbSession,
    notifier: NotifierDep,
    settings: SettingsDep,
) -> VerificationStatusResponse:
    """Get the verification state of an email."""
    service = VerificationService(db, notifier=notifier, settings=settings)
    status, verified = await service.verification_status(email)
    return VerificationStatusResponse(status=status, verified=verified)
