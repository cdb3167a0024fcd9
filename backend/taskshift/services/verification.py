"""Email verification service."""

from datetime import UTC, datetime, timedelta

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from taskshift.core.config import Settings, get_settings
from taskshift.core.errors import (
    InvalidVerificationCode,
    NotFound,
    ValidationError,
    VerificationExpired,
)
from taskshift.core.logging import get_logger
from taskshift.core.security import generate_verification_code
from taskshift.models.user import UserStatus
from taskshift.models.verification import Verification, VerificationStatus
from taskshift.notifier import Notifier, build_notifier
from taskshift.notifier.templates import verification_email
from taskshift.services.user import UserService

logger = get_logger("service.verification")


class VerificationService:
    """Issues and redeems six-digit email verification codes.

    Every send inserts a new row; the most recently created row for an email
    is the only one that can be redeemed.
    """

    def __init__(
        self,
        db: AsyncSession,
        notifier: Notifier | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.db = db
        self.settings = settings or get_settings()
        self.notifier = notifier or build_notifier(self.settings)
        self.users = UserService(db)

    async def get_latest(self, email: str) -> Verification | None:
        """Get the current verification for an email.

        Rows created in the same instant are ordered by id, so the same row
        wins on every call.
        """
        result = await self.db.execute(
            select(Verification)
            .where(Verification.email == email.lower())
            .order_by(Verification.created_at.desc(), Verification.id.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    def is_expired(self, verification: Verification, now: datetime | None = None) -> bool:
        created_at = verification.created_at
        if created_at.tzinfo is None:
            # SQLite hands back naive timestamps
            created_at = created_at.replace(tzinfo=UTC)
        now = now or datetime.now(UTC)
        return now - created_at > timedelta(hours=self.settings.verification_code_ttl_hours)

    async def send_verification(self, email: str) -> Verification:
        """Issue a new code and email it.

        Raises:
            NotFound: no account uses this email
            ValidationError: the account is already verified
            NotificationError: the email could not be delivered
        """
        user = await self.users.get_user_by_email(email)
        if user is None:
            raise NotFound("No account found with this email", code="USER_NOT_FOUND")
        if user.is_verified:
            raise ValidationError("Email is already verified", code="EMAIL_ALREADY_VERIFIED")

        verification = Verification(
            email=user.email,
            code=generate_verification_code(),
            status=VerificationStatus.PENDING.value,
        )
        self.db.add(verification)
        await self.db.flush()

        # Delivery is the point of this call, so a failure propagates
        await self.notifier.send(
            verification_email(
                user.email,
                verification.code,
                sender=self.settings.email_from_verify,
                ttl_hours=self.settings.verification_code_ttl_hours,
            )
        )
        logger.info("verification_sent", email=user.email)
        return verification

    async def verify_email(self, email: str, code: str) -> bool:
        """Redeem a verification code.

        Returns:
            True when the account was already verified, False when this call
            verified it

        Raises:
            NotFound: no account uses this email
            ValidationError: no code was issued for this email
            InvalidVerificationCode: the code does not match the latest one
            VerificationExpired: the latest code is past its lifetime
        """
        user = await self.users.get_user_by_email(email)
        if user is None:
            raise NotFound("No account found with this email", code="USER_NOT_FOUND")
        if user.is_verified:
            return True

        verification = await self.get_latest(user.email)
        if verification is None:
            raise ValidationError(
                "No verification code was issued for this email",
                code="VERIFICATION_NOT_FOUND",
            )
        if verification.code != code.strip():
            raise InvalidVerificationCode()
        if verification.status == VerificationStatus.EXPIRED.value:
            raise VerificationExpired()
        if self.is_expired(verification):
            verification.status = VerificationStatus.EXPIRED.value
            # The request transaction rolls back on error; keep the mark
            await self.db.commit()
            logger.info("verification_expired", email=user.email)
            raise VerificationExpired()

        verification.status = VerificationStatus.VERIFIED.value
        user.status = UserStatus.VERIFIED.value
        await self.db.flush()
        logger.info("email_verified", email=user.email, user_id=str(user.id))
        return False

    async def verification_status(self, email: str) -> tuple[str, bool]:
        """Return ``(status, verified)`` for an email.

        ``status`` is the latest row's status (``expired`` once past its
        lifetime), or ``not_found`` when no code was ever issued.
        """
        user = await self.users.get_user_by_email(email)
        verified = user is not None and user.is_verified

        verification = await self.get_latest(email)
        if verification is None:
            return ("verified" if verified else "not_found"), verified

        status = verification.status
        if status == VerificationStatus.PENDING.value and self.is_expired(verification):
            status = VerificationStatus.EXPIRED.value
        return status, verified
