"""Tests for email verification."""

from collections.abc import Awaitable, Callable
from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import UUID

import pytest
import pytest_asyncio
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from taskshift.models.user import User, UserStatus
from taskshift.models.verification import Verification, VerificationStatus
from taskshift.services.verification import VerificationService

MakeUser = Callable[..., Awaitable[User]]


async def issue_code(
    db_session: AsyncSession,
    email: str,
    code: str,
    age: timedelta = timedelta(0),
) -> Verification:
    verification = Verification(
        email=email,
        code=code,
        status=VerificationStatus.PENDING.value,
        created_at=datetime.now(UTC) - age,
    )
    db_session.add(verification)
    await db_session.flush()
    return verification


@pytest_asyncio.fixture
async def pending_user(make_user: MakeUser) -> User:
    return await make_user("erin", email="e@example.com", status=UserStatus.PENDING)


@pytest.mark.asyncio
async def test_send_verification_emails_code(
    client: AsyncClient,
    db_session: AsyncSession,
    notifier: Any,
    pending_user: User,
) -> None:
    """Test sending stores a pending code and emails it."""
    response = await client.post("/api/v1/auth/send-verification", json={"email": "e@example.com"})

    assert response.status_code == 200
    assert response.json()["success"] is True

    result = await db_session.execute(select(Verification).where(Verification.email == "e@example.com"))
    verification = result.scalar_one()
    assert verification.status == "pending"
    assert len(verification.code) == 6

    assert len(notifier.sent) == 1
    assert notifier.sent[0].to == "e@example.com"
    assert verification.code in notifier.sent[0].html


@pytest.mark.asyncio
async def test_send_verification_unknown_email(client: AsyncClient) -> None:
    response = await client.post(
        "/api/v1/auth/send-verification",
        json={"email": "nobody@example.com"},
    )

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_send_verification_already_verified(client: AsyncClient, admin_user: User) -> None:
    response = await client.post(
        "/api/v1/auth/send-verification",
        json={"email": "alice@example.com"},
    )

    assert response.status_code == 400
    assert response.json()["error"] == "EMAIL_ALREADY_VERIFIED"


@pytest.mark.asyncio
async def test_send_verification_delivery_failure(
    client: AsyncClient,
    use_failing_notifier: None,
    pending_user: User,
) -> None:
    """Test a failed delivery is an error, since the email is the point of the call."""
    response = await client.post("/api/v1/auth/send-verification", json={"email": "e@example.com"})

    assert response.status_code == 500
    data = response.json()
    assert data["success"] is False
    assert data["error"] == "NOTIFICATION_FAILED"


@pytest.mark.asyncio
async def test_verify_wrong_code(
    client: AsyncClient,
    db_session: AsyncSession,
    pending_user: User,
) -> None:
    await issue_code(db_session, "e@example.com", "123456")

    response = await client.post(
        "/api/v1/auth/verify-email",
        json={"email": "e@example.com", "verification_code": "000000"},
    )

    assert response.status_code == 400
    assert response.json()["error"] == "INVALID_VERIFICATION_CODE"
    assert pending_user.status == "pending"


@pytest.mark.asyncio
async def test_verify_correct_code(
    client: AsyncClient,
    db_session: AsyncSession,
    pending_user: User,
) -> None:
    verification = await issue_code(db_session, "e@example.com", "123456", age=timedelta(hours=23))

    response = await client.post(
        "/api/v1/auth/verify-email",
        json={"email": "e@example.com", "verification_code": "123456"},
    )

    assert response.status_code == 200
    assert response.json()["already_verified"] is False
    assert pending_user.status == "verified"
    assert verification.status == "verified"


@pytest.mark.asyncio
async def test_verify_expired_code(
    client: AsyncClient,
    db_session: AsyncSession,
    pending_user: User,
) -> None:
    """Test a code older than 24 hours is marked expired and refused."""
    verification = await issue_code(db_session, "e@example.com", "123456", age=timedelta(hours=25))

    response = await client.post(
        "/api/v1/auth/verify-email",
        json={"email": "e@example.com", "verification_code": "123456"},
    )

    assert response.status_code == 400
    assert response.json()["error"] == "VERIFICATION_EXPIRED"
    assert verification.status == "expired"
    assert pending_user.status == "pending"


@pytest.mark.asyncio
async def test_newest_code_is_authoritative(
    client: AsyncClient,
    db_session: AsyncSession,
    pending_user: User,
) -> None:
    await issue_code(db_session, "e@example.com", "111111", age=timedelta(minutes=10))
    await issue_code(db_session, "e@example.com", "222222")

    stale = await client.post(
        "/api/v1/auth/verify-email",
        json={"email": "e@example.com", "verification_code": "111111"},
    )
    fresh = await client.post(
        "/api/v1/auth/verify-email",
        json={"email": "e@example.com", "verification_code": "222222"},
    )

    assert stale.status_code == 400
    assert fresh.status_code == 200


@pytest.mark.asyncio
async def test_verify_without_code(client: AsyncClient, pending_user: User) -> None:
    response = await client.post(
        "/api/v1/auth/verify-email",
        json={"email": "e@example.com", "verification_code": "123456"},
    )

    assert response.status_code == 400
    assert response.json()["error"] == "VERIFICATION_NOT_FOUND"


@pytest.mark.asyncio
async def test_verify_already_verified(client: AsyncClient, admin_user: User) -> None:
    response = await client.post(
        "/api/v1/auth/verify-email",
        json={"email": "alice@example.com", "verification_code": "123456"},
    )

    assert response.status_code == 200
    assert response.json()["already_verified"] is True


@pytest.mark.asyncio
async def test_verification_status(
    client: AsyncClient,
    db_session: AsyncSession,
    pending_user: User,
) -> None:
    before = await client.get("/api/v1/auth/verification-status", params={"email": "e@example.com"})
    await issue_code(db_session, "e@example.com", "123456")
    after = await client.get("/api/v1/auth/verification-status", params={"email": "e@example.com"})

    assert before.json()["status"] == "not_found"
    assert before.json()["verified"] is False
    assert after.json()["status"] == "pending"


@pytest.mark.asyncio
async def test_verification_status_reports_expiry(
    client: AsyncClient,
    db_session: AsyncSession,
    pending_user: User,
) -> None:
    await issue_code(db_session, "e@example.com", "123456", age=timedelta(hours=30))

    response = await client.get("/api/v1/auth/verification-status", params={"email": "e@example.com"})

    assert response.json()["status"] == "expired"


@pytest.mark.asyncio
async def test_resend_verification(
    client: AsyncClient,
    db_session: AsyncSession,
    notifier: Any,
    pending_user: User,
) -> None:
    """Test resending issues a new code and only the newest one is redeemable."""
    await client.post("/api/v1/auth/send-verification", json={"email": "e@example.com"})
    response = await client.post("/api/v1/auth/resend-verification", json={"email": "e@example.com"})

    assert response.status_code == 200
    assert len(notifier.sent) == 2
    latest = await VerificationService(db_session).get_latest("e@example.com")
    assert latest is not None
    assert latest.code in notifier.sent[1].html


@pytest.mark.asyncio
async def test_latest_verification_with_equal_timestamps(db_session: AsyncSession, pending_user: User) -> None:
    created_at = datetime.now(UTC)
    for n in (1, 2):
        db_session.add(
            Verification(
                id=UUID(int=n),
                email="e@example.com",
                code=f"00000{n}",
                status=VerificationStatus.PENDING.value,
                created_at=created_at,
            )
        )
    await db_session.flush()

    service = VerificationService(db_session)
    first = await service.get_latest("e@example.com")
    second = await service.get_latest("e@example.com")

    assert first is not None
    assert first.id == UUID(int=2)
    assert second is first
