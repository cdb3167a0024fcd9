"""Tests for authentication endpoints."""

from collections.abc import Awaitable, Callable
from uuid import UUID

import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from taskshift.models.membership import Membership
from taskshift.models.organization import Organization
from taskshift.models.user import User, UserStatus

MakeUser = Callable[..., Awaitable[User]]

REGISTRATION = {
    "username": "dana",
    "email": "Dana@Example.com",
    "full_name": "Dana Doe",
    "password": "correct-horse",
}


@pytest.mark.asyncio
async def test_register_creates_pending_user(client: AsyncClient) -> None:
    """Test registration creates an unverified account and returns a token."""
    response = await client.post("/api/v1/auth/register", json=REGISTRATION)

    assert response.status_code == 201
    data = response.json()
    assert data["success"] is True
    assert data["token"]
    assert data["expires_in"] == 24 * 60 * 60
    assert data["user"]["status"] == "pending"
    assert data["user"]["email"] == "dana@example.com"
    assert data["user"]["organization_ids"] == []
    assert "password_hash" not in data["user"]
    assert data["organization"] is None


@pytest.mark.asyncio
async def test_register_with_organization(client: AsyncClient, db_session: AsyncSession) -> None:
    """Test the registering user becomes admin and current member of the new organization."""
    response = await client.post(
        "/api/v1/auth/register",
        json={**REGISTRATION, "organization_name": "Acme"},
    )

    assert response.status_code == 201
    data = response.json()
    org_id = data["organization"]["id"]
    assert data["organization"]["name"] == "Acme"
    assert data["user"]["organization_ids"] == [org_id]
    assert data["user"]["current_organization_id"] == org_id

    result = await db_session.execute(select(Membership).where(Membership.org_id == UUID(org_id)))
    membership = result.scalar_one()
    assert membership.status == "active"
    assert membership.permission == "admin"
    assert membership.role == "admin"


@pytest.mark.asyncio
async def test_register_duplicate_username(client: AsyncClient, make_user: MakeUser) -> None:
    await make_user("dana", email="someone@example.com")

    response = await client.post("/api/v1/auth/register", json=REGISTRATION)

    assert response.status_code == 409
    assert response.json()["error"] == "USERNAME_EXISTS"


@pytest.mark.asyncio
async def test_register_duplicate_email_ignores_case(client: AsyncClient, make_user: MakeUser) -> None:
    await make_user("someone", email="dana@example.com")

    response = await client.post("/api/v1/auth/register", json=REGISTRATION)

    assert response.status_code == 409
    assert response.json()["error"] == "EMAIL_EXISTS"


@pytest.mark.asyncio
async def test_register_duplicate_organization_name(
    client: AsyncClient,
    db_session: AsyncSession,
    test_org: Organization,
) -> None:
    """Test an organization name taken in another case is refused and no user is created."""
    response = await client.post(
        "/api/v1/auth/register",
        json={**REGISTRATION, "organization_name": "ACME"},
    )

    assert response.status_code == 409
    assert response.json()["error"] == "DUPLICATE_ORGANIZATION_NAME"
    result = await db_session.execute(select(User).where(User.username == "dana"))
    assert result.scalar_one_or_none() is None


@pytest.mark.asyncio
async def test_register_validation_error(client: AsyncClient) -> None:
    response = await client.post(
        "/api/v1/auth/register",
        json={**REGISTRATION, "email": "not-an-email", "password": "short"},
    )

    assert response.status_code == 400
    data = response.json()
    assert data["success"] is False
    assert data["error"] == "VALIDATION_ERROR"
    assert len(data["errors"]) == 2


@pytest.mark.asyncio
async def test_login_by_username(client: AsyncClient, admin_user: User) -> None:
    """Test login by username marks the user online."""
    response = await client.post(
        "/api/v1/auth/login",
        json={"login": "alice", "password": "testpassword123"},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["token"]
    assert data["token_type"] == "bearer"
    assert data["user"]["online"] is True
    assert data["user"]["last_login_at"] is not None


@pytest.mark.asyncio
async def test_login_by_email(client: AsyncClient, admin_user: User) -> None:
    response = await client.post(
        "/api/v1/auth/login",
        json={"login": "ALICE@example.com", "password": "testpassword123"},
    )

    assert response.status_code == 200
    assert response.json()["user"]["username"] == "alice"


@pytest.mark.asyncio
async def test_login_invalid_password(client: AsyncClient, admin_user: User) -> None:
    response = await client.post(
        "/api/v1/auth/login",
        json={"login": "alice", "password": "wrongpassword"},
    )

    assert response.status_code == 401
    assert response.json()["error"] == "INVALID_CREDENTIALS"


@pytest.mark.asyncio
async def test_login_unknown_user(client: AsyncClient) -> None:
    response = await client.post(
        "/api/v1/auth/login",
        json={"login": "nobody", "password": "password123"},
    )

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_login_unverified_user(client: AsyncClient, make_user: MakeUser) -> None:
    """Test unverified accounts are told to verify, with their email."""
    await make_user("erin", status=UserStatus.PENDING)

    response = await client.post(
        "/api/v1/auth/login",
        json={"login": "erin", "password": "testpassword123"},
    )

    assert response.status_code == 403
    data = response.json()
    assert data["error"] == "VERIFICATION_REQUIRED"
    assert data["verification_required"] is True
    assert data["email"] == "erin@example.com"


@pytest.mark.asyncio
async def test_login_applies_organization_fallback(
    client: AsyncClient,
    db_session: AsyncSession,
    member_user: User,
    test_org: Organization,
) -> None:
    """Test a missing current organization falls back to the first one."""
    member_user.current_organization_id = None
    await db_session.flush()

    response = await client.post(
        "/api/v1/auth/login",
        json={"login": "bob", "password": "testpassword123"},
    )

    assert response.status_code == 200
    assert response.json()["user"]["current_organization_id"] == str(test_org.id)
    assert member_user.current_organization_id == test_org.id


@pytest.mark.asyncio
async def test_get_me_authenticated(client: AsyncClient, admin_headers: dict[str, str]) -> None:
    response = await client.get("/api/v1/auth/me", headers=admin_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["user"]["username"] == "alice"
    assert data["user"]["status"] == "verified"


@pytest.mark.asyncio
async def test_get_me_unauthenticated(client: AsyncClient) -> None:
    response = await client.get("/api/v1/auth/me")

    assert response.status_code == 401
    data = response.json()
    assert data["success"] is False
    assert data["error"] == "UNAUTHENTICATED"


@pytest.mark.asyncio
async def test_get_me_invalid_token(client: AsyncClient) -> None:
    response = await client.get("/api/v1/auth/me", headers={"Authorization": "Bearer garbage"})

    assert response.status_code == 401
    assert response.json()["error"] == "INVALID_TOKEN"


@pytest.mark.asyncio
async def test_get_me_requires_verification(
    client: AsyncClient,
    make_user: MakeUser,
    auth_headers: Callable[[User], dict[str, str]],
) -> None:
    user = await make_user("erin", status=UserStatus.PENDING)

    response = await client.get("/api/v1/auth/me", headers=auth_headers(user))

    assert response.status_code == 403
    assert response.json()["verification_required"] is True


@pytest.mark.asyncio
async def test_logout_marks_offline(
    client: AsyncClient,
    admin_user: User,
    admin_headers: dict[str, str],
    db_session: AsyncSession,
) -> None:
    admin_user.online = True
    await db_session.flush()

    response = await client.post("/api/v1/auth/logout", headers=admin_headers)

    assert response.status_code == 200
    assert response.json()["success"] is True
    assert admin_user.online is False


@pytest.mark.asyncio
async def test_register_blank_organization_name(client: AsyncClient, db_session: AsyncSession) -> None:
    """Test a whitespace-only organization name is rejected before anything is created."""
    response = await client.post(
        "/api/v1/auth/register",
        json={**REGISTRATION, "organization_name": "   "},
    )

    assert response.status_code == 400
    assert response.json()["error"] == "VALIDATION_ERROR"
    result = await db_session.execute(select(User).where(User.username == "dana"))
    assert result.scalar_one_or_none() is None
