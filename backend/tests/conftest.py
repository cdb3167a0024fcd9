"""Pytest configuration and fixtures."""

import os
from collections.abc import AsyncGenerator, Awaitable, Callable
from datetime import UTC, datetime
from uuid import uuid4

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from taskshift.api.deps import get_notifier
from taskshift.core.database import Base, get_db
from taskshift.core.errors import NotificationError
from taskshift.core.security import create_access_token, hash_password
from taskshift.main import app
from taskshift.models.membership import (
    Membership,
    MembershipPermission,
    MembershipRole,
    MembershipStatus,
)
from taskshift.models.organization import Organization
from taskshift.models.user import User, UserStatus
from taskshift.notifier import EmailMessage, Notifier

# In-memory SQLite by default; point at Postgres to run against the real dialect
TEST_DATABASE_URL = os.environ.get("TEST_DATABASE_URL", "sqlite+aiosqlite:///:memory:")

TEST_PASSWORD = "testpassword123"


class RecordingNotifier(Notifier):
    """Keeps sent messages in memory."""

    def __init__(self) -> None:
        self.sent: list[EmailMessage] = []

    async def send(self, message: EmailMessage) -> str | None:
        self.sent.append(message)
        return f"msg-{len(self.sent)}"


class FailingNotifier(Notifier):
    """Fails every delivery, like an unreachable provider."""

    async def send(self, message: EmailMessage) -> str | None:
        raise NotificationError("Email provider returned status 503")


@pytest_asyncio.fixture
async def test_engine() -> AsyncGenerator[AsyncEngine, None]:
    """Create a test database engine with a fresh schema."""
    if TEST_DATABASE_URL.startswith("sqlite"):
        engine = create_async_engine(TEST_DATABASE_URL, poolclass=StaticPool)

        # Let SQLAlchemy drive BEGIN so SAVEPOINTs work on SQLite
        @event.listens_for(engine.sync_engine, "connect")
        def do_connect(dbapi_connection, connection_record) -> None:  # noqa: ANN001
            dbapi_connection.isolation_level = None

        @event.listens_for(engine.sync_engine, "begin")
        def do_begin(conn) -> None:  # noqa: ANN001
            conn.exec_driver_sql("BEGIN")

    else:
        engine = create_async_engine(TEST_DATABASE_URL, echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(test_engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session with transaction rollback."""
    session_factory = async_sessionmaker(
        bind=test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    async with session_factory() as session:
        yield session
        # Rollback any changes made during the test
        await session.rollback()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest_asyncio.fixture
async def client(
    db_session: AsyncSession,
    notifier: RecordingNotifier,
) -> AsyncGenerator[AsyncClient, None]:
    """Create an async test client with database session and notifier overrides."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notifier] = lambda: notifier

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def use_failing_notifier(client: AsyncClient) -> None:
    """Make every email delivery fail for the rest of the test."""
    app.dependency_overrides[get_notifier] = lambda: FailingNotifier()


MakeUser = Callable[..., Awaitable[User]]


@pytest_asyncio.fixture
async def make_user(db_session: AsyncSession) -> MakeUser:
    """Factory creating users directly in the database."""

    async def _make_user(
        username: str,
        *,
        email: str | None = None,
        full_name: str | None = None,
        status: UserStatus = UserStatus.VERIFIED,
    ) -> User:
        user = User(
            id=uuid4(),
            username=username,
            email=email or f"{username}@example.com",
            full_name=full_name or username.title(),
            password_hash=hash_password(TEST_PASSWORD),
            status=status.value,
            organization_ids=[],
        )
        db_session.add(user)
        await db_session.flush()
        return user

    return _make_user


MakeMembership = Callable[..., Awaitable[Membership]]


@pytest_asyncio.fixture
async def add_member(db_session: AsyncSession) -> MakeMembership:
    """Factory adding an active membership and syncing the user's organization list."""

    async def _add_member(
        org: Organization,
        user: User,
        permission: MembershipPermission = MembershipPermission.STANDARD,
        role: MembershipRole = MembershipRole.USER,
    ) -> Membership:
        membership = Membership(
            id=uuid4(),
            org_id=org.id,
            user_id=user.id,
            email=user.email,
            full_name=user.full_name,
            username=user.username,
            role=role.value,
            permission=permission.value,
            status=MembershipStatus.ACTIVE.value,
            activated_at=datetime.now(UTC),
        )
        db_session.add(membership)
        user.add_organization(org.id)
        if user.current_organization_id is None:
            user.current_organization_id = org.id
        await db_session.flush()
        return membership

    return _add_member


@pytest_asyncio.fixture
async def make_org(db_session: AsyncSession, add_member: MakeMembership) -> Callable[..., Awaitable[Organization]]:
    """Factory creating an organization administered by ``admin``."""

    async def _make_org(name: str, admin: User) -> Organization:
        org = Organization(id=uuid4(), name=name, created_by=admin.id, status="active")
        db_session.add(org)
        await db_session.flush()
        await add_member(org, admin, MembershipPermission.ADMIN, MembershipRole.ADMIN)
        return org

    return _make_org


@pytest_asyncio.fixture
async def admin_user(make_user: MakeUser) -> User:
    """Verified user who administers ``test_org``."""
    return await make_user("alice", full_name="Alice Admin")


@pytest_asyncio.fixture
async def test_org(make_org, admin_user: User) -> Organization:  # noqa: ANN001
    """Organization "Acme" with ``admin_user`` as its admin."""
    return await make_org("Acme", admin_user)


@pytest_asyncio.fixture
async def member_user(make_user: MakeUser, add_member: MakeMembership, test_org: Organization) -> User:
    """Verified user with standard permission in ``test_org``."""
    user = await make_user("bob", full_name="Bob Member")
    await add_member(test_org, user)
    return user


@pytest_asyncio.fixture
async def other_org(make_org, make_user: MakeUser) -> Organization:  # noqa: ANN001
    """Organization "Globex" administered by ``outsider_user``."""
    carol = await make_user("carol", full_name="Carol Outsider")
    return await make_org("Globex", carol)


@pytest_asyncio.fixture
async def outsider_user(other_org: Organization, db_session: AsyncSession) -> User:
    """Admin of ``other_org`` with no membership in ``test_org``."""
    user = await db_session.get(User, other_org.created_by)
    assert user is not None
    return user


def bearer(user: User) -> dict[str, str]:
    token = create_access_token(subject=str(user.id))
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers() -> Callable[[User], dict[str, str]]:
    """Build authentication headers for any user."""
    return bearer


@pytest.fixture
def admin_headers(admin_user: User) -> dict[str, str]:
    return bearer(admin_user)


@pytest.fixture
def member_headers(member_user: User) -> dict[str, str]:
    return bearer(member_user)


@pytest.fixture
def outsider_headers(outsider_user: User) -> dict[str, str]:
    return bearer(outsider_user)
