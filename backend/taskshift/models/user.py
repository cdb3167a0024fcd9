"""User model."""

import enum
import uuid
from datetime import UTC, datetime

from sqlalchemy import JSON, Boolean, DateTime, String, Uuid, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from taskshift.core.database import Base


class UserRole(str, enum.Enum):
    """Global account role."""

    USER = "user"
    ADMIN = "admin"


class UserStatus(str, enum.Enum):
    """Account lifecycle status."""

    PENDING = "pending"
    ACTIVE = "active"
    VERIFIED = "verified"


class User(Base):
    """User account.

    ``organization_ids`` is the ordered list of organizations the user belongs
    to (as UUID strings, insertion order). ``current_organization_id`` is one of
    them or None.
    """

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    username: Mapped[str] = mapped_column(String(50), unique=True, nullable=False, index=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(20), nullable=False, default=UserRole.USER.value)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=UserStatus.PENDING.value
    )
    organization_ids: Mapped[list[str]] = mapped_column(
        JSON().with_variant(JSONB(), "postgresql"),
        nullable=False,
        default=list,
    )
    current_organization_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    online: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        server_default=func.now(),
        nullable=False,
    )
    last_login_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    @property
    def is_verified(self) -> bool:
        return self.status == UserStatus.VERIFIED.value

    def has_organization(self, org_id: uuid.UUID) -> bool:
        return str(org_id) in (self.organization_ids or [])

    def add_organization(self, org_id: uuid.UUID) -> None:
        """Append an organization id, keeping the list free of duplicates."""
        if not self.has_organization(org_id):
            # Reassign so the JSON column is marked dirty
            self.organization_ids = [*(self.organization_ids or []), str(org_id)]

    def remove_organization(self, org_id: uuid.UUID) -> None:
        """Drop an organization id and repair the current-organization pointer."""
        self.organization_ids = [o for o in (self.organization_ids or []) if o != str(org_id)]
        if self.current_organization_id == org_id:
            self.current_organization_id = (
                uuid.UUID(self.organization_ids[0]) if self.organization_ids else None
            )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username={self.username})>"
