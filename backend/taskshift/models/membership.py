"""Membership model - links users (or invited emails) to organizations."""

import enum
import uuid
from datetime import UTC, datetime

from sqlalchemy import DateTime, ForeignKey, String, UniqueConstraint, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from taskshift.core.database import Base


class MembershipRole(str, enum.Enum):
    """Organizational role recorded on a membership."""

    USER = "user"
    ADMIN = "admin"


class MembershipPermission(str, enum.Enum):
    """Authorization level inside one organization."""

    ADMIN = "admin"
    STANDARD = "standard"
    TEAMATE = "teamate"


class MembershipStatus(str, enum.Enum):
    """Membership lifecycle: invited -> active."""

    INVITED = "invited"
    ACTIVE = "active"


class Membership(Base):
    """Membership - binds a user, or an invited email, to an organization.

    While ``status`` is ``invited`` the row is addressed by (org_id, email) and
    ``user_id`` is unset. Activation binds ``user_id``.
    """

    __tablename__ = "memberships"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    org_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    username: Mapped[str | None] = mapped_column(String(50), nullable=True)
    role: Mapped[str] = mapped_column(
        String(20), nullable=False, default=MembershipRole.USER.value
    )
    permission: Mapped[str] = mapped_column(
        String(20), nullable=False, default=MembershipPermission.TEAMATE.value
    )
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=MembershipStatus.INVITED.value
    )
    invite_code: Mapped[str | None] = mapped_column(String(64), nullable=True, unique=True)
    invited_by: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        server_default=func.now(),
        nullable=False,
    )
    activated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # Relationships
    organization: Mapped["Organization"] = relationship(  # noqa: F821
        "Organization",
        back_populates="memberships",
    )

    __table_args__ = (
        UniqueConstraint("org_id", "user_id", name="uq_membership_org_user"),
        UniqueConstraint("org_id", "email", name="uq_membership_org_email"),
    )

    @property
    def is_active(self) -> bool:
        return self.status == MembershipStatus.ACTIVE.value

    @property
    def is_admin(self) -> bool:
        return self.is_active and self.permission == MembershipPermission.ADMIN.value

    def __repr__(self) -> str:
        return (
            f"<Membership(org_id={self.org_id}, email={self.email}, "
            f"status={self.status}, permission={self.permission})>"
        )
