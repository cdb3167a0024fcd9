"""Task model."""

import uuid
from datetime import UTC, date, datetime
from typing import Any

from sqlalchemy import JSON, Date, DateTime, ForeignKey, String, Text, Uuid, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from taskshift.core.database import Base


def _utcnow() -> datetime:
    return datetime.now(UTC)


class Task(Base):
    """Task scoped to one organization.

    ``assignees`` holds snapshots of ``{"user_id", "username", "full_name"}``
    taken at assignment time, not references to live user rows. Rows written
    by older clients may hold bare user-id strings instead.
    """

    __tablename__ = "tasks"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    created_by: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    organization_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    assignees: Mapped[list[Any]] = mapped_column(
        JSON().with_variant(JSONB(), "postgresql"),
        nullable=False,
        default=list,
    )
    status: Mapped[str] = mapped_column(String(50), nullable=False, default="pending")
    due_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=_utcnow,
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=_utcnow,
        onupdate=_utcnow,
        server_default=func.now(),
        nullable=False,
    )

    # Relationships
    organization: Mapped["Organization"] = relationship(  # noqa: F821
        "Organization",
        back_populates="tasks",
    )

    def assignee_user_ids(self) -> list[str]:
        """User ids of all assignees, tolerating legacy bare-id entries."""
        ids = []
        for entry in self.assignees or []:
            if isinstance(entry, dict):
                user_id = entry.get("user_id")
            else:
                user_id = entry
            if user_id:
                ids.append(str(user_id))
        return ids

    def __repr__(self) -> str:
        return f"<Task(id={self.id}, title={self.title}, organization_id={self.organization_id})>"
