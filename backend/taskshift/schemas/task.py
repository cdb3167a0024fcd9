"""Pydantic schemas for tasks."""

from datetime import date, datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from taskshift.schemas.common import OrganizationId, SuccessResponse


class AssigneeSnapshot(BaseModel):
    """Assignee as recorded at assignment time."""

    model_config = ConfigDict(frozen=True)

    user_id: UUID
    username: str = Field(..., min_length=1, max_length=50)
    full_name: str = Field(..., min_length=1, max_length=255)

    def to_record(self) -> dict[str, str]:
        return {"user_id": str(self.user_id), "username": self.username, "full_name": self.full_name}


class TaskCreate(BaseModel):
    """Request body for creating a task.

    Without ``organization_id`` the creator's current organization is used.
    """

    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    assignees: list[AssigneeSnapshot] = Field(..., min_length=1)
    status: str | None = Field(None, min_length=1, max_length=50)
    due_date: date | None = None
    organization_id: OrganizationId | None = None


class TaskUpdate(BaseModel):
    """Partial update. Only fields present in the body are applied."""

    title: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = Field(None, min_length=1)
    assignees: list[AssigneeSnapshot] | None = Field(None, min_length=1)
    status: str | None = Field(None, min_length=1, max_length=50)
    due_date: date | None = None
    organization_id: OrganizationId | None = None

    @model_validator(mode="after")
    def reject_null_required_fields(self) -> "TaskUpdate":
        for name in ("title", "description", "assignees", "status", "organization_id"):
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self


class AssigneeRead(BaseModel):
    """Assignee in a response; legacy entries only carry ``user_id``."""

    user_id: str
    username: str | None = None
    full_name: str | None = None


class TaskResponse(BaseModel):
    """Response containing task information."""

    id: UUID
    title: str
    description: str
    created_by: UUID | None
    organization_id: UUID
    assignees: list[AssigneeRead]
    status: str
    due_date: date | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}

    @field_validator("assignees", mode="before")
    @classmethod
    def normalize_legacy_assignees(cls, value: Any) -> Any:
        if not isinstance(value, list):
            return value
        return [{"user_id": str(entry)} if not isinstance(entry, dict) else entry for entry in value]


class TaskEnvelope(SuccessResponse):
    task: TaskResponse


class TaskList(SuccessResponse):
    organization_id: UUID
    tasks: list[TaskResponse]
    total: int
