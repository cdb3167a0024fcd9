"""Pydantic schemas for users."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel

from taskshift.schemas.common import SuccessResponse


class UserResponse(BaseModel):
    """User projection returned by the API. Never includes the password hash."""

    id: UUID
    username: str
    email: str
    full_name: str
    role: str
    status: str
    organization_ids: list[UUID]
    current_organization_id: UUID | None
    online: bool
    created_at: datetime
    last_login_at: datetime | None

    model_config = {"from_attributes": True}


class UserEnvelope(SuccessResponse):
    user: UserResponse
