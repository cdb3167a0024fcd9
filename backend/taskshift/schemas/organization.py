"""Pydantic schemas for organizations."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel

from taskshift.schemas.common import OrganizationId, OrganizationName, PartialResponse, SuccessResponse


class OrganizationCreate(BaseModel):
    """Request body for creating an organization."""

    name: OrganizationName


class OrganizationResponse(BaseModel):
    """Response containing organization information."""

    id: UUID
    name: str
    created_by: UUID | None
    status: str
    created_at: datetime

    model_config = {"from_attributes": True}


class UserOrganizationResponse(OrganizationResponse):
    """An organization seen from one member's side."""

    role: str
    permission: str
    is_current: bool


class OrganizationEnvelope(PartialResponse):
    organization: OrganizationResponse


class OrganizationList(SuccessResponse):
    organizations: list[OrganizationResponse]
    total: int


class UserOrganizationList(SuccessResponse):
    organizations: list[UserOrganizationResponse]
    current_organization_id: UUID | None
    total: int


class OrganizationSelect(BaseModel):
    """Request body naming one organization (join, set-current)."""

    organization_id: OrganizationId
