"""Shared pydantic types and response envelopes."""

from typing import Annotated, Any
from uuid import UUID

from pydantic import BaseModel, BeforeValidator, StringConstraints


def _single_identifier(value: Any) -> Any:
    # Legacy clients joined several ids with commas into one field
    if isinstance(value, str) and "," in value:
        raise ValueError("must be a single organization identifier, not a list")
    return value


OrganizationId = Annotated[UUID, BeforeValidator(_single_identifier)]

# Stripped before the length check, so a blank name is rejected
OrganizationName = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=255)]


class SuccessResponse(BaseModel):
    """Envelope every successful response shares."""

    success: bool = True
    message: str | None = None


class PartialResponse(SuccessResponse):
    """Envelope for operations with best-effort secondary steps."""

    warnings: list[str] = []
    partial_failure: bool = False
