"""Health check endpoints."""

from typing import Literal

from fastapi import APIRouter, Response, status
from pydantic import BaseModel
from sqlalchemy import text

from taskshift.api.deps import DbSession
from taskshift.core.logging import get_logger

router = APIRouter(tags=["Health"])

logger = get_logger("api.health")


class HealthResponse(BaseModel):
    """Health check response."""

    success: bool = True
    status: Literal["ok", "degraded", "unhealthy"]
    version: str


class ReadinessResponse(BaseModel):
    """Readiness check response."""

    success: bool
    status: Literal["ready", "not_ready"]
    checks: dict[str, bool]


@router.get("/healthz", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """
    Health check endpoint.

    Used by load balancers and orchestrators for liveness probes.
    """
    from taskshift import __version__

    return HealthResponse(status="ok", version=__version__)


@router.get("/readyz", response_model=ReadinessResponse)
async def readiness_check(db: DbSession, response: Response) -> ReadinessResponse:
    """
    Readiness check endpoint.

    Returns whether the service can reach its database.
    """
    checks: dict[str, bool] = {}

    try:
        await db.execute(text("SELECT 1"))
        checks["database"] = True
    except Exception as e:
        logger.warning("readiness_database_unreachable", error=str(e))
        checks["database"] = False

    all_ready = all(checks.values())
    if not all_ready:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return ReadinessResponse(
        success=all_ready,
        status="ready" if all_ready else "not_ready",
        checks=checks,
    )
