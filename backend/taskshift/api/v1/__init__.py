"""Version 1 of the HTTP API."""

from fastapi import APIRouter

from taskshift.api.v1 import auth, health, organizations, tasks, verification

api_router = APIRouter()
api_router.include_router(health.router)
api_router.include_router(auth.router)
api_router.include_router(verification.router)
api_router.include_router(organizations.router)
api_router.include_router(tasks.router)
