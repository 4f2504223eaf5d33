"""APIRouter registration for the provisioning service."""

from __future__ import annotations

from fastapi import APIRouter

from interview_provisioning.routes.health import router as health_router
from interview_provisioning.routes.interviews import router as interviews_router

api_router = APIRouter()
api_router.include_router(health_router, tags=["Health"])
api_router.include_router(interviews_router, tags=["Interviews"])

__all__ = ["api_router"]
