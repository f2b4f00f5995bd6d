"""API router initialization."""

# Hey future me, this is the MAIN API router aggregator. main.py mounts it under
# /api, so health ends up at /api/health/live and scans at /api/scans.

from fastapi import APIRouter

from releasewatch.api.routers import health, scans

api_router = APIRouter()

api_router.include_router(health.router, prefix="/health", tags=["Health"])
api_router.include_router(scans.router, tags=["Scans"])

__all__ = ["api_router"]
