# Hey future me - these two are for Docker/Kubernetes probes, nothing else.
#
# - /health/live  -> process is up (never touches the DB)
# - /health/ready -> DB answers a ping; 503 otherwise
#
# Workers are reported but do NOT gate readiness - a disabled scan worker is a
# valid config (scans triggered via POST /api/scans only).
"""Health check endpoints for Docker/Kubernetes probes."""

from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

router = APIRouter()


class LivenessStatus(BaseModel):
    """Simple liveness probe response."""

    status: str = Field(description="alive")
    timestamp: str = Field(description="ISO timestamp")


class ReadinessStatus(BaseModel):
    """Readiness probe response."""

    status: str = Field(description="ready or not_ready")
    timestamp: str = Field(description="ISO timestamp")
    database: bool = Field(description="Database connection OK")
    workers: dict[str, Any] = Field(
        default_factory=dict, description="Status of the background workers"
    )


@router.get("/live", response_model=LivenessStatus)
async def liveness_probe() -> LivenessStatus:
    """Returns 200 as long as the process is running."""
    return LivenessStatus(status="alive", timestamp=datetime.now(UTC).isoformat())


@router.get("/ready", response_model=ReadinessStatus)
async def readiness_probe(request: Request) -> JSONResponse:
    """Returns 200 if the database is reachable, 503 otherwise."""
    db = getattr(request.app.state, "db", None)
    db_ok = db is not None and await db.ping()

    workers = {
        worker.worker_name: worker.get_status()
        for worker in getattr(request.app.state, "workers", [])
    }

    response = ReadinessStatus(
        status="ready" if db_ok else "not_ready",
        timestamp=datetime.now(UTC).isoformat(),
        database=db_ok,
        workers=workers,
    )
    status_code = status.HTTP_200_OK if db_ok else status.HTTP_503_SERVICE_UNAVAILABLE
    return JSONResponse(content=response.model_dump(), status_code=status_code)
