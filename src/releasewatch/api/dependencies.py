"""Dependency injection for API endpoints."""

import logging
from typing import cast

from fastapi import HTTPException, Request

from releasewatch.application.use_cases import (
    CheckReleasesUseCase,
    SweepExpiredReleasesUseCase,
)

logger = logging.getLogger(__name__)


# Hey future me, everything below is built ONCE in main.py lifespan() and parked on
# app.state. If it's missing, startup failed or hasn't finished - answer 503 instead
# of crashing with AttributeError.
def _from_state(request: Request, name: str) -> object:
    if not hasattr(request.app.state, name):
        raise HTTPException(status_code=503, detail=f"{name} not initialized")
    return getattr(request.app.state, name)


def get_check_releases_use_case(request: Request) -> CheckReleasesUseCase:
    return cast(CheckReleasesUseCase, _from_state(request, "check_releases"))


def get_sweep_use_case(request: Request) -> SweepExpiredReleasesUseCase:
    return cast(SweepExpiredReleasesUseCase, _from_state(request, "sweep_expired"))


__all__ = ["get_check_releases_use_case", "get_sweep_use_case"]
