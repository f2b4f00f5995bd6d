"""Use case for deleting expired releases."""

import logging
from dataclasses import dataclass
from datetime import timedelta

from releasewatch.application.services.expiry_sweeper import ExpirySweeper
from releasewatch.application.use_cases import UseCase
from releasewatch.infrastructure.observability.logging import set_correlation_id
from releasewatch.infrastructure.persistence.database import Database
from releasewatch.infrastructure.persistence.repositories import ReleaseRepository

logger = logging.getLogger(__name__)


@dataclass
class SweepExpiredReleasesRequest:
    user_id: str | None = None


@dataclass
class SweepExpiredReleasesResponse:
    deleted: int
    remaining: int
    correlation_id: str
    keys_pruned: int = 0


class SweepExpiredReleasesUseCase(
    UseCase[SweepExpiredReleasesRequest, SweepExpiredReleasesResponse]
):
    """Delete expired releases, for everybody or one user."""

    def __init__(self, db: Database, key_retention_days: int | None = None) -> None:
        self.db = db
        self.key_retention = (
            timedelta(days=key_retention_days) if key_retention_days is not None else None
        )

    async def execute(
        self, request: SweepExpiredReleasesRequest
    ) -> SweepExpiredReleasesResponse:
        correlation_id = set_correlation_id()
        async with self.db.session_scope() as session:
            sweeper = ExpirySweeper(
                ReleaseRepository(session), key_retention=self.key_retention
            )
            result = await sweeper.sweep(user_id=request.user_id)
        return SweepExpiredReleasesResponse(
            deleted=result.deleted,
            remaining=result.remaining,
            correlation_id=correlation_id,
            keys_pruned=result.keys_pruned,
        )


__all__ = [
    "SweepExpiredReleasesRequest",
    "SweepExpiredReleasesResponse",
    "SweepExpiredReleasesUseCase",
]
