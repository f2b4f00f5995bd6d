"""On-demand release checks and expiry sweeps.

Hey future me - these are the SAME pipelines the workers run, just triggered by
an HTTP call (admin button, cron job, "check my stuff now"). Responses carry
aggregate counts only, never release contents.

Endpoints:
- POST /scans                        -> global scan
- POST /scans/users/{user_id}        -> one user's entities
- POST /scans/entities/{entity_id}   -> one entity (404 if unknown)
- POST /sweeps                       -> delete expired releases
- POST /sweeps/users/{user_id}       -> delete one user's expired releases
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from releasewatch.api.dependencies import (
    get_check_releases_use_case,
    get_sweep_use_case,
)
from releasewatch.application.use_cases import (
    CheckReleasesRequest,
    CheckReleasesResponse,
    CheckReleasesUseCase,
    SweepExpiredReleasesRequest,
    SweepExpiredReleasesUseCase,
)

router = APIRouter()


class ScanResponse(BaseModel):
    """Aggregate result of one release check."""

    scope: str
    entities_processed: int
    entities_failed: int
    releases_inserted: int
    users_notified: int
    users_skipped: int
    emails_failed: int
    correlation_id: str
    skipped_providers: dict[str, str] = Field(default_factory=dict)

    @classmethod
    def from_result(cls, result: CheckReleasesResponse) -> "ScanResponse":
        return cls(
            scope=result.scope,
            entities_processed=result.entities_processed,
            entities_failed=result.entities_failed,
            releases_inserted=result.releases_inserted,
            users_notified=result.users_notified,
            users_skipped=result.users_skipped,
            emails_failed=result.emails_failed,
            correlation_id=result.correlation_id,
            skipped_providers=result.skipped_providers,
        )


class SweepResponse(BaseModel):
    deleted: int
    remaining: int
    correlation_id: str
    keys_pruned: int = 0


@router.post("/scans", response_model=ScanResponse)
async def scan_all(
    use_case: CheckReleasesUseCase = Depends(get_check_releases_use_case),
) -> ScanResponse:
    """Check every tracked entity for new releases."""
    result = await use_case.execute(CheckReleasesRequest())
    return ScanResponse.from_result(result)


@router.post("/scans/users/{user_id}", response_model=ScanResponse)
async def scan_user(
    user_id: str,
    use_case: CheckReleasesUseCase = Depends(get_check_releases_use_case),
) -> ScanResponse:
    """Check one user's tracked entities."""
    result = await use_case.execute(CheckReleasesRequest(user_id=user_id))
    return ScanResponse.from_result(result)


@router.post("/scans/entities/{entity_id}", response_model=ScanResponse)
async def scan_entity(
    entity_id: str,
    use_case: CheckReleasesUseCase = Depends(get_check_releases_use_case),
) -> ScanResponse:
    """Check a single tracked entity."""
    result = await use_case.execute(CheckReleasesRequest(entity_id=entity_id))
    return ScanResponse.from_result(result)


@router.post("/sweeps", response_model=SweepResponse)
async def sweep_all(
    use_case: SweepExpiredReleasesUseCase = Depends(get_sweep_use_case),
) -> SweepResponse:
    """Delete every expired release."""
    result = await use_case.execute(SweepExpiredReleasesRequest())
    return SweepResponse(
        deleted=result.deleted,
        remaining=result.remaining,
        correlation_id=result.correlation_id,
        keys_pruned=result.keys_pruned,
    )


@router.post("/sweeps/users/{user_id}", response_model=SweepResponse)
async def sweep_user(
    user_id: str,
    use_case: SweepExpiredReleasesUseCase = Depends(get_sweep_use_case),
) -> SweepResponse:
    """Delete one user's expired releases."""
    result = await use_case.execute(SweepExpiredReleasesRequest(user_id=user_id))
    return SweepResponse(
        deleted=result.deleted,
        remaining=result.remaining,
        correlation_id=result.correlation_id,
        keys_pruned=result.keys_pruned,
    )
