"""Background worker that deletes expired releases on its own schedule."""

from dataclasses import asdict
from typing import Any

from releasewatch.application.use_cases.sweep_expired_releases import (
    SweepExpiredReleasesRequest,
    SweepExpiredReleasesUseCase,
)
from releasewatch.application.workers.periodic_worker import PeriodicWorker


class ExpirySweepWorker(PeriodicWorker):
    """Sweep every workers.sweep_interval_minutes."""

    worker_name = "Expiry Sweep Worker"

    def __init__(
        self,
        use_case: SweepExpiredReleasesUseCase,
        interval_seconds: int = 21600,
        startup_delay_seconds: float = 10.0,
    ) -> None:
        super().__init__(interval_seconds, startup_delay_seconds)
        self.use_case = use_case

    async def _run_once(self) -> dict[str, Any]:
        response = await self.use_case.execute(SweepExpiredReleasesRequest())
        return asdict(response)


__all__ = ["ExpirySweepWorker"]
