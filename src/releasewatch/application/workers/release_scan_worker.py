"""Background worker that runs the global release check on a schedule."""

from dataclasses import asdict
from typing import Any

from releasewatch.application.use_cases.check_releases import (
    CheckReleasesRequest,
    CheckReleasesUseCase,
)
from releasewatch.application.workers.periodic_worker import PeriodicWorker


class ReleaseScanWorker(PeriodicWorker):
    """Global scan every workers.scan_interval_minutes.

    Hey future me - the first run waits a little after startup so the API is up and
    migrations are done before we start hammering providers.
    """

    worker_name = "Release Scan Worker"

    def __init__(
        self,
        use_case: CheckReleasesUseCase,
        interval_seconds: int = 3600,
        startup_delay_seconds: float = 30.0,
    ) -> None:
        super().__init__(interval_seconds, startup_delay_seconds)
        self.use_case = use_case

    async def _run_once(self) -> dict[str, Any]:
        response = await self.use_case.execute(CheckReleasesRequest())
        return asdict(response)


__all__ = ["ReleaseScanWorker"]
