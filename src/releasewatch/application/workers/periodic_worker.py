"""Base class for interval-driven background workers.

Hey future me - the loop runs FOREVER until stop() is called. Each tick:
1. Run one unit of work (_run_once)
2. Record stats
3. Sleep interval_seconds

Errors NEVER crash the loop - log them, remember them for get_status(), carry on.
"""

import asyncio
import contextlib
import logging
import time
from abc import ABC, abstractmethod
from datetime import UTC, datetime
from typing import Any

from releasewatch.infrastructure.observability.log_messages import LogMessages

logger = logging.getLogger(__name__)


class PeriodicWorker(ABC):
    """Runs _run_once() every interval_seconds on its own asyncio task."""

    worker_name = "Worker"

    def __init__(self, interval_seconds: int, startup_delay_seconds: float = 0.0) -> None:
        self.interval_seconds = interval_seconds
        self.startup_delay_seconds = startup_delay_seconds
        self._running = False
        self._task: asyncio.Task[None] | None = None
        self._last_run: datetime | None = None
        self._stats: dict[str, Any] = {
            "run_count": 0,
            "last_result": None,
            "last_error": None,
            "last_duration_seconds": None,
        }

    @abstractmethod
    async def _run_once(self) -> dict[str, Any]:
        """Do one unit of work. Returns a small summary for get_status()."""
        pass

    async def start(self) -> None:
        """Start the worker. Safe to call multiple times."""
        if self._running:
            logger.warning(f"{self.worker_name} is already running")
            return

        self._running = True
        self._task = asyncio.create_task(self._run_loop())
        logger.info(
            LogMessages.worker_started(worker=self.worker_name, interval=self.interval_seconds)
        )

    async def stop(self) -> None:
        """Stop the worker and wait for the task to finish. Safe to call multiple times."""
        self._running = False
        if self._task:
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
            self._task = None
        logger.info(f"{self.worker_name} stopped")

    @property
    def is_running(self) -> bool:
        return self._running

    def get_status(self) -> dict[str, Any]:
        return {
            "name": self.worker_name,
            "running": self._running,
            "interval_seconds": self.interval_seconds,
            "last_run": self._last_run.isoformat() if self._last_run else None,
            "stats": dict(self._stats),
        }

    async def run_now(self) -> dict[str, Any]:
        """Run one tick immediately (outside the schedule)."""
        started = time.monotonic()
        summary = await self._run_once()
        self._last_run = datetime.now(UTC)
        self._stats["run_count"] += 1
        self._stats["last_result"] = summary
        self._stats["last_error"] = None
        self._stats["last_duration_seconds"] = round(time.monotonic() - started, 2)
        return summary

    async def _run_loop(self) -> None:
        if self.startup_delay_seconds:
            await asyncio.sleep(self.startup_delay_seconds)

        while self._running:
            try:
                await self.run_now()
            except Exception as e:
                # Don't crash the worker - log and continue
                logger.exception(
                    LogMessages.worker_failed(worker=self.worker_name, error=str(e))
                )
                self._stats["last_error"] = str(e)

            await asyncio.sleep(self.interval_seconds)


__all__ = ["PeriodicWorker"]
