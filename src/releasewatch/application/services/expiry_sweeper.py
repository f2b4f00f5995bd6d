"""Expiry Sweeper - hard-deletes releases past their expiry.

Hey future me - deleting a release does NOT forget it. Its dedup key stays in
release_keys so the next scan doesn't re-detect it. Keys only go away here, once
nobody has sighted the item for key_retention (always longer than any lookback).
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from releasewatch.domain.ports import IReleaseRepository
from releasewatch.infrastructure.observability.log_messages import LogMessages

logger = logging.getLogger(__name__)


@dataclass
class SweepResult:
    deleted: int
    remaining: int
    keys_pruned: int = 0


class ExpirySweeper:
    """Deletes releases with expires_at < now. Safe to run any number of times."""

    def __init__(
        self,
        release_repository: IReleaseRepository,
        clock: Callable[[], datetime] = lambda: datetime.now(UTC),
        key_retention: timedelta | None = None,
    ) -> None:
        self.release_repository = release_repository
        self.clock = clock
        self.key_retention = key_retention

    async def sweep(self, user_id: str | None = None) -> SweepResult:
        now = self.clock()
        deleted = await self.release_repository.delete_expired(now, user_id=user_id)
        remaining = await self.release_repository.count(user_id=user_id)
        keys_pruned = 0
        if self.key_retention is not None:
            keys_pruned = await self.release_repository.prune_keys(
                now - self.key_retention, user_id=user_id
            )
        logger.info(
            LogMessages.sweep_completed(
                deleted=deleted,
                remaining=remaining,
                scope=f"user {user_id}" if user_id else "all users",
                keys_pruned=keys_pruned,
            )
        )
        return SweepResult(deleted=deleted, remaining=remaining, keys_pruned=keys_pruned)


__all__ = ["ExpirySweeper", "SweepResult"]
