"""Tests for the expiry sweeper."""

from datetime import datetime, timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from releasewatch.application.services.expiry_sweeper import ExpirySweeper
from releasewatch.domain.entities import EntityType, Release
from releasewatch.infrastructure.persistence import ReleaseRepository


def _release(release_id: str, user_id: str, expires_at: datetime) -> Release:
    return Release(
        id=release_id,
        type=EntityType.GAME,
        source_entity_id="g1",
        user_id=user_id,
        title=f"Release {release_id}",
        unique_hash=release_id,
        detected_at=expires_at - timedelta(days=7),
        expires_at=expires_at,
    )


class TestExpirySweeper:
    async def test_sweep_deletes_only_expired(
        self, session: AsyncSession, now: datetime
    ) -> None:
        repo = ReleaseRepository(session)
        await repo.insert_many(
            [
                _release("old", "u1", now - timedelta(minutes=1)),
                _release("boundary", "u1", now),
                _release("fresh", "u1", now + timedelta(days=3)),
            ]
        )

        result = await ExpirySweeper(repo, clock=lambda: now).sweep()

        assert result.deleted == 1
        assert result.remaining == 2

    async def test_sweep_is_idempotent(self, session: AsyncSession, now: datetime) -> None:
        repo = ReleaseRepository(session)
        await repo.insert_many([_release("old", "u1", now - timedelta(days=1))])
        sweeper = ExpirySweeper(repo, clock=lambda: now)

        first = await sweeper.sweep()
        second = await sweeper.sweep()

        assert first.deleted == 1
        assert second.deleted == 0
        assert second.remaining == 0

    async def test_user_scoped_sweep(self, session: AsyncSession, now: datetime) -> None:
        repo = ReleaseRepository(session)
        past = now - timedelta(days=1)
        await repo.insert_many([_release("a", "u1", past), _release("b", "u2", past)])

        result = await ExpirySweeper(repo, clock=lambda: now).sweep(user_id="u1")

        assert result.deleted == 1
        assert result.remaining == 0
        assert await repo.count() == 1

    async def test_keys_outlive_releases_until_retention(
        self, session: AsyncSession, now: datetime
    ) -> None:
        repo = ReleaseRepository(session)
        # detected 67 days ago, expired 60 days ago
        await repo.insert_many(
            [
                _release("ancient", "u1", now - timedelta(days=60)),
                _release("recent", "u1", now - timedelta(days=1)),
            ]
        )
        sweeper = ExpirySweeper(repo, clock=lambda: now, key_retention=timedelta(days=60))

        result = await sweeper.sweep()

        assert result.deleted == 2
        assert result.keys_pruned == 1
        assert await repo.existing_hashes("g1", "u1", EntityType.GAME) == {"recent"}

    async def test_no_retention_keeps_every_key(
        self, session: AsyncSession, now: datetime
    ) -> None:
        repo = ReleaseRepository(session)
        await repo.insert_many([_release("ancient", "u1", now - timedelta(days=300))])

        result = await ExpirySweeper(repo, clock=lambda: now).sweep()

        assert result.keys_pruned == 0
        assert await repo.existing_hashes("g1", "u1", EntityType.GAME) == {"ancient"}
