"""Tests for the release scanner.

Hey future me - the scanner runs against REAL repositories on in-memory SQLite with
fake providers (see conftest.py). That way dedup is checked all the way down to the
unique constraint, not against a mock that agrees with whatever we assert.
"""

from datetime import datetime, timedelta

import pytest
from conftest import FakeGameProvider, FakeMusicProvider

from releasewatch.application.services.expiry_sweeper import ExpirySweeper
from releasewatch.application.services.release_scanner import (
    ReleaseScanner,
    ScanFilter,
    ScanResult,
    merge_status_reports,
)
from releasewatch.config import ScannerSettings
from releasewatch.domain.dtos import GameStatusReport, ProviderItem
from releasewatch.domain.entities import EntityType, GameStatus, TrackedEntity
from releasewatch.domain.exceptions import (
    EntityNotFoundException,
    ExternalServiceError,
    RateLimitExceededError,
)
from releasewatch.infrastructure.persistence import (
    Database,
    ReleaseRepository,
    TrackedEntityRepository,
)


def _artist(entity_id: str = "a1", user_id: str = "u1", **overrides) -> TrackedEntity:
    fields = {
        "id": entity_id,
        "user_id": user_id,
        "entity_type": EntityType.ARTIST,
        "name": "Daft Punk",
        "spotify_id": f"sp-{entity_id}",
        "deezer_id": f"dz-{entity_id}",
    }
    fields.update(overrides)
    return TrackedEntity(**fields)


def _game(entity_id: str = "g1", user_id: str = "u1", **overrides) -> TrackedEntity:
    fields = {
        "id": entity_id,
        "user_id": user_id,
        "entity_type": EntityType.GAME,
        "name": "Hades II",
        "status": GameStatus.COMING_SOON,
    }
    fields.update(overrides)
    return TrackedEntity(**fields)


def _item(title: str, released_at: datetime | None, provider: str = "spotify") -> ProviderItem:
    return ProviderItem(
        provider=provider,
        provider_id=title,
        title=title,
        released_at=released_at,
        kind="album",
        url=f"https://{provider}.example/{title}",
    )


async def _seed(db: Database, *entities: TrackedEntity) -> None:
    async with db.session_scope() as session:
        repo = TrackedEntityRepository(session)
        for entity in entities:
            await repo.add(entity)


async def _scan(
    db: Database,
    now: datetime,
    music: list | None = None,
    games: list | None = None,
    settings: ScannerSettings | None = None,
    scan_filter: ScanFilter | None = None,
) -> ScanResult:
    async with db.session_scope() as session:
        scanner = ReleaseScanner(
            entity_repository=TrackedEntityRepository(session),
            release_repository=ReleaseRepository(session),
            music_providers=music or [],
            game_providers=games or [],
            settings=settings or ScannerSettings(),
            clock=lambda: now,
        )
        return await scanner.scan(scan_filter)


async def _get_entity(db: Database, entity_id: str) -> TrackedEntity:
    async with db.session_scope() as session:
        entity = await TrackedEntityRepository(session).get_by_id(entity_id)
    assert entity is not None
    return entity


class TestArtistScan:
    """New albums, singles and tracks for tracked artists."""

    async def test_new_album_detected_once(self, db: Database, now: datetime) -> None:
        await _seed(db, _artist())
        spotify = FakeMusicProvider(
            "spotify", releases={"sp-a1": [_item("Homework", now - timedelta(days=2))]}
        )

        first = await _scan(db, now, music=[spotify])
        second = await _scan(db, now + timedelta(hours=1), music=[spotify])

        assert first.releases_inserted == 1
        release = first.inserted[0]
        assert release.title == "Daft Punk - Homework"
        assert release.type == EntityType.ARTIST
        assert release.user_id == "u1"
        assert release.expires_at == now + timedelta(days=7)
        assert second.releases_inserted == 0

    async def test_lookback_window_is_thirty_days(self, db: Database, now: datetime) -> None:
        await _seed(db, _artist())
        spotify = FakeMusicProvider(
            "spotify",
            releases={
                "sp-a1": [
                    _item("Inside", now - timedelta(days=29)),
                    _item("Outside", now - timedelta(days=31)),
                    _item("Undated", None),
                ]
            },
        )

        result = await _scan(db, now, music=[spotify])

        assert [r.title for r in result.inserted] == ["Daft Punk - Inside"]

    async def test_same_album_on_two_platforms_is_one_release(
        self, db: Database, now: datetime
    ) -> None:
        await _seed(db, _artist())
        released = now - timedelta(days=1)
        spotify = FakeMusicProvider("spotify", releases={"sp-a1": [_item("Homework", released)]})
        deezer = FakeMusicProvider(
            "deezer", releases={"dz-a1": [_item("HOMEWORK ", released, provider="deezer")]}
        )

        result = await _scan(db, now, music=[spotify, deezer])

        assert result.releases_inserted == 1

    async def test_deluxe_edition_is_separate(self, db: Database, now: datetime) -> None:
        await _seed(db, _artist())
        released = now - timedelta(days=1)
        spotify = FakeMusicProvider(
            "spotify",
            releases={"sp-a1": [_item("Homework", released), _item("Homework (Deluxe)", released)]},
        )

        result = await _scan(db, now, music=[spotify])

        assert result.releases_inserted == 2

    async def test_artist_without_provider_ids_is_just_checked(
        self, db: Database, now: datetime
    ) -> None:
        await _seed(db, _artist(spotify_id=None, deezer_id=None))
        spotify = FakeMusicProvider("spotify")

        result = await _scan(db, now, music=[spotify])

        assert result.entities_processed == 1
        assert spotify.calls == []
        assert (await _get_entity(db, "a1")).last_checked_at == now


class TestFailureIsolation:
    """One broken entity or provider must not spoil the run."""

    async def test_failed_entity_keeps_old_state(self, db: Database, now: datetime) -> None:
        await _seed(db, _artist("a1"), _artist("a2", name="Justice"))
        spotify = FakeMusicProvider(
            "spotify",
            releases={"sp-a2": [_item("Hyperdrama", now - timedelta(days=3))]},
            errors={"sp-a1": ExternalServiceError("boom", service="spotify")},
        )

        result = await _scan(db, now, music=[spotify])

        assert result.entities_failed == 1
        assert result.entities_processed == 1
        assert "a1" in result.errors
        assert [r.title for r in result.inserted] == ["Justice - Hyperdrama"]
        assert (await _get_entity(db, "a1")).last_checked_at is None
        assert (await _get_entity(db, "a2")).last_checked_at == now

    async def test_middle_entity_failure_spares_neighbours(
        self, db: Database, now: datetime
    ) -> None:
        await _seed(
            db,
            _artist("a1", name="Air"),
            _artist("a2", name="Justice"),
            _artist("a3", name="Phoenix"),
        )
        spotify = FakeMusicProvider(
            "spotify",
            releases={
                "sp-a1": [_item("Talkie Walkie", now - timedelta(days=1))],
                "sp-a3": [_item("Alpha Zulu", now - timedelta(days=1))],
            },
            errors={"sp-a2": ExternalServiceError("boom", service="spotify")},
        )

        result = await _scan(db, now, music=[spotify])

        assert result.entities_failed == 1
        assert result.entities_processed == 2
        assert list(result.errors) == ["a2"]
        assert sorted(r.title for r in result.inserted) == [
            "Air - Talkie Walkie",
            "Phoenix - Alpha Zulu",
        ]
        assert (await _get_entity(db, "a1")).last_checked_at == now
        assert (await _get_entity(db, "a2")).last_checked_at is None
        assert (await _get_entity(db, "a3")).last_checked_at == now

    async def test_unexpected_exception_only_fails_that_entity(
        self, db: Database, now: datetime
    ) -> None:
        await _seed(db, _artist("a1"), _artist("a2"))
        spotify = FakeMusicProvider("spotify", errors={"sp-a1": KeyError("items")})

        result = await _scan(db, now, music=[spotify])

        assert result.entities_failed == 1
        assert result.entities_processed == 1

    async def test_rate_limited_provider_skipped_for_rest_of_run(
        self, db: Database, now: datetime
    ) -> None:
        await _seed(db, _artist("a1"), _artist("a2"))
        spotify = FakeMusicProvider(
            "spotify",
            errors={
                "sp-a1": RateLimitExceededError("slow down", service="spotify", retry_after=900)
            },
        )
        deezer = FakeMusicProvider(
            "deezer",
            releases={"dz-a2": [_item("Homework", now - timedelta(days=1), provider="deezer")]},
        )

        result = await _scan(
            db, now, music=[spotify, deezer], settings=ScannerSettings(max_concurrency=1)
        )

        assert spotify.calls == ["sp-a1"]
        assert deezer.calls == ["dz-a2"]
        assert "spotify" in result.skipped_providers
        assert result.entities_failed == 1
        assert result.releases_inserted == 1

    async def test_unconfigured_provider_is_never_called(
        self, db: Database, now: datetime
    ) -> None:
        await _seed(db, _artist())
        soundcloud = FakeMusicProvider("soundcloud", configured=False)
        spotify = FakeMusicProvider("spotify")

        result = await _scan(db, now, music=[spotify, soundcloud])

        assert soundcloud.calls == []
        assert result.skipped_providers == {"soundcloud": "credentials not configured"}
        assert result.entities_failed == 0


class TestRedetection:
    """Dismissed or swept releases stay known while providers keep listing them."""

    async def test_dismissed_release_is_not_detected_again(
        self, db: Database, now: datetime
    ) -> None:
        await _seed(db, _artist())
        spotify = FakeMusicProvider(
            "spotify", releases={"sp-a1": [_item("Homework", now - timedelta(days=2))]}
        )
        first = await _scan(db, now, music=[spotify])
        async with db.session_scope() as session:
            assert await ReleaseRepository(session).delete_for_user(first.inserted[0].id, "u1")

        again = await _scan(db, now + timedelta(hours=1), music=[spotify])

        assert again.releases_inserted == 0

    async def test_swept_release_is_not_detected_again(
        self, db: Database, now: datetime
    ) -> None:
        await _seed(db, _artist())
        spotify = FakeMusicProvider(
            "spotify", releases={"sp-a1": [_item("Homework", now - timedelta(days=2))]}
        )
        await _scan(db, now, music=[spotify])
        later = now + timedelta(days=8)
        async with db.session_scope() as session:
            swept = await ExpirySweeper(
                ReleaseRepository(session), clock=lambda: later, key_retention=timedelta(days=60)
            ).sweep()
        assert swept.deleted == 1
        assert swept.keys_pruned == 0

        again = await _scan(db, later, music=[spotify])

        assert again.releases_inserted == 0

    async def test_rescan_refreshes_key_sighting(self, db: Database, now: datetime) -> None:
        await _seed(db, _artist())
        spotify = FakeMusicProvider(
            "spotify", releases={"sp-a1": [_item("Homework", now + timedelta(days=40))]}
        )
        await _scan(db, now, music=[spotify])
        later = now + timedelta(days=50)
        await _scan(db, later, music=[spotify])

        async with db.session_scope() as session:
            pruned = await ReleaseRepository(session).prune_keys(later - timedelta(days=1))

        assert pruned == 0

    async def test_listed_dlc_survives_sweep(self, db: Database, now: datetime) -> None:
        await _seed(db, _game(status=GameStatus.RELEASED))
        dlc = ProviderItem(
            provider="rawg",
            provider_id="d1",
            title="Soundtrack",
            released_at=now - timedelta(days=5),
            kind="dlc",
        )
        rawg = FakeGameProvider("rawg", dlc={"g1": [dlc]})
        await _scan(db, now, games=[rawg])
        # Daily scans keep the key fresh while the release expires
        for day in range(1, 9):
            await _scan(db, now + timedelta(days=day), games=[rawg])
        later = now + timedelta(days=9)
        async with db.session_scope() as session:
            swept = await ExpirySweeper(ReleaseRepository(session), clock=lambda: later).sweep()
        assert swept.deleted == 1

        again = await _scan(db, later, games=[rawg])

        assert again.releases_inserted == 0

    async def test_game_item_unseen_for_a_week_fires_again(
        self, db: Database, now: datetime
    ) -> None:
        await _seed(db, _game(status=GameStatus.RELEASED))
        hotfix = ProviderItem(
            provider="steam",
            provider_id="n1",
            title="Hotfix",
            released_at=now - timedelta(days=1),
            kind="patch",
        )
        steam = FakeGameProvider("steam", patch_notes={"g1": [hotfix]})
        await _scan(db, now, games=[steam])
        later = now + timedelta(days=8)
        async with db.session_scope() as session:
            await ExpirySweeper(ReleaseRepository(session), clock=lambda: later).sweep()

        again = await _scan(db, later, games=[steam])

        assert [r.title for r in again.inserted] == ["Hades II - Update: Hotfix"]


class TestGameScan:
    """Status changes, patch notes and DLC for tracked games."""

    async def test_status_change_creates_release_and_updates_game(
        self, db: Database, now: datetime
    ) -> None:
        await _seed(db, _game())
        steam = FakeGameProvider(
            "steam",
            reports={
                "g1": GameStatusReport(
                    provider="steam",
                    status=GameStatus.RELEASED,
                    release_date="25 Sep, 2025",
                    confidence=0.9,
                )
            },
        )

        first = await _scan(db, now, games=[steam])
        second = await _scan(db, now + timedelta(hours=1), games=[steam])

        assert [r.title for r in first.inserted] == ["Hades II is now available"]
        assert first.inserted[0].type == EntityType.GAME
        assert second.releases_inserted == 0
        stored = await _get_entity(db, "g1")
        assert stored.status == GameStatus.RELEASED
        assert stored.release_date == "25 Sep, 2025"

    async def test_higher_confidence_provider_wins(self, db: Database, now: datetime) -> None:
        await _seed(db, _game())
        rawg = FakeGameProvider(
            "rawg",
            reports={"g1": GameStatusReport(provider="rawg", status=GameStatus.COMING_SOON, confidence=0.6)},
        )
        steam = FakeGameProvider(
            "steam",
            reports={
                "g1": GameStatusReport(provider="steam", status=GameStatus.EARLY_ACCESS, confidence=0.9)
            },
        )

        result = await _scan(db, now, games=[steam, rawg])

        assert [r.title for r in result.inserted] == ["Hades II is in early access"]

    async def test_unknown_status_produces_nothing(self, db: Database, now: datetime) -> None:
        await _seed(db, _game())
        rawg = FakeGameProvider(
            "rawg",
            reports={"g1": GameStatusReport(provider="rawg", status=GameStatus.UNKNOWN)},
        )

        result = await _scan(db, now, games=[rawg])

        assert result.releases_inserted == 0
        assert (await _get_entity(db, "g1")).status == GameStatus.COMING_SOON

    async def test_patch_notes_and_dlc(self, db: Database, now: datetime) -> None:
        await _seed(db, _game(status=GameStatus.RELEASED))
        patch = ProviderItem(
            provider="steam",
            provider_id="n1",
            title="Patch 1.1",
            released_at=now - timedelta(days=1),
            kind="patch",
        )
        dlc = ProviderItem(
            provider="rawg",
            provider_id="d1",
            title="Soundtrack",
            released_at=now - timedelta(days=5),
            kind="dlc",
        )
        steam = FakeGameProvider("steam", patch_notes={"g1": [patch]})
        rawg = FakeGameProvider("rawg", dlc={"g1": [dlc]})

        result = await _scan(db, now, games=[rawg, steam])

        assert sorted(r.title for r in result.inserted) == [
            "Hades II - DLC: Soundtrack",
            "Hades II - Update: Patch 1.1",
        ]

    async def test_failed_game_keeps_status(self, db: Database, now: datetime) -> None:
        await _seed(db, _game())
        rawg = FakeGameProvider(
            "rawg",
            reports={"g1": GameStatusReport(provider="rawg", status=GameStatus.RELEASED, confidence=0.6)},
        )
        steam = FakeGameProvider(
            "steam", errors={"g1": ExternalServiceError("down", service="steam")}
        )

        result = await _scan(db, now, games=[rawg, steam])

        assert result.entities_failed == 1
        assert result.releases_inserted == 0
        assert (await _get_entity(db, "g1")).status == GameStatus.COMING_SOON


class TestScanScope:
    async def test_single_entity_scan(self, db: Database, now: datetime) -> None:
        await _seed(db, _artist("a1"), _artist("a2"))
        spotify = FakeMusicProvider("spotify")

        result = await _scan(db, now, music=[spotify], scan_filter=ScanFilter(entity_id="a2"))

        assert result.entities_processed == 1
        assert spotify.calls == ["sp-a2"]

    async def test_unknown_entity_raises(self, db: Database, now: datetime) -> None:
        with pytest.raises(EntityNotFoundException):
            await _scan(db, now, scan_filter=ScanFilter(entity_id="missing"))

    async def test_user_scan_only_touches_that_user(self, db: Database, now: datetime) -> None:
        await _seed(db, _artist("a1", user_id="u1"), _artist("a2", user_id="u2"))
        spotify = FakeMusicProvider("spotify")

        await _scan(db, now, music=[spotify], scan_filter=ScanFilter(user_id="u2"))

        assert spotify.calls == ["sp-a2"]

    def test_scope_labels(self) -> None:
        assert ScanFilter().scope == "all entities"
        assert ScanFilter(user_id="u1").scope == "user u1"
        assert ScanFilter(entity_id="e1").scope == "entity e1"


class TestMergeStatusReports:
    def test_tie_goes_to_later_provider(self) -> None:
        first = GameStatusReport(provider="a", status=GameStatus.COMING_SOON, confidence=0.6)
        second = GameStatusReport(provider="b", status=GameStatus.RELEASED, confidence=0.6)
        assert merge_status_reports([first, second]) is second

    def test_unknown_never_wins(self) -> None:
        unknown = GameStatusReport(provider="steam", status=GameStatus.UNKNOWN, confidence=0.9)
        known = GameStatusReport(provider="rawg", status=GameStatus.RELEASED, confidence=0.6)
        assert merge_status_reports([known, unknown]) is known

    def test_empty_gives_none(self) -> None:
        assert merge_status_reports([]) is None
