"""Tests for tracked entity, release and notification settings entities."""

from datetime import UTC, datetime, timedelta

import pytest

from releasewatch.domain.entities import (
    EntityType,
    GameStatus,
    NotificationFrequency,
    NotificationSettings,
    Release,
    TrackedEntity,
)


def _game(**overrides) -> TrackedEntity:
    fields = {
        "id": "g1",
        "user_id": "u1",
        "entity_type": EntityType.GAME,
        "name": "Hollow Knight: Silksong",
    }
    fields.update(overrides)
    return TrackedEntity(**fields)


class TestTrackedEntity:
    """Validation and game status handling."""

    def test_empty_name_rejected(self) -> None:
        with pytest.raises(ValueError):
            _game(name="   ")

    def test_missing_user_rejected(self) -> None:
        with pytest.raises(ValueError):
            _game(user_id="")

    def test_steam_app_id_from_store_url(self) -> None:
        game = _game(url="https://store.steampowered.com/app/1030300/Hollow_Knight_Silksong/")
        assert game.steam_app_id == "1030300"

    def test_steam_app_id_ignores_other_sites(self) -> None:
        game = _game(url="https://rawg.io/games/app/12345")
        assert game.steam_app_id is None

    def test_apply_status_reports_change(self) -> None:
        game = _game(status=GameStatus.COMING_SOON)

        changed = game.apply_status(GameStatus.RELEASED, "2026-09-04")

        assert changed is True
        assert game.status == GameStatus.RELEASED
        assert game.release_date == "2026-09-04"

    def test_apply_same_status_is_not_a_change(self) -> None:
        game = _game(status=GameStatus.RELEASED, release_date="2026-09-04")

        assert game.apply_status(GameStatus.RELEASED, None) is False
        assert game.release_date == "2026-09-04"

    def test_unknown_never_overwrites_known_status(self) -> None:
        game = _game(status=GameStatus.EARLY_ACCESS)

        assert game.apply_status(GameStatus.UNKNOWN, "2027") is False
        assert game.status == GameStatus.EARLY_ACCESS
        # Date still refreshed
        assert game.release_date == "2027"

    def test_status_labels(self) -> None:
        assert GameStatus.RELEASED.label == "now available"
        assert GameStatus.EARLY_ACCESS.label == "in early access"
        assert GameStatus.COMING_SOON.label == "coming soon"


class TestRelease:
    """Release invariants."""

    def test_expiry_must_follow_detection(self) -> None:
        now = datetime(2026, 10, 1, tzinfo=UTC)
        with pytest.raises(ValueError):
            Release(
                id="r1",
                type=EntityType.ARTIST,
                source_entity_id="a1",
                user_id="u1",
                title="Artist - Album",
                unique_hash="h",
                detected_at=now,
                expires_at=now,
            )

    def test_is_expired_is_strict(self) -> None:
        now = datetime(2026, 10, 1, tzinfo=UTC)
        release = Release(
            id="r1",
            type=EntityType.ARTIST,
            source_entity_id="a1",
            user_id="u1",
            title="Artist - Album",
            unique_hash="h",
            detected_at=now - timedelta(days=7),
            expires_at=now,
        )

        assert release.is_expired(now) is False
        assert release.is_expired(now + timedelta(seconds=1)) is True


class TestNotificationSettings:
    """Gating helpers used by the dispatcher."""

    def test_defaults_want_immediate_email(self) -> None:
        settings = NotificationSettings(user_id="u1")
        assert settings.wants_immediate_email is True
        assert settings.allows(EntityType.ARTIST)
        assert settings.allows(EntityType.GAME)

    @pytest.mark.parametrize(
        "frequency", [NotificationFrequency.DAILY, NotificationFrequency.DISABLED]
    )
    def test_non_immediate_frequency_blocks_email(
        self, frequency: NotificationFrequency
    ) -> None:
        settings = NotificationSettings(user_id="u1", notification_frequency=frequency)
        assert settings.wants_immediate_email is False

    def test_per_type_flags(self) -> None:
        settings = NotificationSettings(user_id="u1", game_notifications_enabled=False)
        assert settings.allows(EntityType.ARTIST) is True
        assert settings.allows(EntityType.GAME) is False
