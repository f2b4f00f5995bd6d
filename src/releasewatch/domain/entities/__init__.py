"""Domain entities for tracked artists/games, releases and notification settings."""

import re
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum

STEAM_APP_URL = re.compile(r"/app/(\d+)")


class EntityType(str, Enum):
    """Kind of thing a user tracks. Also used as the release type."""

    ARTIST = "artist"
    GAME = "game"


class GameStatus(str, Enum):
    """Release status of a tracked game.

    Hey future me - UNKNOWN is what a provider reports when it has no idea.
    It never overwrites a known status and never produces a release.
    """

    COMING_SOON = "coming_soon"
    EARLY_ACCESS = "early_access"
    RELEASED = "released"
    UNKNOWN = "unknown"

    @property
    def label(self) -> str:
        """Human-readable label for emails and release titles."""
        return {
            GameStatus.COMING_SOON: "coming soon",
            GameStatus.EARLY_ACCESS: "in early access",
            GameStatus.RELEASED: "now available",
            GameStatus.UNKNOWN: "unknown",
        }[self]


class NotificationFrequency(str, Enum):
    """How often a user wants to hear about new releases."""

    IMMEDIATE = "immediate"
    DAILY = "daily"
    DISABLED = "disabled"


@dataclass
class TrackedEntity:
    """An artist or a game followed by exactly one user.

    Provider ids are all optional. Manually added artists may have none of them,
    in which case the scanner has nothing to ask and just marks them checked.
    """

    id: str
    user_id: str
    entity_type: EntityType
    name: str
    platform: str | None = None
    url: str | None = None
    image_url: str | None = None
    # Artist provider ids
    spotify_id: str | None = None
    deezer_id: str | None = None
    soundcloud_url: str | None = None
    # Game provider ids
    rawg_slug: str | None = None
    status: GameStatus = GameStatus.UNKNOWN
    release_date: str | None = None
    last_checked_at: datetime | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def __post_init__(self) -> None:
        """Validate tracked entity data."""
        if not self.user_id:
            raise ValueError("Tracked entity must belong to a user")
        if not self.name or not self.name.strip():
            raise ValueError("Tracked entity name cannot be empty")

    @property
    def is_game(self) -> bool:
        return self.entity_type == EntityType.GAME

    @property
    def steam_app_id(self) -> str | None:
        """Steam app id parsed from a store.steampowered.com/app/<id> URL."""
        if not self.url or "steampowered.com" not in self.url:
            return None
        match = STEAM_APP_URL.search(self.url)
        return match.group(1) if match else None

    def mark_checked(self, now: datetime) -> None:
        self.last_checked_at = now

    def apply_status(self, status: GameStatus, release_date: str | None) -> bool:
        """Record a new game status.

        Returns True when the status actually changed. UNKNOWN never replaces a
        known status. The release date is refreshed whenever a provider has one.
        """
        if release_date:
            self.release_date = release_date
        if status == GameStatus.UNKNOWN or status == self.status:
            return False
        self.status = status
        return True


@dataclass
class Release:
    """A detected new item (album, single, track, status change, patch, DLC).

    unique_hash is unique within (source_entity_id, user_id, type). Storage
    enforces it, so inserting a duplicate is a no-op rather than an error.
    """

    id: str
    type: EntityType
    source_entity_id: str
    user_id: str
    title: str
    unique_hash: str
    detected_at: datetime
    expires_at: datetime
    description: str | None = None
    image_url: str | None = None
    platform_url: str | None = None

    def __post_init__(self) -> None:
        """Validate release data."""
        if not self.title or not self.title.strip():
            raise ValueError("Release title cannot be empty")
        if self.expires_at <= self.detected_at:
            raise ValueError("Release must expire after it was detected")

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at < now


@dataclass
class NotificationSettings:
    """Per-user notification preferences.

    Defaults match what a brand-new user gets: everything on, immediate emails.
    """

    user_id: str
    email_notifications_enabled: bool = True
    notification_frequency: NotificationFrequency = NotificationFrequency.IMMEDIATE
    artist_notifications_enabled: bool = True
    game_notifications_enabled: bool = True
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def wants_immediate_email(self) -> bool:
        return (
            self.email_notifications_enabled
            and self.notification_frequency == NotificationFrequency.IMMEDIATE
        )

    def allows(self, release_type: EntityType) -> bool:
        """Check the per-type flag for a release type."""
        if release_type == EntityType.ARTIST:
            return self.artist_notifications_enabled
        return self.game_notifications_enabled


@dataclass
class UserAccount:
    """Directory entry used to address notification emails."""

    id: str
    email: str | None
    display_name: str | None = None


__all__ = [
    "EntityType",
    "GameStatus",
    "NotificationFrequency",
    "NotificationSettings",
    "Release",
    "TrackedEntity",
    "UserAccount",
]
