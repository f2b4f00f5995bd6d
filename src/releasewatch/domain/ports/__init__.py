"""Domain ports (interfaces) for dependency inversion."""

from abc import ABC, abstractmethod
from datetime import datetime

from releasewatch.domain.entities import (
    EntityType,
    NotificationSettings,
    Release,
    TrackedEntity,
    UserAccount,
)
from releasewatch.domain.ports.notification import EmailResult, IEmailSender
from releasewatch.domain.ports.providers import (
    IGameProvider,
    IMusicProvider,
    IProvider,
)


class ITrackedEntityRepository(ABC):
    """Repository interface for tracked artists and games."""

    @abstractmethod
    async def add(self, entity: TrackedEntity) -> None:
        """Add a new tracked entity."""
        pass

    @abstractmethod
    async def get_by_id(self, entity_id: str) -> TrackedEntity | None:
        """Get a tracked entity by ID."""
        pass

    @abstractmethod
    async def list_all(self) -> list[TrackedEntity]:
        """List every tracked entity (global scan)."""
        pass

    @abstractmethod
    async def list_by_user(self, user_id: str) -> list[TrackedEntity]:
        """List one user's tracked entities."""
        pass

    @abstractmethod
    async def update(self, entity: TrackedEntity) -> None:
        """Persist scanner-owned fields (status, release date, last check)."""
        pass

    @abstractmethod
    async def delete(self, entity_id: str) -> None:
        """Delete a tracked entity. Its releases stay until they expire."""
        pass


class IReleaseRepository(ABC):
    """Repository interface for detected releases."""

    @abstractmethod
    async def existing_hashes(
        self,
        source_entity_id: str,
        user_id: str,
        release_type: EntityType,
        seen_since: datetime | None = None,
    ) -> set[str]:
        """Hashes ever inserted for (entity, user, type).

        Includes releases that were dismissed or swept since, so they are not
        detected again while providers keep reporting them. seen_since limits the
        lookup to keys sighted at or after that time.
        """
        pass

    @abstractmethod
    async def mark_seen(
        self,
        source_entity_id: str,
        user_id: str,
        release_type: EntityType,
        hashes: set[str],
        now: datetime,
    ) -> None:
        """Record that providers reported these known hashes again at `now`."""
        pass

    @abstractmethod
    async def forget_keys(
        self,
        source_entity_id: str,
        user_id: str,
        release_type: EntityType,
        hashes: set[str],
    ) -> None:
        """Drop these keys so the hashes can be inserted again."""
        pass

    @abstractmethod
    async def prune_keys(self, seen_before: datetime, user_id: str | None = None) -> int:
        """Forget dedup keys last seen before `seen_before`. Returns the number removed."""
        pass

    @abstractmethod
    async def insert_many(self, releases: list[Release]) -> list[Release]:
        """Insert releases, skipping already-known keys and uniqueness conflicts.

        Returns:
            Only the releases that were actually inserted
        """
        pass

    @abstractmethod
    async def delete_expired(self, now: datetime, user_id: str | None = None) -> int:
        """Delete releases with expires_at < now. Returns the number deleted."""
        pass

    @abstractmethod
    async def list_by_user(self, user_id: str) -> list[Release]:
        """List a user's current releases, newest first."""
        pass

    @abstractmethod
    async def delete_for_user(self, release_id: str, user_id: str) -> bool:
        """User dismissal. Returns False if the release isn't theirs or is gone."""
        pass

    @abstractmethod
    async def count(self, user_id: str | None = None) -> int:
        """Count stored releases, optionally for one user."""
        pass


class INotificationSettingsRepository(ABC):
    """Repository interface for per-user notification settings."""

    @abstractmethod
    async def get(self, user_id: str) -> NotificationSettings | None:
        pass

    @abstractmethod
    async def ensure_defaults(self, user_id: str) -> NotificationSettings:
        """Create default settings if missing (idempotent upsert), then return them."""
        pass

    @abstractmethod
    async def update(self, settings: NotificationSettings) -> None:
        pass


class IUserDirectory(ABC):
    """Resolves user ids to contact details."""

    @abstractmethod
    async def get_by_id(self, user_id: str) -> UserAccount | None:
        pass

    @abstractmethod
    async def add(self, account: UserAccount) -> None:
        pass


__all__ = [
    "EmailResult",
    "IEmailSender",
    "IGameProvider",
    "IMusicProvider",
    "INotificationSettingsRepository",
    "IProvider",
    "IReleaseRepository",
    "ITrackedEntityRepository",
    "IUserDirectory",
]
