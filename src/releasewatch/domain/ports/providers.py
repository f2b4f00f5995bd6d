"""Platform provider interfaces.

Hey future me - every platform client implements one of these. The scanner works
against the interface only, so tests can hand it fakes and a new platform
is just a new client class.

Error contract for ALL methods:
- RateLimitExceededError: provider throttled us (or we are still cooling down)
- ExternalServiceError: any other provider failure (HTTP error, garbage payload)
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any

from releasewatch.domain.dtos import GameStatusReport, ProviderCandidate, ProviderItem
from releasewatch.domain.entities import TrackedEntity


class IProvider(ABC):
    """Common surface of all platform clients."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name used in logs and skip reasons (e.g. 'spotify')."""
        pass

    @abstractmethod
    def is_configured(self) -> bool:
        """True when all credentials this provider needs are present."""
        pass

    @abstractmethod
    async def search(self, query: str) -> list[ProviderCandidate]:
        """Search artists or games by name."""
        pass

    @abstractmethod
    async def get_details(self, provider_id: str) -> dict[str, Any] | None:
        """Full provider record for one artist or game, None if the provider has no such id."""
        pass

    async def close(self) -> None:
        """Close network resources."""
        return None


class IMusicProvider(IProvider):
    """Music platform (Spotify, Deezer, SoundCloud)."""

    @abstractmethod
    def provider_id_for(self, entity: TrackedEntity) -> str | None:
        """Return the id this provider knows the artist by, or None."""
        pass

    @abstractmethod
    async def get_recent_releases(
        self, provider_id: str, since: datetime
    ) -> list[ProviderItem]:
        """Items released by the artist at or after `since`."""
        pass


class IGameProvider(IProvider):
    """Game platform (RAWG, Steam).

    Not every game provider supports every capability. Unsupported ones return
    None / [] so the scanner can ask all providers uniformly.
    """

    @abstractmethod
    async def get_game_status(self, entity: TrackedEntity) -> GameStatusReport | None:
        """Current release status of the game, or None if the provider can't tell."""
        pass

    async def get_recent_patch_notes(
        self, entity: TrackedEntity, since: datetime
    ) -> list[ProviderItem]:
        return []

    async def get_recent_dlc(
        self, entity: TrackedEntity, since: datetime
    ) -> list[ProviderItem]:
        return []


__all__ = ["IGameProvider", "IMusicProvider", "IProvider"]
