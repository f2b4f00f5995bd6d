"""Data Transfer Objects for provider data.

Hey future me - these are the PROVIDER-AGNOSTIC shapes every platform client returns.
The scanner only ever sees these, never raw Spotify/Deezer/RAWG JSON. Clients do the
conversion in their _parse_* helpers.

    SpotifyClient.get_recent_releases() -> list[ProviderItem]
    RawgClient.get_game_status()        -> GameStatusReport
"""

from dataclasses import dataclass
from datetime import datetime

from releasewatch.domain.entities import GameStatus


@dataclass
class ProviderCandidate:
    """A search hit from a platform (artist or game).

    Used when a user looks for something to track.
    """

    provider: str
    provider_id: str
    name: str
    image_url: str | None = None
    url: str | None = None
    popularity: int | None = None
    followers: int | None = None
    release_date: str | None = None


@dataclass
class ProviderItem:
    """A recent item reported by a platform: album, single, track, patch note or DLC."""

    provider: str
    provider_id: str
    title: str
    released_at: datetime | None
    kind: str
    url: str | None = None
    artwork_url: str | None = None
    description: str | None = None
    play_count: int | None = None
    like_count: int | None = None


@dataclass
class GameStatusReport:
    """What a game provider believes about a game's release state.

    confidence decides conflicts between providers: the highest wins, ties
    go to the provider asked last.
    """

    provider: str
    status: GameStatus
    release_date: str | None = None
    confidence: float = 0.5
    url: str | None = None
    image_url: str | None = None


__all__ = ["GameStatusReport", "ProviderCandidate", "ProviderItem"]
