"""Platform API clients.

Provider ORDER matters and is fixed here:
- music: Spotify, Deezer, SoundCloud (first provider wins when titles collide)
- games: RAWG, then Steam (Steam's store data outranks RAWG on status conflicts)
"""

from releasewatch.config import Settings

from .deezer_client import DeezerClient
from .rawg_client import RawgClient
from .soundcloud_client import SoundCloudClient
from .spotify_client import SpotifyClient
from .steam_client import SteamClient


def build_music_providers(
    settings: Settings,
) -> list[SpotifyClient | DeezerClient | SoundCloudClient]:
    """Create one client (with its own rate limiter) per music platform."""
    cooldown = settings.scanner.rate_limit_cooldown_seconds
    return [
        SpotifyClient(settings.spotify, cooldown_seconds=cooldown),
        DeezerClient(cooldown_seconds=cooldown),
        SoundCloudClient(settings.soundcloud, cooldown_seconds=cooldown),
    ]


def build_game_providers(settings: Settings) -> list[RawgClient | SteamClient]:
    """Create one client per game platform, in status-merge order."""
    cooldown = settings.scanner.rate_limit_cooldown_seconds
    return [
        RawgClient(settings.rawg, cooldown_seconds=cooldown),
        SteamClient(settings.steam, cooldown_seconds=cooldown),
    ]


__all__ = [
    "DeezerClient",
    "RawgClient",
    "SoundCloudClient",
    "SpotifyClient",
    "SteamClient",
    "build_game_providers",
    "build_music_providers",
]
