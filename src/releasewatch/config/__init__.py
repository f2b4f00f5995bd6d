"""Configuration module for ReleaseWatch."""

from .settings import (
    DatabaseSettings,
    EmailSettings,
    RawgSettings,
    ScannerSettings,
    Settings,
    SoundCloudSettings,
    SpotifySettings,
    SteamSettings,
    get_settings,
)

__all__ = [
    "DatabaseSettings",
    "EmailSettings",
    "RawgSettings",
    "ScannerSettings",
    "Settings",
    "SoundCloudSettings",
    "SpotifySettings",
    "SteamSettings",
    "get_settings",
]
