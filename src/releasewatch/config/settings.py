"""Application settings via pydantic-settings.

Hey future me - every knob of the service lives here. Values come from environment
variables with the RELEASEWATCH_ prefix, nested sections use a double underscore:

    RELEASEWATCH_DATABASE__URL=postgresql+asyncpg://...
    RELEASEWATCH_SPOTIFY__CLIENT_ID=...
    RELEASEWATCH_SCANNER__MAX_CONCURRENCY=8

A missing provider credential is NOT a startup error. The scanner simply skips
that provider and logs it once per run.
"""

from functools import lru_cache

from pydantic import BaseModel, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseModel):
    """Database connection settings."""

    url: str = "sqlite+aiosqlite:///./releasewatch.db"
    echo: bool = False
    pool_pre_ping: bool = True
    # Dev convenience. Production schemas come from `alembic upgrade head`.
    auto_create_tables: bool = True
    # PostgreSQL only, ignored for SQLite
    pool_size: int = 5
    max_overflow: int = 10
    pool_timeout: int = 30
    pool_recycle: int = 1800


class SpotifySettings(BaseModel):
    """Spotify client-credentials app."""

    client_id: str = ""
    client_secret: str = ""
    market: str = "FR"


class SoundCloudSettings(BaseModel):
    """SoundCloud public API v2 client id."""

    client_id: str = ""


class RawgSettings(BaseModel):
    """RAWG video game database."""

    api_key: str = ""


class SteamSettings(BaseModel):
    """Steam store/news APIs.

    The store and news endpoints used here are public, so Steam is always
    configured. The key is only forwarded when set.
    """

    api_key: str = ""
    country_code: str = "fr"


class EmailSettings(BaseModel):
    """Transactional email via Resend."""

    resend_api_key: str = ""
    from_address: str = "notifications@releasewatch.app"
    from_name: str = "ReleaseWatch"
    app_base_url: str = "https://releasewatch.app"


class ScannerSettings(BaseModel):
    """Release scanner tuning."""

    artist_lookback_days: int = 30
    release_ttl_days: int = 7
    # A game item unseen for this long may be detected again
    game_dedup_window_days: int = 7
    patch_notes_lookback_days: int = 7
    dlc_lookback_days: int = 30
    # Dedup keys not sighted for this long are pruned by the sweeper
    seen_key_retention_days: int = 60
    max_concurrency: int = Field(default=4, ge=1)
    # Cooldown applied when a provider rate-limits us without Retry-After
    rate_limit_cooldown_seconds: float = 900.0

    @model_validator(mode="after")
    def _retention_covers_lookbacks(self) -> "ScannerSettings":
        # A key pruned while its item is still inside a lookback gets re-detected
        longest = max(
            self.artist_lookback_days,
            self.dlc_lookback_days,
            self.patch_notes_lookback_days,
            self.game_dedup_window_days,
        )
        if self.seen_key_retention_days < longest:
            raise ValueError(
                f"seen_key_retention_days ({self.seen_key_retention_days}) must be at "
                f"least the longest lookback ({longest} days)"
            )
        return self


class WorkerSettings(BaseModel):
    """Background worker schedule."""

    scan_enabled: bool = True
    scan_interval_minutes: int = 60
    sweep_enabled: bool = True
    sweep_interval_minutes: int = 360


class LoggingSettings(BaseModel):
    """Logging output."""

    level: str = "INFO"
    json_format: bool = False


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="RELEASEWATCH_",
        env_nested_delimiter="__",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = "releasewatch"
    app_version: str = "0.1.0"
    environment: str = "development"

    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    spotify: SpotifySettings = Field(default_factory=SpotifySettings)
    soundcloud: SoundCloudSettings = Field(default_factory=SoundCloudSettings)
    rawg: RawgSettings = Field(default_factory=RawgSettings)
    steam: SteamSettings = Field(default_factory=SteamSettings)
    email: EmailSettings = Field(default_factory=EmailSettings)
    scanner: ScannerSettings = Field(default_factory=ScannerSettings)
    workers: WorkerSettings = Field(default_factory=WorkerSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
