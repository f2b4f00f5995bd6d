"""Shared fixtures: in-memory database, fixed clock and fake platform/email adapters.

Hey future me - the fakes implement the real ports (IMusicProvider, IGameProvider,
IEmailSender), so the scanner and dispatcher run their production code paths. Only
the network is faked. Fakes return EVERYTHING they were given without date
filtering, which lets tests check the scanner's own recency filter.
"""

from collections.abc import AsyncGenerator
from datetime import UTC, datetime
from typing import Any

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from releasewatch.config import DatabaseSettings, ScannerSettings, Settings
from releasewatch.domain.dtos import GameStatusReport, ProviderCandidate, ProviderItem
from releasewatch.domain.entities import Release, TrackedEntity
from releasewatch.domain.ports import IEmailSender, IGameProvider, IMusicProvider
from releasewatch.domain.ports.notification import EmailResult
from releasewatch.infrastructure.persistence import Database

FIXED_NOW = datetime(2026, 10, 1, 12, 0, tzinfo=UTC)


class FakeMusicProvider(IMusicProvider):
    """Music provider serving canned items per provider id."""

    def __init__(
        self,
        name: str = "spotify",
        releases: dict[str, list[ProviderItem]] | None = None,
        errors: dict[str, Exception] | None = None,
        configured: bool = True,
    ) -> None:
        self._name = name
        self.releases = releases or {}
        self.errors = errors or {}
        self.configured = configured
        self.calls: list[str] = []

    @property
    def name(self) -> str:
        return self._name

    def is_configured(self) -> bool:
        return self.configured

    def provider_id_for(self, entity: TrackedEntity) -> str | None:
        if self._name == "deezer":
            return entity.deezer_id
        if self._name == "soundcloud":
            return entity.soundcloud_url
        return entity.spotify_id

    async def search(self, query: str) -> list[ProviderCandidate]:
        return []

    async def get_details(self, provider_id: str) -> dict[str, Any] | None:
        return None

    async def get_recent_releases(
        self, provider_id: str, since: datetime
    ) -> list[ProviderItem]:
        self.calls.append(provider_id)
        if provider_id in self.errors:
            raise self.errors[provider_id]
        return list(self.releases.get(provider_id, []))

    async def close(self) -> None:
        return None


class FakeGameProvider(IGameProvider):
    """Game provider serving canned status reports, patch notes and DLC per entity id."""

    def __init__(
        self,
        name: str = "steam",
        reports: dict[str, GameStatusReport] | None = None,
        patch_notes: dict[str, list[ProviderItem]] | None = None,
        dlc: dict[str, list[ProviderItem]] | None = None,
        errors: dict[str, Exception] | None = None,
        configured: bool = True,
    ) -> None:
        self._name = name
        self.reports = reports or {}
        self.patch_notes = patch_notes or {}
        self.dlc = dlc or {}
        self.errors = errors or {}
        self.configured = configured
        self.calls: list[str] = []

    @property
    def name(self) -> str:
        return self._name

    def is_configured(self) -> bool:
        return self.configured

    async def search(self, query: str) -> list[ProviderCandidate]:
        return []

    async def get_details(self, provider_id: str) -> dict[str, Any] | None:
        return None

    async def get_game_status(self, entity: TrackedEntity) -> GameStatusReport | None:
        self.calls.append(entity.id)
        if entity.id in self.errors:
            raise self.errors[entity.id]
        return self.reports.get(entity.id)

    async def get_recent_patch_notes(
        self, entity: TrackedEntity, since: datetime
    ) -> list[ProviderItem]:
        return list(self.patch_notes.get(entity.id, []))

    async def get_recent_dlc(
        self, entity: TrackedEntity, since: datetime
    ) -> list[ProviderItem]:
        return list(self.dlc.get(entity.id, []))

    async def close(self) -> None:
        return None


class FakeEmailSender(IEmailSender):
    """Records every send. Recipients in fail_for get a failed result."""

    def __init__(self, fail_for: set[str] | None = None) -> None:
        self.fail_for = fail_for or set()
        self.sent: list[dict[str, Any]] = []

    @property
    def name(self) -> str:
        return "fake"

    def is_configured(self) -> bool:
        return True

    async def send(
        self, recipient: str, releases: list[Release], digest: bool
    ) -> EmailResult:
        self.sent.append({"recipient": recipient, "releases": releases, "digest": digest})
        if recipient in self.fail_for:
            return EmailResult(
                success=False, provider_name=self.name, recipient=recipient, error="boom"
            )
        return EmailResult(success=True, provider_name=self.name, recipient=recipient)

    async def close(self) -> None:
        return None


@pytest.fixture
def now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def scanner_settings() -> ScannerSettings:
    return ScannerSettings()


@pytest.fixture
def settings() -> Settings:
    """Settings pointing at a private in-memory SQLite database."""
    return Settings(
        database=DatabaseSettings(url="sqlite+aiosqlite:///:memory:"),
    )


@pytest.fixture
async def db(settings: Settings) -> AsyncGenerator[Database, None]:
    database = Database(settings)
    await database.create_tables()
    yield database
    await database.close()


@pytest.fixture
async def session(db: Database) -> AsyncGenerator[AsyncSession, None]:
    async with db.session_scope() as s:
        yield s


@pytest.fixture
def email_sender() -> FakeEmailSender:
    return FakeEmailSender()
