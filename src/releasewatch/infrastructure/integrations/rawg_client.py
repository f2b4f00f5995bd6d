"""RAWG video game database client.

Hey future me - RAWG needs an API key on EVERY request (query param `key`). Without
one the provider is unconfigured and the scanner skips it.

Status mapping:
- tba=true                      -> COMING_SOON
- released date in the past     -> RELEASED
- released date in the future   -> COMING_SOON
- nothing known                 -> UNKNOWN

RAWG is community data, so its reports carry lower confidence than Steam's store data.
"""

import logging
from datetime import UTC, datetime
from typing import Any

from releasewatch.config import RawgSettings
from releasewatch.domain.dtos import GameStatusReport, ProviderCandidate, ProviderItem
from releasewatch.domain.entities import GameStatus, TrackedEntity
from releasewatch.domain.ports.providers import IGameProvider
from releasewatch.infrastructure.integrations.base_client import BaseApiClient
from releasewatch.infrastructure.integrations.dates import parse_release_date
from releasewatch.infrastructure.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

RAWG_CONFIDENCE = 0.6


class RawgClient(BaseApiClient, IGameProvider):
    """HTTP client for RAWG game lookups."""

    provider_name = "rawg"
    API_BASE_URL = "https://api.rawg.io/api"
    SITE_URL = "https://rawg.io/games"

    def __init__(
        self,
        settings: RawgSettings,
        rate_limiter: RateLimiter | None = None,
        cooldown_seconds: float | None = None,
    ) -> None:
        super().__init__(rate_limiter=rate_limiter, cooldown_seconds=cooldown_seconds)
        self.settings = settings
        self._slugs: dict[str, str | None] = {}

    def is_configured(self) -> bool:
        return bool(self.settings.api_key)

    def _params(self, **extra: Any) -> dict[str, Any]:
        self._ensure_configured()
        return {"key": self.settings.api_key, **extra}

    async def search(self, query: str) -> list[ProviderCandidate]:
        """Search games by name (top 5)."""
        data = await self._get_json("/games", params=self._params(search=query, page_size=5))
        return [self._parse_candidate(item) for item in data.get("results", [])]

    async def get_details(self, provider_id: str) -> dict[str, Any] | None:
        """Game detail by slug or numeric id."""
        return await self._get_json(
            f"/games/{provider_id}", params=self._params(), allow_not_found=True
        )

    async def _resolve_slug(self, entity: TrackedEntity) -> str | None:
        """Slug stored on the entity, else the best name match."""
        if entity.rawg_slug:
            return entity.rawg_slug
        if entity.id in self._slugs:
            return self._slugs[entity.id]

        data = await self._get_json(
            "/games", params=self._params(search=entity.name, page_size=5)
        )
        results = data.get("results") or []
        slug = results[0].get("slug") if results else None
        self._slugs[entity.id] = slug
        if slug is None:
            logger.info(f"RAWG has no match for game '{entity.name}'")
        return slug

    async def get_game_status(self, entity: TrackedEntity) -> GameStatusReport | None:
        """Release status from the RAWG game detail."""
        slug = await self._resolve_slug(entity)
        if slug is None:
            return None

        data = await self.get_details(slug)
        if data is None:
            return None
        return self._parse_status(data, slug)

    async def get_recent_dlc(
        self, entity: TrackedEntity, since: datetime
    ) -> list[ProviderItem]:
        """DLC and editions released at or after `since`."""
        slug = await self._resolve_slug(entity)
        if slug is None:
            return []

        data = await self._get_json(
            f"/games/{slug}/additions", params=self._params(page_size=20), allow_not_found=True
        )
        if data is None:
            return []

        additions = []
        for item in data.get("results", []):
            released_at = parse_release_date(item.get("released"))
            if released_at is None or released_at < since:
                continue
            additions.append(
                ProviderItem(
                    provider=self.provider_name,
                    provider_id=str(item.get("id", "")),
                    title=item.get("name", ""),
                    released_at=released_at,
                    kind="dlc",
                    url=f"{self.SITE_URL}/{item['slug']}" if item.get("slug") else None,
                    artwork_url=item.get("background_image"),
                )
            )
        return additions

    def _parse_status(self, data: dict[str, Any], slug: str) -> GameStatusReport:
        released = data.get("released")
        released_at = parse_release_date(released)

        if data.get("tba"):
            status = GameStatus.COMING_SOON
        elif released_at is None:
            status = GameStatus.UNKNOWN
        elif released_at <= datetime.now(UTC):
            status = GameStatus.RELEASED
        else:
            status = GameStatus.COMING_SOON

        return GameStatusReport(
            provider=self.provider_name,
            status=status,
            release_date=released,
            confidence=RAWG_CONFIDENCE,
            url=f"{self.SITE_URL}/{slug}",
            image_url=data.get("background_image"),
        )

    def _parse_candidate(self, data: dict[str, Any]) -> ProviderCandidate:
        slug = data.get("slug")
        return ProviderCandidate(
            provider=self.provider_name,
            provider_id=slug or str(data.get("id", "")),
            name=data.get("name", ""),
            image_url=data.get("background_image"),
            url=f"{self.SITE_URL}/{slug}" if slug else None,
            popularity=data.get("added"),
            release_date=data.get("released"),
        )


__all__ = ["RawgClient"]
