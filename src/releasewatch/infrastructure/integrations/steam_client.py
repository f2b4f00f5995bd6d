"""Steam store and news client.

Hey future me - the store endpoints (appdetails, storesearch) and ISteamNews are
PUBLIC, so Steam is always configured. A Web API key is forwarded when set.

Only games whose URL is a store.steampowered.com/app/<id> URL can be asked about.
For everything else get_game_status returns None and the scanner relies on RAWG.

Status mapping from appdetails:
- release_date.coming_soon=true    -> COMING_SOON
- "Early Access" genre (id 70)      -> EARLY_ACCESS
- otherwise                         -> RELEASED
"""

import logging
import re
from datetime import datetime
from typing import Any

from releasewatch.config import SteamSettings
from releasewatch.domain.dtos import GameStatusReport, ProviderCandidate, ProviderItem
from releasewatch.domain.entities import GameStatus, TrackedEntity
from releasewatch.domain.ports.providers import IGameProvider
from releasewatch.infrastructure.integrations.base_client import BaseApiClient
from releasewatch.infrastructure.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

STEAM_CONFIDENCE = 0.9
EARLY_ACCESS_GENRE_ID = "70"
_PATCH_TITLE = re.compile(r"\b(patch|hotfix|update)\b", re.IGNORECASE)


class SteamClient(BaseApiClient, IGameProvider):
    """HTTP client for Steam store data and patch notes."""

    provider_name = "steam"
    STORE_URL = "https://store.steampowered.com"
    NEWS_URL = "https://api.steampowered.com/ISteamNews/GetNewsForApp/v2/"

    def __init__(
        self,
        settings: SteamSettings,
        rate_limiter: RateLimiter | None = None,
        cooldown_seconds: float | None = None,
    ) -> None:
        super().__init__(rate_limiter=rate_limiter, cooldown_seconds=cooldown_seconds)
        self.settings = settings

    async def search(self, query: str) -> list[ProviderCandidate]:
        """Search the store by name."""
        data = await self._get_json(
            f"{self.STORE_URL}/api/storesearch/",
            params={"term": query, "cc": self.settings.country_code, "l": "english"},
        )
        return [
            ProviderCandidate(
                provider=self.provider_name,
                provider_id=str(item.get("id", "")),
                name=item.get("name", ""),
                image_url=item.get("tiny_image"),
                url=f"{self.STORE_URL}/app/{item.get('id')}",
            )
            for item in data.get("items", [])
        ]

    async def get_details(self, provider_id: str) -> dict[str, Any] | None:
        """Store appdetails payload for one app, None if Steam has no data."""
        data = await self._get_json(
            f"{self.STORE_URL}/api/appdetails",
            params={"appids": provider_id, "cc": self.settings.country_code},
        )
        entry = (data or {}).get(provider_id) or {}
        if not entry.get("success"):
            logger.info(f"Steam has no store data for app {provider_id}")
            return None
        return entry.get("data")

    async def get_game_status(self, entity: TrackedEntity) -> GameStatusReport | None:
        app_id = entity.steam_app_id
        if app_id is None:
            return None

        details = await self.get_details(app_id)
        if details is None:
            return None
        return self._parse_status(details, app_id)

    async def get_recent_patch_notes(
        self, entity: TrackedEntity, since: datetime
    ) -> list[ProviderItem]:
        """Patch-note news posted at or after `since`."""
        app_id = entity.steam_app_id
        if app_id is None:
            return []

        params: dict[str, Any] = {"appid": app_id, "count": 10, "maxlength": 300}
        if self.settings.api_key:
            params["key"] = self.settings.api_key

        data = await self._get_json(self.NEWS_URL, params=params)
        items = ((data or {}).get("appnews") or {}).get("newsitems") or []

        notes = []
        for item in items:
            if not self._is_patch_note(item):
                continue
            posted = item.get("date")
            if posted is None:
                continue
            posted_at = datetime.fromtimestamp(int(posted), tz=since.tzinfo)
            if posted_at < since:
                continue
            notes.append(
                ProviderItem(
                    provider=self.provider_name,
                    provider_id=str(item.get("gid", "")),
                    title=item.get("title", ""),
                    released_at=posted_at,
                    kind="patch",
                    url=item.get("url"),
                    description=item.get("contents"),
                )
            )
        return notes

    @staticmethod
    def _is_patch_note(item: dict[str, Any]) -> bool:
        tags = item.get("tags") or []
        if "patchnotes" in tags:
            return True
        return bool(_PATCH_TITLE.search(item.get("title") or ""))

    def _parse_status(self, details: dict[str, Any], app_id: str) -> GameStatusReport:
        release = details.get("release_date") or {}
        genre_ids = {str(g.get("id")) for g in details.get("genres") or []}

        if release.get("coming_soon"):
            status = GameStatus.COMING_SOON
        elif EARLY_ACCESS_GENRE_ID in genre_ids:
            status = GameStatus.EARLY_ACCESS
        else:
            status = GameStatus.RELEASED

        return GameStatusReport(
            provider=self.provider_name,
            status=status,
            release_date=release.get("date") or None,
            confidence=STEAM_CONFIDENCE,
            url=f"{self.STORE_URL}/app/{app_id}",
            image_url=details.get("header_image"),
        )


__all__ = ["SteamClient"]
