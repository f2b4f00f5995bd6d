"""SoundCloud api-v2 client.

Tracked artists store their SoundCloud PROFILE URL, not an id. We resolve the URL to
a user id first (/resolve), then list that user's tracks. Resolved ids are cached
for the lifetime of the client so a scan resolves each profile once.
"""

import logging
from datetime import datetime
from typing import Any

from releasewatch.config import SoundCloudSettings
from releasewatch.domain.dtos import ProviderCandidate, ProviderItem
from releasewatch.domain.entities import TrackedEntity
from releasewatch.domain.exceptions import ExternalServiceError
from releasewatch.domain.ports.providers import IMusicProvider
from releasewatch.infrastructure.integrations.base_client import BaseApiClient
from releasewatch.infrastructure.integrations.dates import parse_release_date
from releasewatch.infrastructure.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)


class SoundCloudClient(BaseApiClient, IMusicProvider):
    """HTTP client for SoundCloud public data."""

    provider_name = "soundcloud"
    API_BASE_URL = "https://api-v2.soundcloud.com"

    def __init__(
        self,
        settings: SoundCloudSettings,
        rate_limiter: RateLimiter | None = None,
        cooldown_seconds: float | None = None,
    ) -> None:
        super().__init__(rate_limiter=rate_limiter, cooldown_seconds=cooldown_seconds)
        self.settings = settings
        self._user_ids: dict[str, str] = {}

    def is_configured(self) -> bool:
        return bool(self.settings.client_id)

    def provider_id_for(self, entity: TrackedEntity) -> str | None:
        return entity.soundcloud_url

    def _params(self, **extra: Any) -> dict[str, Any]:
        self._ensure_configured()
        return {"client_id": self.settings.client_id, **extra}

    async def resolve_user_id(self, profile_url: str) -> str:
        """Resolve a profile URL to a SoundCloud user id."""
        if profile_url in self._user_ids:
            return self._user_ids[profile_url]

        data = await self._get_json("/resolve", params=self._params(url=profile_url))
        if not isinstance(data, dict) or data.get("kind") != "user" or "id" not in data:
            raise ExternalServiceError(
                f"SoundCloud URL does not resolve to a user: {profile_url}",
                service=self.provider_name,
            )
        user_id = str(data["id"])
        self._user_ids[profile_url] = user_id
        return user_id

    async def search(self, query: str) -> list[ProviderCandidate]:
        """Search users (artists) by name."""
        data = await self._get_json(
            "/search/users", params=self._params(q=query, limit=20)
        )
        return [self._parse_user(item) for item in data.get("collection", [])]

    async def get_details(self, provider_id: str) -> dict[str, Any] | None:
        """User profile for a profile URL (username, followers_count, track_count)."""
        user_id = await self.resolve_user_id(provider_id)
        return await self._get_json(
            f"/users/{user_id}", params=self._params(), allow_not_found=True
        )

    async def get_recent_releases(
        self, provider_id: str, since: datetime
    ) -> list[ProviderItem]:
        """Tracks published at or after `since`. provider_id is the profile URL."""
        user_id = await self.resolve_user_id(provider_id)
        data = await self._get_json(
            f"/users/{user_id}/tracks", params=self._params(limit=50)
        )

        # api-v2 wraps lists in {"collection": [...]}, older responses are bare lists
        items = data.get("collection", []) if isinstance(data, dict) else data
        releases = []
        for item in items or []:
            parsed = self._parse_track(item)
            if parsed.released_at is not None and parsed.released_at >= since:
                releases.append(parsed)
        return releases

    def _parse_track(self, data: dict[str, Any]) -> ProviderItem:
        released = (
            data.get("release_date") or data.get("display_date") or data.get("created_at")
        )
        return ProviderItem(
            provider=self.provider_name,
            provider_id=str(data.get("id", "")),
            title=data.get("title", ""),
            released_at=parse_release_date(released),
            kind="track",
            url=data.get("permalink_url"),
            artwork_url=data.get("artwork_url"),
            description=data.get("description"),
            play_count=data.get("playback_count"),
            like_count=data.get("likes_count"),
        )

    def _parse_user(self, data: dict[str, Any]) -> ProviderCandidate:
        return ProviderCandidate(
            provider=self.provider_name,
            provider_id=str(data.get("id", "")),
            name=data.get("username", ""),
            image_url=data.get("avatar_url"),
            url=data.get("permalink_url"),
            followers=data.get("followers_count"),
        )


__all__ = ["SoundCloudClient"]
