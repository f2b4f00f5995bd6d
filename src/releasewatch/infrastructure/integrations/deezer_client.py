"""Deezer HTTP client for artist releases.

Hey future me - Deezer's public API works WITHOUT authentication, so this provider is
always configured. Rate limit is 50 requests per 5 seconds per IP.

Deezer quirk: throttling comes back as HTTP 200 with
{"error": {"type": "Exception", "code": 4}} in the body. _check_payload turns that
into the same cooldown + RateLimitExceededError a 429 would give. Code 800 ("no data")
means an unknown artist id and is answered with nothing, not an error.
"""

import logging
from datetime import datetime
from typing import Any

from releasewatch.domain.dtos import ProviderCandidate, ProviderItem
from releasewatch.domain.entities import TrackedEntity
from releasewatch.domain.exceptions import ExternalServiceError
from releasewatch.domain.ports.providers import IMusicProvider
from releasewatch.infrastructure.integrations.base_client import BaseApiClient
from releasewatch.infrastructure.integrations.dates import parse_release_date

logger = logging.getLogger(__name__)

DEEZER_QUOTA_ERROR = 4
# "no data": unknown artist id. Comes back as HTTP 200 like every other Deezer error.
DEEZER_NO_DATA_ERROR = 800


class DeezerClient(BaseApiClient, IMusicProvider):
    """HTTP client for Deezer API operations."""

    provider_name = "deezer"
    API_BASE_URL = "https://api.deezer.com"

    def provider_id_for(self, entity: TrackedEntity) -> str | None:
        return entity.deezer_id

    def _check_payload(self, url: str, data: Any) -> None:
        if not isinstance(data, dict) or "error" not in data:
            return
        error = data.get("error") or {}
        if error.get("code") == DEEZER_QUOTA_ERROR:
            self._raise_rate_limited(url, None)
        if error.get("code") == DEEZER_NO_DATA_ERROR:
            return
        raise ExternalServiceError(
            f"Deezer API error: {error.get('message') or error.get('type')}",
            service=self.provider_name,
        )

    async def search(self, query: str) -> list[ProviderCandidate]:
        """Search artists by name."""
        data = await self._get_json("/search/artist", params={"q": query, "limit": 10})
        return [self._parse_artist(item) for item in data.get("data", [])]

    async def get_details(self, provider_id: str) -> dict[str, Any] | None:
        """Artist record (name, nb_album, nb_fan, pictures)."""
        data = await self._get_json(f"/artist/{provider_id}")
        return None if "error" in data else data

    async def get_recent_releases(
        self, provider_id: str, since: datetime
    ) -> list[ProviderItem]:
        """Albums, EPs and singles released at or after `since`."""
        data = await self._get_json(
            f"/artist/{provider_id}/albums", params={"limit": 50}
        )
        if "error" in data:
            logger.warning(f"Deezer does not know artist {provider_id}")
            return []

        releases = []
        for item in data.get("data", []):
            parsed = self._parse_album(item)
            if parsed.released_at is not None and parsed.released_at >= since:
                releases.append(parsed)
        return releases

    def _parse_album(self, data: dict[str, Any]) -> ProviderItem:
        # Chart/search payloads often miss release_date. Such items get no date
        # and are dropped by the recency filter instead of faking one.
        return ProviderItem(
            provider=self.provider_name,
            provider_id=str(data.get("id", "")),
            title=data.get("title", ""),
            released_at=parse_release_date(data.get("release_date")),
            kind=data.get("record_type") or "album",
            url=data.get("link"),
            artwork_url=data.get("cover_xl") or data.get("cover_big"),
        )

    def _parse_artist(self, data: dict[str, Any]) -> ProviderCandidate:
        return ProviderCandidate(
            provider=self.provider_name,
            provider_id=str(data.get("id", "")),
            name=data.get("name", ""),
            image_url=data.get("picture_xl") or data.get("picture_big"),
            url=data.get("link"),
            followers=data.get("nb_fan"),
        )


__all__ = ["DeezerClient"]
