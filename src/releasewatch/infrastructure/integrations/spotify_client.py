"""Spotify Web API client (client-credentials flow).

Hey future me - we only read PUBLIC catalog data (artist albums, artist search), so
the app token from the client-credentials flow is enough. No user OAuth here!

The token lives ~1 hour. We cache it and refresh a minute early. A 401 means the
token died anyway, so we drop it and let the next call fetch a new one.
"""

import logging
import time
from datetime import datetime
from typing import Any

import httpx

from releasewatch.config import SpotifySettings
from releasewatch.domain.dtos import ProviderCandidate, ProviderItem
from releasewatch.domain.entities import TrackedEntity
from releasewatch.domain.exceptions import ExternalServiceError, RateLimitExceededError
from releasewatch.domain.ports.providers import IMusicProvider
from releasewatch.infrastructure.integrations.base_client import BaseApiClient
from releasewatch.infrastructure.integrations.dates import parse_release_date
from releasewatch.infrastructure.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)


class SpotifyClient(BaseApiClient, IMusicProvider):
    """HTTP client for Spotify catalog lookups."""

    provider_name = "spotify"
    API_BASE_URL = "https://api.spotify.com/v1"
    TOKEN_URL = "https://accounts.spotify.com/api/token"  # nosec B105 - public endpoint

    def __init__(
        self,
        settings: SpotifySettings,
        rate_limiter: RateLimiter | None = None,
        cooldown_seconds: float | None = None,
    ) -> None:
        super().__init__(rate_limiter=rate_limiter, cooldown_seconds=cooldown_seconds)
        self.settings = settings
        self._access_token: str | None = None
        self._token_expires_at: float = 0.0

    def is_configured(self) -> bool:
        return bool(self.settings.client_id and self.settings.client_secret)

    def provider_id_for(self, entity: TrackedEntity) -> str | None:
        return entity.spotify_id

    async def _get_access_token(self) -> str:
        """Fetch (or reuse) an app access token."""
        self._ensure_configured()
        if self._access_token and time.monotonic() < self._token_expires_at:
            return self._access_token

        client = await self._get_client()
        try:
            response = await client.post(
                self.TOKEN_URL,
                data={"grant_type": "client_credentials"},
                auth=(self.settings.client_id, self.settings.client_secret),
            )
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Spotify token request failed: {e}")
            raise ExternalServiceError(
                f"Spotify token request failed: {e}", service=self.provider_name
            ) from e

        self._access_token = payload["access_token"]
        expires_in = float(payload.get("expires_in", 3600))
        self._token_expires_at = time.monotonic() + max(expires_in - 60, 0)
        return self._access_token

    async def _authorized_get(
        self,
        url: str,
        params: dict[str, Any] | None = None,
        allow_not_found: bool = False,
    ) -> Any:
        token = await self._get_access_token()
        try:
            return await self._get_json(
                url,
                params=params,
                headers={"Authorization": f"Bearer {token}"},
                allow_not_found=allow_not_found,
            )
        except RateLimitExceededError:
            raise
        except ExternalServiceError:
            # Force a fresh token next time in case this was a 401
            self._access_token = None
            raise

    async def search(self, query: str) -> list[ProviderCandidate]:
        """Search artists by name."""
        data = await self._authorized_get(
            "/search", params={"q": query, "type": "artist", "limit": 10}
        )
        return [
            self._parse_artist(item)
            for item in data.get("artists", {}).get("items", [])
        ]

    async def get_details(self, provider_id: str) -> dict[str, Any] | None:
        """Artist object (name, genres, followers, images)."""
        return await self._authorized_get(f"/artists/{provider_id}", allow_not_found=True)

    async def get_recent_releases(
        self, provider_id: str, since: datetime
    ) -> list[ProviderItem]:
        """Albums and singles released at or after `since`."""
        data = await self._authorized_get(
            f"/artists/{provider_id}/albums",
            params={
                "include_groups": "album,single",
                "market": self.settings.market,
                "limit": 50,
            },
        )

        releases = []
        for item in data.get("items", []):
            parsed = self._parse_album(item)
            if parsed.released_at is not None and parsed.released_at >= since:
                releases.append(parsed)
        return releases

    def _parse_album(self, data: dict[str, Any]) -> ProviderItem:
        images = data.get("images") or []
        return ProviderItem(
            provider=self.provider_name,
            provider_id=str(data.get("id", "")),
            title=data.get("name", ""),
            released_at=parse_release_date(data.get("release_date")),
            kind=data.get("album_type") or "album",
            url=(data.get("external_urls") or {}).get("spotify"),
            artwork_url=images[0].get("url") if images else None,
        )

    def _parse_artist(self, data: dict[str, Any]) -> ProviderCandidate:
        images = data.get("images") or []
        return ProviderCandidate(
            provider=self.provider_name,
            provider_id=str(data.get("id", "")),
            name=data.get("name", ""),
            image_url=images[0].get("url") if images else None,
            url=(data.get("external_urls") or {}).get("spotify"),
            popularity=data.get("popularity"),
            followers=(data.get("followers") or {}).get("total"),
        )


__all__ = ["SpotifyClient"]
