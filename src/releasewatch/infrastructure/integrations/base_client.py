"""Shared HTTP plumbing for platform clients.

Hey future me - ALL platform API calls go through _api_request()! It does three things:
1. Takes a token from the client's own RateLimiter (fails fast during cooldown)
2. Turns HTTP 429 into a cooldown + RateLimitExceededError (no retry inside a run!)
3. Wraps transport errors (timeouts, DNS, refused connections) in ExternalServiceError

Subclasses only build URLs and parse payloads into DTOs.
"""

import logging
from typing import Any

import httpx

from releasewatch.domain.exceptions import (
    ConfigurationError,
    ExternalServiceError,
    RateLimitExceededError,
)
from releasewatch.infrastructure.rate_limiter import RateLimiter, parse_retry_after

logger = logging.getLogger(__name__)

USER_AGENT = "ReleaseWatch/0.1 (release notifications)"


class BaseApiClient:
    """Lazily created httpx client plus rate-limited request helper."""

    provider_name = "base"
    API_BASE_URL = ""
    TIMEOUT = 15.0

    def __init__(
        self,
        rate_limiter: RateLimiter | None = None,
        cooldown_seconds: float | None = None,
    ) -> None:
        self._client: httpx.AsyncClient | None = None
        self.rate_limiter = rate_limiter or RateLimiter.for_provider(
            self.provider_name, cooldown_seconds=cooldown_seconds
        )

    @property
    def name(self) -> str:
        return self.provider_name

    def is_configured(self) -> bool:
        return True

    def _ensure_configured(self) -> None:
        if not self.is_configured():
            raise ConfigurationError(f"{self.provider_name} credentials not configured")

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.API_BASE_URL,
                headers={"User-Agent": USER_AGENT, "Accept": "application/json"},
                timeout=self.TIMEOUT,
            )
        return self._client

    async def close(self) -> None:
        """Close HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _api_request(
        self,
        method: str,
        url: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        """Make a rate-limited API request.

        Raises:
            RateLimitExceededError: On 429 or while cooling down
            ExternalServiceError: On transport errors
        """
        client = await self._get_client()

        async with self.rate_limiter:
            try:
                response = await client.request(
                    method=method, url=url, params=params, headers=headers
                )
            except httpx.HTTPError as e:
                logger.error(f"{self.provider_name} request failed: {url}: {e}")
                raise ExternalServiceError(
                    f"{self.provider_name} request failed: {e}",
                    service=self.provider_name,
                ) from e

        if response.status_code == 429:
            retry_after = parse_retry_after(response.headers.get("Retry-After"))
            self._raise_rate_limited(url, retry_after)

        return response

    def _raise_rate_limited(self, url: str, retry_after: float | None) -> None:
        cooldown = self.rate_limiter.enter_cooldown(retry_after)
        logger.warning(
            f"{self.provider_name} rate limited on {url}. "
            f"Retry-After: {retry_after if retry_after is not None else 'not provided'}"
        )
        raise RateLimitExceededError(
            f"{self.provider_name} rate limit exceeded",
            service=self.provider_name,
            retry_after=cooldown,
        )

    def _check_payload(self, url: str, data: Any) -> None:
        """Hook for providers that report errors inside a 200 response."""
        return None

    async def _get_json(
        self,
        url: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        allow_not_found: bool = False,
    ) -> Any:
        """GET a JSON document.

        Returns:
            Decoded JSON, or None for 404 when allow_not_found is set
        """
        response = await self._api_request("GET", url, params=params, headers=headers)

        if allow_not_found and response.status_code == 404:
            return None

        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(f"{self.provider_name} API error on {url}: {e}")
            raise ExternalServiceError(
                f"{self.provider_name} API error: {response.status_code}",
                service=self.provider_name,
            ) from e

        try:
            data = response.json()
        except ValueError as e:
            raise ExternalServiceError(
                f"{self.provider_name} returned invalid JSON",
                service=self.provider_name,
            ) from e

        self._check_payload(url, data)
        return data


__all__ = ["BaseApiClient", "USER_AGENT"]
