"""Per-client Rate Limiter for external API calls.

Hey future me - every platform client OWNS one of these. No module-level singletons:
two SpotifyClient instances (e.g. in tests) must never share throttling state.

ALGORITHM: Token Bucket
- Bucket holds max_tokens
- Tokens refill at refill_rate per second
- Each request consumes 1 token
- Empty bucket: wait until a token is available

COOLDOWN on rate-limit signals (HTTP 429, Deezer error code 4):
- The client calls enter_cooldown(retry_after)
- Retry-After is honoured when given, else config.cooldown_seconds (15 min)
- While cooling down, acquire() raises RateLimitExceededError IMMEDIATELY.
  No sleeping for minutes inside a scan run! The scanner marks the provider
  as skipped for the rest of the run and moves on.

Clock and sleep are injected so tests can drive time by hand.

USAGE:
    limiter = RateLimiter.for_provider("spotify")

    async with limiter:
        response = await client.get(url)

    if response.status_code == 429:
        limiter.enter_cooldown(retry_after)
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from releasewatch.domain.exceptions import RateLimitExceededError

logger = logging.getLogger(__name__)

Clock = Callable[[], float]
Sleep = Callable[[float], Awaitable[None]]


@dataclass
class RateLimiterConfig:
    """Configuration for rate limiter.

    Hey future me - max_cooldown_seconds caps absurd Retry-After values. Spotify can
    send several minutes, which we respect, but a broken header must not park a
    provider for a day.
    """

    max_tokens: int = 10  # Bucket size
    refill_rate: float = 2.0  # Tokens per second
    cooldown_seconds: float = 900.0  # Used when no Retry-After is given
    max_cooldown_seconds: float = 3600.0


# Conservative sustained rates, roughly half of what each platform allows.
_PRESETS: dict[str, RateLimiterConfig] = {
    "spotify": RateLimiterConfig(max_tokens=10, refill_rate=2.0),
    "deezer": RateLimiterConfig(max_tokens=15, refill_rate=5.0),
    "soundcloud": RateLimiterConfig(max_tokens=5, refill_rate=1.0),
    "rawg": RateLimiterConfig(max_tokens=5, refill_rate=2.0),
    # Store API tolerates about 200 requests per 5 minutes
    "steam": RateLimiterConfig(max_tokens=5, refill_rate=0.5),
}


@dataclass
class RateLimiter:
    """Token Bucket Rate Limiter with fail-fast cooldown.

    Attributes:
        name: Provider name for logs and errors
        config: Rate limiter configuration
        clock: Monotonic clock in seconds
        sleep: Awaitable sleep used while waiting for tokens
    """

    name: str = "default"
    config: RateLimiterConfig = field(default_factory=RateLimiterConfig)
    clock: Clock = time.monotonic
    sleep: Sleep = asyncio.sleep

    # Internal state (not in __init__ signature)
    _tokens: float = field(default=0.0, init=False)
    _last_refill: float = field(default=0.0, init=False)
    _cooldown_until: float | None = field(default=None, init=False)
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, init=False)

    def __post_init__(self) -> None:
        """Start with a full bucket."""
        self._tokens = float(self.config.max_tokens)
        self._last_refill = self.clock()

    @classmethod
    def for_provider(
        cls,
        name: str,
        cooldown_seconds: float | None = None,
        clock: Clock | None = None,
        sleep: Sleep | None = None,
    ) -> "RateLimiter":
        """Create a limiter with the preset for a known provider."""
        preset = _PRESETS.get(name, RateLimiterConfig())
        config = RateLimiterConfig(
            max_tokens=preset.max_tokens,
            refill_rate=preset.refill_rate,
            cooldown_seconds=(
                cooldown_seconds
                if cooldown_seconds is not None
                else preset.cooldown_seconds
            ),
            max_cooldown_seconds=preset.max_cooldown_seconds,
        )
        return cls(
            name=name,
            config=config,
            clock=clock or time.monotonic,
            sleep=sleep or asyncio.sleep,
        )

    def _refill_tokens(self) -> None:
        now = self.clock()
        elapsed = max(0.0, now - self._last_refill)
        self._tokens = min(
            float(self.config.max_tokens),
            self._tokens + elapsed * self.config.refill_rate,
        )
        self._last_refill = now

    @property
    def cooldown_remaining(self) -> float:
        """Seconds until the cooldown ends (0.0 when not cooling down)."""
        if self._cooldown_until is None:
            return 0.0
        remaining = self._cooldown_until - self.clock()
        if remaining <= 0:
            self._cooldown_until = None
            return 0.0
        return remaining

    @property
    def in_cooldown(self) -> bool:
        return self.cooldown_remaining > 0

    def ensure_available(self) -> None:
        """Raise RateLimitExceededError if the provider is cooling down."""
        remaining = self.cooldown_remaining
        if remaining > 0:
            raise RateLimitExceededError(
                f"{self.name} is cooling down after a rate limit, "
                f"retry in {remaining:.0f}s",
                service=self.name,
                retry_after=remaining,
            )

    async def acquire(self) -> None:
        """Acquire one token, waiting if the bucket is empty.

        Raises:
            RateLimitExceededError: If the provider is cooling down
        """
        while True:
            async with self._lock:
                self.ensure_available()
                self._refill_tokens()
                if self._tokens >= 1.0:
                    self._tokens -= 1.0
                    logger.debug(
                        f"RateLimiter[{self.name}]: Token acquired, "
                        f"{self._tokens:.1f} remaining"
                    )
                    return
                wait_time = (1.0 - self._tokens) / self.config.refill_rate

            logger.debug(
                f"RateLimiter[{self.name}]: No tokens available, waiting {wait_time:.2f}s"
            )
            await self.sleep(wait_time)

    def enter_cooldown(self, retry_after: float | None = None) -> float:
        """Start (or extend) a cooldown after a rate-limit signal.

        Args:
            retry_after: Retry-After from the provider in seconds, if any

        Returns:
            The cooldown duration applied
        """
        duration = retry_after if retry_after is not None else self.config.cooldown_seconds
        duration = min(max(duration, 0.0), self.config.max_cooldown_seconds)
        until = self.clock() + duration
        if self._cooldown_until is None or until > self._cooldown_until:
            self._cooldown_until = until
        self._tokens = 0.0

        logger.warning(
            f"RateLimiter[{self.name}]: Rate limited! Cooling down for {duration:.0f}s"
        )
        return duration

    def reset(self) -> None:
        """Clear cooldown and refill the bucket."""
        self._cooldown_until = None
        self._tokens = float(self.config.max_tokens)
        self._last_refill = self.clock()

    async def __aenter__(self) -> "RateLimiter":
        """Enter async context - acquire token."""
        await self.acquire()
        return self

    async def __aexit__(
        self, exc_type: type | None, exc_val: Exception | None, exc_tb: object
    ) -> None:
        """Exit async context. The token is already consumed."""
        return None

    @property
    def available_tokens(self) -> float:
        """Get current available tokens (for debugging)."""
        self._refill_tokens()
        return self._tokens


def parse_retry_after(value: str | None) -> float | None:
    """Parse a Retry-After header given in seconds. HTTP-date values are ignored."""
    if not value:
        return None
    try:
        return max(0.0, float(value))
    except ValueError:
        return None


__all__ = ["RateLimiter", "RateLimiterConfig", "parse_retry_after"]
