"""Tests for the per-client token bucket rate limiter.

Hey future me - time is driven by hand through FakeClock. sleep() advances the
clock instead of waiting, so no test here ever really sleeps.
"""

import pytest

from releasewatch.domain.exceptions import RateLimitExceededError
from releasewatch.infrastructure.rate_limiter import (
    RateLimiter,
    RateLimiterConfig,
    parse_retry_after,
)


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def limiter(clock: FakeClock) -> RateLimiter:
    return RateLimiter(
        name="test",
        config=RateLimiterConfig(max_tokens=2, refill_rate=1.0, cooldown_seconds=900.0),
        clock=clock,
        sleep=clock.sleep,
    )


class TestTokenBucket:
    async def test_full_bucket_serves_without_waiting(
        self, limiter: RateLimiter, clock: FakeClock
    ) -> None:
        await limiter.acquire()
        await limiter.acquire()
        assert clock.sleeps == []

    async def test_empty_bucket_waits_for_refill(
        self, limiter: RateLimiter, clock: FakeClock
    ) -> None:
        await limiter.acquire()
        await limiter.acquire()
        await limiter.acquire()

        assert clock.sleeps == [pytest.approx(1.0)]

    async def test_context_manager_consumes_a_token(self, limiter: RateLimiter) -> None:
        async with limiter:
            pass
        assert limiter.available_tokens == pytest.approx(1.0)


class TestCooldown:
    async def test_cooldown_fails_fast(self, limiter: RateLimiter, clock: FakeClock) -> None:
        limiter.enter_cooldown()

        with pytest.raises(RateLimitExceededError) as exc_info:
            await limiter.acquire()

        assert exc_info.value.service == "test"
        assert exc_info.value.retry_after == pytest.approx(900.0)
        assert clock.sleeps == []

    async def test_retry_after_is_honoured(
        self, limiter: RateLimiter, clock: FakeClock
    ) -> None:
        assert limiter.enter_cooldown(30.0) == 30.0

        clock.now += 29.0
        assert limiter.in_cooldown is True

        clock.now += 2.0
        assert limiter.in_cooldown is False
        await limiter.acquire()

    def test_absurd_retry_after_is_capped(self, limiter: RateLimiter) -> None:
        assert limiter.enter_cooldown(86400.0) == limiter.config.max_cooldown_seconds

    def test_shorter_signal_does_not_shorten_cooldown(
        self, limiter: RateLimiter, clock: FakeClock
    ) -> None:
        limiter.enter_cooldown(600.0)
        limiter.enter_cooldown(10.0)

        clock.now += 100.0
        assert limiter.cooldown_remaining == pytest.approx(500.0)

    def test_reset_clears_cooldown(self, limiter: RateLimiter) -> None:
        limiter.enter_cooldown()
        limiter.reset()
        assert limiter.in_cooldown is False
        assert limiter.available_tokens == pytest.approx(2.0)


class TestPresets:
    def test_for_provider_uses_given_cooldown(self) -> None:
        limiter = RateLimiter.for_provider("deezer", cooldown_seconds=60.0)
        assert limiter.name == "deezer"
        assert limiter.config.cooldown_seconds == 60.0

    def test_instances_never_share_state(self) -> None:
        first = RateLimiter.for_provider("spotify")
        second = RateLimiter.for_provider("spotify")

        first.enter_cooldown()

        assert first.in_cooldown is True
        assert second.in_cooldown is False


@pytest.mark.parametrize(
    ("value", "expected"),
    [("120", 120.0), ("0", 0.0), (None, None), ("", None), ("Wed, 21 Oct 2026 07:28:00 GMT", None)],
)
def test_parse_retry_after(value: str | None, expected: float | None) -> None:
    assert parse_retry_after(value) == expected
