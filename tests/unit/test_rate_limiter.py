"""Unit tests for the sliding-window rate limiter."""

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from dreamland.api.middleware.rate_limiter import (
    RATE_LIMIT_TIERS,
    RateLimiter,
    RateLimitRule,
    RateLimitTier,
)


class FakeClock:
    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


RULE = RateLimitRule(max_requests=3, window_seconds=60)


@pytest.mark.unit
class TestInMemoryRateLimiter:
    """Unit tests for the in-process backend."""

    @pytest.mark.asyncio
    async def test_allows_up_to_limit(self, clock: FakeClock) -> None:
        """Test that requests within the budget are allowed with decreasing remaining."""
        limiter = RateLimiter(clock=clock)

        results = [await limiter.check("ip:1.2.3.4", "booking", RULE) for _ in range(3)]

        assert [result.allowed for result in results] == [True, True, True]
        assert [result.remaining for result in results] == [2, 1, 0]

    @pytest.mark.asyncio
    async def test_rejects_over_limit(self, clock: FakeClock) -> None:
        """Test that the request past the budget is refused with a retry hint."""
        limiter = RateLimiter(clock=clock)
        for _ in range(3):
            await limiter.check("ip:1.2.3.4", "booking", RULE)

        clock.now += 10
        result = await limiter.check("ip:1.2.3.4", "booking", RULE)

        assert result.allowed is False
        assert result.remaining == 0
        assert result.retry_after == 50

    @pytest.mark.asyncio
    async def test_window_slides(self, clock: FakeClock) -> None:
        """Test that attempts older than the window stop counting."""
        limiter = RateLimiter(clock=clock)
        for _ in range(3):
            await limiter.check("ip:1.2.3.4", "booking", RULE)

        clock.now += 61
        result = await limiter.check("ip:1.2.3.4", "booking", RULE)

        assert result.allowed is True

    @pytest.mark.asyncio
    async def test_rejected_attempts_still_count(self, clock: FakeClock) -> None:
        """Test that hammering a limited endpoint keeps the client limited."""
        limiter = RateLimiter(clock=clock)
        for _ in range(3):
            await limiter.check("ip:1.2.3.4", "booking", RULE)
        clock.now += 30
        await limiter.check("ip:1.2.3.4", "booking", RULE)

        # The first three have aged out, the rejected one at +30s has not
        clock.now += 31
        for _ in range(2):
            assert (await limiter.check("ip:1.2.3.4", "booking", RULE)).allowed is True
        assert (await limiter.check("ip:1.2.3.4", "booking", RULE)).allowed is False

    @pytest.mark.asyncio
    async def test_keys_are_per_client_and_endpoint(self, clock: FakeClock) -> None:
        """Test that budgets are tracked per identifier and endpoint."""
        limiter = RateLimiter(clock=clock)
        for _ in range(3):
            await limiter.check("ip:1.2.3.4", "booking", RULE)

        assert (await limiter.check("ip:5.6.7.8", "booking", RULE)).allowed is True
        assert (await limiter.check("ip:1.2.3.4", "inquiry", RULE)).allowed is True

    @pytest.mark.asyncio
    async def test_cleanup_drops_idle_keys(self, clock: FakeClock) -> None:
        """Test that idle keys are purged on the cleanup interval."""
        limiter = RateLimiter(clock=clock, cleanup_interval=60)
        await limiter.check("ip:1.2.3.4", "booking", RULE)

        clock.now += 120
        await limiter.check("ip:5.6.7.8", "booking", RULE)

        assert RateLimiter.make_key("ip:1.2.3.4", "booking") not in limiter.logs


@pytest.mark.unit
class TestRedisRateLimiter:
    """Unit tests for the shared Redis backend."""

    @pytest.mark.asyncio
    async def test_redis_backend_limits(self, fake_redis, clock: FakeClock) -> None:
        """Test that the sorted-set backend enforces the same budget."""
        limiter = RateLimiter(redis=fake_redis, clock=clock)

        allowed = []
        for _ in range(4):
            allowed.append((await limiter.check("ip:1.2.3.4", "booking", RULE)).allowed)
            clock.now += 1

        assert allowed == [True, True, True, False]
        assert await fake_redis.zcard(RateLimiter.make_key("ip:1.2.3.4", "booking")) == 4

    @pytest.mark.asyncio
    async def test_redis_failure_fails_open(self, clock: FakeClock) -> None:
        """Test that a broken Redis lets requests through."""
        class BrokenRedis:
            def pipeline(self, transaction=True):
                raise RedisConnectionError("down")

        limiter = RateLimiter(redis=BrokenRedis(), clock=clock)
        result = await limiter.check("ip:1.2.3.4", "booking", RULE)

        assert result.allowed is True


@pytest.mark.unit
def test_tier_budgets() -> None:
    """Test the configured budgets of the named tiers."""
    assert RATE_LIMIT_TIERS[RateLimitTier.PUBLIC] == RateLimitRule(30, 60)
    assert RATE_LIMIT_TIERS[RateLimitTier.SENSITIVE] == RateLimitRule(5, 900)
    assert RATE_LIMIT_TIERS[RateLimitTier.LOGIN] == RateLimitRule(5, 60)
