"""Unit tests for the read-through Redis cache."""

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from dreamland.services.cache import CacheKeys, CacheService


class CountingFetcher:
    def __init__(self, value):
        self.value = value
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        return self.value


class BrokenRedis:
    async def get(self, key):
        raise RedisConnectionError("down")

    async def setex(self, key, ttl, value):
        raise RedisConnectionError("down")


@pytest.mark.unit
class TestCacheService:
    """Unit tests for CacheService."""

    @pytest.mark.asyncio
    async def test_get_or_set_fetches_once(self, cache: CacheService) -> None:
        """Test that a second read is served from Redis."""
        fetcher = CountingFetcher({"tours": [1, 2]})

        first = await cache.get_or_set("tours:featured", fetcher, ttl=60)
        second = await cache.get_or_set("tours:featured", fetcher, ttl=60)

        assert first == second == {"tours": [1, 2]}
        assert fetcher.calls == 1

    @pytest.mark.asyncio
    async def test_ttl_applied(self, cache: CacheService, fake_redis) -> None:
        """Test that stored entries carry the requested expiry."""
        await cache.get_or_set("settings:site", CountingFetcher({"a": 1}), ttl=120)

        assert 0 < await fake_redis.ttl("settings:site") <= 120

    @pytest.mark.asyncio
    async def test_none_not_cached(self, cache: CacheService) -> None:
        """Test that a missing record is fetched again next time."""
        fetcher = CountingFetcher(None)

        await cache.get_or_set("tour:missing", fetcher)
        await cache.get_or_set("tour:missing", fetcher)

        assert fetcher.calls == 2

    @pytest.mark.asyncio
    async def test_disabled_without_redis(self) -> None:
        """Test that the cache is a pass-through without a client."""
        cache = CacheService(None)
        fetcher = CountingFetcher([1])

        await cache.get_or_set("k", fetcher)
        await cache.get_or_set("k", fetcher)

        assert cache.enabled is False
        assert fetcher.calls == 2
        assert await cache.get("k") is None
        assert await cache.invalidate_pattern("*") == 0

    @pytest.mark.asyncio
    async def test_redis_errors_bypass_cache(self) -> None:
        """Test that Redis failures fall back to the fetcher."""
        cache = CacheService(BrokenRedis())

        assert await cache.get_or_set("k", CountingFetcher("fresh")) == "fresh"

    @pytest.mark.asyncio
    async def test_corrupt_value_refetched(self, cache: CacheService, fake_redis) -> None:
        """Test that an unreadable cached value is replaced."""
        await fake_redis.set("k", "{not json")

        assert await cache.get_or_set("k", CountingFetcher([1])) == [1]
        assert await cache.get("k") == [1]

    @pytest.mark.asyncio
    async def test_invalidate_pattern(self, cache: CacheService, fake_redis) -> None:
        """Test that pattern invalidation only removes matching keys."""
        for page in range(1, 251):
            await fake_redis.set(CacheKeys.tours_list(page, 9), "{}")
        await fake_redis.set(CacheKeys.tours_featured(), "[]")

        deleted = await cache.invalidate_pattern("tours:list:*")

        assert deleted == 250
        assert await fake_redis.exists(CacheKeys.tours_featured()) == 1

    @pytest.mark.asyncio
    async def test_invalidate_tour_caches(self, cache: CacheService, fake_redis) -> None:
        """Test that a tour mutation drops detail, slug, category and list keys."""
        keys = [
            CacheKeys.tour("t1"),
            CacheKeys.tour_by_slug("serengeti"),
            CacheKeys.tours_by_category("c1"),
            CacheKeys.tours_featured(),
            CacheKeys.categories(),
            CacheKeys.tours_list(1, 9, "c1"),
        ]
        for key in keys:
            await fake_redis.set(key, "{}")
        await fake_redis.set(CacheKeys.tour("t2"), "{}")

        await cache.invalidate_tour_caches("t1", "serengeti", "c1")

        for key in keys:
            assert await fake_redis.exists(key) == 0
        assert await fake_redis.exists(CacheKeys.tour("t2")) == 1

    @pytest.mark.asyncio
    async def test_warm(self, cache: CacheService) -> None:
        """Test that warming skips entries whose fetcher returns None."""
        warmed = await cache.warm(
            [
                (CacheKeys.faq_list(), CountingFetcher({"faqs": []}), 60),
                (CacheKeys.site_settings(), CountingFetcher(None), 60),
            ]
        )

        assert warmed == 1
        assert await cache.get(CacheKeys.faq_list()) == {"faqs": []}


@pytest.mark.unit
def test_cache_keys() -> None:
    """Test key formats shared by readers and invalidators."""
    assert CacheKeys.tours_list(2, 9) == "tours:list:2:9:all"
    assert CacheKeys.tours_list(1, 9, "c1") == "tours:list:1:9:c1"
    assert CacheKeys.blog_list(3) == "blog:list:3"
    assert CacheKeys.tour_by_slug("x") == "tour:slug:x"
