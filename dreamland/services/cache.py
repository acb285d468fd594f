"""Read-through JSON cache on top of Redis."""

import json
from collections.abc import Awaitable, Callable, Iterable
from typing import Any

import structlog
from redis.asyncio import Redis
from redis.exceptions import RedisError

logger = structlog.get_logger(__name__)

DEFAULT_TTL = 300

# Keys deleted per DEL call during pattern invalidation
_DELETE_BATCH = 100


class CacheKeys:
    """Key builders, kept in one place so readers and invalidators agree."""

    @staticmethod
    def tour(tour_id: str) -> str:
        return f"tour:{tour_id}"

    @staticmethod
    def tour_by_slug(slug: str) -> str:
        return f"tour:slug:{slug}"

    @staticmethod
    def tours_list(page: int, page_size: int, category_id: str | None = None) -> str:
        return f"tours:list:{page}:{page_size}:{category_id or 'all'}"

    @staticmethod
    def tours_featured() -> str:
        return "tours:featured"

    @staticmethod
    def tours_by_category(category_id: str) -> str:
        return f"tours:category:{category_id}"

    @staticmethod
    def categories() -> str:
        return "categories:list"

    @staticmethod
    def blog_list(page: int) -> str:
        return f"blog:list:{page}"

    @staticmethod
    def site_settings() -> str:
        return "settings:site"

    @staticmethod
    def faq_list() -> str:
        return "faq:list"

    @staticmethod
    def testimonials() -> str:
        return "testimonials:list"


class CacheService:
    """Read-through cache.

    The cache is an optimisation only: with no Redis client every call goes
    straight to the fetcher, and Redis failures are logged and bypassed.
    Values must be JSON-serialisable. ``None`` results are never stored.
    """

    def __init__(self, redis: Redis | None):
        """Initialize cache service.

        Args:
            redis: Async Redis client created with ``decode_responses=True``,
                or None to disable caching
        """
        self.redis = redis

    @property
    def enabled(self) -> bool:
        return self.redis is not None

    async def get_or_set(
        self,
        key: str,
        fetcher: Callable[[], Awaitable[Any]],
        ttl: int = DEFAULT_TTL,
    ) -> Any:
        """Return the cached value for ``key``, fetching and storing it on a miss.

        Args:
            key: Cache key
            fetcher: Coroutine function producing the fresh value
            ttl: Expiry in seconds for a newly stored value

        Returns:
            Cached or freshly fetched value
        """
        if self.redis is None:
            return await fetcher()

        try:
            cached = await self.redis.get(key)
        except RedisError as exc:
            logger.warning("cache_read_failed", key=key, error=str(exc))
            return await fetcher()

        if cached is not None:
            try:
                return json.loads(cached)
            except ValueError:
                logger.warning("cache_value_corrupt", key=key)

        value = await fetcher()
        if value is not None:
            await self.set(key, value, ttl)
        return value

    async def get(self, key: str) -> Any:
        if self.redis is None:
            return None
        try:
            cached = await self.redis.get(key)
        except RedisError as exc:
            logger.warning("cache_read_failed", key=key, error=str(exc))
            return None
        return json.loads(cached) if cached is not None else None

    async def set(self, key: str, value: Any, ttl: int = DEFAULT_TTL) -> None:
        if self.redis is None:
            return
        try:
            await self.redis.setex(key, ttl, json.dumps(value, default=str))
        except RedisError as exc:
            logger.warning("cache_write_failed", key=key, error=str(exc))

    async def invalidate(self, *keys: str) -> None:
        if self.redis is None or not keys:
            return
        try:
            await self.redis.delete(*keys)
        except RedisError as exc:
            logger.warning("cache_invalidate_failed", keys=list(keys), error=str(exc))

    async def invalidate_pattern(self, pattern: str) -> int:
        """Delete every key matching a glob pattern.

        Uses SCAN rather than KEYS so a large keyspace never blocks Redis.

        Returns:
            Number of keys deleted
        """
        if self.redis is None:
            return 0

        deleted = 0
        batch: list[str] = []
        try:
            async for key in self.redis.scan_iter(match=pattern, count=_DELETE_BATCH):
                batch.append(key)
                if len(batch) >= _DELETE_BATCH:
                    deleted += await self.redis.delete(*batch)
                    batch = []
            if batch:
                deleted += await self.redis.delete(*batch)
        except RedisError as exc:
            logger.warning("cache_invalidate_failed", pattern=pattern, error=str(exc))
        return deleted

    async def invalidate_tour_caches(
        self,
        tour_id: str | None = None,
        slug: str | None = None,
        category_id: str | None = None,
    ) -> None:
        """Drop everything a tour mutation can make stale.

        Args:
            tour_id: Tour whose detail entry should go
            slug: Slug (old or new) whose entry should go
            category_id: Category whose listing should go
        """
        keys = [CacheKeys.tours_featured(), CacheKeys.categories()]
        if tour_id:
            keys.append(CacheKeys.tour(tour_id))
        if slug:
            keys.append(CacheKeys.tour_by_slug(slug))
        if category_id:
            keys.append(CacheKeys.tours_by_category(category_id))

        await self.invalidate(*keys)
        await self.invalidate_pattern("tours:list:*")
        logger.info("tour_caches_invalidated", tour_id=tour_id, slug=slug)

    async def warm(
        self,
        entries: Iterable[tuple[str, Callable[[], Awaitable[Any]], int]],
    ) -> int:
        """Pre-populate keys, e.g. after a deploy.

        Args:
            entries: (key, fetcher, ttl) triples

        Returns:
            Number of entries stored
        """
        warmed = 0
        for key, fetcher, ttl in entries:
            value = await fetcher()
            if value is None:
                continue
            await self.set(key, value, ttl)
            warmed += 1
        return warmed
