"""Shared Redis connection used by the cache and the rate limiter."""

import os

import redis.asyncio as redis
import structlog

logger = structlog.get_logger(__name__)

# Global client (initialized in application startup when REDIS_URL is set)
_redis: redis.Redis | None = None


def initialize_redis(redis_url: str | None = None) -> redis.Redis | None:
    """Create the global Redis client.

    Args:
        redis_url: Connection URL (defaults to REDIS_URL env var)

    Returns:
        Redis client, or None when no URL is configured
    """
    global _redis

    if redis_url is None:
        redis_url = os.getenv("REDIS_URL")
    if not redis_url:
        logger.info("redis_not_configured")
        _redis = None
        return None

    _redis = redis.from_url(
        redis_url,
        decode_responses=True,
        socket_connect_timeout=5,
        socket_timeout=5,
        health_check_interval=30,
    )
    return _redis


def get_redis() -> redis.Redis | None:
    return _redis


async def redis_health_check() -> bool | None:
    """Ping Redis.

    Returns:
        True if reachable, False if the ping failed, None if not configured
    """
    if _redis is None:
        return None
    try:
        return bool(await _redis.ping())
    except redis.RedisError as exc:
        logger.warning("redis_ping_failed", error=str(exc))
        return False


async def shutdown_redis() -> None:
    global _redis
    if _redis is not None:
        await _redis.aclose()
        _redis = None
