"""Sliding-window rate limiting to prevent abuse."""

import math
import time
import uuid
from collections import defaultdict, deque
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

import structlog
from fastapi import HTTPException, Request, Response, status
from redis.asyncio import Redis
from redis.exceptions import RedisError

from dreamland.api.middleware.auth import read_admin_session

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class RateLimitRule:
    max_requests: int
    window_seconds: int


class RateLimitTier(str, Enum):
    """Named budgets applied per route."""

    PUBLIC = "public"
    AUTHENTICATED = "authenticated"
    ADMIN = "admin"
    SENSITIVE = "sensitive"
    HEAVY = "heavy"
    LOGIN = "login"
    BOOKING = "booking"
    FORM = "form"


RATE_LIMIT_TIERS: dict[RateLimitTier, RateLimitRule] = {
    RateLimitTier.PUBLIC: RateLimitRule(30, 60),
    RateLimitTier.AUTHENTICATED: RateLimitRule(100, 60),
    RateLimitTier.ADMIN: RateLimitRule(200, 60),
    RateLimitTier.SENSITIVE: RateLimitRule(5, 15 * 60),
    RateLimitTier.HEAVY: RateLimitRule(10, 60),
    RateLimitTier.LOGIN: RateLimitRule(5, 60),
    RateLimitTier.BOOKING: RateLimitRule(5, 60),
    RateLimitTier.FORM: RateLimitRule(10, 60),
}


@dataclass(frozen=True)
class RateLimitResult:
    allowed: bool
    remaining: int
    reset_at: int
    retry_after: int | None = None


class RateLimiter:
    """Sliding-log rate limiter.

    Every attempt inside the window is logged, rejected ones included, so a
    client hammering a limited endpoint stays limited. With a Redis client the
    log is a sorted set shared by all workers; without one it is an
    in-process log per key.
    """

    def __init__(
        self,
        redis: Redis | None = None,
        clock: Callable[[], float] = time.time,
        cleanup_interval: int = 60,
    ):
        """Initialize rate limiter.

        Args:
            redis: Async Redis client, or None for the in-memory backend
            clock: Time source returning epoch seconds
            cleanup_interval: Interval (seconds) to cleanup idle in-memory keys
        """
        self.redis = redis
        self.clock = clock
        self.cleanup_interval = cleanup_interval

        # Store: key -> timestamps (seconds) of attempts, oldest first
        self.logs: dict[str, deque[float]] = defaultdict(deque)
        self.windows: dict[str, int] = {}
        self.last_cleanup = clock()

    @staticmethod
    def make_key(identifier: str, endpoint: str) -> str:
        return f"ratelimit:{endpoint}:{identifier}"

    async def check(self, identifier: str, endpoint: str, rule: RateLimitRule) -> RateLimitResult:
        """Record an attempt and decide whether it is allowed.

        Args:
            identifier: Client identifier (``ip:...`` or ``user:...``)
            endpoint: Logical endpoint name; limits are per endpoint
            rule: Budget to apply

        Returns:
            RateLimitResult describing the decision
        """
        key = self.make_key(identifier, endpoint)
        if self.redis is not None:
            try:
                return await self._check_redis(key, rule)
            except RedisError as exc:
                logger.warning("rate_limit_backend_failed", key=key, error=str(exc))
                now = self.clock()
                return RateLimitResult(
                    allowed=True,
                    remaining=rule.max_requests - 1,
                    reset_at=math.ceil(now + rule.window_seconds),
                )
        return self._check_memory(key, rule)

    def _decide(
        self, count: int, oldest: float | None, now: float, rule: RateLimitRule
    ) -> RateLimitResult:
        window_start = oldest if oldest is not None else now
        reset_at = math.ceil(window_start + rule.window_seconds)
        if count >= rule.max_requests:
            retry_after = max(1, math.ceil(window_start + rule.window_seconds - now))
            return RateLimitResult(
                allowed=False, remaining=0, reset_at=reset_at, retry_after=retry_after
            )
        return RateLimitResult(
            allowed=True,
            remaining=max(0, rule.max_requests - count - 1),
            reset_at=reset_at,
        )

    async def _check_redis(self, key: str, rule: RateLimitRule) -> RateLimitResult:
        now = self.clock()
        now_ms = int(now * 1000)
        window_ms = rule.window_seconds * 1000

        async with self.redis.pipeline(transaction=True) as pipe:
            pipe.zremrangebyscore(key, 0, now_ms - window_ms)
            pipe.zcard(key)
            pipe.zadd(key, {f"{now_ms}-{uuid.uuid4().hex[:8]}": now_ms})
            pipe.pexpire(key, window_ms)
            results = await pipe.execute()

        count = int(results[1])
        oldest = None
        if count:
            first = await self.redis.zrange(key, 0, 0, withscores=True)
            if first:
                oldest = float(first[0][1]) / 1000
        return self._decide(count, oldest, now, rule)

    def _check_memory(self, key: str, rule: RateLimitRule) -> RateLimitResult:
        now = self.clock()
        if now - self.last_cleanup > self.cleanup_interval:
            self._cleanup_old_entries(now)
            self.last_cleanup = now

        log = self.logs[key]
        self.windows[key] = rule.window_seconds
        cutoff = now - rule.window_seconds
        while log and log[0] <= cutoff:
            log.popleft()

        count = len(log)
        oldest = log[0] if log else None
        log.append(now)
        return self._decide(count, oldest, now, rule)

    def _cleanup_old_entries(self, now: float) -> None:
        """Clean up idle keys to prevent memory growth."""
        to_remove = [
            key
            for key, log in self.logs.items()
            if not log or log[-1] <= now - self.windows.get(key, self.cleanup_interval)
        ]
        for key in to_remove:
            del self.logs[key]
            self.windows.pop(key, None)

    def reset(self) -> None:
        """Forget all in-memory state (tests and redis re-attachment)."""
        self.logs.clear()
        self.windows.clear()
        self.last_cleanup = self.clock()


# Global rate limiter instance; the Redis client is attached at startup
rate_limiter = RateLimiter()


def get_client_ip(request: Request) -> str:
    """Best-effort client address, honouring the proxies in front of the app."""
    headers = request.headers
    cf_ip = headers.get("cf-connecting-ip")
    if cf_ip:
        return cf_ip.strip()
    forwarded_for = headers.get("x-forwarded-for")
    if forwarded_for:
        first = forwarded_for.split(",")[0].strip()
        if first:
            return first
    real_ip = headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def get_client_identifier(request: Request) -> str:
    session = read_admin_session(request)
    if session is not None:
        return f"user:{session.email}"
    return f"ip:{get_client_ip(request)}"


def rate_limit(endpoint: str, tier: RateLimitTier = RateLimitTier.PUBLIC) -> Callable:
    """Build a FastAPI dependency enforcing ``tier`` on ``endpoint``.

    Example:
        @router.post("/api/inquiry", dependencies=[Depends(rate_limit("inquiry", RateLimitTier.FORM))])
        async def create_inquiry(...):
            ...
    """
    rule = RATE_LIMIT_TIERS[tier]

    async def check_rate_limit(request: Request, response: Response) -> None:
        identifier = get_client_identifier(request)
        result = await rate_limiter.check(identifier, endpoint, rule)

        if not result.allowed:
            logger.warning(
                "rate_limit_exceeded",
                identifier=identifier,
                endpoint=endpoint,
                tier=tier.value,
            )
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail=f"Too many requests. Try again in {result.retry_after} seconds.",
                headers={
                    "Retry-After": str(result.retry_after),
                    "X-RateLimit-Remaining": "0",
                    "X-RateLimit-Reset": str(result.reset_at),
                },
            )

        response.headers["X-RateLimit-Remaining"] = str(result.remaining)
        response.headers["X-RateLimit-Reset"] = str(result.reset_at)

    return check_rate_limit
