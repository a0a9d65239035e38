# ruff: noqa: PLW0603
"""Redis connection management and fixed-window rate limiting.

Redis is optional: when it is unreachable at startup the app keeps running
and the rate limiter lets every request through.
"""

from dataclasses import dataclass
from uuid import UUID

import redis.asyncio as redis

from backlogged.config import get_settings
from backlogged.core.errors import RateLimitedError
from backlogged.core.logging import get_logger


logger = get_logger(__name__)

_redis_client: redis.Redis | None = None


async def init_redis() -> redis.Redis:
    """Initialize the Redis connection pool and ping it."""
    global _redis_client

    settings = get_settings()

    _redis_client = redis.from_url(
        settings.redis_url,
        max_connections=settings.redis_max_connections,
        socket_timeout=settings.redis_socket_timeout,
        socket_connect_timeout=settings.redis_socket_connect_timeout,
        retry_on_timeout=settings.redis_retry_on_timeout,
        health_check_interval=settings.redis_health_check_interval,
        decode_responses=True,
    )

    try:
        await _redis_client.ping()
        logger.info("redis_connected", url=settings.redis_url)
    except redis.ConnectionError as e:
        logger.warning("redis_connection_failed", error=str(e))
        _redis_client = None
        raise

    return _redis_client


async def shutdown_redis() -> None:
    global _redis_client

    if _redis_client:
        await _redis_client.aclose()
        logger.info("redis_disconnected")
        _redis_client = None


def get_redis() -> redis.Redis | None:
    return _redis_client


@dataclass(frozen=True)
class RateWindow:
    name: str
    seconds: int
    limit: int


class RateLimiter:
    """Per-actor fixed-window counters kept in Redis.

    ``check`` raises ``RateLimitedError`` when any window is full; ``hit``
    records one more action. Both are no-ops without a Redis client.
    """

    def __init__(
        self,
        client: redis.Redis | None,
        prefix: str,
        windows: list[RateWindow],
    ) -> None:
        self.client = client
        self.prefix = prefix
        self.windows = windows

    def _key(self, actor_id: UUID, window: RateWindow) -> str:
        return f"{self.prefix}:rate:{actor_id}:{window.name}"

    async def check(self, actor_id: UUID) -> None:
        if self.client is None:
            return
        for window in self.windows:
            current = await self.client.get(self._key(actor_id, window))
            if current and int(current) >= window.limit:
                logger.info(
                    "rate_limit_exceeded",
                    prefix=self.prefix,
                    actor_id=str(actor_id),
                    window=window.name,
                )
                raise RateLimitedError(
                    f"Too many {self.prefix} per {window.name}, slow down"
                )

    async def hit(self, actor_id: UUID) -> None:
        if self.client is None:
            return
        pipe = self.client.pipeline()
        for window in self.windows:
            key = self._key(actor_id, window)
            pipe.incr(key)
            pipe.expire(key, window.seconds)
        await pipe.execute()
