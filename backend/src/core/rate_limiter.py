"""Per-client request limits kept in Redis: a sliding minute window and a fixed daily window."""
import logging
import math
import time
import uuid

from redis.asyncio import Redis
from redis.commands.core import AsyncScript
from redis.exceptions import RedisError

from core.rate_limit_config import (
    RATE_LIMITS,
    OperationType,
    RateLimitConfig,
    RateLimitResult,
)

logger = logging.getLogger(__name__)

MINUTE_SECONDS = 60
DAY_SECONDS = 86400

# KEYS[1] sorted set of hits; ARGV: now, window, limit, member.
# Returns {admitted, hits counted after this call, score of the oldest hit when refused}.
MINUTE_WINDOW_LUA = """
local now = tonumber(ARGV[1])
local window = tonumber(ARGV[2])
redis.call('ZREMRANGEBYSCORE', KEYS[1], '-inf', now - window)
local hits = redis.call('ZCARD', KEYS[1])
if hits >= tonumber(ARGV[3]) then
    local oldest = redis.call('ZRANGE', KEYS[1], 0, 0, 'WITHSCORES')
    return {0, hits, tonumber(oldest[2]) or now}
end
redis.call('ZADD', KEYS[1], now, ARGV[4])
redis.call('EXPIRE', KEYS[1], window)
return {1, hits + 1, 0}
"""

# KEYS[1] counter; ARGV: window. Returns {hits including this call, ttl}.
DAILY_WINDOW_LUA = """
local hits = redis.call('INCR', KEYS[1])
if hits == 1 then
    redis.call('EXPIRE', KEYS[1], ARGV[1])
end
return {hits, redis.call('TTL', KEYS[1])}
"""


def _permissive(config: RateLimitConfig | None) -> RateLimitResult:
    limit = config.requests_per_minute if config else 0
    return RateLimitResult(allowed=True, limit=limit, remaining=limit, reset=0, retry_after=0)


def minute_key(client_id: str, operation_type: OperationType) -> str:
    return f"rate:{client_id}:{operation_type.value}:min"


def daily_key(client_id: str, operation_type: OperationType) -> str:
    """Upstream calls draw on their own daily pool; reads and writes share one."""
    pool = "upstream" if operation_type == OperationType.UPSTREAM else "general"
    return f"rate:{client_id}:daily:{pool}"


class RedisRateLimiter:
    """
    Rate limiter owning its Redis connection.

    The limiter fails open: with Redis disabled, unreachable at startup, or
    erroring during a check, every request is allowed.
    """

    def __init__(self, url: str, enabled: bool = True) -> None:
        self._url = url
        self._enabled = enabled
        self._redis: Redis | None = None
        self._minute_window: AsyncScript | None = None
        self._daily_window: AsyncScript | None = None

    async def connect(self) -> None:
        """Open the connection pool and register the window scripts."""
        if not self._enabled:
            logger.info("Redis disabled by configuration; rate limiting is off")
            return
        redis = Redis.from_url(self._url, max_connections=10)
        try:
            await redis.ping()
        except RedisError as e:
            logger.warning("Redis connection failed: %s", e)
            await redis.aclose()
            return
        self._redis = redis
        self._minute_window = redis.register_script(MINUTE_WINDOW_LUA)
        self._daily_window = redis.register_script(DAILY_WINDOW_LUA)
        logger.info("Redis connected; rate limiting is on")

    async def close(self) -> None:
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None
            self._minute_window = None
            self._daily_window = None

    @property
    def is_connected(self) -> bool:
        return self._redis is not None

    async def ping(self) -> bool:
        """True when Redis answers; used by the health check."""
        if self._redis is None:
            return False
        try:
            return bool(await self._redis.ping())
        except RedisError:
            return False

    async def _run(self, script: AsyncScript | None, key: str, *args: object) -> list[int] | None:
        if script is None:
            return None
        try:
            return await script(keys=[key], args=list(args))
        except RedisError as e:
            logger.warning("rate_limit_store_error", extra={"reason": str(e)})
            return None

    async def check(self, client_id: str, operation_type: OperationType) -> RateLimitResult:
        """
        Count this request against the caller's minute and daily windows.

        The minute window is checked first; a request refused there is not
        counted against the day.
        """
        config = RATE_LIMITS.get(operation_type)
        if config is None:
            return _permissive(None)
        if self._redis is None:
            logger.debug("redis_unavailable", extra={"operation": "rate_limit"})
            return _permissive(config)

        now = int(time.time())

        minute = await self._check_minute(client_id, operation_type, config, now)
        if not minute.allowed:
            logger.warning(
                "rate_limit_exceeded",
                extra={
                    "client_id": client_id,
                    "operation": operation_type.value,
                    "limit_type": "per_minute",
                },
            )
            return minute

        day = await self._check_day(client_id, operation_type, config, now)
        if not day.allowed:
            logger.warning(
                "rate_limit_exceeded",
                extra={
                    "client_id": client_id,
                    "operation": operation_type.value,
                    "limit_type": "daily",
                },
            )
            return day

        return minute

    async def _check_minute(
        self,
        client_id: str,
        operation_type: OperationType,
        config: RateLimitConfig,
        now: int,
    ) -> RateLimitResult:
        limit = config.requests_per_minute
        reply = await self._run(
            self._minute_window,
            minute_key(client_id, operation_type),
            now,
            MINUTE_SECONDS,
            limit,
            f"{now}:{uuid.uuid4()}",
        )
        if reply is None:
            return _permissive(config)

        admitted, hits, oldest = (int(v) for v in reply)
        if admitted:
            return RateLimitResult(
                allowed=True,
                limit=limit,
                remaining=max(0, limit - hits),
                reset=now + MINUTE_SECONDS,
                retry_after=0,
            )
        return RateLimitResult(
            allowed=False,
            limit=limit,
            remaining=0,
            reset=now + MINUTE_SECONDS,
            retry_after=max(1, math.ceil(oldest + MINUTE_SECONDS - now)),
        )

    async def _check_day(
        self,
        client_id: str,
        operation_type: OperationType,
        config: RateLimitConfig,
        now: int,
    ) -> RateLimitResult:
        limit = config.requests_per_day
        reply = await self._run(
            self._daily_window, daily_key(client_id, operation_type), DAY_SECONDS,
        )
        if reply is None:
            return _permissive(config)

        hits, ttl = (int(v) for v in reply)
        # A counter without expiry (ttl -1) is treated as a fresh day.
        seconds_left = ttl if ttl > 0 else DAY_SECONDS
        allowed = hits <= limit
        return RateLimitResult(
            allowed=allowed,
            limit=limit,
            remaining=max(0, limit - hits),
            reset=now + seconds_left,
            retry_after=0 if allowed else seconds_left,
        )
