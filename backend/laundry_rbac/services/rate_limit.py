"""Attempt limiting for sensitive operations (login, account provisioning).

A key may be hit ``max_attempts`` times within a sliding window of
``window_seconds``; further hits raise RateLimited with the number of
seconds until the oldest attempt leaves the window. Rejected hits are not
recorded, so a client that waits out ``Retry-After`` is let through.
"""

import logging
import math
import time
import uuid
from collections import deque
from typing import Callable, Protocol

import redis.asyncio as redis

from laundry_rbac.core.config import Settings, settings
from laundry_rbac.rbac.errors import RateLimited

logger = logging.getLogger(__name__)


class CounterStore(Protocol):
    async def hit(self, key: str, window_seconds: int, max_attempts: int) -> tuple[bool, float]:
        """Record an attempt if the window still has room.

        Returns whether the attempt was accepted and, when it was not, the
        seconds until the oldest recorded attempt expires.
        """
        ...

    async def reset(self, key: str) -> None: ...


class InMemoryCounterStore:
    """Per-process store. Only suitable for a single worker or for tests."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._attempts: dict[str, deque[float]] = {}
        self._last_sweep = clock()

    async def hit(self, key: str, window_seconds: int, max_attempts: int) -> tuple[bool, float]:
        now = self._clock()
        if now - self._last_sweep >= window_seconds:
            self._sweep(now - window_seconds)
            self._last_sweep = now

        attempts = self._attempts.setdefault(key, deque())
        while attempts and attempts[0] <= now - window_seconds:
            attempts.popleft()
        if len(attempts) >= max_attempts:
            if not attempts:
                del self._attempts[key]
                return False, float(window_seconds)
            return False, attempts[0] + window_seconds - now
        attempts.append(now)
        return True, 0.0

    async def reset(self, key: str) -> None:
        self._attempts.pop(key, None)

    def _sweep(self, cutoff: float) -> None:
        """Drop keys whose newest attempt has left the window."""
        stale = [key for key, attempts in self._attempts.items() if attempts[-1] <= cutoff]
        for key in stale:
            del self._attempts[key]


# KEYS[1]: sorted set; ARGV: now, window, max_attempts, member.
# Returns {1, 0} when recorded, {0, oldest_score} when full.
_SLIDING_WINDOW_SCRIPT = """
redis.call('ZREMRANGEBYSCORE', KEYS[1], 0, ARGV[1] - ARGV[2])
local count = redis.call('ZCARD', KEYS[1])
if count >= tonumber(ARGV[3]) then
    local oldest = redis.call('ZRANGE', KEYS[1], 0, 0, 'WITHSCORES')
    return {0, oldest[2]}
end
redis.call('ZADD', KEYS[1], ARGV[1], ARGV[4])
redis.call('EXPIRE', KEYS[1], ARGV[2])
return {1, '0'}
"""


class RedisCounterStore:
    """Sliding window kept in a sorted set per key, shared by all workers.

    Pruning, counting and the conditional insert run as one Lua script so
    concurrent workers cannot both take the last free slot.
    """

    def __init__(self, client: redis.Redis, prefix: str = "ratelimit:"):
        self._client = client
        self._prefix = prefix
        self._script = client.register_script(_SLIDING_WINDOW_SCRIPT)

    async def hit(self, key: str, window_seconds: int, max_attempts: int) -> tuple[bool, float]:
        now = time.time()
        accepted, oldest_at = await self._script(
            keys=[f"{self._prefix}{key}"],
            args=[now, window_seconds, max_attempts, uuid.uuid4().hex],
        )
        if int(accepted):
            return True, 0.0
        return False, float(oldest_at) + window_seconds - now

    async def reset(self, key: str) -> None:
        await self._client.delete(f"{self._prefix}{key}")


class RateLimiter:
    def __init__(self, store: CounterStore, max_attempts: int = 5, window_seconds: int = 15 * 60):
        self.store = store
        self.max_attempts = max_attempts
        self.window_seconds = window_seconds

    async def hit(self, key: str) -> None:
        """Count an attempt for ``key``. Raises RateLimited once the window is full."""
        accepted, expires_in = await self.store.hit(key, self.window_seconds, self.max_attempts)
        if not accepted:
            logger.warning(f"Rate limit exceeded for {key}")
            raise RateLimited(retry_after=max(1, math.ceil(expires_in)))

    async def reset(self, key: str) -> None:
        await self.store.reset(key)


def build_rate_limiter(config: Settings = settings) -> RateLimiter:
    if config.RATE_LIMIT_BACKEND == "redis":
        client = redis.from_url(config.REDIS_URL, decode_responses=True)
        store: CounterStore = RedisCounterStore(client)
        logger.info(f"Rate limiting backed by Redis at {config.REDIS_URL}")
    else:
        store = InMemoryCounterStore()
    return RateLimiter(
        store,
        max_attempts=config.RATE_LIMIT_MAX_ATTEMPTS,
        window_seconds=config.RATE_LIMIT_WINDOW_SECONDS,
    )
