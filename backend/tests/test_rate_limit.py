"""Unit tests for sensitive-operation rate limiting."""

import time
from unittest.mock import AsyncMock, MagicMock

import pytest

from laundry_rbac.core.config import Settings
from laundry_rbac.rbac.errors import RateLimited
from laundry_rbac.services.rate_limit import (
    InMemoryCounterStore,
    RateLimiter,
    RedisCounterStore,
    build_rate_limiter,
)


class _Clock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class TestInMemoryLimiter:
    @pytest.mark.asyncio
    async def test_five_attempts_then_blocked(self):
        clock = _Clock()
        limiter = RateLimiter(InMemoryCounterStore(clock=clock), max_attempts=5, window_seconds=900)
        for _ in range(5):
            await limiter.hit("login:10.0.0.1")
        with pytest.raises(RateLimited) as exc_info:
            await limiter.hit("login:10.0.0.1")
        assert exc_info.value.retry_after == 900
        assert exc_info.value.status_code == 429

    @pytest.mark.asyncio
    async def test_window_slides(self):
        clock = _Clock()
        limiter = RateLimiter(InMemoryCounterStore(clock=clock), max_attempts=2, window_seconds=60)
        await limiter.hit("k")
        clock.now += 30
        await limiter.hit("k")
        clock.now += 10
        with pytest.raises(RateLimited) as exc_info:
            await limiter.hit("k")
        assert exc_info.value.retry_after == 20

        clock.now += 21  # first attempt has left the window
        await limiter.hit("k")
        with pytest.raises(RateLimited) as exc_info:
            await limiter.hit("k")
        assert exc_info.value.retry_after == 29

    @pytest.mark.asyncio
    async def test_rejected_attempts_do_not_extend_the_lockout(self):
        clock = _Clock(now=0.0)
        limiter = RateLimiter(InMemoryCounterStore(clock=clock), max_attempts=5, window_seconds=900)
        for _ in range(5):
            await limiter.hit("login:10.0.0.1")

        clock.now = 600.0
        for _ in range(5):
            with pytest.raises(RateLimited) as exc_info:
                await limiter.hit("login:10.0.0.1")
            assert exc_info.value.retry_after == 300

        clock.now = 901.0
        await limiter.hit("login:10.0.0.1")

    @pytest.mark.asyncio
    async def test_idle_keys_are_dropped(self):
        clock = _Clock()
        store = InMemoryCounterStore(clock=clock)
        limiter = RateLimiter(store, max_attempts=3, window_seconds=60)
        await limiter.hit("a")
        clock.now += 30
        await limiter.hit("b")
        clock.now += 31
        await limiter.hit("c")
        assert set(store._attempts) == {"b", "c"}

    @pytest.mark.asyncio
    async def test_window_expiry_allows_again(self):
        clock = _Clock()
        limiter = RateLimiter(InMemoryCounterStore(clock=clock), max_attempts=1, window_seconds=60)
        await limiter.hit("k")
        clock.now += 61
        await limiter.hit("k")

    @pytest.mark.asyncio
    async def test_keys_are_independent(self):
        limiter = RateLimiter(InMemoryCounterStore(clock=_Clock()), max_attempts=1, window_seconds=60)
        await limiter.hit("a")
        await limiter.hit("b")
        with pytest.raises(RateLimited):
            await limiter.hit("a")

    @pytest.mark.asyncio
    async def test_reset(self):
        limiter = RateLimiter(InMemoryCounterStore(clock=_Clock()), max_attempts=1, window_seconds=60)
        await limiter.hit("a")
        await limiter.reset("a")
        await limiter.hit("a")


class TestRedisStore:
    @staticmethod
    def _client(result):
        script = AsyncMock(return_value=result)
        client = MagicMock()
        client.register_script.return_value = script
        return client, script

    @pytest.mark.asyncio
    async def test_accepted_hit_runs_window_script(self):
        client, script = self._client([1, "0"])
        store = RedisCounterStore(client)

        assert await store.hit("login:1.2.3.4", 900, 5) == (True, 0.0)

        assert "ZCARD" in client.register_script.call_args.args[0]
        kwargs = script.await_args.kwargs
        assert kwargs["keys"] == ["ratelimit:login:1.2.3.4"]
        assert kwargs["args"][1:3] == [900, 5]

    @pytest.mark.asyncio
    async def test_full_window_reports_time_until_oldest_expires(self):
        oldest = time.time() - 600
        client, _ = self._client([0, str(oldest)])
        accepted, expires_in = await RedisCounterStore(client).hit("login:1.2.3.4", 900, 5)
        assert accepted is False
        assert 299 <= expires_in <= 300

    @pytest.mark.asyncio
    async def test_limiter_raises_on_rejection(self):
        client, _ = self._client([0, str(time.time())])
        limiter = RateLimiter(RedisCounterStore(client), max_attempts=5, window_seconds=900)
        with pytest.raises(RateLimited) as exc_info:
            await limiter.hit("login:1.2.3.4")
        assert exc_info.value.retry_after == 900

    @pytest.mark.asyncio
    async def test_reset_deletes_key(self):
        client = MagicMock()
        client.delete = AsyncMock()
        await RedisCounterStore(client, prefix="rl:").reset("k")
        client.delete.assert_awaited_once_with("rl:k")


def test_build_from_settings():
    limiter = build_rate_limiter(Settings(RATE_LIMIT_MAX_ATTEMPTS=3, RATE_LIMIT_WINDOW_SECONDS=120))
    assert isinstance(limiter.store, InMemoryCounterStore)
    assert limiter.max_attempts == 3
    assert limiter.window_seconds == 120


def test_build_redis_backend():
    limiter = build_rate_limiter(Settings(RATE_LIMIT_BACKEND="redis", REDIS_URL="redis://localhost:6379/1"))
    assert isinstance(limiter.store, RedisCounterStore)
