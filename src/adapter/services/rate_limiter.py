import logging
import math
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Dict, Optional

import redis.asyncio as aioredis

from src.app.services.clock import Clock, SystemClock
from src.app.services.rate_limiter import RateLimiter, RateLimitResult

logger = logging.getLogger(__name__)


@dataclass
class _Window:
    count: int
    resets_at: datetime


class InMemoryRateLimiter(RateLimiter):
    """
    Per-process fixed-window limiter.

    Counters live in a dict guarded by a lock. When a new key would push the
    table past max_keys, expired windows are purged; if that is not enough
    the oldest windows are evicted down to 90% of max_keys, and an evicted
    key starts a fresh window. Suitable for a single instance; use the
    Redis limiter when the key space is large or shared.
    """

    def __init__(self, clock: Optional[Clock] = None, max_keys: int = 10_000):
        self.clock = clock or SystemClock()
        self.max_keys = max_keys
        self._windows: Dict[str, _Window] = {}
        self._lock = threading.Lock()

    async def check(self, key: str, max_attempts: int, window_seconds: int) -> RateLimitResult:
        now = self.clock.now()
        with self._lock:
            window = self._windows.get(key)
            if window is None and len(self._windows) >= self.max_keys:
                self._make_room(now)

            # New window or expired
            if window is None or window.resets_at <= now:
                # Re-insert so dict order follows window start
                self._windows.pop(key, None)
                self._windows[key] = _Window(
                    count=1, resets_at=now + timedelta(seconds=window_seconds)
                )
                return RateLimitResult(allowed=True, remaining=max_attempts - 1)

            if window.count >= max_attempts:
                retry_after = math.ceil((window.resets_at - now).total_seconds())
                return RateLimitResult(allowed=False, remaining=0, retry_after=max(retry_after, 1))

            window.count += 1
            return RateLimitResult(allowed=True, remaining=max_attempts - window.count)

    def _make_room(self, now: datetime) -> None:
        expired = [key for key, window in self._windows.items() if window.resets_at <= now]
        for key in expired:
            del self._windows[key]

        if len(self._windows) >= self.max_keys:
            target = min(self.max_keys - 1, self.max_keys * 9 // 10)
            evicted = len(self._windows) - target
            # Dicts keep insertion order, so the first keys are the oldest windows
            for key in list(self._windows)[:evicted]:
                del self._windows[key]
            logger.warning(f"Rate limiter full: evicted {evicted} live windows")
        logger.debug(f"Purged {len(expired)} expired rate limit windows")


class RedisRateLimiter(RateLimiter):
    """
    Fixed-window limiter shared across instances through Redis.

    SET NX EX opens the window, INCR counts (keeping the TTL) and TTL reads
    the time left; all three run in one MULTI block.
    """

    def __init__(self, client: aioredis.Redis, prefix: str = "ratelimit:"):
        self.client = client
        self.prefix = prefix

    async def check(self, key: str, max_attempts: int, window_seconds: int) -> RateLimitResult:
        redis_key = f"{self.prefix}{key}"
        async with self.client.pipeline(transaction=True) as pipe:
            pipe.set(redis_key, 0, ex=window_seconds, nx=True)
            pipe.incr(redis_key)
            pipe.ttl(redis_key)
            _, count, ttl = await pipe.execute()

        count = int(count)
        if count > max_attempts:
            ttl = int(ttl)
            return RateLimitResult(
                allowed=False,
                remaining=0,
                retry_after=ttl if ttl > 0 else window_seconds,
            )
        return RateLimitResult(allowed=True, remaining=max_attempts - count)


def create_redis_client(redis_url: str) -> aioredis.Redis:
    """Build an async Redis client; the connection is opened lazily"""
    logger.info(f"Using Redis rate limiter at {redis_url.split('@')[-1]}")  # mask credentials
    return aioredis.from_url(redis_url, decode_responses=True)
