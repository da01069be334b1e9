"""
Fixed-window rate limiter on Redis.

Counters are keyed per action class, actor and one-minute window. Redis is
used as a plain key-value store here: an increment is read, write, re-read
with a version tag and a few retries. Concurrent increments can still lose
updates; the counts are advisory and every failure fails open.
"""
import asyncio
import json
import math
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from modbot.shared.utils.logger import get_logger

logger = get_logger(__name__)

WINDOW_MS = 60_000
KEY_TTL_SECONDS = 120


@dataclass(frozen=True)
class RateLimitConfig:
    requests_per_minute: int
    burst_allowance: int = 0

    @property
    def effective_limit(self) -> int:
        return self.requests_per_minute + self.burst_allowance


@dataclass
class RateLimitResult:
    allowed: bool
    remaining: int
    reset_at_ms: int
    retry_after: Optional[int] = None


RATE_LIMIT_CONFIGS = {
    "command": RateLimitConfig(requests_per_minute=20, burst_allowance=5),
    "autocomplete": RateLimitConfig(requests_per_minute=60, burst_allowance=10),
}


class RateLimiter:
    def __init__(
        self,
        client,
        key_prefix: str = "rl",
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], Awaitable] = asyncio.sleep,
    ):
        self.client = client
        self.key_prefix = key_prefix
        self._clock = clock
        self._sleep = sleep

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    def _key(self, kind: str, actor_id: str, window: int) -> str:
        return f"{self.key_prefix}:{kind}:{actor_id}:{window}"

    async def _read(self, key: str):
        raw = await self.client.get(key)
        if raw is None:
            return 0, 0
        data = json.loads(raw)
        return int(data.get("count", 0)), int(data.get("version", 0))

    async def check(
        self, actor_id: str, kind: str, config: Optional[RateLimitConfig] = None
    ) -> RateLimitResult:
        """Decide without counting. Store errors allow the request."""
        config = config or RATE_LIMIT_CONFIGS[kind]
        now_ms = self._now_ms()
        window = now_ms // WINDOW_MS
        reset_at_ms = (window + 1) * WINDOW_MS

        try:
            count, _ = await self._read(self._key(kind, actor_id, window))
        except Exception as e:
            logger.warning(f"Rate limit check failed, allowing request: {e}")
            return RateLimitResult(True, config.requests_per_minute, reset_at_ms)

        limit = config.effective_limit
        if count >= limit:
            retry_after = max(1, math.ceil((reset_at_ms - now_ms) / 1000))
            return RateLimitResult(False, 0, reset_at_ms, retry_after)
        return RateLimitResult(True, max(0, limit - count - 1), reset_at_ms)

    async def increment(self, actor_id: str, kind: str, max_retries: int = 3) -> bool:
        """Best-effort bump. Returns False when the write could not be confirmed."""
        window = self._now_ms() // WINDOW_MS
        key = self._key(kind, actor_id, window)

        for attempt in range(max_retries):
            try:
                count, version = await self._read(key)
                payload = json.dumps({"count": count + 1, "version": version + 1})
                await self.client.set(key, payload, ex=KEY_TTL_SECONDS)
                observed, _ = await self._read(key)
                if observed >= count + 1:
                    return True
            except Exception as e:
                logger.warning(f"Rate limit increment attempt {attempt + 1} failed: {e}")
            await self._sleep(0.01 * (attempt + 1))

        logger.warning(f"Rate limit increment dropped for {kind}:{actor_id} after {max_retries} attempts")
        return False
