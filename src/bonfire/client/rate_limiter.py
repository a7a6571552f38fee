"""Token bucket rate limiter for outbound requests."""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from bonfire.core import get_logger


logger = get_logger(__name__)


@dataclass
class TokenBucket:
    """Token bucket rate limiter implementation.

    Tokens are added lazily, based on the time elapsed since the last refill,
    and each request consumes one token. There is no background timer.
    """

    capacity: float
    refill_rate: float  # tokens per second
    clock: Callable[[], float] = time.monotonic
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    tokens: float = field(init=False)
    last_refill_at: float = field(init=False)
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)

    def __post_init__(self) -> None:
        if self.capacity <= 0 or self.refill_rate <= 0:
            raise ValueError("capacity and refill_rate must be positive")
        self.tokens = self.capacity
        self.last_refill_at = self.clock()

    def _refill(self) -> None:
        """Refill tokens based on elapsed time."""
        now = self.clock()
        elapsed = max(0.0, now - self.last_refill_at)
        self.tokens = min(self.capacity, self.tokens + elapsed * self.refill_rate)
        self.last_refill_at = now

    async def wait_for_permit(self) -> None:
        """Take one token, suspending until one is available.

        Callers are served in lock order; a caller that has to wait holds the
        lock while sleeping so later callers queue behind it.
        """
        async with self._lock:
            self._refill()
            if self.tokens < 1:
                wait_time = (1 - self.tokens) / self.refill_rate
                logger.debug(
                    "Rate limiter waiting",
                    extra={"wait_seconds": round(wait_time, 3)},
                )
                await self.sleep(wait_time)
                self._refill()
            self.tokens = max(0.0, self.tokens - 1)

    def time_until_available(self) -> float:
        """Seconds until a token will be available."""
        self._refill()
        if self.tokens >= 1:
            return 0.0
        return (1 - self.tokens) / self.refill_rate

    def available_tokens(self) -> float:
        self._refill()
        return self.tokens


class RequestLimiter:
    """Per-backend request limiter; a limit of zero disables throttling."""

    def __init__(self, bucket: TokenBucket | None = None) -> None:
        self.bucket = bucket

    @classmethod
    def per_minute(
        cls,
        requests: int,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> RequestLimiter:
        if requests < 0:
            raise ValueError("requests per minute must not be negative")
        if requests == 0:
            return cls()
        return cls(TokenBucket(
            capacity=float(requests),
            refill_rate=requests / 60.0,
            clock=clock,
            sleep=sleep,
        ))

    @property
    def enabled(self) -> bool:
        return self.bucket is not None

    async def wait_for_permit(self) -> None:
        if self.bucket is not None:
            await self.bucket.wait_for_permit()
