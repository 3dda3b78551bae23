"""Shared rate governor for remote command issuance.

Implements token bucket algorithm with a single global budget shared by
every concurrent collector. The bucket holds at most `burst` tokens and
refills at `qps` tokens per second, so sustained command rate never
exceeds `qps` regardless of fleet size.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)


class RateLimitWaitCancelled(Exception):
    """Stop signal fired while waiting for a rate limiter token."""


@dataclass
class TokenBucket:
    """Token bucket for rate limiting."""

    capacity: int
    refill_rate: float  # tokens per second
    tokens: float = field(init=False)
    last_refill: float = field(init=False)

    def __post_init__(self) -> None:
        self.tokens = float(self.capacity)
        self.last_refill = time.monotonic()

    def consume(self, count: int = 1) -> bool:
        """Try to consume tokens. Returns True if successful."""
        now = time.monotonic()
        elapsed = now - self.last_refill

        # Refill tokens based on time elapsed
        self.tokens = min(self.capacity, self.tokens + (elapsed * self.refill_rate))
        self.last_refill = now

        if self.tokens >= count:
            self.tokens -= count
            return True
        return False

    def time_until_ready(self) -> float:
        """Return seconds until next token available."""
        if self.tokens >= 1:
            return 0.0
        needed = 1.0 - self.tokens
        return needed / self.refill_rate


class RateGovernor:
    """Token-bucket limiter shared by all collectors in a run.

    Callers try allow() and fall back to wait() when denied:

        if not governor.allow():
            await governor.wait(stop)
    """

    def __init__(self, qps: float, burst: int) -> None:
        """Initialize the governor.

        Args:
            qps: Sustained commands per second (must be > 0)
            burst: Maximum commands issued back to back (must be > 0)

        Raises:
            ValueError: If qps or burst is not positive
        """
        if qps <= 0:
            raise ValueError(f"qps must be > 0, got {qps}")
        if burst <= 0:
            raise ValueError(f"burst must be > 0, got {burst}")

        self.qps = qps
        self.burst = burst
        self._bucket = TokenBucket(capacity=burst, refill_rate=qps)

    def allow(self) -> bool:
        """Consume a token if one is available, without blocking."""
        return self._bucket.consume()

    async def wait(self, stop: asyncio.Event | None = None) -> None:
        """Block until a token is consumed.

        Args:
            stop: Optional cancellation signal

        Raises:
            RateLimitWaitCancelled: If stop is set before a token is available
        """
        while not self._bucket.consume():
            delay = self._bucket.time_until_ready()
            if stop is None:
                await asyncio.sleep(delay)
                continue
            try:
                await asyncio.wait_for(stop.wait(), timeout=delay)
            except asyncio.TimeoutError:
                continue
            raise RateLimitWaitCancelled(
                f"stopped while waiting for rate limiter (qps={self.qps}, burst={self.burst})"
            )
