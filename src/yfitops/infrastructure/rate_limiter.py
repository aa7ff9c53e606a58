"""
Rate limiter for Spotify Web API calls.

Hey future me - this is a Token Bucket with adaptive backoff on 429!

ALGORITHM: Token Bucket
- Bucket holds max_tokens
- Tokens refill at refill_rate per second
- Every request consumes 1 token
- Empty bucket: wait until a token is available

BACKOFF on 429:
- Retry-After header present: wait exactly that long (capped)
- No header: 1s, then 2s, then 4s... (exponential)
- Any successful request resets the backoff

USAGE:
    limiter = RateLimiter.for_spotify()

    async with limiter:
        response = await client.get(url)

    # On 429:
    await limiter.handle_rate_limit_response(retry_after)
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)


@dataclass
class RateLimiterConfig:
    """Configuration for rate limiter.

    Spotify allows roughly 180 requests / minute. 2 req/sec sustained with a
    burst of 10 leaves headroom for the playlist scans.
    """

    max_tokens: int = 10  # Bucket size
    refill_rate: float = 2.0  # Tokens per second
    max_backoff_seconds: float = 600.0  # Spotify can send Retry-After of several minutes
    initial_backoff_seconds: float = 1.0  # First 429 wait without Retry-After
    backoff_multiplier: float = 2.0


@dataclass
class RateLimiter:
    """Token Bucket Rate Limiter with adaptive backoff."""

    config: RateLimiterConfig = field(default_factory=RateLimiterConfig)

    # Internal state (not in __init__ signature)
    _tokens: float = field(default=0.0, init=False)
    _last_refill: float = field(default_factory=time.monotonic, init=False)
    _current_backoff: float = field(default=0.0, init=False)
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, init=False)
    _name: str = field(default="default", init=False)

    def __post_init__(self) -> None:
        """Initialize tokens to max capacity."""
        self._tokens = float(self.config.max_tokens)
        self._current_backoff = self.config.initial_backoff_seconds

    @classmethod
    def for_spotify(cls) -> "RateLimiter":
        """Create rate limiter tuned for the Spotify Web API."""
        limiter = cls(
            config=RateLimiterConfig(
                max_tokens=10,
                refill_rate=2.0,
                max_backoff_seconds=600.0,
                initial_backoff_seconds=1.0,
            )
        )
        limiter._name = "spotify"
        return limiter

    def _refill_tokens(self) -> None:
        """Refill tokens based on elapsed time."""
        now = time.monotonic()
        elapsed = now - self._last_refill

        new_tokens = elapsed * self.config.refill_rate
        self._tokens = min(self.config.max_tokens, self._tokens + new_tokens)
        self._last_refill = now

    async def acquire(self) -> None:
        """Acquire one token, waiting if necessary."""
        async with self._lock:
            self._refill_tokens()

            while self._tokens < 1.0:
                wait_time = (1.0 - self._tokens) / self.config.refill_rate
                logger.debug(
                    "RateLimiter[%s]: No tokens available, waiting %.2fs",
                    self._name,
                    wait_time,
                )

                # Release lock while waiting
                self._lock.release()
                try:
                    await asyncio.sleep(wait_time)
                finally:
                    await self._lock.acquire()

                self._refill_tokens()

            self._tokens -= 1.0

    def compute_backoff(self, retry_after: float | None = None) -> float:
        """Return how long to wait for this 429 and advance the backoff level.

        Retry-After wins when the server sent one; otherwise the current
        exponential level is used.
        """
        if retry_after is not None and retry_after >= 0:
            wait_time = float(retry_after)
        else:
            wait_time = self._current_backoff

        wait_time = min(wait_time, self.config.max_backoff_seconds)

        self._current_backoff = min(
            self._current_backoff * self.config.backoff_multiplier,
            self.config.max_backoff_seconds,
        )
        return wait_time

    async def handle_rate_limit_response(self, retry_after: float | None = None) -> float:
        """Wait after a 429 response.

        Args:
            retry_after: Retry-After header value in seconds (None if absent)

        Returns:
            The actual wait time used
        """
        async with self._lock:
            wait_time = self.compute_backoff(retry_after)
            logger.warning(
                "RateLimiter[%s]: 429 Rate Limited! Waiting %.1fs before retry",
                self._name,
                wait_time,
            )
            # Clear tokens (force wait for the following requests too)
            self._tokens = 0.0

        # Wait outside lock
        await asyncio.sleep(wait_time)
        return wait_time

    def reset_backoff(self) -> None:
        """Reset backoff after a successful request."""
        self._current_backoff = self.config.initial_backoff_seconds

    async def __aenter__(self) -> "RateLimiter":
        """Enter async context - acquire token."""
        await self.acquire()
        return self

    async def __aexit__(
        self, exc_type: type | None, exc_val: Exception | None, exc_tb: object
    ) -> None:
        """Exit async context.

        Hey future me - we do NOT reset the backoff here! A 429 is a normal
        response (no exception), so the caller decides via reset_backoff().
        """
        return None

    @property
    def current_backoff(self) -> float:
        """Backoff used for the next 429 without Retry-After."""
        return self._current_backoff

    @property
    def name(self) -> str:
        """Get limiter name for logging."""
        return self._name


__all__ = ["RateLimiter", "RateLimiterConfig"]
