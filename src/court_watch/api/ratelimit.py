"""
Per-client dual-window rate limiting.

Each client gets two token buckets: a short burst window (default
5 requests per 5 seconds) and a sustained window (default 1000 requests
per hour).  A request is admitted only if both buckets hold a token, and
admission takes one token from each.

Refill is lazy: on every access a bucket adds
``floor(elapsed / interval_per_token)`` tokens, capped at capacity, where
``elapsed`` is measured from the bucket's last refill timestamp.  There is
no background timer.  The clock is injectable (milliseconds) so tests are
deterministic.

The client table is bounded by an LRU cap (``max_clients``); ``sweep()``
additionally drops clients whose buckets are fully refilled, since a
fresh entry is indistinguishable from them.  The application lifespan
runs ``run_sweeper()`` in the background to do this periodically.
"""

import asyncio
import math
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable, Optional

from court_watch.config import get_settings
from court_watch.core import get_logger

logger = get_logger(__name__)

Clock = Callable[[], float]

BURST = "burst"
SUSTAINED = "sustained"


def monotonic_ms() -> float:
    return time.monotonic() * 1000


class TokenBucket:
    """
    A capped counter of permits refilled at a fixed rate.

    Attributes:
        capacity: Maximum (and initial) number of tokens
        window_ms: Time for a fully drained bucket to refill completely
        tokens: Tokens currently available
        last_refill: Clock value (ms) of the last refill
    """

    def __init__(self, capacity: int, window_ms: float, now: float) -> None:
        if capacity < 1 or window_ms <= 0:
            raise ValueError("capacity must be >= 1 and window_ms > 0")
        self.capacity = capacity
        self.window_ms = window_ms
        self.tokens = capacity
        self.last_refill = now

    @property
    def interval_ms(self) -> float:
        """Time to earn one token."""
        return self.window_ms / self.capacity

    def refill(self, now: float) -> None:
        if self.tokens >= self.capacity:
            # A full bucket earns nothing; restart its refill clock.
            self.last_refill = now
            return
        added = int((now - self.last_refill) // self.interval_ms)
        if added <= 0:
            return
        self.tokens = min(self.capacity, self.tokens + added)
        if self.tokens >= self.capacity:
            self.last_refill = now
        else:
            self.last_refill += added * self.interval_ms

    def retry_after_ms(self, now: float) -> int:
        """Milliseconds until the next token (0 if one is available)."""
        if self.tokens >= 1:
            return 0
        remaining = self.interval_ms - (now - self.last_refill)
        return max(1, math.ceil(remaining))

    @property
    def is_full(self) -> bool:
        return self.tokens >= self.capacity


@dataclass(frozen=True)
class Admission:
    """Outcome of ``RateLimiter.admit``."""

    allowed: bool
    retry_after_ms: int = 0
    window: Optional[str] = None


class _ClientBuckets:
    __slots__ = ("burst", "sustained")

    def __init__(self, burst: TokenBucket, sustained: TokenBucket) -> None:
        self.burst = burst
        self.sustained = sustained


class RateLimiter:
    """
    Explicit state object for per-client admission control.

    Only touched from the event loop thread, so no locking is taken; a
    multi-threaded caller would need to add a lock around ``admit``.

    Example:
        >>> limiter = RateLimiter(clock=lambda: 0.0)
        >>> [limiter.admit("10.0.0.1").allowed for _ in range(6)]
        [True, True, True, True, True, False]
    """

    def __init__(
        self,
        burst_capacity: Optional[int] = None,
        burst_window_seconds: Optional[float] = None,
        sustained_capacity: Optional[int] = None,
        sustained_window_seconds: Optional[float] = None,
        max_clients: Optional[int] = None,
        clock: Clock = monotonic_ms,
    ) -> None:
        settings = get_settings().rate_limit
        self.burst_capacity = burst_capacity or settings.burst_capacity
        self.burst_window_ms = (burst_window_seconds or settings.burst_window_seconds) * 1000
        self.sustained_capacity = sustained_capacity or settings.sustained_capacity
        self.sustained_window_ms = (
            sustained_window_seconds or settings.sustained_window_seconds
        ) * 1000
        self.max_clients = max_clients if max_clients is not None else settings.max_clients
        self._clock = clock
        self._clients: OrderedDict[str, _ClientBuckets] = OrderedDict()

    def __len__(self) -> int:
        return len(self._clients)

    def _buckets_for(self, client_id: str, now: float) -> _ClientBuckets:
        buckets = self._clients.get(client_id)
        if buckets is None:
            buckets = _ClientBuckets(
                burst=TokenBucket(self.burst_capacity, self.burst_window_ms, now),
                sustained=TokenBucket(self.sustained_capacity, self.sustained_window_ms, now),
            )
            self._clients[client_id] = buckets
            if self.max_clients and len(self._clients) > self.max_clients:
                evicted, _ = self._clients.popitem(last=False)
                logger.debug("Evicted least recently seen client %s", evicted)
        else:
            self._clients.move_to_end(client_id)
        return buckets

    def admit(self, client_id: str) -> Admission:
        """
        Admit or reject one request from ``client_id``.

        Returns:
            ``Admission(allowed=True)`` after deducting one token from each
            bucket, or ``Admission(allowed=False, retry_after_ms, window)``
            naming the exhausted window with the longest wait.
        """
        now = self._clock()
        buckets = self._buckets_for(client_id, now)
        buckets.burst.refill(now)
        buckets.sustained.refill(now)

        rejection: Optional[Admission] = None
        for window, bucket in ((SUSTAINED, buckets.sustained), (BURST, buckets.burst)):
            if bucket.tokens < 1:
                retry = bucket.retry_after_ms(now)
                if rejection is None or retry > rejection.retry_after_ms:
                    rejection = Admission(allowed=False, retry_after_ms=retry, window=window)

        if rejection is not None:
            logger.info(
                "Rate limited %s (%s window, retry in %d ms)",
                client_id,
                rejection.window,
                rejection.retry_after_ms,
            )
            return rejection

        buckets.burst.tokens -= 1
        buckets.sustained.tokens -= 1
        return Admission(allowed=True)

    def sweep(self) -> int:
        """Drop clients whose buckets are both full; return how many."""
        now = self._clock()
        idle = []
        for client_id, buckets in self._clients.items():
            buckets.burst.refill(now)
            buckets.sustained.refill(now)
            if buckets.burst.is_full and buckets.sustained.is_full:
                idle.append(client_id)
        for client_id in idle:
            del self._clients[client_id]
        if idle:
            logger.debug("Swept %d idle rate-limit clients", len(idle))
        return len(idle)

    async def run_sweeper(self, interval: float) -> None:
        """Call ``sweep()`` every ``interval`` seconds until cancelled."""
        while True:
            await asyncio.sleep(interval)
            self.sweep()
