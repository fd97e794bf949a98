"""Client-side request pacing.

Requests are unlimited until the server reports its limit on the first
response; from then on every outbound request must acquire a permit. The rate
can only be installed once for the lifetime of a client.

Policies:
    SMOOTH   strict pacing, one permit every ``1 / rate`` seconds
    BURST    up to ``rate * burst_seconds`` stored permits; the bucket starts
             full so a short initial burst is not delayed
    DISABLED no limiter at all (``NullRateLimiter``)
"""

from __future__ import annotations

import math
import threading
import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Generic, TypeVar

from loguru import logger

from ..config.schemas import RateLimiterPolicy
from ..exceptions import UsageError


Clock = Callable[[], float]
Sleeper = Callable[[float], None]

DEFAULT_BURST_SECONDS = 5.0

T = TypeVar("T")


class TokenBucket:
    """Thread-safe permit bucket with reservation-style waiting.

    A caller reserves its permits under the lock and learns how long it has to
    wait; the sleep itself happens outside the lock so other threads can queue
    their own reservations behind it.
    """

    def __init__(
        self,
        permits_per_second: float,
        max_burst_seconds: float = 0.0,
        *,
        start_full: bool = False,
        clock: Clock = time.monotonic,
        sleep: Sleeper = time.sleep,
    ):
        if not math.isfinite(permits_per_second) or permits_per_second <= 0:
            raise ValueError(
                f"permits_per_second must be a positive finite number, got {permits_per_second}"
            )
        if max_burst_seconds < 0:
            raise ValueError(f"max_burst_seconds must be >= 0, got {max_burst_seconds}")

        self.permits_per_second = float(permits_per_second)
        self.max_permits = max_burst_seconds * self.permits_per_second
        self._interval = 1.0 / self.permits_per_second
        self._clock = clock
        self._sleep = sleep
        self._lock = threading.Lock()
        self._stored = self.max_permits if start_full else 0.0
        self._next_free = clock()

    @property
    def stored_permits(self) -> float:
        with self._lock:
            self._resync(self._clock())
            return self._stored

    def _resync(self, now: float) -> None:
        if now > self._next_free:
            if self.max_permits > 0:
                earned = (now - self._next_free) / self._interval
                self._stored = min(self.max_permits, self._stored + earned)
            self._next_free = now

    def reserve(self, permits: int = 1) -> float:
        """Reserve permits and return the seconds the caller must wait before using them."""
        if permits < 1:
            raise ValueError(f"permits must be >= 1, got {permits}")
        with self._lock:
            now = self._clock()
            self._resync(now)
            wait = max(0.0, self._next_free - now)
            from_stored = min(float(permits), self._stored)
            fresh = permits - from_stored
            self._next_free += fresh * self._interval
            self._stored -= from_stored
            return wait

    def acquire(self, permits: int = 1) -> float:
        wait = self.reserve(permits)
        if wait > 0:
            logger.debug(f"Rate limit reached, waiting {wait:.3f} seconds")
            self._sleep(wait)
        return wait


class RateCell(Generic[T]):
    """Set-once cell shared by reference between the dispatcher and callbacks.

    Reads are lock-free; only the first ``set_if_absent`` stores its value.
    """

    def __init__(self) -> None:
        self._value: T | None = None
        self._lock = threading.Lock()

    def get(self) -> T | None:
        return self._value

    def set_if_absent(self, factory: Callable[[], T]) -> tuple[T, bool]:
        """Install ``factory()`` if empty. Returns (current value, whether this call installed it)."""
        current = self._value
        if current is not None:
            return current, False
        with self._lock:
            if self._value is not None:
                return self._value, False
            self._value = factory()
            return self._value, True


class RateLimiter(ABC):
    """Permit source consulted by dispatcher workers before each request."""

    @abstractmethod
    def acquire(self, permits: int = 1) -> float:
        """Block until permits are available; return the seconds slept."""

    @abstractmethod
    def set_rate(
        self, permits_per_second: float, policy: RateLimiterPolicy | None = None
    ) -> bool:
        """Install the rate if none is installed yet. Returns True if this call installed it."""

    @property
    @abstractmethod
    def rate(self) -> float | None:
        """Installed permits per second, or None while unlimited."""

    @property
    def is_configured(self) -> bool:
        return self.rate is not None

    def set_rate_per_minute(self, requests_per_minute: float) -> bool:
        """Install a rate expressed in requests per minute (as the API reports it)."""
        if not math.isfinite(requests_per_minute) or requests_per_minute <= 0:
            logger.warning(f"Ignoring invalid rate limit of {requests_per_minute}/min")
            return False
        return self.set_rate(requests_per_minute / 60.0)


class NullRateLimiter(RateLimiter):
    """Rate limiting switched off: never blocks, never installs a rate, holds no lock."""

    def acquire(self, permits: int = 1) -> float:
        return 0.0

    def set_rate(
        self, permits_per_second: float, policy: RateLimiterPolicy | None = None
    ) -> bool:
        return False

    def set_rate_per_minute(self, requests_per_minute: float) -> bool:
        return False

    @property
    def rate(self) -> float | None:
        return None


class AdaptiveRateLimiter(RateLimiter):
    """Unlimited until the first ``set_rate``; paced by a TokenBucket afterwards."""

    def __init__(
        self,
        policy: RateLimiterPolicy = RateLimiterPolicy.SMOOTH,
        *,
        burst_seconds: float = DEFAULT_BURST_SECONDS,
        clock: Clock = time.monotonic,
        sleep: Sleeper = time.sleep,
        cell: RateCell[TokenBucket] | None = None,
    ):
        if policy is RateLimiterPolicy.DISABLED:
            raise UsageError(
                "AdaptiveRateLimiter cannot use the DISABLED policy; use NullRateLimiter",
                component="rate_limiter",
            )
        self.policy = policy
        self.burst_seconds = burst_seconds
        self._clock = clock
        self._sleep = sleep
        self._cell: RateCell[TokenBucket] = cell if cell is not None else RateCell()

    @property
    def rate(self) -> float | None:
        bucket = self._cell.get()
        return bucket.permits_per_second if bucket is not None else None

    def acquire(self, permits: int = 1) -> float:
        bucket = self._cell.get()
        if bucket is None:
            return 0.0
        return bucket.acquire(permits)

    def set_rate(
        self, permits_per_second: float, policy: RateLimiterPolicy | None = None
    ) -> bool:
        policy = policy or self.policy
        if policy is RateLimiterPolicy.DISABLED:
            raise UsageError("Cannot install a rate with the DISABLED policy", component="rate_limiter")

        bucket, installed = self._cell.set_if_absent(
            lambda: self._create_bucket(permits_per_second, policy)
        )
        if installed:
            logger.info(
                f"Rate limiter installed: {permits_per_second:.3f} permits/s ({policy.value})"
            )
        elif bucket.permits_per_second != permits_per_second:
            logger.debug(
                f"Ignoring rate {permits_per_second:.3f}/s; "
                f"{bucket.permits_per_second:.3f}/s is already installed"
            )
        return installed

    def _create_bucket(self, permits_per_second: float, policy: RateLimiterPolicy) -> TokenBucket:
        if policy is RateLimiterPolicy.BURST:
            return TokenBucket(
                permits_per_second,
                self.burst_seconds,
                start_full=True,
                clock=self._clock,
                sleep=self._sleep,
            )
        return TokenBucket(permits_per_second, 0.0, clock=self._clock, sleep=self._sleep)


def build_rate_limiter(
    policy: RateLimiterPolicy,
    *,
    burst_seconds: float = DEFAULT_BURST_SECONDS,
    clock: Clock = time.monotonic,
    sleep: Sleeper = time.sleep,
) -> RateLimiter:
    """Select the limiter implementation for a policy at construction time."""
    if policy is RateLimiterPolicy.DISABLED:
        return NullRateLimiter()
    return AdaptiveRateLimiter(policy, burst_seconds=burst_seconds, clock=clock, sleep=sleep)
