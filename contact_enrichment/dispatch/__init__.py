"""
Request dispatch and rate limiting.

Module Structure:
- rate_limiter: permit pacing (SMOOTH, BURST) and the disabled null limiter
- callbacks: caller callbacks, the transport bridge and the blocking result cell
- dispatcher: fixed worker pool that acquires permits and invokes the transport

Flow:
1. Client hands (request, callback) to RequestDispatcher.dispatch
2. A worker acquires a permit from the RateLimiter
3. The transport performs the exchange and reports to a TransportCallback
4. TransportCallback delivers exactly one of on_success / on_failure
"""

from __future__ import annotations

from .callbacks import (
    Callback,
    NoOpCallback,
    PendingResult,
    SyncCallback,
    TransportCallback,
    UserCallback,
)
from .dispatcher import RequestDispatcher
from .rate_limiter import (
    AdaptiveRateLimiter,
    NullRateLimiter,
    RateCell,
    RateLimiter,
    TokenBucket,
    build_rate_limiter,
)


__all__ = [
    "AdaptiveRateLimiter",
    "Callback",
    "NoOpCallback",
    "NullRateLimiter",
    "PendingResult",
    "RateCell",
    "RateLimiter",
    "RequestDispatcher",
    "SyncCallback",
    "TokenBucket",
    "TransportCallback",
    "UserCallback",
    "build_rate_limiter",
]
