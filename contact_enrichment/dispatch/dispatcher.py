"""Request dispatcher: a fixed worker pool in front of the transport.

``dispatch`` only enqueues; a worker thread waits for a rate limiter permit and
then hands the request to the transport. The queue in front of the workers is
unbounded, so callers can submit arbitrarily far ahead of completion capacity.
No ordering is guaranteed between requests.
"""

from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Any

from loguru import logger

from ..exceptions import ConfigurationError, UsageError
from ..http.transport import Transport
from ..models.request import EnrichmentRequest
from .callbacks import Callback, TransportCallback
from .rate_limiter import NullRateLimiter, RateLimiter


class RequestDispatcher:
    """Runs requests on ``worker_count`` long-lived threads."""

    def __init__(
        self,
        transport: Transport,
        rate_limiter: RateLimiter | None = None,
        worker_count: int = 4,
    ):
        if worker_count < 1:
            raise ConfigurationError(
                f"worker_count must be at least 1, got {worker_count}",
                config_key="worker_count",
            )
        self.transport = transport
        self.rate_limiter = rate_limiter if rate_limiter is not None else NullRateLimiter()
        self.worker_count = worker_count
        self._executor = ThreadPoolExecutor(
            max_workers=worker_count, thread_name_prefix="enrichment-worker"
        )
        self._state_lock = threading.Lock()
        self._in_flight = 0
        self._closed = False

    @property
    def queue_depth(self) -> int:
        """Dispatched requests a worker has not finished handing to the transport."""
        return self._in_flight

    @property
    def closed(self) -> bool:
        return self._closed

    def dispatch(self, request: EnrichmentRequest, callback: Callback[Any]) -> TransportCallback[Any]:
        """Enqueue a request; never blocks on the network or the rate limiter.

        Raises:
            UsageError: If the dispatcher has been shut down
        """
        bridge: TransportCallback[Any] = TransportCallback(callback, request, self.rate_limiter)
        with self._state_lock:
            if self._closed:
                raise UsageError(
                    "Cannot dispatch a request after the client has been closed",
                    component="dispatcher",
                    operation="dispatch",
                )
            self._in_flight += 1
            try:
                self._executor.submit(self._run, request, bridge)
            except RuntimeError as e:
                self._in_flight -= 1
                raise UsageError(
                    f"Worker pool rejected the request: {e}",
                    component="dispatcher",
                    operation="dispatch",
                    cause=e,
                ) from e
        return bridge

    def _run(self, request: EnrichmentRequest, bridge: TransportCallback[Any]) -> None:
        try:
            waited = self.rate_limiter.acquire()
            if waited:
                logger.debug(f"Waited {waited:.3f}s for a permit before {request.describe()}")
            logger.debug(f"Sending {request.describe()}")
            self.transport.execute(request, bridge)
        except Exception as e:
            logger.warning(f"Dispatch of {request.describe()} failed: {e}")
            bridge.failure(e)
        finally:
            with self._state_lock:
                self._in_flight -= 1

    def shutdown(self, wait: bool = True) -> None:
        """Stop accepting requests; optionally wait for queued ones to be handed off."""
        with self._state_lock:
            if self._closed:
                return
            self._closed = True
        logger.debug(f"Shutting down dispatcher (pending={self._in_flight}, wait={wait})")
        self._executor.shutdown(wait=wait)
