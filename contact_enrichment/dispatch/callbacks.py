"""Result delivery: caller-facing callbacks and the transport-facing bridge.

Every dispatched request ends in exactly one of ``Callback.on_success`` or
``Callback.on_failure``. ``TransportCallback`` enforces that no matter which
thread the transport completes on, and translates raw transport exceptions
into ``TransportError`` before the caller sees them.

Synchronous calls use ``SyncCallback``, whose ``PendingResult`` cell the
calling thread blocks on.
"""

from __future__ import annotations

import threading
import time
from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping
from typing import Any, Generic, TypeVar

from loguru import logger

from ..exceptions import (
    ContactEnrichmentError,
    InterruptedWaitError,
    TransportError,
    wrap_exception,
)
from ..models.request import EnrichmentRequest
from .rate_limiter import RateLimiter


R = TypeVar("R")

RATE_LIMIT_HEADER = "X-Rate-Limit-Limit"


class Callback(ABC, Generic[R]):
    """Two-case result handler. Exactly one method is called, exactly once."""

    @abstractmethod
    def on_success(self, result: R) -> None: ...

    @abstractmethod
    def on_failure(self, error: ContactEnrichmentError) -> None: ...


class UserCallback(Callback[R]):
    """Adapts a pair of plain functions to the Callback interface."""

    def __init__(
        self,
        on_success: Callable[[R], None],
        on_failure: Callable[[ContactEnrichmentError], None] | None = None,
    ):
        self._on_success = on_success
        self._on_failure = on_failure

    def on_success(self, result: R) -> None:
        self._on_success(result)

    def on_failure(self, error: ContactEnrichmentError) -> None:
        if self._on_failure is None:
            logger.warning(f"Unhandled asynchronous request failure: {error}")
            return
        self._on_failure(error)


class NoOpCallback(Callback[Any]):
    """Used for webhook requests, where the server delivers the result elsewhere."""

    def on_success(self, result: Any) -> None:
        pass

    def on_failure(self, error: ContactEnrichmentError) -> None:
        logger.debug(f"Webhook request failed locally: {error}")


class PendingResult(Generic[R]):
    """One-slot handoff cell: one writer fills it, one reader blocks until filled."""

    def __init__(self) -> None:
        self._cond = threading.Condition()
        self._filled = False
        self._interrupted = False
        self._result: R | None = None
        self._error: BaseException | None = None

    @property
    def done(self) -> bool:
        return self._filled

    def set_result(self, result: R) -> bool:
        return self._fill(result, None)

    def set_error(self, error: BaseException) -> bool:
        return self._fill(None, error)

    def _fill(self, result: R | None, error: BaseException | None) -> bool:
        with self._cond:
            if self._filled:
                return False
            self._result = result
            self._error = error
            self._filled = True
            self._cond.notify_all()
            return True

    def interrupt(self) -> None:
        """Wake the waiting thread; its ``get`` raises InterruptedWaitError."""
        with self._cond:
            self._interrupted = True
            self._cond.notify_all()

    def get(self, timeout: float | None = None) -> R:
        """Block until filled, then return the result or raise the stored error.

        Raises:
            InterruptedWaitError: interrupted, KeyboardInterrupt, or timeout expired
                before the cell was filled
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        try:
            with self._cond:
                while not self._filled:
                    if self._interrupted:
                        self._interrupted = False
                        raise InterruptedWaitError(operation="get")
                    remaining = None
                    if deadline is not None:
                        remaining = deadline - time.monotonic()
                        if remaining <= 0:
                            raise InterruptedWaitError(
                                f"Timed out after {timeout}s waiting for a result",
                                operation="get",
                                details={"timeout_seconds": timeout},
                            )
                    self._cond.wait(remaining)
        except KeyboardInterrupt as e:
            raise InterruptedWaitError(operation="get", cause=e) from e

        if self._error is not None:
            raise self._error
        return self._result  # type: ignore[return-value]


class SyncCallback(Callback[R]):
    """Callback whose result is collected by a blocking ``get``."""

    def __init__(self) -> None:
        self.pending: PendingResult[R] = PendingResult()

    def on_success(self, result: R) -> None:
        self.pending.set_result(result)

    def on_failure(self, error: ContactEnrichmentError) -> None:
        self.pending.set_error(error)

    def get(self, timeout: float | None = None) -> R:
        return self.pending.get(timeout)

    def interrupt(self) -> None:
        self.pending.interrupt()


class TransportCallback(Generic[R]):
    """Bridge handed to the transport for a single request.

    The first of ``success``/``failure`` wins; anything after that is logged
    and dropped. Successful responses also report the server's rate limit to
    the shared rate limiter.
    """

    def __init__(
        self,
        callback: Callback[R],
        request: EnrichmentRequest,
        rate_limiter: RateLimiter | None = None,
    ):
        self.callback = callback
        self.request = request
        self._rate_limiter = rate_limiter
        self._lock = threading.Lock()
        self._completed = False

    @property
    def completed(self) -> bool:
        return self._completed

    def _claim(self) -> bool:
        with self._lock:
            if self._completed:
                return False
            self._completed = True
            return True

    def success(self, result: R, headers: Mapping[str, str] | None = None) -> None:
        if not self._claim():
            logger.warning(f"Dropping duplicate success for {self.request.describe()}")
            return
        if headers:
            self._discover_rate_limit(headers)
        self._deliver(self.callback.on_success, result)

    def failure(self, error: BaseException) -> None:
        if not self._claim():
            logger.warning(f"Dropping duplicate failure for {self.request.describe()}: {error}")
            return
        if isinstance(error, ContactEnrichmentError):
            translated = error
        else:
            translated = wrap_exception(
                error, TransportError, endpoint=self.request.path, operation="execute"
            )
        logger.debug(f"{self.request.describe()} failed: {translated}")
        self._deliver(self.callback.on_failure, translated)

    def _deliver(self, handler: Callable[[Any], None], value: Any) -> None:
        try:
            handler(value)
        except Exception:
            logger.exception(f"Callback for {self.request.describe()} raised")

    def _discover_rate_limit(self, headers: Mapping[str, str]) -> None:
        if self._rate_limiter is None:
            return
        value = next(
            (v for k, v in headers.items() if k.lower() == RATE_LIMIT_HEADER.lower()), None
        )
        if value is None:
            return
        try:
            self._rate_limiter.set_rate_per_minute(float(value))
        except ValueError as e:
            logger.warning(f"Could not apply {RATE_LIMIT_HEADER}={value!r}: {e}")
