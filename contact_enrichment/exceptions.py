"""Central exception hierarchy for the contact enrichment client.

All custom exceptions inherit from ContactEnrichmentError.

Exception Hierarchy:
    ContactEnrichmentError (base)
    ├── UsageError
    ├── TransportError
    │   ├── RateLimitError
    │   └── ResponseParseError
    ├── InterruptedWaitError
    └── ConfigurationError

Usage:
    from contact_enrichment.exceptions import TransportError

    try:
        person = client.send_request(PersonRequest(email="bart@fullcontact.com"))
    except TransportError as e:
        logger.error(f"Lookup failed: {e.message}", extra=e.to_dict())
        if e.retryable:
            retry_later()

    # Wrap external exceptions
    try:
        response = httpx.get(url)
    except httpx.HTTPError as exc:
        raise wrap_exception(exc, TransportError, endpoint=url)
"""

from __future__ import annotations

from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    """Error codes for programmatic handling.

    Categories:
        1xxx - Configuration errors
        2xxx - Caller usage errors
        3xxx - Transport / API errors
        4xxx - Waiting on results
    """

    # Configuration errors (1xxx)
    CONFIG_LOAD_FAILED = 1001
    CONFIG_VALIDATION_FAILED = 1002

    # Usage errors (2xxx)
    INVALID_USAGE = 2001

    # Transport errors (3xxx)
    API_REQUEST_FAILED = 3101
    API_RATE_LIMIT = 3102
    API_AUTHENTICATION_FAILED = 3103
    RESPONSE_PARSE_FAILED = 3104

    # Result waiting (4xxx)
    WAIT_INTERRUPTED = 4001


class ContactEnrichmentError(Exception):
    """Base exception for all contact enrichment client errors.

    Attributes:
        message: Human-readable error description
        component: Client component (e.g., "transport", "dispatcher")
        operation: Operation being performed (e.g., "send_request")
        details: Additional context as dictionary
        retryable: Whether operation can be retried
        status_code: Numeric error code from ErrorCode enum
        cause: Original exception if wrapping another error
    """

    def __init__(
        self,
        message: str,
        component: str | None = None,
        operation: str | None = None,
        details: dict[str, Any] | None = None,
        retryable: bool = False,
        status_code: ErrorCode | None = None,
        cause: BaseException | None = None,
    ):
        self.message = message
        self.component = component or self.__class__.__module__
        self.operation = operation
        self.details = details or {}
        self.retryable = retryable
        self.status_code = status_code
        self.cause = cause

        parts = [message]
        if component:
            parts.append(f"[component={component}]")
        if operation:
            parts.append(f"[operation={operation}]")
        if status_code:
            parts.append(f"[code={status_code}]")

        super().__init__(" ".join(parts))

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for logging/serialization.

        Example:
            {
                "error_type": "TransportError",
                "message": "HTTP 403: Invalid API key",
                "component": "transport",
                "operation": "execute",
                "details": {"endpoint": "/person.json", "http_status": 403},
                "retryable": false,
                "status_code": 3103,
                "cause": None
            }
        """
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "component": self.component,
            "operation": self.operation,
            "details": self.details,
            "retryable": self.retryable,
            "status_code": self.status_code.value if self.status_code else None,
            "cause": str(self.cause) if self.cause else None,
        }


class UsageError(ContactEnrichmentError, ValueError):
    """The caller violated an API contract.

    Raised synchronously, before any work is dispatched, and never delivered
    through a callback. Not retryable: the call itself must change.

    Example:
        raise UsageError(
            "Cannot make an asynchronous request without either a callback or a webhook",
            operation="send_request_async",
        )
    """

    def __init__(self, message: str, **kwargs: Any):
        component = kwargs.pop("component", "client")
        super().__init__(
            message,
            component=component,
            status_code=kwargs.pop("status_code", ErrorCode.INVALID_USAGE),
            retryable=False,
            **kwargs,
        )


class TransportError(ContactEnrichmentError):
    """Network, HTTP or body-conversion failure.

    Only ever surfaced through ``Callback.on_failure`` or raised from a
    synchronous ``send_request``. 408, 429 and 5xx statuses are marked
    retryable automatically.

    Example:
        raise TransportError(
            "HTTP 503: Service Unavailable",
            endpoint="/person.json",
            http_status=503,
        )
    """

    def __init__(
        self,
        message: str,
        endpoint: str | None = None,
        http_status: int | None = None,
        **kwargs: Any,
    ):
        details = kwargs.pop("details", {})
        if endpoint:
            details["endpoint"] = endpoint
        if http_status:
            details["http_status"] = http_status
        self.http_status = http_status

        if "retryable" not in kwargs and http_status:
            kwargs["retryable"] = http_status in [408, 429, 500, 502, 503, 504]

        default_code = ErrorCode.API_REQUEST_FAILED
        if http_status in (401, 403):
            default_code = ErrorCode.API_AUTHENTICATION_FAILED

        component = kwargs.pop("component", "transport")

        super().__init__(
            message,
            component=component,
            details=details,
            status_code=kwargs.pop("status_code", default_code),
            **kwargs,
        )


class RateLimitError(TransportError):
    """Server-side rate limit exceeded (HTTP 429).

    Always retryable. Includes retry_after information when available.
    """

    def __init__(self, message: str, retry_after: int | None = None, **kwargs: Any):
        details = kwargs.pop("details", {})
        if retry_after:
            details["retry_after_seconds"] = retry_after
        kwargs.pop("retryable", None)

        super().__init__(
            message,
            details=details,
            status_code=ErrorCode.API_RATE_LIMIT,
            retryable=True,
            **kwargs,
        )


class ResponseParseError(TransportError):
    """Response body could not be decoded into the expected result type."""

    def __init__(self, message: str, **kwargs: Any):
        component = kwargs.pop("component", "converter")
        super().__init__(
            message,
            component=component,
            status_code=kwargs.pop("status_code", ErrorCode.RESPONSE_PARSE_FAILED),
            retryable=False,
            **kwargs,
        )


class InterruptedWaitError(ContactEnrichmentError):
    """A synchronous waiter stopped waiting before a result arrived.

    Distinct from TransportError so callers can tell "the server failed" from
    "we stopped waiting". The request itself may still complete later.
    """

    def __init__(self, message: str = "Interrupted while waiting for a result", **kwargs: Any):
        component = kwargs.pop("component", "callbacks")
        super().__init__(
            message,
            component=component,
            status_code=kwargs.pop("status_code", ErrorCode.WAIT_INTERRUPTED),
            **kwargs,
        )


class ConfigurationError(ContactEnrichmentError):
    """Configuration loading or validation failed.

    Not retryable as configuration issues must be fixed manually.

    Example:
        raise ConfigurationError(
            "worker_count must be at least 1",
            config_key="worker_count",
        )
    """

    def __init__(self, message: str, config_key: str | None = None, **kwargs: Any):
        details = kwargs.pop("details", {})
        if config_key:
            details["config_key"] = config_key

        component = kwargs.pop("component", "config")

        super().__init__(
            message,
            component=component,
            details=details,
            status_code=kwargs.pop("status_code", ErrorCode.CONFIG_VALIDATION_FAILED),
            retryable=False,
            **kwargs,
        )


# ============================================================================
# HELPER FUNCTIONS
# ============================================================================


def wrap_exception(
    original: BaseException,
    error_class: type[ContactEnrichmentError],
    message: str | None = None,
    **kwargs: Any,
) -> ContactEnrichmentError:
    """Wrap a generic exception in a structured client exception.

    Already-structured errors of the requested class are returned unchanged so
    wrapping is idempotent.

    Example:
        try:
            response = client.get(url)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise wrap_exception(e, TransportError, endpoint=url)
    """
    if isinstance(original, error_class):
        return original
    return error_class(message or str(original) or type(original).__name__, cause=original, **kwargs)


def is_retryable(exc: BaseException) -> bool:
    """Check if an exception is retryable."""
    if isinstance(exc, ContactEnrichmentError):
        return exc.retryable
    return False


def get_error_code(exc: BaseException) -> int | None:
    """Get error code from exception if available."""
    if isinstance(exc, ContactEnrichmentError) and exc.status_code:
        return exc.status_code.value
    return None
