"""HTTP transport for the enrichment API.

The transport owns the wire exchange: URL building, headers, retries of
timeouts and connection errors, status handling and body conversion. It reports
the outcome to the ``TransportCallback`` it was given and never raises for a
failed exchange.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping
from concurrent.futures import Executor
from typing import TYPE_CHECKING, Any

import httpx
from loguru import logger
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from ..exceptions import RateLimitError, TransportError
from ..models.request import EnrichmentRequest
from .converter import BodyConverter, JsonBodyConverter


if TYPE_CHECKING:
    from ..dispatch.callbacks import TransportCallback


LogHook = Callable[[str], None]

API_KEY_HEADER = "X-FullContact-APIKey"  # pragma: allowlist secret


class Transport(ABC):
    """Performs one request and reports the outcome to its callback."""

    @abstractmethod
    def execute(self, request: EnrichmentRequest, callback: TransportCallback[Any]) -> None: ...

    def close(self) -> None:
        """Release transport resources."""


class HttpxTransport(Transport):
    """Synchronous httpx transport, optionally running exchanges on an executor."""

    def __init__(
        self,
        base_url: str,
        *,
        converter: BodyConverter | None = None,
        http_client: httpx.Client | None = None,
        http_executor: Executor | None = None,
        timeout: float = 30.0,
        headers: Mapping[str, str] | None = None,
        log_hook: LogHook | None = None,
        retry_attempts: int = 3,
        retry_backoff_seconds: float = 1.0,
    ):
        """Initialize the transport.

        Args:
            base_url: Endpoint root; request paths are appended to it
            converter: Body converter (defaults to JsonBodyConverter)
            http_client: Optional pre-configured httpx client (useful for tests)
            http_executor: Optional executor the HTTP exchange runs on; by default
                the exchange runs on the calling worker thread
            timeout: Request timeout in seconds for the default client
            headers: Headers sent with every request
            log_hook: Receives the lines of every request and response this
                transport sends; the httpx client itself is left untouched
            retry_attempts: Attempts per request on timeouts and connection errors
            retry_backoff_seconds: Exponential backoff multiplier between attempts
        """
        self.base_url = base_url.rstrip("/")
        self.converter = converter or JsonBodyConverter()
        self.headers = dict(headers or {})
        self.retry_attempts = retry_attempts
        self.retry_backoff_seconds = retry_backoff_seconds
        self._http_executor = http_executor
        self._log_hook = log_hook
        self._owns_client = http_client is None
        self._client = http_client or httpx.Client(timeout=timeout)

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def execute(self, request: EnrichmentRequest, callback: TransportCallback[Any]) -> None:
        if self._http_executor is None:
            self._exchange(request, callback)
        else:
            self._http_executor.submit(self._exchange, request, callback)

    def _exchange(self, request: EnrichmentRequest, callback: TransportCallback[Any]) -> None:
        try:
            response = self._send(request)
            result = self._handle_response(request, response)
        except Exception as e:
            callback.failure(e)
            return
        callback.success(result, response.headers)

    def _send(self, request: EnrichmentRequest) -> httpx.Response:
        """Send the request, retrying timeouts and connection errors.

        Raises:
            TransportError: If the request could not be completed
        """
        url = f"{self.base_url}/{request.path.lstrip('/')}"
        params = self.converter.to_params(request)

        @retry(
            stop=stop_after_attempt(self.retry_attempts),
            wait=wait_exponential(multiplier=self.retry_backoff_seconds, max=30),
            retry=retry_if_exception_type((httpx.TimeoutException, httpx.ConnectError)),
            reraise=True,
        )
        def _do_request() -> httpx.Response:
            outgoing = self._client.build_request(
                request.method, url, params=params, headers=self.headers
            )
            self._log_request(outgoing)
            response = self._client.send(outgoing)
            self._log_response(response)
            return response

        try:
            return _do_request()
        except httpx.TimeoutException as e:
            raise TransportError(
                f"Request timeout after {self.retry_attempts} attempts",
                endpoint=request.path,
                http_status=408,
                operation="execute",
                retryable=False,
                cause=e,
            ) from e
        except httpx.HTTPError as e:
            raise TransportError(
                f"Request error: {e}",
                endpoint=request.path,
                operation="execute",
                retryable=True,
                cause=e,
            ) from e

    def _handle_response(self, request: EnrichmentRequest, response: httpx.Response) -> Any:
        status = response.status_code
        logger.debug(f"{request.describe()} returned HTTP {status}")
        if status == 429:
            retry_after = response.headers.get("Retry-After")
            raise RateLimitError(
                f"Rate limit exceeded: {_error_message(response)}",
                retry_after=int(retry_after) if retry_after and retry_after.isdigit() else None,
                endpoint=request.path,
                http_status=status,
                operation="execute",
            )
        if not response.is_success:
            raise TransportError(
                f"HTTP {status}: {_error_message(response)}",
                endpoint=request.path,
                http_status=status,
                operation="execute",
            )
        return self.converter.from_response(response.content, request.response_model)

    def _log_request(self, request: httpx.Request) -> None:
        if self._log_hook is None:
            return
        self._log_hook(f"---> HTTP {request.method} {request.url}")
        for name, value in request.headers.items():
            if name.lower() == API_KEY_HEADER.lower():
                value = "<redacted>"
            self._log_hook(f"{name}: {value}")
        self._log_hook("---> END HTTP")

    def _log_response(self, response: httpx.Response) -> None:
        if self._log_hook is None:
            return
        self._log_hook(f"<--- HTTP {response.status_code} {response.request.url}")
        for name, value in response.headers.items():
            self._log_hook(f"{name}: {value}")
        self._log_hook("<--- END HTTP")


def _error_message(response: httpx.Response) -> str:
    """Prefer the API's JSON ``message`` field, fall back to the raw body."""
    try:
        body = response.json()
    except ValueError:
        return response.text[:200]
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return response.text[:200]


def default_headers(
    api_key: str | None, user_agent: str, extra: Mapping[str, str] | None = None
) -> dict[str, str]:
    """Headers sent with every request: JSON accept, user agent, API key, passthrough extras."""
    headers = {"Accept": "application/json", "User-Agent": user_agent}
    if api_key:
        headers[API_KEY_HEADER] = api_key
    if extra:
        headers.update(extra)
    return headers


__all__ = ["API_KEY_HEADER", "HttpxTransport", "LogHook", "Transport", "default_headers"]
