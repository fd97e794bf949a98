"""Unit tests for the httpx transport.

Network traffic is served by ``httpx.MockTransport`` so no request leaves the
process.
"""

import json
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import Mock

import httpx
import pytest

from contact_enrichment.dispatch.callbacks import TransportCallback
from contact_enrichment.exceptions import (
    ErrorCode,
    RateLimitError,
    ResponseParseError,
    TransportError,
)
from contact_enrichment.http.transport import API_KEY_HEADER, HttpxTransport, default_headers
from contact_enrichment.models.request import CompanyRequest, PersonRequest
from contact_enrichment.models.responses import CompanyResponse, PersonResponse
from tests.mocks import RecordingCallback


pytestmark = pytest.mark.fast

BASE_URL = "https://api.test.local/v2"


def _json_response(status: int, payload: dict, headers: dict | None = None) -> httpx.Response:
    return httpx.Response(status, content=json.dumps(payload).encode(), headers=headers)


def _make_transport(handler, **kwargs) -> HttpxTransport:
    client = httpx.Client(transport=httpx.MockTransport(handler))
    kwargs.setdefault("retry_backoff_seconds", 0)
    kwargs.setdefault("headers", default_headers("secret-key", "contact-enrichment-tests"))
    return HttpxTransport(BASE_URL, http_client=client, **kwargs)


def _execute(transport: HttpxTransport, request) -> RecordingCallback:
    callback = RecordingCallback()
    transport.execute(request, TransportCallback(callback, request))
    assert callback.wait()
    return callback


class TestHttpxTransportSuccess:
    """Test successful exchanges."""

    def test_builds_url_params_and_headers(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return _json_response(200, {"status": 200})

        transport = _make_transport(handler)
        _execute(transport, PersonRequest(email="bart@fullcontact.com"))

        sent = seen[0]
        assert sent.method == "GET"
        assert str(sent.url).startswith(f"{BASE_URL}/person.json")
        assert sent.url.params["email"] == "bart@fullcontact.com"
        assert sent.headers[API_KEY_HEADER] == "secret-key"
        assert sent.headers["Accept"] == "application/json"

    def test_success_delivers_typed_result(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return _json_response(200, {"status": 200, "organization": {"name": "FullContact"}})

        transport = _make_transport(handler)
        callback = _execute(transport, CompanyRequest(domain="fullcontact.com"))

        result = callback.successes[0]
        assert isinstance(result, CompanyResponse)
        assert result.organization.name == "FullContact"

    def test_response_headers_reach_callback(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return _json_response(200, {"status": 200}, headers={"X-Rate-Limit-Limit": "300"})

        transport = _make_transport(handler)
        request = PersonRequest(email="bart@fullcontact.com")
        callback = RecordingCallback()
        limiter = Mock()

        transport.execute(request, TransportCallback(callback, request, limiter))

        assert callback.wait()
        limiter.set_rate_per_minute.assert_called_once_with(300.0)

    def test_http_executor_runs_exchange_off_the_caller(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return _json_response(200, {"status": 200})

        with ThreadPoolExecutor(max_workers=1, thread_name_prefix="http-io") as executor:
            transport = _make_transport(handler, http_executor=executor)
            callback = _execute(transport, PersonRequest(email="bart@fullcontact.com"))

        assert isinstance(callback.successes[0], PersonResponse)
        assert callback.threads[0].startswith("http-io")


class TestHttpxTransportErrors:
    """Test failed exchanges become failure deliveries."""

    def test_not_found_uses_api_message(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return _json_response(404, {"status": 404, "message": "Searched within last 24 hours. No results found."})

        transport = _make_transport(handler)
        callback = _execute(transport, PersonRequest(email="nobody@example.com"))

        error = callback.failures[0]
        assert isinstance(error, TransportError)
        assert error.http_status == 404
        assert "No results found" in error.message
        assert error.retryable is False

    def test_forbidden_is_authentication_failure(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return _json_response(403, {"status": 403, "message": "Invalid API key"})

        transport = _make_transport(handler)
        callback = _execute(transport, PersonRequest(email="bart@fullcontact.com"))

        assert callback.failures[0].status_code == ErrorCode.API_AUTHENTICATION_FAILED

    def test_server_error_is_retryable(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(503, text="Service Unavailable")

        transport = _make_transport(handler)
        callback = _execute(transport, PersonRequest(email="bart@fullcontact.com"))

        error = callback.failures[0]
        assert error.http_status == 503
        assert error.retryable is True
        assert "Service Unavailable" in error.message

    def test_too_many_requests_is_rate_limit_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return _json_response(429, {"status": 429, "message": "Usage limits exceeded."}, headers={"Retry-After": "30"})

        transport = _make_transport(handler)
        callback = _execute(transport, PersonRequest(email="bart@fullcontact.com"))

        error = callback.failures[0]
        assert isinstance(error, RateLimitError)
        assert error.details["retry_after_seconds"] == 30
        assert error.retryable is True

    def test_malformed_body_is_parse_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="<html>oops</html>")

        transport = _make_transport(handler)
        callback = _execute(transport, PersonRequest(email="bart@fullcontact.com"))

        assert isinstance(callback.failures[0], ResponseParseError)

    def test_timeouts_are_retried_then_reported(self):
        attempts = []

        def handler(request: httpx.Request) -> httpx.Response:
            attempts.append(request)
            raise httpx.ReadTimeout("timed out", request=request)

        transport = _make_transport(handler, retry_attempts=3)
        callback = _execute(transport, PersonRequest(email="bart@fullcontact.com"))

        error = callback.failures[0]
        assert len(attempts) == 3
        assert error.http_status == 408
        assert isinstance(error.cause, httpx.TimeoutException)

    def test_connection_error_recovers_on_retry(self):
        attempts = []

        def handler(request: httpx.Request) -> httpx.Response:
            attempts.append(request)
            if len(attempts) == 1:
                raise httpx.ConnectError("connection refused", request=request)
            return _json_response(200, {"status": 200})

        transport = _make_transport(handler, retry_attempts=2)
        callback = _execute(transport, PersonRequest(email="bart@fullcontact.com"))

        assert len(attempts) == 2
        assert len(callback.successes) == 1

    def test_unexpected_exception_is_wrapped(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise RuntimeError("handler bug")

        transport = _make_transport(handler)
        callback = _execute(transport, PersonRequest(email="bart@fullcontact.com"))

        error = callback.failures[0]
        assert isinstance(error, TransportError)
        assert isinstance(error.cause, RuntimeError)


class TestHttpTrafficLogging:
    """Test the log hook sees traffic with the API key redacted."""

    def test_log_hook_receives_request_and_response(self):
        lines: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            return _json_response(200, {"status": 200})

        transport = _make_transport(handler, log_hook=lines.append)
        _execute(transport, PersonRequest(email="bart@fullcontact.com"))

        assert any(line.startswith("---> HTTP GET") for line in lines)
        assert any(line.startswith("<--- HTTP 200") for line in lines)
        assert not any("secret-key" in line for line in lines)
        assert any("<redacted>" in line for line in lines)

    def test_shared_client_is_not_modified(self):
        """Transports sharing one httpx client only log their own traffic."""
        client = httpx.Client(transport=httpx.MockTransport(lambda r: _json_response(200, {})))
        first_lines: list[str] = []
        second_lines: list[str] = []
        first = HttpxTransport(BASE_URL, http_client=client, log_hook=first_lines.append)
        second = HttpxTransport(BASE_URL, http_client=client, log_hook=second_lines.append)

        _execute(first, PersonRequest(email="first@example.com"))
        _execute(second, CompanyRequest(domain="second.example.com"))

        assert client.event_hooks == {"request": [], "response": []}
        assert sum(line.startswith("---> HTTP GET") for line in first_lines) == 1
        assert sum(line.startswith("---> HTTP GET") for line in second_lines) == 1
        assert not any("second.example.com" in line for line in first_lines)
        assert not any("first%40example.com" in line for line in second_lines)
        client.close()

    def test_retried_attempts_are_each_logged(self):
        lines: list[str] = []
        attempts = []

        def handler(request: httpx.Request) -> httpx.Response:
            attempts.append(request)
            if len(attempts) == 1:
                raise httpx.ConnectError("connection refused", request=request)
            return _json_response(200, {"status": 200})

        transport = _make_transport(handler, log_hook=lines.append, retry_attempts=2)
        _execute(transport, PersonRequest(email="bart@fullcontact.com"))

        assert sum(line.startswith("---> HTTP GET") for line in lines) == 2
        assert sum(line.startswith("<--- HTTP 200") for line in lines) == 1


class TestTransportLifecycle:
    """Test client ownership on close."""

    def test_close_leaves_injected_client_open(self):
        client = httpx.Client(transport=httpx.MockTransport(lambda r: httpx.Response(200)))
        transport = HttpxTransport(BASE_URL, http_client=client)

        transport.close()

        assert client.is_closed is False
        client.close()

    def test_close_closes_owned_client(self):
        transport = HttpxTransport(BASE_URL)
        transport.close()
        assert transport._client.is_closed is True


class TestDefaultHeaders:
    """Test the default header set."""

    def test_api_key_is_omitted_when_missing(self):
        headers = default_headers(None, "agent/1.0")
        assert API_KEY_HEADER not in headers
        assert headers["User-Agent"] == "agent/1.0"

    def test_extra_headers_are_merged(self):
        headers = default_headers("k", "agent/1.0", {"X-Trace": "1"})
        assert headers["X-Trace"] == "1"
        assert headers[API_KEY_HEADER] == "k"
