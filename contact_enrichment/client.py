"""Enrichment API client: the single entry point of the package.

Example:
    from contact_enrichment import (
        CompanyRequest, ContactEnrichmentClient, PersonRequest, UserCallback,
    )

    with ContactEnrichmentClient({"rate_limiter_policy": "burst"}, api_key="...") as client:
        person = client.send_request(PersonRequest(email="bart@fullcontact.com"))

        client.send_request_async(
            CompanyRequest(domain="fullcontact.com"),
            UserCallback(on_success=print, on_failure=print),
        )
"""

from __future__ import annotations

import os
from concurrent.futures import Executor
from typing import Any

import httpx
from loguru import logger

from .config.loader import build_config, get_config
from .config.schemas import ClientConfig
from .dispatch.callbacks import Callback, NoOpCallback, SyncCallback
from .dispatch.dispatcher import RequestDispatcher
from .dispatch.rate_limiter import RateLimiter, build_rate_limiter
from .exceptions import InterruptedWaitError, UsageError
from .http.transport import HttpxTransport, LogHook, Transport, default_headers
from .models.request import (
    AccountStatsRequest,
    CompanyRequest,
    EnrichmentRequest,
    NameNormalizationRequest,
    PersonRequest,
)
from .models.responses import (
    AccountStatsResponse,
    CompanyResponse,
    NameResponse,
    PersonResponse,
)
from .utils.logging_config import loguru_log_hook


class ContactEnrichmentClient:
    """Client for the contact enrichment API."""

    def __init__(
        self,
        config: ClientConfig | dict[str, Any] | None = None,
        *,
        api_key: str | None = None,
        transport: Transport | None = None,
        http_client: httpx.Client | None = None,
        http_executor: Executor | None = None,
        log_hook: LogHook | None = None,
        rate_limiter: RateLimiter | None = None,
    ):
        """Initialize the client.

        Args:
            config: ClientConfig, a mapping of config values, or None to load
                from get_config() (YAML file and CONTACT_ENRICHMENT__* env vars)
            api_key: API key; overrides config.api_key and the env var
            transport: Pre-built transport (replaces the httpx transport)
            http_client: Pre-configured httpx client for the default transport
            http_executor: Executor the default transport runs HTTP exchanges on
            log_hook: Receives HTTP traffic lines; defaults to loguru DEBUG when
                config.logging.log_http_traffic is set
            rate_limiter: Pre-built rate limiter (replaces the policy-selected one)
        """
        if config is None:
            config = get_config()
        elif isinstance(config, dict):
            config = build_config(config, apply_env_overrides_flag=False)
        self.config = config

        self.api_key = api_key or config.api_key or os.getenv(config.api_key_env_var)
        if not self.api_key:
            logger.warning(
                f"API key not found in {config.api_key_env_var}. "
                "API calls will fail without authentication."
            )

        if log_hook is None and config.logging.log_http_traffic:
            log_hook = loguru_log_hook

        self.rate_limiter = rate_limiter or build_rate_limiter(
            config.rate_limiter_policy, burst_seconds=config.burst_seconds
        )
        self.transport = transport or HttpxTransport(
            config.base_url,
            http_client=http_client,
            http_executor=http_executor,
            timeout=config.timeout_seconds,
            headers=default_headers(self.api_key, config.user_agent, config.headers),
            log_hook=log_hook,
            retry_attempts=config.retry_attempts,
            retry_backoff_seconds=config.retry_backoff_seconds,
        )
        self.dispatcher = RequestDispatcher(
            self.transport, self.rate_limiter, worker_count=config.worker_count
        )

        logger.info(
            f"Initialized ContactEnrichmentClient: base_url={config.base_url}, "
            f"rate_limiter={config.rate_limiter_policy.value}, workers={config.worker_count}"
        )

    def __enter__(self) -> "ContactEnrichmentClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def close(self, wait: bool = True) -> None:
        """Stop accepting requests and release the HTTP client."""
        self.dispatcher.shutdown(wait=wait)
        self.transport.close()

    def send_request(
        self,
        request: EnrichmentRequest,
        timeout: float | None = None,
        callback: SyncCallback[Any] | None = None,
    ) -> Any:
        """Send a request and block until its result arrives.

        Pass a fresh ``SyncCallback`` to keep a handle on the wait: another
        thread can then call ``callback.interrupt()`` to end it early.

        Returns:
            The endpoint's typed response (``request.response_model``)

        Raises:
            TransportError: If the exchange failed
            InterruptedWaitError: If the wait was interrupted or timed out
            UsageError: If the client has been closed or ``callback`` was already used
        """
        if callback is None:
            callback = SyncCallback()
        elif callback.pending.done:
            raise UsageError(
                "SyncCallback already holds a result; use a new one per request",
                operation="send_request",
                details={"request": request.describe()},
            )
        self.dispatcher.dispatch(request, callback)
        try:
            return callback.get(timeout)
        except InterruptedWaitError:
            logger.warning(f"Stopped waiting for {request.describe()}")
            raise

    def send_request_async(
        self, request: EnrichmentRequest, callback: Callback[Any] | None = None
    ) -> None:
        """Send a request without blocking.

        Without a callback the request must carry a webhook; the server then
        delivers the result and local completion is discarded.

        Raises:
            UsageError: If neither a callback nor a webhook is given (nothing is dispatched)
        """
        if callback is None:
            if not request.has_webhook:
                raise UsageError(
                    "Cannot make an asynchronous request without either a callback or a webhook",
                    operation="send_request_async",
                    details={"request": request.describe()},
                )
            callback = NoOpCallback()
        self.dispatcher.dispatch(request, callback)

    # Convenience lookups

    def lookup_person(self, timeout: float | None = None, **lookup: Any) -> PersonResponse:
        """Person lookup, e.g. ``lookup_person(email="bart@fullcontact.com")``."""
        return self.send_request(PersonRequest(**lookup), timeout=timeout)

    def lookup_company(
        self, domain: str, timeout: float | None = None, **options: Any
    ) -> CompanyResponse:
        return self.send_request(CompanyRequest(domain=domain, **options), timeout=timeout)

    def normalize_name(
        self, name: str, timeout: float | None = None, **options: Any
    ) -> NameResponse:
        return self.send_request(NameNormalizationRequest(q=name, **options), timeout=timeout)

    def account_stats(
        self, period: str | None = None, timeout: float | None = None
    ) -> AccountStatsResponse:
        return self.send_request(AccountStatsRequest(period=period), timeout=timeout)


__all__ = ["ContactEnrichmentClient"]
